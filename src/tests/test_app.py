from __future__ import annotations

import threading
from dataclasses import asdict
from unittest.mock import patch

import pytest
from textual.widgets import Input, TabbedContent

from conftest import instance_dict
from lemnux_tui.api import LemmyClient
from lemnux_tui.app import LemnuxApp
from lemnux_tui.config import save_record
from lemnux_tui.context import AppContext
from lemnux_tui.datamodels import FederatedInstances, Instance, Page, RawPage
from lemnux_tui.errors import AuthError, FetchError
from lemnux_tui.feed import ChangeScope, Failed, PageFetched, Ready
from lemnux_tui.screens import SettingsPane
from lemnux_tui.widgets import StatusBar

EMPTY_PAGE = RawPage(posts=(), next_cursor=None)


@pytest.fixture(autouse=True)
def no_discovery():
    with patch.object(LemmyClient, "get_federated_instances", return_value=FederatedInstances()):
        yield


def _context(config_dir, config=None) -> AppContext:
    save_record("instance", asdict(Instance.from_dict(instance_dict())), config_dir)
    return AppContext(config or {}, config_dir=config_dir)


async def _settle(pilot, until, attempts: int = 100) -> None:
    for _ in range(attempts):
        await pilot.pause(0.02)
        if until():
            return


@pytest.mark.asyncio
async def test_auth_error_opens_settings(config_dir):
    context = _context(config_dir, {"listing_type": "Subscribed"})
    app = LemnuxApp(context)

    async with app.run_test() as pilot:
        await _settle(pilot, lambda: isinstance(app.feed.status, Failed))

        assert isinstance(app.feed.status.error, AuthError)
        assert app.query_one("#tabs", TabbedContent).active == "settings-tab"
        assert app.query_one(StatusBar).loading_status == "Log in to continue."


@pytest.mark.asyncio
async def test_login_needs_username_and_password(config_dir):
    context = _context(config_dir)

    with patch.object(LemmyClient, "get_posts", return_value=EMPTY_PAGE), patch.object(
        LemmyClient, "login"
    ) as mock_login:
        app = LemnuxApp(context)
        async with app.run_test() as pilot:
            pane = app.query_one(SettingsPane)
            pane.query_one("#username", Input).value = ""
            pane.query_one("#password", Input).value = "hunter2"
            pane.request_login()
            await pilot.pause(0.1)

            pane.query_one("#username", Input).value = "alice"
            pane.query_one("#password", Input).value = ""
            pane.request_login()
            await pilot.pause(0.1)

    mock_login.assert_not_called()
    assert context.user is None


@pytest.mark.asyncio
async def test_crashed_fetch_worker_fails_the_load(config_dir):
    def crashing_fetch(client, effect):
        raise RuntimeError("worker died")

    with patch("lemnux_tui.app.run_fetch", crashing_fetch):
        app = LemnuxApp(_context(config_dir))
        async with app.run_test() as pilot:
            await _settle(pilot, lambda: isinstance(app.feed.status, Failed))

            assert isinstance(app.feed.status.error, FetchError)
            assert app.query_one(StatusBar).loading_status == "Press r to retry."


@pytest.mark.asyncio
async def test_crash_from_superseded_load_leaves_current_page_alone(config_dir):
    gate = threading.Event()

    def fetch(client, effect):
        if effect.generation == 1:
            gate.wait(5)
            raise RuntimeError("late failure")
        return PageFetched(effect.generation, EMPTY_PAGE)

    with patch("lemnux_tui.app.run_fetch", fetch):
        app = LemnuxApp(_context(config_dir))
        async with app.run_test() as pilot:
            await pilot.pause()
            assert app.feed.generation == 1

            app.dispatch(ChangeScope(app.feed.scope))
            await _settle(pilot, lambda: isinstance(app.feed.status, Ready))
            gate.set()
            await _settle(pilot, lambda: not app._feed_workers)

            assert app.feed.generation == 2
            assert app.feed.status == Ready(Page(cards=(), cursor=None))
            assert app.query_one(StatusBar).loading_status == "No more posts."
