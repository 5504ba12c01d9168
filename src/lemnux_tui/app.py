from __future__ import annotations

import logging
from dataclasses import replace
from functools import partial
from typing import Any, Dict, List, Optional

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.command import Hit, Hits, Provider
from textual.containers import Horizontal, Vertical
from textual.worker import Worker, WorkerState
from textual.widgets import (
    Button,
    Header,
    ListView,
    LoadingIndicator,
    Select,
    TabbedContent,
    TabPane,
)

from .config import UI_DEFAULTS
from .context import AppContext
from .datamodels import Instance, ListingType, Page, SortType
from .errors import AuthError
from .feed import (
    ChangeScope,
    Effect,
    Failed,
    FeedEvent,
    FeedState,
    FetchPage,
    Idle,
    LoadNext,
    Loading,
    Ready,
    Retry,
    recover,
    run_convert,
    run_fetch,
    update,
)
from .messages import InstanceChanged, SessionChanged, StatusUpdate
from .screens import PostViewScreen, SettingsPane
from .themes import load_themes, resolve_theme
from .widgets import ErrorMessage, PostCardItem, StatusBar

logger = logging.getLogger("lemnux")


class ThemeProvider(Provider):
    async def search(self, query: str) -> Hits:
        """Search for a theme."""
        matcher = self.matcher(query)

        for theme_name in self.app.available_themes:
            score = matcher.match(theme_name)
            if score > 0:
                yield Hit(
                    score,
                    matcher.highlight(f"Switch to {theme_name} theme"),
                    partial(self.app.action_switch_theme, theme_name),
                )


class LemnuxApp(App):
    TITLE = "Lemnux"
    SUB_TITLE = "Lemmy client"

    CSS_PATH = "app.tcss"

    COMMANDS = App.COMMANDS | {ThemeProvider}

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("n", "next_page", "Next Page"),
        Binding("r", "reload", "Reload"),
        Binding("1", "show_tab('home-tab')", "Home"),
        Binding("2", "show_tab('settings-tab')", "Settings"),
        Binding("ctrl+p", "command_palette", "Commands"),
    ]

    def __init__(
        self,
        context: AppContext,
        theme: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.context = context
        self._theme_name = theme or context.theme
        self.feed = FeedState(scope=context.default_scope())
        self._rendered: Any = None
        self._feed_workers: Dict[Worker, Effect] = {}

    def get_keybinding_style(self) -> str:
        return "$accent"

    def compose(self) -> ComposeResult:
        scope = self.feed.scope
        yield Header()
        with TabbedContent(id="tabs", initial="home-tab"):
            with TabPane("Home", id="home-tab"):
                with Vertical(id="home"):
                    with Horizontal(id="scope-bar"):
                        yield Select(
                            [(t.label, t) for t in ListingType],
                            value=scope.listing_type,
                            allow_blank=False,
                            id="listing-select",
                        )
                        yield Select(
                            [(s.label, s) for s in SortType],
                            value=scope.sort,
                            allow_blank=False,
                            id="sort-select",
                        )
                    yield LoadingIndicator(id="feed-loading")
                    yield ErrorMessage(id="feed-error")
                    yield ListView(id="posts-list")
                    yield Button("Next Page", id="next-page")
            with TabPane("Settings", id="settings-tab"):
                yield SettingsPane(self.context, id="settings")
        yield StatusBar()

    def on_mount(self) -> None:
        themes = load_themes()
        for theme in themes.values():
            self.register_theme(theme)
        self.theme = resolve_theme(self._theme_name, themes)

        self.query_one("#feed-loading", LoadingIndicator).display = False
        self.query_one("#feed-error", ErrorMessage).hide()
        self.query_one(StatusBar).set_keybindings(
            UI_DEFAULTS["statusbar_keybindings"].format(color=self.get_keybinding_style())
        )

        self.run_worker(
            lambda: self.context.discovery_client().get_federated_instances(),
            name="instances_loader",
            thread=True,
            exit_on_error=False,
        )

        if self.context.instance is None:
            self._ask_for_instance()
            return
        self.dispatch(LoadNext())
        self.query_one("#posts-list").focus()

    # --- Feed controller plumbing ---
    def dispatch(self, event: FeedEvent) -> None:
        """Fold an event into the feed state, start its effects, redraw."""
        if isinstance(event, (LoadNext, ChangeScope, Retry)) and self.context.instance is None:
            self._ask_for_instance()
            return

        self.feed, effects = update(self.feed, event)
        for effect in effects:
            self._start_effect(effect)
        self._render_feed()

    def _start_effect(self, effect: Effect) -> None:
        if isinstance(effect, FetchPage):
            worker = self.run_worker(
                partial(run_fetch, self.context.client(), effect),
                name="page_fetch",
                group="feed",
                thread=True,
                exit_on_error=False,
            )
        else:
            worker = self.run_worker(
                partial(run_convert, self.context.image_loader.load, effect),
                name="post_convert",
                group="feed",
                thread=True,
                exit_on_error=False,
            )
        self._feed_workers[worker] = effect

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        worker = event.worker
        if worker.group == "feed":
            if event.state is WorkerState.SUCCESS:
                self._feed_workers.pop(worker, None)
                self.dispatch(worker.result)
            elif event.state is WorkerState.ERROR:
                effect = self._feed_workers.pop(worker, None)
                logger.error("Feed worker %s failed: %s", worker.name, worker.error)
                # Failures from superseded loads are only logged.
                if effect is not None and effect.generation == self.feed.generation:
                    self.dispatch(recover(effect, worker.error))
            elif event.state is WorkerState.CANCELLED:
                self._feed_workers.pop(worker, None)
        elif worker.name == "instances_loader":
            if event.state is WorkerState.SUCCESS:
                self._handle_instances_loaded(worker.result.linked)
            elif event.state is WorkerState.ERROR:
                logger.error("Instance discovery failed: %s", worker.error)
                self.notify(f"Could not load instances: {worker.error}", severity="error")

    def _handle_instances_loaded(self, instances: List[Instance]) -> None:
        logger.info("Discovered %d linked instances", len(instances))
        self.query_one(SettingsPane).set_instances(instances)

    # --- Rendering ---
    def _set_status(self, text: str) -> None:
        self.query_one(StatusBar).loading_status = escape(text)

    def _render_feed(self) -> None:
        status = self.feed.status
        loading = self.query_one("#feed-loading", LoadingIndicator)
        error = self.query_one("#feed-error", ErrorMessage)
        posts_list = self.query_one("#posts-list", ListView)
        next_button = self.query_one("#next-page", Button)

        if isinstance(status, Loading):
            if status.assembly is None:
                self._set_status("Loading posts...")
            else:
                assembly = status.assembly
                self._set_status(f"Loading posts ({assembly.done}/{len(assembly.slots)})...")
            if self._rendered != ("loading", self.feed.generation):
                self._rendered = ("loading", self.feed.generation)
                error.hide()
                posts_list.clear()
                posts_list.display = False
                loading.display = True
                next_button.disabled = True
        elif isinstance(status, Ready):
            if self._rendered is not status.page:
                self._rendered = status.page
                self._show_page(status.page)
        elif isinstance(status, Failed):
            if self._rendered is not status:
                self._rendered = status
                self._show_failure(status)
        elif isinstance(status, Idle):
            self._set_status("")

    def _show_page(self, page: Page) -> None:
        self.query_one("#feed-loading", LoadingIndicator).display = False
        self.query_one("#feed-error", ErrorMessage).hide()
        posts_list = self.query_one("#posts-list", ListView)
        posts_list.clear()
        for card in page.cards:
            posts_list.append(PostCardItem(card))
        posts_list.display = True
        posts_list.scroll_home(animate=False)

        next_button = self.query_one("#next-page", Button)
        next_button.disabled = not page.has_next
        if not page.cards:
            self._set_status("No more posts.")
        elif page.has_next:
            self._set_status("")
        else:
            self._set_status("Last page.")

    def _show_failure(self, status: Failed) -> None:
        self.query_one("#feed-loading", LoadingIndicator).display = False
        self.query_one("#posts-list", ListView).display = False
        self.query_one("#next-page", Button).disabled = True
        message = f"Failed to load posts: {status.error}"
        self.query_one("#feed-error", ErrorMessage).show(message)

        if isinstance(status.error, AuthError):
            self._set_status("Log in to continue.")
            self.query_one("#tabs", TabbedContent).active = "settings-tab"
            self.notify(f"{status.error}. Please log in.", severity="warning")
        else:
            self._set_status("Press r to retry.")

    def _ask_for_instance(self) -> None:
        self._set_status("Select an instance to browse.")
        self.query_one("#tabs", TabbedContent).active = "settings-tab"

    # --- Events ---
    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id not in ("listing-select", "sort-select"):
            return
        scope = self.feed.scope
        if event.select.id == "listing-select":
            new_scope = replace(scope, listing_type=event.value)
        else:
            new_scope = replace(scope, sort=event.value)
        if new_scope != scope:
            self.dispatch(ChangeScope(new_scope))

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if event.list_view.id == "posts-list" and isinstance(event.item, PostCardItem):
            self.push_screen(PostViewScreen(event.item.card))

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "next-page":
            self.dispatch(LoadNext())

    def on_instance_changed(self, message: InstanceChanged) -> None:
        self.sub_title = message.instance.domain
        self.dispatch(ChangeScope(self.feed.scope))

    def on_session_changed(self, message: SessionChanged) -> None:
        self._set_status("")
        scope = self.feed.scope
        if message.user is None and scope.listing_type.requires_login:
            scope = replace(scope, listing_type=ListingType.LOCAL)
            self.query_one("#listing-select", Select).value = scope.listing_type
        self.dispatch(ChangeScope(scope))
        if message.user is not None and message.user.is_logged:
            self.query_one("#tabs", TabbedContent).active = "home-tab"

    def on_status_update(self, message: StatusUpdate) -> None:
        self._set_status(message.text)

    # --- Actions ---
    def action_next_page(self) -> None:
        self.dispatch(LoadNext())

    def action_reload(self) -> None:
        if isinstance(self.feed.status, Failed):
            self.dispatch(Retry())
        else:
            self.dispatch(ChangeScope(self.feed.scope))

    def action_show_tab(self, tab: str) -> None:
        self.query_one("#tabs", TabbedContent).active = tab

    def action_switch_theme(self, theme: str) -> None:
        """Switch to a new theme."""
        self.theme = theme
        self.context.set_theme(theme)
