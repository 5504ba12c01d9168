from __future__ import annotations

import logging
import webbrowser
from functools import partial
from typing import List

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical, VerticalScroll
from textual.screen import Screen
from textual.worker import Worker, WorkerState
from textual.widgets import (
    Button,
    Header,
    Input,
    Label,
    ListView,
    Markdown,
    Select,
    Static,
)

from .context import AppContext
from .datamodels import Instance, PostCard, match_instances
from .errors import AuthError, FetchError
from .messages import InstanceChanged, SessionChanged, StatusUpdate
from .themes import load_themes
from .widgets import InstanceListItem, StatusBar

logger = logging.getLogger("lemnux")


# --- Post screen ---
class PostViewScreen(Screen):
    BINDINGS = [
        Binding("escape,q,b,left", "app.pop_screen", "Back"),
        Binding("o", "open_in_browser", "Open in browser"),
        Binding("down", "scroll_down", "Scroll Down"),
        Binding("up", "scroll_up", "Scroll Up"),
    ]

    def __init__(self, card: PostCard):
        super().__init__()
        self.card = card

    def compose(self) -> ComposeResult:
        yield Header()
        yield StatusBar()
        yield VerticalScroll(
            Markdown(self._markdown(), id="post-markdown"),
            id="post-scroll",
        )

    def _markdown(self) -> str:
        parts = [
            f"# {self.card.title}",
            f"*{self.card.creator}* · {self.card.updated}",
        ]
        if self.card.url:
            parts.append(f"<{self.card.url}>")
        parts.append(self.card.body)
        return "\n\n".join(parts)

    def on_mount(self) -> None:
        self.title = self.card.title
        self.sub_title = self.card.creator
        self.query_one("#post-scroll").focus()

        keybinding_style = self.app.get_keybinding_style()
        hint = f"[b {keybinding_style}]up/down[/] to scroll"
        if self.card.url:
            hint += f", [b {keybinding_style}]o[/] to open"
        self.query_one(StatusBar).set_keybindings(hint)

    def action_open_in_browser(self) -> None:
        if self.card.url:
            webbrowser.open(self.card.url)

    def action_scroll_down(self) -> None:
        self.query_one("#post-scroll").scroll_down()

    def action_scroll_up(self) -> None:
        self.query_one("#post-scroll").scroll_up()


# --- Settings tab ---
class SettingsPane(VerticalScroll):
    """Theme, instance and account settings."""

    def __init__(self, context: AppContext, **kwargs):
        super().__init__(**kwargs)
        self.context = context
        self.instances: List[Instance] = []
        self.theme_names: List[str] = []

    def compose(self) -> ComposeResult:
        yield Label("Theme", classes="settings-label")
        yield Select([], id="theme-select", prompt="Select app theme")
        yield Label("Instance", classes="settings-label")
        yield Static(id="current-instance")
        yield Input(placeholder="Search instances...", id="instance-filter")
        yield ListView(id="instances-list")
        with Vertical(id="login-form"):
            yield Label("Account", classes="settings-label")
            yield Input(placeholder="Username or email", id="username")
            yield Input(placeholder="Password", password=True, id="password")
            yield Input(placeholder="2FA token (optional)", id="totp")
            yield Button("Log in", id="login-button", classes="settings-button")
        with Vertical(id="session-info"):
            yield Static(id="welcome")
            yield Button("Logout", id="logout-button", classes="settings-button")

    def on_mount(self) -> None:
        theme_select = self.query_one("#theme-select", Select)
        self.theme_names = sorted(load_themes())
        theme_select.set_options([(name, name) for name in self.theme_names])
        self.watch(self.app, "theme", self._sync_theme)
        self.refresh_session_view()

    def _sync_theme(self, theme: str) -> None:
        if theme in self.theme_names:
            self.query_one("#theme-select", Select).value = theme

    def set_instances(self, instances: List[Instance]) -> None:
        self.instances = instances
        self._show_instances(self.query_one("#instance-filter", Input).value)

    def _show_instances(self, query: str) -> None:
        view = self.query_one("#instances-list", ListView)
        view.clear()
        for instance in match_instances(self.instances, query):
            view.append(InstanceListItem(instance))

    def refresh_session_view(self) -> None:
        instance = self.context.instance
        self.query_one("#current-instance", Static).update(
            f"Using {instance.describe()}" if instance else "No instance selected"
        )
        user = self.context.user
        logged_in = user is not None and user.is_logged
        self.query_one("#login-form").display = instance is not None and not logged_in
        self.query_one("#session-info").display = logged_in
        if logged_in:
            self.query_one("#welcome", Static).update(f"Welcome, {user.username}")

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "instance-filter":
            self._show_instances(event.value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id in ("username", "password", "totp"):
            self.request_login()

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if event.list_view.id != "instances-list":
            return
        event.stop()
        if isinstance(event.item, InstanceListItem):
            self.context.select_instance(event.item.instance)
            self.refresh_session_view()
            self.post_message(InstanceChanged(event.item.instance))

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id == "theme-select" and event.value is not Select.BLANK:
            if event.value != self.app.theme:
                self.app.theme = event.value
                self.context.set_theme(event.value)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "login-button":
            self.request_login()
        elif event.button.id == "logout-button":
            self.context.logout()
            self.refresh_session_view()
            self.post_message(SessionChanged(None))

    def request_login(self) -> None:
        username = self.query_one("#username", Input).value.strip()
        password = self.query_one("#password", Input).value
        totp = self.query_one("#totp", Input).value.strip()
        if not username or not password:
            self.app.notify("Username and password are required.", severity="error")
            return

        self.post_message(StatusUpdate(f"Logging in as {username}..."))
        self.run_worker(
            partial(self.context.login, username, password, totp or None),
            name="login",
            group="session",
            thread=True,
            exclusive=True,
            exit_on_error=False,
        )

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if getattr(event.worker, "name", None) != "login":
            return

        if event.state is WorkerState.SUCCESS:
            user = event.worker.result
            self.query_one("#password", Input).value = ""
            self.query_one("#totp", Input).value = ""
            self.refresh_session_view()
            if user is not None and user.is_logged:
                self.app.notify(f"Logged in as {user.username}.")
            elif user is not None and user.verify_email_sent:
                self.app.notify("Check your email to verify the account.")
            self.post_message(SessionChanged(user))
        elif event.state is WorkerState.ERROR:
            error = event.worker.error
            self.post_message(StatusUpdate(""))
            if isinstance(error, AuthError):
                self.app.notify(f"Login failed: {error}", severity="error")
            elif isinstance(error, FetchError):
                self.app.notify(f"Could not reach the instance: {error}", severity="error")
            else:
                logger.error("Login worker failed: %s", error)
                self.app.notify("Login failed.", severity="error")
