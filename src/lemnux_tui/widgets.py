from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import ListItem, Static
from textual.reactive import reactive
from rich.text import Text

from .datamodels import Instance, PostCard
from .images import image_size

BODY_PREVIEW_CHARS = 280


def body_preview(card: PostCard) -> str:
    if card.thumbnail is not None:
        width, height = image_size(card.thumbnail)
        return f"[image {width}x{height}]"
    body = " ".join(card.body.split())
    if len(body) > BODY_PREVIEW_CHARS:
        body = body[: BODY_PREVIEW_CHARS - 3] + "..."
    return body


# --- UI Widgets ---
class PostCardItem(ListItem):
    def __init__(self, card: PostCard):
        super().__init__()
        self.card = card

    def compose(self) -> ComposeResult:
        with Vertical(classes="post-card"):
            yield Static(Text(self.card.title), classes="post-title")
            with Horizontal(classes="post-meta"):
                yield Static(Text(self.card.creator), classes="post-creator")
                yield Static(Text(self.card.updated), classes="post-updated")
            yield Static(Text(body_preview(self.card)), classes="post-body")


class InstanceListItem(ListItem):
    def __init__(self, instance: Instance):
        super().__init__()
        self.instance = instance

    def compose(self) -> ComposeResult:
        yield Static(Text(self.instance.describe()))


class StatusBar(Static):
    loading_status = reactive("")
    keybinding_hint = reactive("")

    def on_mount(self) -> None:
        self.update_display()

    def set_keybindings(self, hint: str) -> None:
        """Set the keybinding hint text."""
        self.keybinding_hint = hint

    def update_display(self) -> None:
        """Update the status bar display."""
        status_items = []
        if self.loading_status:
            status_items.append(self.loading_status)

        if self.keybinding_hint:
            status_items.append(self.keybinding_hint)

        self.update(" | ".join(status_items))

    def watch_loading_status(self, loading_status: str) -> None:
        self.update_display()

    def watch_keybinding_hint(self, keybinding_hint: str) -> None:
        self.update_display()


class ErrorMessage(Static):
    def show(self, message: str) -> None:
        self.update(Text(message, style="bold red"))
        self.display = True

    def hide(self) -> None:
        self.display = False
