from __future__ import annotations

from typing import Optional

from textual.message import Message

from .datamodels import Instance, User


class StatusUpdate(Message):
    """A message to update the status bar."""
    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__()


class InstanceChanged(Message):
    """The user picked another instance; the feed must reload."""
    def __init__(self, instance: Instance) -> None:
        self.instance = instance
        super().__init__()


class SessionChanged(Message):
    """Logged in (``user`` set) or out (``user`` is None)."""
    def __init__(self, user: Optional[User]) -> None:
        self.user = user
        super().__init__()
