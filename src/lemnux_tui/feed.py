"""
The feed controller.

All feed state changes go through ``update``, which folds one event into a
``FeedState`` and returns the effects the caller must start. Effects run off
the UI thread (see ``run_fetch`` and ``run_convert``) and come back as
events tagged with the generation of the load that started them. Events
from any other generation are dropped, so a superseded load can never touch
the page on screen.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple, Union

from .api import LemmyClient
from .assembler import ImageLoad, PageAssembly, to_card
from .datamodels import ListingScope, Page, PostCard, PostRecord, RawPage
from .errors import FetchError, ThumbnailError

logger = logging.getLogger("lemnux")


# --- States ---
@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Loading:
    cursor: Optional[str] = None
    assembly: Optional[PageAssembly] = None


@dataclass(frozen=True)
class Ready:
    page: Page


@dataclass(frozen=True)
class Failed:
    error: FetchError
    cursor: Optional[str] = None


Status = Union[Idle, Loading, Ready, Failed]


@dataclass(frozen=True)
class FeedState:
    scope: ListingScope = ListingScope()
    generation: int = 0
    status: Status = Idle()


# --- Events ---
@dataclass(frozen=True)
class LoadNext:
    pass


@dataclass(frozen=True)
class ChangeScope:
    scope: ListingScope


@dataclass(frozen=True)
class Retry:
    pass


@dataclass(frozen=True)
class PageFetched:
    generation: int
    raw: RawPage


@dataclass(frozen=True)
class FetchFailed:
    generation: int
    error: FetchError


@dataclass(frozen=True)
class CardConverted:
    generation: int
    index: int
    card: PostCard


FeedEvent = Union[LoadNext, ChangeScope, Retry, PageFetched, FetchFailed, CardConverted]


# --- Effects ---
@dataclass(frozen=True)
class FetchPage:
    generation: int
    scope: ListingScope
    cursor: Optional[str]


@dataclass(frozen=True)
class ConvertPost:
    generation: int
    index: int
    record: PostRecord


Effect = Union[FetchPage, ConvertPost]
Transition = Tuple[FeedState, List[Effect]]


def _start_load(state: FeedState, scope: ListingScope, cursor: Optional[str]) -> Transition:
    generation = state.generation + 1
    logger.debug("Load %d: %s cursor=%s", generation, scope, cursor)
    new_state = FeedState(scope=scope, generation=generation, status=Loading(cursor=cursor))
    return new_state, [FetchPage(generation=generation, scope=scope, cursor=cursor)]


def update(state: FeedState, event: FeedEvent) -> Transition:
    """Apply one event. Returns the new state and the effects to start."""
    status = state.status

    if isinstance(event, ChangeScope):
        return _start_load(state, event.scope, None)

    if isinstance(event, LoadNext):
        if isinstance(status, Idle):
            return _start_load(state, state.scope, None)
        if isinstance(status, Ready) and status.page.cursor is not None:
            return _start_load(state, state.scope, status.page.cursor)
        return state, []

    if isinstance(event, Retry):
        if isinstance(status, Failed):
            return _start_load(state, state.scope, status.cursor)
        return state, []

    # Completions from here on; anything from another load is stale.
    if event.generation != state.generation or not isinstance(status, Loading):
        logger.debug("Dropping stale %s for generation %d", type(event).__name__, event.generation)
        return state, []

    if isinstance(event, FetchFailed):
        logger.warning("Load %d failed: %s", state.generation, event.error)
        return replace(state, status=Failed(error=event.error, cursor=status.cursor)), []

    if isinstance(event, PageFetched):
        if status.assembly is not None:
            return state, []
        assembly = PageAssembly.start(event.raw)
        if assembly.complete:
            return replace(state, status=Ready(assembly.page())), []
        effects: List[Effect] = [
            ConvertPost(generation=state.generation, index=index, record=record)
            for index, record in enumerate(event.raw.posts)
        ]
        return replace(state, status=replace(status, assembly=assembly)), effects

    if isinstance(event, CardConverted):
        if status.assembly is None:
            return state, []
        assembly = status.assembly.with_card(event.index, event.card)
        if assembly.complete:
            return replace(state, status=Ready(assembly.page())), []
        return replace(state, status=replace(status, assembly=assembly)), []

    raise TypeError(f"Unknown feed event: {event!r}")


# --- Effect runners ---
def run_fetch(client: LemmyClient, effect: FetchPage) -> Union[PageFetched, FetchFailed]:
    try:
        raw = client.get_posts(effect.scope, effect.cursor)
    except FetchError as e:
        return FetchFailed(generation=effect.generation, error=e)
    except Exception as e:
        logger.exception("Unexpected error fetching page (generation %d)", effect.generation)
        return recover(effect, e)
    return PageFetched(generation=effect.generation, raw=raw)


def run_convert(load_image: ImageLoad, effect: ConvertPost) -> CardConverted:
    card = to_card(effect.record, load_image)
    return CardConverted(generation=effect.generation, index=effect.index, card=card)


def _skip_thumbnail(url: str) -> bytes:
    raise ThumbnailError(f"Skipped {url}")


def recover(effect: Effect, error: BaseException) -> Union[FetchFailed, CardConverted]:
    """Completion event for an effect whose runner died with ``error``.

    A page fetch fails its load; a conversion still delivers its card, without
    a thumbnail.
    """
    if isinstance(effect, FetchPage):
        return FetchFailed(generation=effect.generation, error=FetchError(f"Unexpected error: {error}"))
    card = to_card(effect.record, _skip_thumbnail)
    return CardConverted(generation=effect.generation, index=effect.index, card=card)
