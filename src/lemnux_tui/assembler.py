from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from email.utils import format_datetime
from typing import Callable, Optional, Tuple

from .config import IMAGE_MAX_WORKERS, READ_MORE
from .datamodels import Page, PostCard, PostRecord, RawPage
from .errors import ThumbnailError

logger = logging.getLogger("lemnux")

ImageLoad = Callable[[str], bytes]


def creator_label(record: PostRecord) -> str:
    return f"{record.creator_name}@{record.community_name}"


def to_card(record: PostRecord, load_image: ImageLoad) -> PostCard:
    """Convert a raw post into a card. A failed thumbnail leaves the card without one."""
    thumbnail = None
    if record.thumbnail_url:
        try:
            thumbnail = load_image(record.thumbnail_url)
        except ThumbnailError as e:
            logger.warning("No thumbnail for post %s: %s", record.id, e)
        except Exception:
            logger.exception("Unexpected thumbnail failure for post %s", record.id)

    return PostCard(
        post_id=record.id,
        title=record.title,
        creator=creator_label(record),
        body=record.body or READ_MORE,
        updated=format_datetime(record.updated or record.published),
        url=record.url,
        thumbnail=thumbnail,
    )


@dataclass(frozen=True)
class PageAssembly:
    """Cards of one page collected in record order, whatever order they finish in."""

    slots: Tuple[Optional[PostCard], ...]
    cursor: Optional[str] = None

    @classmethod
    def start(cls, raw: RawPage) -> PageAssembly:
        return cls(slots=(None,) * len(raw.posts), cursor=raw.next_cursor)

    def with_card(self, index: int, card: PostCard) -> PageAssembly:
        slots = list(self.slots)
        slots[index] = card
        return PageAssembly(slots=tuple(slots), cursor=self.cursor)

    @property
    def pending(self) -> int:
        return sum(1 for s in self.slots if s is None)

    @property
    def done(self) -> int:
        return len(self.slots) - self.pending

    @property
    def complete(self) -> bool:
        return self.pending == 0

    def page(self) -> Page:
        if not self.complete:
            raise ValueError(f"{self.pending} posts still converting")
        return Page(cards=tuple(self.slots), cursor=self.cursor)


def assemble(raw: RawPage, load_image: ImageLoad, max_workers: int = IMAGE_MAX_WORKERS) -> Page:
    """Convert a whole page at once, fetching thumbnails concurrently."""
    assembly = PageAssembly.start(raw)
    if not raw.posts:
        return assembly.page()

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_index = {
            executor.submit(to_card, record, load_image): index
            for index, record in enumerate(raw.posts)
        }
        for future in as_completed(future_to_index):
            assembly = assembly.with_card(future_to_index[future], future.result())

    return assembly.page()
