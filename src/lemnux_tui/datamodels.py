from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# --- Listing scope ---
class ListingType(str, Enum):
    ALL = "All"
    LOCAL = "Local"
    SUBSCRIBED = "Subscribed"
    MODERATOR_VIEW = "ModeratorView"

    @property
    def label(self) -> str:
        return _split_camel(self.value)

    @property
    def requires_login(self) -> bool:
        return self in (ListingType.SUBSCRIBED, ListingType.MODERATOR_VIEW)


class SortType(str, Enum):
    ACTIVE = "Active"
    HOT = "Hot"
    NEW = "New"
    OLD = "Old"
    TOP_HOUR = "TopHour"
    TOP_SIX_HOUR = "TopSixHour"
    TOP_TWELVE_HOUR = "TopTwelveHour"
    TOP_DAY = "TopDay"
    TOP_WEEK = "TopWeek"
    TOP_MONTH = "TopMonth"
    TOP_THREE_MONTHS = "TopThreeMonths"
    TOP_SIX_MONTHS = "TopSixMonths"
    TOP_NINE_MONTHS = "TopNineMonths"
    TOP_YEAR = "TopYear"
    TOP_ALL = "TopAll"
    MOST_COMMENTS = "MostComments"
    NEW_COMMENTS = "NewComments"
    CONTROVERSIAL = "Controversial"
    SCALED = "Scaled"

    @property
    def label(self) -> str:
        return _split_camel(self.value)


def _split_camel(value: str) -> str:
    return re.sub(r"(?<=[a-z])(?=[A-Z])", " ", value)


@dataclass(frozen=True)
class ListingScope:
    """Which feed to list and how to sort it. Cursors are only valid within one scope."""

    listing_type: ListingType = ListingType.LOCAL
    sort: SortType = SortType.HOT
    community_name: Optional[str] = None
    saved_only: bool = False
    liked_only: bool = False
    disliked_only: bool = False


# --- Instances ---
@dataclass(frozen=True)
class FederationState:
    instance_id: int
    fail_count: int = 0
    last_successful_id: Optional[int] = None
    last_successful_published_time: Optional[str] = None
    last_retry: Optional[str] = None
    next_retry: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FederationState:
        return cls(
            instance_id=data["instance_id"],
            fail_count=data.get("fail_count", 0),
            last_successful_id=data.get("last_successful_id"),
            last_successful_published_time=data.get("last_successful_published_time"),
            last_retry=data.get("last_retry"),
            next_retry=data.get("next_retry"),
        )


@dataclass(frozen=True)
class Instance:
    id: int
    domain: str
    published: str
    updated: Optional[str] = None
    software: Optional[str] = None
    version: Optional[str] = None
    federation_state: Optional[FederationState] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Instance:
        state = data.get("federation_state")
        return cls(
            id=data["id"],
            domain=data["domain"],
            published=data["published"],
            updated=data.get("updated"),
            software=data.get("software"),
            version=data.get("version"),
            federation_state=FederationState.from_dict(state) if state else None,
        )

    @property
    def is_lemmy(self) -> bool:
        return (self.software or "").lower() == "lemmy"

    def describe(self) -> str:
        parts = [self.domain]
        if self.software:
            parts.append(f"{self.software} {self.version or ''}".strip())
        if self.federation_state and self.federation_state.fail_count:
            parts.append(f"{self.federation_state.fail_count} failed syncs")
        return " · ".join(parts)


@dataclass
class FederatedInstances:
    linked: List[Instance] = field(default_factory=list)
    allowed: List[Instance] = field(default_factory=list)
    blocked: List[Instance] = field(default_factory=list)


def match_instances(
    instances: List[Instance], query: str, limit: int = 50, lemmy_only: bool = True
) -> List[Instance]:
    """Instances whose domain contains the query, shortest domains first."""
    query = query.strip().lower()
    found = [
        i
        for i in instances
        if (not lemmy_only or i.is_lemmy) and query in i.domain.lower()
    ]
    found.sort(key=lambda i: (len(i.domain), i.domain))
    return found[:limit]


# --- Session ---
@dataclass(frozen=True)
class LoginResult:
    token: Optional[str]
    registration_created: bool = False
    verify_email_sent: bool = False


@dataclass(frozen=True)
class User:
    username: str
    token: Optional[str] = None
    is_logged: bool = False
    registration_created: bool = False
    verify_email_sent: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> User:
        return cls(
            username=data["username"],
            token=data.get("token"),
            is_logged=data.get("is_logged", False),
            registration_created=data.get("registration_created", False),
            verify_email_sent=data.get("verify_email_sent", False),
        )


# --- Posts ---
def parse_timestamp(value: str) -> datetime:
    """Parse an API timestamp. Older servers omit the offset; those are UTC."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class PostRecord:
    id: int
    title: str
    creator_name: str
    community_name: str
    published: datetime
    url: Optional[str] = None
    body: Optional[str] = None
    thumbnail_url: Optional[str] = None
    updated: Optional[datetime] = None

    @classmethod
    def from_view(cls, view: Dict[str, Any]) -> PostRecord:
        """Build a record from one entry of the API's ``posts`` list."""
        post = view["post"]
        community = view["community"]
        updated = post.get("updated")
        return cls(
            id=post["id"],
            title=post["name"],
            creator_name=view["creator"]["name"],
            community_name=community.get("title") or community["name"],
            published=parse_timestamp(post["published"]),
            url=post.get("url"),
            body=post.get("body"),
            thumbnail_url=post.get("thumbnail_url"),
            updated=parse_timestamp(updated) if updated else None,
        )


@dataclass(frozen=True)
class RawPage:
    posts: Tuple[PostRecord, ...] = ()
    next_cursor: Optional[str] = None


@dataclass(frozen=True)
class PostCard:
    post_id: int
    title: str
    creator: str
    body: str
    updated: str
    url: Optional[str] = None
    thumbnail: Optional[bytes] = field(default=None, repr=False)


@dataclass(frozen=True)
class Page:
    cards: Tuple[PostCard, ...] = ()
    cursor: Optional[str] = None

    @property
    def has_next(self) -> bool:
        return self.cursor is not None
