from __future__ import annotations

import json
from typing import Any, Optional

import pytest
import requests

from lemnux_tui.datamodels import PostRecord, RawPage

PUBLISHED = "2023-10-10T12:00:00.000000Z"


def make_response(status: int = 200, payload: Any = None, text: Optional[str] = None) -> requests.Response:
    """A real requests.Response carrying ``payload`` as JSON (or raw ``text``)."""
    resp = requests.Response()
    resp.status_code = status
    resp.url = "https://lemmy.test/api/v3"
    body = text if text is not None else json.dumps(payload)
    resp._content = body.encode()
    return resp


def post_view(
    post_id: int = 1,
    body: Optional[str] = None,
    thumbnail_url: Optional[str] = None,
    updated: Optional[str] = None,
    creator: str = "alice",
    community: str = "Technology",
) -> dict:
    return {
        "post": {
            "id": post_id,
            "name": f"Post {post_id}",
            "url": f"https://example.com/{post_id}",
            "body": body,
            "thumbnail_url": thumbnail_url,
            "published": PUBLISHED,
            "updated": updated,
        },
        "creator": {"name": creator},
        "community": {"name": community.lower(), "title": community},
    }


def make_record(post_id: int = 1, **kwargs: Any) -> PostRecord:
    return PostRecord.from_view(post_view(post_id, **kwargs))


def make_raw_page(count: int, cursor: Optional[str] = None, **kwargs: Any) -> RawPage:
    return RawPage(
        posts=tuple(make_record(i, **kwargs) for i in range(1, count + 1)),
        next_cursor=cursor,
    )


def instance_dict(instance_id: int = 7, domain: str = "lemmy.test", software: str = "lemmy") -> dict:
    return {
        "id": instance_id,
        "domain": domain,
        "published": PUBLISHED,
        "updated": None,
        "software": software,
        "version": "0.19.3",
        "federation_state": {
            "instance_id": instance_id,
            "last_successful_id": 120,
            "last_successful_published_time": PUBLISHED,
            "fail_count": 0,
            "last_retry": None,
            "next_retry": None,
        },
    }


@pytest.fixture
def config_dir(tmp_path):
    return str(tmp_path / "lemnux")
