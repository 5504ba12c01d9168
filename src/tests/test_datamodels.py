from __future__ import annotations

from datetime import timezone

from conftest import instance_dict, post_view
from lemnux_tui.datamodels import (
    Instance,
    ListingType,
    PostRecord,
    SortType,
    match_instances,
    parse_timestamp,
)


def test_parse_timestamp_without_offset_is_utc():
    parsed = parse_timestamp("2023-06-01T12:00:00.123456")
    assert parsed.tzinfo == timezone.utc
    assert parsed.microsecond == 123456


def test_post_record_falls_back_to_community_name():
    view = post_view(1)
    view["community"]["title"] = ""
    assert PostRecord.from_view(view).community_name == "technology"


def test_labels():
    assert ListingType.MODERATOR_VIEW.label == "Moderator View"
    assert SortType.TOP_SIX_HOUR.label == "Top Six Hour"
    assert ListingType.SUBSCRIBED.requires_login
    assert not ListingType.ALL.requires_login


def test_instance_describe():
    instance = Instance.from_dict(instance_dict())
    assert instance.describe() == "lemmy.test · lemmy 0.19.3"
    assert Instance(id=1, domain="bare.test", published="x").describe() == "bare.test"


def test_match_instances():
    instances = [
        Instance.from_dict(instance_dict(1, "lemmy.world")),
        Instance.from_dict(instance_dict(2, "lemmy.ml")),
        Instance.from_dict(instance_dict(3, "mastodon.lemmy.example", "mastodon")),
        Instance.from_dict(instance_dict(4, "programming.dev")),
    ]

    assert [i.domain for i in match_instances(instances, "LEMMY")] == ["lemmy.ml", "lemmy.world"]
    assert [i.id for i in match_instances(instances, "", limit=2)] == [2, 1]
    assert len(match_instances(instances, "lemmy", lemmy_only=False)) == 3
