from __future__ import annotations

import os

from lemnux_tui.config import (
    load_config,
    load_record,
    remove_record,
    save_config,
    save_record,
)


def test_missing_config_is_empty(tmp_path):
    assert load_config(str(tmp_path / "config.json")) == {}


def test_corrupt_config_is_empty(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    assert load_config(str(path)) == {}


def test_config_is_saved(tmp_path):
    path = str(tmp_path / "nested" / "config.json")
    save_config({"discovery_domain": "lemmy.world"}, path)
    assert load_config(path) == {"discovery_domain": "lemmy.world"}


def test_records(config_dir):
    assert load_record("preferences", config_dir) is None

    save_record("preferences", {"theme": "nord"}, config_dir)
    assert load_record("preferences", config_dir) == {"theme": "nord"}
    assert os.path.exists(os.path.join(config_dir, "preferences.json"))

    remove_record("preferences", config_dir)
    assert load_record("preferences", config_dir) is None
    remove_record("preferences", config_dir)


def test_unreadable_record_is_ignored(config_dir):
    os.makedirs(config_dir)
    with open(os.path.join(config_dir, "user.json"), "w") as f:
        f.write("[[[")
    assert load_record("user", config_dir) is None
