from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from typing import Any, Dict, Optional

# --- Configuration ---
USER_AGENT = "Lemnux v0.1.0"
API_PATH = "/api/v3"
DEFAULT_DISCOVERY_DOMAIN = "lemmy.ml"
PAGE_SIZE = 20
HTTP_TIMEOUT = 15
IMAGE_TIMEOUT = 10
IMAGE_RETRY_ATTEMPTS = 3
IMAGE_MAX_WORKERS = 8
READ_MORE = "Read more..."

CONFIG_DIR = os.path.expanduser("~/.config/lemnux")
CONFIG_PATH = os.path.join(CONFIG_DIR, "config.json")

# Names of the persisted settings records, one JSON file each.
INSTANCE_RECORD = "instance"
USER_RECORD = "user"
PREFERENCES_RECORD = "preferences"

# Default UI settings
UI_DEFAULTS = {
    "statusbar_keybindings": (
        "[b {color}]n[/] next page, [b {color}]r[/] reload, [b {color}]1/2[/] tabs"
    ),
}

# --- Logging ---
logger = logging.getLogger("lemnux")


def setup_logging(debug: bool = False) -> Optional[str]:
    """Configure logging."""
    if not debug:
        logging.basicConfig(level=logging.CRITICAL, handlers=[logging.NullHandler()])
        return None

    ts = datetime.now().strftime("%Y%m%dT%H%M%S")
    pid = os.getpid()
    debug_path = f"/tmp/lemnux_debug_{ts}_{pid}.log"

    logging.basicConfig(
        level=logging.DEBUG,
        filename=debug_path,
        filemode="a",
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    logger.debug("Debug logging enabled to %s", debug_path)
    return debug_path


def load_config(config_path: str = CONFIG_PATH) -> Dict[str, Any]:
    """Load the main configuration file."""
    if not os.path.exists(config_path):
        logger.info("No config file at %s, using defaults.", config_path)
        return {}
    try:
        with open(config_path, "r") as f:
            config = json.load(f)
            logger.info("Loaded config from %s", config_path)
            return config
    except (IOError, json.JSONDecodeError) as e:
        logger.error("Failed to load config from %s: %s", config_path, e)
        return {}


def save_config(config: Dict[str, Any], config_path: str = CONFIG_PATH) -> None:
    """Save the main configuration file."""
    try:
        os.makedirs(os.path.dirname(config_path), exist_ok=True)
        with open(config_path, "w") as f:
            json.dump(config, f, indent=2)
        logger.info("Saved config to %s", config_path)
    except IOError as e:
        logger.error("Failed to save config to %s: %s", config_path, e)


def _record_path(name: str, config_dir: str) -> str:
    return os.path.join(config_dir, f"{name}.json")


def load_record(name: str, config_dir: str = CONFIG_DIR) -> Optional[Dict[str, Any]]:
    """Load a settings record, or None when it was never stored or is unreadable."""
    path = _record_path(name, config_dir)
    if not os.path.exists(path):
        return None
    try:
        with open(path, "r") as f:
            return json.load(f)
    except (IOError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable settings record %s: %s", path, e)
        return None


def save_record(name: str, data: Dict[str, Any], config_dir: str = CONFIG_DIR) -> None:
    """Save a settings record."""
    path = _record_path(name, config_dir)
    try:
        os.makedirs(config_dir, exist_ok=True)
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
        logger.info("Saved %s record to %s", name, path)
    except IOError as e:
        logger.error("Failed to save %s record to %s: %s", name, path, e)


def remove_record(name: str, config_dir: str = CONFIG_DIR) -> None:
    """Delete a settings record if it exists."""
    path = _record_path(name, config_dir)
    try:
        if os.path.exists(path):
            os.unlink(path)
            logger.info("Removed %s record at %s", name, path)
    except OSError as e:
        logger.error("Failed to remove %s record at %s: %s", name, path, e)
