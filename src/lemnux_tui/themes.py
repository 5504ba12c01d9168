from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional

from textual.theme import BUILTIN_THEMES, Theme

logger = logging.getLogger("lemnux")

# --- Theme Configuration ---
USER_THEMES_PATH = Path.home() / ".config/lemnux/themes.json"
DEFAULT_THEME = "textual-dark"


def load_themes() -> Dict[str, Theme]:
    """
    Load Textual's built-in themes plus any defined in the user's themes file.
    A user theme with a built-in name replaces the built-in one.
    """
    themes = dict(BUILTIN_THEMES)
    if not USER_THEMES_PATH.exists():
        return themes

    try:
        with open(USER_THEMES_PATH, "r") as f:
            themes_data = json.load(f)
    except (IOError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable themes file %s: %s", USER_THEMES_PATH, e)
        return themes

    for name, definition in themes_data.items():
        try:
            themes[name] = Theme(name=name, **definition)
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring invalid theme definition for '%s': %s", name, e)

    return themes


def resolve_theme(name: Optional[str], themes: Dict[str, Theme]) -> str:
    """Return ``name`` if it is a known theme, else the default."""
    if name and name in themes:
        return name
    if name:
        logger.warning("Theme '%s' not found, falling back to %s", name, DEFAULT_THEME)
    return DEFAULT_THEME
