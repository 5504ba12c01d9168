import json
import os
import shutil
import unittest
from pathlib import Path
from unittest.mock import patch

from lemnux_tui import themes

TEST_DIR = Path("/tmp/test_lemnux_theme_loading")
USER_THEMES_PATH = TEST_DIR / ".config/lemnux/themes.json"


class TestThemeLoading(unittest.TestCase):
    def setUp(self):
        os.makedirs(USER_THEMES_PATH.parent, exist_ok=True)

    def tearDown(self):
        shutil.rmtree(TEST_DIR)

    @patch("lemnux_tui.themes.USER_THEMES_PATH", new_callable=lambda: USER_THEMES_PATH)
    def test_builtin_themes_without_user_file(self, mock_user_path):
        loaded_themes = themes.load_themes()

        self.assertIn(themes.DEFAULT_THEME, loaded_themes)
        self.assertFalse(os.path.exists(USER_THEMES_PATH))

    @patch("lemnux_tui.themes.USER_THEMES_PATH", new_callable=lambda: USER_THEMES_PATH)
    def test_custom_theme_is_loaded(self, mock_user_path):
        custom_themes = {
            "custom-light": {
                "primary": "#111111",
                "background": "#222222",
                "dark": False,
            }
        }
        with open(USER_THEMES_PATH, "w") as f:
            json.dump(custom_themes, f)

        loaded_themes = themes.load_themes()

        self.assertIn("custom-light", loaded_themes)
        self.assertIn(themes.DEFAULT_THEME, loaded_themes)
        self.assertEqual(loaded_themes["custom-light"].background, "#222222")
        self.assertFalse(loaded_themes["custom-light"].dark)

    @patch("lemnux_tui.themes.USER_THEMES_PATH", new_callable=lambda: USER_THEMES_PATH)
    def test_invalid_theme_is_skipped(self, mock_user_path):
        with open(USER_THEMES_PATH, "w") as f:
            json.dump({"broken": {"background": "#000000"}, "ok": {"primary": "#123456"}}, f)

        loaded_themes = themes.load_themes()

        self.assertNotIn("broken", loaded_themes)
        self.assertIn("ok", loaded_themes)

    @patch("lemnux_tui.themes.USER_THEMES_PATH", new_callable=lambda: USER_THEMES_PATH)
    def test_corrupt_file_falls_back_to_builtins(self, mock_user_path):
        USER_THEMES_PATH.write_text("{")

        loaded_themes = themes.load_themes()

        self.assertIn(themes.DEFAULT_THEME, loaded_themes)

    def test_resolve_theme(self):
        available = themes.load_themes()
        self.assertEqual(themes.resolve_theme("nord", {"nord": available[themes.DEFAULT_THEME]}), "nord")
        self.assertEqual(themes.resolve_theme("missing", available), themes.DEFAULT_THEME)
        self.assertEqual(themes.resolve_theme(None, available), themes.DEFAULT_THEME)


if __name__ == "__main__":
    unittest.main()
