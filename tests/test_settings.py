import os
import unittest
from unittest.mock import patch

from spabridge.settings import Settings, load_settings, parse_window_size


class SettingsTests(unittest.TestCase):
    def test_defaults_without_environment(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            settings = load_settings()
        self.assertEqual(settings, Settings())
        self.assertEqual(settings.hook_name, "behat")
        self.assertLess(settings.ui_timeout_seconds, settings.long_timeout_seconds)

    def test_environment_overrides(self) -> None:
        env = {
            "SPABRIDGE_HOOK_NAME": "appTesting",
            "SPABRIDGE_UI_TIMEOUT_SECONDS": "2.5",
            "SPABRIDGE_LONG_TIMEOUT_SECONDS": "90",
            "SPABRIDGE_POLL_INTERVAL_SECONDS": "0",
            "SPABRIDGE_ANIMATION_PAUSE_SECONDS": "0",
            "SPABRIDGE_WINDOW_SIZE": "1280x800",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = load_settings()
        self.assertEqual(settings.hook_name, "appTesting")
        self.assertEqual(settings.ui_timeout_seconds, 2.5)
        self.assertEqual(settings.long_timeout_seconds, 90.0)
        self.assertEqual(settings.poll_interval_seconds, 0.01)
        self.assertEqual(settings.animation_pause_seconds, 0.0)
        self.assertEqual(settings.window_size, (1280, 800))

    def test_invalid_numbers_exit(self) -> None:
        with patch.dict(os.environ, {"SPABRIDGE_UI_TIMEOUT_SECONDS": "soon"}, clear=True):
            with self.assertRaises(SystemExit):
                load_settings()

    def test_window_size_parsing(self) -> None:
        self.assertEqual(parse_window_size(""), (360, 720))
        self.assertEqual(parse_window_size("414X896"), (414, 896))
        with self.assertRaises(SystemExit):
            parse_window_size("wide")


if __name__ == "__main__":
    unittest.main()
