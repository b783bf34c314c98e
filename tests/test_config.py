import os
import unittest
from unittest.mock import patch

from governor.config import Settings

class TestSettings(unittest.TestCase):

    def test_defaults(self):
        """Test settings without environment overrides"""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings.from_env()

        self.assertEqual(settings.quorum, 50)
        self.assertEqual(settings.initial_balance, 1000)
        self.assertEqual(settings.log_level, "INFO")
        self.assertEqual(settings.port, 10000)

    def test_environment_overrides(self):
        """Test values read from the environment"""
        env = {
            "GOVERNOR_QUORUM": "20",
            "GOVERNOR_INITIAL_BALANCE": "5000",
            "GOVERNOR_LOG_LEVEL": "debug",
            "PORT": "8080",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings.from_env()

        self.assertEqual(settings.quorum, 20)
        self.assertEqual(settings.initial_balance, 5000)
        self.assertEqual(settings.log_level, "debug")
        self.assertEqual(settings.port, 8080)

    def test_state_dir(self):
        """Test persistence is off unless a state directory is configured"""
        with patch.dict(os.environ, {"GOVERNOR_STATE_DIR": ""}, clear=True):
            self.assertIsNone(Settings.from_env().state_dir)

        with patch.dict(os.environ, {"GOVERNOR_STATE_DIR": "/var/lib/governor"}, clear=True):
            self.assertEqual(Settings.from_env().state_dir, "/var/lib/governor")

    def test_invalid_values(self):
        """Test bad configuration fails fast"""
        for env in ({"GOVERNOR_QUORUM": "150"},
                    {"GOVERNOR_QUORUM": "half"},
                    {"GOVERNOR_LOG_LEVEL": "chatty"}):
            with patch.dict(os.environ, env, clear=True):
                with self.assertRaises(ValueError):
                    Settings.from_env()

if __name__ == '__main__':
    unittest.main()
