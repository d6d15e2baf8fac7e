import json
import os
import tempfile
import unittest
from unittest.mock import patch

from quizrelay.config import SELECTORS, ObservationConfig, load_selectors
from quizrelay.errors import ConfigError


class TestLoadSelectors(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def write(self, content):
        path = os.path.join(self.tmpdir.name, "selectors.json")
        with open(path, "w", encoding="utf-8") as f:
            f.write(content if isinstance(content, str) else json.dumps(content))
        return path

    def test_defaults_without_file(self):
        selectors = load_selectors()
        self.assertEqual(selectors, SELECTORS)
        self.assertIsNot(selectors["response_regions"], SELECTORS["response_regions"])

    def test_override_replaces_only_named_keys(self):
        path = self.write({"response_regions": [".reply"], "prompt_input": "#box"})
        selectors = load_selectors(path)

        self.assertEqual(selectors["response_regions"], [".reply"])
        self.assertEqual(selectors["prompt_input"], ["#box"])
        self.assertEqual(selectors["send_button"], SELECTORS["send_button"])
        self.assertNotEqual(SELECTORS["response_regions"], [".reply"])

    def test_default_order(self):
        self.assertEqual(SELECTORS["prompt_input"][0], "#chat-input")
        self.assertEqual(SELECTORS["response_regions"][0], "[data-testid='chat-message-assistant']")
        self.assertEqual(SELECTORS["code_blocks"][0], ".md-code-block pre")

    def test_invalid_files(self):
        bad = [
            "not json",
            ["a", "b"],
            {"unknown_key": ["x"]},
            {"send_button": []},
            {"send_button": [1, 2]},
        ]
        for content in bad:
            with self.subTest(content=content):
                with self.assertRaises(ConfigError):
                    load_selectors(self.write(content))

    def test_missing_file(self):
        with self.assertRaises(ConfigError):
            load_selectors(os.path.join(self.tmpdir.name, "missing.json"))


class TestObservationConfig(unittest.TestCase):
    def test_defaults(self):
        with patch.dict(os.environ):
            for key in ("RESCAN_INTERVAL", "SESSION_TIMEOUT", "LATE_RESCUE_GRACE"):
                os.environ.pop(key, None)
            timing = ObservationConfig()
        self.assertEqual(timing.rescan_interval, 1.0)
        self.assertEqual(timing.session_timeout, 180.0)
        self.assertEqual(timing.late_rescue_grace, 30.0)

    def test_environment_overrides(self):
        with patch.dict(os.environ, {"SESSION_TIMEOUT": "60", "RESCAN_INTERVAL": "0.5"}):
            timing = ObservationConfig()
        self.assertEqual(timing.session_timeout, 60.0)
        self.assertEqual(timing.rescan_interval, 0.5)


if __name__ == "__main__":
    unittest.main()
