import logging
import unittest

import structlog

from pinger.logging_config import configure_logging


class LoggingConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self.addCleanup(structlog.reset_defaults)

    def test_sets_root_level(self) -> None:
        configure_logging("warning", "console")
        self.assertEqual(logging.getLogger().level, logging.WARNING)

    def test_json_renderer_selected(self) -> None:
        configure_logging("info", "json")
        processors = structlog.get_config()["processors"]
        self.assertIsInstance(processors[-1], structlog.processors.JSONRenderer)

    def test_unknown_level_rejected(self) -> None:
        with self.assertRaises(ValueError):
            configure_logging("verbose")

    def test_unknown_format_rejected(self) -> None:
        with self.assertRaises(ValueError):
            configure_logging("info", "xml")


if __name__ == "__main__":
    unittest.main()
