"""
╔══════════════════════════════════════════╗
║   Test Suite: Config & Logging            ║
╚══════════════════════════════════════════╝
"""

import logging
import os
import shutil
import sys
import tempfile
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
from utils.config import DEFAULTS, _merge, load_config
from utils.logger import LOGGER_NAME, setup_logger


class TestLoadConfig(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def _write(self, text):
        path = os.path.join(self.tmp, "config.yaml")
        with open(path, "w") as f:
            f.write(text)
        return path

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_file_gives_defaults(self):
        config = load_config(os.path.join(self.tmp, "nope.yaml"))
        self.assertEqual(config, DEFAULTS)
        self.assertIsNot(config["mail"], DEFAULTS["mail"])

    @patch.dict(os.environ, {}, clear=True)
    def test_partial_file_merged(self):
        path = self._write("applescript:\n  timeout: 10\nmailbox_aliases:\n  sent: [Gesendet]\n")
        config = load_config(path)
        self.assertEqual(config["applescript"]["timeout"], 10)
        self.assertEqual(config["applescript"]["search_timeout"], 60)
        self.assertEqual(config["mailbox_aliases"], {"sent": ["Gesendet"]})

    @patch.dict(os.environ, {}, clear=True)
    def test_empty_file(self):
        self.assertEqual(load_config(self._write("")), DEFAULTS)

    def test_env_overrides(self):
        path = self._write("mail:\n  default_account: Work\n")
        env = {"APPLE_MAIL_DEFAULT_ACCOUNT": "Home", "APPLE_MAIL_LOG_LEVEL": "DEBUG"}
        with patch.dict(os.environ, env, clear=True):
            config = load_config(path)
        self.assertEqual(config["mail"]["default_account"], "Home")
        self.assertEqual(config["logging"]["log_level"], "DEBUG")

    def test_config_path_from_env(self):
        path = self._write("mail:\n  default_limit: 5\n")
        with patch.dict(os.environ, {"APPLE_MAIL_CONFIG": path}, clear=True):
            self.assertEqual(load_config()["mail"]["default_limit"], 5)

    def test_merge_replaces_scalars_and_lists(self):
        merged = _merge({"a": {"b": 1, "c": [1]}}, {"a": {"c": [2]}})
        self.assertEqual(merged, {"a": {"b": 1, "c": [2]}})


class TestLogger(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self._reset()

    def tearDown(self):
        self._reset()
        shutil.rmtree(self.tmp, ignore_errors=True)

    def _reset(self):
        logger = logging.getLogger(LOGGER_NAME)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

    def test_handlers_and_idempotence(self):
        config = {"logging": {"log_level": "WARNING", "log_file": "logs/test.log"}}
        logger = setup_logger(config, self.tmp)
        self.assertEqual(len(logger.handlers), 2)
        self.assertIs(logger.handlers[0].stream, sys.stderr)
        self.assertEqual(logger.handlers[0].level, logging.WARNING)
        self.assertTrue(os.path.isdir(os.path.join(self.tmp, "logs")))

        setup_logger(config, self.tmp)
        self.assertEqual(len(logger.handlers), 2)

    def test_console_only(self):
        logger = setup_logger({"logging": {"log_file": ""}}, self.tmp)
        self.assertEqual(len(logger.handlers), 1)


if __name__ == "__main__":
    unittest.main()
