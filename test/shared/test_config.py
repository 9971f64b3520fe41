"""Tests for environment configuration and its schema validation."""

import os
import unittest
from unittest.mock import patch

from src.shared import config
from src.shared.config_schema import (
    ConfigValidationError,
    LabyrinthConfig,
    ServiceConfig,
    validate_config,
)


class TestConfig(unittest.TestCase):
    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            cfg = config.Config()
        self.assertEqual(cfg.LABYRINTH_BASE_PATH, "/ephi/")
        self.assertEqual(cfg.LABYRINTH_PAGE_TITLE, "Replicant EPHI")
        self.assertEqual(cfg.LABYRINTH_STYLESHEET, "/css/style.css")
        self.assertEqual(cfg.LABYRINTH_API_PORT, 8080)
        self.assertIsNone(cfg.LABYRINTH_BLOCK_SIZE)
        self.assertFalse(cfg.DEBUG)

    def test_unset_sizes_are_left_out_of_params(self):
        with patch.dict(
            os.environ,
            {"LABYRINTH_CORPUS": "/data/c.txt", "LABYRINTH_TOTAL_SIZE": " "},
            clear=True,
        ):
            params = config.Config().generation_params()
        self.assertEqual(params, {"corpus": "/data/c.txt", "base_path": "/ephi/"})

    def test_sizes_passed_as_text(self):
        with patch.dict(
            os.environ,
            {"LABYRINTH_BLOCK_SIZE": "64", "LABYRINTH_TOTAL_SIZE": "256"},
            clear=True,
        ):
            params = config.Config().generation_params()
        self.assertEqual(params["block_size"], "64")
        self.assertEqual(params["total_size"], "256")

    def test_reload_config(self):
        with patch.dict(os.environ, {"LABYRINTH_BASE_PATH": "/maze/"}):
            reloaded = config.reload_config()
        self.assertIs(config.CONFIG, reloaded)
        self.assertEqual(reloaded.LABYRINTH_BASE_PATH, "/maze/")
        config.reload_config()


class TestConfigSchema(unittest.TestCase):
    def _config(self, **overrides):
        values = {"LABYRINTH_CORPUS": "/data/c.txt", "LOG_LEVEL": "info"}
        values.update(overrides)
        return config.Config(**values)

    def test_valid_config(self):
        validated = validate_config(self._config(APP_ENV="staging"))
        self.assertIsInstance(validated, ServiceConfig)
        self.assertEqual(validated.log_level, "INFO")
        self.assertEqual(validated.app_env, "staging")
        self.assertEqual(validated.labyrinth.corpus, "/data/c.txt")

    def test_invalid_values(self):
        cases = {
            "LABYRINTH_CORPUS": "",
            "LABYRINTH_BASE_PATH": "ephi/",
            "LABYRINTH_BLOCK_SIZE": "0",
            "LABYRINTH_TOTAL_SIZE": "many",
            "LABYRINTH_API_PORT": 70000,
            "APP_ENV": "moon",
        }
        for key, value in cases.items():
            with self.subTest(key=key):
                with self.assertRaises(ConfigValidationError):
                    validate_config(self._config(**{key: value}))

    def test_labyrinth_config_accepts_unset_sizes(self):
        cfg = LabyrinthConfig(corpus="/c.txt", base_path="/ephi")
        self.assertIsNone(cfg.block_size)
        self.assertIsNone(cfg.total_size)


if __name__ == "__main__":
    unittest.main()
