"""
Tests for configuration loading.
"""

import json
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import tomllib

from ..config import FactoryConfig, DEFAULT_DATABASE
from ..providers.gemini import DEFAULT_TEXT_MODEL


CLEAN_ENV = {key: value for key, value in os.environ.items()
             if not key.startswith("ASSET_FACTORY_") and key != "GEMINI_API_KEY"}


class TestFactoryConfig(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_defaults(self):
        config = FactoryConfig()
        self.assertEqual(config.provider, "gemini")
        self.assertEqual(config.database, DEFAULT_DATABASE)
        self.assertEqual(config.style, "jrpg")
        self.assertIsNone(config.timeout)

    def test_from_toml(self):
        config_path = Path(self.temp_dir) / "asset_factory.toml"
        config_path.write_text(
            '[provider]\n'
            'name = "stub"\n'
            'timeout = 45\n'
            '\n'
            '[provider.models]\n'
            'image = "imagen-test"\n'
            '\n'
            '[storage]\n'
            'database = "/tmp/assets.db"\n'
            '\n'
            '[prompts]\n'
            'style = "retro"\n'
            '\n'
            '[logging]\n'
            'level = "DEBUG"\n'
        )

        config = FactoryConfig.from_file(config_path)

        self.assertEqual(config.provider, "stub")
        self.assertEqual(config.timeout, 45)
        self.assertEqual(config.image_model, "imagen-test")
        self.assertEqual(config.text_model, DEFAULT_TEXT_MODEL)
        self.assertEqual(config.database, "/tmp/assets.db")
        self.assertEqual(config.style, "retro")
        self.assertEqual(config.log_level, "DEBUG")

    def test_from_json(self):
        config_path = Path(self.temp_dir) / "asset_factory.json"
        config_path.write_text(json.dumps({
            "provider": {"name": "gemini", "api_key": "from-file"},
            "export": {"output_dir": "out"},
        }))

        config = FactoryConfig.from_file(config_path)

        self.assertEqual(config.api_key, "from-file")
        self.assertEqual(config.export_dir, "out")

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            FactoryConfig.from_file(Path(self.temp_dir) / "nope.toml")

    def test_unsupported_format(self):
        config_path = Path(self.temp_dir) / "config.yaml"
        config_path.write_text("provider: stub\n")
        with self.assertRaises(ValueError):
            FactoryConfig.from_file(config_path)

    def test_write_toml_round_trip(self):
        config = FactoryConfig(provider="stub", timeout=12.5, style="hd", database="assets.db")
        path = config.write_toml(Path(self.temp_dir) / "asset_factory.toml")

        with open(path, "rb") as f:
            data = tomllib.load(f)
        self.assertEqual(data["provider"]["name"], "stub")
        self.assertNotIn("api_key", data["provider"])

        loaded = FactoryConfig.from_file(path)
        self.assertEqual(loaded, config)

    @patch.dict(os.environ, {**CLEAN_ENV, "GEMINI_API_KEY": "gemini-key"}, clear=True)
    def test_gemini_key_env(self):
        self.assertEqual(FactoryConfig.default().api_key, "gemini-key")

    @patch.dict(os.environ, {**CLEAN_ENV, "GEMINI_API_KEY": "gemini-key", "ASSET_FACTORY_API_KEY": "factory-key"},
                clear=True)
    def test_factory_key_wins(self):
        self.assertEqual(FactoryConfig.default().api_key, "factory-key")

    @patch.dict(os.environ, {
        **CLEAN_ENV,
        "ASSET_FACTORY_PROVIDER": "stub",
        "ASSET_FACTORY_TIMEOUT": "20",
        "ASSET_FACTORY_DATABASE": "/data/assets.db",
        "ASSET_FACTORY_LOG_LEVEL": "debug",
    }, clear=True)
    def test_env_overrides(self):
        config = FactoryConfig.default()
        self.assertEqual(config.provider, "stub")
        self.assertEqual(config.timeout, 20.0)
        self.assertEqual(config.database_path, Path("/data/assets.db"))
        self.assertEqual(config.log_level, "DEBUG")

    @patch.dict(os.environ, {**CLEAN_ENV, "ASSET_FACTORY_PROVIDER": "stub", "ASSET_FACTORY_TIMEOUT": "soon"},
                clear=True)
    def test_unparseable_timeout_is_reported(self):
        config = FactoryConfig.default()
        errors = config.validate()
        self.assertEqual(len(errors), 1)
        self.assertIn("timeout", errors[0])

    def test_provider_config(self):
        config = FactoryConfig(api_key="k", timeout=10)
        provider_config = config.provider_config()
        self.assertEqual(provider_config["api_key"], "k")
        self.assertEqual(provider_config["timeout"], 10)
        self.assertIn("edit_model", provider_config)


class TestConfigValidation(unittest.TestCase):

    def test_valid(self):
        self.assertEqual(FactoryConfig(api_key="k").validate(), [])
        self.assertEqual(FactoryConfig(provider="stub").validate(), [])

    def test_gemini_requires_key(self):
        errors = FactoryConfig().validate()
        self.assertEqual(len(errors), 1)
        self.assertIn("api_key", errors[0])

    def test_collects_all_errors(self):
        config = FactoryConfig(provider="dalle", timeout=0, style="anime", log_level="LOUD", database="")
        errors = config.validate()
        self.assertEqual(len(errors), 5)


if __name__ == "__main__":
    unittest.main()
