"""
Configuration management for the asset factory.
Supports TOML and JSON configuration files with environment overrides.
"""

import os
import json
import tomllib
from dataclasses import dataclass
from typing import Dict, List, Optional, Any, Union
from pathlib import Path

import toml

from .composer.templates import PromptTemplate
from .providers.gemini import DEFAULT_BASE_URL, DEFAULT_IMAGE_MODEL, DEFAULT_EDIT_MODEL, DEFAULT_TEXT_MODEL


DEFAULT_DATABASE = "~/.rpg_asset_factory/assets.db"
PROVIDERS = ("gemini", "stub")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class FactoryConfig:
    """Main configuration class for the asset factory."""

    # Provider
    provider: str = "gemini"
    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    image_model: str = DEFAULT_IMAGE_MODEL
    edit_model: str = DEFAULT_EDIT_MODEL
    text_model: str = DEFAULT_TEXT_MODEL
    timeout: Optional[float] = None

    # Storage and export
    database: str = DEFAULT_DATABASE
    export_dir: str = "exports"

    # Prompts
    style: str = "jrpg"

    # Logging
    log_level: str = "WARNING"

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "FactoryConfig":
        """Load configuration from TOML or JSON file."""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if config_path.suffix.lower() == '.toml':
            return cls._from_toml(config_path)
        elif config_path.suffix.lower() == '.json':
            return cls._from_json(config_path)
        else:
            raise ValueError(f"Unsupported configuration format: {config_path.suffix}")

    @classmethod
    def _from_toml(cls, config_path: Path) -> "FactoryConfig":
        with open(config_path, 'rb') as f:
            data = tomllib.load(f)
        return cls._from_dict(data)

    @classmethod
    def _from_json(cls, config_path: Path) -> "FactoryConfig":
        with open(config_path, 'r') as f:
            data = json.load(f)
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "FactoryConfig":
        """Create configuration from the sectioned file layout."""
        config_data = {}

        if 'provider' in data:
            provider = data['provider']
            for key in ('name', 'api_key', 'base_url', 'timeout'):
                if key in provider:
                    config_data['provider' if key == 'name' else key] = provider[key]

            models = provider.get('models', {})
            if 'image' in models:
                config_data['image_model'] = models['image']
            if 'edit' in models:
                config_data['edit_model'] = models['edit']
            if 'text' in models:
                config_data['text_model'] = models['text']

        if 'storage' in data:
            config_data['database'] = data['storage'].get('database', DEFAULT_DATABASE)

        if 'export' in data:
            config_data['export_dir'] = data['export'].get('output_dir', 'exports')

        if 'prompts' in data:
            config_data['style'] = data['prompts'].get('style', 'jrpg')

        if 'logging' in data:
            config_data['log_level'] = data['logging'].get('level', 'WARNING')

        return cls(**config_data)

    def to_dict(self) -> Dict[str, Any]:
        """Sectioned dictionary matching the file layout; unset values are omitted."""
        provider: Dict[str, Any] = {
            'name': self.provider,
            'base_url': self.base_url,
            'models': {
                'image': self.image_model,
                'edit': self.edit_model,
                'text': self.text_model,
            },
        }
        if self.api_key:
            provider['api_key'] = self.api_key
        if self.timeout is not None:
            provider['timeout'] = self.timeout

        return {
            'provider': provider,
            'storage': {'database': self.database},
            'export': {'output_dir': self.export_dir},
            'prompts': {'style': self.style},
            'logging': {'level': self.log_level},
        }

    def write_toml(self, config_path: Union[str, Path]) -> Path:
        config_path = Path(config_path)
        with open(config_path, 'w') as f:
            toml.dump(self.to_dict(), f)
        return config_path

    @classmethod
    def default(cls) -> "FactoryConfig":
        """Create default configuration with environment variable overrides."""
        return cls._apply_env_overrides(cls())

    @classmethod
    def _apply_env_overrides(cls, config: "FactoryConfig") -> "FactoryConfig":
        """Apply environment variable overrides to configuration."""
        if os.getenv('ASSET_FACTORY_PROVIDER'):
            config.provider = os.getenv('ASSET_FACTORY_PROVIDER', 'gemini')

        # The generic Gemini variable is honored, the factory-specific one wins
        if os.getenv('GEMINI_API_KEY'):
            config.api_key = os.getenv('GEMINI_API_KEY', '')
        if os.getenv('ASSET_FACTORY_API_KEY'):
            config.api_key = os.getenv('ASSET_FACTORY_API_KEY', '')

        if os.getenv('ASSET_FACTORY_BASE_URL'):
            config.base_url = os.getenv('ASSET_FACTORY_BASE_URL', DEFAULT_BASE_URL)
        if os.getenv('ASSET_FACTORY_IMAGE_MODEL'):
            config.image_model = os.getenv('ASSET_FACTORY_IMAGE_MODEL', DEFAULT_IMAGE_MODEL)
        if os.getenv('ASSET_FACTORY_EDIT_MODEL'):
            config.edit_model = os.getenv('ASSET_FACTORY_EDIT_MODEL', DEFAULT_EDIT_MODEL)
        if os.getenv('ASSET_FACTORY_TEXT_MODEL'):
            config.text_model = os.getenv('ASSET_FACTORY_TEXT_MODEL', DEFAULT_TEXT_MODEL)
        if os.getenv('ASSET_FACTORY_TIMEOUT'):
            timeout = os.getenv('ASSET_FACTORY_TIMEOUT', '')
            try:
                config.timeout = float(timeout)
            except ValueError:
                # Left as text so validate() reports it
                config.timeout = timeout

        if os.getenv('ASSET_FACTORY_DATABASE'):
            config.database = os.getenv('ASSET_FACTORY_DATABASE', DEFAULT_DATABASE)
        if os.getenv('ASSET_FACTORY_EXPORT_DIR'):
            config.export_dir = os.getenv('ASSET_FACTORY_EXPORT_DIR', 'exports')

        if os.getenv('ASSET_FACTORY_STYLE'):
            config.style = os.getenv('ASSET_FACTORY_STYLE', 'jrpg')
        if os.getenv('ASSET_FACTORY_LOG_LEVEL'):
            config.log_level = os.getenv('ASSET_FACTORY_LOG_LEVEL', 'WARNING').upper()

        return config

    def provider_config(self) -> Dict[str, Any]:
        """Settings handed to the provider factory."""
        return {
            'api_key': self.api_key,
            'base_url': self.base_url,
            'image_model': self.image_model,
            'edit_model': self.edit_model,
            'text_model': self.text_model,
            'timeout': self.timeout,
        }

    @property
    def database_path(self) -> Path:
        return Path(self.database).expanduser()

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if self.provider not in PROVIDERS:
            errors.append(f"provider must be one of {', '.join(PROVIDERS)}")

        if self.provider == 'gemini' and not self.api_key:
            errors.append("api_key is required for the gemini provider (set ASSET_FACTORY_API_KEY or GEMINI_API_KEY)")

        if self.timeout is not None and (not isinstance(self.timeout, (int, float)) or self.timeout <= 0):
            errors.append("timeout must be a positive number of seconds")

        if self.style not in PromptTemplate.STYLE_MODIFIERS:
            errors.append(f"style must be one of {', '.join(sorted(PromptTemplate.STYLE_MODIFIERS))}")

        if self.log_level.upper() not in LOG_LEVELS:
            errors.append(f"log_level must be one of {', '.join(LOG_LEVELS)}")

        if not self.database:
            errors.append("database path must not be empty")

        return errors
