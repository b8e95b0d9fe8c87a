"""
invex Configuration Management

Loads the packaged defaults, overlays the user's configuration file and
resolves provider API keys from the environment.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from invex.models.invoice import ExtractionMethod, InvoiceProcessingConfig

logger = logging.getLogger(__name__)

API_KEY_ENV_VARS = {
    'openai': 'OPENAI_API_KEY',
    'anthropic': 'ANTHROPIC_API_KEY',
}


class InvexConfig:
    """
    Manages system-wide configuration for invex

    This class follows the singleton pattern to ensure only one configuration instance exists.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not hasattr(self, 'initialized'):
            self.config: Dict[str, Any] = self.get_defaults()

            # Load configuration from file if it exists
            self.config_file = Path.home() / '.invex' / 'config.yaml'
            if self.config_file.exists():
                self._load_config(self.config_file)

            self.initialized = True

    @staticmethod
    def get_defaults() -> Dict[str, Any]:
        """Return a fresh copy of the packaged default configuration"""
        default_config_path = Path(__file__).parent / 'default_config.yaml'
        with open(default_config_path, 'r') as f:
            return yaml.safe_load(f) or {}

    @classmethod
    def from_file(cls, config_path: str) -> 'InvexConfig':
        """Load configuration from file on top of the defaults

        Args:
            config_path: Path to configuration file

        Returns:
            InvexConfig instance
        """
        instance = cls()
        try:
            instance.config = instance.get_defaults()
            instance._load_config(Path(config_path))
        except Exception as e:
            logger.error(f"Failed to load configuration from {config_path}: {str(e)}")
            raise
        return instance

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton so the next access reloads configuration"""
        cls._instance = None

    def _load_config(self, path: Path) -> None:
        with open(path, 'r') as f:
            user_config = yaml.safe_load(f) or {}
        if not isinstance(user_config, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping")
        self.update(user_config)
        logger.debug(f"Loaded configuration from {path}")

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value

        Args:
            key: Configuration key (dot notation)
            default: Default value if key not found

        Returns:
            Configuration value
        """
        try:
            value = self.config
            for k in key.split('.'):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any) -> None:
        """Set configuration value

        Args:
            key: Configuration key (dot notation)
            value: Configuration value
        """
        keys = key.split('.')
        config = self.config
        for k in keys[:-1]:
            if not isinstance(config.get(k), dict):
                config[k] = {}
            config = config[k]
        config[keys[-1]] = value

    def update(self, config: Dict[str, Any]) -> None:
        """Deep-merge new values into the configuration"""
        def deep_update(d: Dict[str, Any], u: Dict[str, Any]) -> Dict[str, Any]:
            for k, v in u.items():
                if isinstance(v, dict) and isinstance(d.get(k), dict):
                    d[k] = deep_update(d[k], v)
                else:
                    d[k] = copy.deepcopy(v)
            return d

        self.config = deep_update(self.config, config)

    def get_logging_config(self) -> Dict[str, Any]:
        """Get logging configuration"""
        return self.config.get('logging', {})

    def get_api_key(self, provider: str) -> Optional[str]:
        """API key for a provider from config, falling back to the environment"""
        api_key = self.get(f'llm.{provider}.api_key')
        if api_key:
            return api_key
        env_var = API_KEY_ENV_VARS.get(provider)
        return os.getenv(env_var) if env_var else None

    def get_processing_config(self) -> InvoiceProcessingConfig:
        """Build the typed extraction settings from the config sections"""
        extraction = self.config.get('extraction', {}) or {}
        values: Dict[str, Any] = {
            key: extraction[key]
            for key in (
                'vision_confidence', 'text_model_confidence', 'regex_confidence',
                'prior_confidence', 'max_file_bytes', 'min_text_chars', 'max_text_chars',
            )
            if key in extraction
        }
        if extraction.get('strategy_order'):
            values['strategy_order'] = [ExtractionMethod(name) for name in extraction['strategy_order']]

        values['vision_provider'] = self.get('llm.vision.provider', 'openai')
        values['vision_model'] = self.get('llm.vision.model')
        values['text_provider'] = self.get('llm.text.provider', 'openai')
        values['text_model'] = self.get('llm.text.model')
        values['llm_temperature'] = self.get('llm.temperature', 0.0)
        values['max_tokens'] = self.get('llm.max_tokens', 2000)

        values['enable_ocr'] = self.get('ocr.enabled', True)
        values['ocr_dpi'] = self.get('ocr.dpi', 200)
        values['ocr_lang'] = self.get('ocr.lang', 'eng')

        return InvoiceProcessingConfig(**values)
