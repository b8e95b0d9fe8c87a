"""
Tests for configuration management
"""

from pathlib import Path

import pytest
import yaml

from invex.config import InvexConfig
from invex.models.invoice import ExtractionMethod


class TestInvexConfig:
    """Tests for InvexConfig"""

    def test_singleton(self):
        assert InvexConfig() is InvexConfig()

    def test_defaults(self):
        config = InvexConfig()

        assert config.get('logging.level') == 'INFO'
        assert config.get('extraction.regex_confidence') == 0.7
        assert config.get('llm.vision.provider') == 'openai'
        assert config.get('missing.key', 'fallback') == 'fallback'

    def test_set_and_get(self):
        config = InvexConfig()
        config.set('llm.text.provider', 'anthropic')
        config.set('custom.nested.value', 3)

        assert config.get('llm.text.provider') == 'anthropic'
        assert config.get('custom.nested.value') == 3

    def test_user_config_file_is_merged(self, tmp_path):
        user_dir = Path(tmp_path) / '.invex'
        user_dir.mkdir()
        with open(user_dir / 'config.yaml', 'w') as f:
            yaml.dump({'extraction': {'min_text_chars': 50}}, f)

        config = InvexConfig()

        assert config.get('extraction.min_text_chars') == 50
        assert config.get('extraction.max_text_chars') == 10000

    def test_from_file(self, tmp_path):
        config_file = tmp_path / 'invex.yaml'
        with open(config_file, 'w') as f:
            yaml.dump({
                'extraction': {'strategy_order': ['regex', 'textModel']},
                'llm': {'text': {'provider': 'anthropic', 'model': 'claude-3-5-haiku-20241022'}},
                'ocr': {'enabled': False},
            }, f)

        processing_config = InvexConfig.from_file(str(config_file)).get_processing_config()

        assert processing_config.strategy_order == [ExtractionMethod.REGEX, ExtractionMethod.TEXT_MODEL]
        assert processing_config.text_provider == 'anthropic'
        assert processing_config.text_model == 'claude-3-5-haiku-20241022'
        assert processing_config.vision_provider == 'openai'
        assert processing_config.enable_ocr is False

    def test_from_file_rejects_non_mapping(self, tmp_path):
        config_file = tmp_path / 'invex.yaml'
        config_file.write_text('- just\n- a list\n')

        with pytest.raises(ValueError):
            InvexConfig.from_file(str(config_file))

    def test_api_key_precedence(self, monkeypatch):
        config = InvexConfig()
        assert config.get_api_key('openai') is None

        monkeypatch.setenv('OPENAI_API_KEY', 'env-key')
        assert config.get_api_key('openai') == 'env-key'

        config.set('llm.openai.api_key', 'config-key')
        assert config.get_api_key('openai') == 'config-key'

    def test_processing_config_defaults(self):
        processing_config = InvexConfig().get_processing_config()

        assert processing_config.strategy_order == [
            ExtractionMethod.VISION, ExtractionMethod.TEXT_MODEL, ExtractionMethod.REGEX
        ]
        assert processing_config.max_file_bytes == 5 * 1024 * 1024
        assert processing_config.min_text_chars == 100
