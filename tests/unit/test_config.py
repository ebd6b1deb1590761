"""
Unit tests for configuration

Covered:
- FeatureConfig flags and limits from YAML, defaults when absent
- BotConfig validation and chat id parsing
"""

import pytest

from bot.config import BotConfig
from review_monitor.config import DEFAULT_LIMITS, FeatureConfig


@pytest.mark.unit
class TestFeatureConfig:
    """config/features.yaml handling."""

    def test_missing_file_uses_defaults(self, tmp_path):
        config = FeatureConfig(tmp_path / 'nope.yaml')

        assert config.is_review_monitor_enabled is True
        assert config.is_source_enabled('steam') is True
        assert config.is_component_enabled('translation') is True
        assert config.get_limit('max_retries') == DEFAULT_LIMITS['max_retries']

    def test_values_from_file(self, tmp_path):
        path = tmp_path / 'features.yaml'
        path.write_text(
            'review_monitor:\n'
            '  enabled: true\n'
            '  sources:\n'
            '    senscritique: false\n'
            '  components:\n'
            '    translation: false\n'
            'limits:\n'
            '  poll_interval_seconds: 60\n',
            encoding='utf-8',
        )
        config = FeatureConfig(path)

        assert config.is_source_enabled('senscritique') is False
        assert config.is_source_enabled('letterboxd') is True
        assert config.is_component_enabled('translation') is False
        assert config.get_limit('poll_interval_seconds') == 60
        assert config.get_limit('retry_delay_seconds') == DEFAULT_LIMITS['retry_delay_seconds']

    def test_disabled_monitor_disables_everything(self, tmp_path):
        path = tmp_path / 'features.yaml'
        path.write_text('review_monitor:\n  enabled: false\n', encoding='utf-8')
        config = FeatureConfig(path)

        assert config.is_review_monitor_enabled is False
        assert config.is_source_enabled('steam') is False
        assert config.is_component_enabled('cover_enrichment') is False

    def test_broken_yaml_uses_defaults(self, tmp_path):
        path = tmp_path / 'features.yaml'
        path.write_text('review_monitor: [unclosed\n', encoding='utf-8')

        assert FeatureConfig(path).get_all_config() == {}

    def test_reload(self, tmp_path):
        path = tmp_path / 'features.yaml'
        path.write_text('limits:\n  max_retries: 2\n', encoding='utf-8')
        config = FeatureConfig(path)
        assert config.get_limit('max_retries') == 2

        path.write_text('limits:\n  max_retries: 7\n', encoding='utf-8')
        config.reload()
        assert config.get_limit('max_retries') == 7

    def test_shipped_file_loads(self):
        config = FeatureConfig()

        assert config.is_review_monitor_enabled is True
        assert config.get_limit('max_retries') == 3


@pytest.mark.unit
class TestBotConfig:
    """Environment settings."""

    def test_valid(self, monkeypatch):
        monkeypatch.setattr(BotConfig, 'BOT_TOKEN', '123:abc')
        monkeypatch.setattr(BotConfig, 'NOTIFY_CHAT_ID', '-100123')

        assert BotConfig.validate() is True
        assert BotConfig.chat_id() == -100123

    def test_channel_name(self, monkeypatch):
        monkeypatch.setattr(BotConfig, 'BOT_TOKEN', '123:abc')
        monkeypatch.setattr(BotConfig, 'NOTIFY_CHAT_ID', '@reviews')

        assert BotConfig.validate() is True
        assert BotConfig.chat_id() == '@reviews'

    @pytest.mark.parametrize('token, chat_id, message', [
        ('', '-100123', 'TELEGRAM_BOT_TOKEN'),
        ('123:abc', '', 'NOTIFY_CHAT_ID is not set'),
        ('123:abc', 'reviews', 'numeric chat id'),
    ])
    def test_invalid(self, monkeypatch, token, chat_id, message):
        monkeypatch.setattr(BotConfig, 'BOT_TOKEN', token)
        monkeypatch.setattr(BotConfig, 'NOTIFY_CHAT_ID', chat_id)

        with pytest.raises(ValueError, match=message):
            BotConfig.validate()
