"""
Tests for configuration loading.
"""

import json

import pytest
from pydantic import ValidationError

from wabot.config.loader import load_config, save_config
from wabot.config.schema import BotConfig, Config


class TestDefaults:

    def test_defaults(self):
        config = Config()
        assert config.bot.prefix == "!"
        assert config.rate_limit.max_commands == 10
        assert config.rate_limit.window_seconds == 60.0
        assert config.plugins.directory == "plugins"
        assert config.plugins.debounce_ms == 1000
        assert config.bot.auto_read is False
        assert config.bot.auto_typing is False

    def test_owner_jid(self):
        config = Config(bot=BotConfig(owner_number="27831234567"))
        assert config.owner_jid == "27831234567@s.whatsapp.net"

    def test_empty_prefix_rejected(self):
        with pytest.raises(ValidationError):
            BotConfig(prefix="")

    def test_admin_numbers_from_string(self):
        assert BotConfig(admin_numbers="111, 222,,").admin_numbers == ["111", "222"]


class TestEnvironment:

    def test_env_overrides_defaults(self, monkeypatch):
        monkeypatch.setenv("WABOT_BOT__PREFIX", ".")
        monkeypatch.setenv("WABOT_BOT__OWNER_NUMBER", "999")
        monkeypatch.setenv("WABOT_RATE_LIMIT__MAX_COMMANDS", "5")

        config = Config()
        assert config.bot.prefix == "."
        assert config.bot.owner_number == "999"
        assert config.rate_limit.max_commands == 5


class TestLoader:

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(tmp_path / "missing.json").bot.prefix == "!"

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "config.json"
        config = Config(bot=BotConfig(name="Saved", owner_number="42"))
        save_config(config, path)

        loaded = load_config(path)
        assert loaded.bot.name == "Saved"
        assert loaded.bot.owner_number == "42"

    def test_invalid_json_falls_back(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        assert load_config(path).bot.name == "WhatsApp Bot"

    def test_invalid_values_fall_back(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"rate_limit": {"max_commands": 0}}))
        assert load_config(path).rate_limit.max_commands == 10
