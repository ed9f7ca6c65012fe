"""
Tests for environment configuration and log formatting.

Run with: pytest test_config.py -v
"""

import json
import logging

import config as config_module
from config import get_env_bool, get_env_int, reload_config
from logging_config import DevelopmentFormatter, JSONFormatter, room_code_var


def make_record(level=logging.INFO, msg="hello"):
    return logging.LogRecord("takedown", level, __file__, 10, msg, None, None)


class TestEnvParsing:

    def test_bool_values(self, monkeypatch):
        monkeypatch.setenv("FLAG", "yes")
        assert get_env_bool("FLAG") is True
        monkeypatch.setenv("FLAG", "off")
        assert get_env_bool("FLAG", True) is False
        monkeypatch.setenv("FLAG", "maybe")
        assert get_env_bool("FLAG", True) is True

    def test_int_falls_back_on_garbage(self, monkeypatch):
        monkeypatch.setenv("NUM", "abc")
        assert get_env_int("NUM", 7) == 7
        monkeypatch.setenv("NUM", "12")
        assert get_env_int("NUM", 7) == 12


class TestServerConfig:

    def test_defaults(self, monkeypatch):
        for key in ("HAND_SIZE", "MAX_PLAYERS_PER_ROOM", "CARD_MANIFEST"):
            monkeypatch.delenv(key, raising=False)
        cfg = config_module.ServerConfig.from_env()
        assert cfg.game_defaults.hand_size == 5
        assert cfg.MAX_PLAYERS_PER_ROOM == 4
        assert cfg.game_defaults.card_manifest is None

    def test_reload_reads_environment(self, monkeypatch):
        original = config_module.config
        monkeypatch.setenv("HAND_SIZE", "7")
        monkeypatch.setenv("CARD_MANIFEST", "/tmp/deck.txt")
        try:
            cfg = reload_config()
            assert cfg.game_defaults.hand_size == 7
            assert cfg.game_defaults.card_manifest == "/tmp/deck.txt"
            assert config_module.config is cfg
        finally:
            config_module.config = original

    def test_reload_leaves_import_time_bindings(self, monkeypatch):
        import constants
        import game

        original = config_module.config
        hand_size = constants.HAND_SIZE
        monkeypatch.setenv("HAND_SIZE", str(hand_size + 2))
        try:
            cfg = reload_config()
            assert cfg.game_defaults.hand_size == hand_size + 2
            assert constants.HAND_SIZE == hand_size
            assert game.config is original
        finally:
            config_module.config = original


class TestFormatters:

    def test_json_includes_context(self):
        token = room_code_var.set("ABCD")
        try:
            data = json.loads(JSONFormatter().format(make_record()))
        finally:
            room_code_var.reset(token)
        assert data["message"] == "hello"
        assert data["room_code"] == "ABCD"
        assert "source" not in data

    def test_json_errors_carry_source(self):
        data = json.loads(JSONFormatter().format(make_record(logging.ERROR)))
        assert data["source"]["line"] == 10

    def test_development_format(self):
        token = room_code_var.set("WXYZ")
        try:
            line = DevelopmentFormatter().format(make_record(msg="dealt"))
        finally:
            room_code_var.reset(token)
        assert "room=WXYZ" in line
        assert line.endswith("dealt")
