"""Tests for settings-derived values."""

import hashlib

import pytest

from chatroom.core.config import Settings

VALID_KEY = "00112233445566778899aabbccddeeff" * 2


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def test_valid_key_is_used_as_is():
    config = make_settings(CHAT_ENCRYPTION_KEY=VALID_KEY.upper())
    assert config.insecure_key_mode is False
    assert config.encryption_key == bytes.fromhex(VALID_KEY)


@pytest.mark.parametrize("key", [None, "", "abc", VALID_KEY[:-1], VALID_KEY + "0", "zz" * 32])
def test_missing_or_malformed_key_falls_back(key):
    config = make_settings(CHAT_ENCRYPTION_KEY=key)
    assert config.insecure_key_mode is True
    assert len(config.encryption_key) == 32
    assert config.encryption_key == hashlib.sha256(b"chatroom/insecure-fallback-key/v1").digest()


def test_fallback_key_is_stable():
    assert make_settings().encryption_key == make_settings().encryption_key


def test_database_url_defaults_to_sqlite():
    assert make_settings(DB_HOST=None).database_url.startswith("sqlite:///")


def test_database_url_built_from_db_parts():
    config = make_settings(DB_HOST="db", DB_PORT=5433, DB_NAME="chat", DB_USER="u", DB_PASS="p")
    assert config.database_url == "postgresql+psycopg2://u:p@db:5433/chat"


def test_protocol_defaults(monkeypatch):
    for name in ("USER_TIMEOUT_MS", "MAX_MESSAGES_RETRIEVE", "MESSAGE_RETENTION_MS", "RATE_LIMIT_WINDOW_MS"):
        monkeypatch.delenv(name, raising=False)
    config = make_settings()
    assert config.USER_TIMEOUT_MS == 300_000
    assert config.MAX_MESSAGES_RETRIEVE == 100
    assert config.MESSAGE_RETENTION_MS == 3_600_000
    assert config.RATE_LIMIT_WINDOW_MS == 1000
