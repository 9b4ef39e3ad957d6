"""Tests for server-side message encryption."""

import pytest

from chatroom.service.cipher import IV_LENGTH, decrypt_message, encrypt_message
from tests.conftest import TEST_KEY


def test_encrypt_produces_hex_payload_with_fresh_iv():
    first = encrypt_message("hello", TEST_KEY)
    second = encrypt_message("hello", TEST_KEY)
    assert first is not None and second is not None
    assert len(bytes.fromhex(first.iv)) == IV_LENGTH
    assert first.iv != second.iv
    assert first.content != second.content
    assert decrypt_message(first.content, first.iv, TEST_KEY) == "hello"


def test_unicode_survives():
    payload = encrypt_message("héllo 👋 你好", TEST_KEY)
    assert decrypt_message(payload.content, payload.iv, TEST_KEY) == "héllo 👋 你好"


@pytest.mark.parametrize("key", [b"", b"too-short", None])
def test_encrypt_with_bad_key_returns_none(key):
    assert encrypt_message("hello", key) is None


def test_decrypt_with_wrong_key_returns_none():
    payload = encrypt_message("hello", TEST_KEY)
    assert decrypt_message(payload.content, payload.iv, bytes(32)) is None


def test_decrypt_with_mismatched_iv_returns_none():
    first = encrypt_message("hello", TEST_KEY)
    second = encrypt_message("world", TEST_KEY)
    assert decrypt_message(first.content, second.iv, TEST_KEY) is None


def test_decrypt_truncated_content_returns_none():
    payload = encrypt_message("hello", TEST_KEY)
    assert decrypt_message(payload.content[:-2], payload.iv, TEST_KEY) is None
    assert decrypt_message(payload.content[:8], payload.iv, TEST_KEY) is None


@pytest.mark.parametrize(
    "content,iv",
    [(None, "00" * IV_LENGTH), ("00" * 20, None), ("", ""), ("not-hex", "00" * IV_LENGTH), ("00" * 20, "abc")],
)
def test_decrypt_garbage_returns_none(content, iv):
    assert decrypt_message(content, iv, TEST_KEY) is None
