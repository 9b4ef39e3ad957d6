"""
Server-side message encryption at rest.

AES-256-GCM with a random 12-byte nonce per message. The stored content is
hex(ciphertext || tag) and the stored iv is hex(nonce). Failures are returned
as None, never raised.
"""
from typing import NamedTuple, Optional
import logging

from Crypto.Cipher import AES
from Crypto.Random import get_random_bytes

logger = logging.getLogger(__name__)

IV_LENGTH = 12
TAG_LENGTH = 16


class EncryptedPayload(NamedTuple):
    content: str
    iv: str


def encrypt_message(plaintext: str, key: bytes) -> Optional[EncryptedPayload]:
    if not key:
        logger.error("Message encryption failed: no key configured")
        return None
    try:
        nonce = get_random_bytes(IV_LENGTH)
        cipher = AES.new(key, AES.MODE_GCM, nonce=nonce, mac_len=TAG_LENGTH)
        ciphertext, tag = cipher.encrypt_and_digest(plaintext.encode("utf-8"))
    except (ValueError, TypeError) as e:
        logger.error(f"Message encryption failed: {e}")
        return None
    return EncryptedPayload(content=(ciphertext + tag).hex(), iv=nonce.hex())


def decrypt_message(content: Optional[str], iv: Optional[str], key: bytes) -> Optional[str]:
    if not key or not content or not iv:
        return None
    try:
        raw = bytes.fromhex(content)
        nonce = bytes.fromhex(iv)
        if len(raw) < TAG_LENGTH or len(nonce) != IV_LENGTH:
            return None
        cipher = AES.new(key, AES.MODE_GCM, nonce=nonce, mac_len=TAG_LENGTH)
        plaintext = cipher.decrypt_and_verify(raw[:-TAG_LENGTH], raw[-TAG_LENGTH:])
        return plaintext.decode("utf-8")
    except (ValueError, TypeError):
        # Wrong key, wrong nonce, tampered or non-hex data. UnicodeDecodeError is a ValueError.
        return None
