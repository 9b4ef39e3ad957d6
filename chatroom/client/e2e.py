# End-to-end room encryption, done entirely on the client.
# The passphrase never leaves the client; the server only stores the packed ciphertext.

import base64
import hashlib
import logging
from typing import Optional

from Crypto.Cipher import AES
from Crypto.Hash import SHA256
from Crypto.Protocol.KDF import PBKDF2
from Crypto.Random import get_random_bytes

E2E_PREFIX = "e2e:v1:"
NONCE_LENGTH = 12
TAG_LENGTH = 16
DEFAULT_ITERATIONS = 200_000


def _room_salt(room_id: str) -> bytes:
    # One key per (passphrase, room): every member derives the same key without exchanging a salt.
    return hashlib.sha256(f"chatroom-e2e:{room_id}".encode("utf-8")).digest()


def derive_key(passphrase: str, room_id: str, iterations: int = DEFAULT_ITERATIONS) -> bytes:
    logging.debug(f'Deriving room key with PBKDF2: iterations={iterations}')
    return PBKDF2(passphrase, _room_salt(room_id), dkLen=32, count=iterations, hmac_hash_module=SHA256)


def is_encrypted(body: str) -> bool:
    return isinstance(body, str) and body.startswith(E2E_PREFIX)


class RoomCipher:
    """AES-256-GCM with a passphrase-derived room key. Bodies are packed as e2e:v1:base64(nonce|tag|ciphertext)."""

    def __init__(self, passphrase: str, room_id: str, iterations: int = DEFAULT_ITERATIONS):
        if not passphrase:
            raise ValueError("passphrase must not be empty")
        self._key = derive_key(passphrase, room_id, iterations)

    def encrypt(self, plaintext: str) -> str:
        nonce = get_random_bytes(NONCE_LENGTH)
        cipher = AES.new(self._key, AES.MODE_GCM, nonce=nonce, mac_len=TAG_LENGTH)
        ciphertext, tag = cipher.encrypt_and_digest(plaintext.encode("utf-8"))
        return E2E_PREFIX + base64.b64encode(nonce + tag + ciphertext).decode("ascii")

    def decrypt(self, body: str) -> Optional[str]:
        """Plaintext, or None if the body is not ours or fails authentication."""
        if not is_encrypted(body):
            return None
        try:
            raw = base64.b64decode(body[len(E2E_PREFIX):], validate=True)
            if len(raw) < NONCE_LENGTH + TAG_LENGTH:
                return None
            nonce, tag = raw[:NONCE_LENGTH], raw[NONCE_LENGTH:NONCE_LENGTH + TAG_LENGTH]
            cipher = AES.new(self._key, AES.MODE_GCM, nonce=nonce, mac_len=TAG_LENGTH)
            return cipher.decrypt_and_verify(raw[NONCE_LENGTH + TAG_LENGTH:], tag).decode("utf-8")
        except ValueError:
            # binascii.Error and UnicodeDecodeError are ValueErrors too
            return None
