"""
AES-256-GCM secret box for third-party API keys stored at rest.

Ciphertext format: base64(iv):base64(tag):base64(data), with a fresh random
12-byte nonce per call. The key comes from GOVEE_API_KEY_ENCRYPTION_KEY
(base64, 32 bytes).
"""
import base64
import os

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from garden_logbook.core.config import settings

IV_LENGTH = 12
TAG_LENGTH = 16


def _load_key(key: str | None = None) -> bytes:
    raw = key if key is not None else settings.GOVEE_API_KEY_ENCRYPTION_KEY
    if not raw:
        raise RuntimeError("GOVEE_API_KEY_ENCRYPTION_KEY is not set")
    decoded = base64.b64decode(raw)
    if len(decoded) != 32:
        raise RuntimeError("GOVEE_API_KEY_ENCRYPTION_KEY must decode to 32 bytes")
    return decoded


def encrypt(plaintext: str, key: str | None = None) -> str:
    iv = os.urandom(IV_LENGTH)
    # AESGCM appends the tag to the ciphertext
    sealed = AESGCM(_load_key(key)).encrypt(iv, plaintext.encode("utf-8"), None)
    data, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
    return ":".join(base64.b64encode(part).decode("ascii") for part in (iv, tag, data))


def decrypt(token: str, key: str | None = None) -> str:
    parts = token.split(":")
    if len(parts) != 3 or not all(parts):
        raise ValueError("Invalid encrypted data format")
    iv, tag, data = (base64.b64decode(p) for p in parts)
    plaintext = AESGCM(_load_key(key)).decrypt(iv, data + tag, None)
    return plaintext.decode("utf-8")
