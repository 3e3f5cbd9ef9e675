"""Payload encryption helpers.

Bodies are encrypted with AES-256-CBC in the OpenSSL "Salted__" passphrase
format (EVP_BytesToKey/MD5 key derivation, PKCS7 padding, base64 output),
which is the format produced by CryptoJS ``AES.encrypt(text, passphrase)``
on browser peers of the same backend.

`encrypt_payload` and `decrypt_payload` fall back to plain JSON pass-through
whenever encryption is disabled or no secret key is configured.
"""

import base64
import binascii
import hashlib
import json
import os
import secrets
from typing import Any

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .config import EncryptionSettings
from .constants import LOCAL_KEY_ID, REMOTE_KEY_ID
from .exceptions import DecryptionError
from .log_config import logger
from .models import EncryptionKeyPair

SALT_MAGIC = b"Salted__"
SALT_SIZE = 8
KEY_SIZE = 32
IV_SIZE = 16


def to_json(payload: Any) -> str:
    """Serialise a payload to compact JSON, the canonical form used on the wire."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def _derive_key_and_iv(passphrase: bytes, salt: bytes) -> tuple[bytes, bytes]:
    """OpenSSL EVP_BytesToKey with MD5 and a single iteration."""
    derived = b""
    block = b""
    while len(derived) < KEY_SIZE + IV_SIZE:
        block = hashlib.md5(block + passphrase + salt).digest()
        derived += block
    return derived[:KEY_SIZE], derived[KEY_SIZE : KEY_SIZE + IV_SIZE]


def aes_encrypt(plaintext: str, passphrase: str) -> str:
    """Encrypt text with a passphrase, returning base64 "Salted__" ciphertext."""
    salt = os.urandom(SALT_SIZE)
    key, iv = _derive_key_and_iv(passphrase.encode("utf-8"), salt)

    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return base64.b64encode(SALT_MAGIC + salt + ciphertext).decode("ascii")


def aes_decrypt(ciphertext: str, passphrase: str) -> str:
    """Decrypt base64 "Salted__" ciphertext produced by `aes_encrypt`.

    Raises:
        DecryptionError: If the input is not valid ciphertext for this passphrase.
    """
    try:
        raw = base64.b64decode(ciphertext, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecryptionError(f"Ciphertext is not valid base64: {e}") from e

    if not raw.startswith(SALT_MAGIC) or len(raw) < len(SALT_MAGIC) + SALT_SIZE:
        raise DecryptionError("Ciphertext is missing the salt header.")
    salt = raw[len(SALT_MAGIC) : len(SALT_MAGIC) + SALT_SIZE]
    body = raw[len(SALT_MAGIC) + SALT_SIZE :]
    if not body or len(body) % IV_SIZE:
        raise DecryptionError("Ciphertext length is not a multiple of the block size.")

    key, iv = _derive_key_and_iv(passphrase.encode("utf-8"), salt)
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(body) + decryptor.finalize()
    try:
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        plaintext = unpadder.update(padded) + unpadder.finalize()
        return plaintext.decode("utf-8")
    except (ValueError, UnicodeDecodeError) as e:
        # Wrong passphrase shows up as bad padding or garbage bytes
        raise DecryptionError(f"Unable to decrypt payload: {e}") from e


def _is_active(settings: EncryptionSettings) -> bool:
    return settings.enabled and bool(settings.secret_key)


def encrypt_payload(payload: Any, settings: EncryptionSettings) -> str:
    """Serialise a payload and encrypt it with the configured secret key.

    Returns the plain JSON serialisation when encryption is disabled or
    unkeyed.
    """
    serialized = to_json(payload)
    if not _is_active(settings):
        return serialized
    assert settings.secret_key is not None
    return aes_encrypt(serialized, settings.secret_key)


def decrypt_payload(ciphertext: str, settings: EncryptionSettings) -> str:
    """Inverse of `encrypt_payload`; returns the input unchanged when inactive."""
    if not _is_active(settings):
        return ciphertext
    assert settings.secret_key is not None
    return aes_decrypt(ciphertext, settings.secret_key)


def generate_key_pair() -> EncryptionKeyPair:
    """Generate a fresh per-request AES key and IV."""
    return EncryptionKeyPair(aes_key=secrets.token_hex(16), iv=secrets.token_hex(16))


def public_key_id(settings: EncryptionSettings) -> str:
    """Identifier of the key the server should use for this client.

    Remote key management is not implemented yet, so it sends a fixed
    placeholder id; local keys are identified by a fingerprint of the secret.
    """
    if settings.use_remote_keys:
        return REMOTE_KEY_ID
    if not settings.secret_key:
        logger.trace("No local secret key configured, sending default key id.")
        return LOCAL_KEY_ID
    digest = hashlib.sha256(settings.secret_key.encode("utf-8")).hexdigest()
    return f"local-{digest[:16]}"
