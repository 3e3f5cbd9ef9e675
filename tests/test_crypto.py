"""Tests for payload encryption helpers."""

import json
import re

import pytest

from weblattice.config import EncryptionSettings
from weblattice.crypto import (
    aes_decrypt,
    aes_encrypt,
    decrypt_payload,
    encrypt_payload,
    generate_key_pair,
    public_key_id,
    to_json,
)
from weblattice.exceptions import DecryptionError

ACTIVE = EncryptionSettings(enabled=True, secret_key="correct horse battery staple")

PAYLOADS = [
    {"user": "ada", "roles": ["admin", "dev"], "active": True},
    [1, 2.5, None, "three"],
    "plain string",
    {"unicode": "héllo wörld ✓", "nested": {"empty": {}}},
]


def test_to_json_is_compact():
    assert to_json({"a": 1, "b": [1, 2]}) == '{"a":1,"b":[1,2]}'


@pytest.mark.parametrize("payload", PAYLOADS)
def test_round_trip(payload):
    ciphertext = encrypt_payload(payload, ACTIVE)
    assert ciphertext != to_json(payload)
    assert decrypt_payload(ciphertext, ACTIVE) == to_json(payload)
    assert json.loads(decrypt_payload(ciphertext, ACTIVE)) == payload


@pytest.mark.parametrize(
    "settings",
    [
        EncryptionSettings(enabled=False, secret_key="unused"),
        EncryptionSettings(enabled=True, secret_key=None),
        EncryptionSettings(enabled=True, secret_key=""),
    ],
)
def test_pass_through_when_inactive(settings):
    payload = {"id": 7, "name": "x"}
    assert encrypt_payload(payload, settings) == to_json(payload)
    assert decrypt_payload("anything at all", settings) == "anything at all"


def test_ciphertext_uses_openssl_salted_format():
    ciphertext = aes_encrypt("hello", "pw")
    # base64 of b"Salted__"
    assert ciphertext.startswith("U2FsdGVkX1")


def test_encryption_is_salted():
    assert aes_encrypt("same text", "pw") != aes_encrypt("same text", "pw")


def test_aes_decrypt_rejects_bad_base64():
    with pytest.raises(DecryptionError, match="not valid base64"):
        aes_decrypt("not-base64!!", "pw")


def test_aes_decrypt_rejects_missing_salt_header():
    with pytest.raises(DecryptionError, match="salt header"):
        aes_decrypt("aGVsbG8gd29ybGQgaGVsbG8gd29ybGQ=", "pw")


def test_generate_key_pair_shape():
    pair = generate_key_pair()
    assert re.fullmatch(r"[0-9a-f]{32}", pair.aes_key)
    assert re.fullmatch(r"[0-9a-f]{32}", pair.iv)
    assert pair.aes_key != pair.iv


def test_generate_key_pair_is_fresh():
    assert generate_key_pair() != generate_key_pair()


def test_public_key_id():
    assert public_key_id(EncryptionSettings(enabled=True, use_remote_keys=True)) == (
        "remote-key-id"
    )
    assert public_key_id(EncryptionSettings(enabled=True)) == "local-key-id"

    local = public_key_id(ACTIVE)
    assert re.fullmatch(r"local-[0-9a-f]{16}", local)
    assert local == public_key_id(ACTIVE)
    assert local != public_key_id(EncryptionSettings(enabled=True, secret_key="other"))
