import json

import pytest
from solders.keypair import Keypair
from solders.signature import Signature

from core.exceptions import SigningError, ValidationError
from services import wallet_service
from tests.conftest import build_unsigned_payload


def test_generate_keypair_returns_importable_secret():
    keypair, secret = wallet_service.generate_keypair()

    assert wallet_service.import_keypair(secret).pubkey() == keypair.pubkey()


def test_import_keypair_from_base58():
    keypair = Keypair()

    imported = wallet_service.import_keypair(f"  {keypair}\n")

    assert imported.pubkey() == keypair.pubkey()


def test_import_keypair_from_json_array():
    keypair = Keypair()

    imported = wallet_service.import_keypair(json.dumps(list(bytes(keypair))))

    assert imported.pubkey() == keypair.pubkey()


@pytest.mark.parametrize(
    "key_material",
    ["", "not-a-key", "0OIl", "[1, 2, 3]", '{"a": 1}', str(Keypair().pubkey())],
)
def test_import_keypair_rejects_invalid_input(key_material):
    with pytest.raises(ValidationError):
        wallet_service.import_keypair(key_material)


def test_sign_payload():
    keypair = Keypair()
    payload = build_unsigned_payload(keypair)

    signed = wallet_service.sign_payload(payload, keypair)

    assert signed.signatures[0] != Signature.default()
    assert signed.message == wallet_service.deserialize_payload(payload).message


def test_sign_payload_for_another_wallet():
    payload = build_unsigned_payload(Keypair())

    with pytest.raises(SigningError):
        wallet_service.sign_payload(payload, Keypair())


@pytest.mark.parametrize("payload", ["!!!", "aGVsbG8gd29ybGQ=", ""])
def test_deserialize_malformed_payload(payload):
    with pytest.raises(SigningError):
        wallet_service.deserialize_payload(payload)
