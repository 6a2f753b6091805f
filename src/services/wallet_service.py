import base64
import binascii
import json
import logging
from typing import Tuple

import base58
from solders.keypair import Keypair
from solders.transaction import VersionedTransaction

from core.exceptions import SigningError, ValidationError

logger = logging.getLogger(__name__)


def generate_keypair() -> Tuple[Keypair, str]:
    """Return a fresh keypair and its base58 secret, to be shown once."""
    keypair = Keypair()
    return keypair, str(keypair)


def import_keypair(key_material: str) -> Keypair:
    """Load a keypair from a base58 secret or a solana-keygen JSON byte array."""
    key_material = (key_material or "").strip()
    if not key_material:
        raise ValidationError("Empty private key")

    try:
        if key_material.startswith("["):
            secret = json.loads(key_material)
            if not isinstance(secret, list):
                raise ValueError("expected a byte array")
            secret = bytes(secret)
        else:
            secret = base58.b58decode(key_material)
        if len(secret) != 64:
            raise ValueError("expected a 64 byte secret key")
        return Keypair.from_bytes(secret)
    except (ValueError, TypeError) as e:
        # the message may echo key material, keep it out of the logs
        logger.warning("Rejected private key input: %s", type(e).__name__)
        raise ValidationError("Invalid private key format") from e


def deserialize_payload(payload: str) -> VersionedTransaction:
    try:
        raw = base64.b64decode(payload, validate=True)
        tx = VersionedTransaction.from_bytes(raw)
    except binascii.Error as e:
        raise SigningError(f"Payload is not valid base64: {e}") from e
    except Exception as e:
        raise SigningError(f"Malformed transaction payload: {e}") from e

    message = tx.message
    logger.debug(
        "Payload: %s, %d account keys, %d instructions",
        type(message).__name__,
        len(message.account_keys),
        len(message.instructions),
    )
    return tx


def sign_payload(payload: str, keypair: Keypair) -> VersionedTransaction:
    """Deserialize a quoted transaction and sign it with ``keypair``.

    The wallet must be one of the message's required signers and the only one
    left to sign.
    """
    tx = deserialize_payload(payload)
    message = tx.message
    signers = message.account_keys[: message.header.num_required_signatures]
    if keypair.pubkey() not in signers:
        raise SigningError(
            f"Payload does not require a signature from {keypair.pubkey()}"
        )

    try:
        return VersionedTransaction(message, [keypair])
    except Exception as e:
        raise SigningError(f"Could not sign transaction: {e}") from e
