import base64
from unittest.mock import Mock

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.signature import Signature
from solders.system_program import TransferParams, transfer
from solders.transaction import VersionedTransaction

from core import constants
from schemas.balance import Balance
from services.confirmation_pipeline import ConfirmationPipeline
from services.session_store import SessionStore

FUND_ID = "fund-usdc-1"
USER_ID = 4242
SIGNATURE = (
    "5VERv8NMvzbJMEkV8xnrLkEaWRtSz9CosKDYjCJjBRnbJLgp8uirBgmQpjKhoR4tjF3ZpRzrFmBV6UjKdiSZkQUW"
)


def build_unsigned_payload(signer: Keypair) -> str:
    """A base64 transaction with ``signer`` as fee payer and no signatures."""
    instruction = transfer(
        TransferParams(
            from_pubkey=signer.pubkey(), to_pubkey=Keypair().pubkey(), lamports=1
        )
    )
    message = MessageV0.try_compile(signer.pubkey(), [instruction], [], Hash.default())
    tx = VersionedTransaction.populate(message, [Signature.default()])
    return base64.b64encode(bytes(tx)).decode()


@pytest.fixture
def keypair():
    return Keypair()


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def gateway(keypair):
    gateway = Mock()
    payload = build_unsigned_payload(keypair)
    gateway.quote_deposit.return_value = payload
    gateway.quote_withdraw.return_value = payload
    gateway.get_fund_position.return_value = Balance(asset=constants.USDC, raw=0)
    return gateway


@pytest.fixture
def ledger():
    ledger = Mock()
    ledger.get_token_balance.return_value = Balance(asset=constants.USDC, raw=0)
    ledger.submit.return_value = SIGNATURE
    ledger.await_finality.return_value = None
    return ledger


@pytest.fixture
def pipeline(store, gateway, ledger):
    return ConfirmationPipeline(
        store=store,
        gateway=gateway,
        ledger=ledger,
        fund_id=FUND_ID,
        asset=constants.USDC,
        finality_timeout=5,
    )


@pytest.fixture
def user(store, keypair):
    store.set_identity(USER_ID, keypair)
    return USER_ID
