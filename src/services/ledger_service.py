import logging
import time
from typing import Optional

from solana.exceptions import SolanaRpcException
from solana.rpc.api import Client
from solana.rpc.commitment import Confirmed, Finalized
from solana.rpc.core import RPCException
from solana.rpc.types import TxOpts
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction
from solders.transaction_status import TransactionConfirmationStatus
from spl.token.instructions import get_associated_token_address

from core import constants
from core.config import settings
from core.exceptions import (
    FinalityTimeout,
    SubmissionError,
    TransactionRejected,
    TransportError,
)
from schemas.asset import AssetSpec
from schemas.balance import Balance, WalletBalances

logger = logging.getLogger(__name__)

ACCEPTED_STATUSES = {
    "confirmed": (
        TransactionConfirmationStatus.Confirmed,
        TransactionConfirmationStatus.Finalized,
    ),
    "finalized": (TransactionConfirmationStatus.Finalized,),
}


class SolanaLedgerService:
    def __init__(
        self,
        rpc_url: str = None,
        commitment: str = None,
        poll_interval: float = None,
        client: Optional[Client] = None,
    ):
        self.commitment = commitment or settings.SOLANA_COMMITMENT
        self.poll_interval = (
            settings.FINALITY_POLL_INTERVAL_SECONDS
            if poll_interval is None
            else poll_interval
        )
        self.client = client or Client(
            rpc_url or settings.SOLANA_RPC_URL,
            commitment=Finalized if self.commitment == "finalized" else Confirmed,
        )

    def get_sol_balance(self, owner: str) -> Balance:
        try:
            lamports = self.client.get_balance(Pubkey.from_string(owner)).value
        except (RPCException, SolanaRpcException) as e:
            raise TransportError(f"Could not fetch SOL balance for {owner}") from e
        return Balance(asset=constants.SOL, raw=lamports)

    def get_token_balance(self, owner: str, asset: AssetSpec) -> Balance:
        if asset.is_native:
            return self.get_sol_balance(owner)

        token_account = get_associated_token_address(
            Pubkey.from_string(owner), Pubkey.from_string(asset.mint)
        )
        try:
            resp = self.client.get_token_account_balance(token_account)
        except RPCException:
            # no associated token account yet
            logger.debug("No %s token account for %s", asset.symbol, owner)
            return Balance.zero(asset)
        except SolanaRpcException as e:
            raise TransportError(
                f"Could not fetch {asset.symbol} balance for {owner}"
            ) from e

        amount = resp.value
        if amount.decimals != asset.decimals:
            raise TransportError(
                f"Mint {asset.mint} reports {amount.decimals} decimals, "
                f"expected {asset.decimals} for {asset.symbol}"
            )
        return Balance(asset=asset, raw=int(amount.amount))

    def get_wallet_balances(self, owner: str) -> WalletBalances:
        tokens = {
            asset.symbol: self.get_token_balance(owner, asset)
            for asset in constants.WALLET_TOKENS
        }
        return WalletBalances(
            owner=owner, sol=self.get_sol_balance(owner), tokens=tokens
        )

    def submit(self, transaction: VersionedTransaction) -> str:
        try:
            resp = self.client.send_raw_transaction(
                bytes(transaction),
                opts=TxOpts(skip_preflight=False, preflight_commitment=Confirmed),
            )
        except RPCException as e:
            # preflight simulation failed, the cluster did not accept it
            logger.warning("Transaction rejected by the network: %s", e)
            raise TransactionRejected(f"Transaction rejected by network: {e}") from e
        except SolanaRpcException as e:
            logger.error("Transaction submission failed in transit", exc_info=True)
            raise SubmissionError("Transaction submission failed in transit") from e

        signature = str(resp.value)
        logger.info("Submitted transaction %s", signature)
        return signature

    def await_finality(self, signature: str, timeout: float) -> None:
        """Poll the signature status until it reaches the configured commitment.

        Raises ``TransactionRejected`` if the ledger reports an error and
        ``FinalityTimeout`` once ``timeout`` seconds have passed.
        """
        accepted = ACCEPTED_STATUSES[self.commitment]
        sig = Signature.from_string(signature)
        deadline = time.monotonic() + timeout

        while True:
            try:
                status = self.client.get_signature_statuses([sig]).value[0]
            except (RPCException, SolanaRpcException) as e:
                # already submitted: keep polling until the deadline
                logger.warning("Status poll for %s failed, retrying: %s", signature, e)
                status = None

            if status is not None:
                if status.err is not None:
                    logger.warning("Transaction %s failed: %s", signature, status.err)
                    raise TransactionRejected(f"Transaction failed: {status.err}")
                if status.confirmation_status in accepted:
                    logger.info(
                        "Transaction %s reached %s", signature, self.commitment
                    )
                    return

            if time.monotonic() >= deadline:
                logger.error("Transaction %s not confirmed in %ss", signature, timeout)
                raise FinalityTimeout(signature, timeout)
            time.sleep(self.poll_interval)
