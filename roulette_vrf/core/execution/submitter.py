"""
Transaction submission.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .calldata import to_felt, to_hex
from .errors import StarknetRpcError, SubmissionFailed
from .models import InvokeTransaction, ResourceEstimate, TransactionHandle, TransactionIntent
from .signer import Signer, signature_felts

if TYPE_CHECKING:
    from ...providers.base import LedgerProvider


logger = logging.getLogger(__name__)


class Submitter:
    """
    Signs an intent with its estimated bounds and sends it once.

    Submission is never retried here: a retry could land a duplicate
    transaction, so the caller owns that decision.
    """

    def __init__(self, provider: "LedgerProvider", signer: Signer) -> None:
        self.provider = provider
        self.signer = signer

    async def submit(
        self,
        intent: TransactionIntent,
        estimate: ResourceEstimate,
    ) -> TransactionHandle:
        """
        Submit ``intent`` using the bounds from ``estimate``.

        Raises:
            SubmissionFailed: node/network failure, signer failure or bad response
        """
        if not len(intent):
            raise SubmissionFailed("Cannot submit an empty transaction intent")

        sender = to_felt(self.signer.address)

        try:
            chain_id = await self.provider.get_chain_id()
            nonce = await self.provider.get_nonce(sender)
        except StarknetRpcError as exc:
            logger.error("Could not prepare transaction: %s", exc)
            raise SubmissionFailed(f"Failed to prepare transaction: {exc}") from exc

        transaction = InvokeTransaction(
            sender_address=sender,
            calldata=intent.to_execute_calldata(),
            nonce=nonce,
            resource_bounds=estimate.resource_bounds,
            chain_id=chain_id,
            fee_mode=estimate.fee_mode,
        )

        try:
            transaction.signature = signature_felts(
                await self.signer.sign_transaction(transaction)
            )
        except Exception as exc:
            logger.error("Transaction signing failed: %s", exc)
            raise SubmissionFailed(f"Failed to sign transaction: {exc}") from exc

        try:
            tx_hash = await self.provider.add_invoke_transaction(transaction)
        except StarknetRpcError as exc:
            logger.error("Failed to send transaction: %s", exc)
            raise SubmissionFailed(f"Failed to send transaction: {exc}") from exc

        logger.info("Transaction submitted: %s (nonce=%s)", tx_hash, nonce)
        return TransactionHandle(
            transaction_hash=tx_hash,
            sender_address=to_hex(sender),
            nonce=nonce,
        )
