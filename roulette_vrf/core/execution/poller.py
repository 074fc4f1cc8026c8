"""
Transaction confirmation polling.

A confirmation wait is a small state machine:

    POLLING -> CONFIRMED | FAILED | TIMED_OUT

Only POLLING has outgoing transitions. The deadline is measured on an
injectable clock so tests can drive waits without real time passing.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Dict, FrozenSet, Optional, Protocol, Union

from .classifier import classify, is_terminal
from .errors import (
    InvalidTransitionError,
    StarknetRpcError,
    TransactionNotFound,
    TransactionRejected,
    TransactionTimeout,
    TransientFetchError,
)
from .models import (
    ConfirmationState,
    ExecutionTiming,
    InvokeReceipt,
    Receipt,
    Status,
    TransactionHandle,
    parse_receipt,
)

if TYPE_CHECKING:
    from ...providers.base import LedgerProvider


class Clock(Protocol):
    """Time source for deadlines and waits between polls."""

    def monotonic(self) -> float:
        ...

    async def sleep(self, seconds: float) -> None:
        ...


class SystemClock:
    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class ConfirmationRun:
    """State of one ``confirm()`` call. Never shared between calls."""

    TRANSITIONS: Dict[ConfirmationState, FrozenSet[ConfirmationState]] = {
        ConfirmationState.POLLING: frozenset({
            ConfirmationState.CONFIRMED,
            ConfirmationState.FAILED,
            ConfirmationState.TIMED_OUT,
        }),
        ConfirmationState.CONFIRMED: frozenset(),
        ConfirmationState.FAILED: frozenset(),
        ConfirmationState.TIMED_OUT: frozenset(),
    }

    def __init__(self, transaction_hash: str, started_at: float) -> None:
        self.transaction_hash = transaction_hash
        self.started_at = started_at
        self.state = ConfirmationState.POLLING
        self.polls = 0
        self.consecutive_transient_errors = 0
        self.last_status = Status.RECEIVED

    @property
    def is_terminal(self) -> bool:
        return not self.TRANSITIONS[self.state]

    def transition_to(self, to_state: ConfirmationState) -> None:
        if to_state not in self.TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"Invalid transition from {self.state.value} to {to_state.value}"
            )
        self.state = to_state


class ConfirmationPoller:
    """
    Polls the node for a receipt until the transaction is final.

    - "not found" responses count as a pending receipt
    - transient fetch errors are logged and the wait continues
    - fatal RPC errors end the wait and propagate
    - a rejected receipt raises ``TransactionRejected``
    - an elapsed deadline raises ``TransactionTimeout``

    The poller only reads from the node. Cancel the awaiting task to stop a
    wait early; no further polls are issued after cancellation.
    """

    def __init__(
        self,
        provider: "LedgerProvider",
        clock: Optional[Clock] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.provider = provider
        self.clock = clock or SystemClock()
        self.logger = logger or logging.getLogger(__name__)

    async def confirm(
        self,
        handle: Union[TransactionHandle, str],
        timing: Optional[ExecutionTiming] = None,
    ) -> InvokeReceipt:
        """
        Wait until ``handle`` reaches a terminal status.

        Returns:
            The accepted receipt (ACCEPTED_L2 or ACCEPTED_L1)

        Raises:
            TransactionRejected: execution reverted
            TransactionTimeout: no terminal status before the deadline
            StarknetRpcError: the node refused the receipt query outright
        """
        timing = timing or ExecutionTiming()
        tx_hash = handle.transaction_hash if isinstance(handle, TransactionHandle) else handle
        run = ConfirmationRun(tx_hash, started_at=self.clock.monotonic())

        self.logger.info(
            "Waiting for transaction %s (interval=%sms, timeout=%sms)",
            tx_hash,
            timing.poll_interval_ms,
            timing.timeout_ms,
        )

        try:
            while True:
                remaining = self._remaining(run, timing)
                if remaining <= 0:
                    raise self._time_out(run, timing)

                receipt = await self._poll(run, remaining, timing)
                if receipt is not None:
                    status = classify(receipt)
                    run.last_status = status
                    if is_terminal(status) and isinstance(receipt, InvokeReceipt):
                        return self._finish(run, status, receipt)
                    self.logger.info(
                        "Transaction %s status: %s. Waiting...", tx_hash, status.value
                    )

                delay = self._next_delay(run, timing)
                remaining = self._remaining(run, timing)
                await self.clock.sleep(max(0.0, min(delay, remaining)))
        except asyncio.CancelledError:
            self.logger.info("Stopped waiting for %s after %d polls", tx_hash, run.polls)
            raise

    async def _poll(
        self,
        run: ConfirmationRun,
        remaining: float,
        timing: ExecutionTiming,
    ) -> Optional[Receipt]:
        """
        Fetch and parse one receipt.

        Returns None when the poll produced nothing to classify (transient
        error); a not-found answer becomes a pending receipt.
        """
        run.polls += 1
        try:
            raw = await asyncio.wait_for(
                self.provider.get_transaction_receipt(run.transaction_hash),
                timeout=remaining,
            )
        except asyncio.TimeoutError:
            raise self._time_out(run, timing) from None
        except TransactionNotFound:
            self.logger.info("Transaction %s not found yet. Waiting...", run.transaction_hash)
            run.consecutive_transient_errors = 0
            return parse_receipt(run.transaction_hash, None)
        except TransientFetchError as exc:
            run.consecutive_transient_errors += 1
            self.logger.warning(
                "Error fetching receipt for %s (attempt %d): %s",
                run.transaction_hash,
                run.polls,
                exc,
            )
            return None
        except StarknetRpcError as exc:
            run.transition_to(ConfirmationState.FAILED)
            self.logger.error(
                "Receipt query for %s failed permanently: %s", run.transaction_hash, exc
            )
            raise

        run.consecutive_transient_errors = 0
        return parse_receipt(run.transaction_hash, raw)

    def _finish(
        self, run: ConfirmationRun, status: Status, receipt: InvokeReceipt
    ) -> InvokeReceipt:
        if status == Status.REJECTED:
            run.transition_to(ConfirmationState.FAILED)
            self.logger.error(
                "Transaction %s rejected. Status: %s, %s",
                run.transaction_hash,
                receipt.execution_status,
                receipt.finality_status,
            )
            if receipt.revert_reason:
                self.logger.error("Revert reason: %s", receipt.revert_reason)
            raise TransactionRejected(
                f"Transaction {run.transaction_hash} rejected",
                transaction_hash=run.transaction_hash,
                revert_reason=receipt.revert_reason,
                receipt=receipt,
            )

        run.transition_to(ConfirmationState.CONFIRMED)
        self.logger.info(
            "Transaction %s accepted (%s) after %d polls",
            run.transaction_hash,
            receipt.finality_status,
            run.polls,
        )
        return receipt

    def _time_out(self, run: ConfirmationRun, timing: ExecutionTiming) -> TransactionTimeout:
        run.transition_to(ConfirmationState.TIMED_OUT)
        self.logger.error(
            "Transaction %s timed out after %ss (%d polls, last status %s)",
            run.transaction_hash,
            timing.timeout_seconds,
            run.polls,
            run.last_status.value,
        )
        return TransactionTimeout(
            f"Transaction {run.transaction_hash} timed out after {timing.timeout_seconds:g} seconds",
            transaction_hash=run.transaction_hash,
            timeout_seconds=timing.timeout_seconds,
            polls=run.polls,
        )

    def _remaining(self, run: ConfirmationRun, timing: ExecutionTiming) -> float:
        return timing.timeout_seconds - (self.clock.monotonic() - run.started_at)

    @staticmethod
    def _next_delay(run: ConfirmationRun, timing: ExecutionTiming) -> float:
        delay = timing.poll_interval_seconds
        if run.consecutive_transient_errors and timing.backoff_factor > 1.0:
            delay *= timing.backoff_factor ** run.consecutive_transient_errors
            cap = timing.max_poll_interval_seconds
            if cap is not None:
                delay = min(delay, cap)
        return delay
