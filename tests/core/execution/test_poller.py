"""
Tests for the confirmation poller.

All waits run on a virtual clock; no test sleeps for real.
"""

import asyncio

import pytest

from conftest import ScriptedReceipts, VirtualClock, receipt
from roulette_vrf.core.execution.errors import (
    InvalidTransitionError,
    StarknetRpcError,
    TransactionNotFound,
    TransactionRejected,
    TransactionTimeout,
    TransientFetchError,
)
from roulette_vrf.core.execution.models import (
    ConfirmationState,
    ExecutionTiming,
    InvokeReceipt,
    TransactionHandle,
)
from roulette_vrf.core.execution.poller import ConfirmationPoller, ConfirmationRun


HANDLE = TransactionHandle(transaction_hash="0xabc")


def make_poller(provider, clock, responses):
    script = ScriptedReceipts(clock, responses)
    provider.get_transaction_receipt.side_effect = script.fetch
    return ConfirmationPoller(provider, clock=clock), script


# =============================================================================
# Scenarios
# =============================================================================

@pytest.mark.asyncio
async def test_confirms_after_pending_polls(provider, clock):
    poller, script = make_poller(
        provider,
        clock,
        [None, None, receipt("SUCCEEDED", "ACCEPTED_ON_L2")],
    )

    result = await poller.confirm(HANDLE, ExecutionTiming(poll_interval_ms=10, timeout_ms=1000))

    assert isinstance(result, InvokeReceipt)
    assert result.finality_status == "ACCEPTED_ON_L2"
    assert script.polls == 3
    assert clock.sleeps == [0.01, 0.01]


@pytest.mark.asyncio
async def test_reverted_receipt_raises_rejected_after_one_poll(provider, clock):
    poller, script = make_poller(
        provider,
        clock,
        [receipt("REVERTED", "ACCEPTED_ON_L2", revert_reason="insufficient balance")],
    )

    with pytest.raises(TransactionRejected) as exc_info:
        await poller.confirm(HANDLE, ExecutionTiming(poll_interval_ms=10, timeout_ms=1000))

    assert exc_info.value.revert_reason == "insufficient balance"
    assert exc_info.value.transaction_hash == "0xabc"
    assert script.polls == 1
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_not_found_until_deadline_times_out(provider, clock):
    poller, script = make_poller(
        provider,
        clock,
        [TransactionNotFound("Transaction hash not found", code=29)],
    )
    timing = ExecutionTiming(poll_interval_ms=250, timeout_ms=1000)

    with pytest.raises(TransactionTimeout) as exc_info:
        await poller.confirm(HANDLE, timing)

    assert script.poll_times == [0.0, 0.25, 0.5, 0.75]
    assert exc_info.value.polls == 4
    assert exc_info.value.timeout_seconds == 1.0

    # Nothing keeps polling in the background
    await asyncio.sleep(0)
    assert script.polls == 4


@pytest.mark.asyncio
async def test_transient_error_does_not_abort_wait(provider, clock):
    poller, script = make_poller(
        provider,
        clock,
        [
            TransientFetchError("connection reset"),
            receipt("SUCCEEDED", "ACCEPTED_ON_L1"),
        ],
    )

    result = await poller.confirm(HANDLE, ExecutionTiming(poll_interval_ms=10, timeout_ms=1000))

    assert result.finality_status == "ACCEPTED_ON_L1"
    assert script.polls == 2


@pytest.mark.asyncio
async def test_transient_error_is_logged_as_warning(provider, clock, caplog):
    poller, _ = make_poller(
        provider,
        clock,
        [TransientFetchError("HTTP 503"), receipt("SUCCEEDED", "ACCEPTED_ON_L2")],
    )

    with caplog.at_level("WARNING", logger="roulette_vrf.core.execution.poller"):
        await poller.confirm(HANDLE, ExecutionTiming(poll_interval_ms=10, timeout_ms=1000))

    assert any("HTTP 503" in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
async def test_concurrent_waits_keep_their_own_outcome(provider, clock):
    scripts = {
        "0x1": ScriptedReceipts(
            clock,
            [None, None, receipt("SUCCEEDED", "ACCEPTED_ON_L2", transaction_hash="0x1")],
        ),
        "0x2": ScriptedReceipts(
            clock,
            [
                None,
                receipt(
                    "REVERTED",
                    "ACCEPTED_ON_L2",
                    transaction_hash="0x2",
                    revert_reason="Bet amount too low",
                ),
            ],
        ),
    }

    async def fetch(transaction_hash):
        return await scripts[transaction_hash].fetch(transaction_hash)

    provider.get_transaction_receipt.side_effect = fetch
    poller = ConfirmationPoller(provider, clock=clock)
    timing = ExecutionTiming(poll_interval_ms=10, timeout_ms=1000)

    accepted, rejected = await asyncio.gather(
        poller.confirm("0x1", timing),
        poller.confirm("0x2", timing),
        return_exceptions=True,
    )

    assert isinstance(accepted, InvokeReceipt)
    assert accepted.transaction_hash == "0x1"
    assert accepted.finality_status == "ACCEPTED_ON_L2"
    assert isinstance(rejected, TransactionRejected)
    assert rejected.transaction_hash == "0x2"
    assert rejected.revert_reason == "Bet amount too low"
    assert rejected.receipt.transaction_hash == "0x2"
    assert scripts["0x1"].polls == 3
    assert scripts["0x2"].polls == 2


# =============================================================================
# Deadline and error handling
# =============================================================================

@pytest.mark.asyncio
async def test_received_status_keeps_polling(provider, clock):
    poller, script = make_poller(
        provider,
        clock,
        [
            receipt("SUCCEEDED", "RECEIVED"),
            {"transaction_hash": "0xabc"},
            receipt("SUCCEEDED", "ACCEPTED_ON_L2"),
        ],
    )

    await poller.confirm(HANDLE, ExecutionTiming(poll_interval_ms=10, timeout_ms=1000))

    assert script.polls == 3


@pytest.mark.asyncio
async def test_final_looking_receipt_without_execution_status_keeps_polling(provider, clock):
    poller, script = make_poller(
        provider,
        clock,
        [
            {"transaction_hash": "0xabc", "finality_status": "ACCEPTED_ON_L1"},
            receipt("SUCCEEDED", "ACCEPTED_ON_L1"),
        ],
    )

    result = await poller.confirm(HANDLE, ExecutionTiming(poll_interval_ms=10, timeout_ms=1000))

    assert isinstance(result, InvokeReceipt)
    assert result.execution_status == "SUCCEEDED"
    assert script.polls == 2


@pytest.mark.asyncio
async def test_last_sleep_is_cut_to_the_deadline(provider, clock):
    poller, script = make_poller(provider, clock, [None])
    timing = ExecutionTiming(poll_interval_ms=750, timeout_ms=1000)

    with pytest.raises(TransactionTimeout):
        await poller.confirm(HANDLE, timing)

    assert script.poll_times == [0.0, 0.75]
    assert clock.sleeps == [0.75, 0.25]
    assert clock.now == 1.0


@pytest.mark.asyncio
async def test_fatal_fetch_error_propagates(provider, clock):
    poller, script = make_poller(
        provider,
        clock,
        [None, StarknetRpcError("Invalid params", code=-32602)],
    )

    with pytest.raises(StarknetRpcError) as exc_info:
        await poller.confirm(HANDLE, ExecutionTiming(poll_interval_ms=10, timeout_ms=1000))

    assert exc_info.value.code == -32602
    assert script.polls == 2


@pytest.mark.asyncio
async def test_slow_fetch_past_deadline_times_out(provider, clock):
    async def hang(transaction_hash):
        await asyncio.Event().wait()

    provider.get_transaction_receipt.side_effect = hang
    poller = ConfirmationPoller(provider, clock=clock)

    with pytest.raises(TransactionTimeout) as exc_info:
        await poller.confirm(HANDLE, ExecutionTiming(poll_interval_ms=10, timeout_ms=20))

    assert exc_info.value.polls == 1


@pytest.mark.asyncio
async def test_accepts_plain_hash(provider, clock):
    poller, _ = make_poller(provider, clock, [receipt("SUCCEEDED", "ACCEPTED_ON_L2")])

    result = await poller.confirm("0xabc", ExecutionTiming(poll_interval_ms=10, timeout_ms=100))

    assert result.transaction_hash == "0xabc"
    provider.get_transaction_receipt.assert_awaited_once_with("0xabc")


# =============================================================================
# Cancellation
# =============================================================================

class GatedClock(VirtualClock):
    """Virtual clock whose sleeps never finish; signals when one starts."""

    def __init__(self):
        super().__init__()
        self.sleeping = asyncio.Event()

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.sleeping.set()
        await asyncio.Event().wait()


@pytest.mark.asyncio
async def test_cancel_stops_polling(provider):
    clock = GatedClock()
    script = ScriptedReceipts(clock, [None])
    provider.get_transaction_receipt.side_effect = script.fetch
    poller = ConfirmationPoller(provider, clock=clock)

    task = asyncio.create_task(
        poller.confirm(HANDLE, ExecutionTiming(poll_interval_ms=10, timeout_ms=1000))
    )
    await clock.sleeping.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert script.polls == 1


# =============================================================================
# Backoff tunable
# =============================================================================

@pytest.mark.asyncio
async def test_fixed_interval_by_default(provider, clock):
    poller, _ = make_poller(
        provider,
        clock,
        [
            TransientFetchError("a"),
            TransientFetchError("b"),
            receipt("SUCCEEDED", "ACCEPTED_ON_L2"),
        ],
    )

    await poller.confirm(HANDLE, ExecutionTiming(poll_interval_ms=250, timeout_ms=10000))

    assert clock.sleeps == [0.25, 0.25]


@pytest.mark.asyncio
async def test_backoff_grows_after_transient_errors_and_resets(provider, clock):
    poller, _ = make_poller(
        provider,
        clock,
        [
            TransientFetchError("a"),
            TransientFetchError("b"),
            TransientFetchError("c"),
            None,
            receipt("SUCCEEDED", "ACCEPTED_ON_L2"),
        ],
    )
    timing = ExecutionTiming(
        poll_interval_ms=250,
        timeout_ms=10000,
        backoff_factor=2.0,
        max_poll_interval_ms=1500,
    )

    await poller.confirm(HANDLE, timing)

    assert clock.sleeps == [0.5, 1.0, 1.5, 0.25]


def test_backoff_factor_below_one_rejected():
    with pytest.raises(ValueError):
        ExecutionTiming(backoff_factor=0.5)


# =============================================================================
# State machine
# =============================================================================

def test_run_starts_polling():
    run = ConfirmationRun("0xabc", started_at=0.0)

    assert run.state == ConfirmationState.POLLING
    assert not run.is_terminal


@pytest.mark.parametrize(
    "terminal",
    [ConfirmationState.CONFIRMED, ConfirmationState.FAILED, ConfirmationState.TIMED_OUT],
)
def test_terminal_states_have_no_exit(terminal):
    run = ConfirmationRun("0xabc", started_at=0.0)
    run.transition_to(terminal)

    assert run.is_terminal
    for target in ConfirmationState:
        with pytest.raises(InvalidTransitionError):
            run.transition_to(target)
    assert run.state == terminal


def test_polling_cannot_transition_to_itself():
    run = ConfirmationRun("0xabc", started_at=0.0)

    with pytest.raises(InvalidTransitionError):
        run.transition_to(ConfirmationState.POLLING)
