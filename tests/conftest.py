"""
Shared fakes for execution tests.

Nothing here talks to a node or sleeps for real.
"""

import asyncio
from typing import Any, List
from unittest.mock import AsyncMock

import pytest


OPERATOR = 0x05598089625602DB226A2149C5B2E47D985E56C5201007707B5623C146896295
ROULETTE = 0x0123
VRF_PROVIDER = 0x051FEA4450DA9D6AEE758BDEBA88B2F665BCBF549D2C61421AA724E9AC0CED8F
CHAIN_ID = 0x534E5F5345504F4C4941  # SN_SEPOLIA

ESTIMATE_RESPONSE = {
    "gas_consumed": "0x100",
    "gas_price": "0x10",
    "data_gas_consumed": "0x20",
    "data_gas_price": "0x2",
    "overall_fee": "0x1040",
    "unit": "FRI",
}


class VirtualClock:
    """Clock whose time only moves when the code under test sleeps."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []

    def monotonic(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class DummyProvider:
    """Ledger provider stub; every RPC is an AsyncMock."""

    name = "dummy"

    def __init__(self):
        self.get_chain_id = AsyncMock(return_value=CHAIN_ID)
        self.get_nonce = AsyncMock(return_value=7)
        self.call = AsyncMock(return_value=[0])
        self.estimate_fee = AsyncMock(return_value=dict(ESTIMATE_RESPONSE))
        self.add_invoke_transaction = AsyncMock(return_value="0xabc")
        self.get_transaction_receipt = AsyncMock(return_value=None)
        self.close = AsyncMock()


class ScriptedReceipts:
    """
    Receipt fetcher that replays ``responses`` in order, one per poll.

    Exceptions in the script are raised; the last entry repeats forever.
    Poll times are recorded from ``clock``.
    """

    def __init__(self, clock: VirtualClock, responses: List[Any]):
        self.clock = clock
        self.responses = list(responses)
        self.poll_times: List[float] = []

    @property
    def polls(self) -> int:
        return len(self.poll_times)

    async def fetch(self, transaction_hash: str) -> Any:
        self.poll_times.append(self.clock.monotonic())
        index = min(len(self.poll_times), len(self.responses)) - 1
        response = self.responses[index]
        if isinstance(response, BaseException):
            raise response
        return response


class DummySigner:
    """Signer stub returning a fixed two-felt signature."""

    def __init__(self, address: int = OPERATOR):
        self.address = address
        self.signed = []

    async def sign_transaction(self, transaction):
        self.signed.append(transaction)
        return [0x1, 0x2]


def make_dummy_signer(address: str, private_key: str) -> DummySigner:
    return DummySigner(int(address, 16))


def receipt(execution_status: str, finality_status: str, **extra: Any) -> dict:
    raw = {
        "type": "INVOKE",
        "transaction_hash": "0xabc",
        "execution_status": execution_status,
        "finality_status": finality_status,
    }
    raw.update(extra)
    return raw


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()


@pytest.fixture
def provider() -> DummyProvider:
    return DummyProvider()


@pytest.fixture
def signer() -> DummySigner:
    return DummySigner()
