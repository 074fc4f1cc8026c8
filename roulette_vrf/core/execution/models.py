"""
Transaction execution models and types.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from .calldata import (
    FeltLike,
    encode_execute_calldata,
    felts_to_hex,
    get_selector_from_name,
    to_felt,
    to_hex,
)


TRANSACTION_VERSION_3 = 0x3
QUERY_VERSION_BASE = 2**128


class FeeMode(str, Enum):
    """Data-availability mode used for nonce and fee accounting."""
    L1 = "L1"
    L2 = "L2"


class ExecutionStatus(str, Enum):
    SUCCEEDED = "SUCCEEDED"
    REVERTED = "REVERTED"


class FinalityStatus(str, Enum):
    RECEIVED = "RECEIVED"
    ACCEPTED_ON_L2 = "ACCEPTED_ON_L2"
    ACCEPTED_ON_L1 = "ACCEPTED_ON_L1"
    REJECTED = "REJECTED"


class Status(str, Enum):
    """Canonical transaction status derived from a receipt."""
    RECEIVED = "RECEIVED"          # Pending, unknown or not yet indexed
    ACCEPTED_L2 = "ACCEPTED_L2"    # Final on L2
    ACCEPTED_L1 = "ACCEPTED_L1"    # Final on L1
    REJECTED = "REJECTED"          # Reverted


TERMINAL_STATUSES = frozenset({Status.ACCEPTED_L2, Status.ACCEPTED_L1, Status.REJECTED})


class ConfirmationState(str, Enum):
    """States of a single confirmation wait."""
    POLLING = "polling"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class SubCall:
    """
    One contract invocation inside a multicall.

    Addresses and calldata accept anything ``to_felt`` understands and are
    normalised to ints on construction.
    """
    contract_address: FeltLike
    entrypoint: str
    calldata: Sequence[FeltLike] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "contract_address", to_felt(self.contract_address))
        object.__setattr__(self, "calldata", tuple(to_felt(v) for v in self.calldata))

    @property
    def selector(self) -> int:
        return get_selector_from_name(self.entrypoint)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contract_address": to_hex(self.contract_address),
            "entrypoint": self.entrypoint,
            "calldata": felts_to_hex(self.calldata),
        }


@dataclass(frozen=True)
class TransactionIntent:
    """Ordered sub-calls executed atomically. Order is never changed."""
    calls: Tuple[SubCall, ...]

    def __iter__(self) -> Iterator[SubCall]:
        return iter(self.calls)

    def __len__(self) -> int:
        return len(self.calls)

    @property
    def entrypoints(self) -> List[str]:
        return [call.entrypoint for call in self.calls]

    def to_execute_calldata(self) -> List[int]:
        return encode_execute_calldata(self.calls)


@dataclass(frozen=True)
class ResourceBound:
    max_amount: int = 0
    max_price_per_unit: int = 0

    def to_rpc_dict(self) -> Dict[str, str]:
        return {
            "max_amount": to_hex(self.max_amount),
            "max_price_per_unit": to_hex(self.max_price_per_unit),
        }


@dataclass(frozen=True)
class ResourceBounds:
    l1_gas: ResourceBound = field(default_factory=ResourceBound)
    l2_gas: ResourceBound = field(default_factory=ResourceBound)

    def to_rpc_dict(self) -> Dict[str, Dict[str, str]]:
        return {
            "l1_gas": self.l1_gas.to_rpc_dict(),
            "l2_gas": self.l2_gas.to_rpc_dict(),
        }


@dataclass(frozen=True)
class ResourceEstimate:
    """Node fee estimate plus the bounds that will be declared on submit."""
    resource_bounds: ResourceBounds
    overall_fee: int
    suggested_max_fee: int
    gas_consumed: int
    gas_price: int
    data_gas_consumed: Optional[int] = None
    data_gas_price: Optional[int] = None
    unit: str = "FRI"
    fee_mode: FeeMode = FeeMode.L1


@dataclass
class InvokeTransaction:
    """Invoke v3 transaction as sent to ``starknet_addInvokeTransaction``."""
    sender_address: int
    calldata: List[int]
    nonce: int
    resource_bounds: ResourceBounds
    chain_id: Optional[int] = None
    fee_mode: FeeMode = FeeMode.L1
    version: int = TRANSACTION_VERSION_3
    tip: int = 0
    signature: List[int] = field(default_factory=list)
    paymaster_data: List[int] = field(default_factory=list)
    account_deployment_data: List[int] = field(default_factory=list)

    @property
    def is_query(self) -> bool:
        return self.version >= QUERY_VERSION_BASE

    def to_rpc_dict(self) -> Dict[str, Any]:
        return {
            "type": "INVOKE",
            "sender_address": to_hex(self.sender_address),
            "calldata": felts_to_hex(self.calldata),
            "version": to_hex(self.version),
            "signature": felts_to_hex(self.signature),
            "nonce": to_hex(self.nonce),
            "resource_bounds": self.resource_bounds.to_rpc_dict(),
            "tip": to_hex(self.tip),
            "paymaster_data": felts_to_hex(self.paymaster_data),
            "account_deployment_data": felts_to_hex(self.account_deployment_data),
            "nonce_data_availability_mode": self.fee_mode.value,
            "fee_data_availability_mode": self.fee_mode.value,
        }


@dataclass(frozen=True)
class TransactionHandle:
    """Identifier returned by the node after submission."""
    transaction_hash: str
    sender_address: Optional[str] = None
    nonce: Optional[int] = None


@dataclass(frozen=True)
class ActualFee:
    amount: int
    unit: str = "WEI"

    @classmethod
    def from_rpc(cls, data: Any) -> Optional["ActualFee"]:
        # Older nodes return a bare hex amount
        if data is None:
            return None
        if isinstance(data, dict):
            amount = data.get("amount")
            if amount is None:
                return None
            return cls(amount=to_felt(amount), unit=str(data.get("unit", "WEI")))
        return cls(amount=to_felt(data))


@dataclass(frozen=True)
class PendingReceipt:
    """No receipt yet, or a receipt without execution/finality fields."""
    transaction_hash: str
    raw: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class InvokeReceipt:
    """Receipt carrying both execution and finality status."""
    transaction_hash: str
    execution_status: str
    finality_status: str
    revert_reason: Optional[str] = None
    actual_fee: Optional[ActualFee] = None
    block_hash: Optional[str] = None
    block_number: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)


Receipt = Union[PendingReceipt, InvokeReceipt]


def parse_receipt(transaction_hash: str, raw: Optional[Dict[str, Any]]) -> Receipt:
    """Turn a raw node receipt into the tagged ``Receipt`` variant."""
    if not isinstance(raw, dict):
        return PendingReceipt(transaction_hash=transaction_hash)

    execution_status = raw.get("execution_status")
    finality_status = raw.get("finality_status")
    if execution_status is None or finality_status is None:
        return PendingReceipt(transaction_hash=transaction_hash, raw=raw)

    block_number = raw.get("block_number")
    return InvokeReceipt(
        transaction_hash=raw.get("transaction_hash") or transaction_hash,
        execution_status=str(execution_status),
        finality_status=str(finality_status),
        revert_reason=raw.get("revert_reason"),
        actual_fee=ActualFee.from_rpc(raw.get("actual_fee")),
        block_hash=raw.get("block_hash"),
        block_number=int(block_number) if block_number is not None else None,
        raw=raw,
    )


@dataclass(frozen=True)
class ExecutionTiming:
    """Polling cadence and deadline for a confirmation wait."""
    poll_interval_ms: int = 5000
    timeout_ms: int = 180000
    backoff_factor: float = 1.0            # 1.0 keeps the interval fixed
    max_poll_interval_ms: Optional[int] = None

    def __post_init__(self) -> None:
        if self.poll_interval_ms <= 0:
            raise ValueError("poll_interval_ms must be positive")
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        if self.backoff_factor < 1.0:
            raise ValueError("backoff_factor must be >= 1.0")

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    @property
    def max_poll_interval_seconds(self) -> Optional[float]:
        if self.max_poll_interval_ms is None:
            return None
        return self.max_poll_interval_ms / 1000
