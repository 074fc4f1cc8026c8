"""
Execution error taxonomy.

RPC failures are sorted into a closed set of kinds once, at the provider
boundary, so callers only ever branch on ``RpcErrorKind``.
"""

from enum import Enum
from typing import Any, Optional


class RpcErrorKind(str, Enum):
    """How a failed node request should be treated by callers."""

    NOT_FOUND = "not_found"    # Node has not indexed the object yet
    TRANSIENT = "transient"    # Network hiccup, overload, 5xx
    FATAL = "fatal"            # Request is wrong or node refused it


# Starknet JSON-RPC error codes
TXN_HASH_NOT_FOUND = 29
UNEXPECTED_ERROR = 63

# Generic JSON-RPC codes
INTERNAL_ERROR = -32603
LIMIT_EXCEEDED = -32005

NOT_FOUND_CODES = frozenset({TXN_HASH_NOT_FOUND})
TRANSIENT_CODES = frozenset({UNEXPECTED_ERROR, INTERNAL_ERROR, LIMIT_EXCEEDED})
TOO_MANY_REQUESTS = 429


def classify_rpc_error(code: Optional[int]) -> RpcErrorKind:
    """Map a JSON-RPC error code onto an ``RpcErrorKind``."""
    if code in NOT_FOUND_CODES:
        return RpcErrorKind.NOT_FOUND
    if code in TRANSIENT_CODES:
        return RpcErrorKind.TRANSIENT
    return RpcErrorKind.FATAL


def classify_http_status(status_code: int) -> RpcErrorKind:
    if status_code == TOO_MANY_REQUESTS or status_code >= 500:
        return RpcErrorKind.TRANSIENT
    return RpcErrorKind.FATAL


class ExecutionError(Exception):
    """Base exception for execution errors."""
    pass


class StarknetRpcError(ExecutionError):
    """A node request failed."""

    kind: RpcErrorKind = RpcErrorKind.FATAL

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        data: Any = None,
        kind: Optional[RpcErrorKind] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data
        if kind is not None:
            self.kind = kind

    @property
    def revert_reason(self) -> Optional[str]:
        """Best-effort revert/execution error carried in the error data."""
        data = self.data
        if isinstance(data, str):
            return data
        if isinstance(data, dict):
            for key in ("revert_error", "execution_error"):
                value = data.get(key)
                if value:
                    return value if isinstance(value, str) else str(value)
        return None


class TransactionNotFound(StarknetRpcError):
    """Node does not know the transaction hash (yet)."""

    kind = RpcErrorKind.NOT_FOUND


class TransientFetchError(StarknetRpcError):
    """Recoverable transport or node failure."""

    kind = RpcErrorKind.TRANSIENT


def rpc_error_for(
    message: str,
    code: Optional[int] = None,
    data: Any = None,
    kind: Optional[RpcErrorKind] = None,
) -> StarknetRpcError:
    """Build the exception subclass matching ``kind`` (or the code's kind)."""
    kind = kind or classify_rpc_error(code)
    if kind == RpcErrorKind.NOT_FOUND:
        return TransactionNotFound(message, code=code, data=data)
    if kind == RpcErrorKind.TRANSIENT:
        return TransientFetchError(message, code=code, data=data)
    return StarknetRpcError(message, code=code, data=data)


class EstimationFailed(ExecutionError):
    """Fee estimation (simulation) failed; the intent would not succeed."""

    def __init__(self, message: str, revert_reason: Optional[str] = None):
        super().__init__(message)
        self.revert_reason = revert_reason


class SubmissionFailed(ExecutionError):
    """Transaction could not be handed to the node."""
    pass


class TransactionRejected(ExecutionError):
    """Transaction reverted on-chain."""

    def __init__(
        self,
        message: str,
        transaction_hash: Optional[str] = None,
        revert_reason: Optional[str] = None,
        receipt: Any = None,
    ):
        super().__init__(message)
        self.transaction_hash = transaction_hash
        self.revert_reason = revert_reason
        self.receipt = receipt


class TransactionTimeout(ExecutionError):
    """No terminal status was reached before the deadline."""

    def __init__(
        self,
        message: str,
        transaction_hash: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        polls: int = 0,
    ):
        super().__init__(message)
        self.transaction_hash = transaction_hash
        self.timeout_seconds = timeout_seconds
        self.polls = polls


class InvalidTransitionError(ExecutionError):
    """Confirmation state machine was asked to leave a terminal state."""
    pass


class IntentCompositionError(ValueError):
    """Sub-calls could not be assembled into a transaction intent."""
    pass


class BetOutOfRange(ExecutionError):
    """Bet amount is outside the contract's configured limits."""

    def __init__(self, message: str, amount: int, min_bet: int, max_bet: int):
        super().__init__(message)
        self.amount = amount
        self.min_bet = min_bet
        self.max_bet = max_bet
