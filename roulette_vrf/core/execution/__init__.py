"""
Transaction Execution Layer

Takes an ordered set of contract calls through one invoke transaction:
- compose_intent: bundles sub-calls into a TransactionIntent
- CostEstimator: simulates the intent and derives resource bounds
- Submitter: signs and sends the transaction once
- classify: maps a receipt to a canonical Status
- ConfirmationPoller: waits for a terminal status under a deadline

Usage:
    from roulette_vrf.core.execution import (
        CostEstimator,
        Submitter,
        ConfirmationPoller,
        compose_intent,
    )

    intent = compose_intent(oracle_call, game_call)
    estimate = await CostEstimator(provider, account).estimate(intent)
    handle = await Submitter(provider, signer).submit(intent, estimate)
    receipt = await ConfirmationPoller(provider).confirm(handle)
"""

from .models import (
    FeeMode,
    Status,
    ConfirmationState,
    SubCall,
    TransactionIntent,
    ResourceBound,
    ResourceBounds,
    ResourceEstimate,
    InvokeTransaction,
    TransactionHandle,
    ActualFee,
    PendingReceipt,
    InvokeReceipt,
    Receipt,
    ExecutionTiming,
    parse_receipt,
)
from .errors import (
    RpcErrorKind,
    ExecutionError,
    StarknetRpcError,
    TransactionNotFound,
    TransientFetchError,
    EstimationFailed,
    SubmissionFailed,
    TransactionRejected,
    TransactionTimeout,
    InvalidTransitionError,
    IntentCompositionError,
    BetOutOfRange,
)
from .composer import compose_intent
from .classifier import classify, is_terminal
from .estimator import CostEstimator
from .signer import Signer, load_signer
from .submitter import Submitter
from .poller import Clock, SystemClock, ConfirmationPoller

__all__ = [
    # Models
    "FeeMode",
    "Status",
    "ConfirmationState",
    "SubCall",
    "TransactionIntent",
    "ResourceBound",
    "ResourceBounds",
    "ResourceEstimate",
    "InvokeTransaction",
    "TransactionHandle",
    "ActualFee",
    "PendingReceipt",
    "InvokeReceipt",
    "Receipt",
    "ExecutionTiming",
    "parse_receipt",
    # Errors
    "RpcErrorKind",
    "ExecutionError",
    "StarknetRpcError",
    "TransactionNotFound",
    "TransientFetchError",
    "EstimationFailed",
    "SubmissionFailed",
    "TransactionRejected",
    "TransactionTimeout",
    "InvalidTransitionError",
    "IntentCompositionError",
    "BetOutOfRange",
    # Pipeline
    "compose_intent",
    "classify",
    "is_terminal",
    "CostEstimator",
    "Signer",
    "load_signer",
    "Submitter",
    "Clock",
    "SystemClock",
    "ConfirmationPoller",
]
