"""
Receipt status classification.
"""

from typing import Optional

from .models import (
    TERMINAL_STATUSES,
    ExecutionStatus,
    FinalityStatus,
    InvokeReceipt,
    Receipt,
    Status,
)


def classify(receipt: Optional[Receipt]) -> Status:
    """
    Map a receipt (or its absence) to a canonical ``Status``.

    Rules, first match wins:
    1. absent / pending shape             -> RECEIVED
    2. execution REVERTED                 -> REJECTED
    3. ACCEPTED_ON_L2 + SUCCEEDED         -> ACCEPTED_L2
    4. ACCEPTED_ON_L2 + anything else     -> REJECTED
    5. ACCEPTED_ON_L1                     -> ACCEPTED_L1
    6. otherwise                          -> RECEIVED
    """
    if not isinstance(receipt, InvokeReceipt):
        return Status.RECEIVED

    if receipt.execution_status == ExecutionStatus.REVERTED.value:
        return Status.REJECTED

    if receipt.finality_status == FinalityStatus.ACCEPTED_ON_L2.value:
        if receipt.execution_status == ExecutionStatus.SUCCEEDED.value:
            return Status.ACCEPTED_L2
        return Status.REJECTED

    if receipt.finality_status == FinalityStatus.ACCEPTED_ON_L1.value:
        return Status.ACCEPTED_L1

    return Status.RECEIVED


def is_terminal(status: Status) -> bool:
    return status in TERMINAL_STATUSES
