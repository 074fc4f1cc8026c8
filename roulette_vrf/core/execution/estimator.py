"""
Resource cost estimation for invoke transactions.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

from .calldata import to_felt
from .errors import EstimationFailed, StarknetRpcError
from .models import (
    QUERY_VERSION_BASE,
    TRANSACTION_VERSION_3,
    FeeMode,
    InvokeTransaction,
    ResourceBound,
    ResourceBounds,
    ResourceEstimate,
    TransactionIntent,
)

if TYPE_CHECKING:
    from ...providers.base import LedgerProvider


logger = logging.getLogger(__name__)

DEFAULT_OVERHEAD_PERCENT = 50


def add_percent(value: int, percent: int) -> int:
    return value + value * percent // 100


def estimate_from_rpc(
    data: Dict[str, Any],
    fee_mode: FeeMode = FeeMode.L1,
    overhead_percent: int = DEFAULT_OVERHEAD_PERCENT,
) -> ResourceEstimate:
    """
    Derive declared resource bounds from a node fee estimate.

    When the node reports data-gas, the L1 gas amount is taken from the
    overall fee so blob data is covered too.

    Raises:
        ValueError: no usable gas price, or neither the overall fee nor
            the gas consumed
    """
    def parse(key: str) -> Optional[int]:
        value = data.get(key)
        return None if value is None else to_felt(value)

    gas_price = parse("gas_price")
    if gas_price is None:
        raise ValueError(f"Fee estimate has no gas_price: {sorted(data)}")

    gas_consumed = parse("gas_consumed")
    overall_fee = parse("overall_fee")
    if gas_consumed is None and overall_fee is None:
        raise ValueError(f"Fee estimate has neither overall_fee nor gas_consumed: {sorted(data)}")
    if overall_fee is None:
        overall_fee = gas_consumed * gas_price

    data_gas_consumed = parse("data_gas_consumed")
    data_gas_price = parse("data_gas_price")
    has_data_gas = data_gas_consumed is not None and data_gas_price is not None

    if gas_consumed is None or (has_data_gas and gas_price > 0):
        if gas_price == 0:
            raise ValueError("Fee estimate has a zero gas_price and no gas_consumed")
        max_amount = add_percent(overall_fee // gas_price, overhead_percent)
    else:
        max_amount = add_percent(gas_consumed, overhead_percent)

    bounds = ResourceBounds(
        l1_gas=ResourceBound(
            max_amount=max_amount,
            max_price_per_unit=add_percent(gas_price, overhead_percent),
        ),
        l2_gas=ResourceBound(),
    )
    return ResourceEstimate(
        resource_bounds=bounds,
        overall_fee=overall_fee,
        suggested_max_fee=add_percent(overall_fee, overhead_percent),
        gas_consumed=gas_consumed or 0,
        gas_price=gas_price,
        data_gas_consumed=data_gas_consumed,
        data_gas_price=data_gas_price,
        unit=str(data.get("unit", "FRI")),
        fee_mode=fee_mode,
    )


class CostEstimator:
    """
    Asks the node to simulate an intent and prices it.

    Failures are not retried: re-simulating against unchanged state gives
    the same answer.
    """

    def __init__(
        self,
        provider: "LedgerProvider",
        account_address: int,
        overhead_percent: int = DEFAULT_OVERHEAD_PERCENT,
    ) -> None:
        self.provider = provider
        self.account_address = to_felt(account_address)
        self.overhead_percent = overhead_percent

    async def estimate(
        self,
        intent: TransactionIntent,
        fee_mode: Union[FeeMode, str] = FeeMode.L1,
    ) -> ResourceEstimate:
        """
        Estimate resources for ``intent``.

        Raises:
            EstimationFailed: empty intent, node rejection or bad response
        """
        if not len(intent):
            raise EstimationFailed("Cannot estimate an empty transaction intent")
        fee_mode = FeeMode(fee_mode)

        try:
            nonce = await self.provider.get_nonce(self.account_address)
            query = InvokeTransaction(
                sender_address=self.account_address,
                calldata=intent.to_execute_calldata(),
                nonce=nonce,
                resource_bounds=ResourceBounds(),
                fee_mode=fee_mode,
                version=QUERY_VERSION_BASE + TRANSACTION_VERSION_3,
            )
            raw = await self.provider.estimate_fee(query)
            estimate = estimate_from_rpc(raw, fee_mode, self.overhead_percent)
        except StarknetRpcError as exc:
            logger.error("Fee estimation failed: %s", exc)
            raise EstimationFailed(
                f"Failed to estimate fee: {exc}",
                revert_reason=exc.revert_reason,
            ) from exc
        except (TypeError, ValueError) as exc:
            logger.error("Fee estimation returned unusable data: %s", exc)
            raise EstimationFailed(f"Invalid fee estimate: {exc}") from exc

        logger.info(
            "Estimated fee %s %s for %s (l1_gas max_amount=%s max_price=%s)",
            estimate.overall_fee,
            estimate.unit,
            " -> ".join(intent.entrypoints),
            estimate.resource_bounds.l1_gas.max_amount,
            estimate.resource_bounds.l1_gas.max_price_per_unit,
        )
        return estimate
