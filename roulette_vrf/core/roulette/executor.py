"""
Bet Transaction Executor

Runs one roulette round as a single atomic transaction:

1. compose [request_random, play_game]
2. optional bet-limit check against the contract
3. estimate resource bounds
4. sign and submit
5. poll until the transaction is final
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, List, Optional, Union

import structlog

from ..execution.calldata import FeltLike, to_felt
from ..execution.composer import compose_intent
from ..execution.errors import BetOutOfRange
from ..execution.estimator import DEFAULT_OVERHEAD_PERCENT, CostEstimator
from ..execution.models import (
    ExecutionTiming,
    FeeMode,
    InvokeReceipt,
    TransactionIntent,
)
from ..execution.poller import Clock, ConfirmationPoller
from ..execution.signer import Signer
from ..execution.submitter import Submitter
from .calls import build_play_game_call, build_request_random_call
from .contract import RouletteContract
from .models import Bet, VrfSource
from ...providers.starknet import StarknetRpcConfig, StarknetRpcProvider

if TYPE_CHECKING:
    from ...config import RunConfig
    from ...providers.base import LedgerProvider


logger = logging.getLogger(__name__)
_slog = structlog.stdlib.get_logger("roulette.executor")

VRF_SOURCE_NONCE = "nonce"
VRF_SOURCE_GAME = "game"


class BetTransactionExecutor:
    """
    Composes, prices, submits and confirms roulette bet transactions.

    The VRF request always names the roulette contract as the consumer of
    the random value, and always precedes ``play_game`` in the bundle.
    """

    def __init__(
        self,
        provider: "LedgerProvider",
        signer: Signer,
        roulette_address: FeltLike,
        vrf_provider_address: FeltLike,
        fee_mode: Union[FeeMode, str] = FeeMode.L1,
        overhead_percent: int = DEFAULT_OVERHEAD_PERCENT,
        timing: Optional[ExecutionTiming] = None,
        clock: Optional[Clock] = None,
        check_bet_limits: bool = False,
        vrf_source: str = VRF_SOURCE_NONCE,
    ) -> None:
        if vrf_source not in (VRF_SOURCE_NONCE, VRF_SOURCE_GAME):
            raise ValueError(f"Unknown VRF source {vrf_source!r}")

        self.provider = provider
        self.account_address = to_felt(signer.address)
        self.roulette_address = to_felt(roulette_address)
        self.vrf_provider_address = to_felt(vrf_provider_address)
        self.fee_mode = FeeMode(fee_mode)
        self.timing = timing or ExecutionTiming()
        self.check_bet_limits = check_bet_limits
        self.vrf_source = vrf_source

        self.roulette = RouletteContract(provider, self.roulette_address)
        self.estimator = CostEstimator(provider, self.account_address, overhead_percent)
        self.submitter = Submitter(provider, signer)
        self.poller = ConfirmationPoller(provider, clock=clock)

    async def resolve_source(self) -> VrfSource:
        """Seed source for the VRF request: account nonce, or the current game id as salt."""
        if self.vrf_source == VRF_SOURCE_GAME:
            game_id = await self.roulette.get_current_game(self.account_address)
            logger.info("Using game ID %s as salt for VRF request", game_id)
            return VrfSource.salt(game_id)
        return VrfSource.nonce(self.account_address)

    async def ensure_bet_limits(self, bets: List[Bet]) -> None:
        min_bet = await self.roulette.get_min_bet()
        max_bet = await self.roulette.get_max_bet()
        for bet in bets:
            if not min_bet <= bet.amount <= max_bet:
                raise BetOutOfRange(
                    f"Bet amount {bet.amount} outside contract limits [{min_bet}, {max_bet}]",
                    amount=bet.amount,
                    min_bet=min_bet,
                    max_bet=max_bet,
                )

    def build_intent(self, bets: Iterable[Bet], source: VrfSource) -> TransactionIntent:
        oracle_call = build_request_random_call(
            self.vrf_provider_address,
            caller=self.roulette_address,
            source=source,
        )
        game_call = build_play_game_call(self.roulette_address, bets)
        return compose_intent(oracle_call, game_call)

    async def run_bet_transaction(
        self,
        bets: Iterable[Bet],
        timing: Optional[ExecutionTiming] = None,
        source: Optional[VrfSource] = None,
    ) -> InvokeReceipt:
        """
        Execute one VRF-backed roulette round.

        Phases run strictly in order; a failure in any phase stops the run
        and nothing later executes. In particular a failed estimate means
        nothing is ever submitted.

        Returns:
            The accepted receipt

        Raises:
            IntentCompositionError / ValueError: malformed bets or calls
            BetOutOfRange: amount outside contract limits (when checked)
            EstimationFailed, SubmissionFailed, TransactionRejected,
            TransactionTimeout, StarknetRpcError
        """
        bets = list(bets)
        timing = timing or self.timing

        if source is None:
            source = await self.resolve_source()
        intent = self.build_intent(bets, source)

        if self.check_bet_limits:
            await self.ensure_bet_limits(bets)

        logger.info("Estimating fee for %s", " -> ".join(intent.entrypoints))
        estimate = await self.estimator.estimate(intent, self.fee_mode)

        handle = await self.submitter.submit(intent, estimate)

        with structlog.contextvars.bound_contextvars(transaction_hash=handle.transaction_hash):
            _slog.info(
                "bet_transaction_submitted",
                bets=len(bets),
                nonce=handle.nonce,
                max_fee=estimate.suggested_max_fee,
            )
            receipt = await self.poller.confirm(handle, timing)
            _slog.info(
                "bet_transaction_accepted",
                finality_status=receipt.finality_status,
                actual_fee=receipt.actual_fee.amount if receipt.actual_fee else None,
                fee_unit=receipt.actual_fee.unit if receipt.actual_fee else None,
            )
        return receipt


async def run_bet_transaction(
    bets: Iterable[Bet],
    signer: Signer,
    roulette_address: FeltLike,
    vrf_provider_address: FeltLike,
    config: "RunConfig",
    timing: Optional[ExecutionTiming] = None,
    clock: Optional[Clock] = None,
    check_bet_limits: bool = False,
    vrf_source: str = VRF_SOURCE_NONCE,
) -> InvokeReceipt:
    """
    Run one bet transaction against the node named in ``config``.

    The RPC client is created for this run and closed afterwards.
    """
    provider = StarknetRpcProvider(
        StarknetRpcConfig(
            rpc_url=config.rpc_endpoint,
            timeout_s=config.request_timeout_seconds,
        )
    )
    timing = timing or ExecutionTiming(
        poll_interval_ms=config.poll_interval_ms,
        timeout_ms=config.timeout_ms,
    )
    executor = BetTransactionExecutor(
        provider,
        signer,
        roulette_address=roulette_address,
        vrf_provider_address=vrf_provider_address,
        fee_mode=config.fee_mode,
        overhead_percent=config.fee_overhead_percent,
        timing=timing,
        clock=clock,
        check_bet_limits=check_bet_limits,
        vrf_source=vrf_source,
    )
    try:
        return await executor.run_bet_transaction(bets)
    finally:
        await provider.close()
