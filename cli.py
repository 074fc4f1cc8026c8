#!/usr/bin/env python3
"""Place one VRF-backed roulette bet from the command line"""

import argparse
import asyncio
import dataclasses
import sys
from typing import List, Optional

from roulette_vrf.config import ConfigurationError, settings
from roulette_vrf.core.execution.errors import (
    EstimationFailed,
    ExecutionError,
    TransactionRejected,
    TransactionTimeout,
)
from roulette_vrf.core.execution.models import InvokeReceipt
from roulette_vrf.core.execution.signer import load_signer
from roulette_vrf.core.roulette import Bet, BetType, run_bet_transaction
from roulette_vrf.logging_config import setup_logging


DEFAULT_BET_AMOUNT = 10_000_000_000_000


def print_receipt(receipt: InvokeReceipt) -> None:
    """Pretty print an accepted receipt"""
    print(f"✅ Transaction {receipt.transaction_hash} accepted")
    print(f"Finality: {receipt.finality_status}")
    if receipt.block_number is not None:
        print(f"Block: {receipt.block_number}")
    if receipt.actual_fee:
        print(f"Actual Fee: {receipt.actual_fee.amount} {receipt.actual_fee.unit}")
    else:
        print("Actual Fee: not reported in this receipt")


def print_failure(exc: Exception) -> None:
    print(f"❌ {type(exc).__name__}: {exc}")
    if isinstance(exc, (EstimationFailed, TransactionRejected)) and exc.revert_reason:
        print(f"Revert reason: {exc.revert_reason}")
    if isinstance(exc, TransactionTimeout):
        print(f"Polls issued: {exc.polls}")


def build_bet(args: argparse.Namespace) -> Bet:
    split = args.split_bet_value
    corner = args.corner_bet_value
    return Bet(
        game_id=args.game_id,
        user_address=args.user_address or settings.operator_address,
        bet_type=BetType[args.bet_type.upper()],
        bet_value=args.bet_value,
        amount=args.amount,
        split_bet=split is not None,
        split_bet_value=tuple(split or (0, 0)),
        corner_bet=corner is not None,
        corner_bet_value=tuple(corner or (0, 0, 0, 0)),
    )


async def cli_bet(args: argparse.Namespace) -> int:
    """Run one bet transaction, returning the process exit code"""
    try:
        settings.validate_environment()
        signer = load_signer(settings.signer, settings.operator_address, settings.operator_private_key)
        bet = build_bet(args)
    except ConfigurationError as e:
        print(f"❌ Configuration error: {e}")
        return 1
    except (ImportError, AttributeError, TypeError, ValueError, KeyError) as e:
        print(f"❌ Invalid input: {e}")
        return 1

    overrides = {
        key: value
        for key, value in (
            ("poll_interval_ms", args.poll_interval_ms),
            ("timeout_ms", args.timeout_ms),
            ("fee_mode", args.fee_mode),
        )
        if value is not None
    }
    config = dataclasses.replace(settings.to_run_config(), **overrides)

    print(f"🎲 Placing {bet.bet_type.name} bet of {bet.amount} on game {bet.game_id}...")
    try:
        receipt = await run_bet_transaction(
            [bet],
            signer=signer,
            roulette_address=settings.roulette_contract_address,
            vrf_provider_address=settings.vrf_provider_address,
            config=config,
            check_bet_limits=settings.check_bet_limits,
            vrf_source=settings.vrf_source,
        )
    except ExecutionError as e:
        print_failure(e)
        return 1
    except ValueError as e:
        print(f"❌ Invalid transaction: {e}")
        return 1

    print_receipt(receipt)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Roulette VRF bet runner")

    bet = parser.add_argument_group("bet")
    bet.add_argument(
        "--bet-type",
        choices=[t.name.lower() for t in BetType],
        default="red_black",
        help="Bet type (default: red_black)",
    )
    bet.add_argument("--bet-value", type=int, default=0, help="Bet value, e.g. 0 for red (default: 0)")
    bet.add_argument("--amount", type=int, default=DEFAULT_BET_AMOUNT, help="Bet amount in smallest units")
    bet.add_argument("--game-id", type=int, default=0, help="Game id (default: 0)")
    bet.add_argument("--user-address", help="Player address (default: OPERATOR_ADDRESS)")
    bet.add_argument("--split-bet-value", type=int, nargs=2, metavar="N", help="Two numbers for a split bet")
    bet.add_argument("--corner-bet-value", type=int, nargs=4, metavar="N", help="Four numbers for a corner bet")

    run = parser.add_argument_group("transaction")
    run.add_argument("--poll-interval-ms", type=int, help="Receipt polling interval")
    run.add_argument("--timeout-ms", type=int, help="Confirmation deadline")
    run.add_argument("--fee-mode", choices=["L1", "L2"], help="Fee data-availability mode")
    run.add_argument("--log-level", help="Log level (default: LOG_LEVEL or INFO)")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    return asyncio.run(cli_bet(args))


if __name__ == "__main__":
    sys.exit(main())
