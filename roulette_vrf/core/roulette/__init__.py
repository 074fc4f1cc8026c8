"""
Roulette game payloads and the bet transaction flow

- Bet / BetType: the contract's bet struct
- VrfSource: seed source for the VRF request
- build_request_random_call / build_play_game_call: sub-call builders
- RouletteContract: view calls (current game, bet limits)
- BetTransactionExecutor / run_bet_transaction: compose, estimate, submit, confirm
"""

from .models import Bet, BetType, VrfSource
from .calls import (
    PLAY_GAME_ENTRYPOINT,
    REQUEST_RANDOM_ENTRYPOINT,
    build_play_game_call,
    build_request_random_call,
)
from .contract import RouletteContract
from .executor import BetTransactionExecutor, run_bet_transaction

__all__ = [
    "Bet",
    "BetType",
    "VrfSource",
    "PLAY_GAME_ENTRYPOINT",
    "REQUEST_RANDOM_ENTRYPOINT",
    "build_play_game_call",
    "build_request_random_call",
    "RouletteContract",
    "BetTransactionExecutor",
    "run_bet_transaction",
]
