"""
Roulette bet payloads and their Cairo serialization.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence

from ..execution.calldata import (
    FeltLike,
    encode_bool,
    encode_fixed_array,
    encode_u64,
    encode_u256,
    to_felt,
)


SPLIT_BET_SIZE = 2
CORNER_BET_SIZE = 4


class BetType(int, Enum):
    """Mirrors the contract's bet type enum."""
    STRAIGHT = 0
    RED_BLACK = 1
    EVEN_ODD = 2
    COLUMN = 3
    DOZEN = 4
    HIGH_LOW = 5


@dataclass(frozen=True)
class Bet:
    """A single roulette bet (``types::Bet`` in the contract)."""
    game_id: int
    user_address: FeltLike
    bet_type: BetType
    bet_value: int
    amount: int                                   # u256, smallest units
    split_bet: bool = False
    split_bet_value: Sequence[int] = (0, 0)
    corner_bet: bool = False
    corner_bet_value: Sequence[int] = (0, 0, 0, 0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "bet_type", BetType(self.bet_type))
        object.__setattr__(self, "user_address", to_felt(self.user_address))
        object.__setattr__(self, "split_bet_value", tuple(self.split_bet_value))
        object.__setattr__(self, "corner_bet_value", tuple(self.corner_bet_value))
        # Validate eagerly so bad payloads never reach the node
        self.to_calldata()

    def to_calldata(self) -> List[int]:
        low, high = encode_u256(self.amount)
        return [
            encode_u64(self.game_id),
            to_felt(self.user_address),
            encode_u64(int(self.bet_type)),
            encode_u64(self.bet_value),
            low,
            high,
            encode_bool(self.split_bet),
            *encode_fixed_array(self.split_bet_value, SPLIT_BET_SIZE, encode_u64),
            encode_bool(self.corner_bet),
            *encode_fixed_array(self.corner_bet_value, CORNER_BET_SIZE, encode_u64),
        ]


@dataclass(frozen=True)
class VrfSource:
    """
    Seed source passed to ``request_random``.

    ``Nonce(address)`` draws from the address's VRF nonce; ``Salt(felt)``
    uses a caller-chosen salt.
    """
    variant: int
    value: int

    NONCE = 0
    SALT = 1

    @classmethod
    def nonce(cls, address: FeltLike) -> "VrfSource":
        return cls(variant=cls.NONCE, value=to_felt(address))

    @classmethod
    def salt(cls, value: FeltLike) -> "VrfSource":
        return cls(variant=cls.SALT, value=to_felt(value))

    def to_calldata(self) -> List[int]:
        return [self.variant, self.value]
