"""
Sub-call builders for the VRF request and the roulette game action.
"""

from typing import Iterable

from ..execution.calldata import FeltLike, encode_array, to_felt
from ..execution.models import SubCall
from .models import Bet, VrfSource


REQUEST_RANDOM_ENTRYPOINT = "request_random"
PLAY_GAME_ENTRYPOINT = "play_game"


def build_request_random_call(
    vrf_provider: FeltLike,
    caller: FeltLike,
    source: VrfSource,
) -> SubCall:
    """
    Build ``request_random(caller, source)`` on the VRF provider.

    ``caller`` is the contract that will consume the random value.
    """
    return SubCall(
        contract_address=vrf_provider,
        entrypoint=REQUEST_RANDOM_ENTRYPOINT,
        calldata=(to_felt(caller), *source.to_calldata()),
    )


def build_play_game_call(roulette_address: FeltLike, bets: Iterable[Bet]) -> SubCall:
    """Build ``play_game(bet: Array<Bet>)`` on the roulette contract."""
    bets = list(bets)
    if not bets:
        raise ValueError("play_game needs at least one bet")
    return SubCall(
        contract_address=roulette_address,
        entrypoint=PLAY_GAME_ENTRYPOINT,
        calldata=tuple(encode_array(bets, Bet.to_calldata)),
    )
