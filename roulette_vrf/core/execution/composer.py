"""
Multicall composition.
"""

from .errors import IntentCompositionError
from .models import SubCall, TransactionIntent


def _check_call(call: SubCall, role: str) -> SubCall:
    if not isinstance(call, SubCall):
        raise IntentCompositionError(
            f"{role} must be a SubCall, got {type(call).__name__}"
        )
    if not call.entrypoint:
        raise IntentCompositionError(f"{role} has no entrypoint")
    if call.contract_address == 0:
        raise IntentCompositionError(f"{role} targets the zero address")
    return call


def compose_intent(oracle_call: SubCall, game_call: SubCall) -> TransactionIntent:
    """
    Bundle the randomness request and the consuming game call.

    The oracle request always comes first so the VRF value is available when
    the game call runs in the same transaction.
    """
    return TransactionIntent(
        calls=(
            _check_call(oracle_call, "oracle_call"),
            _check_call(game_call, "game_call"),
        )
    )
