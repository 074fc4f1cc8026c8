"""
Read-only views on the roulette contract.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from ..execution.calldata import FeltLike, decode_u256, to_felt

if TYPE_CHECKING:
    from ...providers.base import LedgerProvider


class RouletteContract:
    """View calls used to prepare a bet transaction."""

    def __init__(
        self,
        provider: "LedgerProvider",
        address: FeltLike,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.provider = provider
        self.address = to_felt(address)
        self.logger = logger or logging.getLogger(__name__)

    async def get_current_game(self, player: FeltLike) -> int:
        result = await self.provider.call(self.address, "get_current_game", [to_felt(player)])
        if not result:
            raise ValueError("get_current_game returned no data")
        self.logger.debug("Current game for %s: %s", hex(to_felt(player)), result[0])
        return result[0]

    async def get_min_bet(self) -> int:
        return await self._call_u256("get_min_bet")

    async def get_max_bet(self) -> int:
        return await self._call_u256("get_max_bet")

    async def _call_u256(self, entrypoint: str) -> int:
        result = await self.provider.call(self.address, entrypoint, [])
        if len(result) < 2:
            raise ValueError(f"{entrypoint} returned {len(result)} felts, expected a u256")
        return decode_u256(result[0], result[1])
