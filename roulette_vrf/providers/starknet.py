"""
Starknet JSON-RPC Provider.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import httpx

from .base import LedgerProvider
from ..config import settings
from ..core.execution.calldata import felts_to_hex, get_selector_from_name, to_felt, to_hex
from ..core.execution.errors import (
    RpcErrorKind,
    TransientFetchError,
    classify_http_status,
    rpc_error_for,
)
from ..core.execution.models import InvokeTransaction


logger = logging.getLogger(__name__)

PENDING_BLOCK = "pending"
SKIP_VALIDATE = "SKIP_VALIDATE"


@dataclass
class StarknetRpcConfig:
    rpc_url: str
    timeout_s: float = 30.0
    block_id: str = PENDING_BLOCK


class StarknetRpcProvider(LedgerProvider):
    """
    Thin async client for a Starknet node.

    Every failure leaves this class as a ``StarknetRpcError`` whose ``kind``
    tells callers whether the node has simply not indexed the object yet,
    whether the request is worth repeating, or whether it is wrong.
    """

    name = "starknet"
    timeout_s = 30

    def __init__(
        self,
        config: Optional[StarknetRpcConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config or StarknetRpcConfig(
            rpc_url=settings.rpc_url,
            timeout_s=settings.rpc_request_timeout_seconds,
        )
        self._client = client
        self._ids = itertools.count(1)

    @property
    def rpc_url(self) -> str:
        return self._config.rpc_url

    async def ready(self) -> bool:
        return bool(self._config.rpc_url)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "disabled", "reason": "RPC URL not configured"}

        try:
            chain_id = await self.get_chain_id()
            return {"status": "healthy", "chainId": to_hex(chain_id)}
        except Exception as exc:
            return {"status": "error", "reason": str(exc)}

    async def get_chain_id(self) -> int:
        result = await self._rpc_call("starknet_chainId", [])
        return to_felt(result)

    async def get_nonce(self, address: int) -> int:
        result = await self._rpc_call(
            "starknet_getNonce",
            [self._config.block_id, to_hex(to_felt(address))],
        )
        return to_felt(result)

    async def call(
        self,
        contract_address: int,
        entrypoint: str,
        calldata: Sequence[int] = (),
    ) -> List[int]:
        request = {
            "contract_address": to_hex(to_felt(contract_address)),
            "entry_point_selector": to_hex(get_selector_from_name(entrypoint)),
            "calldata": felts_to_hex(to_felt(value) for value in calldata),
        }
        result = await self._rpc_call("starknet_call", [request, self._config.block_id])
        if not isinstance(result, list):
            raise rpc_error_for("Invalid response for starknet_call", data=result)
        return [to_felt(value) for value in result]

    async def estimate_fee(self, transaction: InvokeTransaction) -> Dict[str, Any]:
        result = await self._rpc_call(
            "starknet_estimateFee",
            [[transaction.to_rpc_dict()], [SKIP_VALIDATE], self._config.block_id],
        )
        if not isinstance(result, list) or not result or not isinstance(result[0], dict):
            raise rpc_error_for("Invalid response for starknet_estimateFee", data=result)
        return result[0]

    async def add_invoke_transaction(self, transaction: InvokeTransaction) -> str:
        result = await self._rpc_call(
            "starknet_addInvokeTransaction",
            [transaction.to_rpc_dict()],
        )
        tx_hash = result.get("transaction_hash") if isinstance(result, dict) else None
        if not isinstance(tx_hash, str):
            raise rpc_error_for("Invalid response for starknet_addInvokeTransaction", data=result)
        return tx_hash

    async def get_transaction_receipt(self, transaction_hash: str) -> Optional[Dict[str, Any]]:
        result = await self._rpc_call("starknet_getTransactionReceipt", [transaction_hash])
        if result is not None and not isinstance(result, dict):
            raise rpc_error_for(
                "Invalid response for starknet_getTransactionReceipt",
                data=result,
                kind=RpcErrorKind.TRANSIENT,
            )
        return result

    async def _rpc_call(self, method: str, params: List[Any]) -> Any:
        if not self._client or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._config.timeout_s)

        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        logger.debug("RPC request %s", method)

        try:
            response = await self._client.post(self._config.rpc_url, json=payload)
        except httpx.TransportError as exc:
            raise TransientFetchError(f"{method} transport error: {exc!r}") from exc

        if response.status_code >= 400:
            raise rpc_error_for(
                f"{method} failed with HTTP {response.status_code}",
                data=response.text[:500],
                kind=classify_http_status(response.status_code),
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise TransientFetchError(f"{method} returned a non-JSON body") from exc

        if not isinstance(body, dict):
            raise TransientFetchError(f"{method} returned an unexpected body")

        error = body.get("error")
        if error is not None:
            if isinstance(error, dict):
                code = error.get("code")
                message = error.get("message", str(error))
                data = error.get("data")
            else:
                code, message, data = None, str(error), None
            raise rpc_error_for(f"{method}: {message}", code=code, data=data)

        if "result" not in body:
            raise TransientFetchError(f"{method} response has neither result nor error")
        return body["result"]

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
