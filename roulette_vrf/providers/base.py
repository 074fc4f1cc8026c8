from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from ..core.execution.models import InvokeTransaction


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: int = 10

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is ready to serve requests"""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""
        pass


class LedgerProvider(Provider):
    """
    Provider for a ledger node that simulates, accepts and reports on
    invoke transactions.

    Failures must be raised as ``StarknetRpcError`` subclasses with their
    ``kind`` already decided.
    """

    @abstractmethod
    async def get_chain_id(self) -> int:
        """Chain identifier used in transaction hashing"""
        pass

    @abstractmethod
    async def get_nonce(self, address: int) -> int:
        """Next nonce for an account"""
        pass

    @abstractmethod
    async def call(self, contract_address: int, entrypoint: str, calldata: Sequence[int] = ()) -> List[int]:
        """Run a read-only contract call"""
        pass

    @abstractmethod
    async def estimate_fee(self, transaction: InvokeTransaction) -> Dict[str, Any]:
        """Simulate a query transaction and return the node's fee estimate"""
        pass

    @abstractmethod
    async def add_invoke_transaction(self, transaction: InvokeTransaction) -> str:
        """Broadcast a signed transaction, returning its hash"""
        pass

    @abstractmethod
    async def get_transaction_receipt(self, transaction_hash: str) -> Optional[Dict[str, Any]]:
        """Fetch the raw receipt for a transaction hash"""
        pass

    async def close(self) -> None:
        """Release network resources"""
        return None
