"""
Signer seam.

Key management and transaction hashing live outside this package; the
submitter only needs something that can turn an unsigned invoke transaction
into a signature.
"""

from __future__ import annotations

import importlib
import inspect
from typing import Any, Callable, List, Protocol, Sequence, runtime_checkable

from .calldata import to_felt
from .models import InvokeTransaction


@runtime_checkable
class Signer(Protocol):
    """Protocol for account signers"""

    address: int

    async def sign_transaction(self, transaction: InvokeTransaction) -> Sequence[int]:
        """Return the signature felts for ``transaction`` (chain id is set)"""
        ...


SignerFactory = Callable[[str, str], Any]


def load_signer(path: str, address: str, private_key: str) -> Signer:
    """
    Instantiate a signer from an import path ``package.module:factory``.

    The factory is called as ``factory(address, private_key)``.
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Signer path must look like 'package.module:factory', got {path!r}")

    module = importlib.import_module(module_name)
    factory: SignerFactory = getattr(module, attr)
    signer = factory(address, private_key)

    if not hasattr(signer, "address") or not inspect.iscoroutinefunction(
        getattr(signer, "sign_transaction", None)
    ):
        raise TypeError(f"{path} did not produce a Signer (needs address and async sign_transaction)")
    return signer


def signature_felts(signature: Sequence[Any]) -> List[int]:
    return [to_felt(value) for value in signature]
