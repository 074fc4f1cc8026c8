"""
Cairo calldata builders.

Values are handled as Python ints (felts) and rendered as hex strings only
when they go on the wire.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Sequence, Tuple, Union

from eth_utils import keccak


FIELD_PRIME = 2**251 + 17 * 2**192 + 1
MASK_250 = 2**250 - 1
MAX_U64 = 2**64 - 1
MAX_U128 = 2**128 - 1
MAX_U256 = 2**256 - 1

DEFAULT_ENTRY_POINT_NAME = "__default__"
DEFAULT_L1_ENTRY_POINT_NAME = "__l1_default__"

FeltLike = Union[int, str, bool]


def to_felt(value: FeltLike) -> int:
    """Coerce an int, bool, decimal string or 0x-hex string into a felt."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        felt = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Empty string is not a felt")
        felt = int(text, 16) if text.lower().startswith("0x") else int(text, 10)
    else:
        raise TypeError(f"Cannot convert {type(value).__name__} to felt")

    if felt < 0 or felt >= FIELD_PRIME:
        raise ValueError(f"Value {value!r} is outside the felt range")
    return felt


def to_hex(value: int) -> str:
    return hex(value)


def encode_uint(value: int, max_value: int, type_name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{type_name} must be an int")
    if value < 0 or value > max_value:
        raise ValueError(f"Value {value} does not fit in {type_name}")
    return value


def encode_u64(value: int) -> int:
    return encode_uint(value, MAX_U64, "u64")


def encode_u256(value: int) -> Tuple[int, int]:
    """Split a u256 into its (low, high) u128 limbs."""
    encode_uint(value, MAX_U256, "u256")
    return value & MAX_U128, value >> 128


def decode_u256(low: FeltLike, high: FeltLike) -> int:
    return to_felt(low) + (to_felt(high) << 128)


def encode_bool(value: bool) -> int:
    return 1 if value else 0


def encode_array(items: Iterable[Any], encoder: Callable[[Any], Sequence[int]]) -> List[int]:
    """Serialize a Cairo ``Array<T>``: length prefix followed by each item."""
    encoded: List[int] = []
    count = 0
    for item in items:
        encoded.extend(encoder(item))
        count += 1
    return [count, *encoded]


def encode_fixed_array(values: Sequence[int], size: int, encoder: Callable[[int], int]) -> List[int]:
    """Serialize a Cairo ``[T; N]`` (no length prefix)."""
    if len(values) != size:
        raise ValueError(f"Fixed array expects {size} items, got {len(values)}")
    return [encoder(value) for value in values]


def starknet_keccak(data: bytes) -> int:
    return int.from_bytes(keccak(data), "big") & MASK_250


def get_selector_from_name(name: str) -> int:
    """Entry point selector for a Cairo function name."""
    if not name:
        raise ValueError("Entry point name must not be empty")
    if name in (DEFAULT_ENTRY_POINT_NAME, DEFAULT_L1_ENTRY_POINT_NAME):
        return 0
    return starknet_keccak(name.encode("ascii"))


def encode_execute_calldata(calls: Iterable[Any]) -> List[int]:
    """
    Build account ``__execute__`` calldata for Cairo 1 accounts.

    Layout: ``[n_calls, (to, selector, calldata_len, *calldata) * n_calls]``.
    Each call must expose ``contract_address``, ``selector`` and ``calldata``.
    """
    encoded: List[int] = []
    count = 0
    for call in calls:
        calldata = [to_felt(value) for value in call.calldata]
        encoded.extend(
            [to_felt(call.contract_address), call.selector, len(calldata), *calldata]
        )
        count += 1
    return [count, *encoded]


def felts_to_hex(values: Iterable[int]) -> List[str]:
    return [to_hex(value) for value in values]
