"""Method-call payload encoding and unit conversion.

The selector of a contract method is the first four bytes of the
keccak-256 hash of its canonical signature, e.g. ``deposit()`` or
``isBatchFinalized(uint256)``. Only the declared argument types take
part in the selector; argument values are ABI-encoded after it.

Example:
    >>> pack_method_data("deposit").hex()
    'd0e30db0'
    >>> balance_to_ether(10**18)
    Decimal('1')
"""
import re
from decimal import Decimal
from typing import Any, Iterable, Sequence, Tuple

from eth_abi import encode
from eth_utils import is_address, keccak, to_checksum_address
from web3 import Web3

from .constants import SELECTOR_LENGTH
from .errors import ValidationError
from .models import MethodCall

__all__ = [
    "canonical_type",
    "method_signature",
    "method_selector",
    "encode_arguments",
    "pack_method_data",
    "balance_to_ether",
]

# Elementary ABI types with optional array suffixes, e.g. uint256, bytes32[], address[2]
_TYPE_PATTERN = re.compile(r"^(u?int|bytes|address|bool|string|u?fixed)([0-9x]*)((\[[0-9]*\])*)$")
_INT_PATTERN = re.compile(r"^(u?int)([0-9]*)$")
_BYTES_PATTERN = re.compile(r"^bytes([0-9]*)$")
_METHOD_PATTERN = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def _valid_int_width(size: str) -> bool:
    return size.isdigit() and 8 <= int(size) <= 256 and int(size) % 8 == 0


def canonical_type(type_name: str) -> str:
    """Return the canonical spelling of an ABI type name.

    ``uint`` and ``int`` are aliases for ``uint256`` and ``int256``.

    Raises:
        ValidationError: If the name is not an ABI type
    """
    name = type_name.strip() if isinstance(type_name, str) else ""
    match = _TYPE_PATTERN.match(name)
    if not match:
        raise ValidationError(f"Unsupported ABI type {type_name!r}")
    base, size, arrays = match.group(1), match.group(2), match.group(3)
    if base in ("uint", "int") and not size:
        size = "256"
    if base in ("uint", "int") and not _valid_int_width(size):
        raise ValidationError(f"Invalid integer width in ABI type {type_name!r}")
    if base == "bytes" and size and not (size.isdigit() and 1 <= int(size) <= 32):
        raise ValidationError(f"Invalid byte width in ABI type {type_name!r}")
    if base in ("address", "bool", "string") and size:
        raise ValidationError(f"Unsupported ABI type {type_name!r}")
    return f"{base}{size}{arrays}"


def method_signature(method: str, arg_types: Iterable[str] = ()) -> str:
    """Build ``method(type1,type2,...)``; no arguments gives ``method()``."""
    if not isinstance(method, str) or not _METHOD_PATTERN.match(method):
        raise ValidationError(f"Invalid method name {method!r}")
    types = [canonical_type(t) for t in arg_types]
    return f"{method}({','.join(types)})"


def method_selector(method: str, arg_types: Iterable[str] = ()) -> bytes:
    """Compute the 4-byte selector for a method and its argument types."""
    # keccak-256, not NIST SHA3-256
    return keccak(text=method_signature(method, arg_types))[:SELECTOR_LENGTH]


def _coerce_int(arg_type: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{arg_type} value must be an integer, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if text.lower().startswith(("0x", "-0x")):
                return int(text, 16)
            return int(text, 10)
        except ValueError:
            pass
    raise ValidationError(f"{arg_type} value {value!r} is not an integer")


def _coerce_bytes(arg_type: str, value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        hex_str = value[2:] if value.startswith("0x") else value
        try:
            return bytes.fromhex(hex_str)
        except ValueError:
            pass
    raise ValidationError(f"{arg_type} value {value!r} is not hex bytes")


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "1"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("false", "0"):
        return False
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise ValidationError(f"bool value {value!r} is not a boolean")


def _coerce_value(arg_type: str, value: Any) -> Any:
    """Convert a caller-supplied value (often a string) for eth-abi."""
    if _INT_PATTERN.match(arg_type):
        return _coerce_int(arg_type, value)
    if arg_type == "address":
        if not isinstance(value, str) or not is_address(value):
            raise ValidationError(f"address value {value!r} is not a valid address")
        return to_checksum_address(value)
    if arg_type == "bool":
        return _coerce_bool(value)
    if _BYTES_PATTERN.match(arg_type):
        return _coerce_bytes(arg_type, value)
    if arg_type == "string":
        if not isinstance(value, str):
            raise ValidationError(f"string value {value!r} is not a string")
        return value
    raise ValidationError(f"Encoding values of type {arg_type!r} is not supported")


def encode_arguments(args: Sequence[Tuple[str, Any]]) -> bytes:
    """ABI-encode the values of ``(type, value)`` pairs."""
    if not args:
        return b""
    types = [canonical_type(t) for t, _ in args]
    values = [_coerce_value(t, v) for t, (_, v) in zip(types, args)]
    try:
        return encode(types, values)
    except Exception as e:
        raise ValidationError(f"Cannot ABI-encode arguments {types}: {e}") from e


def pack_method_data(method: str, *args: Tuple[str, Any]) -> bytes:
    """Build a call payload: selector followed by encoded argument values.

    Args:
        method: Contract method name
        *args: ``(type, value)`` pairs in declaration order

    Returns:
        Call data bytes
    """
    call = MethodCall(method=method, args=tuple(tuple(a) for a in args))
    selector = method_selector(call.method, call.arg_types)
    return selector + encode_arguments(call.args)


def balance_to_ether(balance: int, unit: str = "ether") -> Decimal:
    """Convert a wei balance into a decimal amount of ``unit``.

    Raises:
        ValidationError: If the balance is not a non-negative integer
    """
    if isinstance(balance, bool) or not isinstance(balance, int):
        raise ValidationError(f"balance must be an integer, got {type(balance).__name__}")
    try:
        return Decimal(Web3.from_wei(balance, unit))
    except ValueError as e:
        raise ValidationError(f"Cannot convert balance {balance}: {e}") from e
