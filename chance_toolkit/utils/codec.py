"""
Byte and integer codecs for on-chain draw data.

Every on-chain quantity (weights, tickets, reward amounts) stays an
arbitrary-precision int end to end. Floats are rejected here so they can
never leak into ticket or range arithmetic.
"""

from decimal import Decimal
from typing import Iterable, Optional, Sequence, Union

from eth_utils import is_hexstr, remove_0x_prefix

from chance_toolkit.shared.constants import HashConstants
from chance_toolkit.shared.exceptions import (
    LengthMismatch,
    MalformedHex,
    PayloadError,
)

BytesLike = Union[bytes, bytearray, str, Sequence[int]]


def hex_to_bytes(value: str, expected_length: Optional[int] = None) -> bytes:
    """
    Decode a hex string (optionally 0x-prefixed) into bytes.

    Args:
        value: Hex string
        expected_length: Required byte length, if the field is fixed-width

    Returns:
        Decoded bytes

    Raises:
        MalformedHex: Odd length or non-hex characters
        LengthMismatch: Decoded length differs from expected_length
    """
    if not isinstance(value, str) or not is_hexstr(value):
        raise MalformedHex(f"Not a hex string: {value!r}")

    digits = remove_0x_prefix(value)
    if len(digits) % 2:
        raise MalformedHex(f"Odd-length hex string ({len(digits)} digits)")

    data = bytes.fromhex(digits)
    if expected_length is not None and len(data) != expected_length:
        raise LengthMismatch("hex value", expected_length, len(data))
    return data


def bytes_to_hex(data: bytes, prefix: bool = False) -> str:
    """Encode bytes as lowercase hex, without 0x unless prefix is set."""
    encoded = bytes(data).hex()
    return f"0x{encoded}" if prefix else encoded


def bytes_to_uint128_be(data: bytes) -> int:
    """Interpret exactly 16 bytes as a big-endian unsigned integer."""
    if len(data) != HashConstants.UINT128_SIZE:
        raise LengthMismatch(
            "uint128 window", HashConstants.UINT128_SIZE, len(data)
        )
    return int.from_bytes(data, byteorder="big", signed=False)


def uint128_to_be_bytes(value: int) -> bytes:
    """Encode an unsigned integer below 2**128 as 16 big-endian bytes."""
    if value < 0 or value > HashConstants.UINT128_MAX:
        raise LengthMismatch(
            "uint128 value",
            HashConstants.UINT128_SIZE,
            (max(value.bit_length(), 1) + 7) // 8,
        )
    return value.to_bytes(HashConstants.UINT128_SIZE, byteorder="big")


def concat_bytes(*parts: Iterable[int]) -> bytes:
    return b"".join(bytes(part) for part in parts)


def to_bytes(value: BytesLike, field: str = "value") -> bytes:
    """
    Normalise a byte field from the forms chain payloads use.

    CosmWasm JSON encodes Vec<u8> as an array of ints while hashes are
    usually hex strings, so both are accepted alongside raw bytes.
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return hex_to_bytes(value)
    if isinstance(value, (list, tuple)):
        if not all(
            isinstance(b, int) and not isinstance(b, bool) and 0 <= b <= 255
            for b in value
        ):
            raise MalformedHex(f"{field}: byte array holds non-byte values")
        return bytes(value)
    raise MalformedHex(f"{field}: unsupported byte encoding {type(value).__name__}")


def to_bytes32(value: BytesLike, field: str = "hash") -> bytes:
    """Normalise a 32-byte field, raising LengthMismatch on any other size."""
    data = to_bytes(value, field)
    if len(data) != HashConstants.HASH_SIZE:
        raise LengthMismatch(field, HashConstants.HASH_SIZE, len(data))
    return data


def parse_uint(value: Union[int, str, Decimal], field: str = "value") -> int:
    """
    Parse a non-negative integer given as int, decimal string or integral Decimal.

    Floats and bools are refused outright: a weight that went through a
    float has already lost precision.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise PayloadError(
            f"{field}: {type(value).__name__} is not an exact integer"
        )
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, Decimal):
        if value != value.to_integral_value():
            raise PayloadError(f"{field}: {value} is not integral")
        parsed = int(value)
    elif isinstance(value, str):
        text = value.strip()
        if not (text.isascii() and text.isdecimal()):
            raise PayloadError(f"{field}: {value!r} is not a decimal integer")
        parsed = int(text)
    else:
        raise PayloadError(
            f"{field}: unsupported integer encoding {type(value).__name__}"
        )

    if parsed < 0:
        raise PayloadError(f"{field}: {parsed} is negative")
    return parsed

