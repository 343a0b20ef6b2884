from chance_toolkit.utils.codec import (
    bytes_to_hex,
    bytes_to_uint128_be,
    hex_to_bytes,
    parse_uint,
    uint128_to_be_bytes,
)

__all__ = [
    "bytes_to_hex",
    "bytes_to_uint128_be",
    "hex_to_bytes",
    "parse_uint",
    "uint128_to_be_bytes",
]
