"""Data module for the Chance toolkit - converts chain and relay payloads."""

from .payloads import (
    parse_beacon,
    parse_draw,
    parse_draws,
    parse_holder_leaves,
    parse_snapshot,
)

__all__ = [
    "parse_beacon",
    "parse_draw",
    "parse_draws",
    "parse_holder_leaves",
    "parse_snapshot",
]
