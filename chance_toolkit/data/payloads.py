"""
Boundary conversion of chain and relay JSON into typed entities.

Contract queries return CosmWasm JSON: Uint128 as decimal strings,
Timestamp as nanosecond strings, Vec<u8> as arrays of ints, hashes as hex
strings. drand relays return hex strings. Nothing loosely typed passes this
module; every failure is a PayloadError (or a codec error for bad bytes).
"""

from typing import Any, List, Mapping, Optional, Sequence

from chance_toolkit.shared.exceptions import PayloadError
from chance_toolkit.shared.types import (
    Beacon,
    Draw,
    DrawStatus,
    DrawType,
    HolderLeaf,
    Snapshot,
)
from chance_toolkit.utils.codec import parse_uint, to_bytes, to_bytes32


def _require(payload: Mapping[str, Any], key: str, kind: str) -> Any:
    if not isinstance(payload, Mapping):
        raise PayloadError(f"{kind} payload must be an object")
    if key not in payload or payload[key] is None:
        raise PayloadError(f"{kind} payload is missing '{key}'")
    return payload[key]


def _optional_uint(payload: Mapping[str, Any], key: str) -> Optional[int]:
    value = payload.get(key)
    return None if value is None else parse_uint(value, key)


def _optional_bytes(payload: Mapping[str, Any], key: str) -> Optional[bytes]:
    value = payload.get(key)
    return None if value is None else to_bytes(value, key)


def _enum(enum_cls, value: Any, key: str):
    try:
        return enum_cls(str(value).lower())
    except ValueError as e:
        raise PayloadError(f"{key}: unknown value {value!r}") from e


def parse_snapshot(payload: Mapping[str, Any]) -> Snapshot:
    """
    Parse a snapshot record.

    Accepts both the distributor's snapshot query and the staking hub's
    epoch state (`snapshot_`-prefixed fields, epoch as `current_epoch`).
    """
    if isinstance(payload, Mapping) and "snapshot_merkle_root" in payload:
        payload = {
            "epoch": payload.get("current_epoch", payload.get("epoch")),
            "merkle_root": payload.get("snapshot_merkle_root"),
            "total_weight": payload.get("snapshot_total_weight"),
            "num_holders": payload.get("snapshot_num_holders"),
        }

    return Snapshot(
        epoch=parse_uint(_require(payload, "epoch", "snapshot"), "epoch"),
        merkle_root=to_bytes32(
            _require(payload, "merkle_root", "snapshot"), "merkle_root"
        ),
        total_weight=parse_uint(
            _require(payload, "total_weight", "snapshot"), "total_weight"
        ),
        num_holders=parse_uint(
            _require(payload, "num_holders", "snapshot"), "num_holders"
        ),
        submitted_at=_optional_uint(payload, "submitted_at"),
    )


def parse_holder_leaves(payload: Any) -> List[HolderLeaf]:
    """
    Parse the published holder list.

    Accepts a bare list of entries or an object with an `entries` (or
    `leaves`) list, as written by the operator node.
    """
    if isinstance(payload, Mapping):
        entries = payload.get("entries", payload.get("leaves"))
    else:
        entries = payload
    if not isinstance(entries, Sequence) or isinstance(entries, (str, bytes)):
        raise PayloadError("holder list must be an array of entries")

    leaves = []
    for i, entry in enumerate(entries):
        address = _require(entry, "address", f"holder #{i}")
        if not isinstance(address, str) or not address:
            raise PayloadError(f"holder #{i}: address must be a non-empty string")
        leaves.append(
            HolderLeaf(
                address=address,
                cumulative_start=parse_uint(
                    _require(entry, "cumulative_start", f"holder #{i}"),
                    "cumulative_start",
                ),
                cumulative_end=parse_uint(
                    _require(entry, "cumulative_end", f"holder #{i}"),
                    "cumulative_end",
                ),
                balance=_optional_uint(entry, "balance"),
            )
        )
    return leaves


def parse_draw(payload: Mapping[str, Any]) -> Draw:
    """Parse a draw record from the reward distributor."""
    if not isinstance(payload, Mapping):
        raise PayloadError("draw payload must be an object")

    winner = payload.get("winner")
    if winner is not None and not isinstance(winner, str):
        raise PayloadError("winner must be an address string")

    merkle_root = payload.get("merkle_root")
    target_round = payload.get("target_drand_round", payload.get("target_round"))
    if target_round is None:
        raise PayloadError("draw payload is missing 'target_drand_round'")

    return Draw(
        id=parse_uint(_require(payload, "id", "draw"), "id"),
        draw_type=_enum(
            DrawType, _require(payload, "draw_type", "draw"), "draw_type"
        ),
        epoch=parse_uint(_require(payload, "epoch", "draw"), "epoch"),
        status=_enum(DrawStatus, _require(payload, "status", "draw"), "status"),
        operator_commit=to_bytes32(
            _require(payload, "operator_commit", "draw"), "operator_commit"
        ),
        target_round=parse_uint(target_round, "target_drand_round"),
        reward_amount=parse_uint(
            _require(payload, "reward_amount", "draw"), "reward_amount"
        ),
        drand_randomness=_optional_bytes(payload, "drand_randomness"),
        operator_secret=_optional_bytes(payload, "operator_secret"),
        final_randomness=_optional_bytes(payload, "final_randomness"),
        winner=winner,
        total_weight=_optional_uint(payload, "total_weight"),
        merkle_root=(
            None if merkle_root is None else to_bytes32(merkle_root, "merkle_root")
        ),
        created_at=_optional_uint(payload, "created_at"),
        revealed_at=_optional_uint(payload, "revealed_at"),
        reveal_deadline=_optional_uint(payload, "reveal_deadline"),
    )


def parse_beacon(payload: Mapping[str, Any]) -> Beacon:
    """Parse a beacon from a drand relay or the oracle's stored beacon."""
    return Beacon(
        round=parse_uint(_require(payload, "round", "beacon"), "round"),
        randomness=to_bytes32(
            _require(payload, "randomness", "beacon"), "randomness"
        ),
        signature=_optional_bytes(payload, "signature"),
    )


def parse_draws(payload: Any) -> List[Draw]:
    """Parse a draw history response (`{"draws": [...]}` or a bare list)."""
    if isinstance(payload, Mapping):
        payload = payload.get("draws")
    if not isinstance(payload, Sequence) or isinstance(payload, (str, bytes)):
        raise PayloadError("draw history must be an array of draws")
    return [parse_draw(entry) for entry in payload]

