"""
Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests.
"""

import hashlib
from typing import Callable, List

import pytest

from chance_toolkit.proofs.merkle import MerkleTree, build_merkle_tree
from chance_toolkit.proofs.randomness import xor_bytes
from chance_toolkit.shared.types import (
    Beacon,
    Draw,
    DrawStatus,
    DrawType,
    HolderLeaf,
    Snapshot,
)
from chance_toolkit.utils.codec import uint128_to_be_bytes

HOLDER_ADDRESSES = [
    "inj1qqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqq0holder1",
    "inj1qqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqq0holder2",
    "inj1qqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqq0holder3",
    "inj1qqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqq0holder4",
]


def randomness_for_ticket(ticket: int) -> bytes:
    """32 bytes whose first 16 bytes read as `ticket` (big-endian)."""
    return uint128_to_be_bytes(ticket) + b"\xab" * 16


@pytest.fixture
def sample_leaves() -> List[HolderLeaf]:
    """Four holders: [0,100) [100,350) [350,600) [600,1000)."""
    bounds = [(0, 100), (100, 350), (350, 600), (600, 1000)]
    return [
        HolderLeaf(
            address=address,
            cumulative_start=start,
            cumulative_end=end,
            balance=end - start,
        )
        for address, (start, end) in zip(HOLDER_ADDRESSES, bounds)
    ]


@pytest.fixture
def sample_tree(sample_leaves) -> MerkleTree:
    return build_merkle_tree(sample_leaves)


@pytest.fixture
def sample_snapshot(sample_tree) -> Snapshot:
    return Snapshot(
        epoch=40,
        merkle_root=sample_tree.root,
        total_weight=1000,
        num_holders=4,
        submitted_at=1_764_806_400_000_000_000,
    )


@pytest.fixture
def operator_secret() -> bytes:
    return b"operator-secret-for-draw-12"


@pytest.fixture
def operator_commit(operator_secret) -> bytes:
    return hashlib.sha256(operator_secret).digest()


@pytest.fixture
def target_round() -> int:
    return 1_234_567


@pytest.fixture
def make_beacon(operator_secret, target_round) -> Callable[..., Beacon]:
    """
    Build the beacon that, combined with operator_secret, lands on `ticket`.

    final = drand XOR sha256(secret), so drand = final XOR sha256(secret).
    """

    def _make(ticket: int = 200, round_number: int = target_round) -> Beacon:
        final = randomness_for_ticket(ticket)
        drand = xor_bytes(final, hashlib.sha256(operator_secret).digest())
        return Beacon(round=round_number, randomness=drand)

    return _make


@pytest.fixture
def make_draw(
    operator_secret, operator_commit, target_round, sample_tree
) -> Callable[..., Draw]:
    """Build a revealed draw; keyword overrides replace any field."""

    def _make(**overrides) -> Draw:
        fields = dict(
            id=12,
            draw_type=DrawType.REGULAR,
            epoch=40,
            status=DrawStatus.REVEALED,
            operator_commit=operator_commit,
            target_round=target_round,
            reward_amount=5 * 10**18,
            operator_secret=operator_secret,
            final_randomness=randomness_for_ticket(200),
            winner=HOLDER_ADDRESSES[1],
            total_weight=1000,
            merkle_root=sample_tree.root,
            created_at=1_764_806_400_000_000_000,
            revealed_at=1_764_806_460_000_000_000,
            reveal_deadline=1_764_810_000_000_000_000,
        )
        fields.update(overrides)
        return Draw(**fields)

    return _make


@pytest.fixture
def ticket_randomness() -> Callable[[int], bytes]:
    return randomness_for_ticket
