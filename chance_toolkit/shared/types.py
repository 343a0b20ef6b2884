"""
Typed entities shared across the Chance draw toolkit.

Every hash is raw bytes, every weight or amount is an int. Payloads from
the chain are converted into these at the boundary (see data.payloads).
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


# =============================================================================
# ENUMS
# =============================================================================


class DrawType(Enum):
    """Regular draws run every few epochs, big draws less often."""

    REGULAR = "regular"
    BIG = "big"


class DrawStatus(Enum):
    """Lifecycle: committed -> revealed | expired. Both ends are terminal."""

    COMMITTED = "committed"
    REVEALED = "revealed"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self is not DrawStatus.COMMITTED


# =============================================================================
# SNAPSHOT DATA
# =============================================================================


@dataclass(frozen=True)
class Snapshot:
    """Weighted holder snapshot for one epoch."""

    epoch: int
    merkle_root: bytes  # 32-byte root of the holder tree
    total_weight: int
    num_holders: int
    submitted_at: Optional[int] = None  # Unix seconds


@dataclass(frozen=True)
class HolderLeaf:
    """
    A holder's cumulative weight range [cumulative_start, cumulative_end).

    The range length equals the holder's stake weight; across a snapshot the
    ranges partition [0, total_weight).
    """

    address: str
    cumulative_start: int
    cumulative_end: int
    balance: Optional[int] = None

    @property
    def weight(self) -> int:
        return self.cumulative_end - self.cumulative_start

    def contains(self, ticket: int) -> bool:
        return self.cumulative_start <= ticket < self.cumulative_end


# Sibling hashes from leaf to root, no direction bits (sorted-pair hashing)
ProofPath = List[bytes]


@dataclass(frozen=True)
class Beacon:
    """A drand beacon. Its BLS signature is checked by the oracle, not here."""

    round: int
    randomness: bytes  # 32 bytes
    signature: Optional[bytes] = None


# =============================================================================
# DRAWS
# =============================================================================


@dataclass(frozen=True)
class Draw:
    """
    A prize draw as recorded on chain.

    Reveal-time fields (drand_randomness, operator_secret, final_randomness,
    winner, total_weight, merkle_root) are None until the draw is revealed.
    """

    id: int
    draw_type: DrawType
    epoch: int
    status: DrawStatus
    operator_commit: bytes  # sha256(operator_secret)
    target_round: int
    reward_amount: int
    drand_randomness: Optional[bytes] = None
    operator_secret: Optional[bytes] = None
    final_randomness: Optional[bytes] = None
    winner: Optional[str] = None
    total_weight: Optional[int] = None
    merkle_root: Optional[bytes] = None
    created_at: Optional[int] = None  # Unix nanoseconds, as the chain reports
    revealed_at: Optional[int] = None
    reveal_deadline: Optional[int] = None


@dataclass(frozen=True)
class DrawAudit:
    """
    Outcome of independently replaying a revealed draw.

    `winner`, `ticket` and `verified` are the audit verdict; the remaining
    fields record which cross-check decided it.
    """

    draw_id: int
    winner: str  # Independently resolved winner
    ticket: int
    verified: bool
    final_randomness: bytes
    total_weight: int
    reported_winner: Optional[str]
    winner_included: bool  # Reported winner's leaf verifies against the root
    randomness_matches: bool  # Recorded final randomness equals recomputed
    weight_matches: bool  # Draw and snapshot agree on total weight
    beacon_matches: bool  # Recorded drand randomness equals the beacon's
    holders_match: bool  # Snapshot holder count equals the leaf count
