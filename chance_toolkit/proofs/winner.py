"""
Winner resolution and full draw audit.

An audit trusts no single step: it recomputes the ticket from the beacon and
the revealed secret, resolves the holder range containing it, and checks the
reported winner's own leaf against the recorded Merkle root.
"""

import hmac
from typing import Optional, Sequence

from chance_toolkit.proofs.merkle import (
    build_merkle_tree,
    generate_proof,
    verify_inclusion,
)
from chance_toolkit.proofs.randomness import (
    compute_final_randomness,
    compute_winning_ticket,
)
from chance_toolkit.shared.exceptions import (
    AmbiguousWinner,
    BeaconRoundMismatch,
    DrawEngineException,
    DrawNotRevealed,
    PartitionViolation,
    WinnerNotFound,
    ZeroWeight,
)
from chance_toolkit.shared.logging import get_logger
from chance_toolkit.shared.types import (
    Beacon,
    Draw,
    DrawAudit,
    HolderLeaf,
    ProofPath,
    Snapshot,
)

_logger = get_logger(__name__)


def validate_partition(
    leaves: Sequence[HolderLeaf], total_weight: int
) -> None:
    """
    Check that holder ranges exactly partition [0, total_weight).

    Raises:
        ZeroWeight: total_weight is 0
        PartitionViolation: empty range, gap, overlap, or wrong total
    """
    if total_weight <= 0:
        raise ZeroWeight()
    if not leaves:
        raise PartitionViolation("Snapshot has no holder ranges")

    expected_start = 0
    for leaf in sorted(leaves, key=lambda l: l.cumulative_start):
        if leaf.cumulative_end <= leaf.cumulative_start:
            raise PartitionViolation(
                f"Empty or inverted range for {leaf.address}: "
                f"[{leaf.cumulative_start}, {leaf.cumulative_end})"
            )
        if leaf.cumulative_start > expected_start:
            raise PartitionViolation(
                f"Gap in holder ranges: [{expected_start}, "
                f"{leaf.cumulative_start}) is unassigned"
            )
        if leaf.cumulative_start < expected_start:
            raise PartitionViolation(
                f"Range for {leaf.address} overlaps at {leaf.cumulative_start}"
            )
        expected_start = leaf.cumulative_end

    if expected_start != total_weight:
        raise PartitionViolation(
            f"Holder ranges cover [0, {expected_start}) "
            f"but total_weight is {total_weight}"
        )


def resolve_winner(ticket: int, leaves: Sequence[HolderLeaf]) -> HolderLeaf:
    """
    Find the unique holder whose range contains the ticket.

    Raises:
        WinnerNotFound: no range contains the ticket
        AmbiguousWinner: more than one range contains the ticket
    """
    matches = [leaf for leaf in leaves if leaf.contains(ticket)]
    if not matches:
        raise WinnerNotFound(ticket)
    if len(matches) > 1:
        raise AmbiguousWinner(ticket, [leaf.address for leaf in matches])
    return matches[0]


def _reported_winner_included(
    reported_winner: Optional[str],
    leaves: Sequence[HolderLeaf],
    merkle_root: Optional[bytes],
    proof: Optional[ProofPath],
) -> bool:
    if reported_winner is None or merkle_root is None:
        return False

    index = next(
        (i for i, leaf in enumerate(leaves) if leaf.address == reported_winner),
        None,
    )
    if index is None:
        return False

    if proof is None:
        tree = build_merkle_tree(leaves)
        proof = generate_proof(tree.leaf_hashes, index)

    return verify_inclusion(merkle_root, proof, leaves[index])


def audit_draw(
    draw: Draw,
    beacon: Beacon,
    leaves: Sequence[HolderLeaf],
    snapshot: Optional[Snapshot] = None,
    proof: Optional[ProofPath] = None,
) -> DrawAudit:
    """
    Independently replay a revealed draw.

    Args:
        draw: The draw as recorded on chain
        beacon: drand beacon for the draw's target round
        leaves: Published holder ranges of the draw's snapshot, in tree order
        snapshot: Snapshot record, used when the draw lacks root or weight
        proof: Reported winner's Merkle proof; regenerated from leaves if None

    Returns:
        DrawAudit with the recomputed winner and ticket; `verified` is True
        only when every cross-check agrees with the chain's claim

    Raises:
        DrawNotRevealed: the draw carries no operator secret
        BeaconRoundMismatch: beacon is not for the draw's target round
        CommitMismatch: the revealed secret does not match the commitment
        ZeroWeight, PartitionViolation, WinnerNotFound, AmbiguousWinner
    """
    if draw.operator_secret is None:
        raise DrawNotRevealed(draw.id, draw.status.value)
    if beacon.round != draw.target_round:
        raise BeaconRoundMismatch(draw.target_round, beacon.round)

    final_randomness = compute_final_randomness(
        beacon.randomness, draw.operator_secret, draw.operator_commit
    )

    snapshot_weight = snapshot.total_weight if snapshot else None
    total_weight = (
        draw.total_weight if draw.total_weight is not None else snapshot_weight
    )
    if total_weight is None:
        raise DrawEngineException(
            f"Draw {draw.id} has no total weight and no snapshot was given"
        )
    weight_matches = snapshot_weight is None or snapshot_weight == total_weight
    beacon_matches = draw.drand_randomness is None or hmac.compare_digest(
        draw.drand_randomness, beacon.randomness
    )
    holders_match = snapshot is None or snapshot.num_holders == len(leaves)

    validate_partition(leaves, total_weight)
    ticket = compute_winning_ticket(final_randomness, total_weight)
    resolved = resolve_winner(ticket, leaves)

    merkle_root = draw.merkle_root
    if merkle_root is None and snapshot is not None:
        merkle_root = snapshot.merkle_root
    winner_included = _reported_winner_included(
        draw.winner, leaves, merkle_root, proof
    )

    randomness_matches = draw.final_randomness is None or hmac.compare_digest(
        draw.final_randomness, final_randomness
    )

    verified = (
        draw.winner == resolved.address
        and winner_included
        and randomness_matches
        and weight_matches
        and beacon_matches
        and holders_match
    )
    if not verified:
        _logger.warning(
            f"Draw {draw.id} could not be confirmed: reported {draw.winner}, "
            f"resolved {resolved.address} (included={winner_included}, "
            f"randomness={randomness_matches}, weight={weight_matches}, "
            f"beacon={beacon_matches}, holders={holders_match})"
        )

    return DrawAudit(
        draw_id=draw.id,
        winner=resolved.address,
        ticket=ticket,
        verified=verified,
        final_randomness=final_randomness,
        total_weight=total_weight,
        reported_winner=draw.winner,
        winner_included=winner_included,
        randomness_matches=randomness_matches,
        weight_matches=weight_matches,
        beacon_matches=beacon_matches,
        holders_match=holders_match,
    )
