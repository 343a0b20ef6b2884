from chance_toolkit.proofs.manager import DrawAuditService
from chance_toolkit.proofs.merkle import (
    MerkleTree,
    build_merkle_tree,
    build_snapshot_leaves,
    compute_leaf_hash,
    generate_proof,
    verify_inclusion,
)
from chance_toolkit.proofs.randomness import (
    compute_final_randomness,
    compute_winning_ticket,
)
from chance_toolkit.proofs.winner import (
    audit_draw,
    resolve_winner,
    validate_partition,
)

__all__ = [
    "DrawAuditService",
    "MerkleTree",
    "build_merkle_tree",
    "build_snapshot_leaves",
    "compute_leaf_hash",
    "generate_proof",
    "verify_inclusion",
    "compute_final_randomness",
    "compute_winning_ticket",
    "audit_draw",
    "resolve_winner",
    "validate_partition",
]
