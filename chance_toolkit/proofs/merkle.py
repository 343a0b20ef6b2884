"""
Merkle tree over holder weight ranges.

Leaf hash:
    sha256(0x00 || utf8(address) || be128(cumulative_start) || be128(cumulative_end))

Internal node:
    sha256(0x01 || min(a, b) || max(a, b))

Siblings are combined in sorted byte order, so a proof is a plain list of
sibling hashes. An unpaired node at the end of a level is promoted to the
next level unchanged.
"""

import hashlib
import hmac
from dataclasses import dataclass
from typing import Dict, List, Sequence, Union

from chance_toolkit.shared.constants import HashConstants
from chance_toolkit.shared.exceptions import DrawEngineException
from chance_toolkit.shared.types import HolderLeaf, ProofPath
from chance_toolkit.utils.codec import (
    concat_bytes,
    to_bytes,
    uint128_to_be_bytes,
)

HashLike = Union[bytes, str]


@dataclass(frozen=True)
class MerkleTree:
    """Root plus leaf hashes, in snapshot order."""

    root: bytes
    leaf_hashes: List[bytes]


def compute_leaf_hash(
    address: str, cumulative_start: int, cumulative_end: int
) -> bytes:
    """
    Compute the domain-separated leaf hash for a holder range.

    The address is hashed as its UTF-8 string bytes (bech32 text, not decoded).
    """
    return hashlib.sha256(
        concat_bytes(
            HashConstants.LEAF_PREFIX,
            address.encode("utf-8"),
            uint128_to_be_bytes(cumulative_start),
            uint128_to_be_bytes(cumulative_end),
        )
    ).digest()


def hash_leaf(leaf: HolderLeaf) -> bytes:
    return compute_leaf_hash(
        leaf.address, leaf.cumulative_start, leaf.cumulative_end
    )


def hash_pair_sorted(a: bytes, b: bytes) -> bytes:
    """Hash two siblings in sorted byte order under the node prefix."""
    low, high = (a, b) if a <= b else (b, a)
    return hashlib.sha256(
        concat_bytes(HashConstants.NODE_PREFIX, low, high)
    ).digest()


def _next_level(level: Sequence[bytes]) -> List[bytes]:
    return [
        hash_pair_sorted(level[i], level[i + 1])
        if i + 1 < len(level)
        else level[i]  # odd node promoted
        for i in range(0, len(level), 2)
    ]


def build_merkle_tree(leaves: Sequence[HolderLeaf]) -> MerkleTree:
    """
    Build the holder tree in the given order.

    Args:
        leaves: Holder leaves, in the order the snapshot publishes them

    Returns:
        MerkleTree with root and leaf hashes

    Raises:
        DrawEngineException: If leaves is empty
    """
    if not leaves:
        raise DrawEngineException(
            "Cannot build merkle tree from empty entries"
        )

    leaf_hashes = [hash_leaf(leaf) for leaf in leaves]
    level = leaf_hashes
    while len(level) > 1:
        level = _next_level(level)

    return MerkleTree(root=level[0], leaf_hashes=leaf_hashes)


def generate_proof(leaf_hashes: Sequence[bytes], index: int) -> ProofPath:
    """
    Collect the sibling hashes from leaf `index` up to the root.

    Levels where the node is promoted without a sibling contribute nothing,
    matching how build_merkle_tree folds odd nodes.
    """
    if not 0 <= index < len(leaf_hashes):
        raise IndexError(
            f"Leaf index {index} out of range for {len(leaf_hashes)} leaves"
        )

    proof: ProofPath = []
    level = list(leaf_hashes)
    idx = index

    while len(level) > 1:
        sibling = idx ^ 1
        if sibling < len(level):
            proof.append(level[sibling])
        level = _next_level(level)
        idx //= 2

    return proof


def verify_inclusion(
    root: HashLike, proof: Sequence[HashLike], leaf: HolderLeaf
) -> bool:
    """
    Check that `leaf` is included under `root`.

    Never raises: malformed hex, wrong hash sizes or an invalid leaf range all
    mean "not included". An empty proof only matches a single-leaf tree, and
    an all-zero root never matches.

    Args:
        root: 32-byte root (bytes or hex)
        proof: Sibling hashes from leaf to root (bytes or hex)
        leaf: Holder range claimed to be in the tree

    Returns:
        True if folding the proof over the leaf hash reproduces root
    """
    try:
        expected_root = to_bytes(root, "root")
        siblings = [to_bytes(sibling, "proof") for sibling in proof]
        if leaf.cumulative_end <= leaf.cumulative_start:
            return False
        current = hash_leaf(leaf)
    except (DrawEngineException, AttributeError, TypeError):
        return False

    if len(expected_root) != HashConstants.HASH_SIZE:
        return False
    if expected_root == HashConstants.ZERO_HASH:
        return False

    for sibling in siblings:
        if len(sibling) != HashConstants.HASH_SIZE:
            return False
        current = hash_pair_sorted(current, sibling)

    return hmac.compare_digest(current, expected_root)


def build_snapshot_leaves(balances: Dict[str, int]) -> List[HolderLeaf]:
    """
    Assign cumulative weight ranges the way the snapshot publisher does.

    Holders are sorted by address for deterministic ordering and zero
    balances are dropped.

    Args:
        balances: Mapping of holder address to balance (base units)

    Returns:
        Leaves whose ranges partition [0, sum(balances))
    """
    leaves: List[HolderLeaf] = []
    cumulative = 0
    for address in sorted(balances):
        balance = balances[address]
        if balance < 0:
            raise DrawEngineException(
                f"Negative balance {balance} for {address}"
            )
        if balance == 0:
            continue
        start = cumulative
        cumulative += balance
        leaves.append(
            HolderLeaf(
                address=address,
                cumulative_start=start,
                cumulative_end=cumulative,
                balance=balance,
            )
        )
    return leaves
