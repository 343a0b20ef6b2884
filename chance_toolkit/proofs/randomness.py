"""
Commit-reveal randomness replay.

final_randomness = drand_randomness XOR sha256(operator_secret)
winning_ticket   = uint128_be(final_randomness[0:16]) % total_weight
"""

import hashlib
import hmac

from chance_toolkit.shared.constants import HashConstants
from chance_toolkit.shared.exceptions import (
    CommitMismatch,
    LengthMismatch,
    ZeroWeight,
)
from chance_toolkit.shared.logging import get_logger
from chance_toolkit.utils.codec import bytes_to_hex, bytes_to_uint128_be

_logger = get_logger(__name__)


def compute_operator_commit(operator_secret: bytes) -> bytes:
    """The commitment an operator publishes before the beacon is known."""
    return hashlib.sha256(operator_secret).digest()


def xor_bytes(a: bytes, b: bytes) -> bytes:
    """Byte-wise XOR of two equal-length values."""
    if len(a) != len(b):
        raise LengthMismatch("xor operand", len(a), len(b))
    return bytes(x ^ y for x, y in zip(a, b))


def compute_final_randomness(
    drand_randomness: bytes, operator_secret: bytes, operator_commit: bytes
) -> bytes:
    """
    Recombine beacon randomness with the revealed operator secret.

    The secret is checked against the commitment first; nothing derived from
    a secret that fails this check can be trusted.

    Args:
        drand_randomness: 32-byte beacon randomness for the draw's target round
        operator_secret: Secret revealed by the operator
        operator_commit: 32-byte sha256 commitment recorded at commit time

    Returns:
        32-byte final randomness

    Raises:
        CommitMismatch: sha256(operator_secret) != operator_commit
        LengthMismatch: Randomness or commit is not 32 bytes
    """
    if len(operator_commit) != HashConstants.HASH_SIZE:
        raise LengthMismatch(
            "operator_commit", HashConstants.HASH_SIZE, len(operator_commit)
        )
    if len(drand_randomness) != HashConstants.HASH_SIZE:
        raise LengthMismatch(
            "drand_randomness", HashConstants.HASH_SIZE, len(drand_randomness)
        )

    secret_hash = compute_operator_commit(operator_secret)
    if not hmac.compare_digest(secret_hash, operator_commit):
        _logger.warning(
            f"Operator secret does not match commitment "
            f"{bytes_to_hex(operator_commit)}"
        )
        raise CommitMismatch(
            expected_commit=bytes_to_hex(operator_commit),
            actual_commit=bytes_to_hex(secret_hash),
        )

    return xor_bytes(drand_randomness, secret_hash)


def compute_winning_ticket(final_randomness: bytes, total_weight: int) -> int:
    """
    Map final randomness onto [0, total_weight).

    Pure and deterministic: the same inputs always give the same ticket.

    Raises:
        ZeroWeight: total_weight is 0
        LengthMismatch: final_randomness is not 32 bytes
    """
    if total_weight <= 0:
        raise ZeroWeight()
    if len(final_randomness) != HashConstants.HASH_SIZE:
        raise LengthMismatch(
            "final_randomness", HashConstants.HASH_SIZE, len(final_randomness)
        )

    value = bytes_to_uint128_be(final_randomness[: HashConstants.UINT128_SIZE])
    return value % total_weight
