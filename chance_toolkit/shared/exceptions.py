"""
Exception hierarchy for the Chance draw toolkit.

Exception Categories:
- RetryableException: Transient failures that may succeed on retry (drand relays, network)
- NonRetryableException: Permanent failures that won't benefit from retry (bad data)
- ConfigurationException: Startup/config errors that prevent operation

Draw engine failures are all NonRetryableException:
- InputFormatError -> malformed hex, wrong fixed-width field sizes
- IntegrityError -> commit mismatch, broken snapshot partition, beacon round mismatch
- ZeroWeight -> a snapshot with no weight reached a ticket computation
"""


class RetryableException(Exception):
    """
    Base class for exceptions that may succeed on retry.

    Use for transient failures like:
    - Relay timeouts
    - Rate limiting
    - Temporary network issues
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NonRetryableException(Exception):
    """
    Base class for exceptions that won't benefit from retry.

    Use for permanent failures like:
    - Invalid input data
    - Missing required data
    - Integrity violations
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationException(NonRetryableException):
    """
    Exception for configuration/startup errors.

    Use when:
    - Required environment variables are missing
    - Invalid configuration values
    - Persisted configuration cannot be read
    """

    pass


class BeaconFetchException(RetryableException):
    """
    Exception for drand relay failures.

    Inherits from RetryableException because relay failures
    are often transient (rate limits, timeouts).
    """

    pass


class DrawEngineException(NonRetryableException):
    """Base class for every failure raised by the draw engine."""

    pass


# =============================================================================
# MALFORMED INPUT
# =============================================================================


class InputFormatError(DrawEngineException):
    """Input was not well formed. The caller must supply well-formed data."""

    pass


class MalformedHex(InputFormatError):
    """Odd-length or non-hex input where a hex string was expected."""

    pass


class LengthMismatch(InputFormatError):
    """A fixed-width field received the wrong number of bytes."""

    def __init__(self, field: str, expected: int, actual: int):
        super().__init__(
            f"{field}: expected {expected} bytes, got {actual}"
        )
        self.field = field
        self.expected = expected
        self.actual = actual


class PayloadError(InputFormatError):
    """A chain or relay payload could not be converted into a typed entity."""

    pass


class InvalidOddsInput(InputFormatError):
    """Odds projection input is out of range or not an exact number."""

    pass


# =============================================================================
# INTEGRITY VIOLATIONS
# =============================================================================


class IntegrityError(DrawEngineException):
    """
    A data integrity violation.

    These must halt an audit and be surfaced to the caller. They are never
    recovered from locally.
    """

    pass


class CommitMismatch(IntegrityError):
    """The revealed operator secret does not hash to the prior commitment."""

    def __init__(self, expected_commit: str, actual_commit: str):
        super().__init__(
            f"Operator secret hashes to {actual_commit}, "
            f"but the draw committed to {expected_commit}"
        )
        self.expected_commit = expected_commit
        self.actual_commit = actual_commit


class BeaconRoundMismatch(IntegrityError):
    """The supplied beacon is not for the round the draw targeted."""

    def __init__(self, expected_round: int, actual_round: int):
        super().__init__(
            f"Draw targets drand round {expected_round}, "
            f"beacon is for round {actual_round}"
        )
        self.expected_round = expected_round
        self.actual_round = actual_round


class PartitionViolation(IntegrityError):
    """Holder ranges do not exactly partition [0, total_weight)."""

    pass


class WinnerNotFound(IntegrityError):
    """No holder range contains the winning ticket."""

    def __init__(self, ticket: int):
        super().__init__(f"No holder range contains ticket {ticket}")
        self.ticket = ticket


class AmbiguousWinner(IntegrityError):
    """More than one holder range contains the winning ticket."""

    def __init__(self, ticket: int, addresses):
        super().__init__(
            f"Ticket {ticket} is contained in {len(addresses)} ranges: "
            f"{', '.join(addresses)}"
        )
        self.ticket = ticket
        self.addresses = list(addresses)


# =============================================================================
# INVALID STATE
# =============================================================================


class ZeroWeight(DrawEngineException):
    """A snapshot with zero total weight cannot select a winner."""

    def __init__(self, message: str = "total_weight must be greater than 0"):
        super().__init__(message)


class DrawNotRevealed(DrawEngineException):
    """The draw has no revealed operator secret to audit yet."""

    def __init__(self, draw_id: int, status: str):
        super().__init__(
            f"Draw {draw_id} is {status}; there is no reveal to audit"
        )
        self.draw_id = draw_id
        self.status = status
