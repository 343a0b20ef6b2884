"""
Unit tests for the batch draw audit service.
"""

from unittest.mock import MagicMock

import pytest

from chance_toolkit.proofs.manager import DrawAuditService
from chance_toolkit.shared.exceptions import (
    BeaconFetchException,
    CommitMismatch,
    NonRetryableException,
)
from chance_toolkit.shared.results import ErrorSeverity
from chance_toolkit.shared.retry import RetryConfig
from chance_toolkit.shared.types import DrawStatus

NO_WAIT = RetryConfig(max_attempts=2, base_delay=0.0, max_delay=0.0)


@pytest.fixture
def snapshot_source(sample_snapshot, sample_leaves):
    return MagicMock(return_value=(sample_snapshot, sample_leaves))


@pytest.fixture
def beacon_source(make_beacon):
    return MagicMock(return_value=make_beacon(200))


@pytest.fixture
def service(beacon_source, snapshot_source):
    return DrawAuditService(beacon_source, snapshot_source, retry_config=NO_WAIT)


class TestAudit:
    """Tests for auditing a single draw."""

    def test_verified(self, service, make_draw, beacon_source, target_round):
        result = service.audit(make_draw())
        assert result.success is True
        assert result.data.verified is True
        beacon_source.assert_called_once_with(target_round)

    def test_committed_draw_skipped(self, service, make_draw, beacon_source):
        draw = make_draw(status=DrawStatus.COMMITTED, operator_secret=None)
        result = service.audit(draw)
        assert result.success is False
        assert result.errors[0].severity == ErrorSeverity.WARNING
        beacon_source.assert_not_called()

    def test_expired_draw_reported(self, service, make_draw):
        """An expired draw is surfaced, not treated as an audit failure."""
        draw = make_draw(status=DrawStatus.EXPIRED, operator_secret=None)
        result = service.audit(draw)
        assert result.success is False
        assert result.errors[0].severity == ErrorSeverity.WARNING
        assert "expired" in result.errors[0].message

    def test_commit_mismatch_is_critical(self, service, make_draw):
        """Integrity errors keep the original exception for unwrap()."""
        result = service.audit(make_draw(operator_secret=b"forged"))
        assert result.success is False
        error = result.errors[0]
        assert error.severity == ErrorSeverity.CRITICAL
        assert isinstance(error.exception, CommitMismatch)
        with pytest.raises(CommitMismatch) as exc_info:
            result.unwrap()
        assert exc_info.value is error.exception

    def test_source_retried(self, make_draw, make_beacon, snapshot_source):
        beacon_source = MagicMock(
            side_effect=[BeaconFetchException("relay down"), make_beacon(200)]
        )
        service = DrawAuditService(
            beacon_source, snapshot_source, retry_config=NO_WAIT
        )
        result = service.audit(make_draw())
        assert result.success is True
        assert beacon_source.call_count == 2

    def test_source_failure_is_error(self, make_draw, snapshot_source):
        beacon_source = MagicMock(side_effect=BeaconFetchException("relay down"))
        service = DrawAuditService(
            beacon_source, snapshot_source, retry_config=NO_WAIT
        )
        result = service.audit(make_draw())
        assert result.success is False
        assert result.errors[0].severity == ErrorSeverity.ERROR
        assert beacon_source.call_count == 2

    def test_non_retryable_source_not_retried(self, make_draw, snapshot_source):
        beacon_source = MagicMock(side_effect=NonRetryableException("bad data"))
        service = DrawAuditService(
            beacon_source, snapshot_source, retry_config=NO_WAIT
        )
        result = service.audit(make_draw())
        assert result.success is False
        assert beacon_source.call_count == 1

    def test_mismatch_is_success_with_verdict(self, service, make_draw, sample_leaves):
        result = service.audit(make_draw(winner=sample_leaves[0].address))
        assert result.success is True
        assert result.data.verified is False


class TestAuditHistory:
    """Tests for auditing a batch of draws."""

    def test_one_failure_does_not_stop_others(self, service, make_draw, sample_leaves):
        draws = [
            make_draw(id=1),
            make_draw(id=2, operator_secret=b"forged"),
            make_draw(id=3, winner=sample_leaves[0].address),
            make_draw(id=4, status=DrawStatus.COMMITTED, operator_secret=None),
            make_draw(id=5, status=DrawStatus.EXPIRED, operator_secret=None),
        ]
        results, summary = service.audit_history(draws)

        assert len(results) == 5
        assert summary.draws_verified == 1
        assert summary.draws_failed == 1
        assert summary.failed_draws == [2]
        assert summary.draws_mismatched == 1
        assert summary.mismatched_draws == [3]
        assert summary.draws_pending == 1
        assert summary.draws_expired == 1
        assert summary.expired_draws == [5]
        assert summary.draws_audited == 3
        assert summary.has_critical_errors() is True
        assert summary.to_dict()["success_rate"] == "1/3"

    def test_empty(self, service):
        results, summary = service.audit_history([])
        assert results == []
        assert summary.to_dict()["success_rate"] == "N/A"
