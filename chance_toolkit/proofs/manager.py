from typing import Callable, List, Optional, Sequence, Tuple

from chance_toolkit.proofs.winner import audit_draw
from chance_toolkit.shared.exceptions import (
    DrawEngineException,
    IntegrityError,
)
from chance_toolkit.shared.logging import get_logger
from chance_toolkit.shared.results import (
    AuditSummary,
    ErrorSeverity,
    ProcessingError,
    Result,
)
from chance_toolkit.shared.retry import SOURCE_RETRY_CONFIG, RetryConfig
from chance_toolkit.shared.types import (
    Beacon,
    Draw,
    DrawAudit,
    DrawStatus,
    HolderLeaf,
    Snapshot,
)

_logger = get_logger(__name__)

BeaconSource = Callable[[int], Beacon]
SnapshotSource = Callable[[int], Tuple[Snapshot, List[HolderLeaf]]]


class DrawAuditService:
    """
    Audits draws using collaborators supplied by the caller.

    The beacon and snapshot sources are plain callables (a drand client, a
    chain query layer, fixtures in tests). They are the only retried steps;
    the replay itself is pure and runs once.
    """

    def __init__(
        self,
        beacon_source: BeaconSource,
        snapshot_source: SnapshotSource,
        retry_config: Optional[RetryConfig] = None,
    ):
        self.beacon_source = beacon_source
        self.snapshot_source = snapshot_source
        self.retry_config = retry_config or SOURCE_RETRY_CONFIG

    def _fetch(self, source: Callable, key: int, name: str):
        return self.retry_config.run(
            source, key, operation_name=f"{name}_{key}"
        )

    def audit(self, draw: Draw) -> Result[DrawAudit]:
        """
        Audit a single draw.

        Args:
            draw: Draw record from the chain

        Returns:
            Result[DrawAudit]: Success with the audit verdict (which may be
            verified=False), or failure carrying the original exception.
            Integrity violations are CRITICAL.
        """
        context = {
            "draw_id": draw.id,
            "epoch": draw.epoch,
            "round": draw.target_round,
        }

        if not draw.status.is_terminal:
            return Result.fail_with_message(
                source="draw_audit",
                message=f"Draw {draw.id} is committed and not yet revealed",
                severity=ErrorSeverity.WARNING,
                context=context,
            )
        if draw.status is DrawStatus.EXPIRED:
            return Result.fail_with_message(
                source="draw_audit",
                message=(
                    f"Draw {draw.id} expired without a reveal; the operator "
                    f"did not publish its secret before the deadline"
                ),
                severity=ErrorSeverity.WARNING,
                context=context,
            )

        try:
            beacon = self._fetch(
                self.beacon_source, draw.target_round, "beacon"
            )
            snapshot, leaves = self._fetch(
                self.snapshot_source, draw.epoch, "snapshot"
            )
        except Exception as e:
            return Result.fail(
                ProcessingError(
                    source="draw_sources",
                    message=f"Error fetching audit inputs: {str(e)}",
                    severity=ErrorSeverity.ERROR,
                    context=context,
                    exception=e,
                )
            )

        try:
            audit = audit_draw(draw, beacon, leaves, snapshot=snapshot)
        except IntegrityError as e:
            _logger.error(f"Integrity violation in draw {draw.id}: {e}")
            return Result.fail(
                ProcessingError(
                    source="draw_audit",
                    message=f"Integrity violation: {str(e)}",
                    severity=ErrorSeverity.CRITICAL,
                    context=context,
                    exception=e,
                )
            )
        except DrawEngineException as e:
            return Result.fail(
                ProcessingError(
                    source="draw_audit",
                    message=f"Error auditing draw: {str(e)}",
                    severity=ErrorSeverity.ERROR,
                    context=context,
                    exception=e,
                )
            )

        return Result.ok(audit)

    def audit_history(
        self, draws: Sequence[Draw]
    ) -> Tuple[List[Result[DrawAudit]], AuditSummary]:
        """
        Audit a batch of draws, one result per draw, plus a summary.

        A failure on one draw never stops the others.
        """
        summary = AuditSummary()
        results: List[Result[DrawAudit]] = []

        for draw in draws:
            result = self.audit(draw)
            results.append(result)
            summary.errors.extend(result.errors)

            if not draw.status.is_terminal:
                summary.draws_pending += 1
            elif draw.status is DrawStatus.EXPIRED:
                summary.draws_expired += 1
                summary.expired_draws.append(draw.id)
            elif not result.success:
                summary.draws_failed += 1
                summary.failed_draws.append(draw.id)
            elif result.data.verified:
                summary.draws_verified += 1
            else:
                summary.draws_mismatched += 1
                summary.mismatched_draws.append(draw.id)

        _logger.info(
            f"Audited {summary.draws_audited} draws: "
            f"{summary.draws_verified} verified, "
            f"{summary.draws_mismatched} mismatched, "
            f"{summary.draws_failed} failed"
        )
        return results, summary
