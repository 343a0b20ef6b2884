"""Chance Toolkit - independent auditing and odds tooling for Chance prize-linked staking."""

__version__ = "1.0.0"

from .analytics import project_odds
from .proofs import DrawAuditService, audit_draw, verify_inclusion

__all__ = ["DrawAuditService", "audit_draw", "project_odds", "verify_inclusion"]
