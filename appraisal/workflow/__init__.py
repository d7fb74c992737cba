"""
Report Workflow

Stored reports, their lifecycle transitions and the service that keeps
computed snapshots in step with the editable content.
"""

from .record import (
    EDITABLE_STATUSES,
    AuditAction,
    AuditEntry,
    Report,
    generate_report_id,
)
from .repository import ReportRepository, get_report_repository
from .transitions import (
    ALLOWED_TRANSITIONS,
    GATED_STATUSES,
    can_transition,
    ensure_transition,
    requires_quality_gate,
)
from .service import ReportService

__all__ = [
    # Record
    "EDITABLE_STATUSES",
    "AuditAction",
    "AuditEntry",
    "Report",
    "generate_report_id",
    # Repository
    "ReportRepository",
    "get_report_repository",
    # Transitions
    "ALLOWED_TRANSITIONS",
    "GATED_STATUSES",
    "can_transition",
    "ensure_transition",
    "requires_quality_gate",
    # Service
    "ReportService",
]
