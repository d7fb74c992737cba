"""
Report Record - Stored Report Aggregate

A report combines the appraiser's editable content with the snapshots
computed from it (valuation, comparable analysis, quality checks, legal
alerts), its workflow status and an append-only audit trail.

Records are immutable. Every write stores a new Report.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from appraisal.comparables.models import ComparableAnalysisSummary
from appraisal.quality.models import LegalAlert, QualityCheck, QualitySummary
from appraisal.report.schema import ReportContent, ReportStatus, parse_datetime
from appraisal.valuation.models import ValuationResult


# Statuses in which the appraiser may edit content
EDITABLE_STATUSES = (ReportStatus.DRAFT, ReportStatus.REJECTED)


class AuditAction(Enum):
    """Actions recorded in a report's audit trail."""

    CREATED = "created"
    UPDATED = "updated"
    RECALCULATED = "recalculated"
    STATUS_CHANGED = "status_changed"
    LEGAL_DOCUMENT_VERIFIED = "legal_document_verified"


def generate_report_id() -> str:
    """Generate a unique report ID."""
    return f"RPT-{uuid.uuid4().hex[:12].upper()}"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class AuditEntry:
    """Immutable audit trail entry."""

    entry_id: str
    timestamp: datetime
    actor_id: str
    action: AuditAction
    description: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        action: AuditAction,
        actor_id: str,
        description: str,
        timestamp: datetime,
        metadata: Optional[dict[str, Any]] = None,
    ) -> "AuditEntry":
        return cls(
            entry_id=f"AUD-{uuid.uuid4().hex[:12].upper()}",
            timestamp=timestamp,
            actor_id=actor_id,
            action=action,
            description=description,
            metadata=dict(metadata or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry_id": self.entry_id,
            "timestamp": self.timestamp.isoformat(),
            "actor_id": self.actor_id,
            "action": self.action.value,
            "description": self.description,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AuditEntry":
        return cls(
            entry_id=data["entry_id"],
            timestamp=parse_datetime(data["timestamp"]),
            actor_id=data.get("actor_id", ""),
            action=AuditAction(data["action"]),
            description=data.get("description", ""),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass(frozen=True)
class Report:
    """
    Stored appraisal report.

    valuation_result, comparable_analysis, quality_checks, quality_summary
    and legal_alerts are read-only snapshots, recomputed on every content
    edit and on recalculate.
    """

    report_id: str
    report_number: str
    status: ReportStatus = ReportStatus.DRAFT
    content: ReportContent = field(default_factory=ReportContent)

    # === COMPUTED SNAPSHOTS ===
    valuation_result: ValuationResult = field(default_factory=ValuationResult.empty)
    comparable_analysis: ComparableAnalysisSummary = field(
        default_factory=ComparableAnalysisSummary
    )
    quality_checks: tuple[QualityCheck, ...] = ()
    quality_summary: QualitySummary = field(default_factory=QualitySummary)
    legal_alerts: tuple[LegalAlert, ...] = ()

    audit_trail: tuple[AuditEntry, ...] = ()

    # === TIMESTAMPS ===
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    @property
    def is_editable(self) -> bool:
        return self.status in EDITABLE_STATUSES

    def to_dict(self) -> dict[str, Any]:
        """Convert report to dictionary for serialisation."""
        return {
            "report_id": self.report_id,
            "report_number": self.report_number,
            "status": self.status.value,
            "content": self.content.to_dict(),
            "valuation_result": self.valuation_result.to_dict(),
            "comparable_analysis": self.comparable_analysis.to_dict(),
            "quality_checks": [c.to_dict() for c in self.quality_checks],
            "quality_summary": self.quality_summary.to_dict(),
            "legal_alerts": [a.to_dict() for a in self.legal_alerts],
            "audit_trail": [e.to_dict() for e in self.audit_trail],
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "submitted_at": _iso(self.submitted_at),
            "approved_at": _iso(self.approved_at),
            "rejected_at": _iso(self.rejected_at),
            "rejection_reason": self.rejection_reason,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Report":
        """Create report from dictionary."""
        return cls(
            report_id=data["report_id"],
            report_number=data.get("report_number", ""),
            status=ReportStatus(data.get("status", ReportStatus.DRAFT.value)),
            content=ReportContent.from_dict(data.get("content")),
            valuation_result=ValuationResult.from_dict(data.get("valuation_result") or {}),
            comparable_analysis=ComparableAnalysisSummary.from_dict(
                data.get("comparable_analysis") or {}
            ),
            quality_checks=tuple(QualityCheck.from_dict(c) for c in data.get("quality_checks", [])),
            quality_summary=QualitySummary.from_dict(data.get("quality_summary") or {}),
            legal_alerts=tuple(LegalAlert.from_dict(a) for a in data.get("legal_alerts", [])),
            audit_trail=tuple(AuditEntry.from_dict(e) for e in data.get("audit_trail", [])),
            created_at=parse_datetime(data.get("created_at")),
            updated_at=parse_datetime(data.get("updated_at")),
            submitted_at=parse_datetime(data.get("submitted_at")),
            approved_at=parse_datetime(data.get("approved_at")),
            rejected_at=parse_datetime(data.get("rejected_at")),
            rejection_reason=data.get("rejection_reason"),
        )
