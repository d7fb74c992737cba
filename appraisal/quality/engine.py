"""
Quality/Compliance Rule Engine

Evaluates the rule table over a report snapshot and derives the summary,
the review gate and the legal-document alerts.

Determinism: the same snapshot, settings and evaluated_at always yield
the same ordered checks, summary and alerts. Nothing here reads the clock.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Final, Iterable, Optional

from appraisal.quality.models import (
    LegalAlert,
    LegalAlertKind,
    QualityCheck,
    QualityEvaluation,
    QualitySettings,
    QualitySummary,
)
from appraisal.quality.rules import QUALITY_RULES, EvaluationContext, iter_rules
from appraisal.report.schema import CollateralItem, LegalDocument, LegalDocumentType

if TYPE_CHECKING:
    from appraisal.workflow.record import Report


logger = logging.getLogger(__name__)


# Fields a legal document of each type must carry
REQUIRED_DOCUMENT_FIELDS: Final[dict[LegalDocumentType, tuple[str, ...]]] = {
    LegalDocumentType.SHM: ("number", "issue_date", "holder_name", "area"),
    LegalDocumentType.HGB: ("number", "issue_date", "holder_name", "area", "due_date"),
    LegalDocumentType.AJB: ("number", "issue_date"),
    LegalDocumentType.IMB: ("number", "issue_date", "area"),
    LegalDocumentType.OTHER: ("number",),
}


# =============================================================================
# Quality Checks
# =============================================================================


def evaluate_quality(
    report: "Report",
    evaluated_at: datetime,
    settings: Optional[QualitySettings] = None,
) -> tuple[QualityCheck, ...]:
    """
    Run the full rule battery over a report snapshot.

    Args:
        report: Report snapshot (content plus computed valuation)
        evaluated_at: Evaluation time; the only clock predicates may read
        settings: Rule thresholds (defaults to the standard checklist)

    Returns:
        Ordered tuple of QualityCheck, one per applicable rule
    """
    ctx = EvaluationContext(
        report=report,
        settings=settings or QualitySettings(),
        evaluated_at=evaluated_at,
    )
    checks = tuple(rule.evaluate(ctx) for rule in iter_rules(ctx, QUALITY_RULES))

    logger.debug(
        "Quality evaluated for %s: %d checks, %d critical failures",
        report.report_id,
        len(checks),
        len(critical_failures(checks)),
    )
    return checks


def summarise_checks(checks: Iterable[QualityCheck]) -> QualitySummary:
    """Derive total / passed / warnings counts."""
    checks = tuple(checks)
    return QualitySummary(
        total=len(checks),
        passed=sum(1 for c in checks if c.passed),
        warnings=sum(1 for c in checks if c.is_warning),
    )


def critical_failures(checks: Iterable[QualityCheck]) -> tuple[QualityCheck, ...]:
    """Checks that block the review workflow."""
    return tuple(c for c in checks if c.is_critical_failure)


def is_eligible_for_review(checks: Iterable[QualityCheck]) -> bool:
    """
    Review gate.

    False iff at least one check is a critical failure. Warning-only
    failures never block.
    """
    return not critical_failures(checks)


# =============================================================================
# Legal Alerts
# =============================================================================


def missing_document_fields(document: LegalDocument) -> tuple[str, ...]:
    """Required fields for the document's type that are empty."""
    required = REQUIRED_DOCUMENT_FIELDS.get(document.document_type, ())
    return tuple(name for name in required if not getattr(document, name))


def _document_alerts(
    item: CollateralItem,
    document: LegalDocument,
    evaluated_at: datetime,
) -> list[LegalAlert]:
    alerts = []
    today = evaluated_at.date()
    name = document.display_name

    def alert(kind: LegalAlertKind, label: str, message: str) -> LegalAlert:
        return LegalAlert(
            alert_id=f"{document.document_id}.{kind.value}",
            kind=kind,
            label=label,
            message=message,
            document_id=document.document_id,
            collateral_id=item.collateral_id,
        )

    expired = document.due_date is not None and document.due_date <= today
    if expired:
        alerts.append(alert(
            LegalAlertKind.EXPIRED,
            f"{name} expired",
            f"{name} expired on {document.due_date.isoformat()}.",
        ))

    missing = missing_document_fields(document)
    if missing:
        alerts.append(alert(
            LegalAlertKind.MISSING_FIELDS,
            f"{name} incomplete",
            f"{name} is missing: {', '.join(missing)}.",
        ))

    reminder = document.effective_reminder_date
    if not expired and reminder is not None and reminder <= today:
        due = f" (due {document.due_date.isoformat()})" if document.due_date else ""
        alerts.append(alert(
            LegalAlertKind.REMINDER_DUE,
            f"{name} reminder",
            f"Reminder date {reminder.isoformat()} reached for {name}{due}.",
        ))

    return alerts


def evaluate_legal_alerts(report: "Report", evaluated_at: datetime) -> tuple[LegalAlert, ...]:
    """
    Separate pass over all legal documents.

    A document yields an alert when its due date is on or before the
    evaluation date, when required fields for its type are missing, or
    when its reminder date has been reached (only if not already expired).
    Alerts never block the review gate.
    """
    alerts: list[LegalAlert] = []
    for item, document in report.content.legal_documents:
        alerts.extend(_document_alerts(item, document, evaluated_at))
    return tuple(alerts)


# =============================================================================
# Full Evaluation
# =============================================================================


def evaluate_report(
    report: "Report",
    evaluated_at: datetime,
    settings: Optional[QualitySettings] = None,
) -> QualityEvaluation:
    """Checks, summary and legal alerts for one snapshot."""
    checks = evaluate_quality(report, evaluated_at, settings)
    return QualityEvaluation(
        checks=checks,
        summary=summarise_checks(checks),
        legal_alerts=evaluate_legal_alerts(report, evaluated_at),
    )
