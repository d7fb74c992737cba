"""
Report Service - The Report Aggregate

The only stateful actor. Owns one stored Report per identifier, runs the
valuation, comparable and quality engines on create / edit / recalculate,
merges their results into a new immutable snapshot and appends an audit
entry on every write.

Every write holds the repository's per-report write lock around
read-recompute-store. Reads return the last stored snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from appraisal.comparables.analysis import compute_comparable_analysis, normalise_comparables
from appraisal.errors import (
    LegalDocumentNotFoundError,
    ReportLockedError,
    ReportNotFoundError,
    ReviewBlockedError,
)
from appraisal.quality.engine import (
    critical_failures,
    evaluate_report,
    is_eligible_for_review,
)
from appraisal.quality.models import QualitySettings
from appraisal.report.checklist import normalise_collateral
from appraisal.report.schema import (
    LegalDocumentVerification,
    ReportContent,
    ReportStatus,
)
from appraisal.valuation.calculator import calculate_valuation
from appraisal.valuation.catalog import MetadataProvider, StaticMetadataProvider
from appraisal.workflow.record import AuditAction, AuditEntry, Report, generate_report_id
from appraisal.workflow.repository import ReportRepository
from appraisal.workflow.transitions import ensure_transition, requires_quality_gate


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

PREVIEW_REPORT_ID = "PREVIEW"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReportService:
    """
    Report aggregate service.

    Usage:
        service = ReportService(ReportRepository())
        report = service.create_report(content, actor_id="appraiser-1")
        report = service.change_status(report.report_id, ReportStatus.FOR_REVIEW, "appraiser-1")
    """

    def __init__(
        self,
        repository: ReportRepository,
        metadata_provider: Optional[MetadataProvider] = None,
        settings: Optional[QualitySettings] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialise service.

        Args:
            repository: Report storage
            metadata_provider: Building standards and depreciation rules
            settings: Quality rule thresholds
            clock: Source of evaluation and audit timestamps
        """
        self.repository = repository
        self.metadata_provider = metadata_provider or StaticMetadataProvider()
        self.settings = settings or QualitySettings()
        self._clock = clock or _utc_now

    # =========================================================================
    # Computation
    # =========================================================================

    def _normalise(self, content: ReportContent) -> ReportContent:
        return replace(
            content,
            collateral=normalise_collateral(content.collateral),
            comparables=normalise_comparables(content.comparables),
        )

    def _compute(self, report: Report, evaluated_at: datetime) -> Report:
        """Valuation -> comparables -> quality over the merged snapshot."""
        content = report.content

        valuation_result = calculate_valuation(
            content.valuation_input,
            self.metadata_provider.building_standards(),
            self.metadata_provider.depreciation_rules(),
            year_built=content.technical.year_built,
            reference_date=content.general_info.appraisal_date,
        )
        comparable_analysis = compute_comparable_analysis(content.comparables)

        report = replace(
            report,
            valuation_result=valuation_result,
            comparable_analysis=comparable_analysis,
        )
        return self._evaluate(report, evaluated_at)

    def _evaluate(self, report: Report, evaluated_at: datetime) -> Report:
        """Quality checks and legal alerts only; valuation snapshots stay as stored."""
        evaluation = evaluate_report(report, evaluated_at, self.settings)

        return replace(
            report,
            quality_checks=evaluation.checks,
            quality_summary=evaluation.summary,
            legal_alerts=evaluation.legal_alerts,
        )

    def _refresh(self, report: Report, evaluated_at: datetime) -> Report:
        """Full recompute while editable, otherwise re-run the checks only."""
        if report.is_editable:
            return self._compute(report, evaluated_at)
        return self._evaluate(report, evaluated_at)

    def preview(self, content: ReportContent) -> Report:
        """
        Compute all snapshots for unsaved content.

        Uses the same calculation path as stored reports; nothing is persisted.
        """
        report = Report(
            report_id=PREVIEW_REPORT_ID,
            report_number="",
            content=self._normalise(content),
        )
        return self._compute(report, self._clock())

    # =========================================================================
    # Reads
    # =========================================================================

    def get_report(self, report_id: str) -> Report:
        """
        Raises:
            ReportNotFoundError: If the report does not exist
        """
        report = self.repository.get(report_id)
        if report is None:
            raise ReportNotFoundError(report_id)
        return report

    def list_reports(self, status: Optional[ReportStatus] = None) -> list[Report]:
        if status is None:
            return self.repository.list_all()
        return self.repository.list_by_status(status)

    # =========================================================================
    # Writes
    # =========================================================================

    def _append_audit(
        self,
        report: Report,
        action: AuditAction,
        actor_id: str,
        description: str,
        now: datetime,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Report:
        entry = AuditEntry.create(action, actor_id, description, now, metadata)
        return replace(report, audit_trail=report.audit_trail + (entry,), updated_at=now)

    def _require_editable(self, report: Report) -> None:
        if not report.is_editable:
            raise ReportLockedError(report.report_id, report.status.value)

    def create_report(self, content: ReportContent, actor_id: str = "system") -> Report:
        """Create a draft report with computed snapshots."""
        now = self._clock()
        report_id = generate_report_id()

        with self.repository.write_lock(report_id):
            report = Report(
                report_id=report_id,
                report_number=self.repository.next_report_number(now.year),
                status=ReportStatus.DRAFT,
                content=self._normalise(content),
                created_at=now,
            )
            report = self._compute(report, now)
            report = self._append_audit(
                report, AuditAction.CREATED, actor_id, "Report created.", now
            )
            self.repository.add(report)

        logger.info("Report created: %s (%s)", report.report_id, report.report_number)
        return report

    def update_report(
        self,
        report_id: str,
        content: ReportContent,
        actor_id: str = "system",
    ) -> Report:
        """
        Replace the editable content and recompute.

        Raises:
            ReportNotFoundError: If the report does not exist
            ReportLockedError: If the report is not in draft or rejected
        """
        with self.repository.write_lock(report_id):
            current = self.get_report(report_id)
            self._require_editable(current)

            now = self._clock()
            report = replace(current, content=self._normalise(content))
            report = self._compute(report, now)
            report = self._append_audit(
                report, AuditAction.UPDATED, actor_id, "Report content updated.", now
            )
            self.repository.save(report)

        logger.info("Report updated: %s", report_id)
        return report

    def recalculate(self, report_id: str, actor_id: str = "system") -> Report:
        """
        Recompute snapshots from the stored content.

        Raises:
            ReportNotFoundError: If the report does not exist
            ReportLockedError: If the report is not in draft or rejected
        """
        with self.repository.write_lock(report_id):
            current = self.get_report(report_id)
            self._require_editable(current)

            now = self._clock()
            report = self._compute(current, now)
            report = self._append_audit(
                report, AuditAction.RECALCULATED, actor_id, "Valuation recalculated.", now
            )
            self.repository.save(report)

        logger.info(
            "Report recalculated: %s market_value=%d",
            report_id,
            report.valuation_result.market_value,
        )
        return report

    def change_status(
        self,
        report_id: str,
        target: ReportStatus,
        actor_id: str = "system",
        reason: Optional[str] = None,
    ) -> Report:
        """
        Move a report through the workflow.

        Valuation snapshots are recomputed only while the report is
        editable. Entering for_review or approved re-evaluates the checks
        and is refused while any critical check fails.

        Raises:
            ReportNotFoundError: If the report does not exist
            InvalidTransitionError: If the transition is not allowed
            ReviewBlockedError: If critical checks fail
        """
        with self.repository.write_lock(report_id):
            current = self.get_report(report_id)
            ensure_transition(current.status, target)

            now = self._clock()
            report = self._refresh(current, now)

            if requires_quality_gate(target) and not is_eligible_for_review(report.quality_checks):
                blocking = critical_failures(report.quality_checks)
                logger.warning(
                    "Transition %s -> %s blocked for %s: %s",
                    current.status.value,
                    target.value,
                    report_id,
                    ", ".join(c.check_id for c in blocking),
                )
                raise ReviewBlockedError(blocking)

            updates: dict[str, Any] = {"status": target}
            if target == ReportStatus.FOR_REVIEW:
                updates["submitted_at"] = now
                updates["rejection_reason"] = None
            elif target == ReportStatus.APPROVED:
                updates["approved_at"] = now
            elif target == ReportStatus.REJECTED:
                updates["rejected_at"] = now
                updates["rejection_reason"] = reason or ""

            report = replace(report, **updates)
            metadata = {"from": current.status.value, "to": target.value}
            if reason:
                metadata["reason"] = reason
            report = self._append_audit(
                report,
                AuditAction.STATUS_CHANGED,
                actor_id,
                f"Status changed to {target.value}.",
                now,
                metadata,
            )
            self.repository.save(report)

        logger.info("Report %s status: %s -> %s", report_id, current.status.value, target.value)
        return report

    def update_legal_document_verification(
        self,
        report_id: str,
        document_id: str,
        verification: LegalDocumentVerification,
        actor_id: str = "system",
    ) -> Report:
        """
        Record the verification outcome of one legal document.

        Unset optional fields keep the previously recorded values. Allowed
        in every status except approved.

        Raises:
            ReportNotFoundError: If the report does not exist
            LegalDocumentNotFoundError: If no collateral holds the document
            ReportLockedError: If the report is approved
        """
        with self.repository.write_lock(report_id):
            current = self.get_report(report_id)
            if current.status == ReportStatus.APPROVED:
                raise ReportLockedError(report_id, current.status.value)

            now = self._clock()
            found = False
            collateral = []
            for item in current.content.collateral:
                documents = []
                for document in item.legal_documents:
                    if document.document_id == document_id:
                        found = True
                        document = self._apply_verification(document, verification, actor_id, now)
                    documents.append(document)
                collateral.append(replace(item, legal_documents=tuple(documents)))

            if not found:
                raise LegalDocumentNotFoundError(report_id, document_id)

            content = replace(current.content, collateral=tuple(collateral))
            report = self._refresh(replace(current, content=content), now)
            report = self._append_audit(
                report,
                AuditAction.LEGAL_DOCUMENT_VERIFIED,
                actor_id,
                "Legal document verification updated.",
                now,
                {"document_id": document_id, "status": verification.status.value},
            )
            self.repository.save(report)

        logger.info(
            "Legal document %s in %s marked %s",
            document_id,
            report_id,
            verification.status.value,
        )
        return report

    @staticmethod
    def _apply_verification(document, verification, actor_id, now):
        previous = document.verification
        merged = LegalDocumentVerification(
            status=verification.status,
            verified_by=verification.verified_by or actor_id,
            verified_at=verification.verified_at or now,
            verification_source=verification.verification_source or previous.verification_source,
            notes=verification.notes if verification.notes is not None else previous.notes,
            reminder_date=verification.reminder_date or previous.reminder_date,
        )
        updated = replace(document, verification=merged)
        if verification.reminder_date is not None:
            updated = replace(updated, reminder_date=verification.reminder_date)
        return updated

    def delete_report(self, report_id: str) -> None:
        """
        Delete a report with all its snapshots.

        Raises:
            ReportNotFoundError: If the report does not exist
        """
        with self.repository.write_lock(report_id):
            if not self.repository.delete(report_id):
                raise ReportNotFoundError(report_id)

        logger.info("Report deleted: %s", report_id)
