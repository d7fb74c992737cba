"""
Domain errors raised by the report workflow.

The valuation, comparable and quality engines never raise on numeric
input; only the stateful report service raises these.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from appraisal.quality.models import QualityCheck


class AppraisalError(Exception):
    """Base class for report workflow errors."""


class ReportNotFoundError(AppraisalError):
    """Raised when a report identifier is unknown."""

    def __init__(self, report_id: str):
        self.report_id = report_id
        super().__init__(f"Report not found: {report_id}")


class LegalDocumentNotFoundError(AppraisalError):
    """Raised when a legal document is not part of the report."""

    def __init__(self, report_id: str, document_id: str):
        self.report_id = report_id
        self.document_id = document_id
        super().__init__(f"Legal document {document_id} not found in report {report_id}")


class ReportLockedError(AppraisalError):
    """Raised when editing a report outside draft/rejected status."""

    def __init__(self, report_id: str, status: str):
        self.report_id = report_id
        self.status = status
        super().__init__(f"Report {report_id} is {status} and cannot be edited")


class InvalidTransitionError(AppraisalError):
    """Raised when a workflow transition is not allowed."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move report from {current} to {target}")


class ReviewBlockedError(AppraisalError):
    """Raised when critical quality checks block review or approval."""

    def __init__(self, blocking_checks: Iterable["QualityCheck"]):
        self.blocking_checks = tuple(blocking_checks)
        reasons = [c.message or c.label for c in self.blocking_checks]
        super().__init__(f"Review blocked: {'; '.join(reasons)}")

    @property
    def check_ids(self) -> list[str]:
        return [c.check_id for c in self.blocking_checks]
