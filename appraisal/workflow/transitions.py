"""
Report Workflow Transitions

draft      -> for_review
rejected   -> for_review
for_review -> approved | rejected
approved   -> draft      (reopen)
rejected   -> draft

Entering for_review or approved requires a quality evaluation with no
critical failures.
"""

from __future__ import annotations

from typing import Final

from appraisal.errors import InvalidTransitionError
from appraisal.report.schema import ReportStatus


ALLOWED_TRANSITIONS: Final[dict[ReportStatus, frozenset[ReportStatus]]] = {
    ReportStatus.DRAFT: frozenset({ReportStatus.FOR_REVIEW}),
    ReportStatus.REJECTED: frozenset({ReportStatus.FOR_REVIEW, ReportStatus.DRAFT}),
    ReportStatus.FOR_REVIEW: frozenset({ReportStatus.APPROVED, ReportStatus.REJECTED}),
    ReportStatus.APPROVED: frozenset({ReportStatus.DRAFT}),
}

# Targets that re-run the quality gate before the move
GATED_STATUSES: Final[frozenset[ReportStatus]] = frozenset({
    ReportStatus.FOR_REVIEW,
    ReportStatus.APPROVED,
})


def can_transition(current: ReportStatus, target: ReportStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def ensure_transition(current: ReportStatus, target: ReportStatus) -> None:
    """
    Raises:
        InvalidTransitionError: If current -> target is not allowed
    """
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value)


def requires_quality_gate(target: ReportStatus) -> bool:
    return target in GATED_STATUSES
