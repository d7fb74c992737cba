"""
Quality/Compliance Rule Engine

A fixed, ordered battery of completeness, legal, consistency, risk and
plausibility checks that gates the review workflow, plus a separate tier
of legal-document alerts.
"""

from .models import (
    CheckCategory,
    CheckSeverity,
    CheckStatus,
    LegalAlertKind,
    QualityCheck,
    QualitySummary,
    LegalAlert,
    QualityEvaluation,
    QualitySettings,
)
from .rules import (
    RuleOutcome,
    EvaluationContext,
    QualityRule,
    RuleGroup,
    QUALITY_RULES,
    iter_rules,
)
from .engine import (
    REQUIRED_DOCUMENT_FIELDS,
    evaluate_quality,
    summarise_checks,
    critical_failures,
    is_eligible_for_review,
    missing_document_fields,
    evaluate_legal_alerts,
    evaluate_report,
)

__all__ = [
    # Models
    "CheckCategory",
    "CheckSeverity",
    "CheckStatus",
    "LegalAlertKind",
    "QualityCheck",
    "QualitySummary",
    "LegalAlert",
    "QualityEvaluation",
    "QualitySettings",
    # Rules
    "RuleOutcome",
    "EvaluationContext",
    "QualityRule",
    "RuleGroup",
    "QUALITY_RULES",
    "iter_rules",
    # Engine
    "REQUIRED_DOCUMENT_FIELDS",
    "evaluate_quality",
    "summarise_checks",
    "critical_failures",
    "is_eligible_for_review",
    "missing_document_fields",
    "evaluate_legal_alerts",
    "evaluate_report",
]
