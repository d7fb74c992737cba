"""
Data models for the Quality/Compliance Rule Engine

Quality checks are stateless per evaluation: the whole list is replaced on
every recompute. Only critical failures block the review workflow; warnings
are advisory. Legal alerts are a separate tier that never blocks.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Optional

from appraisal.report.schema import AttachmentCategory, LegalDocumentType

if TYPE_CHECKING:
    from utils.config import Config


# =============================================================================
# Enums
# =============================================================================


class CheckCategory(Enum):
    """Grouping of quality checks."""

    COMPLETENESS = "completeness"
    LEGAL = "legal"
    CONSISTENCY = "consistency"
    RISK = "risk"
    PLAUSIBILITY = "plausibility"


class CheckSeverity(Enum):
    """
    Severity of a failed check.

    CRITICAL blocks draft -> for_review; WARNING is advisory only.
    """

    CRITICAL = "critical"
    WARNING = "warning"


class CheckStatus(Enum):
    PASS = "pass"
    FAIL = "fail"


class LegalAlertKind(Enum):
    """Why a legal document raised an alert."""

    EXPIRED = "expired"
    MISSING_FIELDS = "missing_fields"
    REMINDER_DUE = "reminder_due"


# =============================================================================
# Check Results
# =============================================================================


@dataclass(frozen=True)
class QualityCheck:
    """Outcome of one rule for one report snapshot."""

    check_id: str
    label: str
    category: CheckCategory
    severity: CheckSeverity
    status: CheckStatus
    message: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.status == CheckStatus.PASS

    @property
    def is_critical_failure(self) -> bool:
        return self.status == CheckStatus.FAIL and self.severity == CheckSeverity.CRITICAL

    @property
    def is_warning(self) -> bool:
        return self.status == CheckStatus.FAIL and self.severity == CheckSeverity.WARNING

    def to_dict(self) -> dict[str, Any]:
        return {
            "check_id": self.check_id,
            "label": self.label,
            "category": self.category.value,
            "severity": self.severity.value,
            "status": self.status.value,
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QualityCheck":
        return cls(
            check_id=data["check_id"],
            label=data.get("label", ""),
            category=CheckCategory(data["category"]),
            severity=CheckSeverity(data["severity"]),
            status=CheckStatus(data["status"]),
            message=data.get("message"),
        )


@dataclass(frozen=True)
class QualitySummary:
    """
    Counts over the current check list.

    The critical-failure count is not stored; filter the checks instead.
    """

    total: int = 0
    passed: int = 0
    warnings: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "passed": self.passed,
            "warnings": self.warnings,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QualitySummary":
        return cls(
            total=int(data.get("total", 0)),
            passed=int(data.get("passed", 0)),
            warnings=int(data.get("warnings", 0)),
        )


@dataclass(frozen=True)
class LegalAlert:
    """Alert raised by a legal document (expiry, missing fields, reminder)."""

    alert_id: str
    kind: LegalAlertKind
    label: str
    message: str
    document_id: str
    collateral_id: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "alert_id": self.alert_id,
            "kind": self.kind.value,
            "label": self.label,
            "message": self.message,
            "document_id": self.document_id,
            "collateral_id": self.collateral_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LegalAlert":
        return cls(
            alert_id=data["alert_id"],
            kind=LegalAlertKind(data["kind"]),
            label=data.get("label", ""),
            message=data.get("message", ""),
            document_id=data.get("document_id", ""),
            collateral_id=data.get("collateral_id", ""),
        )


@dataclass(frozen=True)
class QualityEvaluation:
    """Checks, summary and legal alerts from one evaluation pass."""

    checks: tuple[QualityCheck, ...]
    summary: QualitySummary
    legal_alerts: tuple[LegalAlert, ...]


# =============================================================================
# Settings
# =============================================================================


DEFAULT_REQUIRED_LEGAL_DOCUMENT_TYPES: tuple[LegalDocumentType, ...] = (
    LegalDocumentType.SHM,
    LegalDocumentType.IMB,
)

DEFAULT_REQUIRED_ATTACHMENTS: tuple[AttachmentCategory, ...] = (
    AttachmentCategory.PHOTO_FRONT,
    AttachmentCategory.PHOTO_RIGHT,
    AttachmentCategory.PHOTO_LEFT,
    AttachmentCategory.LEGAL_DOC,
)


def _parse_document_types(values: Iterable[str]) -> tuple[LegalDocumentType, ...]:
    parsed = []
    for value in values:
        document_type = LegalDocumentType.from_string(value)
        if document_type is None:
            raise ValueError(f"Invalid legal document type: {value}")
        parsed.append(document_type)
    return tuple(parsed)


@dataclass(frozen=True)
class QualitySettings:
    """
    Configurable thresholds for the rule battery.

    Defaults match the bank's standard checklist.
    """

    required_legal_document_types: tuple[LegalDocumentType, ...] = (
        DEFAULT_REQUIRED_LEGAL_DOCUMENT_TYPES
    )
    required_attachments: tuple[AttachmentCategory, ...] = DEFAULT_REQUIRED_ATTACHMENTS
    min_comparables: int = 2
    comparable_weight_target: float = 100.0
    comparable_weight_tolerance: float = 0.5
    comparable_price_variance_percent: float = 30.0
    appraisal_sla_days: int = 14
    max_location_distance_m: float = 200.0
    imb_area_tolerance_percent: float = 20.0
    area_tolerance_percent: float = 5.0
    area_tolerance_min: float = 5.0  # m2
    njop_per_square_min: float = 1_000
    njop_per_square_max: float = 100_000_000
    min_area: float = 1.0  # m2

    @classmethod
    def from_config(cls, config: "Config") -> "QualitySettings":
        """
        Build settings from application config.

        Raises:
            ValueError: If a configured document type or attachment
                category is unknown
        """
        return cls(
            required_legal_document_types=_parse_document_types(
                config.required_legal_document_types
            ),
            required_attachments=tuple(
                AttachmentCategory(value) for value in config.required_attachments
            ),
            min_comparables=config.min_comparables,
            comparable_weight_target=config.comparable_weight_target,
            appraisal_sla_days=config.appraisal_sla_days,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "required_legal_document_types": [t.value for t in self.required_legal_document_types],
            "required_attachments": [c.value for c in self.required_attachments],
            "min_comparables": self.min_comparables,
            "comparable_weight_target": self.comparable_weight_target,
            "comparable_weight_tolerance": self.comparable_weight_tolerance,
            "comparable_price_variance_percent": self.comparable_price_variance_percent,
            "appraisal_sla_days": self.appraisal_sla_days,
            "max_location_distance_m": self.max_location_distance_m,
            "imb_area_tolerance_percent": self.imb_area_tolerance_percent,
            "area_tolerance_percent": self.area_tolerance_percent,
            "area_tolerance_min": self.area_tolerance_min,
            "njop_per_square_min": self.njop_per_square_min,
            "njop_per_square_max": self.njop_per_square_max,
            "min_area": self.min_area,
        }
