"""
Quality Rule Table

The fixed, ordered battery of quality checks. Each entry is either a
QualityRule (one check) or a RuleGroup that expands into one rule per
legal document, collateral item or configured type.

Predicates read only the EvaluationContext: the report snapshot, the
settings and the evaluation time. Table order is output order.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from functools import cached_property
from typing import TYPE_CHECKING, Callable, Iterable, Iterator, Optional, Union

from appraisal.comparables.analysis import (
    effective_weight,
    normalise_comparables,
    weight_total_within_target,
)
from appraisal.comparables.models import MarketComparable
from appraisal.quality.models import (
    CheckCategory,
    CheckSeverity,
    CheckStatus,
    QualityCheck,
    QualitySettings,
)
from appraisal.report.schema import (
    AttachmentCategory,
    CollateralItem,
    InspectionResponse,
    LegalDocument,
    LegalDocumentType,
    ReportContent,
    VerificationStatus,
)
from appraisal.valuation.calculator import coerce_amount
from appraisal.valuation.models import PropertyValuationInput

if TYPE_CHECKING:
    from appraisal.workflow.record import Report


# =============================================================================
# Rule Primitives
# =============================================================================


@dataclass(frozen=True)
class RuleOutcome:
    """Result of a predicate."""

    passed: bool
    message: Optional[str] = None

    @classmethod
    def ok(cls, message: Optional[str] = None) -> "RuleOutcome":
        return cls(passed=True, message=message)

    @classmethod
    def fail(cls, message: str) -> "RuleOutcome":
        return cls(passed=False, message=message)


def _outcome(condition: bool, fail_message: str, pass_message: Optional[str] = None) -> RuleOutcome:
    return RuleOutcome.ok(pass_message) if condition else RuleOutcome.fail(fail_message)


@dataclass(frozen=True)
class EvaluationContext:
    """Everything a predicate may read."""

    report: "Report"
    settings: QualitySettings
    evaluated_at: datetime

    @property
    def content(self) -> ReportContent:
        return self.report.content

    @property
    def evaluation_date(self) -> date:
        return self.evaluated_at.date()

    @property
    def property_input(self) -> Optional[PropertyValuationInput]:
        valuation_input = self.content.valuation_input
        return valuation_input if isinstance(valuation_input, PropertyValuationInput) else None

    @property
    def is_property(self) -> bool:
        return self.property_input is not None

    @cached_property
    def comparables(self) -> tuple[MarketComparable, ...]:
        return normalise_comparables(self.content.comparables)

    @cached_property
    def total_land_area(self) -> float:
        return sum(coerce_amount(c.land_area) for c in self.content.collateral)

    @cached_property
    def total_building_area(self) -> float:
        return sum(coerce_amount(c.building_area) for c in self.content.collateral)


Predicate = Callable[[EvaluationContext], RuleOutcome]
Applies = Callable[[EvaluationContext], bool]


@dataclass(frozen=True)
class QualityRule:
    """A single declarative check."""

    rule_id: str
    label: str
    category: CheckCategory
    severity: CheckSeverity
    predicate: Predicate
    applies: Optional[Applies] = None

    def rules(self, ctx: EvaluationContext) -> Iterator["QualityRule"]:
        if self.applies is None or self.applies(ctx):
            yield self

    def evaluate(self, ctx: EvaluationContext) -> QualityCheck:
        outcome = self.predicate(ctx)
        return QualityCheck(
            check_id=self.rule_id,
            label=self.label,
            category=self.category,
            severity=self.severity,
            status=CheckStatus.PASS if outcome.passed else CheckStatus.FAIL,
            message=outcome.message,
        )


@dataclass(frozen=True)
class RuleGroup:
    """Expands into one rule per document, collateral item or configured type."""

    name: str
    expand: Callable[[EvaluationContext], Iterable[QualityRule]]
    applies: Optional[Applies] = None

    def rules(self, ctx: EvaluationContext) -> Iterator[QualityRule]:
        if self.applies is not None and not self.applies(ctx):
            return
        for rule in self.expand(ctx):
            yield from rule.rules(ctx)


RuleEntry = Union[QualityRule, RuleGroup]


def _is_property(ctx: EvaluationContext) -> bool:
    return ctx.is_property


def _collateral_label(item: CollateralItem, index: int) -> str:
    return item.name or f"Collateral {index + 1}"


def _within_tolerance(declared: float, measured: float, settings: QualitySettings) -> bool:
    allowed = max(settings.area_tolerance_min, declared * settings.area_tolerance_percent / 100)
    return abs(declared - measured) <= allowed


# =============================================================================
# Completeness
# =============================================================================


def _customer_name(ctx: EvaluationContext) -> RuleOutcome:
    return _outcome(bool(ctx.content.general_info.customer_name), "Customer name is required.")


def _credit_purpose(ctx: EvaluationContext) -> RuleOutcome:
    return _outcome(bool(ctx.content.general_info.credit_purpose), "Credit purpose is required.")


def _collateral_exists(ctx: EvaluationContext) -> RuleOutcome:
    return _outcome(bool(ctx.content.collateral), "At least one collateral item is required.")


def _collateral_address(ctx: EvaluationContext) -> RuleOutcome:
    missing = [
        _collateral_label(item, i)
        for i, item in enumerate(ctx.content.collateral)
        if not item.address
    ]
    return _outcome(not missing, f"Address missing for: {', '.join(missing)}.")


def _collateral_coordinates(ctx: EvaluationContext) -> RuleOutcome:
    missing = [
        _collateral_label(item, i)
        for i, item in enumerate(ctx.content.collateral)
        if not item.has_coordinates
    ]
    return _outcome(not missing, f"Coordinates missing for: {', '.join(missing)}.")


def _technical_specification(ctx: EvaluationContext) -> RuleOutcome:
    missing = ctx.content.technical.missing_fields
    return _outcome(not missing, f"Technical survey incomplete: {', '.join(missing)}.")


def _appraisal_date(ctx: EvaluationContext) -> RuleOutcome:
    return _outcome(
        ctx.content.general_info.appraisal_date is not None,
        "Appraisal date is not set; building age falls back to the current year.",
    )


def _inspection_rule(item: CollateralItem, index: int) -> QualityRule:
    def predicate(ctx: EvaluationContext) -> RuleOutcome:
        checklist = item.inspection_checklist
        if not checklist:
            return RuleOutcome.fail("Field inspection checklist has not been filled in.")
        unanswered = [entry for entry in checklist if entry.response is None]
        if unanswered:
            return RuleOutcome.fail(
                f"Inspection checklist incomplete ({len(unanswered)} items unanswered)."
            )
        findings = [entry.label for entry in checklist if entry.response == InspectionResponse.NO]
        if findings:
            return RuleOutcome.fail(f"Inspection recorded findings on: {', '.join(findings)}.")
        return RuleOutcome.ok("Inspection checklist complete.")

    return QualityRule(
        rule_id=f"completeness.inspection.{item.collateral_id}",
        label=f"Field inspection checklist ({_collateral_label(item, index)})",
        category=CheckCategory.COMPLETENESS,
        severity=CheckSeverity.WARNING,
        predicate=predicate,
    )


def _inspection_rules(ctx: EvaluationContext) -> Iterator[QualityRule]:
    for index, item in enumerate(ctx.content.collateral):
        yield _inspection_rule(item, index)


def _minimum_comparables(ctx: EvaluationContext) -> RuleOutcome:
    required = ctx.settings.min_comparables
    return _outcome(
        len(ctx.content.comparables) >= required,
        f"At least {required} market comparables are required.",
    )


def _attachment_rule(category: AttachmentCategory) -> QualityRule:
    def predicate(ctx: EvaluationContext) -> RuleOutcome:
        present = any(a.category == category for a in ctx.content.attachments)
        return _outcome(present, f"No attachment of category {category.value}.")

    return QualityRule(
        rule_id=f"completeness.required_attachment.{category.value}",
        label=f"Attachment {category.value} present",
        category=CheckCategory.COMPLETENESS,
        severity=(
            CheckSeverity.CRITICAL if category == AttachmentCategory.LEGAL_DOC
            else CheckSeverity.WARNING
        ),
        predicate=predicate,
    )


def _attachment_rules(ctx: EvaluationContext) -> Iterator[QualityRule]:
    for category in ctx.settings.required_attachments:
        yield _attachment_rule(category)


# =============================================================================
# Legal
# =============================================================================


def _required_document_rule(document_type: LegalDocumentType) -> QualityRule:
    def predicate(ctx: EvaluationContext) -> RuleOutcome:
        present = any(
            document.document_type == document_type
            for _, document in ctx.content.legal_documents
        )
        return _outcome(present, f"A {document_type.value} document is required.")

    return QualityRule(
        rule_id=f"legal.required_{document_type.value.lower()}",
        label=f"{document_type.value} document present",
        category=CheckCategory.LEGAL,
        severity=CheckSeverity.CRITICAL,
        predicate=predicate,
    )


def _required_document_rules(ctx: EvaluationContext) -> Iterator[QualityRule]:
    for document_type in ctx.settings.required_legal_document_types:
        yield _required_document_rule(document_type)


def _document_rules(document: LegalDocument) -> Iterator[QualityRule]:
    name = document.display_name
    prefix = f"legal.{document.document_id}"

    if document.due_date is not None:
        def not_expired(ctx: EvaluationContext) -> RuleOutcome:
            return _outcome(
                document.due_date > ctx.evaluation_date,
                f"{name} expired on {document.due_date.isoformat()}.",
            )

        yield QualityRule(
            rule_id=f"{prefix}.not_expired",
            label=f"{name} not expired",
            category=CheckCategory.LEGAL,
            severity=CheckSeverity.CRITICAL,
            predicate=not_expired,
        )

    status = document.verification.status

    yield QualityRule(
        rule_id=f"{prefix}.verification_rejected",
        label=f"{name} verification not rejected",
        category=CheckCategory.LEGAL,
        severity=CheckSeverity.CRITICAL,
        predicate=lambda ctx: _outcome(
            status != VerificationStatus.REJECTED,
            f"Verification of {name} was rejected.",
        ),
    )
    yield QualityRule(
        rule_id=f"{prefix}.verification_pending",
        label=f"{name} verified",
        category=CheckCategory.LEGAL,
        severity=CheckSeverity.WARNING,
        predicate=lambda ctx: _outcome(
            status != VerificationStatus.PENDING,
            f"{name} has not been verified yet.",
        ),
    )


def _per_document_rules(ctx: EvaluationContext) -> Iterator[QualityRule]:
    for _, document in ctx.content.legal_documents:
        yield from _document_rules(document)


def _dispute_notice(ctx: EvaluationContext) -> RuleOutcome:
    return _outcome(
        not ctx.content.environment.has_dispute_notice,
        "A dispute notice is recorded on the collateral. Clarification required.",
    )


def _imb_area_rules(ctx: EvaluationContext) -> Iterator[QualityRule]:
    tolerance = ctx.settings.imb_area_tolerance_percent
    for index, item in enumerate(ctx.content.collateral):
        building_area = coerce_amount(item.building_area)
        imb = next(
            (
                d for d in item.legal_documents
                if d.document_type == LegalDocumentType.IMB and coerce_amount(d.area) > 0
            ),
            None,
        )
        if building_area <= 0 or imb is None:
            continue

        difference = abs(building_area - imb.area) / imb.area * 100
        yield QualityRule(
            rule_id=f"legal.imb_area_consistency.{item.collateral_id}",
            label=f"Building area vs IMB ({_collateral_label(item, index)})",
            category=CheckCategory.LEGAL,
            severity=CheckSeverity.WARNING,
            predicate=lambda ctx, difference=difference: _outcome(
                difference <= tolerance,
                f"Building area differs from IMB by {difference:.1f}%. Clarify before proceeding.",
            ),
        )


# =============================================================================
# Consistency
# =============================================================================


def _land_area(ctx: EvaluationContext) -> RuleOutcome:
    declared = coerce_amount(ctx.property_input.land_area)
    measured = ctx.total_land_area
    return _outcome(
        _within_tolerance(declared, measured, ctx.settings),
        f"Valuation land area ({declared:g}) differs from collateral total ({measured:g}).",
    )


def _building_area(ctx: EvaluationContext) -> RuleOutcome:
    declared = coerce_amount(ctx.property_input.building_area)
    measured = ctx.total_building_area
    return _outcome(
        _within_tolerance(declared, measured, ctx.settings),
        f"Valuation building area ({declared:g}) differs from collateral total ({measured:g}).",
    )


def _comparable_weight_total(ctx: EvaluationContext) -> RuleOutcome:
    settings = ctx.settings
    total = sum(effective_weight(c) or 0.0 for c in ctx.comparables)
    return _outcome(
        weight_total_within_target(
            total,
            settings.comparable_weight_target,
            settings.comparable_weight_tolerance,
        ),
        f"Comparable weights must total {settings.comparable_weight_target:g}%. "
        f"Currently {total:.2f}%.",
    )


def _priced_comparables(ctx: EvaluationContext) -> list[tuple[int, int]]:
    return [
        (index, c.final_price_per_square)
        for index, c in enumerate(ctx.comparables)
        if c.final_price_per_square is not None and c.final_price_per_square > 0
    ]


def _comparable_price_variance(ctx: EvaluationContext) -> RuleOutcome:
    priced = _priced_comparables(ctx)
    average = sum(price for _, price in priced) / len(priced)
    limit = ctx.settings.comparable_price_variance_percent / 100
    deviating = [
        f"#{index + 1}" for index, price in priced
        if abs(price - average) / average > limit
    ]
    return _outcome(
        not deviating,
        f"Price per m2 of comparables {', '.join(deviating)} deviates more than "
        f"{ctx.settings.comparable_price_variance_percent:g}% from the average.",
    )


def _has_sla_dates(ctx: EvaluationContext) -> bool:
    info = ctx.content.general_info
    return (
        info.request_received_at is not None
        and info.appraisal_date is not None
        and info.appraisal_date >= info.request_received_at
    )


def _sla_appraisal(ctx: EvaluationContext) -> RuleOutcome:
    info = ctx.content.general_info
    days = (info.appraisal_date - info.request_received_at).days
    sla = ctx.settings.appraisal_sla_days
    return _outcome(
        days <= sla,
        f"Appraisal took {days} days, exceeding the {sla}-day SLA. Provide a justification.",
    )


def _location_distance_rules(ctx: EvaluationContext) -> Iterator[QualityRule]:
    limit = ctx.settings.max_location_distance_m
    for index, item in enumerate(ctx.content.collateral):
        distance = item.verified_location_distance_m
        if distance is None:
            continue
        yield QualityRule(
            rule_id=f"consistency.location_distance.{item.collateral_id}",
            label=f"Surveyed point matches verified location ({_collateral_label(item, index)})",
            category=CheckCategory.CONSISTENCY,
            severity=CheckSeverity.WARNING,
            predicate=lambda ctx, distance=distance: _outcome(
                distance <= limit,
                f"Surveyed point is {distance:.1f} m from the verified location "
                f"(limit {limit:g} m).",
            ),
        )


# =============================================================================
# Risk
# =============================================================================


def _flood_prone(ctx: EvaluationContext) -> RuleOutcome:
    return _outcome(
        not ctx.content.environment.flood_prone,
        "Collateral location is flood prone. Mitigation notes required.",
    )


def _high_voltage(ctx: EvaluationContext) -> RuleOutcome:
    return _outcome(
        not ctx.content.environment.high_voltage_line,
        "Collateral is under or near a high-voltage transmission line.",
    )


def _has_risk_flags(ctx: EvaluationContext) -> bool:
    return bool(ctx.content.environment.risk_flags)


def _mitigation_notes(ctx: EvaluationContext) -> RuleOutcome:
    environment = ctx.content.environment
    return _outcome(
        bool(environment.risk_notes),
        f"Risk factors flagged ({', '.join(environment.risk_flags)}) without mitigation notes.",
    )


# =============================================================================
# Plausibility
# =============================================================================


def _building_standard_fallback(ctx: EvaluationContext) -> RuleOutcome:
    rate = ctx.report.valuation_result.building_rate
    applied = rate is not None and rate.fallback_applied
    requested = ctx.property_input.building_standard_code
    return _outcome(
        not applied,
        f"Building standard {requested!r} not found; "
        f"{rate.standard_code if rate else ''} was used instead.",
    )


def _percent_in_range(value: float) -> bool:
    return 0 < value <= 100


def _safety_margin_range(ctx: EvaluationContext) -> RuleOutcome:
    value = ctx.content.valuation_input.safety_margin_percent
    return _outcome(
        _percent_in_range(value),
        f"Safety margin {value:g}% is outside (0, 100].",
    )


def _liquidation_factor_range(ctx: EvaluationContext) -> RuleOutcome:
    value = ctx.content.valuation_input.liquidation_factor_percent
    return _outcome(
        _percent_in_range(value),
        f"Liquidation factor {value:g}% is outside (0, 100].",
    )


def _has_njop(ctx: EvaluationContext) -> bool:
    p = ctx.property_input
    return p is not None and (p.njop_land is not None or p.njop_building is not None)


def _njop_range(ctx: EvaluationContext) -> RuleOutcome:
    p = ctx.property_input
    low, high = ctx.settings.njop_per_square_min, ctx.settings.njop_per_square_max
    out_of_range = []
    for label, njop, area in (
        ("land", p.njop_land, p.land_area),
        ("building", p.njop_building, p.building_area),
    ):
        area = coerce_amount(area)
        if njop is None or area <= 0:
            continue
        per_square = coerce_amount(njop) / area
        if not low <= per_square <= high:
            out_of_range.append(f"{label} ({per_square:,.0f}/m2)")
    return _outcome(
        not out_of_range,
        f"NJOP per m2 outside {low:,.0f} - {high:,.0f}: {', '.join(out_of_range)}.",
    )


def _area_range(ctx: EvaluationContext) -> RuleOutcome:
    p = ctx.property_input
    minimum = ctx.settings.min_area
    problems = []
    if coerce_amount(p.land_area) < minimum:
        problems.append("land area")
    building_area = coerce_amount(p.building_area)
    if 0 < building_area < minimum:
        problems.append("building area")
    return _outcome(not problems, f"{' and '.join(problems).capitalize()} below {minimum:g} m2.")


def _market_value_positive(ctx: EvaluationContext) -> RuleOutcome:
    return _outcome(
        ctx.report.valuation_result.market_value > 0,
        "Market value has not been computed or is 0.",
    )


def _comparable_analysis_ready(ctx: EvaluationContext) -> RuleOutcome:
    weighted = [
        c for c in ctx.comparables
        if effective_weight(c) is not None and c.final_price_per_square
    ]
    return _outcome(
        bool(weighted),
        "No weighted comparable with a price per m2 is available as a market reference.",
    )


# =============================================================================
# Rule Table
# =============================================================================


def _has_comparables(ctx: EvaluationContext) -> bool:
    return bool(ctx.comparables)


def _has_priced_comparables(ctx: EvaluationContext) -> bool:
    return bool(_priced_comparables(ctx))


QUALITY_RULES: tuple[RuleEntry, ...] = (
    # === COMPLETENESS ===
    QualityRule(
        "completeness.customer_name", "Customer name filled",
        CheckCategory.COMPLETENESS, CheckSeverity.CRITICAL, _customer_name,
    ),
    QualityRule(
        "completeness.credit_purpose", "Credit purpose filled",
        CheckCategory.COMPLETENESS, CheckSeverity.CRITICAL, _credit_purpose,
    ),
    QualityRule(
        "completeness.collateral_exists", "Collateral recorded",
        CheckCategory.COMPLETENESS, CheckSeverity.CRITICAL, _collateral_exists,
    ),
    QualityRule(
        "completeness.collateral_address", "Collateral addresses filled",
        CheckCategory.COMPLETENESS, CheckSeverity.CRITICAL, _collateral_address,
    ),
    QualityRule(
        "completeness.collateral_coordinates", "Collateral coordinates filled",
        CheckCategory.COMPLETENESS, CheckSeverity.WARNING, _collateral_coordinates,
    ),
    QualityRule(
        "completeness.technical_specification", "Technical survey complete",
        CheckCategory.COMPLETENESS, CheckSeverity.WARNING, _technical_specification,
        applies=_is_property,
    ),
    QualityRule(
        "completeness.appraisal_date", "Appraisal date filled",
        CheckCategory.COMPLETENESS, CheckSeverity.WARNING, _appraisal_date,
    ),
    RuleGroup("inspection_checklists", _inspection_rules),
    QualityRule(
        "completeness.comparables_minimum_count", "Enough market comparables",
        CheckCategory.COMPLETENESS, CheckSeverity.CRITICAL, _minimum_comparables,
    ),
    RuleGroup("required_attachments", _attachment_rules),
    # === LEGAL ===
    RuleGroup("required_legal_documents", _required_document_rules, applies=_is_property),
    RuleGroup("legal_documents", _per_document_rules),
    QualityRule(
        "legal.dispute_notice", "No dispute notice",
        CheckCategory.LEGAL, CheckSeverity.CRITICAL, _dispute_notice,
    ),
    RuleGroup("imb_area_consistency", _imb_area_rules),
    # === CONSISTENCY ===
    QualityRule(
        "consistency.land_area", "Land area consistent",
        CheckCategory.CONSISTENCY, CheckSeverity.WARNING, _land_area,
        applies=_is_property,
    ),
    QualityRule(
        "consistency.building_area", "Building area consistent",
        CheckCategory.CONSISTENCY, CheckSeverity.WARNING, _building_area,
        applies=_is_property,
    ),
    QualityRule(
        "consistency.comparable_weight_total", "Comparable weights total 100%",
        CheckCategory.CONSISTENCY, CheckSeverity.CRITICAL, _comparable_weight_total,
        applies=_has_comparables,
    ),
    QualityRule(
        "consistency.comparable_price_variance", "Comparable prices per m2 within range",
        CheckCategory.CONSISTENCY, CheckSeverity.WARNING, _comparable_price_variance,
        applies=_has_priced_comparables,
    ),
    QualityRule(
        "consistency.sla_appraisal", "Appraisal SLA met",
        CheckCategory.CONSISTENCY, CheckSeverity.WARNING, _sla_appraisal,
        applies=_has_sla_dates,
    ),
    RuleGroup("location_distance", _location_distance_rules),
    # === RISK ===
    QualityRule(
        "risk.flood_prone", "Not flood prone",
        CheckCategory.RISK, CheckSeverity.WARNING, _flood_prone,
    ),
    QualityRule(
        "risk.high_voltage", "Clear of high-voltage lines",
        CheckCategory.RISK, CheckSeverity.WARNING, _high_voltage,
    ),
    QualityRule(
        "risk.mitigation_notes", "Risk mitigation noted",
        CheckCategory.RISK, CheckSeverity.CRITICAL, _mitigation_notes,
        applies=_has_risk_flags,
    ),
    # === PLAUSIBILITY ===
    QualityRule(
        "plausibility.building_standard_fallback", "Building standard found in catalog",
        CheckCategory.PLAUSIBILITY, CheckSeverity.WARNING, _building_standard_fallback,
        applies=_is_property,
    ),
    QualityRule(
        "plausibility.safety_margin_range", "Safety margin within range",
        CheckCategory.PLAUSIBILITY, CheckSeverity.WARNING, _safety_margin_range,
    ),
    QualityRule(
        "plausibility.liquidation_factor_range", "Liquidation factor within range",
        CheckCategory.PLAUSIBILITY, CheckSeverity.WARNING, _liquidation_factor_range,
    ),
    QualityRule(
        "plausibility.njop_range", "NJOP per m2 within range",
        CheckCategory.PLAUSIBILITY, CheckSeverity.WARNING, _njop_range,
        applies=_has_njop,
    ),
    QualityRule(
        "plausibility.area_range", "Input areas within range",
        CheckCategory.PLAUSIBILITY, CheckSeverity.WARNING, _area_range,
        applies=_is_property,
    ),
    QualityRule(
        "plausibility.market_value_positive", "Market value computed",
        CheckCategory.PLAUSIBILITY, CheckSeverity.CRITICAL, _market_value_positive,
    ),
    QualityRule(
        "plausibility.comparable_analysis_ready", "Comparable analysis available",
        CheckCategory.PLAUSIBILITY, CheckSeverity.WARNING, _comparable_analysis_ready,
    ),
)


def iter_rules(
    ctx: EvaluationContext,
    table: Iterable[RuleEntry] = QUALITY_RULES,
) -> Iterator[QualityRule]:
    """Expand the table into concrete rules, in order."""
    for entry in table:
        yield from entry.rules(ctx)
