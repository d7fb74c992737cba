"""
Tests for the Quality/Compliance Rule Engine

Tests covering:
1. Determinism and table order
2. Review gate (critical vs warning failures)
3. Individual rule families
4. Legal-document alerts
5. Settings from configuration
"""

from datetime import timedelta

import pytest

from appraisal.quality import (
    CheckCategory,
    CheckSeverity,
    CheckStatus,
    LegalAlertKind,
    QualityCheck,
    QualitySettings,
    evaluate_legal_alerts,
    evaluate_quality,
    evaluate_report,
    is_eligible_for_review,
    summarise_checks,
)
from appraisal.report import LegalDocumentType, ReportContent
from utils.config import Config


# =============================================================================
# Helpers
# =============================================================================


def _checks_by_id(report):
    return {c.check_id: c for c in report.quality_checks}


@pytest.fixture
def evaluate(service):
    """Compute a preview report from raw content."""
    def _evaluate(data):
        return service.preview(ReportContent.from_dict(data))
    return _evaluate


def _check(check_id, severity, status):
    return QualityCheck(
        check_id=check_id,
        label=check_id,
        category=CheckCategory.COMPLETENESS,
        severity=severity,
        status=status,
    )


# =============================================================================
# Determinism & Order
# =============================================================================


class TestDeterminism:
    """Same snapshot + same evaluation time -> same output."""

    def test_repeat_evaluation_is_identical(self, evaluate, content_data, evaluated_at):
        report = evaluate(content_data)

        first = evaluate_quality(report, evaluated_at)
        second = evaluate_quality(report, evaluated_at)

        assert [c.check_id for c in first] == [c.check_id for c in second]
        assert first == second
        assert summarise_checks(first) == summarise_checks(second)

    def test_categories_follow_table_order(self, evaluate, content_data):
        report = evaluate(content_data)
        order = list(CheckCategory)
        positions = [order.index(c.category) for c in report.quality_checks]
        assert positions == sorted(positions)

    def test_first_check_is_customer_name(self, evaluate, content_data):
        report = evaluate(content_data)
        assert report.quality_checks[0].check_id == "completeness.customer_name"

    def test_evaluate_report_bundles_summary(self, evaluate, content_data, evaluated_at):
        report = evaluate(content_data)
        evaluation = evaluate_report(report, evaluated_at)
        assert evaluation.checks == report.quality_checks
        assert evaluation.summary == summarise_checks(evaluation.checks)
        assert is_eligible_for_review(evaluation.checks) is True


# =============================================================================
# Review Gate
# =============================================================================


class TestReviewGate:
    """Eligibility is false iff a critical check fails."""

    def test_complete_report_passes_everything(self, evaluate, content_data):
        report = evaluate(content_data)
        failed = [c.check_id for c in report.quality_checks if not c.passed]
        assert failed == []
        assert report.quality_summary.passed == report.quality_summary.total
        assert report.quality_summary.warnings == 0

    def test_warnings_never_block(self):
        checks = [
            _check("a", CheckSeverity.CRITICAL, CheckStatus.PASS),
            _check("b", CheckSeverity.WARNING, CheckStatus.FAIL),
        ]
        assert is_eligible_for_review(checks) is True

    def test_critical_failure_blocks(self):
        checks = [
            _check("a", CheckSeverity.CRITICAL, CheckStatus.FAIL),
            _check("b", CheckSeverity.WARNING, CheckStatus.PASS),
        ]
        assert is_eligible_for_review(checks) is False

    def test_empty_check_list_is_eligible(self):
        assert is_eligible_for_review([]) is True

    def test_summary_counts(self):
        checks = [
            _check("a", CheckSeverity.CRITICAL, CheckStatus.FAIL),
            _check("b", CheckSeverity.WARNING, CheckStatus.FAIL),
            _check("c", CheckSeverity.WARNING, CheckStatus.PASS),
        ]
        summary = summarise_checks(checks)
        assert (summary.total, summary.passed, summary.warnings) == (3, 1, 1)


# =============================================================================
# Rule Families
# =============================================================================


class TestCompletenessRules:
    """Tests for required fields."""

    def test_missing_customer_name_is_critical(self, evaluate, content_data):
        content_data["general_info"]["customer_name"] = ""
        report = evaluate(content_data)
        check = _checks_by_id(report)["completeness.customer_name"]
        assert check.is_critical_failure
        assert not is_eligible_for_review(report.quality_checks)

    def test_too_few_comparables(self, evaluate, content_data):
        content_data["comparables"] = content_data["comparables"][:1]
        content_data["comparables"][0]["weight"] = 100
        report = evaluate(content_data)
        assert _checks_by_id(report)["completeness.comparables_minimum_count"].is_critical_failure

    def test_unanswered_inspection_is_warning(self, evaluate, content_data):
        content_data["collateral"][0]["inspection_checklist"] = []
        report = evaluate(content_data)
        check = _checks_by_id(report)["completeness.inspection.COL-1"]
        assert check.is_warning
        assert "unanswered" in check.message

    def test_missing_photo_is_warning(self, evaluate, content_data):
        content_data["attachments"] = [
            a for a in content_data["attachments"] if a["category"] != "photo_left"
        ]
        report = evaluate(content_data)
        assert _checks_by_id(report)["completeness.required_attachment.photo_left"].is_warning

    def test_missing_legal_scan_is_critical(self, evaluate, content_data):
        content_data["attachments"] = [
            a for a in content_data["attachments"] if a["category"] != "legal_doc"
        ]
        report = evaluate(content_data)
        check = _checks_by_id(report)["completeness.required_attachment.legal_doc"]
        assert check.is_critical_failure


class TestLegalRules:
    """Tests for legal document checks."""

    def test_missing_shm_is_critical(self, evaluate, content_data):
        documents = content_data["collateral"][0]["legal_documents"]
        content_data["collateral"][0]["legal_documents"] = [
            d for d in documents if d["document_type"] != "SHM"
        ]
        report = evaluate(content_data)
        assert _checks_by_id(report)["legal.required_shm"].is_critical_failure

    def test_expired_document(self, evaluate, content_data, evaluated_at):
        shm = content_data["collateral"][0]["legal_documents"][0]
        shm["due_date"] = evaluated_at.date().isoformat()
        report = evaluate(content_data)
        assert _checks_by_id(report)["legal.DOC-SHM.not_expired"].is_critical_failure

    def test_expiry_check_only_for_documents_with_due_date(self, evaluate, content_data):
        report = evaluate(content_data)
        assert "legal.DOC-SHM.not_expired" not in _checks_by_id(report)

    def test_pending_verification_is_warning(self, evaluate, content_data):
        content_data["collateral"][0]["legal_documents"][1]["verification"] = {}
        report = evaluate(content_data)
        checks = _checks_by_id(report)
        assert checks["legal.DOC-IMB.verification_pending"].is_warning
        assert checks["legal.DOC-IMB.verification_rejected"].passed

    def test_rejected_verification_is_critical(self, evaluate, content_data):
        content_data["collateral"][0]["legal_documents"][0]["verification"] = {
            "status": "rejected"
        }
        report = evaluate(content_data)
        assert _checks_by_id(report)["legal.DOC-SHM.verification_rejected"].is_critical_failure

    def test_dispute_notice_is_critical(self, evaluate, content_data):
        content_data["environment"] = {"has_dispute_notice": True}
        report = evaluate(content_data)
        assert _checks_by_id(report)["legal.dispute_notice"].is_critical_failure

    def test_imb_area_mismatch(self, evaluate, content_data):
        content_data["collateral"][0]["legal_documents"][1]["area"] = 50
        report = evaluate(content_data)
        check = _checks_by_id(report)["legal.imb_area_consistency.COL-1"]
        assert check.is_warning
        assert "60.0%" in check.message


class TestConsistencyRules:
    """Tests for cross-field consistency."""

    def test_land_area_mismatch(self, evaluate, content_data):
        content_data["valuation_input"]["land_area"] = 150
        report = evaluate(content_data)
        assert _checks_by_id(report)["consistency.land_area"].is_warning

    def test_small_land_area_difference_is_tolerated(self, evaluate, content_data):
        content_data["valuation_input"]["land_area"] = 104
        report = evaluate(content_data)
        assert _checks_by_id(report)["consistency.land_area"].passed

    def test_weight_total_off_target_is_critical(self, evaluate, content_data):
        for comparable in content_data["comparables"]:
            comparable["weight"] = 30
        report = evaluate(content_data)
        check = _checks_by_id(report)["consistency.comparable_weight_total"]
        assert check.is_critical_failure
        assert "60.00%" in check.message
        # Flagged, not rejected: the analysis is still computed
        assert report.comparable_analysis.total_weight == 60

    def test_price_variance(self, evaluate, content_data):
        content_data["comparables"][1]["price"] = 900_000_000
        report = evaluate(content_data)
        check = _checks_by_id(report)["consistency.comparable_price_variance"]
        assert check.is_warning
        assert "#" in check.message

    def test_sla_exceeded(self, evaluate, content_data):
        content_data["general_info"]["request_received_at"] = "2024-05-01"
        report = evaluate(content_data)
        check = _checks_by_id(report)["consistency.sla_appraisal"]
        assert check.is_warning
        assert "31 days" in check.message

    def test_location_too_far(self, evaluate, content_data):
        content_data["collateral"][0]["verified_location_distance_m"] = 450
        report = evaluate(content_data)
        assert _checks_by_id(report)["consistency.location_distance.COL-1"].is_warning


class TestRiskRules:
    """Tests for environmental risk flags."""

    def test_flood_prone_with_notes_is_warning_only(self, evaluate, content_data):
        content_data["environment"] = {
            "flood_prone": True,
            "risk_notes": "Lantai ditinggikan 60 cm",
        }
        report = evaluate(content_data)
        checks = _checks_by_id(report)
        assert checks["risk.flood_prone"].is_warning
        assert checks["risk.mitigation_notes"].passed
        assert is_eligible_for_review(report.quality_checks)

    def test_flag_without_notes_is_critical(self, evaluate, content_data):
        content_data["environment"] = {"high_voltage_line": True}
        report = evaluate(content_data)
        checks = _checks_by_id(report)
        assert checks["risk.high_voltage"].is_warning
        assert checks["risk.mitigation_notes"].is_critical_failure

    def test_mitigation_rule_absent_without_flags(self, evaluate, content_data):
        report = evaluate(content_data)
        assert "risk.mitigation_notes" not in _checks_by_id(report)

    def test_string_false_flags_stay_unset(self, evaluate, content_data):
        content_data["environment"] = {"flood_prone": "false", "on_green_belt": "no"}
        report = evaluate(content_data)
        assert report.content.environment.risk_flags == ()
        assert "risk.mitigation_notes" not in _checks_by_id(report)

    def test_string_true_flag_is_set(self, evaluate, content_data):
        content_data["environment"] = {"on_green_belt": "true"}
        report = evaluate(content_data)
        assert report.content.environment.risk_flags == ("on_green_belt",)


class TestPlausibilityRules:
    """Tests for sanity ranges."""

    def test_building_standard_fallback_is_warning(self, evaluate, content_data):
        content_data["valuation_input"]["building_standard_code"] = "unknown_code"
        report = evaluate(content_data)
        check = _checks_by_id(report)["plausibility.building_standard_fallback"]
        assert check.is_warning
        assert "unknown_code" in check.message
        assert report.valuation_result.building_rate.fallback_applied is True
        assert is_eligible_for_review(report.quality_checks)

    def test_zero_market_value_is_critical(self, evaluate, content_data):
        content_data["valuation_input"].update(land_area=0, building_area=0)
        report = evaluate(content_data)
        assert _checks_by_id(report)["plausibility.market_value_positive"].is_critical_failure

    def test_safety_margin_out_of_range(self, evaluate, content_data):
        content_data["valuation_input"]["safety_margin_percent"] = 0
        report = evaluate(content_data)
        assert _checks_by_id(report)["plausibility.safety_margin_range"].is_warning

    def test_njop_range(self, evaluate, content_data):
        content_data["valuation_input"]["njop_land"] = 10_000
        report = evaluate(content_data)
        check = _checks_by_id(report)["plausibility.njop_range"]
        assert check.is_warning
        assert "land" in check.message

    def test_vehicle_skips_property_rules(self, evaluate, content_data):
        content_data["valuation_input"] = {
            "asset_type": "vehicle",
            "market_price": 250_000_000,
            "safety_margin_percent": 10,
            "liquidation_factor_percent": 70,
        }
        report = evaluate(content_data)
        checks = _checks_by_id(report)
        assert "consistency.land_area" not in checks
        assert "legal.required_shm" not in checks
        assert "plausibility.building_standard_fallback" not in checks
        assert checks["plausibility.market_value_positive"].passed


# =============================================================================
# Legal Alerts
# =============================================================================


class TestLegalAlerts:
    """Tests for the separate legal-document alert pass."""

    def test_complete_documents_raise_no_alerts(self, evaluate, content_data):
        assert evaluate(content_data).legal_alerts == ()

    def test_expired_alert_suppresses_reminder(self, evaluate, content_data, evaluated_at):
        shm = content_data["collateral"][0]["legal_documents"][0]
        shm["due_date"] = (evaluated_at.date() - timedelta(days=1)).isoformat()
        shm["reminder_date"] = "2024-01-01"
        report = evaluate(content_data)
        kinds = [a.kind for a in report.legal_alerts]
        assert kinds == [LegalAlertKind.EXPIRED]
        assert report.legal_alerts[0].alert_id == "DOC-SHM.expired"
        assert report.legal_alerts[0].collateral_id == "COL-1"

    def test_reminder_reached(self, evaluate, content_data, evaluated_at):
        shm = content_data["collateral"][0]["legal_documents"][0]
        shm["due_date"] = "2025-01-01"
        shm["reminder_date"] = evaluated_at.date().isoformat()
        report = evaluate(content_data)
        assert [a.kind for a in report.legal_alerts] == [LegalAlertKind.REMINDER_DUE]

    def test_reminder_from_verification(self, evaluate, content_data):
        imb = content_data["collateral"][0]["legal_documents"][1]
        imb["verification"]["reminder_date"] = "2024-06-01"
        report = evaluate(content_data)
        assert [a.alert_id for a in report.legal_alerts] == ["DOC-IMB.reminder_due"]

    def test_missing_fields(self, evaluate, content_data, evaluated_at):
        shm = content_data["collateral"][0]["legal_documents"][0]
        shm["holder_name"] = ""
        shm["area"] = None
        report = evaluate(content_data)
        alerts = evaluate_legal_alerts(report, evaluated_at)
        assert len(alerts) == 1
        assert alerts[0].kind == LegalAlertKind.MISSING_FIELDS
        assert "holder_name" in alerts[0].message
        assert "area" in alerts[0].message

    def test_alerts_never_block_review(self, evaluate, content_data):
        content_data["collateral"][0]["legal_documents"][0]["holder_name"] = ""
        report = evaluate(content_data)
        assert report.legal_alerts
        assert is_eligible_for_review(report.quality_checks)


# =============================================================================
# Settings
# =============================================================================


class TestQualitySettings:
    """Tests for settings built from configuration."""

    def test_from_config(self, monkeypatch):
        monkeypatch.setenv("REQUIRED_LEGAL_DOCUMENT_TYPES", "SHM, HGB")
        monkeypatch.setenv("REQUIRED_ATTACHMENTS", "photo_front")
        monkeypatch.setenv("MIN_COMPARABLES", "3")
        monkeypatch.setenv("APPRAISAL_SLA_DAYS", "7")

        settings = QualitySettings.from_config(Config.load())

        assert settings.required_legal_document_types == (
            LegalDocumentType.SHM,
            LegalDocumentType.HGB,
        )
        assert [c.value for c in settings.required_attachments] == ["photo_front"]
        assert settings.min_comparables == 3
        assert settings.appraisal_sla_days == 7

    def test_unknown_document_type_raises(self, monkeypatch):
        monkeypatch.setenv("REQUIRED_LEGAL_DOCUMENT_TYPES", "SHM,XYZ")
        with pytest.raises(ValueError):
            QualitySettings.from_config(Config.load())

    def test_custom_settings_change_rules(self, evaluate, content_data, evaluated_at):
        report = evaluate(content_data)
        settings = QualitySettings(min_comparables=5)
        checks = {c.check_id: c for c in evaluate_quality(report, evaluated_at, settings)}
        assert checks["completeness.comparables_minimum_count"].is_critical_failure

    def test_weight_tolerance_is_configurable(self, evaluate, content_data, evaluated_at):
        for comparable in content_data["comparables"]:
            comparable["weight"] = 48
        report = evaluate(content_data)
        check_id = "consistency.comparable_weight_total"

        default = {c.check_id: c for c in report.quality_checks}
        relaxed = QualitySettings(comparable_weight_tolerance=5)
        checks = {c.check_id: c for c in evaluate_quality(report, evaluated_at, relaxed)}

        assert default[check_id].is_critical_failure
        assert checks[check_id].passed

    def test_to_dict_includes_area_tolerances(self):
        data = QualitySettings(area_tolerance_percent=7.5, area_tolerance_min=3).to_dict()
        assert data["area_tolerance_percent"] == 7.5
        assert data["area_tolerance_min"] == 3
