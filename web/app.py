"""
FastAPI application for the collateral appraisal engine.

JSON endpoints over the report service. Values are returned raw; currency
formatting is left to the client.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from appraisal.comparables import (
    MarketComparable,
    compute_comparable_analysis,
    normalise_comparables,
)
from appraisal.errors import (
    InvalidTransitionError,
    LegalDocumentNotFoundError,
    ReportLockedError,
    ReportNotFoundError,
    ReviewBlockedError,
)
from appraisal.quality import QualitySettings, is_eligible_for_review
from appraisal.report import LegalDocumentVerification, ReportContent, ReportStatus
from appraisal.workflow import Report, ReportService, get_report_repository
from utils.config import Config


logger = logging.getLogger(__name__)


# =============================================================================
# Request Bodies
# =============================================================================


class ReportContentRequest(BaseModel):
    """Create / update / preview body. content follows ReportContent.to_dict()."""
    content: dict[str, Any] = {}
    actor_id: str = "system"


class ActorRequest(BaseModel):
    actor_id: str = "system"


class StatusChangeRequest(BaseModel):
    """Workflow transition request."""
    status: str  # draft, for_review, approved, rejected
    actor_id: str = "system"
    reason: Optional[str] = None


class VerificationRequest(BaseModel):
    """Legal document verification outcome."""
    status: str  # pending, verified, rejected
    actor_id: str = "system"
    verified_by: Optional[str] = None
    verified_at: Optional[str] = None
    verification_source: Optional[str] = None
    notes: Optional[str] = None
    reminder_date: Optional[str] = None


class ComparableAnalysisRequest(BaseModel):
    comparables: List[dict[str, Any]] = []
    notes: List[str] = []


# =============================================================================
# Helpers
# =============================================================================


def _parse_content(data: dict[str, Any]) -> ReportContent:
    try:
        return ReportContent.from_dict(data)
    except (ValueError, TypeError) as e:
        raise HTTPException(status_code=422, detail=f"Invalid report content: {e}")


def _parse_status(value: str) -> ReportStatus:
    try:
        return ReportStatus(value)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Invalid status: {value}")


def _computed(report: Report) -> dict[str, Any]:
    """Computed snapshots only, for previews."""
    return {
        "content": report.content.to_dict(),
        "valuation_result": report.valuation_result.to_dict(),
        "comparable_analysis": report.comparable_analysis.to_dict(),
        "quality_checks": [c.to_dict() for c in report.quality_checks],
        "quality_summary": report.quality_summary.to_dict(),
        "legal_alerts": [a.to_dict() for a in report.legal_alerts],
        "eligible_for_review": is_eligible_for_review(report.quality_checks),
    }


def build_service(config: Config) -> ReportService:
    """Report service wired from configuration."""
    repository = get_report_repository(config.reports_path)
    return ReportService(repository, settings=QualitySettings.from_config(config))


# =============================================================================
# Application
# =============================================================================


def create_app(service: Optional[ReportService] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = Config.load()
    if service is None:
        service = build_service(config)

    app = FastAPI(
        title="Collateral Appraisal Engine",
        description="Collateral valuation and appraisal report quality validation",
        version="0.1.0",
        debug=config.debug,
    )
    app.state.service = service

    @app.get("/health", include_in_schema=False)
    def health():
        """Health endpoint. No dependencies, no IO."""
        return {"status": "healthy"}

    if config.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(config.allowed_origins),
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE"],
            allow_headers=["*"],
        )

    # ==========================================================================
    # Domain error mapping
    # ==========================================================================

    @app.exception_handler(ReportNotFoundError)
    async def report_not_found(request: Request, exc: ReportNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(LegalDocumentNotFoundError)
    async def document_not_found(request: Request, exc: LegalDocumentNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ReportLockedError)
    async def report_locked(request: Request, exc: ReportLockedError):
        return JSONResponse(
            status_code=409,
            content={"detail": str(exc), "status": exc.status},
        )

    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition(request: Request, exc: InvalidTransitionError):
        return JSONResponse(
            status_code=409,
            content={"detail": str(exc), "current": exc.current, "target": exc.target},
        )

    @app.exception_handler(ReviewBlockedError)
    async def review_blocked(request: Request, exc: ReviewBlockedError):
        return JSONResponse(
            status_code=409,
            content={
                "detail": "Critical quality checks failed",
                "blocking_checks": [
                    {"check_id": c.check_id, "label": c.label, "message": c.message}
                    for c in exc.blocking_checks
                ],
            },
        )

    # ==========================================================================
    # Metadata and stateless calculators
    # ==========================================================================

    @app.get("/api/meta/building-standards")
    def building_standards():
        provider = service.metadata_provider
        return {
            "building_standards": [s.to_dict() for s in provider.building_standards()],
            "depreciation_rules": [r.to_dict() for r in provider.depreciation_rules()],
        }

    @app.post("/api/valuation/preview")
    def valuation_preview(body: ReportContentRequest):
        """Compute valuation, comparables and checks for unsaved content."""
        report = service.preview(_parse_content(body.content))
        return _computed(report)

    @app.post("/api/comparables/analysis")
    def comparable_analysis(body: ComparableAnalysisRequest):
        try:
            comparables = normalise_comparables(
                MarketComparable.from_dict(c) for c in body.comparables
            )
        except (ValueError, TypeError) as e:
            raise HTTPException(status_code=422, detail=f"Invalid comparable: {e}")
        summary = compute_comparable_analysis(comparables, body.notes)
        return {
            "comparables": [c.to_dict() for c in comparables],
            "summary": summary.to_dict(),
        }

    # ==========================================================================
    # Reports
    # ==========================================================================

    @app.get("/api/reports")
    def list_reports(status: Optional[str] = Query(None, description="Workflow status")):
        target = _parse_status(status) if status else None
        reports = service.list_reports(target)
        return {
            "count": len(reports),
            "reports": [
                {
                    "report_id": r.report_id,
                    "report_number": r.report_number,
                    "status": r.status.value,
                    "title": r.content.title,
                    "customer_name": r.content.general_info.customer_name,
                    "market_value": r.valuation_result.market_value,
                    "quality_summary": r.quality_summary.to_dict(),
                    "updated_at": r.updated_at.isoformat() if r.updated_at else None,
                }
                for r in reports
            ],
        }

    @app.post("/api/reports", status_code=201)
    def create_report(body: ReportContentRequest):
        report = service.create_report(_parse_content(body.content), body.actor_id)
        return report.to_dict()

    @app.get("/api/reports/{report_id}")
    def get_report(report_id: str):
        return service.get_report(report_id).to_dict()

    @app.put("/api/reports/{report_id}")
    def update_report(report_id: str, body: ReportContentRequest):
        content = _parse_content(body.content)
        return service.update_report(report_id, content, body.actor_id).to_dict()

    @app.delete("/api/reports/{report_id}", status_code=204)
    def delete_report(report_id: str):
        service.delete_report(report_id)
        return Response(status_code=204)

    @app.post("/api/reports/{report_id}/recalculate")
    def recalculate(report_id: str, body: Optional[ActorRequest] = None):
        actor_id = body.actor_id if body else "system"
        return service.recalculate(report_id, actor_id).to_dict()

    @app.post("/api/reports/{report_id}/status")
    def change_status(report_id: str, body: StatusChangeRequest):
        target = _parse_status(body.status)
        report = service.change_status(report_id, target, body.actor_id, body.reason)
        return report.to_dict()

    @app.post("/api/reports/{report_id}/legal-documents/{document_id}/verification")
    def verify_legal_document(report_id: str, document_id: str, body: VerificationRequest):
        payload = body.model_dump(exclude={"actor_id"})
        try:
            verification = LegalDocumentVerification.from_dict(payload)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=f"Invalid verification: {e}")
        report = service.update_legal_document_verification(
            report_id, document_id, verification, body.actor_id
        )
        return report.to_dict()

    return app


# Create app instance for uvicorn
app = create_app()
