"""
Appraisal Report Schema - Editable Report Content

Defines the survey data an appraiser captures for a collateral appraisal:
general request information, collateral items with their legal documents
and inspection checklists, technical specification, environment checklist,
market comparables, valuation input and attachments.

All records are immutable. Edits produce a new ReportContent.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from appraisal.comparables.models import MarketComparable
from appraisal.valuation.models import (
    PropertyValuationInput,
    ValuationInput,
    valuation_input_from_dict,
)


# =============================================================================
# Enums
# =============================================================================


class ReportStatus(Enum):
    """Workflow status of an appraisal report."""

    DRAFT = "draft"
    FOR_REVIEW = "for_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class CollateralKind(Enum):
    """Kind of collateral item."""

    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    LAND = "land"
    OTHER = "other"


class LegalDocumentType(Enum):
    """
    Legal document types.

    SHM: Sertifikat Hak Milik (freehold title)
    HGB: Hak Guna Bangunan (right to build, has an expiry)
    AJB: Akta Jual Beli (deed of sale)
    IMB: Izin Mendirikan Bangunan (building permit)
    """

    SHM = "SHM"
    HGB = "HGB"
    AJB = "AJB"
    IMB = "IMB"
    OTHER = "Other"

    @classmethod
    def from_string(cls, value: str) -> Optional["LegalDocumentType"]:
        """Convert string to LegalDocumentType, case-insensitive."""
        normalised = str(value).strip().upper()
        for member in cls:
            if member.value.upper() == normalised:
                return member
        return None


class VerificationStatus(Enum):
    """Verification state of a legal document."""

    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class InspectionResponse(Enum):
    """Answer to a field inspection checklist item."""

    YES = "yes"
    NO = "no"
    NA = "na"


class AttachmentCategory(Enum):
    """Category of an uploaded attachment."""

    PHOTO_FRONT = "photo_front"
    PHOTO_RIGHT = "photo_right"
    PHOTO_LEFT = "photo_left"
    PHOTO_INTERIOR = "photo_interior"
    MAP = "map"
    LEGAL_DOC = "legal_doc"
    OTHER = "other"


# =============================================================================
# Parsing Helpers
# =============================================================================


def generate_id(prefix: str) -> str:
    """Generate a unique prefixed identifier."""
    return f"{prefix}-{uuid.uuid4().hex[:12].upper()}"


def parse_date(value: Any) -> Optional[date]:
    """
    Parse an ISO date (or datetime) into a date.

    Raises:
        ValueError: If the value is a non-empty string that is not ISO formatted
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if "T" in text or " " in text:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    return date.fromisoformat(text)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO datetime string, passing datetimes through."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _optional_int(value: Any) -> Optional[int]:
    parsed = _optional_float(value)
    return int(parsed) if parsed is not None else None


def _flag(value: Any) -> bool:
    """Checkbox value; "false", "no", "0" and blanks are unchecked."""
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "y", "1", "on")
    return bool(value)


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _list(data: dict, key: str) -> list:
    raw = data.get(key)
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        raise ValueError(f"{key} must be a list")
    return list(raw)


# =============================================================================
# General Information
# =============================================================================


@dataclass(frozen=True)
class GeneralInfo:
    """Credit request and customer details."""

    customer_name: str = ""
    credit_purpose: str = ""
    customer_address: str = ""
    customer_id: str = ""
    plafond: float = 0.0  # Requested credit ceiling
    unit: str = ""
    report_type: str = ""
    request_date: Optional[date] = None
    request_received_at: Optional[date] = None
    appraisal_date: Optional[date] = None
    appraiser_name: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "customer_name": self.customer_name,
            "credit_purpose": self.credit_purpose,
            "customer_address": self.customer_address,
            "customer_id": self.customer_id,
            "plafond": self.plafond,
            "unit": self.unit,
            "report_type": self.report_type,
            "request_date": _iso(self.request_date),
            "request_received_at": _iso(self.request_received_at),
            "appraisal_date": _iso(self.appraisal_date),
            "appraiser_name": self.appraiser_name,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "GeneralInfo":
        data = data or {}
        return cls(
            customer_name=_text(data.get("customer_name")),
            credit_purpose=_text(data.get("credit_purpose")),
            customer_address=_text(data.get("customer_address")),
            customer_id=_text(data.get("customer_id")),
            plafond=_optional_float(data.get("plafond")) or 0.0,
            unit=_text(data.get("unit")),
            report_type=_text(data.get("report_type")),
            request_date=parse_date(data.get("request_date")),
            request_received_at=parse_date(data.get("request_received_at")),
            appraisal_date=parse_date(data.get("appraisal_date")),
            appraiser_name=_text(data.get("appraiser_name")),
        )


# =============================================================================
# Legal Documents
# =============================================================================


@dataclass(frozen=True)
class LegalDocumentVerification:
    """Outcome of verifying a legal document against its issuing registry."""

    status: VerificationStatus = VerificationStatus.PENDING
    verified_by: Optional[str] = None
    verified_at: Optional[datetime] = None
    verification_source: Optional[str] = None
    notes: Optional[str] = None
    reminder_date: Optional[date] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "verified_by": self.verified_by,
            "verified_at": self.verified_at.isoformat() if self.verified_at else None,
            "verification_source": self.verification_source,
            "notes": self.notes,
            "reminder_date": _iso(self.reminder_date),
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "LegalDocumentVerification":
        data = data or {}
        status = data.get("status") or VerificationStatus.PENDING.value
        return cls(
            status=VerificationStatus(status),
            verified_by=data.get("verified_by"),
            verified_at=parse_datetime(data.get("verified_at")),
            verification_source=data.get("verification_source"),
            notes=data.get("notes"),
            reminder_date=parse_date(data.get("reminder_date")),
        )


@dataclass(frozen=True)
class LegalDocument:
    """A land title, permit or deed attached to a collateral item."""

    document_id: str
    document_type: LegalDocumentType
    number: str = ""
    issue_date: Optional[date] = None
    due_date: Optional[date] = None  # Expiry (HGB titles)
    reminder_date: Optional[date] = None
    holder_name: str = ""
    issuer: str = ""
    area: Optional[float] = None  # m2 stated on the document
    notes: Optional[str] = None
    verification: LegalDocumentVerification = field(default_factory=LegalDocumentVerification)

    @property
    def display_name(self) -> str:
        if self.number:
            return f"{self.document_type.value} {self.number}"
        return self.document_type.value

    @property
    def effective_reminder_date(self) -> Optional[date]:
        """Document reminder, else the one recorded at verification."""
        return self.reminder_date or self.verification.reminder_date

    def to_dict(self) -> dict[str, Any]:
        return {
            "document_id": self.document_id,
            "document_type": self.document_type.value,
            "number": self.number,
            "issue_date": _iso(self.issue_date),
            "due_date": _iso(self.due_date),
            "reminder_date": _iso(self.reminder_date),
            "holder_name": self.holder_name,
            "issuer": self.issuer,
            "area": self.area,
            "notes": self.notes,
            "verification": self.verification.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LegalDocument":
        """
        Build from a dictionary, generating an id when absent.

        Raises:
            ValueError: If document_type is missing or unknown
        """
        raw_type = data.get("document_type") or data.get("type")
        document_type = LegalDocumentType.from_string(raw_type) if raw_type else None
        if document_type is None:
            raise ValueError(f"Invalid legal document type: {raw_type}")

        return cls(
            document_id=str(data.get("document_id") or generate_id("DOC")),
            document_type=document_type,
            number=_text(data.get("number")),
            issue_date=parse_date(data.get("issue_date")),
            due_date=parse_date(data.get("due_date")),
            reminder_date=parse_date(data.get("reminder_date")),
            holder_name=_text(data.get("holder_name")),
            issuer=_text(data.get("issuer")),
            area=_optional_float(data.get("area")),
            notes=data.get("notes"),
            verification=LegalDocumentVerification.from_dict(data.get("verification")),
        )


# =============================================================================
# Collateral
# =============================================================================


@dataclass(frozen=True)
class InspectionChecklistItem:
    """One field-inspection question and the appraiser's answer."""

    item_id: str
    label: str
    category: str = "lainnya"
    response: Optional[InspectionResponse] = None
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "item_id": self.item_id,
            "label": self.label,
            "category": self.category,
            "response": self.response.value if self.response else None,
            "notes": self.notes,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "InspectionChecklistItem":
        item_id = data.get("item_id") or data.get("id")
        if not item_id:
            raise ValueError("Inspection checklist item requires item_id")
        response = data.get("response")
        return cls(
            item_id=str(item_id),
            label=_text(data.get("label")),
            category=_text(data.get("category")) or "lainnya",
            response=InspectionResponse(response) if response else None,
            notes=data.get("notes"),
            updated_at=parse_datetime(data.get("updated_at")),
        )


@dataclass(frozen=True)
class CollateralItem:
    """A single collateral object (plot, house, shophouse)."""

    collateral_id: str
    kind: CollateralKind = CollateralKind.RESIDENTIAL
    name: str = ""
    address: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    land_area: float = 0.0
    building_area: float = 0.0
    legal_documents: tuple[LegalDocument, ...] = ()
    inspection_checklist: tuple[InspectionChecklistItem, ...] = ()
    # Distance between surveyed point and the land-office verified point
    verified_location_distance_m: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "collateral_id": self.collateral_id,
            "kind": self.kind.value,
            "name": self.name,
            "address": self.address,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "land_area": self.land_area,
            "building_area": self.building_area,
            "legal_documents": [d.to_dict() for d in self.legal_documents],
            "inspection_checklist": [i.to_dict() for i in self.inspection_checklist],
            "verified_location_distance_m": self.verified_location_distance_m,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CollateralItem":
        kind = data.get("kind") or CollateralKind.RESIDENTIAL.value
        return cls(
            collateral_id=str(data.get("collateral_id") or generate_id("COL")),
            kind=CollateralKind(kind),
            name=_text(data.get("name")),
            address=_text(data.get("address")),
            latitude=_optional_float(data.get("latitude")),
            longitude=_optional_float(data.get("longitude")),
            land_area=_optional_float(data.get("land_area")) or 0.0,
            building_area=_optional_float(data.get("building_area")) or 0.0,
            legal_documents=tuple(
                LegalDocument.from_dict(d) for d in _list(data, "legal_documents")
            ),
            inspection_checklist=tuple(
                InspectionChecklistItem.from_dict(i) for i in _list(data, "inspection_checklist")
            ),
            verified_location_distance_m=_optional_float(data.get("verified_location_distance_m")),
        )


# =============================================================================
# Technical & Environment
# =============================================================================


# Fields a technical survey must fill before review
REQUIRED_TECHNICAL_FIELDS = (
    "land_shape",
    "land_topography",
    "building_structure",
    "wall_material",
    "floor_material",
    "roof_material",
)


@dataclass(frozen=True)
class TechnicalSpecification:
    """Physical survey of land and building."""

    land_shape: str = ""
    land_topography: str = ""
    building_structure: str = ""
    wall_material: str = ""
    floor_material: str = ""
    roof_material: str = ""
    year_built: Optional[int] = None
    condition_notes: str = ""

    @property
    def missing_fields(self) -> tuple[str, ...]:
        return tuple(name for name in REQUIRED_TECHNICAL_FIELDS if not getattr(self, name))

    def to_dict(self) -> dict[str, Any]:
        return {
            "land_shape": self.land_shape,
            "land_topography": self.land_topography,
            "building_structure": self.building_structure,
            "wall_material": self.wall_material,
            "floor_material": self.floor_material,
            "roof_material": self.roof_material,
            "year_built": self.year_built,
            "condition_notes": self.condition_notes,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "TechnicalSpecification":
        data = data or {}
        return cls(
            land_shape=_text(data.get("land_shape")),
            land_topography=_text(data.get("land_topography")),
            building_structure=_text(data.get("building_structure")),
            wall_material=_text(data.get("wall_material")),
            floor_material=_text(data.get("floor_material")),
            roof_material=_text(data.get("roof_material")),
            year_built=_optional_int(data.get("year_built")),
            condition_notes=_text(data.get("condition_notes")),
        )


@dataclass(frozen=True)
class EnvironmentChecklist:
    """Environmental and legal-risk flags observed on site."""

    flood_prone: bool = False
    high_voltage_line: bool = False  # Under or near a SUTET transmission line
    has_dispute_notice: bool = False
    near_waste_facility: bool = False
    on_waqf_land: bool = False
    on_green_belt: bool = False
    near_cemetery: bool = False
    near_industrial: bool = False
    risk_notes: str = ""

    @property
    def risk_flags(self) -> tuple[str, ...]:
        """Names of the high-risk indicators that are set."""
        flags = (
            "flood_prone",
            "high_voltage_line",
            "near_waste_facility",
            "on_waqf_land",
            "on_green_belt",
        )
        return tuple(name for name in flags if getattr(self, name))

    def to_dict(self) -> dict[str, Any]:
        return {
            "flood_prone": self.flood_prone,
            "high_voltage_line": self.high_voltage_line,
            "has_dispute_notice": self.has_dispute_notice,
            "near_waste_facility": self.near_waste_facility,
            "on_waqf_land": self.on_waqf_land,
            "on_green_belt": self.on_green_belt,
            "near_cemetery": self.near_cemetery,
            "near_industrial": self.near_industrial,
            "risk_notes": self.risk_notes,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "EnvironmentChecklist":
        data = data or {}
        return cls(
            flood_prone=_flag(data.get("flood_prone")),
            high_voltage_line=_flag(data.get("high_voltage_line")),
            has_dispute_notice=_flag(data.get("has_dispute_notice")),
            near_waste_facility=_flag(data.get("near_waste_facility")),
            on_waqf_land=_flag(data.get("on_waqf_land")),
            on_green_belt=_flag(data.get("on_green_belt")),
            near_cemetery=_flag(data.get("near_cemetery")),
            near_industrial=_flag(data.get("near_industrial")),
            risk_notes=_text(data.get("risk_notes")),
        )


# =============================================================================
# Attachments
# =============================================================================


@dataclass(frozen=True)
class Attachment:
    """
    Metadata of an uploaded photo or scan.

    File contents live in external storage; only the reference is kept.
    """

    attachment_id: str
    category: AttachmentCategory
    filename: str = ""
    uploaded_at: Optional[datetime] = None
    caption: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "attachment_id": self.attachment_id,
            "category": self.category.value,
            "filename": self.filename,
            "uploaded_at": self.uploaded_at.isoformat() if self.uploaded_at else None,
            "caption": self.caption,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Attachment":
        return cls(
            attachment_id=str(data.get("attachment_id") or generate_id("ATT")),
            category=AttachmentCategory(data.get("category")),
            filename=_text(data.get("filename")),
            uploaded_at=parse_datetime(data.get("uploaded_at")),
            caption=_text(data.get("caption")),
        )


# =============================================================================
# Report Content
# =============================================================================


@dataclass(frozen=True)
class ReportContent:
    """
    Everything the appraiser edits on a report.

    Computed snapshots (valuation, comparable analysis, quality) are not
    part of the content; they are derived from it.
    """

    title: str = ""
    assigned_appraiser_id: str = ""
    general_info: GeneralInfo = field(default_factory=GeneralInfo)
    collateral: tuple[CollateralItem, ...] = ()
    technical: TechnicalSpecification = field(default_factory=TechnicalSpecification)
    environment: EnvironmentChecklist = field(default_factory=EnvironmentChecklist)
    comparables: tuple[MarketComparable, ...] = ()
    valuation_input: ValuationInput = field(default_factory=PropertyValuationInput)
    attachments: tuple[Attachment, ...] = ()
    remarks: str = ""

    @property
    def legal_documents(self) -> tuple[tuple[CollateralItem, LegalDocument], ...]:
        """All legal documents paired with their collateral, in order."""
        return tuple(
            (item, document)
            for item in self.collateral
            for document in item.legal_documents
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "assigned_appraiser_id": self.assigned_appraiser_id,
            "general_info": self.general_info.to_dict(),
            "collateral": [c.to_dict() for c in self.collateral],
            "technical": self.technical.to_dict(),
            "environment": self.environment.to_dict(),
            "comparables": [c.to_dict() for c in self.comparables],
            "valuation_input": self.valuation_input.to_dict(),
            "attachments": [a.to_dict() for a in self.attachments],
            "remarks": self.remarks,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "ReportContent":
        """
        Build report content from a dictionary.

        Missing sections default to empty; drafts may be incomplete.

        Raises:
            ValueError: If a section is structurally invalid (unknown enum
                value, malformed date, list field that is not a list)
        """
        data = data or {}

        comparables = []
        for raw in _list(data, "comparables"):
            raw = dict(raw)
            if not raw.get("comparable_id"):
                raw["comparable_id"] = raw.get("id") or generate_id("CMP")
            comparables.append(MarketComparable.from_dict(raw))

        return cls(
            title=_text(data.get("title")),
            assigned_appraiser_id=_text(data.get("assigned_appraiser_id")),
            general_info=GeneralInfo.from_dict(data.get("general_info")),
            collateral=tuple(CollateralItem.from_dict(c) for c in _list(data, "collateral")),
            technical=TechnicalSpecification.from_dict(data.get("technical")),
            environment=EnvironmentChecklist.from_dict(data.get("environment")),
            comparables=tuple(comparables),
            valuation_input=valuation_input_from_dict(data.get("valuation_input")),
            attachments=tuple(Attachment.from_dict(a) for a in _list(data, "attachments")),
            remarks=_text(data.get("remarks")),
        )
