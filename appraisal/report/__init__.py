"""
Appraisal Report Content

Survey data captured by the appraiser. Computed snapshots and workflow
state are held by the report record in appraisal.workflow.
"""

from .schema import (
    ReportStatus,
    CollateralKind,
    LegalDocumentType,
    VerificationStatus,
    InspectionResponse,
    AttachmentCategory,
    GeneralInfo,
    LegalDocumentVerification,
    LegalDocument,
    InspectionChecklistItem,
    CollateralItem,
    TechnicalSpecification,
    EnvironmentChecklist,
    Attachment,
    ReportContent,
    REQUIRED_TECHNICAL_FIELDS,
    generate_id,
    parse_date,
    parse_datetime,
)
from .checklist import (
    INSPECTION_CHECKLIST_TEMPLATE,
    merge_inspection_checklist,
    normalise_collateral,
)

__all__ = [
    # Enums
    "ReportStatus",
    "CollateralKind",
    "LegalDocumentType",
    "VerificationStatus",
    "InspectionResponse",
    "AttachmentCategory",
    # Records
    "GeneralInfo",
    "LegalDocumentVerification",
    "LegalDocument",
    "InspectionChecklistItem",
    "CollateralItem",
    "TechnicalSpecification",
    "EnvironmentChecklist",
    "Attachment",
    "ReportContent",
    "REQUIRED_TECHNICAL_FIELDS",
    # Helpers
    "generate_id",
    "parse_date",
    "parse_datetime",
    # Checklist
    "INSPECTION_CHECKLIST_TEMPLATE",
    "merge_inspection_checklist",
    "normalise_collateral",
]
