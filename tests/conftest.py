"""
Shared fixtures: a complete, review-ready property appraisal.
"""

from copy import deepcopy
from datetime import datetime, timezone

import pytest

from appraisal.report import ReportContent
from appraisal.report.checklist import INSPECTION_CHECKLIST_TEMPLATE
from appraisal.valuation import (
    BuildingCategory,
    BuildingStandard,
    DepreciationRule,
    StaticMetadataProvider,
)
from appraisal.workflow import ReportRepository, ReportService


EVALUATED_AT = datetime(2024, 6, 10, 9, 0, tzinfo=timezone.utc)


COMPLETE_CONTENT = {
    "title": "Penilaian Rumah Tinggal Jl. Melati",
    "assigned_appraiser_id": "appraiser-1",
    "general_info": {
        "customer_name": "Budi Santoso",
        "credit_purpose": "Modal kerja",
        "customer_address": "Jl. Kenanga 3, Bandung",
        "plafond": 150_000_000,
        "request_received_at": "2024-05-20",
        "appraisal_date": "2024-06-01",
        "appraiser_name": "Sari Dewi",
    },
    "collateral": [
        {
            "collateral_id": "COL-1",
            "kind": "residential",
            "name": "Rumah Tinggal",
            "address": "Jl. Melati 12, Bandung",
            "latitude": -6.914744,
            "longitude": 107.609810,
            "land_area": 100,
            "building_area": 80,
            "verified_location_distance_m": 35,
            "legal_documents": [
                {
                    "document_id": "DOC-SHM",
                    "document_type": "SHM",
                    "number": "1234",
                    "issue_date": "2015-03-01",
                    "holder_name": "Budi Santoso",
                    "area": 100,
                    "verification": {"status": "verified", "verified_by": "legal-1"},
                },
                {
                    "document_id": "DOC-IMB",
                    "document_type": "IMB",
                    "number": "IMB-77",
                    "issue_date": "2010-02-01",
                    "area": 80,
                    "verification": {"status": "verified", "verified_by": "legal-1"},
                },
            ],
            "inspection_checklist": [
                {"item_id": item.item_id, "response": "yes"}
                for item in INSPECTION_CHECKLIST_TEMPLATE
            ],
        },
    ],
    "technical": {
        "land_shape": "Persegi",
        "land_topography": "Datar",
        "building_structure": "Beton bertulang",
        "wall_material": "Bata plester",
        "floor_material": "Keramik",
        "roof_material": "Genteng",
        "year_built": 2010,
    },
    "environment": {},
    "comparables": [
        {
            "comparable_id": "CMP-1",
            "source": "Broker",
            "land_area": 100,
            "building_area": 80,
            "price": 290_000_000,
            "weight": 50,
        },
        {
            "comparable_id": "CMP-2",
            "source": "Listing",
            "land_area": 110,
            "building_area": 70,
            "price": 310_000_000,
            "weight": 50,
        },
    ],
    "valuation_input": {
        "asset_type": "property",
        "land_area": 100,
        "building_area": 80,
        "land_rate": 2_000_000,
        "building_standard_code": "simple_b",
        "safety_margin_percent": 20,
        "liquidation_factor_percent": 60,
    },
    "attachments": [
        {"category": "photo_front", "filename": "front.jpg"},
        {"category": "photo_right", "filename": "right.jpg"},
        {"category": "photo_left", "filename": "left.jpg"},
        {"category": "legal_doc", "filename": "shm.pdf"},
    ],
}


@pytest.fixture
def content_data():
    """Raw content payload (a fresh copy per test)."""
    return deepcopy(COMPLETE_CONTENT)


@pytest.fixture
def complete_content(content_data):
    return ReportContent.from_dict(content_data)


@pytest.fixture
def metadata_provider():
    """Catalog with a Rp 1,500,000/m2 standard and 10/20/30% depreciation."""
    return StaticMetadataProvider(
        standards=(
            BuildingStandard(
                code="simple_b",
                name="Simple house type B",
                category=BuildingCategory.SIMPLE_HOUSE,
                floors=1,
                base_rate=1_500_000,
            ),
        ),
        rules=(
            DepreciationRule(min_age=0, max_age=5, percent=10),
            DepreciationRule(min_age=5, max_age=15, percent=20),
            DepreciationRule(min_age=15, max_age=None, percent=30),
        ),
    )


@pytest.fixture
def evaluated_at():
    return EVALUATED_AT


@pytest.fixture
def repository():
    return ReportRepository()


@pytest.fixture
def service(repository, metadata_provider):
    """Report service on a fixed clock."""
    return ReportService(repository, metadata_provider, clock=lambda: EVALUATED_AT)
