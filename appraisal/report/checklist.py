"""
Field Inspection Checklist Template

Every collateral item carries the standard inspection questions. Stored
answers are merged onto the template; custom questions outside the
template are kept after the standard ones.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Final, Iterable, Optional

from appraisal.report.schema import CollateralItem, InspectionChecklistItem


INSPECTION_CHECKLIST_TEMPLATE: Final[tuple[InspectionChecklistItem, ...]] = (
    InspectionChecklistItem(
        item_id="akses_kendaraan",
        label="Akses kendaraan roda 4 sampai ke lokasi agunan",
        category="akses",
    ),
    InspectionChecklistItem(
        item_id="topografi_memadai",
        label="Topografi dan kontur lahan tidak menimbulkan risiko besar (longsor/banjir)",
        category="lingkungan",
    ),
    InspectionChecklistItem(
        item_id="struktur_baik",
        label="Struktur bangunan utama dalam kondisi baik tanpa kerusakan mayor",
        category="kondisi",
    ),
    InspectionChecklistItem(
        item_id="utilitas_listrik_air",
        label="Utilitas dasar (listrik & air) aktif dan memadai",
        category="utilitas",
    ),
    InspectionChecklistItem(
        item_id="legalitas_sesuai",
        label="Dokumen legalitas sesuai dengan kondisi fisik di lapangan",
        category="legal",
    ),
    InspectionChecklistItem(
        item_id="lingkungan_umum",
        label="Lingkungan sekitar mendukung peruntukan agunan",
        category="lingkungan",
    ),
)


def merge_inspection_checklist(
    existing: Optional[Iterable[InspectionChecklistItem]],
) -> tuple[InspectionChecklistItem, ...]:
    """
    Merge stored answers onto the template.

    Template labels and categories always win; response, notes and
    updated_at come from the stored item with the same id.
    """
    existing = tuple(existing or ())
    if not existing:
        return INSPECTION_CHECKLIST_TEMPLATE

    stored = {item.item_id: item for item in existing}
    merged = []
    for template_item in INSPECTION_CHECKLIST_TEMPLATE:
        current = stored.get(template_item.item_id)
        if current is None:
            merged.append(template_item)
            continue
        merged.append(replace(
            template_item,
            response=current.response,
            notes=current.notes,
            updated_at=current.updated_at,
        ))

    template_ids = {item.item_id for item in INSPECTION_CHECKLIST_TEMPLATE}
    merged.extend(item for item in existing if item.item_id not in template_ids)
    return tuple(merged)


def normalise_collateral(items: Iterable[CollateralItem]) -> tuple[CollateralItem, ...]:
    """Give every collateral item the merged inspection checklist."""
    return tuple(
        replace(item, inspection_checklist=merge_inspection_checklist(item.inspection_checklist))
        for item in items
    )
