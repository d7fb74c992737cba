"""
Report Repository - In-Memory Storage for Appraisal Reports

Stores the latest immutable Report per identifier, with optional JSON file
persistence. Writers to the same report are serialised through
write_lock(); readers get the last stored snapshot without locking.
"""

from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from appraisal.report.schema import ReportStatus
from appraisal.workflow.record import Report


logger = logging.getLogger(__name__)


# =============================================================================
# Repository
# =============================================================================


class ReportRepository:
    """
    Repository for storing and retrieving appraisal reports.

    Uses in-memory storage with optional file persistence.
    """

    def __init__(self, persist_path: Optional[str] = None):
        """
        Initialise repository.

        Args:
            persist_path: Optional path to persist data to JSON file
        """
        self._reports: dict[str, Report] = {}
        self._report_counter = 0
        self._persist_path = Path(persist_path) if persist_path else None

        # Guards the dict, the counter and the per-report lock table
        self._registry_lock = threading.Lock()
        self._write_locks: dict[str, threading.Lock] = {}

        if self._persist_path and self._persist_path.exists():
            self._load_from_file()

    def _save_to_file(self) -> None:
        """Persist data to file."""
        if not self._persist_path:
            return

        data = {
            "reports": {rid: report.to_dict() for rid, report in self._reports.items()},
            "counters": {"report_number": self._report_counter},
            "saved_at": datetime.now(timezone.utc).isoformat(),
        }

        self._persist_path.parent.mkdir(parents=True, exist_ok=True)
        self._persist_path.write_text(json.dumps(data, indent=2))

    def _load_from_file(self) -> None:
        """Load data from file."""
        if not self._persist_path or not self._persist_path.exists():
            return

        try:
            data = json.loads(self._persist_path.read_text())
            for rid, report_data in data.get("reports", {}).items():
                self._reports[rid] = Report.from_dict(report_data)
            self._report_counter = int(data.get("counters", {}).get("report_number", 0))
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            # Start fresh rather than refuse to boot
            logger.warning("Could not load report data from %s: %s", self._persist_path, e)

    # =========================================================================
    # Locking
    # =========================================================================

    @contextmanager
    def write_lock(self, report_id: str) -> Iterator[None]:
        """
        Serialise writers for one report identifier.

        Hold this around read-recompute-store so concurrent edits of the
        same report never overwrite each other's recomputation.
        """
        with self._registry_lock:
            lock = self._write_locks.setdefault(report_id, threading.Lock())
        with lock:
            yield

    def next_report_number(self, year: int) -> str:
        """Allocate the next report number, e.g. APR-2024-0007."""
        with self._registry_lock:
            self._report_counter += 1
            number = self._report_counter
        return f"APR-{year}-{number:04d}"

    # =========================================================================
    # CRUD Operations
    # =========================================================================

    def add(self, report: Report) -> Report:
        """
        Store a new report.

        Raises:
            ValueError: If report_id already exists
        """
        with self._registry_lock:
            if report.report_id in self._reports:
                raise ValueError(f"Report {report.report_id} already exists")
            self._reports[report.report_id] = report
            self._save_to_file()
        return report

    def get(self, report_id: str) -> Optional[Report]:
        """Get the latest snapshot of a report, or None."""
        return self._reports.get(report_id)

    def save(self, report: Report) -> Report:
        """Replace the stored snapshot of an existing report."""
        with self._registry_lock:
            self._reports[report.report_id] = report
            self._save_to_file()
        return report

    def delete(self, report_id: str) -> bool:
        """
        Delete a report and its computed snapshots.

        Returns:
            True if deleted, False if not found
        """
        with self._registry_lock:
            if report_id not in self._reports:
                return False
            del self._reports[report_id]
            self._write_locks.pop(report_id, None)
            self._save_to_file()
        return True

    # =========================================================================
    # Query Operations
    # =========================================================================

    def _snapshot(self) -> list[Report]:
        with self._registry_lock:
            return list(self._reports.values())

    def list_all(self) -> list[Report]:
        """Get all reports, newest first."""
        return sorted(
            self._snapshot(),
            key=lambda r: r.created_at or datetime.min.replace(tzinfo=timezone.utc),
            reverse=True,
        )

    def list_by_status(self, status: ReportStatus) -> list[Report]:
        """Get reports in a given workflow status."""
        return [r for r in self.list_all() if r.status == status]

    def count(self) -> int:
        """Get total number of reports."""
        with self._registry_lock:
            return len(self._reports)

    def count_by_status(self) -> dict[str, int]:
        """Get count of reports by status."""
        counts: dict[str, int] = {}
        for report in self._snapshot():
            counts[report.status.value] = counts.get(report.status.value, 0) + 1
        return counts


# =============================================================================
# Singleton Instance
# =============================================================================

_repository_instance: Optional[ReportRepository] = None


def get_report_repository(persist_path: Optional[str] = None) -> ReportRepository:
    """
    Get the report repository singleton.

    Args:
        persist_path: Optional path for persistence (only used on first call)

    Returns:
        ReportRepository instance
    """
    global _repository_instance
    if _repository_instance is None:
        _repository_instance = ReportRepository(persist_path)
    return _repository_instance
