"""Report storage.

The API layer talks to storage only through the three methods below; the
workflow engine never sees it.

``put`` is a compare-and-set on ``Report.version``:
- ``expected_version=None`` inserts a new report (fails if the id exists)
- otherwise the stored version must equal ``expected_version``
Both return the stored report with its version bumped by one.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Protocol

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.core import ledger
from app.core.errors import ConflictOnWrite, NotFound
from app.core.report import HistoryEntry, PartySection, Report, ReportStatus
from app.db.models.report import ReportRow

logger = logging.getLogger("damage_report.storage")


class ReportStorage(Protocol):
    def get(self, report_id: str) -> Report | None: ...

    def put(self, report: Report, expected_version: int | None = None) -> Report: ...

    def list_all(self) -> list[Report]: ...


def get_or_404(storage: ReportStorage, report_id: str) -> Report:
    report = storage.get(report_id)
    if report is None:
        raise NotFound(report_id)
    return report


class InMemoryReportStorage:
    """Dict-backed storage for tests and local tooling."""

    def __init__(self, reports: dict[str, Report] | None = None) -> None:
        self._reports = reports if reports is not None else {}

    def get(self, report_id: str) -> Report | None:
        return self._reports.get(report_id)

    def put(self, report: Report, expected_version: int | None = None) -> Report:
        ledger.check_consistency(report)
        current = self._reports.get(report.id)
        if expected_version is None:
            if current is not None:
                raise ConflictOnWrite(report.id, None)
            stored = replace(report, version=1)
        else:
            if current is None:
                raise NotFound(report.id)
            if current.version != expected_version:
                raise ConflictOnWrite(report.id, expected_version)
            stored = replace(report, version=expected_version + 1)
        self._reports[report.id] = stored
        return stored

    def list_all(self) -> list[Report]:
        return sorted(self._reports.values(), key=lambda r: r.created_at, reverse=True)


# ---- SQLAlchemy ----


def _aware(v: datetime | None) -> datetime | None:
    # SQLite drops tzinfo on the way back
    if v is None or v.tzinfo is not None:
        return v
    return v.replace(tzinfo=timezone.utc)


def _section(row: ReportRow, prefix: str) -> PartySection:
    return PartySection(
        staff=getattr(row, f"{prefix}_staff", None) if prefix != "driver" else row.driver_name,
        phone=getattr(row, f"{prefix}_phone", None) if prefix != "driver" else row.driver_phone,
        damage=getattr(row, f"{prefix}_damage"),
        signature=getattr(row, f"{prefix}_signature"),
        submitted_at=_aware(getattr(row, f"{prefix}_submitted_at")),
    )


def row_to_report(row: ReportRow) -> Report:
    driver = _section(row, "driver")
    if driver.submitted_at is None:
        driver = PartySection()
    return Report(
        id=row.id,
        container_no=row.container_no,
        bl_no=row.bl_no,
        report_date=row.report_date or "",
        vehicle_no=row.vehicle_no,
        driver_name=row.driver_name,
        driver_phone=row.driver_phone or "",
        status=ReportStatus(row.status),
        created_at=_aware(row.created_at),
        driver_section=driver,
        field_section=_section(row, "field"),
        office_section=_section(row, "office"),
        damage_photos=tuple(row.damage_photos or ()),
        rejection_reason=row.rejection_reason,
        rejected_at=_aware(row.rejected_at),
        action_history=tuple(HistoryEntry.from_dict(e) for e in (row.action_history or ())),
        version=row.version or 0,
    )


def report_to_values(report: Report) -> dict[str, Any]:
    d, f, o = report.driver_section, report.field_section, report.office_section
    return {
        "container_no": report.container_no,
        "bl_no": report.bl_no,
        "report_date": report.report_date,
        "vehicle_no": report.vehicle_no,
        "driver_name": report.driver_name,
        "driver_phone": report.driver_phone,
        "driver_damage": d.damage,
        "driver_signature": d.signature,
        "driver_submitted_at": d.submitted_at,
        "field_staff": f.staff,
        "field_phone": f.phone,
        "field_damage": f.damage,
        "field_signature": f.signature,
        "field_submitted_at": f.submitted_at,
        "office_staff": o.staff,
        "office_phone": o.phone,
        "office_damage": o.damage,
        "office_signature": o.signature,
        "office_submitted_at": o.submitted_at,
        "damage_photos": list(report.damage_photos),
        "status": report.status,
        "rejection_reason": report.rejection_reason,
        "rejected_at": report.rejected_at,
        "action_history": [e.to_dict() for e in report.action_history],
        "created_at": report.created_at,
    }


class SqlReportStorage:
    """Storage on the request's SQLAlchemy session.

    Writes are flushed, not committed: the caller commits once so that the
    report and anything else written in the same request land together.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, report_id: str) -> Report | None:
        row = self.db.get(ReportRow, report_id, populate_existing=True)
        return row_to_report(row) if row is not None else None

    def put(self, report: Report, expected_version: int | None = None) -> Report:
        ledger.check_consistency(report)
        values = report_to_values(report)

        if expected_version is None:
            if self.db.get(ReportRow, report.id) is not None:
                raise ConflictOnWrite(report.id, None)
            self.db.add(ReportRow(id=report.id, version=1, **values))
            self.db.flush()
            return replace(report, version=1)

        result = self.db.execute(
            update(ReportRow)
            .where(ReportRow.id == report.id, ReportRow.version == expected_version)
            .values(version=expected_version + 1, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            if self.db.get(ReportRow, report.id) is None:
                raise NotFound(report.id)
            logger.warning("Version conflict on report %s (expected %s)", report.id, expected_version)
            raise ConflictOnWrite(report.id, expected_version)
        self.db.flush()
        return replace(report, version=expected_version + 1)

    def list_all(self) -> list[Report]:
        rows = self.db.execute(select(ReportRow).order_by(ReportRow.created_at.desc())).scalars().all()
        return [row_to_report(r) for r in rows]
