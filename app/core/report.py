"""Domain records for container damage reports.

These are plain immutable values. The workflow engine builds new instances with
``dataclasses.replace`` instead of mutating; storage adapters translate them
to and from rows.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


class ReportStatus(str, enum.Enum):
    # reserved; reports are created directly in DRIVER_SUBMITTED
    DRAFT = "draft"
    DRIVER_SUBMITTED = "driver_submitted"
    FIELD_SUBMITTED = "field_submitted"
    REJECTED = "rejected"
    COMPLETED = "completed"


class Role(str, enum.Enum):
    DRIVER = "driver"
    FIELD = "field"
    OFFICE = "office"


class ActionType(str, enum.Enum):
    SUBMIT = "submit"
    RESUBMIT = "resubmit"
    APPROVE = "approve"
    REJECT = "reject"
    OFFICE_APPROVE = "office_approve"
    OFFICE_REJECT = "office_reject"


STATUS_LABELS = {
    ReportStatus.DRAFT: "작성중",
    ReportStatus.DRIVER_SUBMITTED: "현장 확인 대기",
    ReportStatus.FIELD_SUBMITTED: "사무실 승인 대기",
    ReportStatus.REJECTED: "반려",
    ReportStatus.COMPLETED: "완료",
}

ROLE_LABELS = {
    Role.DRIVER: "운송기사",
    Role.FIELD: "현장 책임자",
    Role.OFFICE: "사무실 책임자",
}

ACTION_LABELS = {
    ActionType.SUBMIT: "제출",
    ActionType.RESUBMIT: "재제출",
    ActionType.APPROVE: "현장 승인",
    ActionType.REJECT: "현장 반려",
    ActionType.OFFICE_APPROVE: "최종 승인",
    ActionType.OFFICE_REJECT: "사무실 반려",
}


@dataclass(frozen=True, slots=True)
class Actor:
    """Who is acting, as stamped by the session layer."""

    name: str
    role: Role
    phone: str = ""


@dataclass(frozen=True, slots=True)
class PartySection:
    """Fields one role contributes to a report. All ``None`` until that role acts."""

    staff: str | None = None
    phone: str | None = None
    damage: str | None = None
    signature: str | None = None
    submitted_at: datetime | None = None

    @property
    def is_filled(self) -> bool:
        return self.submitted_at is not None


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    action_type: ActionType
    actor: str
    actor_role: Role
    timestamp: datetime
    content: str | None = None
    signature: str | None = None
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "action_type": self.action_type.value,
            "actor": self.actor,
            "actor_role": self.actor_role.value,
            "timestamp": self.timestamp.isoformat(),
            "content": self.content,
            "signature": self.signature,
            "reason": self.reason,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryEntry":
        return cls(
            action_type=ActionType(data["action_type"]),
            actor=data.get("actor") or "",
            actor_role=Role(data["actor_role"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            content=data.get("content"),
            signature=data.get("signature"),
            reason=data.get("reason"),
        )


@dataclass(frozen=True, slots=True)
class Report:
    id: str
    container_no: str
    bl_no: str
    report_date: str
    vehicle_no: str
    driver_name: str
    driver_phone: str
    status: ReportStatus
    created_at: datetime
    driver_section: PartySection = field(default_factory=PartySection)
    field_section: PartySection = field(default_factory=PartySection)
    office_section: PartySection = field(default_factory=PartySection)
    damage_photos: tuple[str, ...] = ()
    rejection_reason: str | None = None
    rejected_at: datetime | None = None
    action_history: tuple[HistoryEntry, ...] = ()
    version: int = 0

    @property
    def status_label(self) -> str:
        return STATUS_LABELS.get(self.status, self.status.value)

    def section(self, role: Role) -> PartySection:
        return {
            Role.DRIVER: self.driver_section,
            Role.FIELD: self.field_section,
            Role.OFFICE: self.office_section,
        }[role]


def _ts(v: datetime | None) -> str | None:
    return v.isoformat() if v is not None else None


def section_to_dict(section: PartySection) -> dict[str, Any]:
    return {
        "staff": section.staff,
        "phone": section.phone,
        "damage": section.damage,
        "signature": section.signature,
        "submitted_at": _ts(section.submitted_at),
    }


def report_to_dict(report: Report, *, include_history: bool = True) -> dict[str, Any]:
    """JSON-ready view of a report used by the API layer."""
    out: dict[str, Any] = {
        "id": report.id,
        "container_no": report.container_no,
        "bl_no": report.bl_no,
        "report_date": report.report_date,
        "vehicle_no": report.vehicle_no,
        "driver_name": report.driver_name,
        "driver_phone": report.driver_phone,
        "driver": section_to_dict(report.driver_section),
        "field": section_to_dict(report.field_section),
        "office": section_to_dict(report.office_section),
        "damage_photos": list(report.damage_photos),
        "status": report.status.value,
        "status_label": report.status_label,
        "rejection_reason": report.rejection_reason,
        "rejected_at": _ts(report.rejected_at),
        "created_at": report.created_at.isoformat(),
        "version": report.version,
    }
    if include_history:
        out["action_history"] = [e.to_dict() for e in report.action_history]
    return out
