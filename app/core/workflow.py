"""Workflow / state machine for container damage reports.

All lifecycle rules live here:
1) which operation each role may invoke, and from which status
2) the status each operation leads to (via the ledger action it appends)
3) which payload fields must be present
4) which report fields each operation writes

The module is pure: operations take the current report (or nothing, for
creation), the acting party, a payload and an optional clock value, and
return a ``TransitionResult``. Nothing here reads or writes storage.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Sequence

from app.core import ledger
from app.core.errors import IllegalTransition, RoleNotPermitted, ValidationError, WorkflowError
from app.core.report import (
    ActionType,
    Actor,
    HistoryEntry,
    PartySection,
    Report,
    ReportStatus,
    Role,
)


class Operation(str, enum.Enum):
    CREATE = "create"
    RESUBMIT = "resubmit"
    FIELD_APPROVE = "field_approve"
    FIELD_REJECT = "field_reject"
    OFFICE_APPROVE = "office_approve"
    OFFICE_REJECT = "office_reject"


@dataclass(frozen=True, slots=True)
class Transition:
    """One edge in the state machine."""

    operation: Operation
    role: Role
    # None means "report does not exist yet"
    from_status: ReportStatus | None
    action_type: ActionType

    @property
    def to_status(self) -> ReportStatus:
        return ledger.status_after(self.action_type)


TRANSITIONS: tuple[Transition, ...] = (
    Transition(Operation.CREATE, Role.DRIVER, None, ActionType.SUBMIT),
    Transition(Operation.RESUBMIT, Role.DRIVER, ReportStatus.REJECTED, ActionType.RESUBMIT),
    Transition(Operation.FIELD_APPROVE, Role.FIELD, ReportStatus.DRIVER_SUBMITTED, ActionType.APPROVE),
    Transition(Operation.FIELD_REJECT, Role.FIELD, ReportStatus.DRIVER_SUBMITTED, ActionType.REJECT),
    Transition(Operation.OFFICE_APPROVE, Role.OFFICE, ReportStatus.FIELD_SUBMITTED, ActionType.OFFICE_APPROVE),
    # Open product question: office rejection skips REJECTED and lands back
    # in the field queue. Kept as-is until product decides otherwise.
    Transition(Operation.OFFICE_REJECT, Role.OFFICE, ReportStatus.FIELD_SUBMITTED, ActionType.OFFICE_REJECT),
)

_BY_OPERATION: dict[Operation, Transition] = {t.operation: t for t in TRANSITIONS}

if set(_BY_OPERATION) != set(Operation) or len(_BY_OPERATION) != len(TRANSITIONS):
    raise RuntimeError("TRANSITIONS must define exactly one edge per operation")


def get_transition(operation: Operation) -> Transition:
    return _BY_OPERATION[operation]


def allowed_operations_for_status(status: ReportStatus) -> tuple[Operation, ...]:
    return tuple(t.operation for t in TRANSITIONS if t.from_status == status)


def allowed_operations(role: Role, report: Report) -> list[Operation]:
    """Operations ``role`` may invoke on ``report`` right now."""
    return [t.operation for t in TRANSITIONS if t.from_status == report.status and t.role == role]


def queue_statuses(role: Role) -> tuple[ReportStatus, ...]:
    """Statuses in which a report is waiting on ``role``."""
    out: list[ReportStatus] = []
    for t in TRANSITIONS:
        if t.role == role and t.from_status is not None and t.from_status not in out:
            out.append(t.from_status)
    return tuple(out)


# ---- Payloads ----


@dataclass(frozen=True, slots=True)
class CreateReportPayload:
    report_date: str | None = None
    container_no: str | None = None
    bl_no: str | None = None
    vehicle_no: str | None = None
    driver_name: str | None = None
    driver_phone: str | None = None
    driver_damage: str | None = None
    driver_signature: str | None = None
    damage_photos: Sequence[str] | None = None


@dataclass(frozen=True, slots=True)
class ResubmitPayload:
    driver_damage: str | None = None
    driver_signature: str | None = None
    # None keeps the photos from the previous cycle
    damage_photos: Sequence[str] | None = None


class ReviewAction(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"


@dataclass(frozen=True, slots=True)
class FieldReviewPayload:
    action: ReviewAction
    field_staff: str | None = None
    field_phone: str | None = None
    field_damage: str | None = None
    field_signature: str | None = None
    rejection_reason: str | None = None


@dataclass(frozen=True, slots=True)
class OfficeApprovePayload:
    office_staff: str | None = None
    office_phone: str | None = None
    office_damage: str | None = None
    office_signature: str | None = None


@dataclass(frozen=True, slots=True)
class OfficeRejectPayload:
    rejection_reason: str | None = None
    office_staff: str | None = None


@dataclass(frozen=True, slots=True)
class TransitionResult:
    """Outcome of an operation.

    On success ``report`` is the new report and ``error`` is ``None``. On failure
    ``error`` is set and ``report`` is the untouched input (``None`` for a
    failed create).
    """

    report: Report | None
    error: WorkflowError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Report:
        if self.error is not None:
            raise self.error
        assert self.report is not None
        return self.report


# ---- Validation ----

_MESSAGES = {
    "container_no": "컨테이너 번호를 입력하세요",
    "bl_no": "B/L 번호를 입력하세요",
    "driver_damage": "파손 내용을 입력하세요",
    "driver_signature": "서명을 입력하세요",
    "field_staff": "현장 담당자를 선택하세요",
    "field_damage": "현장 확인 내용을 입력하세요",
    "field_signature": "서명을 입력하세요",
    "office_staff": "사무실 담당자를 선택하세요",
    "office_damage": "사무실 확인 내용을 입력하세요",
    "office_signature": "서명을 입력하세요",
    "rejection_reason": "반려 사유를 입력하세요",
}


def _blank(v: str | None) -> bool:
    return v is None or not str(v).strip()


def _missing(payload: object, names: Sequence[str]) -> dict[str, str]:
    return {n: _MESSAGES.get(n, "필수 항목입니다") for n in names if _blank(getattr(payload, n))}


def _text(v: str | None) -> str | None:
    return None if v is None else str(v).strip()


def _now(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now(timezone.utc)


def _gate(operation: Operation, actor: Actor, report: Report | None) -> WorkflowError | None:
    t = get_transition(operation)
    if actor.role != t.role:
        return RoleNotPermitted(operation.value, actor.role)
    if t.from_status is None:
        return None
    if report is None or report.status != t.from_status:
        current = report.status if report is not None else None
        return IllegalTransition(operation.value, current)
    return None


def _apply(report: Report, transition: Transition, entry: HistoryEntry, **changes) -> Report:
    """Append the ledger entry and set the new status in one step."""
    return replace(
        report,
        status=transition.to_status,
        action_history=ledger.append(report.action_history, entry),
        **changes,
    )


# ---- Operations ----


def create_report(
    actor: Actor,
    payload: CreateReportPayload,
    *,
    now: datetime | None = None,
    report_id: str | None = None,
) -> TransitionResult:
    """Driver submits a new damage report."""
    t = get_transition(Operation.CREATE)
    err = _gate(Operation.CREATE, actor, None)
    if err is not None:
        return TransitionResult(None, err)

    missing = _missing(payload, ("container_no", "bl_no", "driver_damage", "driver_signature"))
    if missing:
        return TransitionResult(None, ValidationError(missing))

    ts = _now(now)
    # identity falls back to the acting driver
    driver_name = _text(payload.driver_name) or _text(actor.name) or ""
    driver_phone = _text(payload.driver_phone) or _text(actor.phone) or ""
    damage = _text(payload.driver_damage)

    draft = Report(
        id=report_id or uuid.uuid4().hex,
        container_no=_text(payload.container_no) or "",
        bl_no=_text(payload.bl_no) or "",
        report_date=_text(payload.report_date) or "",
        vehicle_no=_text(payload.vehicle_no) or "",
        driver_name=driver_name,
        driver_phone=driver_phone,
        status=ReportStatus.DRAFT,
        created_at=ts,
    )
    entry = HistoryEntry(
        action_type=t.action_type,
        actor=driver_name,
        actor_role=Role.DRIVER,
        timestamp=ts,
        content=damage,
        signature=payload.driver_signature,
    )
    report = _apply(
        draft,
        t,
        entry,
        driver_section=PartySection(
            staff=driver_name,
            phone=driver_phone,
            damage=damage,
            signature=payload.driver_signature,
            submitted_at=ts,
        ),
        damage_photos=tuple(payload.damage_photos or ()),
    )
    return TransitionResult(report)


def resubmit_report(
    report: Report,
    actor: Actor,
    payload: ResubmitPayload,
    *,
    now: datetime | None = None,
) -> TransitionResult:
    """Driver answers a field rejection with a corrected description."""
    t = get_transition(Operation.RESUBMIT)
    err = _gate(Operation.RESUBMIT, actor, report)
    if err is not None:
        return TransitionResult(report, err)

    missing = _missing(payload, ("driver_damage", "driver_signature"))
    if missing:
        return TransitionResult(report, ValidationError(missing))

    ts = _now(now)
    damage = _text(payload.driver_damage)
    photos = report.damage_photos if payload.damage_photos is None else tuple(payload.damage_photos)
    entry = HistoryEntry(
        action_type=t.action_type,
        actor=_text(actor.name) or report.driver_name,
        actor_role=Role.DRIVER,
        timestamp=ts,
        content=damage,
        signature=payload.driver_signature,
    )
    new = _apply(
        report,
        t,
        entry,
        driver_section=replace(
            report.driver_section,
            damage=damage,
            signature=payload.driver_signature,
            submitted_at=ts,
        ),
        damage_photos=photos,
        rejection_reason=None,
        rejected_at=None,
    )
    return TransitionResult(new)


def field_review(
    report: Report,
    actor: Actor,
    payload: FieldReviewPayload,
    *,
    now: datetime | None = None,
) -> TransitionResult:
    """Field inspector approves or rejects a driver submission."""
    try:
        action = ReviewAction(payload.action)
    except ValueError:
        return TransitionResult(report, ValidationError({"action": "승인 또는 반려를 선택하세요"}))
    operation = Operation.FIELD_APPROVE if action == ReviewAction.APPROVE else Operation.FIELD_REJECT
    t = get_transition(operation)
    err = _gate(operation, actor, report)
    if err is not None:
        return TransitionResult(report, err)

    if operation == Operation.FIELD_APPROVE:
        missing = _missing(payload, ("field_staff", "field_damage", "field_signature"))
    else:
        missing = _missing(payload, ("field_staff", "rejection_reason"))
    if missing:
        return TransitionResult(report, ValidationError(missing))

    ts = _now(now)
    staff = _text(payload.field_staff)

    if operation == Operation.FIELD_APPROVE:
        damage = _text(payload.field_damage)
        entry = HistoryEntry(
            action_type=t.action_type,
            actor=staff,
            actor_role=Role.FIELD,
            timestamp=ts,
            content=damage,
            signature=payload.field_signature,
        )
        new = _apply(
            report,
            t,
            entry,
            field_section=PartySection(
                staff=staff,
                phone=_text(payload.field_phone),
                damage=damage,
                signature=payload.field_signature,
                submitted_at=ts,
            ),
        )
        return TransitionResult(new)

    reason = _text(payload.rejection_reason)
    entry = HistoryEntry(
        action_type=t.action_type,
        actor=staff,
        actor_role=Role.FIELD,
        timestamp=ts,
        reason=reason,
    )
    new = _apply(report, t, entry, rejection_reason=reason, rejected_at=ts)
    return TransitionResult(new)


def office_approve(
    report: Report,
    actor: Actor,
    payload: OfficeApprovePayload,
    *,
    now: datetime | None = None,
) -> TransitionResult:
    """Office gives final approval; the report becomes COMPLETED."""
    t = get_transition(Operation.OFFICE_APPROVE)
    err = _gate(Operation.OFFICE_APPROVE, actor, report)
    if err is not None:
        return TransitionResult(report, err)

    missing = _missing(payload, ("office_staff", "office_damage", "office_signature"))
    if missing:
        return TransitionResult(report, ValidationError(missing))

    ts = _now(now)
    staff = _text(payload.office_staff)
    damage = _text(payload.office_damage)
    entry = HistoryEntry(
        action_type=t.action_type,
        actor=staff,
        actor_role=Role.OFFICE,
        timestamp=ts,
        content=damage,
        signature=payload.office_signature,
    )
    new = _apply(
        report,
        t,
        entry,
        office_section=PartySection(
            staff=staff,
            phone=_text(payload.office_phone),
            damage=damage,
            signature=payload.office_signature,
            submitted_at=ts,
        ),
    )
    return TransitionResult(new)


def office_reject(
    report: Report,
    actor: Actor,
    payload: OfficeRejectPayload,
    *,
    now: datetime | None = None,
) -> TransitionResult:
    """Office sends the report back. It re-enters the field queue directly."""
    t = get_transition(Operation.OFFICE_REJECT)
    err = _gate(Operation.OFFICE_REJECT, actor, report)
    if err is not None:
        return TransitionResult(report, err)

    missing = _missing(payload, ("office_staff", "rejection_reason"))
    if missing:
        return TransitionResult(report, ValidationError(missing))

    ts = _now(now)
    reason = _text(payload.rejection_reason)
    entry = HistoryEntry(
        action_type=t.action_type,
        actor=_text(payload.office_staff),
        actor_role=Role.OFFICE,
        timestamp=ts,
        reason=reason,
    )
    new = _apply(report, t, entry, rejection_reason=reason, rejected_at=ts)
    return TransitionResult(new)


def last_signature_by_role(report: Report, role: Role) -> str | None:
    """Most recent signature left by ``role``; what the certificate shows."""
    return ledger.last_signature_by_role(report.action_history, role)
