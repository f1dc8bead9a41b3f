from __future__ import annotations

from sqlalchemy.orm import Session

from app.core.report import Report, Role
from app.core.workflow import Operation
from app.db.models.notification import Notification


def notify(
    db: Session,
    role: Role,
    message: str,
    report_id: str | None = None,
    type: str = "info",
    vehicle_no: str | None = None,
) -> tuple[str, str | None]:
    """Create an in-app notification (unread) for everyone holding ``role``.

    Note: Caller should commit the DB session, then invalidate the returned badge audience.
    """
    n = Notification(target_role=role.value, report_id=report_id, type=type, message=message, is_read=False)
    db.add(n)
    return role.value, vehicle_no


# Who needs to hear about each transition: (role, type, message template).
_ROUTES: dict[Operation, tuple[tuple[Role, str, str], ...]] = {
    Operation.CREATE: ((Role.FIELD, "report_submitted", "{c} 파손 보고서가 제출되었습니다."),),
    Operation.RESUBMIT: ((Role.FIELD, "report_submitted", "{c} 파손 보고서가 재제출되었습니다."),),
    Operation.FIELD_APPROVE: ((Role.OFFICE, "report_approved", "{c} 보고서가 현장 승인되었습니다."),),
    Operation.FIELD_REJECT: ((Role.DRIVER, "report_rejected", "{c} 보고서가 현장에서 반려되었습니다."),),
    Operation.OFFICE_APPROVE: (
        (Role.DRIVER, "report_completed", "{c} 보고서가 최종 승인되었습니다."),
        (Role.FIELD, "report_completed", "{c} 보고서가 최종 승인되었습니다."),
    ),
    Operation.OFFICE_REJECT: (
        (Role.FIELD, "report_rejected", "{c} 보고서가 사무실에서 반려되어 재검토가 필요합니다."),
        (Role.DRIVER, "report_rejected", "{c} 보고서가 사무실에서 반려되었습니다."),
    ),
}

if set(_ROUTES) != set(Operation):
    raise RuntimeError("every workflow operation needs a notification route")


def notify_transition(db: Session, report: Report, operation: Operation) -> list[tuple[str, str | None]]:
    """Queue the notifications for ``operation``; returns the (role, vehicle_no) badges to invalidate."""
    audiences = []
    for role, type_, template in _ROUTES[operation]:
        vehicle_no = report.vehicle_no if role == Role.DRIVER else None
        audiences.append(
            notify(db, role, template.format(c=report.container_no), report_id=report.id, type=type_, vehicle_no=vehicle_no)
        )
    return audiences
