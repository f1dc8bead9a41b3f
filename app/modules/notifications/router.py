from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.auth.deps import Principal, get_current_principal
from app.core.rbac import SessionRole, require, workflow_role
from app.db.models.notification import Notification
from app.db.session import get_db
from app.utils.badges import get_badge_count, invalidate_badge, scoped_notifications

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _audience(principal: Principal) -> tuple[str, str | None]:
    """(target_role, vehicle_no) whose notifications this principal reads."""
    role = workflow_role(principal.role)
    require(role is not None, "관리자는 알림을 받지 않습니다")
    vehicle_no = principal.vehicle_no if principal.role == SessionRole.DRIVER else None
    return role.value, vehicle_no


def _to_dict(n: Notification) -> dict:
    return {
        "id": n.id,
        "report_id": n.report_id,
        "type": n.type,
        "message": n.message,
        "is_read": n.is_read,
        "created_at": n.created_at.isoformat() if n.created_at else None,
    }


@router.get("")
def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(100, ge=1, le=300),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    role, vehicle_no = _audience(principal)
    q = scoped_notifications(db, role, vehicle_no)
    if unread_only:
        q = q.filter(Notification.is_read.is_(False))
    notes = q.order_by(Notification.id.desc()).limit(limit).all()
    return {"items": [_to_dict(n) for n in notes], "unread": get_badge_count(db, role, vehicle_no)}


@router.post("/{notification_id}/read")
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    role, vehicle_no = _audience(principal)
    n = scoped_notifications(db, role, vehicle_no).filter(Notification.id == notification_id).first()
    require(n is not None, "알림을 찾을 수 없습니다", 404)
    n.is_read = True
    db.commit()
    invalidate_badge(role, vehicle_no)
    return _to_dict(n)


@router.post("/read-all")
def mark_all_read(db: Session = Depends(get_db), principal: Principal = Depends(get_current_principal)):
    role, vehicle_no = _audience(principal)
    ids = [
        n.id
        for n in scoped_notifications(db, role, vehicle_no).filter(Notification.is_read.is_(False)).all()
    ]
    if ids:
        db.query(Notification).filter(Notification.id.in_(ids)).update(
            {"is_read": True}, synchronize_session=False
        )
        db.commit()
    invalidate_badge(role, vehicle_no)
    return {"updated": len(ids)}
