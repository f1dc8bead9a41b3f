from __future__ import annotations

import redis
from sqlalchemy.orm import Query, Session

from app.db.models.notification import Notification
from app.db.models.report import ReportRow
from app.core.redis import get_redis, mark_redis_down


_BADGE_TTL_SECONDS = 15  # small TTL to reduce DB load while keeping near-realtime UX


def _key(role: str, vehicle_no: str | None = None) -> str:
    if vehicle_no:
        return f"damage_report:badge:{role}:{vehicle_no}"
    return f"damage_report:badge:{role}"


def scoped_notifications(db: Session, role: str, vehicle_no: str | None = None) -> Query:
    """Notifications addressed to ``role``; drivers only get those about their own vehicle."""
    q = db.query(Notification).filter(Notification.target_role == role)
    if vehicle_no:
        q = q.join(ReportRow, ReportRow.id == Notification.report_id).filter(ReportRow.vehicle_no == vehicle_no)
    return q


def get_badge_count(db: Session, role: str, vehicle_no: str | None = None) -> int:
    """Unread notification count (cached with Redis TTL if available)."""
    key = _key(role, vehicle_no)
    r = get_redis()
    if r is not None:
        try:
            v = r.get(key)
            if v is not None:
                return int(v)
        except redis.RedisError as exc:
            mark_redis_down(exc)
            r = None

    cnt = scoped_notifications(db, role, vehicle_no).filter(Notification.is_read.is_(False)).count()

    if r is not None:
        try:
            r.setex(key, _BADGE_TTL_SECONDS, int(cnt))
        except redis.RedisError as exc:
            mark_redis_down(exc)
    return int(cnt)


def invalidate_badge(role: str, vehicle_no: str | None = None) -> None:
    r = get_redis()
    if r is None:
        return
    try:
        r.delete(_key(role, vehicle_no))
    except redis.RedisError as exc:
        mark_redis_down(exc)
