from __future__ import annotations

import enum

from fastapi import HTTPException

from app.core.report import Report, Role


class SessionRole(str, enum.Enum):
    """Who can log in. ADMIN maintains master data and never acts on reports."""

    DRIVER = "driver"
    FIELD = "field"
    OFFICE = "office"
    ADMIN = "admin"


def require(condition: bool, msg: str = "권한이 없습니다", status_code: int = 403) -> None:
    """Small helper used across routers.

    Defaults to 403 (permission denied). For validation errors or not-found cases,
    pass `status_code=400/404`.
    """
    if not condition:
        raise HTTPException(status_code=status_code, detail=msg)


def workflow_role(session_role: SessionRole) -> Role | None:
    if session_role == SessionRole.ADMIN:
        return None
    return Role(session_role.value)


def can_manage_master_data(session_role: SessionRole) -> bool:
    return session_role == SessionRole.ADMIN


def can_view_report(session_role: SessionRole, vehicle_no: str | None, report: Report) -> bool:
    # drivers only see reports filed for their own vehicle
    if session_role == SessionRole.DRIVER:
        return bool(vehicle_no) and vehicle_no == report.vehicle_no
    return True
