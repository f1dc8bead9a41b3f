from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from app.auth.deps import SESSION_COOKIE, Principal, get_current_principal
from app.core.config import settings
from app.core.rbac import SessionRole, require
from app.core.security import sign_session, verify_security_code
from app.db.models.staff import AdminStaff, FieldStaff, OfficeStaff
from app.db.models.vehicle import Vehicle
from app.db.session import get_db

logger = logging.getLogger("damage_report.auth")

router = APIRouter(prefix="/auth", tags=["auth"])

_STAFF_MODELS = {
    SessionRole.FIELD: FieldStaff,
    SessionRole.OFFICE: OfficeStaff,
    SessionRole.ADMIN: AdminStaff,
}


class LoginRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    role: SessionRole
    # drivers log in by vehicle number, staff by name
    vehicle_no: str = ""
    name: str = ""
    password: str


def _authenticate(db: Session, body: LoginRequest) -> Principal | None:
    if body.role == SessionRole.DRIVER:
        require(bool(body.vehicle_no.strip()), "차량번호를 선택하세요", 400)
        vehicle = db.query(Vehicle).filter(Vehicle.vehicle_no == body.vehicle_no.strip()).first()
        require(vehicle is not None, "차량을 찾을 수 없습니다", 401)
        if not verify_security_code(body.password, vehicle.driver_phone):
            return None
        return Principal(
            role=SessionRole.DRIVER,
            name=vehicle.driver_name,
            phone=vehicle.driver_phone,
            vehicle_no=vehicle.vehicle_no,
        )

    require(bool(body.name.strip()), "담당자를 선택하세요", 400)
    model = _STAFF_MODELS[body.role]
    candidates = db.query(model).filter(model.name == body.name.strip()).all()
    require(bool(candidates), "담당자를 찾을 수 없습니다", 401)
    # the same name may be registered twice; the code decides which one
    for staff in candidates:
        if verify_security_code(body.password, staff.phone):
            return Principal(role=body.role, name=staff.name, phone=staff.phone)
    return None


@router.post("/login")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    principal = _authenticate(db, body)
    if principal is None:
        logger.info("Failed %s login", body.role.value)
        return JSONResponse(status_code=401, content={"detail": "비밀번호가 일치하지 않습니다"})

    resp = JSONResponse(principal.to_session())
    resp.set_cookie(
        SESSION_COOKIE,
        sign_session(principal.to_session()),
        httponly=True,
        samesite=settings.COOKIE_SAMESITE,
        secure=settings.COOKIE_SECURE,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
    )
    return resp


@router.post("/logout")
def logout():
    resp = JSONResponse({"status": "ok"})
    resp.delete_cookie(SESSION_COOKIE)
    return resp


@router.get("/me")
def me(principal: Principal = Depends(get_current_principal)):
    return principal.to_session()
