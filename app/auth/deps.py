from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request, Depends, HTTPException

from app.core.rbac import SessionRole, workflow_role
from app.core.report import Actor
from app.core.security import verify_session

SESSION_COOKIE = "sid"


@dataclass(frozen=True, slots=True)
class Principal:
    role: SessionRole
    name: str
    phone: str = ""
    vehicle_no: str | None = None

    def to_session(self) -> dict:
        return {"role": self.role.value, "name": self.name, "phone": self.phone, "vehicle_no": self.vehicle_no}


def get_current_principal(request: Request) -> Principal:
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    payload = verify_session(token)
    if not payload or "role" not in payload:
        raise HTTPException(status_code=401, detail="Invalid session")
    try:
        role = SessionRole(payload["role"])
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid session")
    return Principal(
        role=role,
        name=payload.get("name") or "",
        phone=payload.get("phone") or "",
        vehicle_no=payload.get("vehicle_no"),
    )


def get_current_actor(principal: Principal = Depends(get_current_principal)) -> Actor:
    """The logged-in person as a workflow actor (admins are not actors)."""
    role = workflow_role(principal.role)
    if role is None:
        raise HTTPException(status_code=403, detail="관리자는 보고서 처리 권한이 없습니다")
    return Actor(name=principal.name, role=role, phone=principal.phone)
