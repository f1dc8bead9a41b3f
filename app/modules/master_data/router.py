"""Lookup tables maintained by admins: cargo, vehicles and staff rosters.

Rows are posted as ``{"data": [...]}``. ``bulk`` appends; ``replace`` validates
every row before touching the table and then swaps the contents in one
transaction. Phone numbers double as login codes, so they are only returned to
admins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.auth.deps import Principal, get_current_principal
from app.core.rbac import can_manage_master_data, require
from app.db.base import Base
from app.db.models.cargo import Cargo
from app.db.models.staff import AdminStaff, FieldStaff, OfficeStaff
from app.db.models.vehicle import Vehicle
from app.db.session import get_db

logger = logging.getLogger("damage_report.master_data")

router = APIRouter(prefix="/data", tags=["master-data"])


class _Row(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


class CargoRow(_Row):
    container_no: str = Field(min_length=1, max_length=40)
    bl_no: str = Field(min_length=1, max_length=40)


class VehicleRow(_Row):
    vehicle_no: str = Field(min_length=1, max_length=40)
    driver_name: str = Field(min_length=1, max_length=80)
    driver_phone: str = Field(min_length=1, max_length=40)


class StaffRow(_Row):
    name: str = Field(min_length=1, max_length=80)
    phone: str = Field(min_length=1, max_length=40)


@dataclass(frozen=True)
class _Kind:
    model: type[Base]
    row: type[_Row]
    label: str
    private: tuple[str, ...] = ()


_KINDS: dict[str, _Kind] = {
    "cargo": _Kind(Cargo, CargoRow, "화물"),
    "vehicles": _Kind(Vehicle, VehicleRow, "차량", private=("driver_phone",)),
    "field-staff": _Kind(FieldStaff, StaffRow, "현장 담당자", private=("phone",)),
    "office-staff": _Kind(OfficeStaff, StaffRow, "사무실 담당자", private=("phone",)),
    "admin-staff": _Kind(AdminStaff, StaffRow, "관리자", private=("phone",)),
}


class RowsBody(BaseModel):
    data: list[dict[str, Any]]


def _kind(kind: str) -> _Kind:
    k = _KINDS.get(kind)
    require(k is not None, f"알 수 없는 데이터 종류입니다: {kind}", 404)
    return k


def _validate_rows(k: _Kind, rows: list[dict[str, Any]]) -> list[_Row]:
    out: list[_Row] = []
    for index, raw in enumerate(rows, start=1):
        try:
            out.append(k.row.model_validate(raw))
        except ValidationError as exc:
            problems = ", ".join(f"{'.'.join(str(p) for p in e['loc'])} - {e['msg']}" for e in exc.errors())
            raise HTTPException(status_code=400, detail=f"{index}번째 행에 오류가 있습니다: {problems}")
    return out


def _write(db: Session, k: _Kind, rows: list[_Row], *, replace: bool) -> None:
    try:
        if replace:
            db.execute(delete(k.model))
        for row in rows:
            db.add(k.model(**row.model_dump()))
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail=f"중복된 {k.label} 데이터가 있습니다")


@router.get("/{kind}")
def list_rows(
    kind: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    k = _kind(kind)
    hide = () if can_manage_master_data(principal.role) else k.private
    cols = [c.key for c in k.model.__table__.columns if c.key not in hide]
    items = db.query(k.model).order_by(k.model.id.desc()).all()
    return [{c: getattr(item, c) for c in cols} for item in items]


@router.post("/{kind}/bulk")
def bulk_add(
    kind: str,
    body: RowsBody,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require(can_manage_master_data(principal.role), "관리자만 데이터를 수정할 수 있습니다")
    k = _kind(kind)
    rows = _validate_rows(k, body.data)
    _write(db, k, rows, replace=False)
    logger.info("Added %d %s rows by %s", len(rows), kind, principal.name)
    return {"message": f"{len(rows)}개의 {k.label} 데이터를 추가했습니다", "count": len(rows)}


@router.post("/{kind}/replace")
def replace_all(
    kind: str,
    body: RowsBody,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require(can_manage_master_data(principal.role), "관리자만 데이터를 수정할 수 있습니다")
    k = _kind(kind)
    rows = _validate_rows(k, body.data)
    _write(db, k, rows, replace=True)
    logger.info("Replaced %s with %d rows by %s", kind, len(rows), principal.name)
    return {"message": f"{len(rows)}개의 {k.label} 데이터로 교체했습니다", "count": len(rows)}
