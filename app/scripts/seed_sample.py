from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.db.models.cargo import Cargo
from app.db.models.staff import AdminStaff, FieldStaff, OfficeStaff
from app.db.models.vehicle import Vehicle

logger = logging.getLogger("damage_report.seed")

SAMPLE_CARGO = [
    ("TCLU8239466", "CHL20251001"),
    ("MSKU4598321", "CHL20251002"),
    ("TEMU6198324", "CHL20251003"),
]

SAMPLE_VEHICLES = [
    ("89하1234", "박영호", "010-9942-1118"),
    ("81머5532", "최민재", "010-7102-9983"),
    ("83기9224", "오세민", "010-2994-8821"),
]

SAMPLE_FIELD_STAFF = [
    ("김도훈", "010-2384-1156"),
    ("장지윤", "010-5529-6681"),
    ("정현준", "010-7132-2248"),
]

SAMPLE_OFFICE_STAFF = [
    ("이수진", "010-4941-7742"),
    ("박지연", "010-9321-4482"),
    ("김민하", "010-844-9931"),
]

SAMPLE_ADMIN_STAFF = [
    ("관리자", "010-1234-5678"),
]


def _ensure_staff(db: Session, model, rows: list[tuple[str, str]]) -> int:
    added = 0
    for name, phone in rows:
        exists = db.query(model).filter(model.name == name, model.phone == phone).first()
        if not exists:
            db.add(model(name=name, phone=phone))
            added += 1
    return added


def seed_sample(db: Session) -> None:
    """Idempotent sample master data. Caller commits."""
    added = 0
    for container_no, bl_no in SAMPLE_CARGO:
        if not db.query(Cargo).filter(Cargo.container_no == container_no).first():
            db.add(Cargo(container_no=container_no, bl_no=bl_no))
            added += 1

    for vehicle_no, driver_name, driver_phone in SAMPLE_VEHICLES:
        if not db.query(Vehicle).filter(Vehicle.vehicle_no == vehicle_no).first():
            db.add(Vehicle(vehicle_no=vehicle_no, driver_name=driver_name, driver_phone=driver_phone))
            added += 1

    added += _ensure_staff(db, FieldStaff, SAMPLE_FIELD_STAFF)
    added += _ensure_staff(db, OfficeStaff, SAMPLE_OFFICE_STAFF)
    added += _ensure_staff(db, AdminStaff, SAMPLE_ADMIN_STAFF)
    db.flush()
    logger.info("Sample seed added %d rows", added)


def main() -> int:
    # Allow manual execution:
    #   python -m app.scripts.seed_sample
    from app.db.session import SessionLocal

    logging.basicConfig(level=logging.INFO)
    db = SessionLocal()
    try:
        seed_sample(db)
        db.commit()
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
