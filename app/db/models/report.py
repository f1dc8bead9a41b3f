from datetime import datetime
from sqlalchemy import JSON, DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base
from app.core.report import ReportStatus


class ReportRow(Base):
    """Persisted form of ``app.core.report.Report``.

    Party sections are flattened into columns; the ledger is stored as a JSON
    list on the row itself so a report and its history are written together.
    """

    __tablename__ = "reports"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)

    container_no: Mapped[str] = mapped_column(String(40), index=True)
    bl_no: Mapped[str] = mapped_column(String(40))
    report_date: Mapped[str] = mapped_column(String(20), default="")
    vehicle_no: Mapped[str] = mapped_column(String(40), index=True)
    driver_name: Mapped[str] = mapped_column(String(80))
    driver_phone: Mapped[str] = mapped_column(String(40), default="")

    driver_damage: Mapped[str | None] = mapped_column(Text, nullable=True)
    driver_signature: Mapped[str | None] = mapped_column(Text, nullable=True)
    driver_submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    field_staff: Mapped[str | None] = mapped_column(String(80), nullable=True)
    field_phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    field_damage: Mapped[str | None] = mapped_column(Text, nullable=True)
    field_signature: Mapped[str | None] = mapped_column(Text, nullable=True)
    field_submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    office_staff: Mapped[str | None] = mapped_column(String(80), nullable=True)
    office_phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    office_damage: Mapped[str | None] = mapped_column(Text, nullable=True)
    office_signature: Mapped[str | None] = mapped_column(Text, nullable=True)
    office_submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    damage_photos: Mapped[list] = mapped_column(JSON, default=list)

    status: Mapped[ReportStatus] = mapped_column(
        Enum(
            ReportStatus,
            native_enum=False,
            length=32,
            values_callable=lambda e: [m.value for m in e],
        ),
        index=True,
        default=ReportStatus.DRAFT,
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    action_history: Mapped[list] = mapped_column(JSON, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    version: Mapped[int] = mapped_column(Integer, default=0)
