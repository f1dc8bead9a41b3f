from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base

class Vehicle(Base):
    """A truck and its registered driver. The driver logs in with this vehicle number."""

    __tablename__ = "vehicles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    vehicle_no: Mapped[str] = mapped_column(String(40), unique=True, index=True)
    driver_name: Mapped[str] = mapped_column(String(80))
    driver_phone: Mapped[str] = mapped_column(String(40))
