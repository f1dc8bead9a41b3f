from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base

class Cargo(Base):
    __tablename__ = "cargo"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    container_no: Mapped[str] = mapped_column(String(40), unique=True, index=True)
    bl_no: Mapped[str] = mapped_column(String(40))
