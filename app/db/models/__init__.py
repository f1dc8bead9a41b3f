# Import all models so SQLAlchemy metadata is fully populated on startup.
from app.db.models.report import ReportRow
from app.db.models.cargo import Cargo
from app.db.models.vehicle import Vehicle
from app.db.models.staff import FieldStaff, OfficeStaff, AdminStaff
from app.db.models.notification import Notification


__all__ = [
    "ReportRow",
    "Cargo",
    "Vehicle",
    "FieldStaff",
    "OfficeStaff",
    "AdminStaff",
    "Notification",
]
