# campus_attendance/models/__init__.py
# Import all models so SQLAlchemy can resolve relationships and
# Base.metadata knows every table.

from campus_attendance.db.base_class import Base
from campus_attendance.models.event import Event
from campus_attendance.models.registration import Registration
from campus_attendance.models.attendance import AttendanceStatus
from campus_attendance.models.scan_log import QRScanLog
