# campus_attendance/crud/__init__.py

from .crud_attendance import attendance
from .crud_event import event
from .crud_registration import registration
from .crud_scan_log import scan_log
