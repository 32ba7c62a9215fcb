"""
Database models
"""
from app.models.company import Company, AdminAccount, AdminRole
from app.models.employee import Employee
from app.models.location import Location, DELETED_LOCATION_NAME
from app.models.shift import Shift
from app.models.attendance_request import AttendanceRequest, RequestStatus
from app.models.attendance import AttendanceRecord, AttendanceStatus, ImmutableRecordError
from app.models.audit_log import AuditLog

__all__ = [
    "Company",
    "AdminAccount",
    "AdminRole",
    "Employee",
    "Location",
    "DELETED_LOCATION_NAME",
    "Shift",
    "AttendanceRequest",
    "RequestStatus",
    "AttendanceRecord",
    "AttendanceStatus",
    "ImmutableRecordError",
    "AuditLog",
]
