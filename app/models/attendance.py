"""
Attendance record model (immutable check-in/check-out log).

employee_name and username are a point-in-time snapshot taken when the record is written;
records never follow later employee renames and survive employee deletion.
"""
from sqlalchemy import Column, Integer, BigInteger, String, Text, Float, Boolean, DateTime, ForeignKey, Index, event
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class AttendanceStatus(str, enum.Enum):
    CHECK_IN = "CHECK_IN"
    CHECK_OUT = "CHECK_OUT"


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    employee_id = Column(Integer, nullable=False, index=True)  # no FK: records outlive the employee
    employee_name = Column(String, nullable=False)
    username = Column(String, nullable=False)
    timestamp = Column(BigInteger, nullable=False)  # epoch milliseconds
    status = Column(String, nullable=False)  # AttendanceStatus value
    location_id = Column(Integer, nullable=True)
    shift_name = Column(String, nullable=True)
    is_late = Column(Boolean, nullable=True)
    is_early = Column(Boolean, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    accuracy = Column(Float, nullable=True)
    selfie_image = Column(Text, nullable=True)  # base64 data URL
    face_distance = Column(Float, nullable=True)
    is_manual_entry = Column(Boolean, default=False, nullable=False)
    request_id = Column(Integer, ForeignKey("attendance_requests.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)

    __table_args__ = (
        Index("ix_attendance_records_employee_timestamp", "employee_id", "timestamp"),
    )


class ImmutableRecordError(RuntimeError):
    """Raised when code tries to update or delete a persisted attendance record"""


@event.listens_for(AttendanceRecord, "before_update")
def _refuse_update(mapper, connection, target):
    raise ImmutableRecordError(f"Attendance record {target.id} is immutable")


@event.listens_for(AttendanceRecord, "before_delete")
def _refuse_delete(mapper, connection, target):
    raise ImmutableRecordError(f"Attendance record {target.id} cannot be deleted")
