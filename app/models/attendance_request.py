"""
Attendance exception request model (e.g. forgotten scan), reviewed by a company admin
"""
from sqlalchemy import Column, Integer, BigInteger, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class RequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class AttendanceRequest(Base):
    __tablename__ = "attendance_requests"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    employee_id = Column(Integer, nullable=False, index=True)
    employee_name = Column(String, nullable=False)
    username = Column(String, nullable=False)
    timestamp = Column(BigInteger, nullable=False)  # claimed event time, epoch milliseconds
    type = Column(String, nullable=False)  # AttendanceStatus value
    reason = Column(Text, nullable=False)
    evidence_image = Column(Text, nullable=True)
    status = Column(String, nullable=False, default=RequestStatus.PENDING.value, index=True)
    processed_by = Column(Integer, ForeignKey("admin_accounts.id"), nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
