"""
Attendance exception request schemas
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, field_serializer, ConfigDict

from app.models.attendance import AttendanceStatus
from app.models.attendance_request import RequestStatus


class AttendanceRequestCreate(BaseModel):
    """Schema for filing a request for a missed scan"""
    type: AttendanceStatus = Field(..., description="CHECK_IN or CHECK_OUT")
    reason: str = Field(..., min_length=1, description="Why the scan was missed")
    timestamp: Optional[datetime] = Field(None, description="When the event happened (defaults to now)")
    evidence_image: Optional[str] = Field(None, description="Optional base64 image")


class AttendanceRequestOut(BaseModel):
    """Schema for request output. timestamp is epoch ms."""
    id: int
    company_id: int
    employee_id: int
    employee_name: str
    username: str
    timestamp: int
    type: AttendanceStatus
    reason: str
    evidence_image: Optional[str] = None
    status: RequestStatus
    processed_by: Optional[int]
    processed_at: Optional[datetime]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("processed_at", "created_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt):
        from app.utils.datetime_utils import iso_local
        return iso_local(dt) if dt is not None else None


class AttendanceRequestListResponse(BaseModel):
    items: List[AttendanceRequestOut]
    total: int
