"""
Attendance schemas (QR scan check-in/check-out and the immutable record log).
Record timestamps are epoch milliseconds.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from app.models.attendance import AttendanceStatus


class GeoSchema(BaseModel):
    """Device position as reported by the browser/phone geolocation API"""
    lat: float = Field(..., ge=-90, le=90, description="GPS latitude")
    lng: float = Field(..., ge=-180, le=180, description="GPS longitude")
    accuracy: Optional[float] = Field(None, ge=0, description="Reported accuracy radius in meters")


class CheckRequest(BaseModel):
    """
    Schema for a QR scan. geo is omitted when the device could not produce a position;
    location_error then carries the reason (PERMISSION_DENIED, POSITION_UNAVAILABLE, TIMEOUT).
    """
    location_token: str = Field(..., description='Decoded QR payload, e.g. {"locationId": 3}')
    geo: Optional[GeoSchema] = None
    location_error: Optional[str] = Field(None, description="Device geolocation error code")
    selfie_image: Optional[str] = Field(None, description="Base64 selfie (data URL accepted)")
    face_descriptor: Optional[List[float]] = Field(None, description="Live face descriptor computed on the device")
    expected_action: Optional[AttendanceStatus] = Field(None, description="Action shown to the employee before scanning")
    source: str = Field(default="web", description="Source of the scan (e.g., 'mobile', 'web')")


class NextActionOut(BaseModel):
    action: AttendanceStatus
    last_record_at: Optional[int] = Field(None, description="Timestamp (epoch ms) of the latest record")


class AttendanceRecordOut(BaseModel):
    """Schema for attendance record output"""
    id: int
    company_id: int
    employee_id: int
    employee_name: str
    username: str
    timestamp: int
    status: AttendanceStatus
    location_id: Optional[int]
    shift_name: Optional[str]
    is_late: Optional[bool]
    is_early: Optional[bool]
    latitude: Optional[float]
    longitude: Optional[float]
    accuracy: Optional[float]
    selfie_image: Optional[str] = None
    face_distance: Optional[float] = None
    is_manual_entry: bool
    request_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt):
        from app.utils.datetime_utils import iso_local
        return iso_local(dt) if dt is not None else None


class AttendanceListResponse(BaseModel):
    """Schema for attendance list response"""
    items: List[AttendanceRecordOut]
    total: int
