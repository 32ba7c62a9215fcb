"""
Employee schemas
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, field_serializer, ConfigDict
from app.core.security import validate_password


class EmployeeCreate(BaseModel):
    """Schema for creating an employee"""
    username: str = Field(..., min_length=1, description="Username (unique within the company)")
    name: str = Field(..., min_length=1, description="Employee name")
    password: Optional[str] = Field(None, max_length=72, description="Password (optional; device code login works without one)")
    shift_id: Optional[int] = Field(None, description="Assigned shift ID")
    location_id: Optional[int] = Field(None, description="Assigned work location ID")

    @field_validator("username", mode="before")
    @classmethod
    def normalize_username(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("password", mode="before")
    @classmethod
    def check_password(cls, v):
        """Blank means no password; anything else must be a valid password"""
        if not isinstance(v, str):
            return v
        if not v.strip():
            return None
        return validate_password(v)


class EmployeeUpdate(BaseModel):
    """Schema for updating an employee. Explicit null clears shift/location."""
    name: Optional[str] = Field(None, min_length=1)
    shift_id: Optional[int] = None
    location_id: Optional[int] = None


class EmployeeOut(BaseModel):
    """Schema for employee output"""
    id: int
    company_id: int
    username: str
    name: str
    device_code: str
    shift_id: Optional[int]
    location_id: Optional[int]
    location_name: Optional[str] = Field(None, description="Assigned location name, or the deleted-location label")
    has_face: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at", "updated_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt):
        from app.utils.datetime_utils import iso_local
        return iso_local(dt) if dt is not None else None


class EmployeeListResponse(BaseModel):
    items: List[EmployeeOut]
    total: int


class FaceEnrollRequest(BaseModel):
    """Enroll a face from a descriptor computed on the device, or from an image run through the server model"""
    face_descriptor: Optional[List[float]] = None
    image: Optional[str] = Field(None, description="Base64 image (data URL accepted)")


class PasswordReset(BaseModel):
    """Schema for password reset"""
    new_password: str = Field(..., min_length=6, max_length=72, description="New password")

    @field_validator("new_password", mode="before")
    @classmethod
    def check_new_password(cls, v):
        return validate_password(v) if isinstance(v, str) else v
