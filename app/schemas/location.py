"""
Work location schemas
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_serializer, ConfigDict


class LocationCreate(BaseModel):
    """Schema for creating a location"""
    name: str = Field(..., min_length=1, description="Location name")
    latitude: float = Field(..., ge=-90, le=90, description="Center latitude (WGS84)")
    longitude: float = Field(..., ge=-180, le=180, description="Center longitude (WGS84)")
    radius: float = Field(..., gt=0, description="Allowed radius in meters")
    require_selfie: bool = Field(default=False, description="Require a selfie to check in/out")


class LocationUpdate(BaseModel):
    """Schema for updating a location"""
    name: Optional[str] = Field(None, min_length=1)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    radius: Optional[float] = Field(None, gt=0)
    require_selfie: Optional[bool] = None


class LocationOut(BaseModel):
    """Schema for location output"""
    id: int
    company_id: int
    name: str
    latitude: float
    longitude: float
    radius: float
    require_selfie: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at", "updated_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt):
        from app.utils.datetime_utils import iso_local
        return iso_local(dt) if dt is not None else None


class LocationQrOut(BaseModel):
    """Content to encode in the printed QR code"""
    location_id: int
    payload: str
