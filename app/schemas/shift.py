"""
Shift schemas
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator, field_serializer, ConfigDict

from app.services.shift_rules import parse_wall_clock


class ShiftCreate(BaseModel):
    """Schema for creating a shift"""
    name: str = Field(..., min_length=1, description="Shift name")
    start_time: str = Field(..., description="Start time, HH:MM")
    end_time: str = Field(..., description="End time, HH:MM")

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_wall_clock(cls, v):
        """Normalize to zero-padded HH:MM"""
        return parse_wall_clock(v).strftime("%H:%M")


class ShiftUpdate(BaseModel):
    """Schema for updating a shift"""
    name: Optional[str] = Field(None, min_length=1)
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_wall_clock(cls, v):
        if v is None:
            return None
        return parse_wall_clock(v).strftime("%H:%M")


class ShiftOut(BaseModel):
    """Schema for shift output"""
    id: int
    company_id: int
    name: str
    start_time: str
    end_time: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at", "updated_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt):
        from app.utils.datetime_utils import iso_local
        return iso_local(dt) if dt is not None else None
