"""
Company (tenant) provisioning schemas
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_serializer, ConfigDict


class CompanyCreate(BaseModel):
    """Create a company together with its first company admin"""
    name: str = Field(..., min_length=1, description="Company name")
    admin_username: str = Field(..., min_length=1, description="Company admin username")
    admin_password: str = Field(..., min_length=6, max_length=72, description="Company admin password")
    admin_name: Optional[str] = Field(None, description="Company admin display name")


class CompanyOut(BaseModel):
    id: int
    name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt):
        from app.utils.datetime_utils import iso_local
        return iso_local(dt) if dt is not None else None
