"""
Work location model (QR code target + geofence)
"""
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.sql import func
from app.db.base import Base

DELETED_LOCATION_NAME = "Địa điểm đã bị xóa"


class Location(Base):
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    latitude = Column(Float, nullable=False)  # WGS84 degrees
    longitude = Column(Float, nullable=False)
    radius = Column(Float, nullable=False)  # meters
    require_selfie = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    __table_args__ = (
        CheckConstraint("radius > 0", name="ck_locations_radius_positive"),
    )
