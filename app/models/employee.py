"""
Employee model
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    username = Column(String, nullable=False)
    password_hash = Column(String, nullable=True)
    name = Column(String, nullable=False)
    device_code = Column(String(5), unique=True, nullable=False, index=True)  # passwordless re-login
    # No FK on shift/location: admins may delete them while employees still reference them
    shift_id = Column(Integer, nullable=True)
    location_id = Column(Integer, nullable=True)
    face_descriptor = Column(Text, nullable=True)  # JSON array of floats
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    __table_args__ = (
        UniqueConstraint("company_id", "username", name="uq_employees_company_username"),
    )

    company = relationship("Company")
