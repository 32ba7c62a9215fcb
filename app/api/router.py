"""
Main API router
"""
from fastapi import APIRouter

from app.api.v1 import (
    health,
    auth,
    attendance,
    attendance_requests,
    locations,
    shifts,
    employees,
    companies,
)

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(attendance.router, prefix="/attendance", tags=["attendance"])
api_router.include_router(attendance_requests.router, prefix="/attendance-requests", tags=["attendance-requests"])
api_router.include_router(locations.router, prefix="/locations", tags=["locations"])
api_router.include_router(shifts.router, prefix="/shifts", tags=["shifts"])
api_router.include_router(employees.router, prefix="/employees", tags=["employees"])
api_router.include_router(companies.router, prefix="/companies", tags=["companies"])
