"""
Attendance exception request endpoints
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from app.core.deps import get_db, require_employee, require_company_admin, CurrentUser
from app.models.attendance_request import RequestStatus
from app.schemas.attendance_request import (
    AttendanceRequestCreate,
    AttendanceRequestOut,
    AttendanceRequestListResponse,
)
from app.services.attendance_request_service import (
    APPROVE,
    REJECT,
    submit_request,
    process_request,
    list_employee_requests,
    list_company_requests,
)

router = APIRouter()


@router.post("", response_model=AttendanceRequestOut, status_code=status.HTTP_201_CREATED)
async def create_attendance_request(
    request_data: AttendanceRequestCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_employee),
):
    """File a request for a missed scan"""
    return submit_request(
        db,
        current_user.employee,
        request_data.type,
        request_data.reason,
        evidence_image=request_data.evidence_image,
        timestamp=request_data.timestamp,
    )


@router.get("/my", response_model=AttendanceRequestListResponse)
async def get_my_attendance_requests(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_employee),
):
    requests = list_employee_requests(db, current_user.id)
    return AttendanceRequestListResponse(items=requests, total=len(requests))


@router.get("", response_model=AttendanceRequestListResponse)
async def get_company_attendance_requests(
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    """Company requests for review (admin), optionally by status"""
    requests = list_company_requests(db, current_user.company_id, status_filter)
    return AttendanceRequestListResponse(items=requests, total=len(requests))


@router.post("/{request_id}/approve", response_model=AttendanceRequestOut)
def approve_attendance_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    """Approve a pending request; writes one manual attendance record at the claimed time"""
    return process_request(db, request_id, current_user, APPROVE)


@router.post("/{request_id}/reject", response_model=AttendanceRequestOut)
def reject_attendance_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    """Reject a pending request"""
    return process_request(db, request_id, current_user, REJECT)
