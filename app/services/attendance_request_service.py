"""
Attendance exception requests.

An employee who could not scan (forgotten phone, broken GPS, ...) files a request for a
specific CHECK_IN or CHECK_OUT at a claimed time. A company admin approves or rejects it once;
approval writes a manual attendance record at the claimed time.
"""
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import CurrentUser
from app.core.errors import InvalidRequestState
from app.db.session import commit_or_raise
from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.models.attendance_request import AttendanceRequest, RequestStatus
from app.models.employee import Employee
from app.services.audit_service import log_audit
from app.utils.datetime_utils import now_utc, to_epoch_ms

logger = logging.getLogger(__name__)

APPROVE = "approve"
REJECT = "reject"


def submit_request(
    db: Session,
    employee: Employee,
    claimed_type: AttendanceStatus,
    reason: str,
    evidence_image: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> AttendanceRequest:
    """
    File an exception request (created PENDING).

    Args:
        db: Database session
        employee: Employee filing the request
        claimed_type: CHECK_IN or CHECK_OUT
        reason: Free-text justification
        evidence_image: Optional base64 image
        timestamp: When the missed event happened (defaults to now; naive = deployment timezone)

    Returns:
        Created AttendanceRequest instance
    """
    if not reason or not reason.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Vui lòng nhập lý do."
        )

    claimed_at = timestamp or now_utc()
    if claimed_at.tzinfo is None:
        claimed_at = claimed_at.replace(tzinfo=settings.get_timezone())

    request = AttendanceRequest(
        company_id=employee.company_id,
        employee_id=employee.id,
        employee_name=employee.name,
        username=employee.username,
        timestamp=to_epoch_ms(claimed_at),
        type=AttendanceStatus(claimed_type).value,
        reason=reason.strip(),
        evidence_image=evidence_image,
        status=RequestStatus.PENDING.value,
    )
    db.add(request)
    db.flush()

    log_audit(
        db=db,
        actor_kind="EMPLOYEE",
        actor_id=employee.id,
        action="ATTENDANCE_REQUEST_SUBMIT",
        entity_type="attendance_requests",
        entity_id=request.id,
        meta={"type": request.type, "timestamp": request.timestamp},
        commit=False,
    )
    commit_or_raise(db)
    db.refresh(request)
    return request


def process_request(
    db: Session,
    request_id: int,
    approver: CurrentUser,
    action: str,
) -> AttendanceRequest:
    """
    Approve or reject a PENDING request. Terminal states are final.

    On approval, exactly one manual AttendanceRecord is written with the claimed timestamp and
    type, the request's evidence image, and a link back to the request. The status change and
    the record commit together.

    Args:
        db: Database session
        request_id: Request to process
        approver: Processing company admin; requests of other companies are not visible
        action: "approve" or "reject"

    Returns:
        Updated AttendanceRequest instance

    Raises:
        HTTPException: 404 if not found, 400 for an unknown action
        InvalidRequestState: If the request is no longer PENDING
    """
    if action not in (APPROVE, REJECT):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown action {action!r}"
        )

    request = (
        db.query(AttendanceRequest)
        .filter(AttendanceRequest.id == request_id, AttendanceRequest.company_id == approver.company_id)
        .with_for_update()
        .first()
    )
    if not request:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Attendance request not found"
        )

    if request.status != RequestStatus.PENDING.value:
        db.rollback()
        raise InvalidRequestState(f"Yêu cầu này đã được xử lý ({request.status}).")

    request.status = RequestStatus.APPROVED.value if action == APPROVE else RequestStatus.REJECTED.value
    request.processed_by = approver.id
    request.processed_at = now_utc()

    record = None
    if action == APPROVE:
        record = AttendanceRecord(
            company_id=request.company_id,
            employee_id=request.employee_id,
            employee_name=request.employee_name,
            username=request.username,
            timestamp=request.timestamp,
            status=request.type,
            selfie_image=request.evidence_image,
            is_manual_entry=True,
            request_id=request.id,
        )
        db.add(record)
        db.flush()

    log_audit(
        db=db,
        actor_kind=approver.kind.value,
        actor_id=approver.id,
        action="ATTENDANCE_REQUEST_APPROVE" if action == APPROVE else "ATTENDANCE_REQUEST_REJECT",
        entity_type="attendance_requests",
        entity_id=request.id,
        meta={
            "employee_id": request.employee_id,
            "type": request.type,
            "timestamp": request.timestamp,
            "record_id": record.id if record is not None else None,
        },
        commit=False,
    )
    commit_or_raise(db)
    db.refresh(request)

    logger.info("Attendance request %s %sd by admin %s", request.id, action, approver.id)
    return request


def list_employee_requests(db: Session, employee_id: int) -> List[AttendanceRequest]:
    """Own requests, newest first."""
    return (
        db.query(AttendanceRequest)
        .filter(AttendanceRequest.employee_id == employee_id)
        .order_by(AttendanceRequest.created_at.desc(), AttendanceRequest.id.desc())
        .all()
    )


def list_company_requests(
    db: Session,
    company_id: int,
    status_filter: Optional[RequestStatus] = None,
) -> List[AttendanceRequest]:
    """Company requests for review, newest first, optionally filtered by status."""
    query = db.query(AttendanceRequest).filter(AttendanceRequest.company_id == company_id)
    if status_filter is not None:
        query = query.filter(AttendanceRequest.status == RequestStatus(status_filter).value)
    return query.order_by(AttendanceRequest.created_at.desc(), AttendanceRequest.id.desc()).all()
