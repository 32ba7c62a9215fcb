"""
Attendance endpoints: QR scan check-in/check-out, next action, record lists, weekly timesheet.
Employees see only their own records; company admins see their company's.
"""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from app.core.deps import get_db, require_employee, require_company_admin, CurrentUser
from app.schemas.attendance import (
    CheckRequest,
    NextActionOut,
    AttendanceRecordOut,
    AttendanceListResponse,
)
from app.schemas.timesheet import TimesheetOut
from app.services.attendance_service import (
    get_last_record,
    next_action,
    record_attendance,
    list_employee_records,
    list_company_records,
)
from app.services.audit_service import log_audit
from app.services.geofence import GeoPoint
from app.services.timesheet_service import (
    CSV_HEADERS,
    build_weekly_timesheet,
    timesheet_csv_rows,
    timesheet_filename,
)
from app.utils.csv_export import stream_csv

router = APIRouter()


@router.get("/next-action", response_model=NextActionOut)
async def get_next_action(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_employee),
):
    """What the next scan will record (CHECK_IN or CHECK_OUT). Read-only."""
    last = get_last_record(db, current_user.id)
    return NextActionOut(
        action=next_action(db, current_user.id),
        last_record_at=last.timestamp if last else None,
    )


@router.post("/check", response_model=AttendanceRecordOut, status_code=status.HTTP_201_CREATED)
def check(  # sync: runs in the threadpool while holding the per-employee lock
    body: CheckRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_employee),
):
    """
    Record a QR scan. The server decides CHECK_IN vs CHECK_OUT from history.

    Errors carry a stable ``code`` (OUT_OF_RANGE, LOCATION_UNAVAILABLE, ...) next to the message.
    """
    coords = None
    if body.geo is not None:
        coords = GeoPoint(body.geo.lat, body.geo.lng, body.geo.accuracy)

    return record_attendance(
        db,
        current_user.employee,
        body.location_token,
        coords,
        location_error=body.location_error,
        selfie_image=body.selfie_image,
        face_descriptor=body.face_descriptor,
        expected_action=body.expected_action,
        source=body.source,
    )


@router.get("/my", response_model=AttendanceListResponse)
async def get_my_attendance(
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_employee),
):
    """Own attendance records, newest first"""
    records = list_employee_records(db, current_user.id, from_date, to_date)
    return AttendanceListResponse(items=records, total=len(records))


@router.get("/records", response_model=AttendanceListResponse)
async def get_company_attendance(
    employee_id: Optional[int] = Query(None),
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    """Company attendance records (admin), newest first"""
    records = list_company_records(db, current_user.company_id, employee_id, from_date, to_date)
    return AttendanceListResponse(items=records, total=len(records))


@router.get("/timesheet", response_model=TimesheetOut)
async def get_weekly_timesheet(
    week_of: Optional[date] = Query(None, alias="week", description="Any day of the week (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    """Weekly timesheet (admin): first check-in, last check-out and hours per employee-day"""
    return build_weekly_timesheet(db, current_user.company_id, week_of)


@router.get("/timesheet.csv")
async def export_weekly_timesheet_csv(
    week_of: Optional[date] = Query(None, alias="week", description="Any day of the week (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    """
    Export the weekly timesheet as CSV

    One row per employee, one column per weekday ("HH:MM - HH:MM"), then total hours.
    """
    timesheet = build_weekly_timesheet(db, current_user.company_id, week_of)
    rows = timesheet_csv_rows(timesheet)

    log_audit(
        db=db,
        actor_kind=current_user.kind.value,
        actor_id=current_user.id,
        action="REPORT_EXPORT",
        entity_type="report",
        meta={
            "report_type": "weekly_timesheet",
            "week_start": str(timesheet.week_start),
            "row_count": len(rows),
        }
    )

    return stream_csv(headers=CSV_HEADERS, rows=rows, filename=timesheet_filename(timesheet))
