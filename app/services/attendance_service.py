"""
Attendance service - the check-in/check-out decision.

A scan is a short pipeline: decode the QR token, resolve the location, check the reported
position against the geofence, optionally verify the face, then decide CHECK_IN or CHECK_OUT
from the employee's history and persist one immutable record. Any failure persists nothing.
"""
import json
import logging
import threading
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterator, List, Optional, Sequence, Union

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import (
    AttendanceError,
    AttendanceStateConflict,
    FaceMismatch,
    InvalidLocationToken,
    InvalidQrPayload,
    LocationUnavailable,
    NoFaceDetected,
    OutOfRange,
    SelfieRequired,
    WrongLocation,
)
from app.db.session import commit_or_raise
from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.models.employee import Employee
from app.models.location import Location
from app.models.shift import Shift
from app.services.audit_service import log_audit
from app.services.face_service import extract_descriptor, match_face
from app.services.geofence import GeoPoint, distance_to, is_within_fence
from app.services.shift_rules import classify
from app.utils.datetime_utils import now_utc, to_epoch_ms

logger = logging.getLogger(__name__)

_CONFLICT_MESSAGES = {
    AttendanceStatus.CHECK_IN: "Bạn đã check-in rồi. Vui lòng check-out trước.",
    AttendanceStatus.CHECK_OUT: "Bạn chưa check-in. Vui lòng check-in trước.",
}

_employee_locks: Dict[int, threading.Lock] = {}
_employee_locks_guard = threading.Lock()


def _lock_for(employee_id: int) -> threading.Lock:
    with _employee_locks_guard:
        lock = _employee_locks.get(employee_id)
        if lock is None:
            lock = _employee_locks[employee_id] = threading.Lock()
        return lock


def forget_employee_lock(employee_id: int) -> None:
    """Drop the lock of a deleted employee."""
    with _employee_locks_guard:
        _employee_locks.pop(employee_id, None)


@contextmanager
def employee_write_lock(db: Session, employee_id: int) -> Iterator[None]:
    """
    Serialize read-decide-write for one employee: a process-local lock plus a row lock on the
    employee (SELECT ... FOR UPDATE; SQLite ignores it and serializes writers instead).
    The caller must commit inside the block.
    """
    with _lock_for(employee_id):
        try:
            db.query(Employee).filter(Employee.id == employee_id).with_for_update().first()
            yield
        except BaseException:
            db.rollback()
            raise


def get_last_record(db: Session, employee_id: int) -> Optional[AttendanceRecord]:
    """Most recent record for the employee (by timestamp), or None."""
    return (
        db.query(AttendanceRecord)
        .filter(AttendanceRecord.employee_id == employee_id)
        .order_by(AttendanceRecord.timestamp.desc(), AttendanceRecord.id.desc())
        .first()
    )


def next_action(db: Session, employee_id: int) -> AttendanceStatus:
    """CHECK_OUT if the latest record is a CHECK_IN, else CHECK_IN. Derived from history only."""
    last = get_last_record(db, employee_id)
    if last is not None and last.status == AttendanceStatus.CHECK_IN.value:
        return AttendanceStatus.CHECK_OUT
    return AttendanceStatus.CHECK_IN


def parse_location_token(payload: str) -> Union[str, int]:
    """
    Extract the location id from a decoded QR payload of the form {"locationId": ...}.

    Raises:
        InvalidQrPayload: If the payload is not JSON or has no locationId
    """
    try:
        data = json.loads(payload)
    except (TypeError, ValueError):
        raise InvalidQrPayload()
    if not isinstance(data, dict):
        raise InvalidQrPayload()
    location_id = data.get("locationId")
    if location_id is None or isinstance(location_id, bool) or location_id == "":
        raise InvalidQrPayload("Mã QR không hợp lệ (thiếu dữ liệu).")
    if not isinstance(location_id, (str, int)):
        raise InvalidQrPayload()
    return location_id


def resolve_location(db: Session, company_id: int, location_id: Union[str, int]) -> Location:
    """
    Location for a scanned id within the company.

    Raises:
        InvalidLocationToken: If the id is unknown, deleted or belongs to another company
    """
    try:
        location_pk = int(location_id)
    except (TypeError, ValueError):
        raise InvalidLocationToken()
    location = (
        db.query(Location)
        .filter(Location.id == location_pk, Location.company_id == company_id)
        .first()
    )
    if location is None:
        raise InvalidLocationToken()
    return location


def _rejected(employee: Employee, error: AttendanceError) -> AttendanceError:
    logger.info("Attendance rejected: employee_id=%s code=%s", employee.id, error.code)
    return error


def _verify_face(
    employee: Employee,
    face_descriptor: Optional[Sequence[float]],
    selfie_image: Optional[str],
) -> Optional[float]:
    """
    Face gate. Returns the match distance to store on the record, or None when no comparison ran.
    Only gates when FACE_VERIFICATION_ENABLED and the employee has an enrolled descriptor.
    """
    if not employee.face_descriptor:
        return None

    if not settings.FACE_VERIFICATION_ENABLED:
        if face_descriptor:
            return match_face(face_descriptor, employee.face_descriptor).distance
        return None

    descriptor = face_descriptor
    if not descriptor and selfie_image:
        descriptor = extract_descriptor(selfie_image)
    if not descriptor:
        raise _rejected(employee, NoFaceDetected())

    result = match_face(descriptor, employee.face_descriptor)
    if not result.is_match:
        logger.info("Face mismatch: employee_id=%s distance=%.4f", employee.id, result.distance)
        raise _rejected(employee, FaceMismatch())
    return result.distance


def record_attendance(
    db: Session,
    employee: Employee,
    location_token: str,
    coords: Optional[GeoPoint],
    *,
    location_error: Optional[str] = None,
    selfie_image: Optional[str] = None,
    face_descriptor: Optional[Sequence[float]] = None,
    expected_action: Optional[AttendanceStatus] = None,
    source: str = "web",
    now: Optional[datetime] = None,
) -> AttendanceRecord:
    """
    Validate a scan and persist exactly one attendance record.

    Args:
        db: Database session
        employee: Employee scanning
        location_token: Decoded QR payload string
        coords: Device position, or None when geolocation failed
        location_error: Device geolocation error code (PERMISSION_DENIED, POSITION_UNAVAILABLE, TIMEOUT)
        selfie_image: Base64 selfie, required by some locations
        face_descriptor: Live face descriptor computed on the device
        expected_action: Action the client displayed; rejected if history says otherwise
        source: Capture channel, recorded in the audit trail
        now: Event time (defaults to server time read under the lock; naive = deployment timezone)

    Returns:
        The persisted AttendanceRecord

    Raises:
        AttendanceError subclasses; nothing is written on failure
    """
    location = resolve_location(db, employee.company_id, parse_location_token(location_token))

    if employee.location_id and employee.location_id != location.id:
        raise _rejected(employee, WrongLocation())

    if coords is None:
        raise _rejected(employee, LocationUnavailable(location_error))

    if location.require_selfie and not selfie_image:
        raise _rejected(employee, SelfieRequired())

    if not is_within_fence(coords, location, use_accuracy_buffer=settings.GEOFENCE_ACCURACY_BUFFER):
        logger.info(
            "Out of range: employee_id=%s location_id=%s distance_m=%.1f radius_m=%s accuracy_m=%s",
            employee.id, location.id, distance_to(coords, location), location.radius, coords.accuracy,
        )
        raise _rejected(employee, OutOfRange())

    face_distance = _verify_face(employee, face_descriptor, selfie_image)

    shift = None
    if employee.shift_id:
        shift = (
            db.query(Shift)
            .filter(Shift.id == employee.shift_id, Shift.company_id == employee.company_id)
            .first()
        )

    if now is not None and now.tzinfo is None:
        now = now.replace(tzinfo=settings.get_timezone())

    with employee_write_lock(db, employee.id):
        # event time is taken under the lock so timestamp order matches decision order
        now = now or now_utc()
        action = next_action(db, employee.id)
        if expected_action is not None and AttendanceStatus(expected_action) != action:
            raise _rejected(employee, AttendanceStateConflict(_CONFLICT_MESSAGES[AttendanceStatus(expected_action)]))

        flags = classify(now, shift, action, settings.LATE_GRACE_MINUTES, settings.get_timezone())
        record = AttendanceRecord(
            company_id=employee.company_id,
            employee_id=employee.id,
            employee_name=employee.name,
            username=employee.username,
            timestamp=to_epoch_ms(now),
            status=action.value,
            location_id=location.id,
            shift_name=shift.name if shift else None,
            is_late=flags.is_late,
            is_early=flags.is_early,
            latitude=coords.latitude,
            longitude=coords.longitude,
            accuracy=coords.accuracy,
            selfie_image=selfie_image,
            face_distance=face_distance,
            is_manual_entry=False,
        )
        db.add(record)
        db.flush()
        log_audit(
            db=db,
            actor_kind="EMPLOYEE",
            actor_id=employee.id,
            action=f"ATTENDANCE_{action.value}",
            entity_type="attendance_records",
            entity_id=record.id,
            meta={
                "location_id": location.id,
                "is_late": flags.is_late,
                "is_early": flags.is_early,
                "source": source,
            },
            commit=False,
        )
        commit_or_raise(db)

    db.refresh(record)
    logger.info(
        "Attendance recorded: employee_id=%s status=%s late=%s early=%s",
        employee.id, record.status, record.is_late, record.is_early,
    )
    return record


def _timestamp_bounds(from_date: Optional[date], to_date: Optional[date]):
    """Inclusive local-day range -> [start_ms, end_ms) in epoch milliseconds."""
    if from_date and to_date and from_date > to_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="from must be less than or equal to to",
        )
    tz = settings.get_timezone()
    start_ms = to_epoch_ms(datetime.combine(from_date, time.min, tzinfo=tz)) if from_date else None
    end_ms = to_epoch_ms(datetime.combine(to_date + timedelta(days=1), time.min, tzinfo=tz)) if to_date else None
    return start_ms, end_ms


def _apply_range(query, from_date: Optional[date], to_date: Optional[date]):
    start_ms, end_ms = _timestamp_bounds(from_date, to_date)
    if start_ms is not None:
        query = query.filter(AttendanceRecord.timestamp >= start_ms)
    if end_ms is not None:
        query = query.filter(AttendanceRecord.timestamp < end_ms)
    return query


def list_employee_records(
    db: Session,
    employee_id: int,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> List[AttendanceRecord]:
    """Own records, newest first."""
    query = db.query(AttendanceRecord).filter(AttendanceRecord.employee_id == employee_id)
    query = _apply_range(query, from_date, to_date)
    return query.order_by(AttendanceRecord.timestamp.desc(), AttendanceRecord.id.desc()).all()


def list_company_records(
    db: Session,
    company_id: int,
    employee_id: Optional[int] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> List[AttendanceRecord]:
    """Company-wide records for admins, newest first. Includes records of deleted employees."""
    query = db.query(AttendanceRecord).filter(AttendanceRecord.company_id == company_id)
    if employee_id is not None:
        query = query.filter(AttendanceRecord.employee_id == employee_id)
    query = _apply_range(query, from_date, to_date)
    return query.order_by(AttendanceRecord.timestamp.desc(), AttendanceRecord.id.desc()).all()
