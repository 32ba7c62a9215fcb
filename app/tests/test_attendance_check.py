"""
Tests for the check-in/check-out decision (service level)
"""
import json
import threading
import time
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings
from app.core.errors import (
    AttendanceStateConflict,
    FaceMismatch,
    InvalidLocationToken,
    InvalidQrPayload,
    LocationUnavailable,
    NoFaceDetected,
    OutOfRange,
    PersistenceFailure,
    SelfieRequired,
    WrongLocation,
)
from app.db.base import Base
from app.models.attendance import AttendanceRecord, AttendanceStatus, ImmutableRecordError
from app.models.audit_log import AuditLog
from app.models.company import Company
from app.models.employee import Employee
from app.models.location import Location
from app.schemas.attendance import CheckRequest
from app.services import attendance_service
from app.services.attendance_service import next_action, parse_location_token, record_attendance
from app.services.face_service import serialize_descriptor
from app.services.geofence import GeoPoint

INSIDE = GeoPoint(10.0001, 106.0001, accuracy=12.0)
FAR = GeoPoint(10.005, 106.0)


def token(location_id):
    return json.dumps({"locationId": location_id})


def record_count(db: Session) -> int:
    return db.query(AttendanceRecord).count()


def test_first_action_is_check_in(db, employee):
    assert next_action(db, employee.id) == AttendanceStatus.CHECK_IN
    # read-only: asking twice gives the same answer
    assert next_action(db, employee.id) == AttendanceStatus.CHECK_IN


def test_actions_alternate(db, employee, office):
    statuses = [record_attendance(db, employee, token(office.id), INSIDE).status for _ in range(3)]
    assert statuses == ["CHECK_IN", "CHECK_OUT", "CHECK_IN"]
    assert next_action(db, employee.id) == AttendanceStatus.CHECK_OUT


def test_record_snapshot_and_position(db, employee, office):
    record = record_attendance(db, employee, token(office.id), INSIDE)

    assert record.employee_id == employee.id
    assert record.employee_name == "Nguyen Van An"
    assert record.username == "an.nguyen"
    assert record.location_id == office.id
    assert record.latitude == INSIDE.latitude
    assert record.accuracy == 12.0
    assert record.is_manual_entry is False
    assert record.shift_name is None
    assert record.is_late is False and record.is_early is False


def test_snapshot_survives_rename_and_deletion(db, employee, office):
    record = record_attendance(db, employee, token(office.id), INSIDE)
    employee.name = "Renamed"
    db.commit()
    db.refresh(record)
    assert record.employee_name == "Nguyen Van An"

    employee_id = employee.id
    db.delete(employee)
    db.commit()
    assert db.query(AttendanceRecord).filter(AttendanceRecord.employee_id == employee_id).count() == 1


def test_shift_flags_are_recorded(db, employee, office, day_shift):
    employee.shift_id = day_shift.id
    db.commit()

    # 01:30 UTC is 08:30 in Asia/Ho_Chi_Minh
    record = record_attendance(
        db, employee, token(office.id), INSIDE,
        now=datetime(2026, 3, 2, 1, 30, tzinfo=timezone.utc),
    )
    assert record.shift_name == "Day"
    assert record.is_late is True
    assert record.timestamp == int(datetime(2026, 3, 2, 1, 30, tzinfo=timezone.utc).timestamp() * 1000)

    # 09:00 UTC is 16:00 local
    record = record_attendance(
        db, employee, token(office.id), INSIDE,
        now=datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc),
    )
    assert record.status == "CHECK_OUT"
    assert record.is_early is True


def test_dangling_shift_is_unflagged(db, employee, office):
    employee.shift_id = 4242
    db.commit()
    record = record_attendance(db, employee, token(office.id), INSIDE)
    assert record.shift_name is None
    assert record.is_late is False


def test_records_are_immutable(db, employee, office):
    record = record_attendance(db, employee, token(office.id), INSIDE)

    record.is_late = True
    with pytest.raises(ImmutableRecordError):
        db.commit()
    db.rollback()

    db.refresh(record)
    db.delete(record)
    with pytest.raises(ImmutableRecordError):
        db.commit()
    db.rollback()
    assert record_count(db) == 1


@pytest.mark.parametrize("payload", [
    "hello",
    "",
    "[1, 2]",
    '{"foo": 1}',
    '{"locationId": ""}',
    '{"locationId": null}',
])
def test_malformed_qr_payload(payload):
    with pytest.raises(InvalidQrPayload):
        parse_location_token(payload)


def test_qr_payload_accepts_string_or_number():
    assert parse_location_token('{"locationId": 3}') == 3
    assert parse_location_token('{"locationId": "3"}') == "3"


def test_malformed_qr_inserts_nothing(db, employee, office):
    with pytest.raises(InvalidQrPayload):
        record_attendance(db, employee, "not-json", INSIDE)
    assert record_count(db) == 0


def test_unknown_location(db, employee, office):
    with pytest.raises(InvalidLocationToken):
        record_attendance(db, employee, token(999), INSIDE)
    with pytest.raises(InvalidLocationToken):
        record_attendance(db, employee, token("abc"), INSIDE)
    assert record_count(db) == 0


def test_location_of_another_company_is_unknown(db, employee):
    other = Company(name="Other Co")
    db.add(other)
    db.commit()
    foreign = Location(company_id=other.id, name="Elsewhere", latitude=10.0, longitude=106.0, radius=100.0)
    db.add(foreign)
    db.commit()

    with pytest.raises(InvalidLocationToken):
        record_attendance(db, employee, token(foreign.id), INSIDE)
    assert record_count(db) == 0


def test_out_of_range(db, employee, office):
    with pytest.raises(OutOfRange) as exc_info:
        record_attendance(db, employee, token(office.id), FAR)
    assert exc_info.value.status_code == 403
    assert not any(ch.isdigit() for ch in exc_info.value.detail)
    assert record_count(db) == 0


@pytest.mark.parametrize("cause,expected", [
    ("PERMISSION_DENIED", "PERMISSION_DENIED"),
    ("POSITION_UNAVAILABLE", "POSITION_UNAVAILABLE"),
    ("TIMEOUT", "TIMEOUT"),
    (None, "UNKNOWN"),
    ("SOMETHING_ELSE", "UNKNOWN"),
])
def test_missing_coordinates_is_location_unavailable(db, employee, office, cause, expected):
    with pytest.raises(LocationUnavailable) as exc_info:
        record_attendance(db, employee, token(office.id), None, location_error=cause)
    assert exc_info.value.cause == expected
    assert record_count(db) == 0


def test_location_error_messages_differ():
    messages = {LocationUnavailable(c).detail for c in ("PERMISSION_DENIED", "POSITION_UNAVAILABLE", "TIMEOUT", None)}
    assert len(messages) == 4


def test_selfie_required(db, employee, office):
    office.require_selfie = True
    db.commit()

    with pytest.raises(SelfieRequired):
        record_attendance(db, employee, token(office.id), INSIDE)
    assert record_count(db) == 0

    record = record_attendance(db, employee, token(office.id), INSIDE, selfie_image="data:image/jpeg;base64,AAAA")
    assert record.selfie_image == "data:image/jpeg;base64,AAAA"


def test_wrong_assigned_location(db, employee, office, company):
    branch = Location(company_id=company.id, name="Branch", latitude=10.0, longitude=106.0, radius=100.0)
    db.add(branch)
    db.commit()
    employee.location_id = branch.id
    db.commit()

    with pytest.raises(WrongLocation):
        record_attendance(db, employee, token(office.id), INSIDE)
    assert record_count(db) == 0
    assert record_attendance(db, employee, token(branch.id), INSIDE).status == "CHECK_IN"


def test_expected_action_conflict(db, employee, office):
    with pytest.raises(AttendanceStateConflict) as exc_info:
        record_attendance(db, employee, token(office.id), INSIDE, expected_action=AttendanceStatus.CHECK_OUT)
    assert exc_info.value.status_code == 409
    assert record_count(db) == 0

    record_attendance(db, employee, token(office.id), INSIDE, expected_action=AttendanceStatus.CHECK_IN)
    with pytest.raises(AttendanceStateConflict):
        record_attendance(db, employee, token(office.id), INSIDE, expected_action=AttendanceStatus.CHECK_IN)
    assert record_count(db) == 1


def test_persistence_failure_is_reported_verbatim(db, employee, office, monkeypatch):
    def failing_commit():
        raise SQLAlchemyError("disk I/O error")

    monkeypatch.setattr(db, "commit", failing_commit)
    with pytest.raises(PersistenceFailure) as exc_info:
        record_attendance(db, employee, token(office.id), INSIDE)
    monkeypatch.undo()

    assert exc_info.value.status_code == 500
    assert exc_info.value.detail == "disk I/O error"
    assert record_count(db) == 0


class TestFaceGate:
    REFERENCE = [0.1] * 128

    @pytest.fixture
    def enrolled(self, db, employee):
        employee.face_descriptor = serialize_descriptor(self.REFERENCE)
        db.commit()
        return employee

    @pytest.fixture
    def gate_on(self, monkeypatch):
        monkeypatch.setattr(settings, "FACE_VERIFICATION_ENABLED", True)

    def test_matching_face_is_recorded(self, db, enrolled, office, gate_on):
        record = record_attendance(db, enrolled, token(office.id), INSIDE, face_descriptor=self.REFERENCE)
        assert record.face_distance == pytest.approx(0.0)

    def test_mismatched_face_is_rejected(self, db, enrolled, office, gate_on):
        with pytest.raises(FaceMismatch):
            record_attendance(db, enrolled, token(office.id), INSIDE, face_descriptor=[0.9] * 128)
        assert record_count(db) == 0

    def test_missing_face_is_rejected(self, db, enrolled, office, gate_on):
        with pytest.raises(NoFaceDetected):
            record_attendance(db, enrolled, token(office.id), INSIDE)
        assert record_count(db) == 0

    def test_unenrolled_employee_is_not_gated(self, db, employee, office, gate_on):
        record = record_attendance(db, employee, token(office.id), INSIDE)
        assert record.face_distance is None

    def test_gate_off_records_distance_only(self, db, enrolled, office):
        record = record_attendance(db, enrolled, token(office.id), INSIDE, face_descriptor=[0.9] * 128)
        assert record.status == "CHECK_IN"
        assert record.face_distance > 0.45


def test_naive_event_time_is_local(db, employee, office, day_shift):
    employee.shift_id = day_shift.id
    db.commit()

    record = record_attendance(db, employee, token(office.id), INSIDE, now=datetime(2026, 3, 2, 8, 30))
    assert record.is_late is True
    # 08:30 in Asia/Ho_Chi_Minh is 01:30 UTC
    assert record.timestamp == int(datetime(2026, 3, 2, 1, 30, tzinfo=timezone.utc).timestamp() * 1000)


class TestConcurrentScans:
    """Two scans of the same employee racing on a shared file database."""

    @pytest.fixture
    def session_factory(self, tmp_path):
        engine = create_engine(
            f"sqlite:///{tmp_path / 'race.db'}",
            connect_args={"check_same_thread": False},
        )
        Base.metadata.create_all(bind=engine)
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
        engine.dispose()

    @pytest.fixture
    def seeded(self, session_factory):
        db = session_factory()
        company = Company(name="Race Co")
        db.add(company)
        db.commit()
        location = Location(company_id=company.id, name="Gate", latitude=10.0, longitude=106.0, radius=100.0)
        employee = Employee(company_id=company.id, username="racer", name="Racer", device_code="RC001")
        db.add_all([location, employee])
        db.commit()
        ids = (employee.id, location.id)
        db.close()
        return ids

    def scan_in_threads(self, session_factory, employee_id, location_id):
        start = threading.Barrier(2)
        errors = []

        def scan():
            db = session_factory()
            try:
                employee = db.query(Employee).filter(Employee.id == employee_id).one()
                start.wait()
                record_attendance(db, employee, token(location_id), INSIDE)
            except Exception as exc:  # surfaced through the errors list
                errors.append(exc)
            finally:
                db.close()

        threads = [threading.Thread(target=scan) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)
        assert errors == []

        db = session_factory()
        try:
            rows = (
                db.query(AttendanceRecord.status, AttendanceRecord.timestamp)
                .filter(AttendanceRecord.employee_id == employee_id)
                .order_by(AttendanceRecord.timestamp, AttendanceRecord.id)
                .all()
            )
            return rows, next_action(db, employee_id)
        finally:
            db.close()

    def test_two_scans_alternate(self, session_factory, seeded):
        rows, action = self.scan_in_threads(session_factory, *seeded)
        assert [status for status, _ in rows] == ["CHECK_IN", "CHECK_OUT"]
        assert action == AttendanceStatus.CHECK_IN

    def test_slow_clock_reader_does_not_reorder_history(self, session_factory, seeded, monkeypatch):
        """The first scan to read the clock stalls right after reading it."""
        base = datetime(2026, 3, 2, 1, 0, tzinfo=timezone.utc)
        ticks = []
        clock_guard = threading.Lock()

        def stalling_clock():
            with clock_guard:
                ticks.append(None)
                current = base + timedelta(seconds=len(ticks) - 1)
                first = len(ticks) == 1
            if first:
                time.sleep(0.3)
            return current

        monkeypatch.setattr(attendance_service, "now_utc", stalling_clock)
        rows, action = self.scan_in_threads(session_factory, *seeded)

        assert [status for status, _ in rows] == ["CHECK_IN", "CHECK_OUT"]
        assert rows[0][1] < rows[1][1]
        assert action == AttendanceStatus.CHECK_IN


def test_scan_source_defaults_to_web(db, employee, office):
    record = record_attendance(db, employee, token(office.id), INSIDE)
    entry = db.query(AuditLog).filter(AuditLog.entity_id == record.id, AuditLog.entity_type == "attendance_records").one()
    assert entry.meta_json["source"] == CheckRequest.model_fields["source"].default == "web"
