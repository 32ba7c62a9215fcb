"""
Tests for the weekly timesheet and its CSV export
"""
import csv
import io
from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest
from fastapi import status

from app.models.attendance import AttendanceRecord
from app.models.company import Company
from app.models.employee import Employee
from app.services.timesheet_service import (
    CSV_HEADERS,
    build_weekly_timesheet,
    week_range,
    worked_hours,
)
from app.utils.datetime_utils import to_epoch_ms

LOCAL = ZoneInfo("Asia/Ho_Chi_Minh")


def add_record(db, employee, local_time, record_status, is_late=False, is_early=False):
    db.add(AttendanceRecord(
        company_id=employee.company_id,
        employee_id=employee.id,
        employee_name=employee.name,
        username=employee.username,
        timestamp=to_epoch_ms(local_time.replace(tzinfo=LOCAL)),
        status=record_status,
        is_late=is_late,
        is_early=is_early,
    ))


@pytest.fixture
def second_employee(db, company):
    employee = Employee(company_id=company.id, username="binh.tran", name="Tran Thi Binh", device_code="XY34Z")
    db.add(employee)
    db.commit()
    db.refresh(employee)
    return employee


@pytest.fixture
def week_of_records(db, employee, second_employee):
    """Week of Monday 2026-03-02 for the first employee; nothing for the second."""
    # Monday: split day, first in is late
    add_record(db, employee, datetime(2026, 3, 2, 8, 30), "CHECK_IN", is_late=True)
    add_record(db, employee, datetime(2026, 3, 2, 12, 0), "CHECK_OUT")
    add_record(db, employee, datetime(2026, 3, 2, 13, 0), "CHECK_IN")
    add_record(db, employee, datetime(2026, 3, 2, 17, 0), "CHECK_OUT")
    # Tuesday: forgot to check out
    add_record(db, employee, datetime(2026, 3, 3, 8, 0), "CHECK_IN")
    # Sunday morning local is still Saturday in UTC
    add_record(db, employee, datetime(2026, 3, 8, 6, 30), "CHECK_IN")
    add_record(db, employee, datetime(2026, 3, 8, 9, 15), "CHECK_OUT", is_early=True)
    # following Monday
    add_record(db, employee, datetime(2026, 3, 9, 0, 30), "CHECK_IN")
    db.commit()


@pytest.fixture
def admin_headers(client, company_admin):
    response = client.post("/api/v1/auth/login", json={"username": "acme-admin", "password": "adminpass123"})
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def test_week_range_is_monday_to_sunday():
    assert week_range(date(2026, 3, 4)) == (date(2026, 3, 2), date(2026, 3, 8))
    assert week_range(date(2026, 3, 2)) == (date(2026, 3, 2), date(2026, 3, 8))
    assert week_range(date(2026, 3, 8)) == (date(2026, 3, 2), date(2026, 3, 8))


def test_worked_hours():
    assert worked_hours(1_000, 1_000 + 5_400_000) == 1.5
    assert worked_hours(None, 5_000) == 0.0
    assert worked_hours(5_000, None) == 0.0
    assert worked_hours(9_000_000, 1_000) == 0.0


def test_weekly_timesheet(db, company, employee, second_employee, week_of_records):
    timesheet = build_weekly_timesheet(db, company.id, date(2026, 3, 4))

    assert timesheet.week_start == date(2026, 3, 2)
    assert timesheet.week_end == date(2026, 3, 8)
    assert [row.employee_name for row in timesheet.items] == ["Nguyen Van An", "Tran Thi Binh"]

    first = timesheet.items[0]
    monday, tuesday, sunday = first.days[0], first.days[1], first.days[6]
    assert monday.day == date(2026, 3, 2)
    assert monday.hours == 8.5
    assert monday.is_late is True
    assert monday.is_early is False
    assert tuesday.check_out is None
    assert tuesday.hours == 0.0
    assert sunday.hours == 2.75
    assert sunday.is_early is True
    assert first.total_hours == 11.25

    second = timesheet.items[1]
    assert second.total_hours == 0.0
    assert all(day.check_in is None for day in second.days)


def test_timesheet_ignores_other_companies(db, company, employee, week_of_records):
    other = Company(name="Other Co")
    db.add(other)
    db.commit()
    outsider = Employee(company_id=other.id, username="x", name="Outsider", device_code="ZZ999")
    db.add(outsider)
    db.commit()
    add_record(db, outsider, datetime(2026, 3, 2, 9, 0), "CHECK_IN")
    db.commit()

    timesheet = build_weekly_timesheet(db, company.id, date(2026, 3, 2))
    assert "Outsider" not in [row.employee_name for row in timesheet.items]
    assert timesheet.items[0].days[0].hours == 8.5


def test_timesheet_endpoint(client, db, admin_headers, week_of_records):
    response = client.get("/api/v1/attendance/timesheet", params={"week": "2026-03-05"}, headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["week_start"] == "2026-03-02"
    assert data["items"][0]["total_hours"] == 11.25
    assert len(data["items"][0]["days"]) == 7


def test_timesheet_defaults_to_current_week(client, db, admin_headers):
    response = client.get("/api/v1/attendance/timesheet", headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK
    assert date.fromisoformat(response.json()["week_start"]).weekday() == 0


def test_timesheet_csv_export(client, db, admin_headers, week_of_records):
    response = client.get("/api/v1/attendance/timesheet.csv", params={"week": "2026-03-02"}, headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.headers["content-type"].startswith("text/csv")
    assert "Bao_cao_cham_cong_tuan_02-03-2026.csv" in response.headers["content-disposition"]
    assert response.content.startswith(b"\xef\xbb\xbf")

    rows = list(csv.reader(io.StringIO(response.text.lstrip("\ufeff"))))
    assert rows[0] == CSV_HEADERS
    assert rows[1] == [
        "Nguyen Van An", "08:30 - 17:00", "08:00 - ", "-", "-", "-", "-", "06:30 - 09:15", "11.25",
    ]
    assert rows[2] == ["Tran Thi Binh"] + ["-"] * 7 + ["0"]


def test_employee_cannot_read_timesheet(client, db, employee):
    token = client.post("/api/v1/auth/login", json={"device_code": "AB12C"}).json()["access_token"]
    response = client.get("/api/v1/attendance/timesheet.csv", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_403_FORBIDDEN
