"""
Timesheet service - weekly attendance summary per employee, with CSV rows for export.

Each day shows the first CHECK_IN and the last CHECK_OUT of the local day. Worked hours are the
span between them; a day missing either side counts zero hours.
"""
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.models.employee import Employee
from app.schemas.timesheet import TimesheetDay, TimesheetOut, TimesheetRow
from app.utils.datetime_utils import from_epoch_ms, now_utc, to_epoch_ms

_MS_PER_HOUR = 60 * 60 * 1000

EMPLOYEE_COLUMN = "Nhân viên"
DAY_COLUMNS = ["Thứ 2", "Thứ 3", "Thứ 4", "Thứ 5", "Thứ 6", "Thứ 7", "Chủ nhật"]
TOTAL_COLUMN = "Tổng giờ làm"
CSV_HEADERS = [EMPLOYEE_COLUMN] + DAY_COLUMNS + [TOTAL_COLUMN]


def week_range(day: date) -> Tuple[date, date]:
    """Monday and Sunday of the week containing day."""
    week_start = day - timedelta(days=day.weekday())
    return week_start, week_start + timedelta(days=6)


def worked_hours(check_in: Optional[int], check_out: Optional[int]) -> float:
    """Hours between two epoch-ms instants, rounded to 2 decimals; 0 if either is missing or out precedes in."""
    if not check_in or not check_out or check_out < check_in:
        return 0.0
    return round((check_out - check_in) / _MS_PER_HOUR, 2)


def _summarize_day(day: date, records: Sequence[AttendanceRecord]) -> TimesheetDay:
    # records arrive in timestamp order
    check_ins = [r for r in records if r.status == AttendanceStatus.CHECK_IN.value]
    check_outs = [r for r in records if r.status == AttendanceStatus.CHECK_OUT.value]
    first_in = check_ins[0] if check_ins else None
    last_out = check_outs[-1] if check_outs else None

    check_in = first_in.timestamp if first_in else None
    check_out = last_out.timestamp if last_out else None
    return TimesheetDay(
        day=day,
        check_in=check_in,
        check_out=check_out,
        hours=worked_hours(check_in, check_out),
        is_late=bool(first_in and first_in.is_late),
        is_early=bool(last_out and last_out.is_early),
    )


def build_weekly_timesheet(db: Session, company_id: int, week_of: Optional[date] = None) -> TimesheetOut:
    """
    Weekly timesheet for every current employee of the company.

    Args:
        db: Database session
        company_id: Company to report on
        week_of: Any day of the wanted week (defaults to today in the deployment timezone)

    Returns:
        TimesheetOut with one row per employee, ordered by employee id
    """
    tz = settings.get_timezone()
    week_of = week_of or now_utc().astimezone(tz).date()
    week_start, week_end = week_range(week_of)
    start_ms = to_epoch_ms(datetime.combine(week_start, time.min, tzinfo=tz))
    end_ms = to_epoch_ms(datetime.combine(week_end + timedelta(days=1), time.min, tzinfo=tz))

    employees = db.query(Employee).filter(Employee.company_id == company_id).order_by(Employee.id).all()
    records = (
        db.query(AttendanceRecord)
        .filter(
            AttendanceRecord.company_id == company_id,
            AttendanceRecord.timestamp >= start_ms,
            AttendanceRecord.timestamp < end_ms,
        )
        .order_by(AttendanceRecord.timestamp, AttendanceRecord.id)
        .all()
    )

    by_day: Dict[Tuple[int, date], List[AttendanceRecord]] = defaultdict(list)
    for record in records:
        local_day = from_epoch_ms(record.timestamp).astimezone(tz).date()
        by_day[(record.employee_id, local_day)].append(record)

    rows = []
    for employee in employees:
        days = []
        for offset in range(7):
            day = week_start + timedelta(days=offset)
            days.append(_summarize_day(day, by_day.get((employee.id, day), [])))
        rows.append(TimesheetRow(
            employee_id=employee.id,
            employee_name=employee.name,
            days=days,
            total_hours=round(sum(d.hours for d in days), 2),
        ))

    return TimesheetOut(week_start=week_start, week_end=week_end, items=rows)


def _format_clock(ms: int) -> str:
    return from_epoch_ms(ms).astimezone(settings.get_timezone()).strftime("%H:%M")


def _format_day(day: TimesheetDay) -> str:
    if day.check_in and day.check_out:
        return f"{_format_clock(day.check_in)} - {_format_clock(day.check_out)}"
    if day.check_in:
        return f"{_format_clock(day.check_in)} - "
    return "-"


def timesheet_csv_rows(timesheet: TimesheetOut) -> List[Dict[str, str]]:
    """Rows keyed by CSV_HEADERS: "HH:MM - HH:MM" per day, "-" for a day without check-in."""
    rows = []
    for item in timesheet.items:
        row = {EMPLOYEE_COLUMN: item.employee_name, TOTAL_COLUMN: f"{item.total_hours:g}"}
        for column, day in zip(DAY_COLUMNS, item.days):
            row[column] = _format_day(day)
        rows.append(row)
    return rows


def timesheet_filename(timesheet: TimesheetOut) -> str:
    return f"Bao_cao_cham_cong_tuan_{timesheet.week_start:%d-%m-%Y}.csv"
