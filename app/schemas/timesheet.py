"""
Weekly timesheet schemas (admin report)
"""
from datetime import date
from typing import List, Optional
from pydantic import BaseModel, Field


class TimesheetDay(BaseModel):
    """One employee-day: first check-in and last check-out of the local day"""
    day: date
    check_in: Optional[int] = Field(None, description="First CHECK_IN of the day (epoch ms)")
    check_out: Optional[int] = Field(None, description="Last CHECK_OUT of the day (epoch ms)")
    hours: float = Field(0.0, description="Hours between check_in and check_out, 0 if either is missing")
    is_late: bool = False
    is_early: bool = False


class TimesheetRow(BaseModel):
    employee_id: int
    employee_name: str
    days: List[TimesheetDay]
    total_hours: float


class TimesheetOut(BaseModel):
    """Monday-to-Sunday week in the deployment timezone"""
    week_start: date
    week_end: date
    items: List[TimesheetRow]
