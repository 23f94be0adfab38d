# salonbook/availability.py

import logging
from datetime import date, time
from typing import List, Optional

from salonbook.config import get_settings
from salonbook.conflicts import find_conflict
from salonbook.core import from_minutes, overlaps, to_minutes, weekday_number, end_of
from salonbook.errors import DayOffConflict, NotFound, ValidationError
from salonbook.models import Employee

logger = logging.getLogger(__name__)


def effective_end_time(employee: Employee) -> time:
    """End of the working window, including a temporary extension."""
    if employee.extended_end_time and employee.extended_end_time > employee.end_time:
        return employee.extended_end_time
    return employee.end_time


def schedule_rejection(employee: Employee, day: date, start_minutes: int, end_minutes: int) -> Optional[str]:
    """Why the interval cannot be worked, or ``None`` when it fits the schedule."""
    if not employee.is_active:
        return "Employee is not active"
    if weekday_number(day) not in employee.working_days:
        return "Employee is not scheduled to work that day"
    if start_minutes < to_minutes(employee.start_time) or end_minutes > to_minutes(effective_end_time(employee)):
        return "Appointment must be within working hours"
    if employee.break_start_time and employee.break_end_time:
        if overlaps(
            start_minutes,
            end_minutes,
            to_minutes(employee.break_start_time),
            to_minutes(employee.break_end_time),
        ):
            return "Appointment overlaps the employee's break"
    return None


def available_slots(
    repo,
    employee_id: int,
    day: date,
    duration_minutes: int,
    slot_granularity: Optional[int] = None,
) -> List[time]:
    """Bookable start times for one employee on one day, ascending."""
    if duration_minutes <= 0:
        raise ValidationError("Duration must be a positive number of minutes")
    if slot_granularity is None:
        slot_granularity = get_settings().SLOT_GRANULARITY_MINUTES
    if slot_granularity <= 0:
        raise ValidationError("Slot granularity must be positive")

    employee = repo.get_employee(employee_id)
    if employee is None:
        raise NotFound("Employee not found")

    # 1) Whole-day rejections
    if not employee.is_active or weekday_number(day) not in employee.working_days:
        return []
    merchant = repo.get_merchant(employee.merchant_id)
    if merchant is not None and not merchant.is_open:
        return []
    if repo.is_employee_on_day_off(employee_id, day):
        return []

    # 2) Walk the working window
    appts_for_day = repo.get_appointments_by_employee(employee_id, day)
    work_start = to_minutes(employee.start_time)
    last_start = to_minutes(effective_end_time(employee)) - duration_minutes

    slots = []
    current = work_start
    while current <= last_start:
        slot_end = current + duration_minutes
        if schedule_rejection(employee, day, current, slot_end) is None:
            start = from_minutes(current)
            if find_conflict(appts_for_day, start, from_minutes(slot_end)) is None:
                slots.append(start)
        current += slot_granularity

    return slots


def check_slot(repo, employee: Employee, day: date, start: time, duration_minutes: int) -> None:
    """Raise if ``employee`` cannot take a ``duration_minutes`` job at ``start`` on ``day``.

    Existing bookings are not checked here; that happens inside the reservation.
    """
    end = end_of(start, duration_minutes)
    merchant = repo.get_merchant(employee.merchant_id)
    if merchant is not None and not merchant.is_open:
        raise ValidationError("Merchant is currently closed for bookings")
    if repo.is_employee_on_day_off(employee.id, day):
        raise DayOffConflict(day)
    reason = schedule_rejection(employee, day, to_minutes(start), to_minutes(end))
    if reason is not None:
        logger.info(f"Slot {day} {start:%H:%M} rejected for employee {employee.id}: {reason}")
        raise ValidationError(reason)
