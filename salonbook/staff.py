# salonbook/staff.py
"""Employee schedules, days off and merchant opening hours."""

import logging
from datetime import date, time
from typing import Any, Dict, List, Optional

from salonbook.errors import NotFound, ValidationError
from salonbook.models import DayOff, Employee, Merchant, utcnow

logger = logging.getLogger(__name__)

SCHEDULE_FIELDS = ("working_days", "start_time", "end_time")

# settings that accept null; a break is cleared by nulling both ends
NULLABLE_SETTINGS = ("timezone", "break_start_time", "break_end_time")


def validate_schedule(
    working_days: List[int],
    start: time,
    end: time,
    break_start: Optional[time] = None,
    break_end: Optional[time] = None,
) -> None:
    if not working_days:
        raise ValidationError("working_days must contain at least one day")
    for day in working_days:
        if not (0 <= day <= 6):
            raise ValidationError("working_days must be integers between 0 and 6")
    if len(working_days) != len(set(working_days)):
        raise ValidationError("working_days cannot contain duplicates")
    if start >= end:
        raise ValidationError("start_time must be before end_time")
    if (break_start is None) != (break_end is None):
        raise ValidationError("break_start_time and break_end_time must be set together")
    if break_start is not None:
        if break_start >= break_end:
            raise ValidationError("break_start_time must be before break_end_time")
        if break_start < start or break_end > end:
            raise ValidationError("Break must be within working hours")


def get_employee_for_merchant(repo, merchant_id: int, employee_id: int) -> Employee:
    employee = repo.get_employee(employee_id)
    if employee is None or employee.merchant_id != merchant_id:
        raise NotFound("Employee not found")
    return employee


def update_employee(repo, employee: Employee, changes: Dict[str, Any]) -> Employee:
    """Edit profile and pay, or deactivate with ``is_active=False``.

    Deactivated employees get no new slots; existing bookings stay as they are.
    """
    for field, value in changes.items():
        if value is None and field != "email":
            raise ValidationError(f"{field} cannot be null")
    if changes.get("payment_value", employee.payment_value) < 0:
        raise ValidationError("payment_value must not be negative")

    for field, value in changes.items():
        setattr(employee, field, value)
    employee.updated_at = utcnow()
    employee = repo.save(employee)
    if changes.get("is_active") is False:
        logger.info(f"Deactivated employee {employee.id}")
    return employee


def update_employee_schedule(
    repo,
    employee: Employee,
    working_days: List[int],
    start: time,
    end: time,
    break_start: Optional[time] = None,
    break_end: Optional[time] = None,
) -> Employee:
    """Give the employee personal hours; merchant hour changes no longer overwrite them."""
    validate_schedule(working_days, start, end, break_start, break_end)
    employee.working_days = sorted(working_days)
    employee.start_time = start
    employee.end_time = end
    employee.break_start_time = break_start
    employee.break_end_time = break_end
    employee.has_custom_schedule = True
    employee.updated_at = utcnow()
    return repo.save(employee)


def sync_employee_hours(repo, merchant: Merchant) -> List[Employee]:
    """Copy the merchant's hours onto employees that follow them."""
    synced = []
    for employee in repo.get_employees_by_merchant(merchant.id):
        if employee.has_custom_schedule:
            continue
        changes = {}
        for field in SCHEDULE_FIELDS:
            value = getattr(merchant, field)
            if value != getattr(employee, field):
                changes[field] = list(value) if field == "working_days" else value
        if not changes:
            continue
        for field, value in changes.items():
            setattr(employee, field, value)
        employee.updated_at = utcnow()
        repo.save(employee)
        synced.append(employee)
        logger.info(f"Synced employee {employee.id} hours with merchant {merchant.id}: {sorted(changes)}")
    return synced


def update_merchant_settings(repo, merchant: Merchant, changes: Dict[str, Any]) -> Merchant:
    """Apply settings changes, then propagate new opening hours to employees.

    A null clears one of ``NULLABLE_SETTINGS``; any other null is rejected.
    """
    for field, value in changes.items():
        if value is None and field not in NULLABLE_SETTINGS:
            raise ValidationError(f"{field} cannot be null")

    working_days = changes.get("working_days", merchant.working_days)
    start = changes.get("start_time", merchant.start_time)
    end = changes.get("end_time", merchant.end_time)
    break_start = changes.get("break_start_time", merchant.break_start_time)
    break_end = changes.get("break_end_time", merchant.break_end_time)
    validate_schedule(working_days, start, end, break_start, break_end)

    hours = changes.get("cancellation_policy_hours")
    if hours is not None and not (0 <= hours <= 168):
        raise ValidationError("cancellation_policy_hours must be between 0 and 168")
    amount = changes.get("cancellation_fee_amount")
    if amount is not None and amount < 0:
        raise ValidationError("cancellation_fee_amount must not be negative")

    hours_changed = any(
        field in changes and changes[field] != getattr(merchant, field) for field in SCHEDULE_FIELDS
    )
    for field, value in changes.items():
        setattr(merchant, field, list(value) if field == "working_days" else value)
    merchant.updated_at = utcnow()
    merchant = repo.save(merchant)

    if hours_changed:
        sync_employee_hours(repo, merchant)
    return merchant


def add_day_off(repo, merchant_id: int, employee_id: int, day: date, reason: Optional[str] = None) -> DayOff:
    get_employee_for_merchant(repo, merchant_id, employee_id)
    day_off = DayOff(merchant_id=merchant_id, employee_id=employee_id, date=day, reason=reason)
    day_off = repo.create_day_off(day_off)
    logger.info(f"Registered day off for employee {employee_id} on {day}")
    return day_off


def remove_day_off(repo, merchant_id: int, day_off_id: int) -> None:
    day_off = repo.get_day_off(day_off_id)
    if day_off is None or day_off.merchant_id != merchant_id:
        raise NotFound("Day off not found")
    repo.delete(day_off)
