# salonbook/settlement.py

import logging
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from typing import Dict, List, Optional

from salonbook.core import merchant_now, round_half_up, to_minutes
from salonbook.errors import NotFound, ValidationError
from salonbook.models import Appointment, AppointmentStatus, Employee, PayType

logger = logging.getLogger(__name__)


@dataclass
class OvertimeStats:
    total_overtime_minutes: int
    total_overtime_hours: float
    last_overtime_date: Optional[date]


def appointment_earning(employee: Employee, appointment: Appointment, service_price: int) -> int:
    """What one appointment pays the employee; only completed work counts."""
    if appointment.status != AppointmentStatus.completed:
        return 0
    if employee.payment_type == PayType.percentage:
        # payment_value holds the percentage * 100 (1000 == 10.00%)
        return round_half_up(Decimal(service_price) * employee.payment_value / 10000)
    if employee.payment_type == PayType.fixed:
        return employee.payment_value
    return 0


def _load_employee(repo, employee_id: int) -> Employee:
    employee = repo.get_employee(employee_id)
    if employee is None:
        raise NotFound("Employee not found")
    return employee


def _check_range(start_date: date, end_date: date) -> None:
    if start_date > end_date:
        raise ValidationError("start_date must not be after end_date")


def earnings_for(repo, employee_id: int, start_date: date, end_date: date) -> int:
    employee = _load_employee(repo, employee_id)
    _check_range(start_date, end_date)

    prices: Dict[int, int] = {}
    total = 0
    for appt in repo.get_completed_appointments(employee_id, start_date, end_date):
        if appt.service_id not in prices:
            service = repo.get_service(appt.service_id)
            prices[appt.service_id] = service.price if service else 0
        total += appointment_earning(employee, appt, prices[appt.service_id])
    return total


def earnings_breakdown(repo, employee_id: int, start_date: date, end_date: date) -> List[dict]:
    """Every appointment in the range with the employee's share of it."""
    employee = _load_employee(repo, employee_id)
    _check_range(start_date, end_date)

    rows = []
    for appt in repo.get_appointments_in_range(employee_id, start_date, end_date):
        service = repo.get_service(appt.service_id)
        service_price = service.price if service else 0
        rows.append({
            "appointment": appt,
            "service_name": service.name if service else None,
            "service_price": service_price,
            "employee_earning": appointment_earning(employee, appt, service_price),
            "payment_type": employee.payment_type,
        })
    return rows


def extend_working_hours(repo, employee_id: int, new_end_time: time) -> Employee:
    employee = _load_employee(repo, employee_id)
    if new_end_time <= employee.end_time:
        raise ValidationError("Extended end time must be later than the scheduled end time")
    employee.extended_end_time = new_end_time
    return repo.save(employee)


def finish_workday(repo, employee_id: int, actual_end_time: time, today: Optional[date] = None) -> int:
    """Record overtime worked past the scheduled end and drop any extension."""
    employee = _load_employee(repo, employee_id)
    if today is None:
        today = merchant_now(repo.get_merchant(employee.merchant_id)).date()

    overtime = max(0, to_minutes(actual_end_time) - to_minutes(employee.end_time))
    employee.overtime_minutes = (employee.overtime_minutes or 0) + overtime
    if overtime > 0:
        employee.last_overtime_date = today
    employee.extended_end_time = None
    repo.save(employee)

    logger.info(
        f"Employee {employee_id} finished at {actual_end_time:%H:%M}: "
        f"{overtime} overtime minutes, {employee.overtime_minutes} accumulated"
    )
    return overtime


def overtime_stats(repo, employee_id: int) -> OvertimeStats:
    employee = _load_employee(repo, employee_id)
    total = employee.overtime_minutes or 0
    return OvertimeStats(
        total_overtime_minutes=total,
        total_overtime_hours=total / 60,
        last_overtime_date=employee.last_overtime_date,
    )
