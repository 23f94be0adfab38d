# salonbook/routers/employees_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from salonbook import settlement, staff
from salonbook.availability import available_slots
from salonbook.booking import Actor
from salonbook.catalog import get_service_for_merchant
from salonbook.core import format_minutes, format_time
from salonbook.deps import get_actor, get_repo, require_employee, require_merchant, require_staff
from salonbook.errors import ValidationError
from salonbook.models import Employee, UserRole
from salonbook.repository import SQLModelRepository
from salonbook.schemas import (
    AvailabilityResponse,
    EarningLine,
    EarningsResponse,
    EmployeeCreate,
    EmployeePublic,
    EmployeeSchedule,
    EmployeeUpdate,
    ExtendHoursRequest,
    FinishWorkdayRequest,
    FinishWorkdayResponse,
    OvertimeStatsResponse,
)

router = APIRouter(
    prefix="/employees",
    tags=["employees"],
)


def _scoped_employee(repo, actor: Actor, employee_id: int, own_only: bool = False) -> Employee:
    employee = staff.get_employee_for_merchant(repo, actor.merchant_id, employee_id)
    if own_only and actor.role == UserRole.employee and actor.employee_id != employee_id:
        raise HTTPException(status_code=403, detail="Forbidden")
    return employee


@router.get("", response_model=List[EmployeePublic])
def list_employees(
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(get_actor),
):
    return repo.get_employees_by_merchant(actor.merchant_id)


@router.post("", response_model=EmployeePublic, status_code=201)
def create_employee(
    body: EmployeeCreate,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_merchant),
):
    merchant = repo.get_merchant(actor.merchant_id)
    if body.payment_value < 0:
        raise ValidationError("payment_value must not be negative")

    # new staff start on the merchant's opening hours
    employee = Employee(
        merchant_id=merchant.id,
        name=body.name,
        email=body.email,
        working_days=list(merchant.working_days),
        start_time=merchant.start_time,
        end_time=merchant.end_time,
        break_start_time=merchant.break_start_time,
        break_end_time=merchant.break_end_time,
        payment_type=body.payment_type,
        payment_value=body.payment_value,
    )
    return repo.save(employee)


@router.put("/{employee_id}", response_model=EmployeePublic)
def update_employee(
    employee_id: int,
    body: EmployeeUpdate,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_merchant),
):
    employee = staff.get_employee_for_merchant(repo, actor.merchant_id, employee_id)
    return staff.update_employee(repo, employee, body.model_dump(exclude_unset=True))


@router.get("/me/overtime", response_model=OvertimeStatsResponse)
def my_overtime(
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_employee),
):
    stats = settlement.overtime_stats(repo, actor.employee_id)
    return {
        "total_overtime_minutes": stats.total_overtime_minutes,
        "total_overtime_hours": stats.total_overtime_hours,
        "last_overtime_date": stats.last_overtime_date,
        "formatted_time": format_minutes(stats.total_overtime_minutes),
    }


@router.post("/me/extend-hours", response_model=EmployeePublic)
def extend_hours(
    body: ExtendHoursRequest,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_employee),
):
    return settlement.extend_working_hours(repo, actor.employee_id, body.new_end_time)


@router.post("/me/finish-workday", response_model=FinishWorkdayResponse)
def finish_workday(
    body: FinishWorkdayRequest,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_employee),
):
    overtime = settlement.finish_workday(repo, actor.employee_id, body.actual_end_time)
    employee = repo.get_employee(actor.employee_id)
    return {
        "employee_id": employee.id,
        "scheduled_end_time": employee.end_time,
        "actual_end_time": body.actual_end_time,
        "overtime_minutes": overtime,
        "total_overtime_minutes": employee.overtime_minutes,
        "formatted_time": format_minutes(overtime),
    }


@router.get("/{employee_id}/availability", response_model=AvailabilityResponse)
def availability(
    employee_id: int,
    day: date = Query(alias="date"),
    duration: Optional[int] = Query(default=None),
    service_id: Optional[int] = Query(default=None),
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(get_actor),
):
    _scoped_employee(repo, actor, employee_id)

    # 1) Resolve the job length
    if service_id is not None:
        duration = get_service_for_merchant(repo, actor.merchant_id, service_id).duration
    if duration is None:
        raise ValidationError("Either duration or service_id is required")

    # 2) Compute slots
    starts = available_slots(repo, employee_id, day, duration)
    return {
        "employee_id": employee_id,
        "date": day,
        "duration": duration,
        "available_starts": [format_time(s) for s in starts],
    }


@router.get("/{employee_id}/schedule", response_model=EmployeeSchedule)
def get_schedule(
    employee_id: int,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(get_actor),
):
    return _scoped_employee(repo, actor, employee_id)


@router.put("/{employee_id}/schedule", response_model=EmployeeSchedule)
def update_schedule(
    employee_id: int,
    schedule: EmployeeSchedule,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_staff),
):
    employee = _scoped_employee(repo, actor, employee_id, own_only=True)
    return staff.update_employee_schedule(
        repo,
        employee,
        schedule.working_days,
        schedule.start_time,
        schedule.end_time,
        schedule.break_start_time,
        schedule.break_end_time,
    )


@router.get("/{employee_id}/earnings", response_model=EarningsResponse)
def earnings(
    employee_id: int,
    start_date: date,
    end_date: date,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_staff),
):
    _scoped_employee(repo, actor, employee_id, own_only=True)
    return {
        "employee_id": employee_id,
        "start_date": start_date,
        "end_date": end_date,
        "earnings": settlement.earnings_for(repo, employee_id, start_date, end_date),
    }


@router.get("/{employee_id}/appointments", response_model=List[EarningLine])
def appointments_with_earnings(
    employee_id: int,
    start_date: date,
    end_date: date,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_staff),
):
    _scoped_employee(repo, actor, employee_id, own_only=True)
    return settlement.earnings_breakdown(repo, employee_id, start_date, end_date)
