# salonbook/routers/appointments_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from salonbook import booking
from salonbook.booking import Actor
from salonbook.deps import get_actor, get_repo, require_staff
from salonbook.models import AppointmentStatus
from salonbook.repository import SQLModelRepository
from salonbook.schemas import (
    AppointmentCreate,
    AppointmentPublic,
    BookingResponse,
    CancellationResponse,
    CancelRequest,
    RescheduleRequest,
    StatusUpdate,
)

router = APIRouter(
    prefix="/appointments",
    tags=["appointments"],
)


@router.get("", response_model=List[AppointmentPublic])
def list_appointments(
    day: Optional[date] = Query(None, alias="date"),
    employee_id: Optional[int] = None,
    status: Optional[AppointmentStatus] = None,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(get_actor),
):
    return booking.list_appointments(repo, actor, day=day, employee_id=employee_id, status=status)


@router.post("", response_model=BookingResponse, status_code=201)
def create_appointment(
    appt: AppointmentCreate,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(get_actor),
):
    result = booking.book(
        repo,
        actor,
        service_id=appt.service_id,
        appointment_date=appt.appointment_date,
        appointment_time=appt.appointment_time,
        employee_id=appt.employee_id,
        client_id=appt.client_id,
        client_name=appt.client_name,
        client_phone=appt.client_phone,
        client_email=appt.client_email,
        notes=appt.notes,
    )
    return {
        "appointment": result.appointment,
        "has_pending_penalties": bool(result.pending_penalties),
        "pending_penalties_count": len(result.pending_penalties),
        "pending_penalties_amount": result.pending_penalties_amount,
    }


# declared before /{appointment_id} so the path is not read as an id
@router.get("/pending-payments", response_model=List[AppointmentPublic])
def pending_payments(
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_staff),
):
    return repo.get_pending_payment_appointments(actor.merchant_id)


@router.get("/{appointment_id}", response_model=AppointmentPublic)
def get_appointment(
    appointment_id: int,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(get_actor),
):
    return booking.load_appointment(repo, actor, appointment_id)


@router.post("/{appointment_id}/cancel", response_model=CancellationResponse)
def cancel_appointment(
    appointment_id: int,
    body: CancelRequest,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(get_actor),
):
    result = booking.cancel(repo, actor, appointment_id, reason=body.reason)
    return {
        "appointment": result.appointment,
        "cancellation_fee": {"has_fee": result.fee > 0, "amount": result.fee},
        "penalty_id": result.penalty.id if result.penalty else None,
    }


@router.post("/{appointment_id}/reschedule", response_model=AppointmentPublic)
def reschedule_appointment(
    appointment_id: int,
    body: RescheduleRequest,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(get_actor),
):
    return booking.reschedule(
        repo, actor, appointment_id, body.new_date, body.new_time, reason=body.reason
    )


@router.post("/{appointment_id}/late", response_model=AppointmentPublic)
def mark_late(
    appointment_id: int,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_staff),
):
    return booking.mark_late(repo, actor, appointment_id)


@router.post("/{appointment_id}/no-show", response_model=AppointmentPublic)
def mark_no_show(
    appointment_id: int,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_staff),
):
    return booking.mark_no_show(repo, actor, appointment_id)


@router.post("/{appointment_id}/status", response_model=AppointmentPublic)
def update_status(
    appointment_id: int,
    body: StatusUpdate,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_staff),
):
    return booking.advance_status(repo, actor, appointment_id, body.status, reason=body.reason)


@router.post("/{appointment_id}/payment", response_model=AppointmentPublic)
def record_payment(
    appointment_id: int,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_staff),
):
    return booking.record_payment(repo, actor, appointment_id)
