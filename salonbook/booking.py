# salonbook/booking.py
"""Entry points the request layer calls for booking and appointment changes.

Callers pass an already-authenticated ``Actor``; every function returns a
value or raises one of the ``salonbook.errors`` kinds.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import List, Optional, Union

from salonbook import policy
from salonbook.availability import check_slot
from salonbook.core import end_of, merchant_now
from salonbook.errors import NotFound, PolicyViolation, ValidationError
from salonbook.lifecycle import apply_transition, raise_stale
from salonbook.models import (
    Appointment,
    AppointmentStatus,
    Merchant,
    PaymentStatus,
    Penalty,
    PenaltyStatus,
    UserRole,
    utcnow,
)
from salonbook.pricing import price_for
from salonbook.reservations import ReservationGate, reservation_gate

logger = logging.getLogger(__name__)


@dataclass
class Actor:
    role: UserRole
    merchant_id: int
    user_id: Optional[int] = None
    employee_id: Optional[int] = None
    client_id: Optional[int] = None
    email: Optional[str] = None


@dataclass
class BookingResult:
    appointment: Appointment
    pending_penalties: List[Penalty] = field(default_factory=list)

    @property
    def pending_penalties_amount(self) -> int:
        return sum(p.amount for p in self.pending_penalties)


@dataclass
class CancellationResult:
    appointment: Appointment
    fee: int = 0
    penalty: Optional[Penalty] = None


def _merchant(repo, merchant_id: int) -> Merchant:
    merchant = repo.get_merchant(merchant_id)
    if merchant is None:
        raise NotFound("Merchant not found")
    return merchant


def load_appointment(repo, actor: Actor, appointment_id: int) -> Appointment:
    appointment = repo.get_appointment(appointment_id)
    if appointment is None or appointment.merchant_id != actor.merchant_id:
        raise NotFound("Appointment not found")
    if actor.role == UserRole.client and appointment.client_id != actor.client_id:
        raise PolicyViolation("You can only change your own appointments")
    return appointment


def list_appointments(
    repo,
    actor: Actor,
    day: Optional[date] = None,
    employee_id: Optional[int] = None,
    status: Optional[AppointmentStatus] = None,
) -> List[Appointment]:
    """Clients see their own bookings, employees their own agenda, merchants everything."""
    client_id = None
    if actor.role == UserRole.client:
        client_id = actor.client_id
        employee_id = None
        if client_id is None:
            return []
    elif actor.role == UserRole.employee:
        employee_id = actor.employee_id
        if employee_id is None:
            return []
    return repo.get_appointments_by_merchant(
        actor.merchant_id, day=day, employee_id=employee_id, client_id=client_id, status=status
    )


def book(
    repo,
    actor: Actor,
    service_id: int,
    appointment_date: date,
    appointment_time: time,
    employee_id: Optional[int] = None,
    client_id: Optional[int] = None,
    client_name: Optional[str] = None,
    client_phone: Optional[str] = None,
    client_email: Optional[str] = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
    gate: ReservationGate = reservation_gate,
) -> BookingResult:
    # 1) Validate service
    service = repo.get_service(service_id)
    if service is None or service.merchant_id != actor.merchant_id:
        raise NotFound("Service not found")
    if not service.is_active:
        raise ValidationError("Service not available")
    merchant = _merchant(repo, service.merchant_id)

    # 2) Resolve the client and snapshot their contact details
    if actor.role == UserRole.client:
        client_id = actor.client_id
    if client_id is not None:
        client = repo.get_client(client_id)
        if client is None or client.merchant_id != merchant.id:
            raise NotFound("Client not found")
        client_name = client_name or client.name
        client_phone = client_phone or client.phone
        client_email = client_email or client.email
    if not client_name or not client_phone:
        raise ValidationError("client_name and client_phone are required")

    # 3) Build appointment interval
    now = merchant_now(merchant, now)
    if datetime.combine(appointment_date, appointment_time) < now:
        raise ValidationError("Cannot book an appointment in the past")
    end_time = end_of(appointment_time, service.duration)

    # 4) Employee schedule, break and day off
    if employee_id is None and actor.role == UserRole.employee:
        employee_id = actor.employee_id
    if employee_id is not None:
        employee = repo.get_employee(employee_id)
        if employee is None or employee.merchant_id != merchant.id:
            raise NotFound("Employee not found")
        check_slot(repo, employee, appointment_date, appointment_time, service.duration)

    # 5) Price at booking time
    quote = price_for(repo, service.id, today=now.date())

    candidate = Appointment(
        merchant_id=merchant.id,
        service_id=service.id,
        client_id=client_id,
        employee_id=employee_id,
        client_name=client_name,
        client_phone=client_phone,
        client_email=client_email,
        appointment_date=appointment_date,
        appointment_time=appointment_time,
        end_time=end_time,
        duration_minutes=service.duration,
        original_price=quote.original_price,
        price=quote.effective_price,
        promotion_id=quote.promotion.id if quote.promotion else None,
        status=AppointmentStatus.pending,
        notes=notes,
        cancel_policy=merchant.cancel_policy,
        cancellation_policy_hours=merchant.cancellation_policy_hours,
        cancellation_fee_enabled=merchant.cancellation_fee_enabled,
        cancellation_fee_amount=merchant.cancellation_fee_amount,
    )

    # 6) Check and reserve as one unit
    appointment = gate.reserve(repo, candidate)

    pending = repo.get_pending_penalties(merchant.id, client_id=client_id, client_phone=client_phone)
    if pending:
        logger.warning(
            f"Client {client_name} ({client_phone}) booked with {len(pending)} pending penalties"
        )
    return BookingResult(appointment=appointment, pending_penalties=pending)


def cancel(
    repo,
    actor: Actor,
    appointment_id: int,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CancellationResult:
    appointment = load_appointment(repo, actor, appointment_id)
    now = merchant_now(_merchant(repo, appointment.merchant_id), now)

    policy.require(policy.can_cancel(appointment, actor.role, now))
    fee = policy.cancellation_fee(appointment, actor.role, now)

    penalty = None
    if fee > 0:
        penalty = Penalty(
            merchant_id=appointment.merchant_id,
            client_id=appointment.client_id,
            appointment_id=appointment.id,
            client_name=appointment.client_name,
            client_phone=appointment.client_phone,
            client_email=appointment.client_email,
            type="cancellation",
            amount=fee,
            reason=policy.fee_reason(appointment),
            status=PenaltyStatus.pending,
        )

    updated = apply_transition(
        repo, appointment, AppointmentStatus.cancelled, now, extra={"cancel_reason": reason}, penalty=penalty
    )
    if penalty is not None:
        logger.info(f"Penalty {penalty.id} of {fee} created for cancelled appointment {updated.id}")

    return CancellationResult(appointment=updated, fee=fee, penalty=penalty)


def reschedule(
    repo,
    actor: Actor,
    appointment_id: int,
    new_date: date,
    new_time: time,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
    gate: ReservationGate = reservation_gate,
) -> Appointment:
    appointment = load_appointment(repo, actor, appointment_id)
    now = merchant_now(_merchant(repo, appointment.merchant_id), now)

    policy.require(policy.can_reschedule(appointment, actor.role, now))
    if datetime.combine(new_date, new_time) < now:
        raise ValidationError("Cannot reschedule to a time in the past")

    # the booked duration travels with the appointment
    new_end = end_of(new_time, appointment.duration_minutes)
    if appointment.employee_id is not None:
        employee = repo.get_employee(appointment.employee_id)
        if employee is None:
            raise NotFound("Employee not found")
        check_slot(repo, employee, new_date, new_time, appointment.duration_minutes)

    values = {
        "appointment_date": new_date,
        "appointment_time": new_time,
        "end_time": new_end,
        "reschedule_reason": reason,
        "status": AppointmentStatus.pending,
    }
    updated = gate.move(repo, appointment.id, appointment.employee_id, appointment.status, values)
    if updated is None:
        raise_stale(repo, appointment.id)

    logger.info(
        f"Appointment {appointment.id} rescheduled to {new_date} {new_time:%H:%M} by {actor.role.value}"
    )
    return updated


def advance_status(
    repo,
    actor: Actor,
    appointment_id: int,
    new_status: Union[AppointmentStatus, str],
    now: Optional[datetime] = None,
    reason: Optional[str] = None,
) -> Appointment:
    target = AppointmentStatus(new_status)
    if target == AppointmentStatus.cancelled:
        return cancel(repo, actor, appointment_id, reason=reason, now=now).appointment

    appointment = load_appointment(repo, actor, appointment_id)
    now = merchant_now(_merchant(repo, appointment.merchant_id), now)
    return apply_transition(repo, appointment, target, now)


def confirm(repo, actor: Actor, appointment_id: int, now: Optional[datetime] = None) -> Appointment:
    return advance_status(repo, actor, appointment_id, AppointmentStatus.confirmed, now=now)


def mark_late(repo, actor: Actor, appointment_id: int, now: Optional[datetime] = None) -> Appointment:
    return advance_status(repo, actor, appointment_id, AppointmentStatus.late, now=now)


def mark_no_show(repo, actor: Actor, appointment_id: int, now: Optional[datetime] = None) -> Appointment:
    return advance_status(repo, actor, appointment_id, AppointmentStatus.no_show, now=now)


def record_payment(repo, actor: Actor, appointment_id: int) -> Appointment:
    appointment = load_appointment(repo, actor, appointment_id)
    if appointment.status != AppointmentStatus.completed:
        raise PolicyViolation("Only completed appointments can be paid")
    if appointment.payment_status == PaymentStatus.paid:
        return appointment
    updated = repo.update_appointment_status(
        appointment.id,
        AppointmentStatus.completed,
        {"payment_status": PaymentStatus.paid, "paid_at": utcnow()},
    )
    if updated is None:
        raise_stale(repo, appointment.id)
    return updated


def set_penalty_status(
    repo,
    actor: Actor,
    penalty_id: int,
    status: Union[PenaltyStatus, str],
) -> Penalty:
    target = PenaltyStatus(status)
    penalty = repo.get_penalty(penalty_id)
    if penalty is None or penalty.merchant_id != actor.merchant_id:
        raise NotFound("Penalty not found")
    if target == PenaltyStatus.pending:
        raise ValidationError("A penalty can only be marked paid or waived")
    if penalty.status != PenaltyStatus.pending:
        raise PolicyViolation(f"Penalty is already {penalty.status.value}")

    penalty.status = target
    penalty.paid_at = utcnow()
    penalty.paid_by = actor.email
    penalty = repo.save(penalty)
    logger.info(f"Penalty {penalty.id} marked {target.value}")
    return penalty
