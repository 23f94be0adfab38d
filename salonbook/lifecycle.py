# salonbook/lifecycle.py
"""Appointment status transitions and their side effects."""

import logging
from datetime import datetime
from typing import Any, Dict, FrozenSet, Optional

from salonbook.errors import NotFound, PolicyViolation
from salonbook.models import Appointment, AppointmentStatus, PaymentStatus, Penalty, TERMINAL_STATUSES

logger = logging.getLogger(__name__)

S = AppointmentStatus

TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    S.pending: frozenset({S.scheduled, S.confirmed, S.in_progress, S.late, S.completed, S.no_show, S.cancelled}),
    S.scheduled: frozenset({S.confirmed, S.in_progress, S.late, S.completed, S.no_show, S.cancelled}),
    S.confirmed: frozenset({S.in_progress, S.late, S.completed, S.no_show, S.cancelled}),
    S.in_progress: frozenset({S.late, S.completed, S.no_show, S.cancelled}),
    S.late: frozenset({S.in_progress, S.completed, S.no_show, S.cancelled}),
    S.completed: frozenset(),
    S.cancelled: frozenset(),
    S.no_show: frozenset(),
}


def is_terminal(status: AppointmentStatus) -> bool:
    return status in TERMINAL_STATUSES


def check_transition(current: AppointmentStatus, target: AppointmentStatus) -> None:
    if is_terminal(current):
        raise PolicyViolation(f"Appointment is already {current.value}; no further status changes are allowed")
    if target not in TRANSITIONS[current]:
        raise PolicyViolation(f"Cannot change appointment status from {current.value} to {target.value}")


def transition_values(appointment: Appointment, target: AppointmentStatus, now: datetime) -> Dict[str, Any]:
    """Column updates for moving ``appointment`` into ``target`` at ``now``."""
    values: Dict[str, Any] = {"status": target}

    if target == S.in_progress and appointment.actual_start_time is None:
        values["actual_start_time"] = now.time().replace(second=0, microsecond=0)

    if target == S.completed:
        values["completed_at"] = now
        if appointment.actual_end_time is None:
            values["actual_end_time"] = now.time().replace(second=0, microsecond=0)
        if appointment.payment_status is None:
            values["payment_status"] = PaymentStatus.pending

    return values


def apply_transition(
    repo,
    appointment: Appointment,
    target: AppointmentStatus,
    now: datetime,
    extra: Optional[Dict[str, Any]] = None,
    penalty: Optional[Penalty] = None,
) -> Appointment:
    """Move ``appointment`` to ``target``; re-entering the current status is a no-op.

    ``penalty``, when given, is stored in the same write as the status change.
    """
    if appointment.status == target:
        return appointment

    check_transition(appointment.status, target)
    values = transition_values(appointment, target, now)
    if extra:
        values.update(extra)

    previous = appointment.status
    updated = repo.update_appointment_status(appointment.id, previous, values, penalty=penalty)
    if updated is None:
        raise_stale(repo, appointment.id)

    logger.info(f"Appointment {appointment.id}: {previous.value} -> {target.value}")
    return updated


def raise_stale(repo, appointment_id: int) -> None:
    """The row moved on between our read and our write; explain how."""
    current = repo.get_appointment(appointment_id)
    if current is None:
        raise NotFound("Appointment not found")
    if is_terminal(current.status):
        raise PolicyViolation(f"Appointment is already {current.status.value}; no further status changes are allowed")
    raise PolicyViolation("Appointment was changed by another request; reload it and try again")
