# salonbook/policy.py
"""Who may cancel or reschedule an appointment, and when a fee is owed.

Every function here is a pure decision over an appointment snapshot and
the current merchant-local time; nothing touches storage.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from salonbook.core import hours_until
from salonbook.errors import PolicyViolation
from salonbook.models import Appointment, AppointmentStatus, CancelPolicy, UserRole

logger = logging.getLogger(__name__)

POLICY_THRESHOLD_HOURS = {
    CancelPolicy.h24: 24,
    CancelPolicy.h12: 12,
    CancelPolicy.h2: 2,
    CancelPolicy.none: None,
}

STAFF_ROLES = frozenset({UserRole.merchant, UserRole.employee})


@dataclass(frozen=True)
class PolicyDecision:
    allowed: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOWED = PolicyDecision(True)


def _role(actor_role: Union[UserRole, str]) -> UserRole:
    return UserRole(actor_role)


def _finished_reason(appointment: Appointment, action: str) -> Optional[str]:
    if appointment.status == AppointmentStatus.cancelled:
        return f"Cannot {action} a cancelled appointment"
    if appointment.status == AppointmentStatus.completed:
        return f"Cannot {action} a completed appointment"
    if appointment.status == AppointmentStatus.no_show:
        return f"Cannot {action} a no-show appointment"
    return None


def _notice_denial(appointment: Appointment, now: datetime, action: str) -> Optional[str]:
    threshold = POLICY_THRESHOLD_HOURS[CancelPolicy(appointment.cancel_policy)]
    if threshold is None:
        return None
    remaining = hours_until(now, appointment.appointment_date, appointment.appointment_time)
    if remaining < threshold:
        return f"Cannot {action} within {threshold} hours of appointment"
    return None


def can_cancel(appointment: Appointment, actor_role: Union[UserRole, str], now: datetime) -> PolicyDecision:
    reason = _finished_reason(appointment, "cancel")
    if reason:
        return PolicyDecision(False, reason)
    if _role(actor_role) in STAFF_ROLES:
        return ALLOWED
    # with fees enabled a late cancellation is charged instead of refused
    if appointment.cancellation_fee_enabled:
        return ALLOWED
    reason = _notice_denial(appointment, now, "cancel")
    if reason:
        logger.info(f"Cancellation of appointment {appointment.id} denied: {reason}")
        return PolicyDecision(False, reason)
    return ALLOWED


def can_reschedule(appointment: Appointment, actor_role: Union[UserRole, str], now: datetime) -> PolicyDecision:
    reason = _finished_reason(appointment, "reschedule")
    if reason:
        return PolicyDecision(False, reason)
    if _role(actor_role) in STAFF_ROLES:
        return ALLOWED
    reason = _notice_denial(appointment, now, "reschedule")
    if reason:
        logger.info(f"Reschedule of appointment {appointment.id} denied: {reason}")
        return PolicyDecision(False, reason)
    return ALLOWED


def cancellation_fee(appointment: Appointment, actor_role: Union[UserRole, str], now: datetime) -> int:
    """Fee owed for cancelling now, in minor units; 0 when none applies."""
    if _role(actor_role) != UserRole.client:
        return 0
    if not appointment.cancellation_fee_enabled or appointment.cancellation_fee_amount <= 0:
        return 0
    remaining = hours_until(now, appointment.appointment_date, appointment.appointment_time)
    if remaining < appointment.cancellation_policy_hours:
        return appointment.cancellation_fee_amount
    return 0


def fee_reason(appointment: Appointment) -> str:
    return f"Cancellation with less than {appointment.cancellation_policy_hours} hours notice"


def require(decision: PolicyDecision) -> None:
    if not decision.allowed:
        raise PolicyViolation(decision.reason or "Action not permitted")
