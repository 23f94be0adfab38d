# salonbook/conflicts.py

from datetime import date, time
from typing import Iterable, Optional

from salonbook.core import end_of, overlaps, to_minutes
from salonbook.models import Appointment, OCCUPYING_STATUSES


def occupies_slot(appointment: Appointment) -> bool:
    return appointment.status in OCCUPYING_STATUSES


def find_conflict(
    appointments: Iterable[Appointment],
    start: time,
    end: time,
    exclude_appointment_id: Optional[int] = None,
) -> Optional[Appointment]:
    """First live appointment whose [start, end) overlaps the candidate, if any."""
    candidate_start = to_minutes(start)
    candidate_end = to_minutes(end)
    for appt in appointments:
        if not occupies_slot(appt):
            continue
        if exclude_appointment_id is not None and appt.id == exclude_appointment_id:
            continue
        if overlaps(
            candidate_start,
            candidate_end,
            to_minutes(appt.appointment_time),
            to_minutes(appt.end_time),
        ):
            return appt
    return None


def has_conflict(
    repo,
    employee_id: int,
    day: date,
    start: time,
    duration_minutes: int,
    exclude_appointment_id: Optional[int] = None,
) -> bool:
    appointments = repo.get_appointments_by_employee(employee_id, day)
    end = end_of(start, duration_minutes)
    return find_conflict(appointments, start, end, exclude_appointment_id) is not None
