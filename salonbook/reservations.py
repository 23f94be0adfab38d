# salonbook/reservations.py
"""Exactly-once slot ownership.

Two layers close the check-then-insert race:

* inside one process, every write for an (employee, date) pair runs under
  that pair's lock, so "list appointments, check, insert" never interleaves;
* across processes, the repository's transaction (row lock on the employee
  plus the partial unique index on live start times) rejects the loser,
  and the attempt is retried against fresh data.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import date
from typing import Any, Dict, Optional, Tuple

from salonbook.config import get_settings
from salonbook.errors import SlotConflict
from salonbook.models import Appointment, AppointmentStatus
from salonbook.repository import WriteConflict

logger = logging.getLogger(__name__)

SlotKey = Tuple[int, date]


class ReservationGate:
    def __init__(self, max_retries: Optional[int] = None):
        if max_retries is None:
            max_retries = get_settings().RESERVATION_MAX_RETRIES
        self.max_retries = max(1, max_retries)
        self._registry_lock = threading.Lock()
        self._locks: Dict[SlotKey, threading.Lock] = {}
        self._holders: Dict[SlotKey, int] = {}

    @contextmanager
    def hold(self, employee_id: int, day: date):
        """Exclusive section for one employee's calendar day."""
        key = (employee_id, day)
        with self._registry_lock:
            lock = self._locks.setdefault(key, threading.Lock())
            self._holders[key] = self._holders.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._registry_lock:
                self._holders[key] -= 1
                if self._holders[key] == 0:
                    del self._holders[key]
                    del self._locks[key]

    def reserve(self, repo, candidate: Appointment) -> Appointment:
        """Insert ``candidate`` if its slot is free, else raise ``SlotConflict``."""
        if candidate.employee_id is None:
            return repo.create_appointment_atomic(candidate)

        with self.hold(candidate.employee_id, candidate.appointment_date):
            appointment = self._with_retries(
                lambda: repo.create_appointment_atomic(candidate),
                candidate.employee_id,
                candidate.appointment_date,
            )
        logger.info(
            f"Reserved employee {candidate.employee_id} on {candidate.appointment_date} "
            f"{candidate.appointment_time:%H:%M}-{candidate.end_time:%H:%M} (appointment {appointment.id})"
        )
        return appointment

    def move(
        self,
        repo,
        appointment_id: int,
        employee_id: Optional[int],
        expected_status: AppointmentStatus,
        values: Dict[str, Any],
    ) -> Optional[Appointment]:
        """Re-reserve an existing appointment at ``values``' date and time."""
        if employee_id is None:
            return repo.reschedule_appointment_atomic(appointment_id, expected_status, values)

        new_day = values["appointment_date"]
        with self.hold(employee_id, new_day):
            return self._with_retries(
                lambda: repo.reschedule_appointment_atomic(appointment_id, expected_status, values),
                employee_id,
                new_day,
            )

    def _with_retries(self, attempt, employee_id: int, day: date):
        for number in range(1, self.max_retries + 1):
            try:
                return attempt()
            except SlotConflict as exc:
                logger.warning(f"Reservation for employee {employee_id} on {day} lost: {exc.message}")
                raise
            except WriteConflict as exc:
                logger.warning(
                    f"Write conflict reserving employee {employee_id} on {day} "
                    f"(attempt {number}/{self.max_retries}): {exc}"
                )
        raise SlotConflict(
            f"Could not reserve the slot for employee {employee_id} on {day.isoformat()}; please pick another time"
        )


reservation_gate = ReservationGate()
