# salonbook/errors.py

from datetime import date


class SchedulingError(Exception):
    """Base class for every failure the scheduling engine reports."""

    status_code = 400
    kind = "scheduling_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(SchedulingError):
    status_code = 404
    kind = "not_found"


class DayOffConflict(SchedulingError):
    status_code = 409
    kind = "day_off_conflict"

    def __init__(self, day: date, message: str = ""):
        super().__init__(message or f"Employee has a day off on {day.isoformat()}")
        self.date = day


class SlotConflict(SchedulingError):
    status_code = 409
    kind = "slot_conflict"


class PolicyViolation(SchedulingError):
    status_code = 400
    kind = "policy_violation"


class ValidationError(SchedulingError):
    status_code = 422
    kind = "validation_error"
