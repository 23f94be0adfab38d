# salonbook/repository.py
"""Storage seam for the scheduling engine.

The engine only talks to a ``SchedulingRepository``. ``SQLModelRepository``
is the implementation used by the API; it wraps one SQLModel ``Session``.
"""

import logging
from datetime import date, time
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import Session, select

from salonbook.conflicts import find_conflict
from salonbook.errors import DayOffConflict, SlotConflict
from salonbook.models import (
    Appointment,
    AppointmentStatus,
    Client,
    DayOff,
    Employee,
    Merchant,
    PaymentStatus,
    Penalty,
    PenaltyStatus,
    Promotion,
    Service,
    utcnow,
)

logger = logging.getLogger(__name__)


class WriteConflict(Exception):
    """The storage layer rejected a reservation write; the attempt may be retried."""


class SchedulingRepository(Protocol):
    def get_merchant(self, merchant_id: int) -> Optional[Merchant]: ...

    def get_employee(self, employee_id: int) -> Optional[Employee]: ...

    def get_service(self, service_id: int) -> Optional[Service]: ...

    def get_client(self, client_id: int) -> Optional[Client]: ...

    def get_appointment(self, appointment_id: int) -> Optional[Appointment]: ...

    def get_appointments_by_employee(self, employee_id: int, day: Optional[date] = None) -> List[Appointment]: ...

    def get_completed_appointments(self, employee_id: int, start_date: date, end_date: date) -> List[Appointment]: ...

    def get_appointments_by_merchant(
        self,
        merchant_id: int,
        day: Optional[date] = None,
        employee_id: Optional[int] = None,
        client_id: Optional[int] = None,
        status: Optional[AppointmentStatus] = None,
    ) -> List[Appointment]: ...

    def is_employee_on_day_off(self, employee_id: int, day: date) -> bool: ...

    def create_appointment_atomic(self, candidate: Appointment) -> Appointment: ...

    def reschedule_appointment_atomic(
        self,
        appointment_id: int,
        expected_status: AppointmentStatus,
        values: Dict[str, Any],
    ) -> Optional[Appointment]: ...

    def update_appointment_status(
        self,
        appointment_id: int,
        expected_status: AppointmentStatus,
        values: Dict[str, Any],
        penalty: Optional[Penalty] = None,
    ) -> Optional[Appointment]: ...

    def get_pending_penalties(
        self,
        merchant_id: int,
        client_id: Optional[int] = None,
        client_phone: Optional[str] = None,
    ) -> List[Penalty]: ...

    def get_active_promotion_for_service(self, service_id: int, today: date) -> Optional[Promotion]: ...

    def save(self, obj): ...


class SQLModelRepository:
    def __init__(self, session: Session):
        self.session = session

    # --- lookups -----------------------------------------------------------

    def get_merchant(self, merchant_id: int) -> Optional[Merchant]:
        return self.session.get(Merchant, merchant_id)

    def get_employee(self, employee_id: int) -> Optional[Employee]:
        return self.session.get(Employee, employee_id)

    def get_service(self, service_id: int) -> Optional[Service]:
        return self.session.get(Service, service_id)

    def get_client(self, client_id: int) -> Optional[Client]:
        return self.session.get(Client, client_id)

    def get_appointment(self, appointment_id: int) -> Optional[Appointment]:
        return self.session.get(Appointment, appointment_id)

    def get_appointments_by_employee(self, employee_id: int, day: Optional[date] = None) -> List[Appointment]:
        stmt = select(Appointment).where(Appointment.employee_id == employee_id)
        if day is not None:
            stmt = stmt.where(Appointment.appointment_date == day)
        stmt = stmt.order_by(Appointment.appointment_date, Appointment.appointment_time)
        return list(self.session.exec(stmt).all())

    def get_completed_appointments(self, employee_id: int, start_date: date, end_date: date) -> List[Appointment]:
        stmt = (
            select(Appointment)
            .where(Appointment.employee_id == employee_id)
            .where(Appointment.status == AppointmentStatus.completed)
            .where(Appointment.appointment_date >= start_date)
            .where(Appointment.appointment_date <= end_date)
        )
        return list(self.session.exec(stmt).all())

    def get_appointments_in_range(self, employee_id: int, start_date: date, end_date: date) -> List[Appointment]:
        stmt = (
            select(Appointment)
            .where(Appointment.employee_id == employee_id)
            .where(Appointment.appointment_date >= start_date)
            .where(Appointment.appointment_date <= end_date)
            .order_by(Appointment.appointment_date.desc(), Appointment.appointment_time.desc())
        )
        return list(self.session.exec(stmt).all())

    def get_pending_payment_appointments(self, merchant_id: int) -> List[Appointment]:
        stmt = (
            select(Appointment)
            .where(Appointment.merchant_id == merchant_id)
            .where(Appointment.status == AppointmentStatus.completed)
            .where(Appointment.payment_status == PaymentStatus.pending)
            .order_by(Appointment.appointment_date.desc(), Appointment.appointment_time.desc())
        )
        return list(self.session.exec(stmt).all())

    def get_appointments_by_merchant(
        self,
        merchant_id: int,
        day: Optional[date] = None,
        employee_id: Optional[int] = None,
        client_id: Optional[int] = None,
        status: Optional[AppointmentStatus] = None,
    ) -> List[Appointment]:
        stmt = select(Appointment).where(Appointment.merchant_id == merchant_id)
        if day is not None:
            stmt = stmt.where(Appointment.appointment_date == day)
        if employee_id is not None:
            stmt = stmt.where(Appointment.employee_id == employee_id)
        if client_id is not None:
            stmt = stmt.where(Appointment.client_id == client_id)
        if status is not None:
            stmt = stmt.where(Appointment.status == status)
        stmt = stmt.order_by(Appointment.appointment_date, Appointment.appointment_time)
        return list(self.session.exec(stmt).all())

    def get_employees_by_merchant(self, merchant_id: int) -> List[Employee]:
        return list(self.session.exec(select(Employee).where(Employee.merchant_id == merchant_id)).all())

    def get_services_by_merchant(self, merchant_id: int) -> List[Service]:
        return list(self.session.exec(select(Service).where(Service.merchant_id == merchant_id)).all())

    def get_clients_by_merchant(self, merchant_id: int) -> List[Client]:
        return list(self.session.exec(select(Client).where(Client.merchant_id == merchant_id)).all())

    # --- days off ----------------------------------------------------------

    def is_employee_on_day_off(self, employee_id: int, day: date) -> bool:
        stmt = select(DayOff).where(DayOff.employee_id == employee_id).where(DayOff.date == day)
        return self.session.exec(stmt).first() is not None

    def get_days_off(
        self,
        merchant_id: int,
        employee_id: Optional[int] = None,
        day: Optional[date] = None,
    ) -> List[DayOff]:
        stmt = select(DayOff).where(DayOff.merchant_id == merchant_id)
        if employee_id is not None:
            stmt = stmt.where(DayOff.employee_id == employee_id)
        if day is not None:
            stmt = stmt.where(DayOff.date == day)
        return list(self.session.exec(stmt.order_by(DayOff.date)).all())

    def get_day_off(self, day_off_id: int) -> Optional[DayOff]:
        return self.session.get(DayOff, day_off_id)

    def create_day_off(self, day_off: DayOff) -> DayOff:
        self.session.add(day_off)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise DayOffConflict(day_off.date, "Employee already has a day off registered for this date")
        self.session.refresh(day_off)
        return day_off

    def delete(self, obj) -> None:
        self.session.delete(obj)
        self.session.commit()

    # --- reservations ------------------------------------------------------

    def _lock_employee(self, employee_id: int) -> None:
        connection = self.session.connection()
        if connection.dialect.name == "sqlite":
            # no row locks in SQLite: take the database write lock up front,
            # so a second process waits (up to the busy timeout) instead of
            # reading the same free slot
            if not connection.connection.dbapi_connection.in_transaction:
                connection.exec_driver_sql("BEGIN IMMEDIATE")
            return
        self.session.exec(
            select(Employee).where(Employee.id == employee_id).with_for_update()
        ).first()

    def _ensure_slot_free(
        self,
        employee_id: int,
        day: date,
        start: time,
        end: time,
        exclude_appointment_id: Optional[int] = None,
    ) -> None:
        # fresh rows only: cached instances may predate a concurrent reschedule
        stmt = (
            select(Appointment)
            .where(Appointment.employee_id == employee_id)
            .where(Appointment.appointment_date == day)
            .execution_options(populate_existing=True)
        )
        existing = self.session.exec(stmt).all()
        clash = find_conflict(existing, start, end, exclude_appointment_id)
        if clash is not None:
            raise SlotConflict(
                f"Employee already has an appointment from {clash.appointment_time:%H:%M} "
                f"to {clash.end_time:%H:%M} on {day.isoformat()}"
            )

    def create_appointment_atomic(self, candidate: Appointment) -> Appointment:
        """Check the slot and insert in one transaction.

        Raises ``SlotConflict`` when the slot is taken and ``WriteConflict``
        when the database rejected the write.
        """
        try:
            if candidate.employee_id is not None:
                self._lock_employee(candidate.employee_id)
                self._ensure_slot_free(
                    candidate.employee_id,
                    candidate.appointment_date,
                    candidate.appointment_time,
                    candidate.end_time,
                )
            self.session.add(candidate)
            self.session.commit()
        except SlotConflict:
            self.session.rollback()
            raise
        except (IntegrityError, OperationalError) as exc:
            self.session.rollback()
            raise WriteConflict(str(exc)) from exc

        self.session.refresh(candidate)
        return candidate

    def _conditional_update(
        self,
        appointment_id: int,
        expected_status: AppointmentStatus,
        values: Dict[str, Any],
    ) -> bool:
        values = {**values, "updated_at": utcnow()}
        result = self.session.execute(
            update(Appointment)
            .where(Appointment.id == appointment_id)
            .where(Appointment.status == expected_status)
            .values(**values)
        )
        return result.rowcount == 1

    def reschedule_appointment_atomic(
        self,
        appointment_id: int,
        expected_status: AppointmentStatus,
        values: Dict[str, Any],
    ) -> Optional[Appointment]:
        """Move an appointment to a new slot, excluding its own current reservation.

        Returns ``None`` when the row changed status underneath us.
        """
        appointment = self.get_appointment(appointment_id)
        if appointment is None:
            return None
        employee_id = appointment.employee_id
        try:
            if employee_id is not None:
                self._lock_employee(employee_id)
                self._ensure_slot_free(
                    employee_id,
                    values["appointment_date"],
                    values["appointment_time"],
                    values["end_time"],
                    exclude_appointment_id=appointment_id,
                )
            if not self._conditional_update(appointment_id, expected_status, values):
                self.session.rollback()
                return None
            self.session.commit()
        except SlotConflict:
            self.session.rollback()
            raise
        except (IntegrityError, OperationalError) as exc:
            self.session.rollback()
            raise WriteConflict(str(exc)) from exc

        return self.session.get(Appointment, appointment_id, populate_existing=True)

    def update_appointment_status(
        self,
        appointment_id: int,
        expected_status: AppointmentStatus,
        values: Dict[str, Any],
        penalty: Optional[Penalty] = None,
    ) -> Optional[Appointment]:
        """Apply ``values`` only if the row is still in ``expected_status``.

        A ``penalty`` is inserted in the same transaction, so the status
        change and the charge are committed or rolled back together.
        """
        if not self._conditional_update(appointment_id, expected_status, values):
            self.session.rollback()
            return None
        if penalty is not None:
            penalty.appointment_id = appointment_id
            self.session.add(penalty)
        try:
            self.session.commit()
        except (IntegrityError, OperationalError):
            self.session.rollback()
            raise
        if penalty is not None:
            self.session.refresh(penalty)
        return self.session.get(Appointment, appointment_id, populate_existing=True)

    def delete_appointments_by_service(self, service_id: int) -> int:
        ids = list(self.session.exec(select(Appointment.id).where(Appointment.service_id == service_id)).all())
        if ids:
            self.session.execute(delete(Penalty).where(Penalty.appointment_id.in_(ids)))
            self.session.execute(delete(Appointment).where(Appointment.id.in_(ids)))
        self.session.commit()
        return len(ids)

    def delete_promotions_by_service(self, service_id: int) -> None:
        self.session.execute(delete(Promotion).where(Promotion.service_id == service_id))
        self.session.commit()

    # --- penalties ---------------------------------------------------------

    def get_penalty(self, penalty_id: int) -> Optional[Penalty]:
        return self.session.get(Penalty, penalty_id)

    def get_penalties_by_merchant(self, merchant_id: int) -> List[Penalty]:
        stmt = select(Penalty).where(Penalty.merchant_id == merchant_id).order_by(Penalty.created_at.desc())
        return list(self.session.exec(stmt).all())

    def get_penalties_by_client(self, client_id: int) -> List[Penalty]:
        stmt = select(Penalty).where(Penalty.client_id == client_id).order_by(Penalty.created_at.desc())
        return list(self.session.exec(stmt).all())

    def get_pending_penalties(
        self,
        merchant_id: int,
        client_id: Optional[int] = None,
        client_phone: Optional[str] = None,
    ) -> List[Penalty]:
        stmt = (
            select(Penalty)
            .where(Penalty.merchant_id == merchant_id)
            .where(Penalty.status == PenaltyStatus.pending)
        )
        if client_id is not None:
            stmt = stmt.where(Penalty.client_id == client_id)
        else:
            stmt = stmt.where(Penalty.client_phone == client_phone)
        return list(self.session.exec(stmt).all())

    # --- promotions --------------------------------------------------------

    def get_promotion(self, promotion_id: int) -> Optional[Promotion]:
        return self.session.get(Promotion, promotion_id)

    def get_promotions_by_merchant(self, merchant_id: int) -> List[Promotion]:
        stmt = select(Promotion).where(Promotion.merchant_id == merchant_id).order_by(Promotion.start_date.desc())
        return list(self.session.exec(stmt).all())

    def get_active_promotion_for_service(self, service_id: int, today: date) -> Optional[Promotion]:
        stmt = (
            select(Promotion)
            .where(Promotion.service_id == service_id)
            .where(Promotion.is_active == True)  # noqa: E712
            .where(Promotion.start_date <= today)
            .where(Promotion.end_date >= today)
            .order_by(Promotion.created_at.desc(), Promotion.id.desc())
        )
        return self.session.exec(stmt).first()

    # --- generic -----------------------------------------------------------

    def save(self, obj):
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj
