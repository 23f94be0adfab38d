# salonbook/models.py

from enum import Enum
from typing import Optional, List
from datetime import datetime, date as Date, time, timezone

from sqlalchemy import Index, UniqueConstraint, text
from sqlalchemy.types import JSON
from sqlmodel import SQLModel, Field, Column


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def default_working_days() -> List[int]:
    return [1, 2, 3, 4, 5, 6]  # 0=Sun, 1=Mon ... 6=Sat


class UserRole(str, Enum):
    merchant = "merchant"
    employee = "employee"
    client = "client"


class PayType(str, Enum):
    fixed = "fixed"
    percentage = "percentage"
    monthly = "monthly"


class DiscountType(str, Enum):
    percentage = "percentage"
    fixed = "fixed"


class CancelPolicy(str, Enum):
    h24 = "24h"
    h12 = "12h"
    h2 = "2h"
    none = "none"


class AppointmentStatus(str, Enum):
    pending = "pending"
    scheduled = "scheduled"
    confirmed = "confirmed"
    in_progress = "in_progress"
    late = "late"
    completed = "completed"
    cancelled = "cancelled"
    no_show = "no_show"


class PaymentStatus(str, Enum):
    pending = "pending"
    paid = "paid"


class PenaltyStatus(str, Enum):
    pending = "pending"
    paid = "paid"
    waived = "waived"


TERMINAL_STATUSES = frozenset({
    AppointmentStatus.completed,
    AppointmentStatus.cancelled,
    AppointmentStatus.no_show,
})

# every non-terminal appointment still holds its slot
OCCUPYING_STATUSES = frozenset(s for s in AppointmentStatus if s not in TERMINAL_STATUSES)

_OCCUPYING_SQL = "status IN ({})".format(
    ", ".join(f"'{s.name}'" for s in AppointmentStatus if s in OCCUPYING_STATUSES)
)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    role: UserRole
    merchant_id: Optional[int] = Field(default=None, foreign_key="merchant.id")
    employee_id: Optional[int] = Field(default=None, foreign_key="employee.id")
    client_id: Optional[int] = Field(default=None, foreign_key="client.id")


class Merchant(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    timezone: Optional[str] = None

    working_days: List[int] = Field(default_factory=default_working_days, sa_column=Column(JSON))
    start_time: time = time(9, 0)
    end_time: time = time(18, 0)
    break_start_time: Optional[time] = None
    break_end_time: Optional[time] = None
    is_open: bool = True

    cancel_policy: CancelPolicy = CancelPolicy.h24
    cancellation_policy_hours: int = 24
    cancellation_fee_enabled: bool = False
    cancellation_fee_amount: int = 0  # minor units

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Employee(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    merchant_id: int = Field(foreign_key="merchant.id", index=True)
    name: str
    email: Optional[str] = None

    working_days: List[int] = Field(default_factory=default_working_days, sa_column=Column(JSON))
    start_time: time = time(9, 0)
    end_time: time = time(18, 0)
    break_start_time: Optional[time] = None
    break_end_time: Optional[time] = None
    # personal hours are kept when the merchant changes its opening hours
    has_custom_schedule: bool = False
    is_active: bool = True

    payment_type: PayType = PayType.monthly
    # minor units for fixed pay, percentage * 100 for percentage pay
    payment_value: int = 0
    overtime_minutes: int = 0
    last_overtime_date: Optional[Date] = None
    extended_end_time: Optional[time] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    merchant_id: int = Field(foreign_key="merchant.id", index=True)
    name: str
    duration: int  # minutes
    price: int  # minor units
    is_active: bool = True


class Client(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    merchant_id: int = Field(foreign_key="merchant.id", index=True)
    name: str
    phone: str
    email: Optional[str] = None


class DayOff(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("employee_id", "date", name="uq_employee_day_off"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    merchant_id: int = Field(foreign_key="merchant.id", index=True)
    employee_id: int = Field(foreign_key="employee.id", index=True)
    date: Date
    reason: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class Promotion(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    merchant_id: int = Field(foreign_key="merchant.id", index=True)
    service_id: Optional[int] = Field(default=None, foreign_key="service.id", index=True)
    name: str
    discount_type: DiscountType = DiscountType.percentage
    discount_value: int
    start_date: Date
    end_date: Date
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)


class Appointment(SQLModel, table=True):
    __table_args__ = (
        # one live booking per employee start; cancelled rows free the slot
        Index(
            "uq_employee_active_start",
            "employee_id",
            "appointment_date",
            "appointment_time",
            unique=True,
            sqlite_where=text(_OCCUPYING_SQL),
            postgresql_where=text(_OCCUPYING_SQL),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    merchant_id: int = Field(foreign_key="merchant.id", index=True)
    service_id: int = Field(foreign_key="service.id", index=True)
    client_id: Optional[int] = Field(default=None, foreign_key="client.id", index=True)
    employee_id: Optional[int] = Field(default=None, foreign_key="employee.id", index=True)

    client_name: str
    client_phone: str
    client_email: Optional[str] = None

    appointment_date: Date = Field(index=True)
    appointment_time: time
    end_time: time
    duration_minutes: int
    original_price: int
    price: int
    promotion_id: Optional[int] = None

    status: AppointmentStatus = AppointmentStatus.pending
    notes: Optional[str] = None

    # copied from the merchant when booked
    cancel_policy: CancelPolicy = CancelPolicy.h24
    cancellation_policy_hours: int = 24
    cancellation_fee_enabled: bool = False
    cancellation_fee_amount: int = 0

    cancel_reason: Optional[str] = None
    reschedule_reason: Optional[str] = None
    actual_start_time: Optional[time] = None
    actual_end_time: Optional[time] = None
    completed_at: Optional[datetime] = None
    payment_status: Optional[PaymentStatus] = None
    paid_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Penalty(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    merchant_id: int = Field(foreign_key="merchant.id", index=True)
    client_id: Optional[int] = Field(default=None, foreign_key="client.id", index=True)
    appointment_id: int = Field(foreign_key="appointment.id", index=True)
    client_name: str
    client_phone: str
    client_email: Optional[str] = None
    type: str = "cancellation"
    amount: int
    reason: str
    status: PenaltyStatus = PenaltyStatus.pending
    paid_at: Optional[datetime] = None
    paid_by: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
