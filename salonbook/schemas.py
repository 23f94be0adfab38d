# salonbook/schemas.py

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, date, time
from typing import List, Optional

from salonbook.models import (
    AppointmentStatus,
    CancelPolicy,
    DiscountType,
    PaymentStatus,
    PayType,
    PenaltyStatus,
    UserRole,
)


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserCreate(BaseModel):
    email: str
    password: str = Field(min_length=8, max_length=72)
    role: UserRole
    name: str
    phone: Optional[str] = None        # clients
    merchant_id: Optional[int] = None  # employees and clients join a merchant
    employee_id: Optional[int] = None  # employees claim an existing employee record


class UserPublic(ORMModel):
    id: int
    email: str
    role: UserRole
    merchant_id: Optional[int] = None
    employee_id: Optional[int] = None
    client_id: Optional[int] = None


class MerchantPublic(ORMModel):
    id: int
    name: str
    email: str
    timezone: Optional[str] = None
    working_days: List[int]
    start_time: time
    end_time: time
    break_start_time: Optional[time] = None
    break_end_time: Optional[time] = None
    is_open: bool
    cancel_policy: CancelPolicy
    cancellation_policy_hours: int
    cancellation_fee_enabled: bool
    cancellation_fee_amount: int


class MerchantSettingsUpdate(BaseModel):
    name: Optional[str] = None
    timezone: Optional[str] = None
    working_days: Optional[List[int]] = None  # 0=Sun, 1=Mon ... 6=Sat
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    break_start_time: Optional[time] = None
    break_end_time: Optional[time] = None
    is_open: Optional[bool] = None
    cancel_policy: Optional[CancelPolicy] = None
    cancellation_policy_hours: Optional[int] = None
    cancellation_fee_enabled: Optional[bool] = None
    cancellation_fee_amount: Optional[int] = None


class EmployeeCreate(BaseModel):
    name: str
    email: Optional[str] = None
    payment_type: PayType = PayType.monthly
    payment_value: int = 0


class EmployeeUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    payment_type: Optional[PayType] = None
    payment_value: Optional[int] = None
    is_active: Optional[bool] = None


class EmployeePublic(ORMModel):
    id: int
    merchant_id: int
    name: str
    email: Optional[str] = None
    working_days: List[int]
    start_time: time
    end_time: time
    break_start_time: Optional[time] = None
    break_end_time: Optional[time] = None
    has_custom_schedule: bool
    is_active: bool
    payment_type: PayType
    payment_value: int
    overtime_minutes: int
    last_overtime_date: Optional[date] = None
    extended_end_time: Optional[time] = None


class EmployeeSchedule(ORMModel):
    working_days: List[int]
    start_time: time
    end_time: time
    break_start_time: Optional[time] = None
    break_end_time: Optional[time] = None


class ClientCreate(BaseModel):
    name: str
    phone: str
    email: Optional[str] = None


class ClientPublic(ORMModel):
    id: int
    merchant_id: int
    name: str
    phone: str
    email: Optional[str] = None


class ServiceCreate(BaseModel):
    name: str
    duration: int
    price: int
    is_active: bool = True


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    duration: Optional[int] = None
    price: Optional[int] = None
    is_active: Optional[bool] = None


class PromotionCreate(BaseModel):
    name: str
    service_id: Optional[int] = None
    discount_type: DiscountType = DiscountType.percentage
    discount_value: int
    start_date: date
    end_date: date
    is_active: bool = True


class PromotionUpdate(BaseModel):
    name: Optional[str] = None
    service_id: Optional[int] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None


class PromotionPublic(ORMModel):
    id: int
    merchant_id: int
    service_id: Optional[int] = None
    name: str
    discount_type: DiscountType
    discount_value: int
    start_date: date
    end_date: date
    is_active: bool


class PriceQuotePublic(BaseModel):
    service_id: int
    has_promotion: bool
    original_price: int
    effective_price: int
    promotion: Optional[PromotionPublic] = None


class ServicePublic(ORMModel):
    id: int
    merchant_id: int
    name: str
    duration: int
    price: int
    is_active: bool


class ServiceWithPrice(ServicePublic):
    has_promotion: bool = False
    effective_price: int
    promotion: Optional[PromotionPublic] = None


class ServiceDeleted(BaseModel):
    service_id: int
    deleted_appointments: int


class DayOffCreate(BaseModel):
    employee_id: int
    date: date
    reason: Optional[str] = None


class DayOffPublic(ORMModel):
    id: int
    merchant_id: int
    employee_id: int
    date: date
    reason: Optional[str] = None


class AvailabilityResponse(BaseModel):
    employee_id: int
    date: date
    duration: int
    available_starts: List[str]


class AppointmentCreate(BaseModel):
    service_id: int
    appointment_date: date
    appointment_time: time
    employee_id: Optional[int] = None
    client_id: Optional[int] = None
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    client_email: Optional[str] = None
    notes: Optional[str] = None


class AppointmentPublic(ORMModel):
    id: int
    merchant_id: int
    service_id: int
    client_id: Optional[int] = None
    employee_id: Optional[int] = None
    client_name: str
    client_phone: str
    client_email: Optional[str] = None
    appointment_date: date
    appointment_time: time
    end_time: time
    duration_minutes: int
    original_price: int
    price: int
    promotion_id: Optional[int] = None
    status: AppointmentStatus
    notes: Optional[str] = None
    cancel_policy: CancelPolicy
    cancel_reason: Optional[str] = None
    reschedule_reason: Optional[str] = None
    actual_start_time: Optional[time] = None
    actual_end_time: Optional[time] = None
    completed_at: Optional[datetime] = None
    payment_status: Optional[PaymentStatus] = None
    paid_at: Optional[datetime] = None


class BookingResponse(BaseModel):
    appointment: AppointmentPublic
    has_pending_penalties: bool
    pending_penalties_count: int
    pending_penalties_amount: int


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class CancellationFee(BaseModel):
    has_fee: bool
    amount: int


class CancellationResponse(BaseModel):
    appointment: AppointmentPublic
    cancellation_fee: CancellationFee
    penalty_id: Optional[int] = None


class RescheduleRequest(BaseModel):
    new_date: date
    new_time: time
    reason: Optional[str] = None


class StatusUpdate(BaseModel):
    status: AppointmentStatus
    reason: Optional[str] = None


class EarningsResponse(BaseModel):
    employee_id: int
    start_date: date
    end_date: date
    earnings: int


class EarningLine(BaseModel):
    appointment: AppointmentPublic
    service_name: Optional[str] = None
    service_price: int
    employee_earning: int
    payment_type: PayType


class ExtendHoursRequest(BaseModel):
    new_end_time: time


class FinishWorkdayRequest(BaseModel):
    actual_end_time: time


class FinishWorkdayResponse(BaseModel):
    employee_id: int
    scheduled_end_time: time
    actual_end_time: time
    overtime_minutes: int
    total_overtime_minutes: int
    formatted_time: str


class OvertimeStatsResponse(BaseModel):
    total_overtime_minutes: int
    total_overtime_hours: float
    last_overtime_date: Optional[date] = None
    formatted_time: str


class PenaltyPublic(ORMModel):
    id: int
    merchant_id: int
    client_id: Optional[int] = None
    appointment_id: int
    client_name: str
    client_phone: str
    type: str
    amount: int
    reason: str
    status: PenaltyStatus
    paid_at: Optional[datetime] = None
    paid_by: Optional[str] = None


class PenaltyStatusUpdate(BaseModel):
    status: PenaltyStatus
