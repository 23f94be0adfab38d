# salonbook/catalog.py

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from salonbook.core import merchant_now
from salonbook.errors import NotFound, ValidationError
from salonbook.models import DiscountType, Promotion, Service
from salonbook.pricing import PriceQuote, price_for

logger = logging.getLogger(__name__)


def _reject_nulls(changes: Dict[str, Any], nullable: Tuple[str, ...] = ()) -> None:
    for field, value in changes.items():
        if value is None and field not in nullable:
            raise ValidationError(f"{field} cannot be null")


def get_service_for_merchant(repo, merchant_id: int, service_id: int) -> Service:
    service = repo.get_service(service_id)
    if service is None or service.merchant_id != merchant_id:
        raise NotFound("Service not found")
    return service


def create_service(repo, merchant_id: int, name: str, duration: int, price: int, is_active: bool = True) -> Service:
    if duration <= 0:
        raise ValidationError("duration must be a positive number of minutes")
    if price < 0:
        raise ValidationError("price must not be negative")
    return repo.save(Service(merchant_id=merchant_id, name=name, duration=duration, price=price, is_active=is_active))


def update_service(repo, merchant_id: int, service_id: int, changes: Dict[str, Any]) -> Service:
    """Change a service; appointments already booked keep their snapshot."""
    service = get_service_for_merchant(repo, merchant_id, service_id)
    _reject_nulls(changes)
    if changes.get("duration", service.duration) <= 0:
        raise ValidationError("duration must be a positive number of minutes")
    if changes.get("price", service.price) < 0:
        raise ValidationError("price must not be negative")
    for field, value in changes.items():
        setattr(service, field, value)
    service = repo.save(service)
    logger.info(f"Updated service {service.id}: {sorted(changes)}")
    return service


def services_with_prices(repo, merchant_id: int, today: Optional[date] = None) -> List[Tuple[Service, PriceQuote]]:
    if today is None:
        today = merchant_now(repo.get_merchant(merchant_id)).date()
    return [
        (service, price_for(repo, service.id, today=today))
        for service in repo.get_services_by_merchant(merchant_id)
    ]


def delete_service(repo, merchant_id: int, service_id: int) -> int:
    """Remove a service and every appointment booked on it; returns the appointment count."""
    service = get_service_for_merchant(repo, merchant_id, service_id)
    deleted = repo.delete_appointments_by_service(service.id)
    repo.delete_promotions_by_service(service.id)
    repo.delete(service)
    logger.info(f"Deleted service {service_id} with {deleted} appointments")
    return deleted


def create_promotion(
    repo,
    merchant_id: int,
    name: str,
    discount_type: DiscountType,
    discount_value: int,
    start_date: date,
    end_date: date,
    service_id: Optional[int] = None,
    is_active: bool = True,
) -> Promotion:
    _validate_promotion(repo, merchant_id, service_id, discount_type, discount_value, start_date, end_date)

    return repo.save(Promotion(
        merchant_id=merchant_id,
        service_id=service_id,
        name=name,
        discount_type=discount_type,
        discount_value=discount_value,
        start_date=start_date,
        end_date=end_date,
        is_active=is_active,
    ))


def _validate_promotion(
    repo,
    merchant_id: int,
    service_id: Optional[int],
    discount_type: DiscountType,
    discount_value: int,
    start_date: date,
    end_date: date,
) -> None:
    if service_id is not None:
        get_service_for_merchant(repo, merchant_id, service_id)
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date")
    if discount_value <= 0:
        raise ValidationError("discount_value must be positive")
    if discount_type == DiscountType.percentage and discount_value > 99:
        raise ValidationError("A percentage discount cannot exceed 99%")


def get_promotion_for_merchant(repo, merchant_id: int, promotion_id: int) -> Promotion:
    promotion = repo.get_promotion(promotion_id)
    if promotion is None or promotion.merchant_id != merchant_id:
        raise NotFound("Promotion not found")
    return promotion


def list_promotions(repo, merchant_id: int) -> List[Promotion]:
    return repo.get_promotions_by_merchant(merchant_id)


def update_promotion(repo, merchant_id: int, promotion_id: int, changes: Dict[str, Any]) -> Promotion:
    """Edit or deactivate a promotion. Prices already booked are not touched."""
    promotion = get_promotion_for_merchant(repo, merchant_id, promotion_id)
    _reject_nulls(changes, nullable=("service_id",))
    merged = {
        field: changes.get(field, getattr(promotion, field))
        for field in ("service_id", "discount_type", "discount_value", "start_date", "end_date")
    }
    _validate_promotion(repo, merchant_id, **merged)

    for field, value in changes.items():
        setattr(promotion, field, value)
    promotion = repo.save(promotion)
    logger.info(f"Updated promotion {promotion.id}: {sorted(changes)}")
    return promotion


def delete_promotion(repo, merchant_id: int, promotion_id: int) -> None:
    promotion = get_promotion_for_merchant(repo, merchant_id, promotion_id)
    repo.delete(promotion)
    logger.info(f"Deleted promotion {promotion_id}")
