# salonbook/pricing.py

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from salonbook.core import merchant_now, round_half_up
from salonbook.errors import NotFound
from salonbook.models import DiscountType, Promotion


@dataclass
class PriceQuote:
    has_promotion: bool
    original_price: int
    effective_price: int
    promotion: Optional[Promotion] = None


def apply_promotion(original_price: int, promotion: Optional[Promotion]) -> int:
    if promotion is None:
        return original_price
    if promotion.discount_type == DiscountType.percentage:
        discount = round_half_up(Decimal(original_price) * promotion.discount_value / 100)
        return original_price - discount
    return max(0, original_price - promotion.discount_value)


def promotion_is_live(promotion: Promotion, today: date) -> bool:
    return promotion.is_active and promotion.start_date <= today <= promotion.end_date


def price_for(repo, service_id: int, today: Optional[date] = None) -> PriceQuote:
    """Current price of a service with its active promotion, if any."""
    service = repo.get_service(service_id)
    if service is None:
        raise NotFound("Service not found")
    if today is None:
        today = merchant_now(repo.get_merchant(service.merchant_id)).date()

    promotion = repo.get_active_promotion_for_service(service_id, today)
    if promotion is not None and not promotion_is_live(promotion, today):
        promotion = None

    return PriceQuote(
        has_promotion=promotion is not None,
        original_price=service.price,
        effective_price=apply_promotion(service.price, promotion),
        promotion=promotion,
    )
