from datetime import date, time

import pytest

from conftest import DAY, NOW
from salonbook import booking, catalog
from salonbook.errors import NotFound, ValidationError
from salonbook.models import DiscountType, Penalty, Promotion
from salonbook.pricing import apply_promotion, price_for

TODAY = NOW.date()


def _promotion(repo, merchant, service, discount_type, value, **overrides):
    fields = dict(
        merchant_id=merchant.id,
        service_id=service.id,
        name="Promo",
        discount_type=discount_type,
        discount_value=value,
        start_date=date(2030, 1, 1),
        end_date=date(2030, 1, 31),
    )
    fields.update(overrides)
    return repo.save(Promotion(**fields))


def test_apply_promotion_arithmetic():
    assert apply_promotion(10000, Promotion(name="p", discount_type=DiscountType.percentage, discount_value=20,
                                            merchant_id=1, start_date=TODAY, end_date=TODAY)) == 8000
    assert apply_promotion(10000, Promotion(name="p", discount_type=DiscountType.fixed, discount_value=500,
                                            merchant_id=1, start_date=TODAY, end_date=TODAY)) == 9500
    assert apply_promotion(10000, Promotion(name="p", discount_type=DiscountType.fixed, discount_value=20000,
                                            merchant_id=1, start_date=TODAY, end_date=TODAY)) == 0
    assert apply_promotion(10000, None) == 10000


def test_percentage_rounds_half_up():
    promo = Promotion(name="p", discount_type=DiscountType.percentage, discount_value=15,
                      merchant_id=1, start_date=TODAY, end_date=TODAY)
    # 15% of 1250 is 187.5 -> 188 off
    assert apply_promotion(1250, promo) == 1062


def test_price_without_promotion(repo, service):
    quote = price_for(repo, service.id, today=TODAY)
    assert not quote.has_promotion
    assert quote.original_price == quote.effective_price == 10000


def test_live_promotion_applies(repo, merchant, service):
    promo = _promotion(repo, merchant, service, DiscountType.percentage, 20)
    quote = price_for(repo, service.id, today=TODAY)
    assert quote.has_promotion
    assert quote.effective_price == 8000
    assert quote.promotion.id == promo.id


def test_expired_or_inactive_promotion_is_ignored(repo, merchant, service):
    _promotion(repo, merchant, service, DiscountType.fixed, 500, end_date=date(2029, 12, 31))
    _promotion(repo, merchant, service, DiscountType.fixed, 700, is_active=False)
    assert price_for(repo, service.id, today=TODAY).effective_price == 10000


def test_unknown_service_has_no_price(repo):
    with pytest.raises(NotFound):
        price_for(repo, 999, today=TODAY)


def test_booking_snapshots_the_price(repo, merchant, merchant_actor, employee, service, client):
    promo = _promotion(repo, merchant, service, DiscountType.fixed, 500)
    appt = booking.book(repo, merchant_actor, service.id, DAY, time(10, 0),
                        employee_id=employee.id, client_id=client.id, now=NOW).appointment
    assert appt.original_price == 10000
    assert appt.price == 9500
    assert appt.promotion_id == promo.id

    service.price = 20000
    repo.save(service)
    assert repo.get_appointment(appt.id).price == 9500


def test_create_promotion_validates(repo, merchant, service):
    with pytest.raises(ValidationError):
        catalog.create_promotion(repo, merchant.id, "Too much", DiscountType.percentage, 100,
                                 date(2030, 1, 1), date(2030, 1, 31), service_id=service.id)
    with pytest.raises(ValidationError):
        catalog.create_promotion(repo, merchant.id, "Backwards", DiscountType.fixed, 100,
                                 date(2030, 2, 1), date(2030, 1, 1), service_id=service.id)
    with pytest.raises(NotFound):
        catalog.create_promotion(repo, merchant.id + 1, "Foreign", DiscountType.fixed, 100,
                                 date(2030, 1, 1), date(2030, 1, 31), service_id=service.id)


def test_services_listing_includes_effective_price(repo, merchant, service):
    _promotion(repo, merchant, service, DiscountType.percentage, 10)
    [(listed, quote)] = catalog.services_with_prices(repo, merchant.id, today=TODAY)
    assert listed.id == service.id
    assert quote.effective_price == 9000


def test_deleting_a_service_removes_its_bookings(repo, merchant, merchant_actor, employee, service, client):
    service_id = service.id
    _promotion(repo, merchant, service, DiscountType.percentage, 10)
    first = booking.book(repo, merchant_actor, service.id, DAY, time(10, 0),
                         employee_id=employee.id, client_id=client.id, now=NOW).appointment
    booking.book(repo, merchant_actor, service.id, DAY, time(14, 0),
                 employee_id=employee.id, client_id=client.id, now=NOW)
    repo.save(Penalty(merchant_id=merchant.id, client_id=client.id, appointment_id=first.id,
                      client_name="Carla", client_phone="1", amount=100, reason="test"))

    assert catalog.delete_service(repo, merchant.id, service_id) == 2
    assert repo.get_service(service_id) is None
    assert repo.get_appointments_by_employee(employee.id) == []
    assert repo.get_penalties_by_merchant(merchant.id) == []


def test_service_changes_leave_booked_appointments_alone(repo, merchant, merchant_actor, employee, service, client):
    appt = booking.book(repo, merchant_actor, service.id, DAY, time(10, 0),
                        employee_id=employee.id, client_id=client.id, now=NOW).appointment

    catalog.update_service(repo, merchant.id, service.id, {"duration": 90, "price": 15000})

    kept = repo.get_appointment(appt.id)
    assert (kept.duration_minutes, kept.end_time, kept.price) == (60, time(11, 0), 10000)

    later = booking.book(repo, merchant_actor, service.id, DAY, time(14, 0),
                         employee_id=employee.id, client_id=client.id, now=NOW).appointment
    assert (later.duration_minutes, later.end_time, later.price) == (90, time(15, 30), 15000)


def test_update_service_validates(repo, merchant, service):
    with pytest.raises(ValidationError):
        catalog.update_service(repo, merchant.id, service.id, {"duration": 0})
    with pytest.raises(ValidationError):
        catalog.update_service(repo, merchant.id, service.id, {"price": None})
    with pytest.raises(NotFound):
        catalog.update_service(repo, merchant.id + 1, service.id, {"price": 1})

    hidden = catalog.update_service(repo, merchant.id, service.id, {"is_active": False})
    assert hidden.is_active is False


def test_promotion_changes_leave_booked_prices_alone(repo, merchant, merchant_actor, employee, service, client):
    promo = _promotion(repo, merchant, service, DiscountType.percentage, 20)
    appt = booking.book(repo, merchant_actor, service.id, DAY, time(10, 0),
                        employee_id=employee.id, client_id=client.id, now=NOW).appointment
    assert appt.price == 8000

    catalog.update_promotion(repo, merchant.id, promo.id, {"is_active": False})
    assert price_for(repo, service.id, today=TODAY).effective_price == 10000

    catalog.delete_promotion(repo, merchant.id, promo.id)
    assert catalog.list_promotions(repo, merchant.id) == []

    kept = repo.get_appointment(appt.id)
    assert kept.price == 8000
    assert kept.promotion_id == promo.id


def test_update_promotion_validates_the_merged_result(repo, merchant, service):
    promo = _promotion(repo, merchant, service, DiscountType.fixed, 500)
    # 500 off is fine as a fixed amount but not as a percentage
    with pytest.raises(ValidationError):
        catalog.update_promotion(repo, merchant.id, promo.id, {"discount_type": DiscountType.percentage})
    with pytest.raises(ValidationError):
        catalog.update_promotion(repo, merchant.id, promo.id, {"end_date": date(2029, 12, 1)})
    with pytest.raises(NotFound):
        catalog.update_promotion(repo, merchant.id + 1, promo.id, {"name": "Foreign"})

    renamed = catalog.update_promotion(repo, merchant.id, promo.id, {"name": "Janeiro", "discount_value": 700})
    assert (renamed.name, renamed.discount_value) == ("Janeiro", 700)
    assert price_for(repo, service.id, today=TODAY).effective_price == 9300
