from datetime import date, datetime, time

import pytest

from conftest import DAY, NOW
from salonbook import booking, settlement
from salonbook.errors import ValidationError
from salonbook.models import AppointmentStatus, PayType, Service

DONE = datetime(2030, 1, 16, 18, 0)


def _book_and_finish(repo, actor, service, employee, client, start, status=AppointmentStatus.completed):
    appt = booking.book(repo, actor, service.id, DAY, start,
                        employee_id=employee.id, client_id=client.id, now=NOW).appointment
    return booking.advance_status(repo, actor, appt.id, status, now=DONE)


def test_percentage_pay(repo, merchant, merchant_actor, employee, client):
    service = repo.save(Service(merchant_id=merchant.id, name="Escova", duration=30, price=5000))
    _book_and_finish(repo, merchant_actor, service, employee, client, time(10, 0))
    _book_and_finish(repo, merchant_actor, service, employee, client, time(11, 0), AppointmentStatus.cancelled)

    # 10% of 5000; the cancelled one adds nothing
    assert settlement.earnings_for(repo, employee.id, DAY, DAY) == 500


def test_fixed_pay_counts_each_completed_appointment(repo, merchant_actor, employee, service, client):
    employee.payment_type = PayType.fixed
    employee.payment_value = 3000
    repo.save(employee)

    _book_and_finish(repo, merchant_actor, service, employee, client, time(10, 0))
    _book_and_finish(repo, merchant_actor, service, employee, client, time(11, 0))
    _book_and_finish(repo, merchant_actor, service, employee, client, time(12, 0), AppointmentStatus.cancelled)

    assert settlement.earnings_for(repo, employee.id, DAY, DAY) == 6000


def test_monthly_pay_earns_nothing_per_appointment(repo, merchant_actor, employee, service, client):
    employee.payment_type = PayType.monthly
    repo.save(employee)
    _book_and_finish(repo, merchant_actor, service, employee, client, time(10, 0))
    assert settlement.earnings_for(repo, employee.id, DAY, DAY) == 0


def test_range_outside_work_earns_nothing(repo, merchant_actor, employee, service, client):
    _book_and_finish(repo, merchant_actor, service, employee, client, time(10, 0))
    assert settlement.earnings_for(repo, employee.id, date(2030, 1, 17), date(2030, 1, 31)) == 0


def test_reversed_range_is_rejected(repo, employee):
    with pytest.raises(ValidationError):
        settlement.earnings_for(repo, employee.id, date(2030, 1, 31), date(2030, 1, 1))


def test_breakdown_lists_every_appointment(repo, merchant_actor, employee, service, client):
    _book_and_finish(repo, merchant_actor, service, employee, client, time(10, 0))
    _book_and_finish(repo, merchant_actor, service, employee, client, time(11, 0), AppointmentStatus.no_show)

    rows = settlement.earnings_breakdown(repo, employee.id, DAY, DAY)
    assert [r["appointment"].appointment_time for r in rows] == [time(11, 0), time(10, 0)]
    assert [r["employee_earning"] for r in rows] == [0, 1000]
    assert rows[1]["service_name"] == "Corte"


def test_overtime_accumulates(repo, employee):
    assert settlement.finish_workday(repo, employee.id, time(19, 30), today=DAY) == 90
    assert settlement.finish_workday(repo, employee.id, time(17, 0), today=date(2030, 1, 17)) == 0

    stats = settlement.overtime_stats(repo, employee.id)
    assert stats.total_overtime_minutes == 90
    assert stats.total_overtime_hours == 1.5
    assert stats.last_overtime_date == DAY


def test_extension_lasts_until_the_day_is_finished(repo, employee):
    settlement.extend_working_hours(repo, employee.id, time(20, 0))
    assert repo.get_employee(employee.id).extended_end_time == time(20, 0)

    settlement.finish_workday(repo, employee.id, time(20, 0), today=DAY)
    refreshed = repo.get_employee(employee.id)
    assert refreshed.extended_end_time is None
    assert refreshed.overtime_minutes == 120


def test_extension_must_be_later_than_scheduled_end(repo, employee):
    with pytest.raises(ValidationError):
        settlement.extend_working_hours(repo, employee.id, time(17, 0))
