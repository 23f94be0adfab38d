from datetime import date, datetime, time

import pytest

from conftest import DAY, NOW
from salonbook import booking, staff
from salonbook.availability import available_slots
from salonbook.errors import DayOffConflict, NotFound, PolicyViolation, SlotConflict, ValidationError
from salonbook.models import Employee


def test_merchant_hours_flow_to_default_employees(repo, merchant, employee):
    custom = repo.save(Employee(merchant_id=merchant.id, name="Bia"))
    staff.update_employee_schedule(repo, custom, [2, 3, 4], time(12, 0), time(20, 0))

    staff.update_merchant_settings(repo, merchant, {"start_time": time(8, 0), "working_days": [1, 2, 3, 4, 5]})

    follower = repo.get_employee(employee.id)
    assert follower.start_time == time(8, 0)
    assert follower.working_days == [1, 2, 3, 4, 5]
    kept = repo.get_employee(custom.id)
    assert kept.start_time == time(12, 0)
    assert kept.working_days == [2, 3, 4]


def test_sync_reports_only_changed_employees(repo, merchant, employee):
    assert staff.sync_employee_hours(repo, merchant) == []
    merchant.end_time = time(19, 0)
    repo.save(merchant)
    assert [e.id for e in staff.sync_employee_hours(repo, merchant)] == [employee.id]


def test_schedule_validation():
    with pytest.raises(ValidationError):
        staff.validate_schedule([], time(9, 0), time(18, 0))
    with pytest.raises(ValidationError):
        staff.validate_schedule([1, 7], time(9, 0), time(18, 0))
    with pytest.raises(ValidationError):
        staff.validate_schedule([1, 1], time(9, 0), time(18, 0))
    with pytest.raises(ValidationError):
        staff.validate_schedule([1], time(18, 0), time(9, 0))
    with pytest.raises(ValidationError):
        staff.validate_schedule([1], time(9, 0), time(18, 0), time(12, 0), None)
    with pytest.raises(ValidationError):
        staff.validate_schedule([1], time(9, 0), time(18, 0), time(8, 0), time(10, 0))


def test_settings_limits(repo, merchant):
    with pytest.raises(ValidationError):
        staff.update_merchant_settings(repo, merchant, {"cancellation_policy_hours": 200})
    with pytest.raises(ValidationError):
        staff.update_merchant_settings(repo, merchant, {"cancellation_fee_amount": -1})


def test_null_settings_are_rejected(repo, merchant):
    for field in ("name", "start_time", "working_days", "is_open", "cancellation_policy_hours"):
        with pytest.raises(ValidationError):
            staff.update_merchant_settings(repo, merchant, {field: None})
    repo.session.refresh(merchant)
    assert merchant.name == "Studio Bela"
    assert merchant.start_time == time(9, 0)


def test_break_is_cleared_by_nulling_both_ends(repo, merchant):
    staff.update_merchant_settings(repo, merchant, {"break_start_time": time(12, 0), "break_end_time": time(13, 0)})
    with pytest.raises(ValidationError):
        staff.update_merchant_settings(repo, merchant, {"break_start_time": None})

    cleared = staff.update_merchant_settings(repo, merchant, {"break_start_time": None, "break_end_time": None})
    assert cleared.break_start_time is None
    assert cleared.break_end_time is None


def test_one_day_off_per_employee_and_date(repo, merchant, employee):
    staff.add_day_off(repo, merchant.id, employee.id, DAY, reason="Doctor")
    with pytest.raises(DayOffConflict):
        staff.add_day_off(repo, merchant.id, employee.id, DAY)
    assert len(repo.get_days_off(merchant.id, employee_id=employee.id)) == 1


def test_day_off_blocks_booking(repo, merchant, merchant_actor, employee, service, client):
    staff.add_day_off(repo, merchant.id, employee.id, DAY)
    with pytest.raises(DayOffConflict):
        booking.book(repo, merchant_actor, service.id, DAY, time(10, 0),
                     employee_id=employee.id, client_id=client.id, now=NOW)


def test_removing_day_off_reopens_the_day(repo, merchant, merchant_actor, employee, service, client):
    day_off = staff.add_day_off(repo, merchant.id, employee.id, DAY)
    staff.remove_day_off(repo, merchant.id, day_off.id)
    booking.book(repo, merchant_actor, service.id, DAY, time(10, 0),
                 employee_id=employee.id, client_id=client.id, now=NOW)
    with pytest.raises(NotFound):
        staff.remove_day_off(repo, merchant.id, day_off.id)


def test_day_off_for_another_merchants_employee(repo, merchant, employee):
    with pytest.raises(NotFound):
        staff.add_day_off(repo, merchant.id + 1, employee.id, DAY)


def test_custom_break_blocks_booking(repo, merchant_actor, employee, service, client):
    staff.update_employee_schedule(repo, employee, [1, 2, 3, 4, 5], time(9, 0), time(18, 0), time(12, 0), time(13, 0))
    with pytest.raises(ValidationError):
        booking.book(repo, merchant_actor, service.id, DAY, time(11, 30),
                     employee_id=employee.id, client_id=client.id, now=NOW)


def test_inactive_service_cannot_be_booked(repo, merchant_actor, employee, service, client):
    service.is_active = False
    repo.save(service)
    with pytest.raises(ValidationError):
        booking.book(repo, merchant_actor, service.id, DAY, time(10, 0),
                     employee_id=employee.id, client_id=client.id, now=NOW)


def test_booking_in_the_past_is_rejected(repo, merchant_actor, employee, service, client):
    with pytest.raises(ValidationError):
        booking.book(repo, merchant_actor, service.id, NOW.date(), time(9, 0),
                     employee_id=employee.id, client_id=client.id, now=NOW)


def test_walk_in_needs_contact_details(repo, merchant_actor, employee, service):
    with pytest.raises(ValidationError):
        booking.book(repo, merchant_actor, service.id, DAY, time(10, 0), employee_id=employee.id, now=NOW)


def test_reschedule_moves_and_resets_status(repo, merchant_actor, employee, service, client):
    appt = booking.book(repo, merchant_actor, service.id, DAY, time(10, 0),
                        employee_id=employee.id, client_id=client.id, now=NOW).appointment
    booking.confirm(repo, merchant_actor, appt.id, now=NOW)

    # overlaps its own old slot, which must not count against it
    moved = booking.reschedule(repo, merchant_actor, appt.id, DAY, time(10, 30), reason="Later", now=NOW)
    assert moved.appointment_time == time(10, 30)
    assert moved.end_time == time(11, 30)
    assert moved.status.value == "pending"
    assert moved.reschedule_reason == "Later"


def test_reschedule_keeps_booked_duration(repo, merchant_actor, employee, service, client):
    appt = booking.book(repo, merchant_actor, service.id, DAY, time(10, 0),
                        employee_id=employee.id, client_id=client.id, now=NOW).appointment
    service.duration = 120
    repo.save(service)

    moved = booking.reschedule(repo, merchant_actor, appt.id, DAY, time(14, 0), now=NOW)
    assert moved.end_time == time(15, 0)


def test_reschedule_into_an_hour_already_past_is_rejected(repo, merchant_actor, employee, service, client):
    appt = booking.book(repo, merchant_actor, service.id, DAY, time(16, 0),
                        employee_id=employee.id, client_id=client.id, now=NOW).appointment
    afternoon = datetime.combine(DAY, time(15, 0))

    with pytest.raises(ValidationError):
        booking.reschedule(repo, merchant_actor, appt.id, DAY, time(9, 0), now=afternoon)
    moved = booking.reschedule(repo, merchant_actor, appt.id, DAY, time(15, 0), now=afternoon)
    assert moved.appointment_time == time(15, 0)


def test_reschedule_into_taken_slot(repo, merchant_actor, employee, service, client):
    first = booking.book(repo, merchant_actor, service.id, DAY, time(10, 0),
                         employee_id=employee.id, client_id=client.id, now=NOW).appointment
    booking.book(repo, merchant_actor, service.id, DAY, time(14, 0),
                 employee_id=employee.id, client_id=client.id, now=NOW)
    with pytest.raises(SlotConflict):
        booking.reschedule(repo, merchant_actor, first.id, DAY, time(14, 30), now=NOW)


def test_client_reschedule_respects_notice(repo, employee, service, client_actor):
    appt = booking.book(repo, client_actor, service.id, DAY, time(10, 0), employee_id=employee.id, now=NOW).appointment
    with pytest.raises(PolicyViolation):
        booking.reschedule(repo, client_actor, appt.id, DAY, time(14, 0),
                           now=NOW.replace(day=15, hour=12))
    with pytest.raises(ValidationError):
        booking.reschedule(repo, client_actor, appt.id, date(2030, 1, 13), time(14, 0), now=NOW)


def test_deactivated_employee_keeps_existing_bookings(repo, merchant_actor, employee, service, client):
    appt = booking.book(repo, merchant_actor, service.id, DAY, time(10, 0),
                        employee_id=employee.id, client_id=client.id, now=NOW).appointment

    staff.update_employee(repo, employee, {"is_active": False})

    assert available_slots(repo, employee.id, DAY, 60) == []
    with pytest.raises(ValidationError):
        booking.book(repo, merchant_actor, service.id, DAY, time(14, 0),
                     employee_id=employee.id, client_id=client.id, now=NOW)
    assert repo.get_appointment(appt.id).status.value == "pending"


def test_update_employee_validates(repo, employee):
    with pytest.raises(ValidationError):
        staff.update_employee(repo, employee, {"payment_value": -1})
    with pytest.raises(ValidationError):
        staff.update_employee(repo, employee, {"name": None})

    updated = staff.update_employee(repo, employee, {"payment_value": 1500, "email": None})
    assert updated.payment_value == 1500
    assert updated.email is None


def test_appointment_listing_is_scoped_to_the_actor(
    repo, merchant, merchant_actor, employee_actor, client_actor, employee, service, client
):
    other = repo.save(Employee(merchant_id=merchant.id, name="Bia"))
    mine = booking.book(repo, merchant_actor, service.id, DAY, time(10, 0),
                        employee_id=employee.id, client_id=client.id, now=NOW).appointment
    walk_in = booking.book(repo, merchant_actor, service.id, DAY, time(11, 0), employee_id=other.id,
                           client_name="Walk-in", client_phone="+5511888880000", now=NOW).appointment

    assert [a.id for a in booking.list_appointments(repo, merchant_actor)] == [mine.id, walk_in.id]
    assert [a.id for a in booking.list_appointments(repo, merchant_actor, employee_id=other.id)] == [walk_in.id]
    assert [a.id for a in booking.list_appointments(repo, employee_actor)] == [mine.id]
    # clients cannot widen the filter to someone else's agenda
    assert [a.id for a in booking.list_appointments(repo, client_actor, employee_id=other.id)] == [mine.id]
    assert booking.list_appointments(repo, merchant_actor, day=date(2030, 1, 17)) == []
