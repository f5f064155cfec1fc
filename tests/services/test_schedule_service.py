from datetime import time, timedelta
from decimal import Decimal

import pytest

from slotkeeper.core.exceptions import ForbiddenException, NotFoundException, ValidationException
from slotkeeper.services.availability_service import Slot
from slotkeeper.services.schedule_service import WindowSpec


def test_create_resource(schedule_service, admin):
    resource = schedule_service.create_resource(
        admin, name="Court 2", hourly_rate=Decimal("300"), max_participants=4
    )
    assert resource.id
    assert resource.currency == "SEK"
    assert resource.is_active


def test_create_resource_requires_admin(schedule_service, teacher):
    with pytest.raises(ForbiddenException):
        schedule_service.create_resource(teacher, name="Court 3", hourly_rate=Decimal("300"))


def test_template_replaces_previous_windows(
    schedule_service, availability_service, admin, resource, booking_day
):
    schedule_service.set_weekly_template(
        admin,
        resource.id,
        [WindowSpec(0, time(14, 0), time(15, 0)), WindowSpec(2, time(9, 0), time(10, 0))],
    )

    assert availability_service.get_available_slots(resource.id, booking_day) == [
        Slot(time(14, 0), time(15, 0))
    ]
    wednesday = booking_day + timedelta(days=2)
    assert availability_service.get_available_slots(resource.id, wednesday) == [
        Slot(time(9, 0), time(10, 0))
    ]


def test_empty_template_clears_schedule(
    schedule_service, availability_service, admin, resource, booking_day
):
    assert schedule_service.set_weekly_template(admin, resource.id, []) == []
    assert availability_service.get_available_slots(resource.id, booking_day) == []


@pytest.mark.parametrize(
    "windows",
    [
        [WindowSpec(7, time(9, 0), time(10, 0))],
        [WindowSpec(0, time(10, 0), time(9, 0))],
        [WindowSpec(0, time(9, 0), time(10, 0)), WindowSpec(0, time(9, 30), time(11, 0))],
    ],
)
def test_invalid_template_is_rejected(schedule_service, admin, resource, windows):
    with pytest.raises(ValidationException):
        schedule_service.set_weekly_template(admin, resource.id, windows)


def test_same_window_on_different_days_is_fine(schedule_service, admin, resource):
    created = schedule_service.set_weekly_template(
        admin,
        resource.id,
        [WindowSpec(0, time(9, 0), time(10, 0)), WindowSpec(1, time(9, 0), time(10, 0))],
    )
    assert len(created) == 2


def test_template_for_unknown_resource(schedule_service, admin):
    with pytest.raises(NotFoundException):
        schedule_service.set_weekly_template(admin, "01JUNKNOWN0000000000000000", [])


class TestBlockedRanges:
    def test_all_day_when_no_times(self, schedule_service, admin, resource, booking_day):
        block = schedule_service.add_blocked_range(
            admin, resource.id, on_date=booking_day, reason="Holiday"
        )
        assert block.is_all_day
        assert block.start_time is None

    def test_partial_block(self, schedule_service, admin, resource, booking_day):
        block = schedule_service.add_blocked_range(
            admin, resource.id, on_date=booking_day, start_time=time(9, 0), end_time=time(9, 30)
        )
        assert not block.is_all_day

    def test_half_given_range_is_rejected(self, schedule_service, admin, resource, booking_day):
        with pytest.raises(ValidationException):
            schedule_service.add_blocked_range(
                admin, resource.id, on_date=booking_day, start_time=time(9, 0)
            )

    def test_removing_block_restores_slots(
        self, schedule_service, availability_service, admin, resource, booking_day
    ):
        block = schedule_service.add_blocked_range(admin, resource.id, on_date=booking_day)
        assert availability_service.get_available_slots(resource.id, booking_day) == []

        schedule_service.remove_blocked_range(admin, block.id)
        assert len(availability_service.get_available_slots(resource.id, booking_day)) == 3

    def test_remove_unknown_block(self, schedule_service, admin):
        with pytest.raises(NotFoundException):
            schedule_service.remove_blocked_range(admin, "01JUNKNOWN0000000000000000")


class TestExtraSlots:
    def test_add_and_remove(
        self, schedule_service, availability_service, admin, resource, booking_day
    ):
        slot = schedule_service.add_extra_slot(
            admin, resource.id, on_date=booking_day, start_time=time(18, 0), end_time=time(19, 0)
        )
        assert Slot(time(18, 0), time(19, 0)) in availability_service.get_available_slots(
            resource.id, booking_day
        )

        schedule_service.remove_extra_slot(admin, slot.id)
        assert Slot(time(18, 0), time(19, 0)) not in availability_service.get_available_slots(
            resource.id, booking_day
        )

    def test_extra_slot_is_bookable(self, schedule_service, book, admin, resource, booking_day):
        schedule_service.add_extra_slot(
            admin, resource.id, on_date=booking_day, start_time=time(18, 0), end_time=time(19, 0)
        )
        reservation, _ = book(start=time(18, 0), end=time(19, 0))
        assert reservation.amount == Decimal("600.00")

    def test_student_cannot_add(self, schedule_service, student, resource, booking_day):
        with pytest.raises(ForbiddenException):
            schedule_service.add_extra_slot(
                student,
                resource.id,
                on_date=booking_day,
                start_time=time(18, 0),
                end_time=time(19, 0),
            )

    def test_overlapping_template_window_is_rejected(
        self, schedule_service, admin, resource, booking_day
    ):
        with pytest.raises(ValidationException) as exc:
            schedule_service.add_extra_slot(
                admin,
                resource.id,
                on_date=booking_day,
                start_time=time(8, 30),
                end_time=time(9, 10),
            )
        assert exc.value.details["window"] == "08:15-08:55"

    def test_overlapping_extra_slot_is_rejected(
        self, schedule_service, admin, resource, booking_day
    ):
        sunday = booking_day + timedelta(days=6)
        schedule_service.add_extra_slot(
            admin, resource.id, on_date=sunday, start_time=time(12, 0), end_time=time(13, 0)
        )
        with pytest.raises(ValidationException):
            schedule_service.add_extra_slot(
                admin, resource.id, on_date=sunday, start_time=time(12, 30), end_time=time(13, 30)
            )

    def test_adjacent_extra_slot_is_allowed(self, schedule_service, admin, resource, booking_day):
        slot = schedule_service.add_extra_slot(
            admin, resource.id, on_date=booking_day, start_time=time(8, 55), end_time=time(9, 0)
        )
        assert slot.id
