from datetime import date, time, timedelta

from slotkeeper.models.resource import BlockedRange, ExtraSlot
from slotkeeper.services.availability_service import Slot

MONDAY_SLOTS = [
    Slot(time(8, 15), time(8, 55)),
    Slot(time(9, 0), time(9, 40)),
    Slot(time(10, 0), time(10, 40)),
]


class TestPublishedSlots:
    def test_template_windows_for_weekday(self, availability_service, resource, booking_day):
        assert availability_service.get_available_slots(resource.id, booking_day) == MONDAY_SLOTS

    def test_other_weekday_has_no_template(self, availability_service, resource, booking_day):
        tuesday = booking_day + timedelta(days=1)
        assert availability_service.get_available_slots(resource.id, tuesday) == []

    def test_unknown_resource_returns_empty(self, availability_service, booking_day):
        slots = availability_service.get_available_slots("01JUNKNOWN0000000000000000", booking_day)
        assert slots == []

    def test_inactive_resource_returns_empty(self, availability_service, db, resource, booking_day):
        resource.is_active = False
        db.commit()
        assert availability_service.get_available_slots(resource.id, booking_day) == []

    def test_extra_slot_is_merged_and_sorted(self, availability_service, db, resource, booking_day):
        db.add(
            ExtraSlot(
                resource_id=resource.id,
                date=booking_day,
                start_time=time(7, 0),
                end_time=time(7, 40),
            )
        )
        # Duplicate of a template window is listed once.
        db.add(
            ExtraSlot(
                resource_id=resource.id,
                date=booking_day,
                start_time=time(9, 0),
                end_time=time(9, 40),
            )
        )
        db.commit()

        slots = availability_service.get_available_slots(resource.id, booking_day)
        assert slots == [Slot(time(7, 0), time(7, 40))] + MONDAY_SLOTS

    def test_extra_slot_on_day_without_template(self, availability_service, db, resource):
        sunday = date(2025, 2, 2)
        db.add(
            ExtraSlot(
                resource_id=resource.id, date=sunday, start_time=time(12, 0), end_time=time(12, 40)
            )
        )
        db.commit()
        assert availability_service.get_available_slots(resource.id, sunday) == [
            Slot(time(12, 0), time(12, 40))
        ]


    def test_overlapping_extra_slot_never_doubles_a_window(
        self, availability_service, db, resource, booking_day
    ):
        db.add(
            ExtraSlot(
                resource_id=resource.id,
                date=booking_day,
                start_time=time(8, 30),
                end_time=time(9, 10),
            )
        )
        db.commit()

        slots = availability_service.get_available_slots(resource.id, booking_day)
        assert slots == MONDAY_SLOTS
        for first, second in zip(slots, slots[1:]):
            assert first.end_time <= second.start_time


class TestBlockedRanges:
    def test_all_day_block_removes_every_slot(
        self, availability_service, db, resource, booking_day
    ):
        db.add(BlockedRange(resource_id=resource.id, date=booking_day, is_all_day=True))
        db.commit()
        assert availability_service.get_available_slots(resource.id, booking_day) == []

    def test_partial_block_removes_touched_windows_only(
        self, availability_service, db, resource, booking_day
    ):
        db.add(
            BlockedRange(
                resource_id=resource.id,
                date=booking_day,
                is_all_day=False,
                start_time=time(9, 30),
                end_time=time(10, 0),
            )
        )
        db.commit()
        slots = availability_service.get_available_slots(resource.id, booking_day)
        assert slots == [Slot(time(8, 15), time(8, 55)), Slot(time(10, 0), time(10, 40))]

    def test_block_on_another_date_is_ignored(
        self, availability_service, db, resource, booking_day
    ):
        db.add(
            BlockedRange(
                resource_id=resource.id, date=booking_day - timedelta(days=7), is_all_day=True
            )
        )
        db.commit()
        assert availability_service.get_available_slots(resource.id, booking_day) == MONDAY_SLOTS


class TestReservationsAndHolds:
    def test_live_hold_hides_slot(self, availability_service, book, resource, booking_day):
        book()
        slots = availability_service.get_available_slots(resource.id, booking_day)
        assert Slot(time(8, 15), time(8, 55)) not in slots
        assert len(slots) == 2

    def test_expired_hold_is_ignored_before_reaper_runs(
        self, availability_service, book, clock, resource, booking_day
    ):
        reservation, _ = book()
        clock.advance(minutes=11)

        assert reservation.status == "temp"
        assert availability_service.get_available_slots(resource.id, booking_day) == MONDAY_SLOTS

    def test_hold_at_exact_timeout_still_blocks(
        self, availability_service, book, clock, resource, booking_day
    ):
        book()
        clock.advance(minutes=10)
        assert len(availability_service.get_available_slots(resource.id, booking_day)) == 2

    def test_paid_reservation_blocks_forever(
        self,
        availability_service,
        reconciliation_service,
        book,
        clock,
        student,
        grant_credits,
        resource,
        booking_day,
    ):
        grant_credits(student.user_id, 1)
        reservation, _ = book()
        reconciliation_service.pay_with_credits(student, reservation.id)
        clock.advance(days=3)
        assert Slot(time(8, 15), time(8, 55)) not in availability_service.get_available_slots(
            resource.id, booking_day
        )

    def test_cancelled_reservation_frees_slot(
        self, availability_service, reservation_service, book, student, resource, booking_day
    ):
        reservation, _ = book()
        reservation_service.cancel_reservation(student, reservation.id)
        assert availability_service.get_available_slots(resource.id, booking_day) == MONDAY_SLOTS

    def test_reservation_inside_window_hides_whole_window(
        self, availability_service, db, book, resource, booking_day
    ):
        db.add(
            ExtraSlot(
                resource_id=resource.id,
                date=booking_day,
                start_time=time(12, 0),
                end_time=time(14, 0),
            )
        )
        db.commit()
        book(start=time(12, 30), end=time(13, 0))
        slots = availability_service.get_available_slots(resource.id, booking_day)
        assert Slot(time(12, 0), time(14, 0)) not in slots
