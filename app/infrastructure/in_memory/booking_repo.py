from dataclasses import replace
from typing import Any

from app.application.interfaces.booking_repo import BookingRepo
from app.domain.entities.booking import Booking, BookingStatus
from app.domain.value_objects.lesson_schedule import LessonSchedule


class InMemoryBookingRepo(BookingRepo):
    def __init__(self) -> None:
        self.bookings: dict[str, Booking] = {}

    async def get_booking(self, booking_id: str) -> Booking | None:
        booking = self.bookings.get(booking_id)
        return replace(booking) if booking else None

    async def create_booking(self, booking: Booking) -> Booking:
        if booking.id in self.bookings:
            raise ValueError("Booking id already exists")
        self.bookings[booking.id] = replace(booking)
        return replace(booking)

    async def conditional_update_booking_status(
        self,
        booking_id: str,
        expected_status: BookingStatus,
        fields: dict[str, Any],
        expected_fields: dict[str, Any] | None = None,
    ) -> Booking | None:
        # No awaits between the check and the write: atomic on the event loop
        current = self.bookings.get(booking_id)
        if current is None or current.status != expected_status:
            return None
        for name, value in (expected_fields or {}).items():
            if getattr(current, name) != value:
                return None
        updated = replace(current, **fields, lock_version=current.lock_version + 1)
        self.bookings[booking_id] = updated
        return replace(updated)

    async def find_overlapping_booking(
        self,
        instructor_id: str,
        schedule: LessonSchedule,
    ) -> Booking | None:
        for booking in self.bookings.values():
            if booking.instructor_id != instructor_id:
                continue
            if booking.status == BookingStatus.CANCELLED:
                continue
            if booking.schedule.overlaps_with(schedule):
                return replace(booking)
        return None

    async def find_by_payment_intent(self, payment_intent_id: str) -> Booking | None:
        for booking in self.bookings.values():
            if booking.payment_intent_id == payment_intent_id:
                return replace(booking)
        return None

    async def find_pending_by_instructor(self, instructor_id: str) -> list[Booking]:
        return [
            replace(booking)
            for booking in self.bookings.values()
            if booking.instructor_id == instructor_id and booking.status == BookingStatus.PENDING
        ]
