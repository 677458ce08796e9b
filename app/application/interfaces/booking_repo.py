from typing import Any

from app.domain.entities.booking import Booking, BookingStatus
from app.domain.value_objects.lesson_schedule import LessonSchedule


class BookingRepo:
    """
    Puerto de persistencia de bookings.

    `conditional_update_booking_status` debe ser atómico: aplica `fields` solo si el
    estado actual coincide con `expected_status` (y con cada columna de
    `expected_fields`, donde None significa NULL) y retorna None en caso contrario.
    """

    async def get_booking(self, booking_id: str) -> Booking | None:
        raise NotImplementedError

    async def create_booking(self, booking: Booking) -> Booking:
        raise NotImplementedError

    async def conditional_update_booking_status(
        self,
        booking_id: str,
        expected_status: BookingStatus,
        fields: dict[str, Any],
        expected_fields: dict[str, Any] | None = None,
    ) -> Booking | None:
        raise NotImplementedError

    async def find_overlapping_booking(
        self,
        instructor_id: str,
        schedule: LessonSchedule,
    ) -> Booking | None:
        raise NotImplementedError

    async def find_by_payment_intent(self, payment_intent_id: str) -> Booking | None:
        raise NotImplementedError

    async def find_pending_by_instructor(self, instructor_id: str) -> list[Booking]:
        raise NotImplementedError
