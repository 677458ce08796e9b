from datetime import timedelta
from decimal import Decimal
from enum import Enum
from typing import Any

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.booking_repo import BookingRepo
from app.domain.entities.booking import (
    Booking,
    BookingPaymentStatus,
    BookingStatus,
    CancelledBy,
)
from app.domain.value_objects.lesson_schedule import LessonSchedule
from app.infrastructure.db.tables import bookings


def _column_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class BookingRepoSQL(BookingRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def _to_entity(self, row: Any) -> Booking:
        return Booking(
            id=row["id"],
            student_id=row["student_id"],
            instructor_id=row["instructor_id"],
            scheduled_date=row["scheduled_date"],
            scheduled_time=row["scheduled_time"],
            duration_minutes=row["duration_minutes"],
            price=Decimal(str(row["price"])),
            currency_code=row["currency_code"],
            status=BookingStatus(row["status"]),
            payment_status=BookingPaymentStatus(row["payment_status"]),
            payment_intent_id=row["payment_intent_id"],
            checked_in_at=row["checked_in_at"],
            confirmed_at=row["confirmed_at"],
            cancelled_at=row["cancelled_at"],
            cancelled_by=CancelledBy(row["cancelled_by"]) if row["cancelled_by"] else None,
            cancellation_reason=row["cancellation_reason"],
            lock_version=row["lock_version"] or 0,
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    async def get_booking(self, booking_id: str) -> Booking | None:
        stmt = select(bookings).where(bookings.c.id == booking_id).limit(1)
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        return self._to_entity(row) if row else None

    async def create_booking(self, booking: Booking) -> Booking:
        stmt = insert(bookings).values(
            id=booking.id,
            student_id=booking.student_id,
            instructor_id=booking.instructor_id,
            scheduled_date=booking.scheduled_date,
            scheduled_time=booking.scheduled_time,
            duration_minutes=booking.duration_minutes,
            price=booking.price,
            currency_code=booking.currency_code,
            status=booking.status.value,
            payment_status=booking.payment_status.value,
            payment_intent_id=booking.payment_intent_id,
            lock_version=booking.lock_version,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
        )
        await self._session.execute(stmt)
        return booking

    async def conditional_update_booking_status(
        self,
        booking_id: str,
        expected_status: BookingStatus,
        fields: dict[str, Any],
        expected_fields: dict[str, Any] | None = None,
    ) -> Booking | None:
        values = {key: _column_value(value) for key, value in fields.items()}
        conditions = [
            bookings.c.id == booking_id,
            bookings.c.status == expected_status.value,
        ]
        for name, value in (expected_fields or {}).items():
            column = bookings.c[name]
            conditions.append(column.is_(None) if value is None else column == _column_value(value))
        stmt = (
            update(bookings)
            .where(*conditions)
            .values(**values, lock_version=bookings.c.lock_version + 1)
        )
        result = await self._session.execute(stmt)
        if result.rowcount != 1:
            return None
        return await self.get_booking(booking_id)

    async def find_overlapping_booking(
        self,
        instructor_id: str,
        schedule: LessonSchedule,
    ) -> Booking | None:
        # Lessons are at most a few hours long; neighbouring days cover midnight crossings
        day = schedule.scheduled_date
        stmt = select(bookings).where(
            bookings.c.instructor_id == instructor_id,
            bookings.c.status != BookingStatus.CANCELLED.value,
            bookings.c.scheduled_date.in_(
                (day - timedelta(days=1), day, day + timedelta(days=1))
            ),
        )
        result = await self._session.execute(stmt)
        for row in result.mappings().all():
            booking = self._to_entity(row)
            if booking.schedule.overlaps_with(schedule):
                return booking
        return None

    async def find_by_payment_intent(self, payment_intent_id: str) -> Booking | None:
        stmt = (
            select(bookings)
            .where(bookings.c.payment_intent_id == payment_intent_id)
            .limit(1)
        )
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        return self._to_entity(row) if row else None

    async def find_pending_by_instructor(self, instructor_id: str) -> list[Booking]:
        stmt = select(bookings).where(
            bookings.c.instructor_id == instructor_id,
            bookings.c.status == BookingStatus.PENDING.value,
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(row) for row in result.mappings().all()]
