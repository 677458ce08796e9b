import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any
from zoneinfo import ZoneInfo

from app.application.interfaces.availability_repo import AvailabilityRepo
from app.application.interfaces.booking_repo import BookingRepo
from app.application.interfaces.clock import Clock
from app.application.interfaces.id_generator import IdGenerator
from app.application.interfaces.identity import Principal
from app.application.interfaces.outbox_repo import OutboxRepo
from app.application.interfaces.transaction_manager import TransactionManager
from app.domain.constants import (
    AGGREGATE_BOOKING,
    CHECK_IN_CLOSES_AFTER_MINUTES,
    CHECK_IN_OPENS_BEFORE_MINUTES,
    DEFAULT_CURRENCY_CODE,
    DEFAULT_LESSON_TIMEZONE,
    EVENT_BOOKING_CANCELLED,
    EVENT_BOOKING_COMPLETED,
    EVENT_BOOKING_CONFIRMED,
    EVENT_REFUND_REQUESTED,
    FREE_CANCELLATION_WINDOW_HOURS,
    LESSON_EXPIRY_TOLERANCE_MINUTES,
    MAX_ADVANCE_NOTICE_HOURS,
    MAX_LESSON_DURATION_MINUTES,
    MIN_ADVANCE_NOTICE_HOURS,
    MIN_LESSON_DURATION_MINUTES,
)
from app.domain.entities.booking import (
    Booking,
    BookingPaymentStatus,
    BookingStatus,
    CancelledBy,
)
from app.domain.errors import (
    BookingNotFoundError,
    CheckInWindowClosedError,
    DoubleBookingError,
    InvalidAmountError,
    InvalidTransitionError,
    NotAuthorizedError,
    SlotUnavailableError,
    ValidationError,
)
from app.domain.services.time_window import check_in_eligibility, is_lesson_expired
from app.domain.value_objects.check_in_window import CheckInWindow
from app.domain.value_objects.lesson_schedule import LessonSchedule

_CENT = Decimal("0.01")

DEFAULT_CANCELLATION_REASONS = {
    CancelledBy.STUDENT: "Cancelado pelo aluno",
    CancelledBy.INSTRUCTOR: "Cancelado pelo instrutor",
}


@dataclass(frozen=True)
class LessonPolicy:
    opens_before_minutes: int = CHECK_IN_OPENS_BEFORE_MINUTES
    closes_after_minutes: int = CHECK_IN_CLOSES_AFTER_MINUTES
    expiry_tolerance_minutes: int = LESSON_EXPIRY_TOLERANCE_MINUTES
    free_cancellation_window_hours: int = FREE_CANCELLATION_WINDOW_HOURS
    tz: ZoneInfo = field(default_factory=lambda: ZoneInfo(DEFAULT_LESSON_TIMEZONE))

    @classmethod
    def from_settings(cls, settings: Any) -> "LessonPolicy":
        return cls(
            opens_before_minutes=settings.check_in_opens_before_minutes,
            closes_after_minutes=settings.check_in_closes_after_minutes,
            expiry_tolerance_minutes=settings.lesson_expiry_tolerance_minutes,
            free_cancellation_window_hours=settings.free_cancellation_window_hours,
            tz=settings.lesson_tz,
        )

    def check_in_window(self, booking: Booking, now: datetime) -> CheckInWindow:
        return check_in_eligibility(
            booking.scheduled_date,
            booking.scheduled_time,
            now,
            booking.duration_minutes,
            opens_before_minutes=self.opens_before_minutes,
            closes_after_minutes=self.closes_after_minutes,
            tz=self.tz,
        )

    def is_expired(self, booking: Booking, now: datetime) -> bool:
        return is_lesson_expired(
            booking.scheduled_date,
            booking.scheduled_time,
            now,
            tolerance_minutes=self.expiry_tolerance_minutes,
            tz=self.tz,
        )

    def hours_until(self, schedule: LessonSchedule, now: datetime) -> float:
        local_now = now.astimezone(self.tz).replace(tzinfo=None) if now.tzinfo else now
        return (schedule.starts_at - local_now).total_seconds() / 3600


class BookingStateMachine:
    """
    Owns booking status transitions.

    pending -> confirmed -> completed, pending|confirmed -> cancelled. Every transition
    is a conditional update keyed on the current status, so concurrent callers
    cannot both win.
    """

    def __init__(
        self,
        booking_repo: BookingRepo,
        availability_repo: AvailabilityRepo,
        outbox_repo: OutboxRepo,
        transaction_manager: TransactionManager,
        clock: Clock,
        id_generator: IdGenerator,
        policy: LessonPolicy | None = None,
        currency_code: str = DEFAULT_CURRENCY_CODE,
    ) -> None:
        self._booking_repo = booking_repo
        self._availability_repo = availability_repo
        self._outbox_repo = outbox_repo
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._id_generator = id_generator
        self._policy = policy or LessonPolicy()
        self._currency_code = currency_code
        self._logger = logging.getLogger(__name__)

    @property
    def policy(self) -> LessonPolicy:
        return self._policy

    async def get(self, booking_id: str) -> Booking:
        booking = await self._booking_repo.get_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        return booking

    async def create_pending(
        self,
        student_id: str,
        instructor_id: str,
        schedule: LessonSchedule,
        price: Decimal,
    ) -> Booking:
        price = self._validate_price(price)
        self._validate_schedule(schedule)

        async with self._transaction_manager.start():
            await self._availability_repo.lock_instructor_schedule(instructor_id)
            if not await self._availability_repo.has_open_slot(instructor_id, schedule):
                raise SlotUnavailableError(instructor_id, schedule.starts_at.isoformat())

            existing = await self._booking_repo.find_overlapping_booking(instructor_id, schedule)
            if existing is not None:
                raise DoubleBookingError(instructor_id, existing.id)

            now = self._clock.now()
            booking = await self._booking_repo.create_booking(
                Booking(
                    id=self._id_generator.generate_booking_id(),
                    student_id=student_id,
                    instructor_id=instructor_id,
                    scheduled_date=schedule.scheduled_date,
                    scheduled_time=schedule.scheduled_time,
                    duration_minutes=schedule.duration_minutes,
                    price=price,
                    currency_code=self._currency_code,
                    status=BookingStatus.PENDING,
                    payment_status=BookingPaymentStatus.UNPAID,
                    created_at=now,
                    updated_at=now,
                )
            )

        self._logger.info(
            "Booking created",
            extra={
                "booking_id": booking.id,
                "student_id": student_id,
                "instructor_id": instructor_id,
                "starts_at": schedule.starts_at.isoformat(),
            },
        )
        return booking

    async def confirm_on_payment(self, booking_id: str, payment_intent_id: str) -> Booking:
        now = self._clock.now()
        async with self._transaction_manager.start():
            booking = await self._transition(
                booking_id,
                expected=BookingStatus.PENDING,
                target=BookingStatus.CONFIRMED,
                fields={
                    "payment_status": BookingPaymentStatus.PAID,
                    "payment_intent_id": payment_intent_id,
                    "confirmed_at": now,
                },
            )
            await self._outbox_repo.enqueue(
                event_type=EVENT_BOOKING_CONFIRMED,
                aggregate_type=AGGREGATE_BOOKING,
                aggregate_code=booking.id,
                payload={
                    "booking_id": booking.id,
                    "student_id": booking.student_id,
                    "instructor_id": booking.instructor_id,
                    "payment_intent_id": payment_intent_id,
                },
            )
        self._logger.info(
            "Booking confirmed on payment",
            extra={"booking_id": booking.id, "payment_intent_id": payment_intent_id},
        )
        return booking

    async def complete_via_check_in(self, booking_id: str) -> Booking:
        booking = await self.get(booking_id)

        # A repeated scan lands here once the booking is already completed
        if not booking.can_transition_to(BookingStatus.COMPLETED):
            raise InvalidTransitionError(
                booking_id, booking.status.value, BookingStatus.COMPLETED.value
            )
        if not booking.is_paid:
            self._logger.error(
                "Confirmed booking without captured payment",
                extra={"booking_id": booking_id, "payment_status": booking.payment_status.value},
            )
            raise InvalidTransitionError(
                booking_id, booking.status.value, BookingStatus.COMPLETED.value
            )

        now = self._clock.now()
        window = self._policy.check_in_window(booking, now)
        if not window.available:
            raise CheckInWindowClosedError(booking_id, window.reason.value)

        async with self._transaction_manager.start():
            completed = await self._transition(
                booking_id,
                expected=BookingStatus.CONFIRMED,
                target=BookingStatus.COMPLETED,
                fields={"checked_in_at": now},
            )
            await self._outbox_repo.enqueue(
                event_type=EVENT_BOOKING_COMPLETED,
                aggregate_type=AGGREGATE_BOOKING,
                aggregate_code=completed.id,
                payload={
                    "booking_id": completed.id,
                    "student_id": completed.student_id,
                    "instructor_id": completed.instructor_id,
                    "payment_intent_id": completed.payment_intent_id,
                    "amount_cents": completed.price_cents,
                    "checked_in_at": now.isoformat(),
                },
            )
        self._logger.info(
            "Booking completed via check-in",
            extra={"booking_id": completed.id, "instructor_id": completed.instructor_id},
        )
        return completed

    async def cancel(
        self,
        booking_id: str,
        actor: Principal,
        reason: str | None = None,
    ) -> Booking:
        booking = await self.get(booking_id)
        party = actor.party_in(booking)
        if party is None:
            raise NotAuthorizedError(actor.user_id, booking_id, "cancelar")
        return await self._cancel(booking, party, reason or DEFAULT_CANCELLATION_REASONS[party])

    async def cancel_by_processor(
        self,
        booking_id: str,
        reason: str,
        refunded: bool = False,
    ) -> Booking:
        """Cancela por un evento del procesador (reembolso total, cuenta desconectada)."""
        booking = await self.get(booking_id)
        return await self._cancel(booking, CancelledBy.SYSTEM, reason, refunded=refunded)

    async def record_capture_after_cancellation(
        self, booking_id: str, payment_intent_id: str
    ) -> Booking:
        """
        Registra un cobro capturado después de cancelar el booking y pide su reembolso.

        El alumno canceló antes de que el dinero llegara, así que el reembolso es total.
        """
        booking = await self.get(booking_id)
        async with self._transaction_manager.start():
            updated = await self._booking_repo.conditional_update_booking_status(
                booking_id,
                BookingStatus.CANCELLED,
                {
                    "payment_status": BookingPaymentStatus.PAID,
                    "payment_intent_id": payment_intent_id,
                    "updated_at": self._clock.now(),
                },
                expected_fields={"payment_status": booking.payment_status},
            )
            if updated is not None:
                await self._enqueue_refund(
                    updated,
                    payment_intent_id,
                    cancelled_by=updated.cancelled_by,
                    within_free_cancellation_window=True,
                    reason="captured_after_cancellation",
                )
        if updated is not None:
            self._logger.warning(
                "Payment captured for cancelled booking",
                extra={"booking_id": booking_id, "payment_intent_id": payment_intent_id},
            )
            return updated

        current = await self.get(booking_id)
        if current.is_paid and current.payment_intent_id == payment_intent_id:
            return current
        raise InvalidTransitionError(booking_id, current.status.value, BookingStatus.CANCELLED.value)

    async def refund_duplicate_capture(self, booking_id: str, payment_intent_id: str) -> Booking:
        """Pide el reembolso de un cobro capturado para un booking ya pagado con otro intent."""
        booking = await self.get(booking_id)
        async with self._transaction_manager.start():
            await self._enqueue_refund(
                booking,
                payment_intent_id,
                cancelled_by=None,
                within_free_cancellation_window=True,
                reason="duplicate_capture",
            )
        self._logger.error(
            "Duplicate payment captured for booking",
            extra={
                "booking_id": booking_id,
                "payment_intent_id": payment_intent_id,
                "booking_payment_intent_id": booking.payment_intent_id,
            },
        )
        return booking

    async def mark_refunded(self, booking_id: str, payment_intent_id: str) -> Booking:
        """Marca como reembolsado el pago de un booking ya cancelado."""
        async with self._transaction_manager.start():
            updated = await self._booking_repo.conditional_update_booking_status(
                booking_id,
                BookingStatus.CANCELLED,
                {"payment_status": BookingPaymentStatus.REFUNDED, "updated_at": self._clock.now()},
                expected_fields={
                    "payment_intent_id": payment_intent_id,
                    "payment_status": BookingPaymentStatus.PAID,
                },
            )
        if updated is None:
            # Replayed refund or a different intent
            return await self.get(booking_id)
        self._logger.info(
            "Refund applied to cancelled booking",
            extra={"booking_id": booking_id, "payment_intent_id": payment_intent_id},
        )
        return updated

    async def _cancel(
        self,
        booking: Booking,
        party: CancelledBy,
        reason: str,
        refunded: bool = False,
    ) -> Booking:
        # One retry: a confirmation landing between the read and the write keeps
        # the booking cancellable
        for attempt in range(2):
            if not booking.can_transition_to(BookingStatus.CANCELLED):
                raise InvalidTransitionError(
                    booking.id, booking.status.value, BookingStatus.CANCELLED.value
                )

            now = self._clock.now()
            fields = {
                "status": BookingStatus.CANCELLED,
                "cancelled_at": now,
                "cancelled_by": party,
                "cancellation_reason": reason,
                "updated_at": now,
            }
            if refunded:
                fields["payment_status"] = BookingPaymentStatus.REFUNDED

            async with self._transaction_manager.start():
                cancelled = await self._booking_repo.conditional_update_booking_status(
                    booking.id, booking.status, fields
                )
                if cancelled is not None:
                    await self._enqueue_cancellation(cancelled, party, now)
            if cancelled is not None:
                self._logger.info(
                    "Booking cancelled",
                    extra={"booking_id": cancelled.id, "cancelled_by": party.value},
                )
                return cancelled

            expected = booking.status
            booking = await self.get(booking.id)
            self._logger.warning(
                "Conditional booking update rejected",
                extra={
                    "booking_id": booking.id,
                    "expected_status": expected.value,
                    "current_status": booking.status.value,
                    "target_status": BookingStatus.CANCELLED.value,
                    "attempt": attempt + 1,
                },
            )

        raise InvalidTransitionError(booking.id, booking.status.value, BookingStatus.CANCELLED.value)

    async def _enqueue_cancellation(self, cancelled: Booking, party: CancelledBy, now: datetime) -> None:
        if cancelled.is_paid:
            hours_until = self._policy.hours_until(cancelled.schedule, now)
            await self._enqueue_refund(
                cancelled,
                cancelled.payment_intent_id,
                cancelled_by=party,
                within_free_cancellation_window=hours_until
                >= self._policy.free_cancellation_window_hours,
                reason="booking_cancelled",
            )

        await self._outbox_repo.enqueue(
            event_type=EVENT_BOOKING_CANCELLED,
            aggregate_type=AGGREGATE_BOOKING,
            aggregate_code=cancelled.id,
            payload={
                "booking_id": cancelled.id,
                "student_id": cancelled.student_id,
                "instructor_id": cancelled.instructor_id,
                "cancelled_by": party.value,
            },
        )

    async def _enqueue_refund(
        self,
        booking: Booking,
        payment_intent_id: str | None,
        cancelled_by: CancelledBy | None,
        within_free_cancellation_window: bool,
        reason: str,
    ) -> None:
        await self._outbox_repo.enqueue(
            event_type=EVENT_REFUND_REQUESTED,
            aggregate_type=AGGREGATE_BOOKING,
            aggregate_code=booking.id,
            payload={
                "booking_id": booking.id,
                "payment_intent_id": payment_intent_id,
                "amount_cents": booking.price_cents,
                "cancelled_by": cancelled_by.value if cancelled_by else None,
                "within_free_cancellation_window": within_free_cancellation_window,
                "reason": reason,
            },
        )
        self._logger.info(
            "Refund requested",
            extra={"booking_id": booking.id, "payment_intent_id": payment_intent_id, "reason": reason},
        )

    async def _transition(
        self,
        booking_id: str,
        expected: BookingStatus,
        target: BookingStatus,
        fields: dict[str, Any],
    ) -> Booking:
        updated = await self._booking_repo.conditional_update_booking_status(
            booking_id,
            expected,
            {**fields, "status": target, "updated_at": self._clock.now()},
        )
        if updated is not None:
            return updated

        current = await self._booking_repo.get_booking(booking_id)
        if current is None:
            raise BookingNotFoundError(booking_id)
        self._logger.warning(
            "Conditional booking update rejected",
            extra={
                "booking_id": booking_id,
                "expected_status": expected.value,
                "current_status": current.status.value,
                "target_status": target.value,
            },
        )
        raise InvalidTransitionError(booking_id, current.status.value, target.value)

    def _validate_price(self, price: Decimal) -> Decimal:
        try:
            value = Decimal(str(price))
        except InvalidOperation as exc:
            raise InvalidAmountError(f"Precio inválido: {price!r}") from exc
        if not value.is_finite() or value <= 0:
            raise InvalidAmountError(f"El precio debe ser positivo: {price}")
        if value != value.quantize(_CENT):
            raise InvalidAmountError(f"El precio admite como máximo 2 decimales: {price}")
        return value.quantize(_CENT)

    def _validate_schedule(self, schedule: LessonSchedule) -> None:
        if not MIN_LESSON_DURATION_MINUTES <= schedule.duration_minutes <= MAX_LESSON_DURATION_MINUTES:
            raise ValidationError(
                "duration_minutes",
                f"debe estar entre {MIN_LESSON_DURATION_MINUTES} y "
                f"{MAX_LESSON_DURATION_MINUTES} minutos",
            )
        hours_ahead = self._policy.hours_until(schedule, self._clock.now())
        if hours_ahead < MIN_ADVANCE_NOTICE_HOURS:
            raise ValidationError(
                "scheduled_time",
                f"agendar con mínimo {MIN_ADVANCE_NOTICE_HOURS}h de antecedencia",
            )
        if hours_ahead > MAX_ADVANCE_NOTICE_HOURS:
            raise ValidationError(
                "scheduled_date",
                f"agendar con máximo {MAX_ADVANCE_NOTICE_HOURS}h de antecedencia",
            )
