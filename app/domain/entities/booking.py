"""Entidad Booking - Agregado raíz del dominio."""

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum

from app.domain.constants import (
    DEFAULT_CURRENCY_CODE,
    DEFAULT_LESSON_DURATION_MINUTES,
)
from app.domain.value_objects.lesson_schedule import LessonSchedule
from app.domain.value_objects.money import Money


class BookingStatus(str, Enum):
    """Estados posibles de un booking."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BookingPaymentStatus(str, Enum):
    """Estados de pago de un booking."""

    UNPAID = "unpaid"
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class CancelledBy(str, Enum):
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    # Cancelaciones originadas por el procesador de pagos
    SYSTEM = "system"


# completed y cancelled son terminales
ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


@dataclass
class Booking:
    """
    Clase de manejo agendada entre un alumno y un instructor.

    Solo se modifica a través de la máquina de estados (actualización condicional
    sobre el estado actual en el repositorio).
    """

    # Identificadores
    id: str
    student_id: str
    instructor_id: str

    # Horario
    scheduled_date: date
    scheduled_time: time
    duration_minutes: int = DEFAULT_LESSON_DURATION_MINUTES

    # Financieros
    price: Decimal = Decimal("0")
    currency_code: str = DEFAULT_CURRENCY_CODE

    # Estados
    status: BookingStatus = BookingStatus.PENDING
    payment_status: BookingPaymentStatus = BookingPaymentStatus.UNPAID
    payment_intent_id: str | None = None

    # Check-in y cancelación
    checked_in_at: datetime | None = None
    confirmed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancelled_by: CancelledBy | None = None
    cancellation_reason: str | None = None

    # Control de concurrencia
    lock_version: int = 0

    # Timestamps
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # === Propiedades calculadas ===

    @property
    def schedule(self) -> LessonSchedule:
        return LessonSchedule(
            scheduled_date=self.scheduled_date,
            scheduled_time=self.scheduled_time,
            duration_minutes=self.duration_minutes,
        )

    @property
    def money(self) -> Money:
        """Retorna el precio como Value Object Money."""
        return Money(amount=self.price, currency_code=self.currency_code)

    @property
    def price_cents(self) -> int:
        return self.money.to_cents()

    @property
    def is_paid(self) -> bool:
        return self.payment_status == BookingPaymentStatus.PAID

    @property
    def has_active_payment(self) -> bool:
        """Hay un cobro creado que todavía no falló."""
        return bool(self.payment_intent_id) and self.payment_status in (
            BookingPaymentStatus.PENDING,
            BookingPaymentStatus.PAID,
        )

    def can_transition_to(self, target: BookingStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]

