"""
Capa de Dominio - Ciclo de vida de clases de manejo.

Esta capa contiene la lógica de negocio pura, sin dependencias de frameworks.
Incluye entidades, value objects, políticas puras y excepciones de dominio.

Estructura:
- entities/: Entidades del dominio (Booking, PayoutAccount, AvailabilitySlot)
- value_objects/: Objetos de valor inmutables (LessonSchedule, FeeSplit, CheckInToken, ...)
- services/: Políticas puras (ventanas de tiempo, división de comisión)
- errors.py: Excepciones específicas del dominio
- constants.py: Constantes del dominio
"""

from app.domain.entities import (
    AvailabilitySlot,
    Booking,
    BookingPaymentStatus,
    BookingStatus,
    CancelledBy,
    PayoutAccount,
)
from app.domain.errors import (
    AmountMismatchError,
    BookingMismatchError,
    BookingNotFoundError,
    CheckInWindowClosedError,
    DomainError,
    DoubleBookingError,
    IneligibleError,
    InvalidAmountError,
    InvalidTransitionError,
    InvalidWebhookEventError,
    MalformedTokenError,
    NotAuthorizedError,
    PaymentAlreadyInitiatedError,
    PaymentProviderError,
    PayoutAccountNotReadyError,
    SlotUnavailableError,
    ValidationError,
)
from app.domain.value_objects import (
    CheckInReason,
    CheckInToken,
    CheckInWindow,
    FeeSplit,
    LessonSchedule,
    Money,
)

__all__ = [
    # Entities
    "Booking",
    "BookingStatus",
    "BookingPaymentStatus",
    "CancelledBy",
    "AvailabilitySlot",
    "PayoutAccount",
    # Value Objects
    "CheckInReason",
    "CheckInToken",
    "CheckInWindow",
    "FeeSplit",
    "LessonSchedule",
    "Money",
    # Errors
    "DomainError",
    "BookingNotFoundError",
    "InvalidTransitionError",
    "SlotUnavailableError",
    "DoubleBookingError",
    "NotAuthorizedError",
    "CheckInWindowClosedError",
    "IneligibleError",
    "MalformedTokenError",
    "BookingMismatchError",
    "InvalidAmountError",
    "AmountMismatchError",
    "PayoutAccountNotReadyError",
    "PaymentAlreadyInitiatedError",
    "PaymentProviderError",
    "ValidationError",
    "InvalidWebhookEventError",
]
