"""Excepciones de dominio para el ciclo de vida de clases de manejo."""


class DomainError(Exception):
    """Clase base para todos los errores de dominio."""

    retryable = False

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)

    def context(self) -> dict:
        """Datos adicionales expuestos al cliente junto al código."""
        return {}


# === Errores de Booking ===


class BookingNotFoundError(DomainError):
    """El booking no existe."""

    def __init__(self, booking_id: str | None = None, payment_intent_id: str | None = None):
        identifier = booking_id if booking_id else f"payment intent {payment_intent_id}"
        super().__init__(
            message=f"Booking no encontrado: {identifier}",
            code="NOT_FOUND",
        )
        self.booking_id = booking_id
        self.payment_intent_id = payment_intent_id


class InvalidTransitionError(DomainError):
    """El estado actual del booking no permite la transición."""

    def __init__(self, booking_id: str, current_status: str, target_status: str):
        super().__init__(
            message=f"Transición inválida para booking {booking_id}: "
            f"'{current_status}' -> '{target_status}'",
            code="INVALID_TRANSITION",
        )
        self.booking_id = booking_id
        self.current_status = current_status
        self.target_status = target_status

    def context(self) -> dict:
        return {"current_status": self.current_status, "target_status": self.target_status}


class SlotUnavailableError(DomainError):
    """El instructor no tiene disponibilidad abierta para el horario."""

    def __init__(self, instructor_id: str, starts_at: str):
        super().__init__(
            message=f"El instructor {instructor_id} no tiene horario disponible en {starts_at}",
            code="SLOT_UNAVAILABLE",
        )
        self.instructor_id = instructor_id
        self.starts_at = starts_at


class DoubleBookingError(DomainError):
    """El instructor ya tiene un booking activo que se superpone."""

    def __init__(self, instructor_id: str, existing_booking_id: str):
        super().__init__(
            message=f"El instructor {instructor_id} ya tiene el booking "
            f"{existing_booking_id} en ese horario",
            code="DOUBLE_BOOKING",
        )
        self.instructor_id = instructor_id
        self.existing_booking_id = existing_booking_id


class NotAuthorizedError(DomainError):
    """El usuario no participa del booking o no tiene el rol requerido."""

    def __init__(self, user_id: str, booking_id: str, operation: str):
        super().__init__(
            message=f"El usuario {user_id} no puede {operation} el booking {booking_id}",
            code="NOT_AUTHORIZED",
        )
        self.user_id = user_id
        self.booking_id = booking_id
        self.operation = operation


# === Errores de Check-in ===


class CheckInWindowClosedError(DomainError):
    """La ventana de check-in no está abierta (too_early / too_late)."""

    def __init__(self, booking_id: str, reason: str):
        super().__init__(
            message=f"Check-in no disponible para booking {booking_id}: {reason}",
            code="CHECK_IN_WINDOW_CLOSED",
        )
        self.booking_id = booking_id
        self.reason = reason

    def context(self) -> dict:
        return {"reason": self.reason}


class IneligibleError(DomainError):
    """El instructor no puede generar el código de check-in."""

    def __init__(self, booking_id: str, reason: str):
        super().__init__(
            message=f"No es posible generar el código de check-in para {booking_id}: {reason}",
            code="INELIGIBLE",
        )
        self.booking_id = booking_id
        self.reason = reason

    def context(self) -> dict:
        return {"reason": self.reason}


class MalformedTokenError(DomainError):
    """El payload escaneado no es un token de check-in válido."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Código de check-in inválido: {reason}",
            code="MALFORMED_TOKEN",
        )
        self.reason = reason

    def context(self) -> dict:
        return {"reason": self.reason}


class BookingMismatchError(DomainError):
    """El token pertenece a otra clase."""

    def __init__(self, expected_booking_id: str, token_booking_id: str):
        super().__init__(
            message=f"El código escaneado pertenece al booking {token_booking_id}, "
            f"no a {expected_booking_id}",
            code="BOOKING_MISMATCH",
        )
        self.expected_booking_id = expected_booking_id
        self.token_booking_id = token_booking_id


# === Errores de Pago ===


class InvalidAmountError(DomainError):
    """Monto inválido para el cálculo o cobro."""

    def __init__(self, message: str):
        super().__init__(message=message, code="INVALID_AMOUNT")


class AmountMismatchError(DomainError):
    """El monto enviado no coincide con el precio registrado del booking."""

    def __init__(self, booking_id: str, expected_cents: int, received_cents: int):
        super().__init__(
            message=f"Monto inválido para booking {booking_id}: "
            f"esperado {expected_cents}, recibido {received_cents}",
            code="AMOUNT_MISMATCH",
        )
        self.booking_id = booking_id
        self.expected_cents = expected_cents
        self.received_cents = received_cents


class PayoutAccountNotReadyError(DomainError):
    """La cuenta de pagos del instructor no está habilitada."""

    def __init__(self, instructor_id: str):
        super().__init__(
            message=f"El instructor {instructor_id} no completó el onboarding de pagos",
            code="PAYOUT_ACCOUNT_NOT_READY",
        )
        self.instructor_id = instructor_id


class PaymentAlreadyInitiatedError(DomainError):
    """El booking ya tiene un cobro en curso o pagado."""

    def __init__(self, booking_id: str, payment_intent_id: str, payment_status: str):
        super().__init__(
            message=f"El booking {booking_id} ya tiene el cobro {payment_intent_id} "
            f"({payment_status})",
            code="PAYMENT_ALREADY_INITIATED",
        )
        self.booking_id = booking_id
        self.payment_intent_id = payment_intent_id
        self.payment_status = payment_status

    def context(self) -> dict:
        return {"payment_intent_id": self.payment_intent_id, "payment_status": self.payment_status}


class PaymentProviderError(DomainError):
    """Error del procesador de pagos; el cliente puede reintentar."""

    retryable = True

    def __init__(self, provider_message: str):
        super().__init__(
            message=f"Error del procesador de pagos: {provider_message}",
            code="PAYMENT_PROVIDER_ERROR",
        )
        self.provider_message = provider_message


# === Errores de Validación ===


class ValidationError(DomainError):
    """Error de validación de datos de entrada."""

    def __init__(self, field: str, message: str):
        super().__init__(
            message=f"Validación fallida en '{field}': {message}",
            code="VALIDATION_ERROR",
        )
        self.field = field

    def context(self) -> dict:
        return {"field": self.field}


class InvalidWebhookEventError(DomainError):
    """El webhook del procesador no pudo verificarse o interpretarse."""

    def __init__(self, message: str):
        super().__init__(message=message, code="INVALID_WEBHOOK_EVENT")
