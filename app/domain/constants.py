"""Constantes del dominio de clases de manejo."""

from decimal import Decimal

BOOKING_STATUS_PENDING = "pending"
BOOKING_STATUS_CONFIRMED = "confirmed"
BOOKING_STATUS_COMPLETED = "completed"
BOOKING_STATUS_CANCELLED = "cancelled"

PAYMENT_STATUS_UNPAID = "unpaid"
PAYMENT_STATUS_PENDING = "pending"
PAYMENT_STATUS_PAID = "paid"
PAYMENT_STATUS_FAILED = "failed"
PAYMENT_STATUS_REFUNDED = "refunded"

CHECK_IN_ACTION_COMPLETE = "complete"

DEFAULT_LESSON_DURATION_MINUTES = 50
DEFAULT_PLATFORM_FEE_RATE = Decimal("0.15")
DEFAULT_CURRENCY_CODE = "BRL"

# Ventana de check-in relativa al inicio programado (no al final de la clase)
CHECK_IN_OPENS_BEFORE_MINUTES = 15
CHECK_IN_CLOSES_AFTER_MINUTES = 30
LESSON_EXPIRY_TOLERANCE_MINUTES = 30

FREE_CANCELLATION_WINDOW_HOURS = 24

# Límites de agendamiento
MIN_LESSON_DURATION_MINUTES = 30
MAX_LESSON_DURATION_MINUTES = 180
MIN_ADVANCE_NOTICE_HOURS = 2
MAX_ADVANCE_NOTICE_HOURS = 720

# Eventos del outbox
EVENT_BOOKING_CONFIRMED = "BOOKING_CONFIRMED"
EVENT_BOOKING_COMPLETED = "BOOKING_COMPLETED"
EVENT_BOOKING_CANCELLED = "BOOKING_CANCELLED"
EVENT_REFUND_REQUESTED = "REFUND_REQUESTED"
AGGREGATE_BOOKING = "booking"

DEFAULT_LESSON_TIMEZONE = "America/Sao_Paulo"
