"""Entidades del dominio de clases."""

from app.domain.entities.availability_slot import AvailabilitySlot
from app.domain.entities.booking import (
    ALLOWED_TRANSITIONS,
    Booking,
    BookingPaymentStatus,
    BookingStatus,
    CancelledBy,
)
from app.domain.entities.payout_account import PayoutAccount

__all__ = [
    # Booking
    "ALLOWED_TRANSITIONS",
    "Booking",
    "BookingStatus",
    "BookingPaymentStatus",
    "CancelledBy",
    # Instructor
    "AvailabilitySlot",
    "PayoutAccount",
]
