from datetime import date, datetime, time
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, condecimal, constr, field_serializer

from app.domain.entities.booking import Booking

Money = condecimal(max_digits=10, decimal_places=2)


class CreateBookingRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    instructor_id: constr(strip_whitespace=True, min_length=1, max_length=36)
    scheduled_date: date
    scheduled_time: time
    duration_minutes: int = Field(default=50)
    price: Money


class BookingResponse(BaseModel):
    id: str
    student_id: str
    instructor_id: str
    scheduled_date: date
    scheduled_time: time
    duration_minutes: int
    price: Money
    price_cents: int
    currency_code: constr(min_length=3, max_length=3)
    status: str
    payment_status: str
    payment_intent_id: str | None = None
    checked_in_at: datetime | None = None
    confirmed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancelled_by: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_serializer("price")
    def _serialize_price(self, price: Decimal) -> str:
        return format(price, ".2f")

    @classmethod
    def from_entity(cls, booking: Booking) -> "BookingResponse":
        return cls(
            id=booking.id,
            student_id=booking.student_id,
            instructor_id=booking.instructor_id,
            scheduled_date=booking.scheduled_date,
            scheduled_time=booking.scheduled_time,
            duration_minutes=booking.duration_minutes,
            price=booking.price,
            price_cents=booking.price_cents,
            currency_code=booking.currency_code,
            status=booking.status.value,
            payment_status=booking.payment_status.value,
            payment_intent_id=booking.payment_intent_id,
            checked_in_at=booking.checked_in_at,
            confirmed_at=booking.confirmed_at,
            cancelled_at=booking.cancelled_at,
            cancelled_by=booking.cancelled_by.value if booking.cancelled_by else None,
            cancellation_reason=booking.cancellation_reason,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
        )


class CheckInWindowResponse(BaseModel):
    booking_id: str
    available: bool
    reason: str
    opens_at: datetime | None = None
    closes_at: datetime | None = None
    expired: bool


class CheckInTokenResponse(BaseModel):
    booking_id: str
    action: str
    timestamp: int
    signed: bool
    qr_payload: str


class CheckInRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    payload: constr(min_length=1, max_length=2048)


class CheckInResponse(BaseModel):
    booking: BookingResponse
    already_completed: bool = False


class CancelBookingRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reason: constr(strip_whitespace=True, max_length=500) | None = None
