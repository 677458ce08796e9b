import logging

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_principal, get_use_cases
from app.api.schemas.bookings import (
    BookingResponse,
    CancelBookingRequest,
    CheckInRequest,
    CheckInResponse,
    CheckInTokenResponse,
    CheckInWindowResponse,
    CreateBookingRequest,
)
from app.application.interfaces.identity import Principal, Role
from app.domain.entities.booking import BookingStatus
from app.domain.errors import InvalidTransitionError, NotAuthorizedError
from app.domain.value_objects.lesson_schedule import LessonSchedule

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/bookings",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_booking(
    payload: CreateBookingRequest,
    principal: Principal = Depends(get_principal),
    use_cases=Depends(get_use_cases),
) -> BookingResponse:
    if principal.role != Role.STUDENT:
        raise NotAuthorizedError(principal.user_id, "nuevo", "crear")
    booking = await use_cases["bookings"].create_pending(
        student_id=principal.user_id,
        instructor_id=payload.instructor_id,
        schedule=LessonSchedule(
            scheduled_date=payload.scheduled_date,
            scheduled_time=payload.scheduled_time,
            duration_minutes=payload.duration_minutes,
        ),
        price=payload.price,
    )
    return BookingResponse.from_entity(booking)


@router.get("/bookings/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    principal: Principal = Depends(get_principal),
    use_cases=Depends(get_use_cases),
) -> BookingResponse:
    booking = await use_cases["bookings"].get(booking_id)
    if principal.party_in(booking) is None:
        raise NotAuthorizedError(principal.user_id, booking_id, "ver")
    return BookingResponse.from_entity(booking)


@router.get("/bookings/{booking_id}/check-in-window", response_model=CheckInWindowResponse)
async def get_check_in_window(
    booking_id: str,
    principal: Principal = Depends(get_principal),
    use_cases=Depends(get_use_cases),
) -> CheckInWindowResponse:
    """Evaluated fresh on every call; clients poll about once a minute."""
    booking, window, expired = await use_cases["check_in"].check_in_window(booking_id)
    if principal.party_in(booking) is None:
        raise NotAuthorizedError(principal.user_id, booking_id, "ver")
    return CheckInWindowResponse(
        booking_id=booking.id,
        available=window.available,
        reason=window.reason.value,
        opens_at=window.opens_at,
        closes_at=window.closes_at,
        expired=expired,
    )


@router.post(
    "/bookings/{booking_id}/check-in/token",
    response_model=CheckInTokenResponse,
    status_code=status.HTTP_201_CREATED,
)
async def mint_check_in_token(
    booking_id: str,
    principal: Principal = Depends(get_principal),
    use_cases=Depends(get_use_cases),
) -> CheckInTokenResponse:
    token = await use_cases["check_in"].mint_token(principal, booking_id)
    return CheckInTokenResponse(
        booking_id=token.booking_id,
        action=token.action,
        timestamp=token.issued_at_epoch_millis,
        signed=token.signature is not None,
        qr_payload=token.encode(),
    )


@router.post("/bookings/{booking_id}/check-in", response_model=CheckInResponse)
async def check_in(
    booking_id: str,
    payload: CheckInRequest,
    principal: Principal = Depends(get_principal),
    use_cases=Depends(get_use_cases),
) -> CheckInResponse:
    try:
        booking = await use_cases["check_in"].validate_and_complete(
            principal, booking_id, payload.payload
        )
    except InvalidTransitionError as exc:
        # A second scan of the same code is not an error for the student
        if exc.current_status != BookingStatus.COMPLETED.value:
            raise
        booking = await use_cases["bookings"].get(booking_id)
        logger.info("Check-in repeated on completed booking", extra={"booking_id": booking_id})
        return CheckInResponse(booking=BookingResponse.from_entity(booking), already_completed=True)
    return CheckInResponse(booking=BookingResponse.from_entity(booking))


@router.post("/bookings/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str,
    payload: CancelBookingRequest | None = None,
    principal: Principal = Depends(get_principal),
    use_cases=Depends(get_use_cases),
) -> BookingResponse:
    booking = await use_cases["bookings"].cancel(
        booking_id,
        actor=principal,
        reason=payload.reason if payload else None,
    )
    return BookingResponse.from_entity(booking)
