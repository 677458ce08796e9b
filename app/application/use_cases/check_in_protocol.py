import logging

from app.application.interfaces.clock import Clock
from app.application.interfaces.identity import Principal, Role
from app.application.use_cases.booking_state_machine import BookingStateMachine
from app.domain.entities.booking import Booking, BookingStatus
from app.domain.errors import (
    BookingMismatchError,
    IneligibleError,
    MalformedTokenError,
    NotAuthorizedError,
)
from app.domain.value_objects.check_in_token import CheckInToken
from app.domain.value_objects.check_in_window import CheckInWindow


class CheckInProtocol:
    """
    In-person check-in: the instructor device mints a QR payload, the student
    device scans it and the booking is completed.

    When `token_secret` is set tokens are HMAC-signed and expire after
    `token_max_age_seconds`; otherwise the payload is the plain JSON contract.
    """

    def __init__(
        self,
        state_machine: BookingStateMachine,
        clock: Clock,
        token_secret: str | None = None,
        token_max_age_seconds: int = 300,
    ) -> None:
        self._state_machine = state_machine
        self._clock = clock
        self._token_secret = token_secret
        self._token_max_age_seconds = token_max_age_seconds
        self._logger = logging.getLogger(__name__)

    async def mint_token(self, principal: Principal, booking_id: str) -> CheckInToken:
        if not principal.is_instructor:
            raise IneligibleError(booking_id, "not_instructor")

        booking = await self._state_machine.get(booking_id)
        if booking.instructor_id != principal.instructor_id:
            raise IneligibleError(booking_id, "not_counterparty")
        if booking.status != BookingStatus.CONFIRMED:
            raise IneligibleError(booking_id, "booking_not_confirmed")

        window = self._state_machine.policy.check_in_window(booking, self._clock.now())
        if not window.available:
            raise IneligibleError(booking_id, window.reason.value)

        token = CheckInToken(
            booking_id=booking.id,
            issued_at_epoch_millis=self._clock.now_epoch_millis(),
        )
        if self._token_secret:
            token = token.sign(self._token_secret)

        self._logger.info(
            "Check-in token minted",
            extra={"booking_id": booking.id, "instructor_id": principal.instructor_id},
        )
        return token

    async def validate_and_complete(
        self,
        principal: Principal,
        booking_id: str,
        scanned_payload: str,
    ) -> Booking:
        token = CheckInToken.decode(scanned_payload)

        if token.booking_id != booking_id:
            self._logger.warning(
                "Scanned check-in token belongs to another booking",
                extra={"booking_id": booking_id, "token_booking_id": token.booking_id},
            )
            raise BookingMismatchError(booking_id, token.booking_id)

        if self._token_secret:
            self._verify_signed(token)

        booking = await self._state_machine.get(booking_id)
        if principal.role != Role.STUDENT or principal.user_id != booking.student_id:
            raise NotAuthorizedError(principal.user_id, booking_id, "hacer check-in en")

        return await self._state_machine.complete_via_check_in(booking_id)

    async def check_in_window(self, booking_id: str) -> tuple[Booking, CheckInWindow, bool]:
        """Fresh evaluation of the window plus the expiry flag, for client polling."""
        booking = await self._state_machine.get(booking_id)
        now = self._clock.now()
        policy = self._state_machine.policy
        return booking, policy.check_in_window(booking, now), policy.is_expired(booking, now)

    def _verify_signed(self, token: CheckInToken) -> None:
        if not token.has_valid_signature(self._token_secret):
            raise MalformedTokenError("firma inválida")
        age = token.age_seconds(self._clock.now_epoch_millis())
        if age > self._token_max_age_seconds or age < -self._token_max_age_seconds:
            raise MalformedTokenError("token expirado")
