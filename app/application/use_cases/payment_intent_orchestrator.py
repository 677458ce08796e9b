import logging
from dataclasses import dataclass

from app.application.interfaces.booking_repo import BookingRepo
from app.application.interfaces.clock import Clock
from app.application.interfaces.payout_account_repo import PayoutAccountRepo
from app.application.interfaces.stripe_gateway import StripeGateway
from app.application.interfaces.transaction_manager import TransactionManager
from app.application.use_cases.booking_state_machine import BookingStateMachine
from app.domain.entities.booking import Booking, BookingPaymentStatus, BookingStatus
from app.domain.entities.payout_account import PayoutAccount
from app.domain.errors import (
    AmountMismatchError,
    BookingNotFoundError,
    InvalidTransitionError,
    PaymentAlreadyInitiatedError,
    PayoutAccountNotReadyError,
)
from app.domain.services.fee_split_calculator import FeeSplitCalculator
from app.domain.value_objects.fee_split import FeeSplit

REFUND_CANCELLATION_REASON = "Reembolso processado via Stripe"
DEAUTHORIZED_CANCELLATION_REASON = "Instrutor desconectou conta de pagamento"


@dataclass
class SplitPaymentResult:
    payment_intent_id: str
    client_secret: str
    split: FeeSplit
    booking: Booking


class PaymentIntentOrchestrator:
    """Bridges bookings and the payment processor (destination charges with a platform fee)."""

    def __init__(
        self,
        booking_repo: BookingRepo,
        payout_account_repo: PayoutAccountRepo,
        stripe_gateway: StripeGateway,
        state_machine: BookingStateMachine,
        fee_calculator: FeeSplitCalculator,
        transaction_manager: TransactionManager,
        clock: Clock,
    ) -> None:
        self._booking_repo = booking_repo
        self._payout_account_repo = payout_account_repo
        self._stripe_gateway = stripe_gateway
        self._state_machine = state_machine
        self._fee_calculator = fee_calculator
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    def preview_split(self, gross_amount_minor_units: int) -> FeeSplit:
        return self._fee_calculator.compute_split(gross_amount_minor_units)

    async def create_split_payment(
        self,
        booking_id: str,
        gross_amount_minor_units: int,
        instructor_payout_account_ref: str | None = None,
    ) -> SplitPaymentResult:
        booking = await self._booking_repo.get_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        if booking.status != BookingStatus.PENDING:
            raise InvalidTransitionError(
                booking_id, booking.status.value, BookingStatus.CONFIRMED.value
            )
        if booking.has_active_payment:
            raise PaymentAlreadyInitiatedError(
                booking_id, booking.payment_intent_id, booking.payment_status.value
            )
        if gross_amount_minor_units != booking.price_cents:
            raise AmountMismatchError(booking_id, booking.price_cents, gross_amount_minor_units)

        account = await self._ready_payout_account(booking, instructor_payout_account_ref)
        split = self._fee_calculator.compute_split(gross_amount_minor_units)

        # lock_version only moves when the booking does, so a retry after a
        # provider error or timeout reuses the key and gets the same intent back
        idempotency_key = f"booking-{booking.id}-payment-{booking.lock_version}"

        # PaymentProviderError propagates with the booking untouched
        charge = await self._stripe_gateway.create_split_charge(
            total_amount=split.gross_amount,
            currency=booking.currency_code.lower(),
            destination_account=account.account_ref,
            fee_amount=split.platform_fee_amount,
            metadata={
                "booking_id": booking.id,
                "student_id": booking.student_id,
                "instructor_id": booking.instructor_id,
                "platform_fee": str(split.platform_fee_amount),
            },
            idempotency_key=idempotency_key,
        )

        async with self._transaction_manager.start():
            updated = await self._booking_repo.conditional_update_booking_status(
                booking.id,
                BookingStatus.PENDING,
                {
                    "payment_intent_id": charge.payment_intent_id,
                    "payment_status": BookingPaymentStatus.PENDING,
                    "updated_at": self._clock.now(),
                },
                expected_fields={
                    "payment_intent_id": booking.payment_intent_id,
                    "payment_status": booking.payment_status,
                },
            )
        if updated is None:
            updated = await self._resolve_lost_payment_write(booking, charge.payment_intent_id)

        self._logger.info(
            "Split payment created",
            extra={
                "booking_id": booking.id,
                "payment_intent_id": charge.payment_intent_id,
                "gross_amount": split.gross_amount,
                "platform_fee": split.platform_fee_amount,
                "destination_account": account.account_ref,
                "idempotency_key": idempotency_key,
            },
        )
        return SplitPaymentResult(
            payment_intent_id=charge.payment_intent_id,
            client_secret=charge.client_secret,
            split=split,
            booking=updated,
        )

    async def _resolve_lost_payment_write(self, booking: Booking, payment_intent_id: str) -> Booking:
        current = await self._booking_repo.get_booking(booking.id)
        if current is None:
            raise BookingNotFoundError(booking.id)

        # A concurrent call with the same idempotency key stored the same intent
        if current.payment_intent_id == payment_intent_id:
            return current

        self._logger.error(
            "Payment intent created but not stored",
            extra={
                "booking_id": booking.id,
                "payment_intent_id": payment_intent_id,
                "stored_payment_intent_id": current.payment_intent_id,
                "current_status": current.status.value,
            },
        )
        if current.status != BookingStatus.PENDING:
            raise InvalidTransitionError(
                booking.id, current.status.value, BookingStatus.CONFIRMED.value
            )
        raise PaymentAlreadyInitiatedError(
            booking.id, current.payment_intent_id, current.payment_status.value
        )

    async def on_payment_captured(
        self, payment_intent_id: str, booking_id: str | None = None
    ) -> Booking:
        """
        Applies a captured payment. `booking_id` comes from the intent metadata and
        is only used when no booking stores the intent.
        """
        booking = await self._resolve_booking(payment_intent_id, booking_id)

        if booking.status == BookingStatus.PENDING:
            try:
                return await self._state_machine.confirm_on_payment(booking.id, payment_intent_id)
            except InvalidTransitionError:
                # Lost to a cancellation or to a replay of this same event
                booking = await self._state_machine.get(booking.id)

        if booking.payment_intent_id == payment_intent_id and booking.payment_status in (
            BookingPaymentStatus.PAID,
            BookingPaymentStatus.REFUNDED,
        ):
            self._logger.info(
                "Payment capture already applied",
                extra={"booking_id": booking.id, "payment_intent_id": payment_intent_id},
            )
            return booking

        if booking.status == BookingStatus.CANCELLED and not booking.is_paid:
            return await self._state_machine.record_capture_after_cancellation(
                booking.id, payment_intent_id
            )
        return await self._state_machine.refund_duplicate_capture(booking.id, payment_intent_id)

    async def on_payment_failed(
        self, payment_intent_id: str, booking_id: str | None = None
    ) -> Booking:
        booking = await self._resolve_booking(payment_intent_id, booking_id)
        if booking.status != BookingStatus.PENDING or booking.payment_intent_id != payment_intent_id:
            self._logger.warning(
                "Payment failure ignored",
                extra={
                    "booking_id": booking.id,
                    "status": booking.status.value,
                    "payment_intent_id": payment_intent_id,
                },
            )
            return booking

        async with self._transaction_manager.start():
            updated = await self._booking_repo.conditional_update_booking_status(
                booking.id,
                BookingStatus.PENDING,
                {"payment_status": BookingPaymentStatus.FAILED, "updated_at": self._clock.now()},
                expected_fields={"payment_intent_id": payment_intent_id},
            )
        self._logger.warning(
            "Payment failed",
            extra={"booking_id": booking.id, "payment_intent_id": payment_intent_id},
        )
        return updated or booking

    async def on_charge_refunded(
        self,
        payment_intent_id: str,
        amount: int,
        amount_refunded: int,
        booking_id: str | None = None,
    ) -> Booking:
        """A full refund of the booking's own payment cancels it; partial refunds only log."""
        booking = await self._resolve_booking(payment_intent_id, booking_id)
        log_extra = {
            "booking_id": booking.id,
            "payment_intent_id": payment_intent_id,
            "amount_refunded": amount_refunded,
        }

        if amount_refunded < amount:
            self._logger.info("Partial refund, booking unchanged", extra=log_extra)
            return booking
        if booking.payment_intent_id != payment_intent_id:
            self._logger.info("Refund of a duplicate capture", extra=log_extra)
            return booking

        if booking.status == BookingStatus.CANCELLED:
            return await self._state_machine.mark_refunded(booking.id, payment_intent_id)
        if booking.can_transition_to(BookingStatus.CANCELLED):
            self._logger.warning("Full refund cancels booking", extra=log_extra)
            return await self._state_machine.cancel_by_processor(
                booking.id, REFUND_CANCELLATION_REASON, refunded=True
            )

        self._logger.warning("Full refund for a completed lesson", extra=log_extra)
        return booking

    async def on_payout_account_updated(
        self,
        account_ref: str,
        charges_enabled: bool,
        payouts_enabled: bool,
        details_submitted: bool,
    ) -> PayoutAccount | None:
        onboarding_complete = charges_enabled and payouts_enabled and details_submitted
        async with self._transaction_manager.start():
            account = await self._payout_account_repo.update_onboarding_status(
                account_ref, onboarding_complete
            )
        if account is None:
            self._logger.warning(
                "Payout account update for unknown account",
                extra={"account_ref": account_ref},
            )
            return None
        self._logger.info(
            "Payout account onboarding updated",
            extra={
                "account_ref": account_ref,
                "instructor_id": account.instructor_id,
                "onboarding_complete": onboarding_complete,
            },
        )
        return account

    async def on_payout_account_deauthorized(self, account_ref: str) -> list[Booking]:
        """Resets onboarding and cancels the instructor's pending bookings."""
        async with self._transaction_manager.start():
            account = await self._payout_account_repo.update_onboarding_status(account_ref, False)
        if account is None:
            self._logger.warning(
                "Deauthorization for unknown account",
                extra={"account_ref": account_ref},
            )
            return []

        cancelled = []
        for booking in await self._booking_repo.find_pending_by_instructor(account.instructor_id):
            try:
                cancelled.append(
                    await self._state_machine.cancel_by_processor(
                        booking.id, DEAUTHORIZED_CANCELLATION_REASON
                    )
                )
            except InvalidTransitionError as exc:
                # Confirmed or cancelled meanwhile
                self._logger.info(
                    "Pending booking moved before deauthorization cancel",
                    extra={"booking_id": booking.id, "current_status": exc.current_status},
                )
        self._logger.warning(
            "Payout account deauthorized",
            extra={
                "account_ref": account_ref,
                "instructor_id": account.instructor_id,
                "cancelled_count": len(cancelled),
            },
        )
        return cancelled

    async def _resolve_booking(self, payment_intent_id: str, booking_id: str | None) -> Booking:
        booking = await self._booking_repo.find_by_payment_intent(payment_intent_id)
        if booking is None and booking_id:
            booking = await self._booking_repo.get_booking(booking_id)
            if booking is not None:
                self._logger.warning(
                    "Booking resolved from intent metadata",
                    extra={"booking_id": booking_id, "payment_intent_id": payment_intent_id},
                )
        if booking is None:
            raise BookingNotFoundError(payment_intent_id=payment_intent_id)
        return booking

    async def _ready_payout_account(
        self, booking: Booking, instructor_payout_account_ref: str | None
    ) -> PayoutAccount:
        account = await self._payout_account_repo.get_instructor_payout_account(
            booking.instructor_id
        )
        if account is None or not account.is_ready:
            raise PayoutAccountNotReadyError(booking.instructor_id)
        if instructor_payout_account_ref and instructor_payout_account_ref != account.account_ref:
            raise PayoutAccountNotReadyError(booking.instructor_id)
        return account
