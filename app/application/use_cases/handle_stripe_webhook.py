import logging

from pydantic import ValidationError as PydanticValidationError

from app.api.schemas.payments import StripeWebhookEnvelope
from app.application.interfaces.stripe_gateway import StripeGateway
from app.application.use_cases.payment_intent_orchestrator import PaymentIntentOrchestrator
from app.domain.errors import InvalidWebhookEventError

EVENT_PAYMENT_SUCCEEDED = "payment_intent.succeeded"
EVENT_PAYMENT_FAILED = "payment_intent.payment_failed"
EVENT_CHARGE_REFUNDED = "charge.refunded"
EVENT_ACCOUNT_UPDATED = "account.updated"
EVENT_ACCOUNT_DEAUTHORIZED = "account.application.deauthorized"


class HandleStripeWebhookUseCase:
    def __init__(
        self,
        orchestrator: PaymentIntentOrchestrator,
        stripe_gateway: StripeGateway,
        stripe_webhook_secret: str | None,
    ) -> None:
        self._orchestrator = orchestrator
        self._stripe_gateway = stripe_gateway
        self._stripe_webhook_secret = stripe_webhook_secret
        self._logger = logging.getLogger(__name__)

    async def execute(self, raw_body: bytes, signature: str | None) -> str:
        """Applies a processor event and returns the event type it handled."""
        if not raw_body:
            raise InvalidWebhookEventError("Webhook vacío")
        try:
            event_dict = await self._stripe_gateway.parse_webhook_event(
                payload=raw_body,
                signature_header=signature,
                webhook_secret=self._stripe_webhook_secret,
            )
            event = StripeWebhookEnvelope.model_validate(event_dict)
        except (ValueError, PydanticValidationError) as exc:
            raise InvalidWebhookEventError(str(exc)) from exc

        if not event.type or not event.data:
            raise InvalidWebhookEventError("Payload de evento inválido")

        data_obj = event.data_object()
        metadata = data_obj.get("metadata") if isinstance(data_obj.get("metadata"), dict) else {}
        booking_hint = metadata.get("booking_id")

        if event.type in (EVENT_PAYMENT_SUCCEEDED, EVENT_PAYMENT_FAILED):
            intent_id = data_obj.get("id") or data_obj.get("payment_intent")
            if not intent_id:
                raise InvalidWebhookEventError("El evento no incluye payment intent")

            if event.type == EVENT_PAYMENT_SUCCEEDED:
                booking = await self._orchestrator.on_payment_captured(intent_id, booking_hint)
            else:
                booking = await self._orchestrator.on_payment_failed(intent_id, booking_hint)
            self._log_processed(event, intent_id, booking.id)

        elif event.type == EVENT_CHARGE_REFUNDED:
            intent_id = data_obj.get("payment_intent")
            if not intent_id:
                raise InvalidWebhookEventError("El reembolso no incluye payment intent")
            try:
                amount = int(data_obj["amount"])
                amount_refunded = int(data_obj["amount_refunded"])
            except (KeyError, TypeError, ValueError) as exc:
                raise InvalidWebhookEventError("Montos de reembolso inválidos") from exc

            booking = await self._orchestrator.on_charge_refunded(
                intent_id, amount, amount_refunded, booking_hint
            )
            self._log_processed(event, intent_id, booking.id)

        elif event.type == EVENT_ACCOUNT_UPDATED:
            account_ref = data_obj.get("id")
            if not account_ref:
                raise InvalidWebhookEventError("El evento no incluye la cuenta")
            await self._orchestrator.on_payout_account_updated(
                account_ref=account_ref,
                charges_enabled=bool(data_obj.get("charges_enabled")),
                payouts_enabled=bool(data_obj.get("payouts_enabled")),
                details_submitted=bool(data_obj.get("details_submitted")),
            )

        elif event.type == EVENT_ACCOUNT_DEAUTHORIZED:
            # Connect events carry the connected account at the top level
            account_ref = event.account or data_obj.get("id")
            if not account_ref:
                raise InvalidWebhookEventError("El evento no incluye la cuenta")
            await self._orchestrator.on_payout_account_deauthorized(account_ref)

        else:
            self._logger.info(
                "Stripe webhook ignored",
                extra={"stripe_event_id": event.id, "event_type": event.type},
            )
        return event.type

    def _log_processed(self, event: StripeWebhookEnvelope, intent_id: str, booking_id: str) -> None:
        self._logger.info(
            "Stripe webhook processed",
            extra={
                "stripe_event_id": event.id,
                "event_type": event.type,
                "payment_intent_id": intent_id,
                "booking_id": booking_id,
            },
        )
