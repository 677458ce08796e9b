import asyncio
import json
import logging
from typing import Any

import stripe

from app.application.interfaces.stripe_gateway import SplitChargeResult, StripeGateway
from app.config import get_settings
from app.domain.errors import PaymentProviderError
from app.infrastructure.circuit_breaker import CircuitBreakerError, stripe_breaker

logger = logging.getLogger(__name__)


class StripeGatewayReal(StripeGateway):
    def __init__(self, api_key: str | None = None, timeout_seconds: float | None = None) -> None:
        settings = get_settings()
        stripe.api_key = api_key or settings.stripe_api_key
        # Retries happen inside the SDK; the core never retries
        stripe.max_network_retries = 2
        self._timeout_seconds = timeout_seconds or settings.stripe_timeout_seconds

    async def create_split_charge(
        self,
        total_amount: int,
        currency: str,
        destination_account: str,
        fee_amount: int,
        metadata: dict[str, str],
        idempotency_key: str | None = None,
    ) -> SplitChargeResult:
        """
        Create a destination-charge PaymentIntent, protected by the circuit breaker.

        The platform keeps `fee_amount` as application fee; the remainder is
        transferred to the instructor's connected account.

        Raises:
            PaymentProviderError: Stripe rejected the call, timed out, or the circuit is open.
        """
        params: dict[str, Any] = {
            "amount": total_amount,
            "currency": currency.lower(),
            "application_fee_amount": fee_amount,
            "transfer_data": {"destination": destination_account},
            "metadata": metadata,
            "automatic_payment_methods": {"enabled": True},
        }
        if idempotency_key:
            params["idempotency_key"] = idempotency_key

        try:
            # stripe has no async client; run the sync call off the event loop
            intent = await asyncio.wait_for(
                asyncio.to_thread(stripe_breaker.call, stripe.PaymentIntent.create, **params),
                timeout=self._timeout_seconds,
            )
        except CircuitBreakerError as e:
            logger.error(
                "Stripe circuit breaker is open - service unavailable",
                extra={"circuit_state": str(e), "booking_id": metadata.get("booking_id")},
            )
            raise PaymentProviderError("servicio de pagos no disponible") from e
        except asyncio.TimeoutError as e:
            logger.error(
                "Stripe call timed out",
                extra={"timeout_seconds": self._timeout_seconds, "booking_id": metadata.get("booking_id")},
            )
            raise PaymentProviderError("tiempo de espera agotado") from e
        except stripe.StripeError as e:
            logger.error(
                "Stripe API error",
                exc_info=e,
                extra={"booking_id": metadata.get("booking_id"), "destination": destination_account},
            )
            raise PaymentProviderError(e.user_message or str(e)) from e

        return SplitChargeResult(
            payment_intent_id=intent.id,
            client_secret=intent.client_secret,
            status=intent.status,
        )

    async def parse_webhook_event(
        self,
        payload: bytes,
        signature_header: str | None,
        webhook_secret: str | None,
    ) -> dict[str, Any]:
        if webhook_secret:
            if not signature_header:
                raise ValueError("Missing Stripe-Signature header")
            try:
                stripe.Webhook.construct_event(
                    payload=payload.decode(),
                    sig_header=signature_header,
                    secret=webhook_secret,
                )
            except stripe.SignatureVerificationError as exc:
                raise ValueError("Invalid Stripe signature") from exc
            except (UnicodeDecodeError, ValueError) as exc:
                raise ValueError("Invalid Stripe webhook payload") from exc

        try:
            event = json.loads(payload.decode() or "{}")
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ValueError("Invalid webhook payload") from exc
        if not isinstance(event, dict):
            raise ValueError("Invalid webhook payload")
        return event
