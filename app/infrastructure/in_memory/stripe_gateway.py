import json
from typing import Any
from uuid import uuid4

from app.application.interfaces.stripe_gateway import SplitChargeResult, StripeGateway


class StubStripeGateway(StripeGateway):
    def __init__(self) -> None:
        self.charges: list[dict[str, Any]] = []
        self._by_idempotency_key: dict[str, SplitChargeResult] = {}

    async def create_split_charge(
        self,
        total_amount: int,
        currency: str,
        destination_account: str,
        fee_amount: int,
        metadata: dict[str, str],
        idempotency_key: str | None = None,
    ) -> SplitChargeResult:
        # Same key returns the intent created the first time, as the processor does
        if idempotency_key and idempotency_key in self._by_idempotency_key:
            return self._by_idempotency_key[idempotency_key]

        # Simulates an intent awaiting client confirmation
        intent_id = f"pi_{uuid4().hex[:14]}"
        self.charges.append(
            {
                "payment_intent_id": intent_id,
                "amount": total_amount,
                "currency": currency,
                "destination": destination_account,
                "application_fee_amount": fee_amount,
                "metadata": dict(metadata),
                "idempotency_key": idempotency_key,
            }
        )
        result = SplitChargeResult(
            payment_intent_id=intent_id,
            client_secret=f"{intent_id}_secret_{uuid4().hex[:10]}",
            status="requires_payment_method",
        )
        if idempotency_key:
            self._by_idempotency_key[idempotency_key] = result
        return result

    async def parse_webhook_event(
        self,
        payload: bytes,
        signature_header: str | None,
        webhook_secret: str | None,
    ) -> dict[str, Any]:
        if not payload:
            raise ValueError("Empty webhook payload")
        try:
            return json.loads(payload.decode() or "{}")
        except json.JSONDecodeError as exc:
            raise ValueError("Invalid webhook payload") from exc
