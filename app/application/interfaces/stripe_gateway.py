from dataclasses import dataclass
from typing import Any


@dataclass
class SplitChargeResult:
    payment_intent_id: str
    client_secret: str
    status: str


class StripeGateway:
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
        Crea un cobro con transferencia de destino y comisión de plataforma.

        Raises:
            PaymentProviderError: ante cualquier error del procesador.
        """
        raise NotImplementedError

    async def parse_webhook_event(
        self,
        payload: bytes,
        signature_header: str | None,
        webhook_secret: str | None,
    ) -> dict[str, Any]:
        raise NotImplementedError
