"""Entidad PayoutAccount - cuenta conectada del instructor en el procesador de pagos."""

from dataclasses import dataclass


@dataclass
class PayoutAccount:
    instructor_id: str
    account_ref: str | None = None
    onboarding_complete: bool = False

    @property
    def is_ready(self) -> bool:
        """La cuenta puede recibir transferencias de destino."""
        return bool(self.account_ref) and self.onboarding_complete
