"""Value Object Money - representa un valor monetario con su moneda."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal


@dataclass(frozen=True)
class Money:
    """
    Value Object inmutable que representa un monto monetario.

    Attributes:
        amount: Monto decimal en unidades mayores (ej: reales).
        currency_code: Código ISO 4217 de la moneda (ej: BRL).
    """

    amount: Decimal
    currency_code: str

    CENT = Decimal("0.01")

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(str(self.amount)))

        if len(self.currency_code) != 3:
            raise ValueError(f"currency_code debe ser de 3 caracteres: {self.currency_code}")

        if self.amount < 0:
            raise ValueError(f"amount no puede ser negativo: {self.amount}")

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency_code}"

    def to_cents(self) -> int:
        """Convierte a centavos redondeando half-up (nunca trunca)."""
        quantized = self.amount.quantize(self.CENT, rounding=ROUND_HALF_UP)
        return int(quantized * 100)
