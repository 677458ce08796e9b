"""Cálculo de la comisión de plataforma sobre el precio de una clase."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from app.domain.constants import DEFAULT_PLATFORM_FEE_RATE
from app.domain.errors import InvalidAmountError
from app.domain.value_objects.fee_split import FeeSplit

_UNIT = Decimal("1")


def _to_rate(fee_rate: Decimal | str | float) -> Decimal:
    try:
        rate = Decimal(str(fee_rate))
    except InvalidOperation as exc:
        raise InvalidAmountError(f"fee_rate inválido: {fee_rate!r}") from exc
    if not rate.is_finite() or rate < 0 or rate > 1:
        raise InvalidAmountError(f"fee_rate fuera de rango [0, 1]: {fee_rate}")
    return rate


def compute_split(
    gross_amount_minor_units: int,
    fee_rate: Decimal | str | float = DEFAULT_PLATFORM_FEE_RATE,
) -> FeeSplit:
    """
    Divide un monto bruto (centavos) en comisión de plataforma y neto del instructor.

    La comisión se redondea una sola vez (half-up) y el neto es el resto, por lo que
    fee + net == gross siempre.

    Raises:
        InvalidAmountError: si el monto no es un entero positivo o la tasa es inválida.
    """
    if isinstance(gross_amount_minor_units, bool) or not isinstance(gross_amount_minor_units, int):
        raise InvalidAmountError(f"El monto debe ser entero en centavos: {gross_amount_minor_units!r}")
    if gross_amount_minor_units <= 0:
        raise InvalidAmountError(f"El monto debe ser positivo: {gross_amount_minor_units}")

    rate = _to_rate(fee_rate)
    fee = int((Decimal(gross_amount_minor_units) * rate).quantize(_UNIT, rounding=ROUND_HALF_UP))
    return FeeSplit(
        gross_amount=gross_amount_minor_units,
        platform_fee_amount=fee,
        instructor_net_amount=gross_amount_minor_units - fee,
    )


class FeeSplitCalculator:
    """Calculadora con la tasa configurada; la misma instancia sirve preview y cobro."""

    def __init__(self, fee_rate: Decimal | str | float = DEFAULT_PLATFORM_FEE_RATE) -> None:
        self.fee_rate = _to_rate(fee_rate)

    def compute_split(self, gross_amount_minor_units: int) -> FeeSplit:
        return compute_split(gross_amount_minor_units, self.fee_rate)
