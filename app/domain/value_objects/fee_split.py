"""Value Object FeeSplit - división de un cobro entre plataforma e instructor."""

from dataclasses import dataclass


@dataclass(frozen=True)
class FeeSplit:
    """
    Resultado de dividir un monto bruto en comisión de plataforma y neto del instructor.

    Todos los montos están en centavos.
    """

    gross_amount: int
    platform_fee_amount: int
    instructor_net_amount: int

    def __post_init__(self) -> None:
        if self.platform_fee_amount + self.instructor_net_amount != self.gross_amount:
            raise ValueError(
                f"La división no cuadra: {self.platform_fee_amount} + "
                f"{self.instructor_net_amount} != {self.gross_amount}"
            )
