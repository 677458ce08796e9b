"""Value Object CheckInWindow - disponibilidad del check-in en un instante dado."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class CheckInReason(str, Enum):
    TOO_EARLY = "too_early"
    TOO_LATE = "too_late"
    AVAILABLE = "available"


@dataclass(frozen=True)
class CheckInWindow:
    """
    Resultado de evaluar la ventana de check-in.

    opens_at / closes_at son None cuando el horario no pudo interpretarse.
    """

    available: bool
    reason: CheckInReason
    opens_at: datetime | None = None
    closes_at: datetime | None = None

    @classmethod
    def closed(cls, reason: CheckInReason, opens_at=None, closes_at=None) -> "CheckInWindow":
        return cls(available=False, reason=reason, opens_at=opens_at, closes_at=closes_at)

    @classmethod
    def open(cls, opens_at: datetime, closes_at: datetime) -> "CheckInWindow":
        return cls(
            available=True,
            reason=CheckInReason.AVAILABLE,
            opens_at=opens_at,
            closes_at=closes_at,
        )
