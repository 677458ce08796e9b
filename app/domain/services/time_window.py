"""
Ventanas de tiempo de una clase: expiración y elegibilidad de check-in.

Funciones puras: el instante actual siempre llega como argumento. El horario de la
clase es hora local de la escuela; un `now` con tzinfo se convierte a esa zona antes
de comparar.
"""

import logging
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from app.domain.constants import (
    CHECK_IN_CLOSES_AFTER_MINUTES,
    CHECK_IN_OPENS_BEFORE_MINUTES,
    DEFAULT_LESSON_DURATION_MINUTES,
    DEFAULT_LESSON_TIMEZONE,
    LESSON_EXPIRY_TOLERANCE_MINUTES,
)
from app.domain.value_objects.check_in_window import CheckInReason, CheckInWindow

logger = logging.getLogger(__name__)

DateInput = date | datetime | str
TimeInput = time | datetime | str


def _parse_date(value: DateInput) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip().split("T")[0])
    raise TypeError(f"scheduled_date no soportado: {type(value)!r}")


def _parse_time(value: TimeInput) -> time:
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, time):
        return value.replace(tzinfo=None)
    if isinstance(value, str):
        raw = value.strip()
        if "T" in raw:
            raw = raw.split("T")[1]
        # Solo HH:MM; los segundos se ignoran
        return time.fromisoformat(raw[:5])
    raise TypeError(f"scheduled_time no soportado: {type(value)!r}")


def lesson_start(scheduled_date: DateInput, scheduled_time: TimeInput) -> datetime:
    """
    Combina fecha y hora en un datetime local (naive).

    Raises:
        ValueError / TypeError: si alguno de los valores no puede interpretarse.
    """
    return datetime.combine(_parse_date(scheduled_date), _parse_time(scheduled_time))


def _local_now(now: datetime, tz: ZoneInfo | None) -> datetime:
    if now.tzinfo is None:
        return now
    return now.astimezone(tz or ZoneInfo(DEFAULT_LESSON_TIMEZONE)).replace(tzinfo=None)


def is_lesson_expired(
    scheduled_date: DateInput,
    scheduled_time: TimeInput,
    now: datetime,
    tolerance_minutes: int = LESSON_EXPIRY_TOLERANCE_MINUTES,
    tz: ZoneInfo | None = None,
) -> bool:
    """
    Indica si la clase ya pasó (inicio + tolerancia).

    Ante un error de interpretación retorna False: nunca se oculta una clase por un
    dato mal formado.
    """
    try:
        start = lesson_start(scheduled_date, scheduled_time)
    except (TypeError, ValueError) as exc:
        logger.warning(
            "Could not parse lesson schedule for expiry check",
            extra={"scheduled_date": str(scheduled_date), "scheduled_time": str(scheduled_time), "error": str(exc)},
        )
        return False
    return _local_now(now, tz) > start + timedelta(minutes=tolerance_minutes)


def check_in_eligibility(
    scheduled_date: DateInput,
    scheduled_time: TimeInput,
    now: datetime,
    duration_minutes: int = DEFAULT_LESSON_DURATION_MINUTES,
    *,
    opens_before_minutes: int = CHECK_IN_OPENS_BEFORE_MINUTES,
    closes_after_minutes: int = CHECK_IN_CLOSES_AFTER_MINUTES,
    tz: ZoneInfo | None = None,
) -> CheckInWindow:
    """
    Evalúa si el check-in está abierto en `now`.

    La ventana abre `opens_before_minutes` antes del inicio y cierra
    `closes_after_minutes` después del inicio; ambos bordes son inclusivos.
    La duración de la clase no mueve el cierre.

    Ante un error de interpretación retorna too_late: el check-in exige certeza.
    """
    try:
        start = lesson_start(scheduled_date, scheduled_time)
    except (TypeError, ValueError) as exc:
        logger.warning(
            "Could not parse lesson schedule for check-in window",
            extra={
                "scheduled_date": str(scheduled_date),
                "scheduled_time": str(scheduled_time),
                "duration_minutes": duration_minutes,
                "error": str(exc),
            },
        )
        return CheckInWindow.closed(CheckInReason.TOO_LATE)

    opens_at = start - timedelta(minutes=opens_before_minutes)
    closes_at = start + timedelta(minutes=closes_after_minutes)
    local_now = _local_now(now, tz)

    if local_now < opens_at:
        return CheckInWindow.closed(CheckInReason.TOO_EARLY, opens_at, closes_at)
    if local_now > closes_at:
        return CheckInWindow.closed(CheckInReason.TOO_LATE, opens_at, closes_at)
    return CheckInWindow.open(opens_at, closes_at)
