"""Value Object LessonSchedule - fecha, hora local y duración de una clase."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from app.domain.constants import DEFAULT_LESSON_DURATION_MINUTES


@dataclass(frozen=True)
class LessonSchedule:
    """
    Value Object inmutable que representa el horario de una clase.

    La hora es local (zona horaria de la escuela), sin tzinfo.

    Attributes:
        scheduled_date: Fecha de la clase.
        scheduled_time: Hora local de inicio.
        duration_minutes: Duración en minutos.
    """

    scheduled_date: date
    scheduled_time: time
    duration_minutes: int = DEFAULT_LESSON_DURATION_MINUTES

    def __post_init__(self) -> None:
        if self.duration_minutes <= 0:
            raise ValueError(f"duration_minutes debe ser positivo: {self.duration_minutes}")
        if self.scheduled_time.tzinfo is not None:
            object.__setattr__(self, "scheduled_time", self.scheduled_time.replace(tzinfo=None))

    @property
    def starts_at(self) -> datetime:
        """Inicio de la clase como datetime local (naive)."""
        return datetime.combine(self.scheduled_date, self.scheduled_time)

    @property
    def ends_at(self) -> datetime:
        return self.starts_at + timedelta(minutes=self.duration_minutes)

    @property
    def day_of_week(self) -> int:
        """Día de la semana con domingo = 0 (convención de la tabla de disponibilidad)."""
        return (self.scheduled_date.weekday() + 1) % 7

    def overlaps_with(self, other: "LessonSchedule") -> bool:
        """Verifica si este horario se superpone con otro."""
        return self.starts_at < other.ends_at and other.starts_at < self.ends_at

    def __str__(self) -> str:
        return f"{self.starts_at.isoformat()} ({self.duration_minutes} min)"
