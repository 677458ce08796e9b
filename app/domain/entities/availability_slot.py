"""Entidad AvailabilitySlot - franja semanal de atención del instructor."""

from dataclasses import dataclass
from datetime import time

from app.domain.value_objects.lesson_schedule import LessonSchedule


@dataclass
class AvailabilitySlot:
    """
    Franja recurrente de disponibilidad.

    day_of_week usa domingo = 0 ... sábado = 6.
    """

    instructor_id: str
    day_of_week: int
    start_time: time
    end_time: time
    is_active: bool = True

    def covers(self, schedule: LessonSchedule) -> bool:
        """La clase completa cae dentro de la franja."""
        if not self.is_active or self.day_of_week != schedule.day_of_week:
            return False
        if schedule.ends_at.date() != schedule.scheduled_date:
            return False
        return self.start_time <= schedule.scheduled_time and schedule.ends_at.time() <= self.end_time
