from app.domain.value_objects.lesson_schedule import LessonSchedule


class AvailabilityRepo:
    async def has_open_slot(self, instructor_id: str, schedule: LessonSchedule) -> bool:
        raise NotImplementedError

    async def lock_instructor_schedule(self, instructor_id: str) -> None:
        """Bloquea la agenda del instructor hasta el fin de la unidad de trabajo."""
        raise NotImplementedError
