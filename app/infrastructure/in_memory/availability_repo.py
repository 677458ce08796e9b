from app.application.interfaces.availability_repo import AvailabilityRepo
from app.domain.entities.availability_slot import AvailabilitySlot
from app.domain.value_objects.lesson_schedule import LessonSchedule


class InMemoryAvailabilityRepo(AvailabilityRepo):
    def __init__(self) -> None:
        self.slots: dict[str, list[AvailabilitySlot]] = {}

    def add_slot(self, slot: AvailabilitySlot) -> None:
        self.slots.setdefault(slot.instructor_id, []).append(slot)

    async def has_open_slot(self, instructor_id: str, schedule: LessonSchedule) -> bool:
        return any(slot.covers(schedule) for slot in self.slots.get(instructor_id, []))

    async def lock_instructor_schedule(self, instructor_id: str) -> None:
        # InMemoryTransactionManager already serializes every unit of work
        return None
