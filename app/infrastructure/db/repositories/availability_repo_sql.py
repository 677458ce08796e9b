from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.availability_repo import AvailabilityRepo
from app.domain.entities.availability_slot import AvailabilitySlot
from app.domain.value_objects.lesson_schedule import LessonSchedule
from app.infrastructure.db.tables import instructor_availability


class AvailabilityRepoSQL(AvailabilityRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def has_open_slot(self, instructor_id: str, schedule: LessonSchedule) -> bool:
        stmt = select(instructor_availability).where(
            instructor_availability.c.instructor_id == instructor_id,
            instructor_availability.c.day_of_week == schedule.day_of_week,
            instructor_availability.c.is_active.is_(True),
        )
        result = await self._session.execute(stmt)
        for row in result.mappings().all():
            slot = AvailabilitySlot(
                instructor_id=row["instructor_id"],
                day_of_week=row["day_of_week"],
                start_time=row["start_time"],
                end_time=row["end_time"],
                is_active=bool(row["is_active"]),
            )
            if slot.covers(schedule):
                return True
        return False

    async def lock_instructor_schedule(self, instructor_id: str) -> None:
        # A no-op write takes the row locks (the database write lock on SQLite)
        # and holds them until the unit of work commits
        await self._session.execute(
            update(instructor_availability)
            .where(instructor_availability.c.instructor_id == instructor_id)
            .values(instructor_id=instructor_availability.c.instructor_id)
        )
