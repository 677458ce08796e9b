import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.outbox_repo import OutboxEvent, OutboxRepo
from app.infrastructure.db.tables import outbox_events

logger = logging.getLogger(__name__)


class OutboxRepoSQL(OutboxRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def enqueue(
        self,
        event_type: str,
        aggregate_type: str,
        aggregate_code: str,
        payload: dict[str, Any],
    ) -> OutboxEvent:
        now = datetime.now(timezone.utc)
        stmt = insert(outbox_events).values(
            event_type=event_type,
            aggregate_type=aggregate_type,
            aggregate_code=aggregate_code,
            payload=payload,
            status="NEW",
            created_at=now,
        )
        result = await self._session.execute(stmt)
        event_id = result.inserted_primary_key[0]
        logger.debug(
            "Outbox event enqueued",
            extra={"event_id": event_id, "event_type": event_type, "booking_id": aggregate_code},
        )
        return OutboxEvent(
            id=event_id,
            event_type=event_type,
            aggregate_type=aggregate_type,
            aggregate_code=aggregate_code,
            payload=payload,
            status="NEW",
            created_at=now,
        )
