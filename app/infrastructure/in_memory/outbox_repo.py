from datetime import datetime, timezone
from typing import Any

from app.application.interfaces.outbox_repo import OutboxEvent, OutboxRepo


class InMemoryOutboxRepo(OutboxRepo):
    def __init__(self) -> None:
        self.events: list[OutboxEvent] = []
        self._next_id = 1

    async def enqueue(
        self,
        event_type: str,
        aggregate_type: str,
        aggregate_code: str,
        payload: dict[str, Any],
    ) -> OutboxEvent:
        event = OutboxEvent(
            id=self._next_id,
            event_type=event_type,
            aggregate_type=aggregate_type,
            aggregate_code=aggregate_code,
            payload=payload,
            status="NEW",
            created_at=datetime.now(timezone.utc),
        )
        self.events.append(event)
        self._next_id += 1
        return event

    def of_type(self, event_type: str) -> list[OutboxEvent]:
        return [event for event in self.events if event.event_type == event_type]
