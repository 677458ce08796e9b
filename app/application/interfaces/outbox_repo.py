from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass
class OutboxEvent:
    id: int
    event_type: str
    aggregate_type: str
    aggregate_code: str
    payload: dict[str, Any]
    status: str = "NEW"
    created_at: datetime | None = None


class OutboxRepo:
    """Eventos de dominio a publicar por un colaborador externo (push, realtime, payouts)."""

    async def enqueue(
        self,
        event_type: str,
        aggregate_type: str,
        aggregate_code: str,
        payload: dict[str, Any],
    ) -> OutboxEvent:
        raise NotImplementedError
