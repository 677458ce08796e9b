import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from app.application.interfaces.transaction_manager import TransactionManager


class InMemoryTransactionManager(TransactionManager):
    """Serializes units of work so the overlap check and the insert are not interleaved."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def start(self) -> AsyncIterator[None]:
        async with self._lock:
            yield
