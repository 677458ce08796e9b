from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Protocol


class TransactionManager(Protocol):
    """Unidad de trabajo: el chequeo de superposición y el insert de un booking van juntos."""

    @asynccontextmanager
    async def start(self) -> AsyncIterator[None]:
        yield
