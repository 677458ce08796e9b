import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)


class SQLAlchemyTransactionManager(TransactionManager):
    """
    Commits on exit of the outermost unit of work, rolls back on error.

    The session may already be autobegun by earlier reads in the same request;
    those reads become part of the committed transaction.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._depth = 0

    @asynccontextmanager
    async def start(self) -> AsyncIterator[None]:
        if self._depth:
            yield
            return

        self._depth += 1
        try:
            yield
            await self._session.commit()
        except Exception as exc:
            logger.warning("Rolling back unit of work", extra={"error": type(exc).__name__})
            await self._session.rollback()
            raise
        finally:
            self._depth -= 1
