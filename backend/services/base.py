from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.exceptions import StockEngineError, StorageError
from core.logging_config import get_logger
from core.result import OperationResult

T = TypeVar("T")

logger = get_logger("services")


class TransactionalService:
    """
    Owns transaction boundaries for the services built on it.

    Each public operation runs ``work`` in exactly one session and one
    transaction. Collaborators (ledger, recorder, resolver) only flush.
    Typed engine errors and storage faults come back as failed
    OperationResults after the rollback; anything else propagates.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def _run(self, operation: str, work: Callable[[AsyncSession], Awaitable[T]]) -> OperationResult[T]:
        try:
            async with self.session_maker() as db:
                async with db.begin():
                    value = await work(db)
        except StockEngineError as e:
            logger.info("operation_rejected", extra={"operation": operation, "code": e.code, "detail": e.message})
            return OperationResult.failure(e)
        except SQLAlchemyError as e:
            logger.error("operation_storage_failure", exc_info=True, extra={"operation": operation})
            return OperationResult.failure(StorageError(operation, e))
        logger.info("operation_committed", extra={"operation": operation})
        return OperationResult.success(value)

    async def _read(self, operation: str, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        try:
            async with self.session_maker() as db:
                return await work(db)
        except SQLAlchemyError as e:
            logger.error("read_storage_failure", exc_info=True, extra={"operation": operation})
            raise StorageError(operation, e) from e
