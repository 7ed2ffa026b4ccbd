"""Unit-of-work helper for write paths.

Services wrap each read-compute-write sequence in `unit_of_work`; the block
commits on success and rolls back on any error. Store failures surface as
DataAccessError so callers never see driver exceptions.
"""

import logging
from collections.abc import AsyncIterator, Awaitable
from contextlib import asynccontextmanager
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.errors import DataAccessError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@asynccontextmanager
async def unit_of_work(
    db: AsyncSession, operation: str, entity_id: str | None = None
) -> AsyncIterator[AsyncSession]:
    try:
        yield db
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(
            "Data access failed: operation=%s entity=%s error=%s",
            operation,
            entity_id,
            exc,
        )
        raise DataAccessError(operation) from exc
    except Exception:
        await db.rollback()
        raise


async def read_only(operation: str, coro: Awaitable[T]) -> T:
    """Await a read coroutine, translating store failures into DataAccessError."""
    try:
        return await coro
    except SQLAlchemyError as exc:
        logger.error("Data access failed: operation=%s error=%s", operation, exc)
        raise DataAccessError(operation) from exc
