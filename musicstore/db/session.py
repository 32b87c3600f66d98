import logging
from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from musicstore.db.engine import async_session_factory

logger = logging.getLogger(__name__)


async def get_db() -> AsyncIterator[AsyncSession]:
    """One unit of work per request.

    Everything a handler writes (a listing, its reviews, a purchase) is
    committed together when it returns, and discarded together when it
    raises.
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.info("Discarded request changes after %s: %s", type(e).__name__, e)
            raise
        await session.commit()
