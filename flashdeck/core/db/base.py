from typing import Any, AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from flashdeck.core.config import settings
from flashdeck.core.errors import FlashdeckError
from flashdeck.core.logging import get_logger


Base = declarative_base()

logger = get_logger(__name__)


def engine_options(url: str) -> dict[str, Any]:
    """Driver-specific engine arguments for a connection URL."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
    }


connection_string = str(settings.postgres.connection_string)

engine = create_async_engine(
    connection_string,
    echo=False,
    **engine_options(connection_string),
)

async_session_maker = async_sessionmaker(
    engine,
    expire_on_commit=False,
)


async def get_session() -> AsyncIterator[AsyncSession]:
    """Request-scoped session; commits on success, rolls back on any error."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            if not isinstance(e, FlashdeckError) or e.log_as_error:
                logger.error(f"Session rolled back: {type(e).__name__}: {e}")
            raise


async def init_models() -> None:
    """Create missing tables. Used in dev mode, where there are no migrations."""
    from flashdeck.core.db import schemas  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")
