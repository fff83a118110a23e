import os
import tempfile

# Settings are read at import time; point them at throwaway resources first.
_TMP = tempfile.mkdtemp(prefix="flashdeck-tests-")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("MODE", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_KEY_FILE", os.path.join(_TMP, "jwt_rsa_key.pem"))
os.environ.setdefault("PUBLIC_ORIGIN", "https://flashdeck.example")

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from flashdeck.core.db.base import Base
from flashdeck.core.db.schemas import User
from flashdeck.core.db_services import LearningSetStore
from flashdeck.modules.access import Viewer


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
async def store(session):
    return LearningSetStore(session)


async def _add_user(session, email: str) -> User:
    user = User(
        email=email,
        hashed_password="not-a-real-hash",
        is_active=True,
        is_superuser=False,
        is_verified=False,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest.fixture
async def owner(session) -> Viewer:
    user = await _add_user(session, "owner@example.com")
    return Viewer(user_id=user.id)


@pytest.fixture
async def stranger(session) -> Viewer:
    user = await _add_user(session, "stranger@example.com")
    return Viewer(user_id=user.id)


@pytest.fixture
def anonymous() -> Viewer:
    return Viewer.anonymous()
