"""
Fixtures compartidas para Pytest.
Configura base de datos de test y clientes HTTP.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.database import Base, get_db
from app.main import app
from app.models.plant import Plant

# ── Engine de test (SQLite async) ─────────────────────
# NullPool: una conexión por sesión, para simular escritores concurrentes
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
test_session_factory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)


@pytest_asyncio.fixture
async def setup_database():
    """Crea y destruye las tablas para cada test."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session(setup_database) -> AsyncGenerator[AsyncSession, None]:
    """Provee una sesión de DB de test."""
    async with test_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Cliente HTTP de test que usa la DB de test."""

    async def _get_test_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_test_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def user_id() -> str:
    return "user-test-1"


@pytest_asyncio.fixture
async def make_plant(
    db_session: AsyncSession, user_id: str
) -> Callable[..., Awaitable[Plant]]:
    """Factory de plantas (por defecto legacy, sin UID)."""

    async def _make(
        strain: str | None = "OG Kush",
        created_at: datetime | None = None,
        **fields,
    ) -> Plant:
        plant = Plant(
            user_id=fields.pop("user_id", user_id),
            strain=strain,
            created_at=created_at or datetime(2023, 11, 2, 10, 30, tzinfo=timezone.utc),
            **fields,
        )
        db_session.add(plant)
        await db_session.commit()
        await db_session.refresh(plant)
        return plant

    return _make


@pytest.fixture
def session_factory(setup_database) -> async_sessionmaker[AsyncSession]:
    """Factory para abrir sesiones independientes (escritores concurrentes)."""
    return test_session_factory
