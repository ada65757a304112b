"""
Shared pytest fixtures.

Each test gets a fresh in-memory SQLite database (through aiosqlite), an
empty in-memory cache and one organization with a user.
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from salesscope.core.auth import create_access_token
from salesscope.core.cache import CacheService, get_cache
from salesscope.core.config import Settings
from salesscope.core.database import Base, get_db
from salesscope.modules.datasets.models import Dataset, SalesRecord  # noqa: F401
from salesscope.modules.datasets.services.ingestion_pipeline import IngestionPipeline
from salesscope.modules.organizations.models import Organization, User

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False
    )


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def cache():
    return CacheService(default_ttl=300)


@pytest.fixture
def settings():
    return Settings(
        database_url=TEST_DATABASE_URL,
        redis_url=None,
        ingestion_batch_size=1000,
        analytics_store_aggregation=True,
    )


async def _create_org_with_user(db: AsyncSession, name: str, email: str):
    organization = Organization(name=name)
    db.add(organization)
    await db.flush()
    user = User(organization_id=organization.id, email=email, name=f"{name} Admin")
    db.add(user)
    await db.commit()
    return organization, user


@pytest.fixture
async def organization(db_session):
    organization, _ = await _create_org_with_user(db_session, "Acme Retail", "admin@acme.test")
    return organization


@pytest.fixture
async def user(db_session, organization):
    result = await db_session.execute(select(User).where(User.organization_id == organization.id))
    return result.scalars().first()


@pytest.fixture
async def other_organization(db_session):
    organization, _ = await _create_org_with_user(db_session, "Globex", "admin@globex.test")
    return organization


@pytest.fixture
def ingest_csv(db_session, organization, user):
    """Ingest CSV text into a new dataset, by default for ``organization``"""

    async def _ingest(csv_text: str, name: str = "sales", organization_id=None, uploader_id=None,
                      batch_size: int = 1000):
        pipeline = IngestionPipeline(db_session, batch_size=batch_size)
        return await pipeline.ingest(
            organization_id=organization_id or organization.id,
            uploader_id=uploader_id or user.id,
            name=name,
            csv_text=csv_text,
            file_name=f"{name}.csv",
            file_size=len(csv_text.encode("utf-8")),
        )

    return _ingest


@pytest.fixture
def auth_headers(organization, user):
    token = create_access_token(user.id, organization.id, email=user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def client(session_factory, cache):
    from salesscope.app.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
