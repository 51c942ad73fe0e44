"""Shared test fixtures for settings, async database sessions and fake asset hosts."""

from collections.abc import AsyncGenerator

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from siteplod_api.core.config import Settings
from siteplod_api.lib.errors import RelocationError
from siteplod_api.lib.relocation import AssetRelocator, BaseAssetHost, CredentialPool
from siteplod_api.models.base import Base


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key="test-secret-key-not-for-production",
        jwt_algorithm="HS256",
        imgbb_api_keys="img-key-one-123456,img-key-two-123456",
        pastebin_api_keys="paste-key-one-12345,paste-key-two-12345",
        serve_backoff_seconds=0,
    )


def _enable_foreign_keys(dbapi_connection, _record) -> None:  # type: ignore[no-untyped-def]
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    event.listen(engine.sync_engine, "connect", _enable_foreign_keys)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, expire_on_commit=False)


@pytest.fixture
async def async_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession]:
    """Create a per-test async session."""
    async with session_factory() as session:
        yield session


class FakeHost(BaseAssetHost):
    """In-memory asset host recording every upload.

    ``fail_on`` maps an entry name to the error raised when it is uploaded.
    """

    def __init__(self, name: str, base_url: str, fail_on: dict[str, RelocationError] | None = None) -> None:
        super().__init__(None, CredentialPool.from_keys(name, ["fake-key-123456"]), endpoint="", timeout=1.0)  # type: ignore[arg-type]
        self._name = name
        self.base_url = base_url
        self.fail_on = fail_on or {}
        self.uploads: dict[str, bytes] = {}

    @property
    def provider_name(self) -> str:
        return self._name

    async def upload_with_key(self, key: str, name: str, content: bytes) -> str:
        if name in self.fail_on:
            raise self.fail_on[name]
        self.uploads[name] = content
        return f"{self.base_url}/{name}"


@pytest.fixture
def image_host() -> FakeHost:
    return FakeHost("imgbb", "https://i.ibb.co/fake")


@pytest.fixture
def text_host() -> FakeHost:
    return FakeHost("pastebin", "https://pastebin.com/raw")


@pytest.fixture
def relocator(image_host: FakeHost, text_host: FakeHost) -> AssetRelocator:
    return AssetRelocator(image_host, text_host)
