"""Fixtures for API tests: the real application wired to fakes and SQLite."""

from collections.abc import AsyncGenerator

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from siteplod_api.core.background import InProcessTaskRunner
from siteplod_api.core.config import Settings, get_settings
from siteplod_api.core.dependencies import get_async_session, get_session_maker
from siteplod_api.core.security import create_identity_token
from siteplod_api.lib.relocation import AssetRelocator
from siteplod_api.main import create_app


@pytest.fixture
def upstream_routes() -> dict[str, httpx.Response]:
    """Hosted URL -> canned response served by the mocked upstream client."""
    return {}


@pytest.fixture
def app(
    monkeypatch: pytest.MonkeyPatch,
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    relocator: AssetRelocator,
    upstream_routes: dict[str, httpx.Response],
) -> FastAPI:
    monkeypatch.setenv("DATABASE_URL", settings.database_url)
    monkeypatch.setenv("JWT_SECRET_KEY", settings.jwt_secret_key)
    application = create_app()

    async def _session() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            yield session

    def _upstream(request: httpx.Request) -> httpx.Response:
        canned = upstream_routes.get(str(request.url))
        if canned is None:
            return httpx.Response(404)
        return httpx.Response(canned.status_code, headers=canned.headers, content=canned.content)

    application.dependency_overrides[get_settings] = lambda: settings
    application.dependency_overrides[get_async_session] = _session
    application.dependency_overrides[get_session_maker] = lambda: session_factory
    application.state.http_client = httpx.AsyncClient(transport=httpx.MockTransport(_upstream))
    application.state.relocator = relocator
    application.state.task_runner = InProcessTaskRunner()
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await app.state.task_runner.drain()
    await app.state.http_client.aclose()


@pytest.fixture
def owner_headers(settings: Settings) -> dict[str, str]:
    token = create_identity_token("owner-1", settings.jwt_secret_key, settings.jwt_algorithm)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def stranger_headers(settings: Settings) -> dict[str, str]:
    token = create_identity_token("stranger-2", settings.jwt_secret_key, settings.jwt_algorithm)
    return {"Authorization": f"Bearer {token}"}
