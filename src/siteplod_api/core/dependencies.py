"""FastAPI dependency injection for sessions, shared clients and caller identity.

Long-lived handles (HTTP client, relocator, task runner) are built once in
the application lifespan, stored on ``app.state`` and handed to routes here.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

import httpx
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from siteplod_api.core.background import BackgroundTaskRunner
from siteplod_api.core.config import Settings, get_settings
from siteplod_api.core.database import get_session_factory
from siteplod_api.core.security import decode_token
from siteplod_api.lib.relocation import AssetRelocator

bearer_scheme = HTTPBearer(auto_error=False)


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Yield an async database session with per-request lifecycle."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Session factory for work that outlives the request (view counting)."""
    return get_session_factory()


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_relocator(request: Request) -> AssetRelocator:
    return request.app.state.relocator


def get_task_runner(request: Request) -> BackgroundTaskRunner:
    return request.app.state.task_runner


async def get_optional_caller(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> str | None:
    """Return the caller's identity subject, or None for anonymous requests.

    Raises:
        HTTPException: If a bearer token is present but invalid.
    """
    if credentials is None:
        return None
    try:
        payload = decode_token(credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
    subject = payload.get("sub")
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return str(subject)


async def get_current_caller(
    caller: Annotated[str | None, Depends(get_optional_caller)],
) -> str:
    """Require an identified caller.

    Raises:
        HTTPException: 401 when no identity token was sent.
    """
    if caller is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return caller
