"""Public site endpoints: reconstruct and serve published sites."""

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from siteplod_api.core.background import BackgroundTaskRunner
from siteplod_api.core.config import Settings, get_settings
from siteplod_api.core.dependencies import get_async_session, get_http_client, get_session_maker, get_task_runner
from siteplod_api.services.serve_service import ServedContent, serve_asset, serve_document

public_router = APIRouter(tags=["sites-public"])


def _to_response(content: ServedContent) -> Response:
    return Response(
        content=content.body,
        media_type=content.media_type,
        headers={"Cache-Control": content.cache_control},
    )


@public_router.get("/{slug}", response_class=Response)
@public_router.get("/{slug}/", response_class=Response, include_in_schema=False)
async def serve_site(
    slug: str,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    client: httpx.AsyncClient = Depends(get_http_client),
    runner: BackgroundTaskRunner = Depends(get_task_runner),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
    settings: Settings = Depends(get_settings),
) -> Response:
    """Serve a site's index document and count the view."""
    content = await serve_document(
        session,
        client,
        slug,
        settings=settings,
        runner=runner,
        session_factory=session_factory,
        referrer=request.headers.get("referer"),
    )
    return _to_response(content)


@public_router.get("/{slug}/{path:path}", response_class=Response)
async def serve_site_asset(
    slug: str,
    path: str,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    client: httpx.AsyncClient = Depends(get_http_client),
    runner: BackgroundTaskRunner = Depends(get_task_runner),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
    settings: Settings = Depends(get_settings),
) -> Response:
    """Serve one manifest entry by path; ``index.html`` is served as the document."""
    if path in ("", "index.html"):
        content = await serve_document(
            session,
            client,
            slug,
            settings=settings,
            runner=runner,
            session_factory=session_factory,
            referrer=request.headers.get("referer"),
        )
    else:
        content = await serve_asset(session, client, slug, path, settings=settings)
    return _to_response(content)
