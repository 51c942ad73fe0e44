"""FastAPI application factory.

Creates the FastAPI app with lifespan management, exception handlers,
and OpenAPI metadata.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from loguru import logger

from siteplod_api.core.background import InProcessTaskRunner
from siteplod_api.core.config import get_settings
from siteplod_api.core.database import dispose_engine, init_engine
from siteplod_api.core.logging import setup_logging
from siteplod_api.lib.errors import PipelineError
from siteplod_api.lib.relocation import build_relocator
from siteplod_api.lib.serving import USER_AGENT


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifecycle.

    Startup builds the engine, one shared HTTP client, the relocator and the
    background runner. Shutdown lets pending view counts finish, then
    releases the client and the engine.
    """
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)
    init_engine(settings.database_url, echo=False, schema=settings.database_schema)

    client = httpx.AsyncClient(follow_redirects=True, headers={"User-Agent": USER_AGENT})
    app.state.http_client = client
    app.state.relocator = build_relocator(settings, client)
    app.state.task_runner = InProcessTaskRunner()
    if not app.state.relocator.image_host.is_configured:
        logger.warning("No ImgBB API keys configured; binary uploads will fail")
    if not app.state.relocator.text_host.is_configured:
        logger.warning("No Pastebin API keys configured; text uploads will fail")

    yield

    await app.state.task_runner.drain()
    await client.aclose()
    await dispose_engine()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="SitePlod API",
        description="Publish static websites by relocating their files to free external hosts",
        version="0.1.0",
        lifespan=lifespan,
    )

    site_prefix = settings.public_site_prefix + "/"

    # Register exception handlers
    @app.exception_handler(PipelineError)
    async def pipeline_error_handler(request: Request, exc: PipelineError) -> Response:
        if request.url.path.startswith(site_prefix):
            # Browsers visiting a site get a plain body, not JSON
            return PlainTextResponse(exc.message, status_code=exc.status_code)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc)},
        )

    # Register middleware and routers
    from siteplod_api.api.router import create_public_router, create_router, setup_middleware

    setup_middleware(app, settings)
    app.include_router(create_router(settings))
    app.include_router(create_public_router(settings))

    return app
