"""Root API routers and middleware registration."""

from fastapi import APIRouter, FastAPI

from siteplod_api.api.middleware import RateLimitMiddleware, RateLimitRule, SecurityHeadersMiddleware, setup_cors
from siteplod_api.core.config import Settings

UPLOADS_PER_HOUR = 10
SITES_PER_HOUR = 5


def create_router(settings: Settings) -> APIRouter:
    """Create the versioned API router with all sub-routers included.

    Args:
        settings: Application settings.

    Returns:
        Configured API router.
    """
    from siteplod_api.api.v1.sites import sites_router
    from siteplod_api.api.v1.uploads import uploads_router

    root_router = APIRouter(prefix=settings.api_v1_prefix)
    root_router.include_router(uploads_router)
    root_router.include_router(sites_router)

    return root_router


def create_public_router(settings: Settings) -> APIRouter:
    """Router serving published sites under ``public_site_prefix``."""
    from siteplod_api.api.public import public_router

    root_router = APIRouter(prefix=settings.public_site_prefix)
    root_router.include_router(public_router)
    return root_router


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware on the FastAPI app.

    Args:
        app: The FastAPI application.
        settings: Application settings.
    """
    rules = [
        RateLimitRule("POST", f"{settings.api_v1_prefix}/upload", UPLOADS_PER_HOUR, 3600.0),
        RateLimitRule("POST", f"{settings.api_v1_prefix}/upload-images", UPLOADS_PER_HOUR, 3600.0),
        RateLimitRule("POST", f"{settings.api_v1_prefix}/sites", SITES_PER_HOUR, 3600.0),
    ]
    setup_cors(app, settings)
    app.add_middleware(SecurityHeadersMiddleware, site_prefix=settings.public_site_prefix)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_minute=settings.rate_limit_per_minute,
        trusted_proxy_headers=settings.trusted_proxy_header_list,
        rules=rules,
    )
