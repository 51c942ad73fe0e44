"""Publish CLI commands: run the pipeline from a terminal and inspect sites."""

import asyncio
import json
from pathlib import Path

import typer
from loguru import logger

publish_app = typer.Typer(name="publish", help="Publish files and inspect published sites.")


@publish_app.command("file")
def file_command(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="HTML file or ZIP archive"),
    images: list[Path] = typer.Option([], "--images", "-i", help="Images referenced by an HTML file"),
    slug: str | None = typer.Option(None, "--slug", help="Persist the manifest as a site with this slug"),
    name: str | None = typer.Option(None, "--name", help="Site display name (defaults to the slug)"),
) -> None:
    """Relocate a file's contents and print the manifest as JSON."""
    asyncio.run(_file_command(path, images=images, slug=slug, name=name))


async def _file_command(path: Path, *, images: list[Path], slug: str | None, name: str | None) -> None:
    """Async implementation of the file publish command."""
    import httpx

    from siteplod_api.core.config import get_settings
    from siteplod_api.core.database import dispose_engine, get_session_factory, init_engine
    from siteplod_api.lib.errors import PipelineError
    from siteplod_api.lib.relocation import build_relocator
    from siteplod_api.lib.serving import USER_AGENT
    from siteplod_api.services.publish_service import publish_upload
    from siteplod_api.services.site_service import create_site, validate_slug

    settings = get_settings()
    if slug is not None and (slug_error := validate_slug(slug)):
        typer.echo(f"Error: {slug_error}", err=True)
        raise typer.Exit(code=1)

    attached = [(image.name, image.read_bytes()) for image in images]
    async with httpx.AsyncClient(follow_redirects=True, headers={"User-Agent": USER_AGENT}) as client:
        relocator = build_relocator(settings, client)
        try:
            manifest = await publish_upload(
                path.read_bytes(),
                path.name,
                relocator,
                images=attached,
                max_upload_bytes=settings.max_upload_bytes,
                concurrency=settings.relocation_concurrency,
            )
        except PipelineError as e:
            typer.echo(json.dumps(e.to_dict(), indent=2), err=True)
            raise typer.Exit(code=1) from e

    typer.echo(json.dumps(manifest.to_dict(), indent=2))
    if slug is None:
        return

    init_engine(settings.database_url, schema=settings.database_schema)
    try:
        factory = get_session_factory()
        async with factory() as session:
            try:
                site = await create_site(session, name=name or slug, slug=slug, files=list(manifest))
            except ValueError as e:
                typer.echo(f"Error: {e}", err=True)
                raise typer.Exit(code=1) from e
        logger.info("Site {} created", site.id)
        typer.echo(f"Live at {settings.live_url(site.slug)}")
    finally:
        await dispose_engine()


@publish_app.command("status")
def status_command(
    slug: str = typer.Argument(..., help="Site slug"),
) -> None:
    """Show a published site's views and manifest."""
    asyncio.run(_status_command(slug))


async def _status_command(slug: str) -> None:
    """Async implementation of the status command."""
    from siteplod_api.core.config import get_settings
    from siteplod_api.core.database import dispose_engine, get_session_factory, init_engine
    from siteplod_api.services.site_service import get_site_by_slug, list_site_files

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)
    try:
        factory = get_session_factory()
        async with factory() as session:
            site = await get_site_by_slug(session, slug)
            if site is None:
                typer.echo(f"Error: site '{slug}' not found", err=True)
                raise typer.Exit(code=1)
            files = await list_site_files(session, site.id)
    finally:
        await dispose_engine()

    typer.echo(f"{site.name} ({site.slug}) - {site.status}, {site.views} views")
    typer.echo(f"URL: {settings.live_url(site.slug)}")
    for f in files:
        typer.echo(f"  {f.path:<50} {f.mime_type:<28} {f.size:>10}  {f.storage_url}")
