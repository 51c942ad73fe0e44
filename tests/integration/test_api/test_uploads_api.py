"""Integration tests for the upload endpoints."""

import io
import zipfile

import pytest
from httpx import AsyncClient

from siteplod_api.lib.errors import RelocationError, RelocationErrorKind


def _zip(members: dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in members.items():
            archive.writestr(name, content)
    return buffer.getvalue()


class TestUpload:
    @pytest.mark.asyncio
    async def test_archive_upload_returns_manifest(self, client: AsyncClient) -> None:
        data = _zip(
            {
                "site/index.html": b'<html><head><link href="style.css" rel="stylesheet"></head></html>',
                "site/style.css": b"body{background:url(bg.png)}",
                "site/bg.png": b"\x89PNG",
            }
        )
        resp = await client.post("/api/v1/upload", files={"file": ("site.zip", data, "application/zip")})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["fileCount"] == 3
        assert [f["path"] for f in body["files"]] == ["bg.png", "style.css", "index.html"]
        assert body["files"][0]["storageUrl"] == "https://i.ibb.co/fake/bg.png"
        assert body["files"][0]["mimeType"] == "image/png"

    @pytest.mark.asyncio
    async def test_document_missing_images_then_resubmitted(self, client: AsyncClient) -> None:
        html = b'<html><head></head><body><img src="images/cat.jpg"></body></html>'

        first = await client.post("/api/v1/upload", files={"file": ("page.html", html, "text/html")})
        assert first.status_code == 400
        error = first.json()
        assert error["error"] == "Missing images"
        assert error["missingImages"] == ["images/cat.jpg"]
        assert error["requiresImageUpload"] is True
        assert error["statusCode"] == 400

        second = await client.post(
            "/api/v1/upload",
            files=[("file", ("page.html", html, "text/html")), ("images", ("cat.jpg", b"\xff\xd8", "image/jpeg"))],
        )
        assert second.status_code == 200
        assert [f["path"] for f in second.json()["files"]] == ["images/cat.jpg", "index.html"]

    @pytest.mark.asyncio
    async def test_disallowed_file_type(self, client: AsyncClient) -> None:
        resp = await client.post("/api/v1/upload", files={"file": ("notes.txt", b"hello", "text/plain")})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid file type"

    @pytest.mark.asyncio
    async def test_video_reference_rejected(self, client: AsyncClient) -> None:
        html = b'<video src="intro.mp4"></video>'
        resp = await client.post("/api/v1/upload", files={"file": ("index.html", html, "text/html")})
        assert resp.status_code == 400
        assert resp.json()["videoExtensions"] == [".mp4"]

    @pytest.mark.asyncio
    async def test_corrupt_archive(self, client: AsyncClient) -> None:
        resp = await client.post("/api/v1/upload", files={"file": ("site.zip", b"garbage", "application/zip")})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Extraction failed"

    @pytest.mark.asyncio
    async def test_relocation_failure_surfaces_status(self, client: AsyncClient, text_host) -> None:  # type: ignore[no-untyped-def]
        text_host.fail_on["index.html"] = RelocationError(
            RelocationErrorKind.RATE_LIMITED, "slow down", status_code=429, provider="pastebin"
        )
        resp = await client.post("/api/v1/upload", files={"file": ("index.html", b"<p>hi</p>", "text/html")})
        assert resp.status_code == 429
        body = resp.json()
        assert body["error"] == "Upload failed"
        assert body["kind"] == "rate_limited"
        assert "rate limits exceeded" in body["message"]


class TestUploadImages:
    @pytest.mark.asyncio
    async def test_partial_success(self, client: AsyncClient, image_host) -> None:  # type: ignore[no-untyped-def]
        image_host.fail_on["b.png"] = RelocationError(RelocationErrorKind.PROVIDER_ERROR, "broken", status_code=400)
        resp = await client.post(
            "/api/v1/upload-images",
            files=[
                ("images", ("a.png", b"1", "image/png")),
                ("images", ("b.png", b"2", "image/png")),
            ],
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["uploadedCount"] == 1
        assert body["totalCount"] == 2
        assert body["images"][0]["originalName"] == "a.png"
        assert body["images"][0]["uploadedUrl"] == "https://i.ibb.co/fake/a.png"
        assert len(body["errors"]) == 1

    @pytest.mark.asyncio
    async def test_invalid_mime_type(self, client: AsyncClient) -> None:
        resp = await client.post("/api/v1/upload-images", files=[("images", ("a.txt", b"1", "text/plain"))])
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid file type"
