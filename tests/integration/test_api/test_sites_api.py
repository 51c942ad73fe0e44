"""Integration tests for the site endpoints."""

import uuid

import httpx
import pytest
from fastapi import FastAPI
from httpx import AsyncClient


def _manifest() -> list[dict]:
    return [
        {"path": "logo.png", "storageUrl": "https://i.ibb.co/abc/logo.png", "mimeType": "image/png", "size": 4},
        {"path": "index.html", "storageUrl": "https://pastebin.com/raw/Idx1", "mimeType": "text/html", "size": 40},
    ]


async def _create(client: AsyncClient, slug: str, headers: dict[str, str] | None = None, managed: bool = False):  # type: ignore[no-untyped-def]
    return await client.post(
        "/api/v1/sites",
        json={"name": "My Site", "slug": slug, "managed": managed, "files": _manifest()},
        headers=headers or {},
    )


class TestCreateSite:
    @pytest.mark.asyncio
    async def test_anonymous_site(self, client: AsyncClient) -> None:
        resp = await _create(client, "hello-world")

        assert resp.status_code == 201
        body = resp.json()
        assert body["slug"] == "hello-world"
        assert body["views"] == 0
        assert body["status"] == "live"
        assert body["managed"] is False
        assert body["liveUrl"] == "http://localhost:8000/s/hello-world/"

    @pytest.mark.asyncio
    async def test_slug_taken(self, client: AsyncClient) -> None:
        assert (await _create(client, "dupe-slug")).status_code == 201
        resp = await _create(client, "dupe-slug")
        assert resp.status_code == 409
        assert resp.json()["detail"] == "Slug is already taken"

    @pytest.mark.asyncio
    async def test_invalid_slug(self, client: AsyncClient) -> None:
        resp = await _create(client, "Bad Slug")
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_empty_manifest_rejected(self, client: AsyncClient) -> None:
        resp = await client.post("/api/v1/sites", json={"name": "x", "slug": "empty-site", "files": []})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_managed_requires_token(self, client: AsyncClient) -> None:
        resp = await _create(client, "managed-site", managed=True)
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_token(self, client: AsyncClient) -> None:
        resp = await _create(client, "bad-token", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401


class TestCheckSlug:
    @pytest.mark.asyncio
    async def test_available(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/sites/check-slug", params={"slug": "fresh-slug"})
        assert resp.status_code == 200
        assert resp.json() == {"slug": "fresh-slug", "available": True, "error": None}

    @pytest.mark.asyncio
    async def test_taken(self, client: AsyncClient) -> None:
        await _create(client, "used-slug")
        body = (await client.get("/api/v1/sites/check-slug", params={"slug": "used-slug"})).json()
        assert body["available"] is False
        assert body["error"] == "Slug is already taken"

    @pytest.mark.asyncio
    async def test_malformed(self, client: AsyncClient) -> None:
        body = (await client.get("/api/v1/sites/check-slug", params={"slug": "ab"})).json()
        assert body["available"] is False
        assert "at least 3" in body["error"]


class TestManagedSites:
    @pytest.mark.asyncio
    async def test_owner_can_read_and_delete(self, client: AsyncClient, owner_headers: dict[str, str]) -> None:
        created = await _create(client, "owned-site", headers=owner_headers, managed=True)
        assert created.status_code == 201
        site_id = created.json()["id"]

        detail = await client.get(f"/api/v1/sites/{site_id}", headers=owner_headers)
        assert detail.status_code == 200
        assert [f["path"] for f in detail.json()["files"]] == ["logo.png", "index.html"]

        deleted = await client.delete(f"/api/v1/sites/{site_id}", headers=owner_headers)
        assert deleted.status_code == 204
        gone = await client.get(f"/api/v1/sites/{site_id}", headers=owner_headers)
        assert gone.status_code == 404

    @pytest.mark.asyncio
    async def test_stranger_forbidden(
        self, client: AsyncClient, owner_headers: dict[str, str], stranger_headers: dict[str, str]
    ) -> None:
        site_id = (await _create(client, "private-site", headers=owner_headers, managed=True)).json()["id"]

        assert (await client.get(f"/api/v1/sites/{site_id}", headers=stranger_headers)).status_code == 403
        assert (await client.delete(f"/api/v1/sites/{site_id}", headers=stranger_headers)).status_code == 403

    @pytest.mark.asyncio
    async def test_anonymous_site_has_no_owner(self, client: AsyncClient, owner_headers: dict[str, str]) -> None:
        site_id = (await _create(client, "public-site", headers=owner_headers)).json()["id"]
        assert (await client.get(f"/api/v1/sites/{site_id}", headers=owner_headers)).status_code == 403

    @pytest.mark.asyncio
    async def test_requires_token(self, client: AsyncClient) -> None:
        assert (await client.get(f"/api/v1/sites/{uuid.uuid4()}")).status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_site(self, client: AsyncClient, owner_headers: dict[str, str]) -> None:
        assert (await client.get(f"/api/v1/sites/{uuid.uuid4()}", headers=owner_headers)).status_code == 404


class TestSiteAnalytics:
    @pytest.mark.asyncio
    async def test_owner_sees_counted_views(
        self,
        client: AsyncClient,
        app: FastAPI,
        owner_headers: dict[str, str],
        upstream_routes: dict[str, httpx.Response],
    ) -> None:
        upstream_routes["https://pastebin.com/raw/Idx1"] = httpx.Response(200, content=b"<html><head></head></html>")
        site_id = (await _create(client, "stats-site", headers=owner_headers, managed=True)).json()["id"]
        await client.get("/s/stats-site")
        await client.get("/s/stats-site/")
        await app.state.task_runner.drain()

        resp = await client.get(f"/api/v1/sites/{site_id}/analytics", headers=owner_headers)

        assert resp.status_code == 200
        body = resp.json()
        assert body["siteId"] == site_id
        assert body["slug"] == "stats-site"
        assert body["totalViews"] == 2
        assert body["recentViews"] == 2
        assert [c["views"] for c in body["analytics"]["daily"]] == [2]
        assert [c["views"] for c in body["analytics"]["monthly"]] == [2]
        assert body["lastViewed"] is not None

    @pytest.mark.asyncio
    async def test_no_views_yet(self, client: AsyncClient, owner_headers: dict[str, str]) -> None:
        site_id = (await _create(client, "quiet-site", headers=owner_headers, managed=True)).json()["id"]

        body = (await client.get(f"/api/v1/sites/{site_id}/analytics", headers=owner_headers)).json()

        assert body["totalViews"] == 0
        assert body["analytics"] == {"daily": [], "weekly": [], "monthly": []}
        assert body["lastViewed"] is None

    @pytest.mark.asyncio
    async def test_owner_only(
        self, client: AsyncClient, owner_headers: dict[str, str], stranger_headers: dict[str, str]
    ) -> None:
        site_id = (await _create(client, "secret-stats", headers=owner_headers, managed=True)).json()["id"]

        assert (await client.get(f"/api/v1/sites/{site_id}/analytics", headers=stranger_headers)).status_code == 403
        assert (await client.get(f"/api/v1/sites/{site_id}/analytics")).status_code == 401


class TestSiteFileContent:
    @pytest.mark.asyncio
    async def test_reads_document(
        self, client: AsyncClient, owner_headers: dict[str, str], upstream_routes: dict[str, httpx.Response]
    ) -> None:
        upstream_routes["https://pastebin.com/raw/Idx1"] = httpx.Response(200, content=b"<html>stored</html>")
        site_id = (await _create(client, "read-site", headers=owner_headers, managed=True)).json()["id"]

        resp = await client.get(f"/api/v1/sites/{site_id}/files/index.html", headers=owner_headers)

        assert resp.status_code == 200
        body = resp.json()
        assert body["path"] == "index.html"
        assert body["content"] == "<html>stored</html>"
        assert body["mimeType"] == "text/html"
        assert body["storageUrl"] == "https://pastebin.com/raw/Idx1"

    @pytest.mark.asyncio
    async def test_image_has_null_content(self, client: AsyncClient, owner_headers: dict[str, str]) -> None:
        site_id = (await _create(client, "img-read-site", headers=owner_headers, managed=True)).json()["id"]

        body = (await client.get(f"/api/v1/sites/{site_id}/files/logo.png", headers=owner_headers)).json()

        assert body["content"] is None
        assert body["storageUrl"] == "https://i.ibb.co/abc/logo.png"

    @pytest.mark.asyncio
    async def test_unknown_file(self, client: AsyncClient, owner_headers: dict[str, str]) -> None:
        site_id = (await _create(client, "missing-file-site", headers=owner_headers, managed=True)).json()["id"]

        resp = await client.get(f"/api/v1/sites/{site_id}/files/nope.css", headers=owner_headers)

        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_stranger_forbidden(
        self, client: AsyncClient, owner_headers: dict[str, str], stranger_headers: dict[str, str]
    ) -> None:
        site_id = (await _create(client, "guarded-files", headers=owner_headers, managed=True)).json()["id"]

        resp = await client.get(f"/api/v1/sites/{site_id}/files/index.html", headers=stranger_headers)

        assert resp.status_code == 403
