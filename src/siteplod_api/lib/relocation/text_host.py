"""Pastebin text host.

Stylesheets, scripts and documents are stored as unlisted pastes that
never expire. Pastebin answers with a plain-text body: either the paste's
view URL or an error string, often with status 200.
"""

import httpx

from siteplod_api.lib.relocation.base import BaseAssetHost, classify_response
from siteplod_api.lib.relocation.credentials import CredentialPool

PASTEBIN_API_URL = "https://pastebin.com/api/api_post.php"
PASTEBIN_HOST = "pastebin.com"
DEFAULT_TIMEOUT = 45.0


def to_raw_url(url: str, host: str = PASTEBIN_HOST) -> str:
    """Convert a paste view URL into its raw-content form.

    ``https://pastebin.com/abc`` becomes ``https://pastebin.com/raw/abc``;
    URLs already in raw form, or from another host, are returned unchanged.
    """
    if f"{host}/raw/" in url:
        return url
    return url.replace(f"{host}/", f"{host}/raw/", 1)


class PastebinHost(BaseAssetHost):
    """Text asset host backed by the Pastebin paste API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        pool: CredentialPool,
        *,
        endpoint: str = PASTEBIN_API_URL,
        host: str = PASTEBIN_HOST,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(client, pool, endpoint=endpoint, timeout=timeout)
        self._host = host

    @property
    def provider_name(self) -> str:
        return "pastebin"

    @property
    def display_name(self) -> str:
        return "Pastebin"

    @property
    def host(self) -> str:
        return self._host

    def _is_empty(self, content: bytes) -> bool:
        return not content.strip()

    async def upload_with_key(self, key: str, name: str, content: bytes) -> str:
        form = {
            "api_dev_key": key,
            "api_option": "paste",
            "api_paste_code": content.decode("utf-8", errors="replace"),
            "api_paste_name": name,
            "api_paste_expire_date": "N",
            "api_paste_private": "1",
        }
        response = await self._client.post(self._endpoint, data=form, timeout=self._timeout)
        body = response.text.strip()

        if response.status_code >= 400:
            raise classify_response(
                self.provider_name,
                response.status_code,
                body,
                body or f"HTTP {response.status_code}",
            )
        if not body.startswith(f"https://{self._host}/"):
            raise classify_response(self.provider_name, None, body, f"Pastebin API error: {body}")

        return to_raw_url(body, self._host)
