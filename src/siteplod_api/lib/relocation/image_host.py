"""ImgBB image host.

Images are sent base64-encoded to ``POST <endpoint>?key=<key>``; a
successful answer is ``{"success": true, "data": {"url": ...}}``.
"""

import base64

import httpx

from siteplod_api.lib.errors import RelocationError, RelocationErrorKind
from siteplod_api.lib.relocation.base import BaseAssetHost, classify_response
from siteplod_api.lib.relocation.credentials import CredentialPool

IMGBB_API_URL = "https://api.imgbb.com/1/upload"
DEFAULT_TIMEOUT = 30.0


class ImgBBHost(BaseAssetHost):
    """Binary asset host backed by the ImgBB upload API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        pool: CredentialPool,
        *,
        endpoint: str = IMGBB_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(client, pool, endpoint=endpoint, timeout=timeout)

    @property
    def provider_name(self) -> str:
        return "imgbb"

    @property
    def display_name(self) -> str:
        return "ImgBB"

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text.strip()[:200] or f"HTTP {response.status_code}"
        error = payload.get("error") if isinstance(payload, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        return f"HTTP {response.status_code}"

    async def upload_with_key(self, key: str, name: str, content: bytes) -> str:
        response = await self._client.post(
            self._endpoint,
            params={"key": key},
            data={"image": base64.b64encode(content).decode("ascii"), "name": name},
            timeout=self._timeout,
        )

        if response.status_code >= 400:
            raise classify_response(
                self.provider_name,
                response.status_code,
                response.text,
                f"ImgBB upload failed: {self._error_message(response)}",
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise RelocationError(
                RelocationErrorKind.PROVIDER_ERROR,
                "ImgBB API returned a response that is not JSON",
                provider=self.provider_name,
                cause=e,
            ) from e

        if not isinstance(payload, dict):
            payload = {}
        data = payload.get("data")
        url = data.get("url") if isinstance(data, dict) else None
        if not payload.get("success") or not url:
            raise RelocationError(
                RelocationErrorKind.PROVIDER_ERROR,
                "ImgBB API returned unsuccessful response",
                provider=self.provider_name,
            )
        return str(url)
