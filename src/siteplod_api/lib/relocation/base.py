"""Abstract asset host interface and shared failure classification."""

from abc import ABC, abstractmethod

import httpx
from loguru import logger

from siteplod_api.lib.errors import RelocationError, RelocationErrorKind
from siteplod_api.lib.relocation.credentials import CredentialPool, rotate_keys

# Body fragments that signal quota exhaustion even on a 200/400 response
_RATE_LIMIT_HINTS = ("limit", "maximum number")
_AUTH_HINTS = ("invalid api_dev_key", "invalid api key", "invalid api_user_key")


def classify_response(provider: str, status_code: int | None, body: str, message: str) -> RelocationError:
    """Classify an unsuccessful provider answer.

    Args:
        provider: Provider name for the error.
        status_code: HTTP status, or None when the provider answered 2xx
            with an error body.
        body: Raw response body used for hint matching.
        message: Message to carry on the error.
    """
    lowered = body.lower()
    if status_code in (429, 422) or any(hint in lowered for hint in _RATE_LIMIT_HINTS):
        return RelocationError(
            RelocationErrorKind.RATE_LIMITED,
            message,
            status_code=status_code if status_code and status_code >= 400 else 429,
            provider=provider,
        )
    if status_code in (401, 403) or any(hint in lowered for hint in _AUTH_HINTS):
        return RelocationError(
            RelocationErrorKind.AUTH_INVALID,
            message,
            status_code=status_code if status_code in (401, 403) else 401,
            provider=provider,
        )
    return RelocationError(
        RelocationErrorKind.PROVIDER_ERROR,
        message,
        status_code=status_code if status_code and status_code >= 400 else 502,
        provider=provider,
    )


def classify_transport_error(provider: str, display_name: str, exc: httpx.TransportError) -> RelocationError:
    """Classify a request that never produced a response."""
    if isinstance(exc, httpx.TimeoutException):
        return RelocationError(
            RelocationErrorKind.TIMEOUT,
            f"{display_name} upload timed out. Please try again.",
            provider=provider,
            cause=exc,
        )
    return RelocationError(
        RelocationErrorKind.NETWORK_UNREACHABLE,
        f"Unable to connect to {display_name} API: {exc.__class__.__name__}",
        provider=provider,
        cause=exc,
    )


class BaseAssetHost(ABC):
    """An external service that stores uploaded content and returns a URL.

    Concrete hosts implement a single attempt with one key in
    ``upload_with_key``; ``upload`` adds emptiness checks, transport error
    classification and key rotation over the host's credential pool.

    Args:
        client: Shared HTTP client, owned by the caller.
        pool: Credentials for this host.
        endpoint: Upload endpoint URL.
        timeout: Per-attempt timeout in seconds.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        pool: CredentialPool,
        *,
        endpoint: str,
        timeout: float,
    ) -> None:
        self._client = client
        self._pool = pool
        self._endpoint = endpoint
        self._timeout = timeout

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique name identifying this host."""

    @property
    def display_name(self) -> str:
        return self.provider_name

    @property
    def is_configured(self) -> bool:
        return bool(self._pool)

    @property
    def pool(self) -> CredentialPool:
        return self._pool

    @abstractmethod
    async def upload_with_key(self, key: str, name: str, content: bytes) -> str:
        """Perform one upload attempt.

        Returns:
            The hosted URL.

        Raises:
            RelocationError: On an unsuccessful answer.
            httpx.TransportError: On a network failure (classified by the caller).
        """

    def _is_empty(self, content: bytes) -> bool:
        return not content

    async def upload(self, name: str, content: bytes) -> str:
        """Upload ``content`` under ``name``, rotating keys on failure.

        Raises:
            RelocationError: If the content is empty, or every usable key failed.
        """
        if self._is_empty(content):
            raise RelocationError(
                RelocationErrorKind.PROVIDER_ERROR,
                f"{self.display_name} upload of {name} failed: content is empty or invalid",
                status_code=400,
                provider=self.provider_name,
            )

        async def attempt(key: str) -> str:
            try:
                return await self.upload_with_key(key, name, content)
            except httpx.TransportError as e:
                logger.warning("{} transport error for {}: {}", self.display_name, name, e.__class__.__name__)
                raise classify_transport_error(self.provider_name, self.display_name, e) from e

        url = await rotate_keys(self._pool, attempt, display_name=self.display_name)
        logger.debug("{} stored {} ({} bytes) at {}", self.display_name, name, len(content), url)
        return url
