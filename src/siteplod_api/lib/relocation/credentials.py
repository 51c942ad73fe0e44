"""Credential pools and key rotation for external asset hosts."""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from loguru import logger

from siteplod_api.core.logging import mask_credential
from siteplod_api.lib.errors import RelocationError, RelocationErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class CredentialPool:
    """Ordered, read-only set of API keys for one provider.

    Built once from settings at startup and shared by every request.
    """

    provider: str
    keys: tuple[str, ...]

    @classmethod
    def from_keys(cls, provider: str, keys: Sequence[str]) -> "CredentialPool":
        return cls(provider=provider, keys=tuple(k.strip() for k in keys if k.strip()))

    @classmethod
    def from_csv(cls, provider: str, value: str) -> "CredentialPool":
        return cls.from_keys(provider, value.split(","))

    def __len__(self) -> int:
        return len(self.keys)

    def __bool__(self) -> bool:
        return bool(self.keys)

    def masked(self, index: int) -> str:
        """Log-safe label for the key at ``index``."""
        return f"#{index + 1} ({mask_credential(self.keys[index])})"


def exhausted_error(display_name: str, last: RelocationError) -> RelocationError:
    """Build the error surfaced once every key has failed.

    The message names the failure class of the last attempt so operators
    can tell quota exhaustion from bad keys from an unreachable provider.
    """
    match last.kind:
        case RelocationErrorKind.RATE_LIMITED:
            message = f"{display_name} API rate limits exceeded on all available keys. Latest error: {last.message}"
        case RelocationErrorKind.AUTH_INVALID:
            message = f"All provided {display_name} API keys were invalid or rejected"
        case RelocationErrorKind.TIMEOUT:
            message = f"{display_name} upload timed out after trying all keys. Please try again later."
        case RelocationErrorKind.NETWORK_UNREACHABLE:
            message = f"Unable to connect to {display_name} API after trying all keys. Please check internet connection."
        case _:
            message = f"{display_name} upload failed on all keys: {last.message}"
    return RelocationError(
        last.kind,
        message,
        status_code=last.status_code,
        provider=last.provider,
        cause=last.cause or last,
    )


async def rotate_keys(
    pool: CredentialPool,
    attempt: Callable[[str], Awaitable[T]],
    *,
    display_name: str,
) -> T:
    """Call ``attempt`` with each key in order until one succeeds.

    Rate-limit, auth, network and generic provider failures move on to the
    next key. A bad-request answer stops rotation at once: the content is
    at fault and another key would get the same answer.

    Raises:
        RelocationError: The non-rotatable error, or the exhaustion error.
    """
    if not pool:
        raise RelocationError(
            RelocationErrorKind.PROVIDER_ERROR,
            f"No {display_name} API keys are configured",
            status_code=500,
            provider=pool.provider,
        )

    last: RelocationError | None = None
    for index, key in enumerate(pool.keys):
        try:
            return await attempt(key)
        except RelocationError as e:
            last = e
            if not e.rotatable:
                logger.warning("{} rejected the request with key {}: {}", display_name, pool.masked(index), e.message)
                raise RelocationError(
                    e.kind,
                    f"{display_name} upload failed due to invalid request: {e.message}",
                    status_code=e.status_code,
                    provider=e.provider,
                    cause=e.cause or e,
                ) from e
            if index < len(pool) - 1:
                logger.warning(
                    "{} key {} failed ({}, status {}). Trying next key...",
                    display_name,
                    pool.masked(index),
                    e.kind,
                    e.status_code,
                )

    if last is None:
        msg = "rotate_keys finished without an attempt"
        raise RuntimeError(msg)
    logger.error("{} failed on all {} keys: {}", display_name, len(pool), last.message)
    raise exhausted_error(display_name, last) from last
