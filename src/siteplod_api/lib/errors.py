"""Error taxonomy for the publish and serve pipelines.

Every error carries a stable ``(category, message, status_code)`` triple
which the API renders as ``{"error", "message", "statusCode"}`` plus any
kind-specific fields from ``extra``.
"""

from enum import StrEnum
from typing import Any


class PipelineError(Exception):
    """Base class for all user-facing pipeline errors.

    Args:
        category: Short, stable error category shown to clients.
        message: Human-readable, actionable description.
        status_code: HTTP status code the error maps to.
    """

    def __init__(self, category: str, message: str, status_code: int) -> None:
        self.category = category
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    @property
    def extra(self) -> dict[str, Any]:
        """Additional response fields for this error."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.category,
            "message": self.message,
            "statusCode": self.status_code,
            **self.extra,
        }


class ExtractionError(PipelineError):
    """The uploaded archive is malformed or holds no usable files."""

    def __init__(self, message: str) -> None:
        super().__init__("Extraction failed", message, 400)


class RejectionKind(StrEnum):
    """Why the content validator refused a package."""

    DISALLOWED_TYPE = "disallowed_type"
    REQUIRED_EXTENSION_MISSING = "required_extension_missing"
    FORBIDDEN_MEDIA = "forbidden_media"
    TOO_LARGE = "too_large"
    MISSING_ASSETS = "missing_assets"


_REJECTION_CATEGORIES: dict[RejectionKind, str] = {
    RejectionKind.DISALLOWED_TYPE: "Invalid file type",
    RejectionKind.REQUIRED_EXTENSION_MISSING: "Invalid file name",
    RejectionKind.FORBIDDEN_MEDIA: "Video files not supported",
    RejectionKind.TOO_LARGE: "File too large",
    RejectionKind.MISSING_ASSETS: "Missing images",
}


class Rejection(PipelineError):
    """The package was understood but is not acceptable for publishing.

    ``MISSING_ASSETS`` is not a dead end: the client resubmits the document
    with the listed images attached.
    """

    def __init__(
        self,
        kind: RejectionKind,
        message: str,
        *,
        extensions: list[str] | None = None,
        paths: list[str] | None = None,
    ) -> None:
        self.kind = kind
        self.extensions = list(extensions or [])
        self.paths = list(paths or [])
        status_code = 413 if kind == RejectionKind.TOO_LARGE else 400
        super().__init__(_REJECTION_CATEGORIES[kind], message, status_code)

    @property
    def extra(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind.value}
        if self.kind == RejectionKind.FORBIDDEN_MEDIA:
            data["videoExtensions"] = self.extensions
        if self.kind == RejectionKind.MISSING_ASSETS:
            data["missingImages"] = self.paths
            data["requiresImageUpload"] = True
        return data


class RelocationErrorKind(StrEnum):
    """Classified failure from an asset host."""

    RATE_LIMITED = "rate_limited"
    AUTH_INVALID = "auth_invalid"
    NETWORK_UNREACHABLE = "network_unreachable"
    PROVIDER_ERROR = "provider_error"
    TIMEOUT = "timeout"


_RELOCATION_DEFAULT_STATUS: dict[RelocationErrorKind, int] = {
    RelocationErrorKind.RATE_LIMITED: 429,
    RelocationErrorKind.AUTH_INVALID: 401,
    RelocationErrorKind.NETWORK_UNREACHABLE: 503,
    RelocationErrorKind.PROVIDER_ERROR: 502,
    RelocationErrorKind.TIMEOUT: 408,
}


class RelocationError(PipelineError):
    """An asset could not be stored at its external host.

    Args:
        kind: Failure classification.
        message: Description, usually including the provider's own message.
        status_code: Provider HTTP status, or the kind's default.
        provider: Name of the failing host.
        cause: Underlying exception, if any.
    """

    def __init__(
        self,
        kind: RelocationErrorKind,
        message: str,
        *,
        status_code: int | None = None,
        provider: str = "",
        cause: BaseException | None = None,
    ) -> None:
        self.kind = kind
        self.provider = provider
        self.cause = cause
        super().__init__("Upload failed", message, status_code or _RELOCATION_DEFAULT_STATUS[kind])

    @property
    def rotatable(self) -> bool:
        """Whether retrying with the next credential can help.

        A bad-request answer means the content itself is at fault.
        """
        return not (self.kind == RelocationErrorKind.PROVIDER_ERROR and self.status_code == 400)

    @property
    def extra(self) -> dict[str, Any]:
        return {"kind": self.kind.value}


class UpstreamFailure(PipelineError):
    """Hosted content could not be fetched at serve time."""

    def __init__(self, message: str, *, upstream_status: int | None = None) -> None:
        self.upstream_status = upstream_status
        super().__init__("Failed to load site", message, 500)


class SiteNotFound(PipelineError):
    """Unknown site slug or unknown asset path."""

    def __init__(self, message: str = "Site not found") -> None:
        super().__init__("Not found", message, 404)
