"""Serving library: fetch hosted content back and prepare it for browsers."""

from enum import StrEnum

from siteplod_api.lib.serving.document import inject_base_directive
from siteplod_api.lib.serving.fetcher import USER_AGENT, fetch_once, fetch_with_retry


class ServeState(StrEnum):
    """Progress of a single serve request."""

    RESOLVING = "resolving"
    FETCHING = "fetching"
    INJECTING = "injecting"
    PROXYING = "proxying"
    SERVED = "served"
    NOT_FOUND = "not_found"
    UPSTREAM_FAILURE = "upstream_failure"


__all__ = [
    "USER_AGENT",
    "ServeState",
    "fetch_once",
    "fetch_with_retry",
    "inject_base_directive",
]
