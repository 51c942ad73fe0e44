"""Archive member path sanitization.

``sanitize_path`` never raises: whatever the archive claims a member is
called, the result is a relative ``/``-separated path made only of
``[A-Za-z0-9._/-]`` with no traversal segments, or the placeholder
``"unnamed"``. Applying it twice gives the same result as applying it once.
"""

import re

PLACEHOLDER_PATH = "unnamed"

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._/-]")
_DOT_RUNS = re.compile(r"\.{2,}")


def sanitize_path(raw: str) -> str:
    """Normalize an untrusted file path.

    Args:
        raw: Path as found in the upload (any separators, any characters).

    Returns:
        The cleaned relative path, or ``"unnamed"`` when nothing usable remains.
    """
    path = _CONTROL_CHARS.sub("", raw.replace("\\", "/"))

    segments = [seg for seg in path.split("/") if seg not in ("", ".", "..")]
    cleaned: list[str] = []
    for segment in segments:
        segment = _DOT_RUNS.sub(".", _UNSAFE_CHARS.sub("_", segment))
        if segment and segment != ".":
            cleaned.append(segment)

    return "/".join(cleaned) or PLACEHOLDER_PATH


def is_placeholder(path: str) -> bool:
    return not path or path == PLACEHOLDER_PATH
