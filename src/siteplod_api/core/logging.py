"""Loguru logging configuration.

A human-readable stderr sink is always installed; records bound with
``json_output=True`` are additionally emitted as serialized JSON, and a
rotating file sink is added when ``log_dir`` is set.
"""

import sys
from pathlib import Path

from loguru import logger

_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | {message}"


def setup_logging(log_level: str = "INFO", log_dir: str | None = None) -> None:
    """Configure Loguru sinks for the API server and CLI.

    Args:
        log_level: Minimum log level to emit.
        log_dir: Optional directory for log files.  When set, a rotating
            file sink is added (rotated every 24 hours, retained 7 days).
    """
    level = log_level.upper()
    logger.remove()
    logger.add(sys.stderr, level=level, format=_LOG_FORMAT, serialize=False)
    logger.add(
        sys.stderr,
        level=level,
        serialize=True,
        filter=lambda record: record["extra"].get("json_output", False),
    )

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path / "siteplod-api.log",
            level=level,
            format=_LOG_FORMAT,
            rotation="24h",
            retention="7 days",
        )


def mask_credential(key: str) -> str:
    """Render a provider credential safely for log output.

    Only the first four characters are kept; short keys are fully masked.
    """
    if len(key) <= 8:
        return "****"
    return f"{key[:4]}****"
