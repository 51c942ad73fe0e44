"""Unit tests for logging configuration."""

from pathlib import Path

from siteplod_api.core.logging import mask_credential, setup_logging


class TestLogging:
    """Tests for Loguru logging setup."""

    def test_setup_logging_does_not_raise(self) -> None:
        setup_logging("DEBUG")
        setup_logging("info")

    def test_file_sink_created(self, tmp_path: Path) -> None:
        log_dir = tmp_path / "logs"
        setup_logging("INFO", log_dir=str(log_dir))
        assert log_dir.is_dir()
        setup_logging("INFO")


class TestMaskCredential:
    def test_long_key_keeps_prefix(self) -> None:
        assert mask_credential("abcdef0123456789") == "abcd****"

    def test_short_key_fully_masked(self) -> None:
        assert mask_credential("abc") == "****"
        assert mask_credential("12345678") == "****"
