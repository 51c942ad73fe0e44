"""Unit tests for credential pools and key rotation."""

import pytest

from siteplod_api.lib.errors import RelocationError, RelocationErrorKind
from siteplod_api.lib.relocation.credentials import CredentialPool, exhausted_error, rotate_keys


def _error(kind: RelocationErrorKind, status_code: int | None = None) -> RelocationError:
    return RelocationError(kind, f"{kind} happened", status_code=status_code, provider="imgbb")


class TestCredentialPool:
    def test_from_csv_drops_blanks(self) -> None:
        pool = CredentialPool.from_csv("imgbb", " a-key , ,b-key,")
        assert pool.keys == ("a-key", "b-key")
        assert len(pool) == 2

    def test_empty_pool_is_falsy(self) -> None:
        assert not CredentialPool.from_keys("imgbb", [])

    def test_masked_never_shows_full_key(self) -> None:
        pool = CredentialPool.from_keys("imgbb", ["0123456789abcdef"])
        assert pool.masked(0) == "#1 (0123****)"


class TestRotateKeys:
    @pytest.mark.asyncio
    async def test_first_key_success_makes_one_call(self) -> None:
        calls: list[str] = []

        async def attempt(key: str) -> str:
            calls.append(key)
            return f"url-{key}"

        result = await rotate_keys(CredentialPool.from_keys("imgbb", ["k1", "k2"]), attempt, display_name="ImgBB")
        assert result == "url-k1"
        assert calls == ["k1"]

    @pytest.mark.asyncio
    async def test_rate_limited_key_rotates_to_next(self) -> None:
        calls: list[str] = []

        async def attempt(key: str) -> str:
            calls.append(key)
            if key == "k1":
                raise _error(RelocationErrorKind.RATE_LIMITED, 429)
            return "https://i.ibb.co/x.png"

        pool = CredentialPool.from_keys("imgbb", ["k1", "k2", "k3"])
        assert await rotate_keys(pool, attempt, display_name="ImgBB") == "https://i.ibb.co/x.png"
        assert calls == ["k1", "k2"]

    @pytest.mark.asyncio
    async def test_bad_request_stops_rotation(self) -> None:
        calls: list[str] = []

        async def attempt(key: str) -> str:
            calls.append(key)
            raise _error(RelocationErrorKind.PROVIDER_ERROR, 400)

        with pytest.raises(RelocationError, match="invalid request") as exc_info:
            await rotate_keys(CredentialPool.from_keys("imgbb", ["k1", "k2"]), attempt, display_name="ImgBB")
        assert calls == ["k1"]
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_all_keys_invalid(self) -> None:
        calls: list[str] = []

        async def attempt(key: str) -> str:
            calls.append(key)
            raise _error(RelocationErrorKind.AUTH_INVALID, 401)

        with pytest.raises(RelocationError) as exc_info:
            await rotate_keys(CredentialPool.from_keys("imgbb", ["k1", "k2"]), attempt, display_name="ImgBB")
        assert calls == ["k1", "k2"]
        assert exc_info.value.kind == RelocationErrorKind.AUTH_INVALID
        assert exc_info.value.message == "All provided ImgBB API keys were invalid or rejected"

    @pytest.mark.asyncio
    async def test_empty_pool(self) -> None:
        async def attempt(key: str) -> str:
            raise AssertionError("must not be called")

        with pytest.raises(RelocationError, match="No Pastebin API keys are configured") as exc_info:
            await rotate_keys(CredentialPool.from_keys("pastebin", []), attempt, display_name="Pastebin")
        assert exc_info.value.status_code == 500


class TestExhaustedError:
    @pytest.mark.parametrize(
        ("kind", "fragment"),
        [
            (RelocationErrorKind.RATE_LIMITED, "rate limits exceeded on all available keys"),
            (RelocationErrorKind.TIMEOUT, "timed out after trying all keys"),
            (RelocationErrorKind.NETWORK_UNREACHABLE, "Unable to connect to ImgBB API after trying all keys"),
            (RelocationErrorKind.PROVIDER_ERROR, "upload failed on all keys"),
        ],
    )
    def test_message_names_failure_class(self, kind: RelocationErrorKind, fragment: str) -> None:
        error = exhausted_error("ImgBB", _error(kind))
        assert fragment in error.message
        assert error.kind == kind
