"""
Tests for credential storage, token exchange and the auth manager.
"""

import json
import logging
import threading
import time
from typing import List, Optional
from urllib.parse import parse_qs

import httpx
import pytest
import respx

from gcontacts import (
    AuthDetails,
    ConfigurationError,
    CredentialLoadError,
    CredentialSaveError,
    DecodeError,
    ExchangeError,
    FileStorage,
    MemoryStorage,
    MissingRefreshTokenError,
    NetworkError,
    StandardAuthManager,
    StandardTokenExchanger,
    TOKEN_URL,
)


class FakeExchanger:
    """Token exchanger that hands out numbered tokens."""

    def __init__(self, delay: float = 0.0) -> None:
        self.calls: List[str] = []
        self.timeouts: List[Optional[float]] = []
        self._delay = delay

    def retrieve(self, refresh_token: str, timeout: Optional[float] = None) -> str:
        self.calls.append(refresh_token)
        self.timeouts.append(timeout)
        if self._delay:
            time.sleep(self._delay)
        return f"access-{len(self.calls)}"


class FailingExchanger:
    def retrieve(self, refresh_token: str, timeout: Optional[float] = None) -> str:
        raise ExchangeError("invalid_grant", 400)


class ReadOnlyStorage(MemoryStorage):
    """Storage whose writes always fail."""

    def save(self, auth_details: AuthDetails) -> None:
        raise CredentialSaveError("disk full")


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def exchanger() -> FakeExchanger:
    return FakeExchanger()


@pytest.fixture
def auth_file(tmp_path) -> str:
    path = tmp_path / "auth.json"
    path.write_text(json.dumps({"refresh_token": "refresh-123"}))
    return str(path)


@pytest.fixture
def token_exchanger() -> StandardTokenExchanger:
    return StandardTokenExchanger("client-id", "client-secret")


# =============================================================================
# Storage Tests
# =============================================================================

class TestStorage:
    """Tests for credential storage implementations."""

    def test_memory_storage(self):
        """Test memory storage round trip."""
        storage = MemoryStorage()

        assert storage.load() == AuthDetails()

        storage.save(AuthDetails("refresh", "access"))

        assert storage.load() == AuthDetails("refresh", "access")

    def test_memory_storage_returns_copies(self):
        """Test mutating a loaded record does not touch the store."""
        storage = MemoryStorage(AuthDetails("refresh", "access"))

        record = storage.load()
        record.access_token = ""

        assert storage.load().access_token == "access"

    def test_file_storage(self, auth_file: str):
        """Test file storage round trip."""
        storage = FileStorage(auth_file)

        assert storage.load() == AuthDetails("refresh-123", "")

        storage.save(AuthDetails("refresh-123", "access-1"))

        with open(auth_file) as f:
            assert json.load(f) == {"refresh_token": "refresh-123", "access_token": "access-1"}
        assert storage.load().access_token == "access-1"

    def test_file_storage_missing_file(self, tmp_path):
        """Test a missing file is a load error."""
        with pytest.raises(CredentialLoadError):
            FileStorage(str(tmp_path / "missing.json")).load()

    def test_file_storage_corrupt_json(self, tmp_path):
        """Test invalid JSON is a load error."""
        path = tmp_path / "auth.json"
        path.write_text("{refresh_token")
        with pytest.raises(CredentialLoadError) as exc_info:
            FileStorage(str(path)).load()
        assert exc_info.value.code == "CREDENTIAL_LOAD_FAILED"

    def test_file_storage_not_an_object(self, tmp_path):
        """Test a JSON array is a load error."""
        path = tmp_path / "auth.json"
        path.write_text('["refresh"]')
        with pytest.raises(CredentialLoadError):
            FileStorage(str(path)).load()

    def test_file_storage_unwritable(self, tmp_path):
        """Test write failures raise CredentialSaveError."""
        storage = FileStorage(str(tmp_path / "no-such-dir" / "auth.json"))
        with pytest.raises(CredentialSaveError):
            storage.save(AuthDetails("refresh", "access"))


# =============================================================================
# Auth Manager Tests
# =============================================================================

class TestAuthManager:
    """Tests for StandardAuthManager."""

    def test_cached_token_skips_exchange(self, exchanger: FakeExchanger):
        """Test a cached access token is returned without a network exchange."""
        manager = StandardAuthManager(MemoryStorage(AuthDetails("refresh", "cached")), exchanger)

        assert manager.access_token() == "cached"
        assert exchanger.calls == []

    def test_missing_token_exchanges_once_and_persists(self, exchanger: FakeExchanger):
        """Test exactly one exchange happens and its result is stored."""
        storage = MemoryStorage(AuthDetails("refresh", ""))
        manager = StandardAuthManager(storage, exchanger)

        assert manager.access_token() == "access-1"
        assert manager.access_token() == "access-1"
        assert exchanger.calls == ["refresh"]
        assert storage.load() == AuthDetails("refresh", "access-1")

    def test_missing_refresh_token(self, exchanger: FakeExchanger):
        """Test an empty refresh token fails without calling the exchanger."""
        manager = StandardAuthManager(MemoryStorage(AuthDetails("", "")), exchanger)

        with pytest.raises(MissingRefreshTokenError) as exc_info:
            manager.access_token()

        assert exc_info.value.code == "MISSING_REFRESH_TOKEN"
        assert exchanger.calls == []

    def test_renew_discards_cached_token(self, exchanger: FakeExchanger):
        """Test renew always exchanges, even with a cached token."""
        storage = MemoryStorage(AuthDetails("refresh", "stale"))
        manager = StandardAuthManager(storage, exchanger)

        assert manager.renew() == "access-1"
        assert exchanger.calls == ["refresh"]
        assert storage.load().access_token == "access-1"
        assert storage.load().refresh_token == "refresh"

    def test_renew_without_refresh_token(self, exchanger: FakeExchanger):
        """Test renew fails terminally when no refresh token exists."""
        manager = StandardAuthManager(MemoryStorage(AuthDetails("", "stale")), exchanger)

        with pytest.raises(MissingRefreshTokenError):
            manager.renew()
        assert exchanger.calls == []

    def test_persistence_failure_is_swallowed(self, exchanger: FakeExchanger, caplog):
        """Test a failed save still returns the fresh token."""
        manager = StandardAuthManager(ReadOnlyStorage(AuthDetails("refresh", "")), exchanger)

        with caplog.at_level(logging.WARNING, logger="gcontacts"):
            assert manager.access_token() == "access-1"

        assert "could not be persisted" in caplog.text

    def test_exchange_failure_propagates(self):
        """Test exchange errors reach the caller unchanged."""
        storage = MemoryStorage(AuthDetails("refresh", ""))
        manager = StandardAuthManager(storage, FailingExchanger())

        with pytest.raises(ExchangeError) as exc_info:
            manager.access_token()

        assert exc_info.value.status_code == 400
        assert storage.load().access_token == ""

    def test_load_failure_propagates(self, tmp_path, exchanger: FakeExchanger):
        """Test store read errors propagate."""
        manager = StandardAuthManager(FileStorage(str(tmp_path / "missing.json")), exchanger)

        with pytest.raises(CredentialLoadError):
            manager.access_token()
        assert exchanger.calls == []

    def test_file_backed_flow(self, auth_file: str, exchanger: FakeExchanger):
        """Test the record is reloaded from disk on every call."""
        manager = StandardAuthManager(FileStorage(auth_file), exchanger)

        assert manager.access_token() == "access-1"

        with open(auth_file, "w") as f:
            json.dump({"refresh_token": "refresh-123", "access_token": "edited"}, f)

        assert manager.access_token() == "edited"
        assert len(exchanger.calls) == 1

    def test_deadline_reaches_exchanger(self, exchanger: FakeExchanger):
        """Test per-call timeouts are handed to the exchange."""
        manager = StandardAuthManager(MemoryStorage(AuthDetails("refresh", "")), exchanger)

        manager.access_token(timeout=2.5)
        manager.renew(timeout=1.0)
        manager.renew()

        assert exchanger.timeouts == [2.5, 1.0, None]

    def test_close_closes_exchanger(self):
        """Test closing the manager releases the exchanger's connection pool."""
        token_exchanger = StandardTokenExchanger("client-id", "client-secret")
        manager = StandardAuthManager(MemoryStorage(), token_exchanger)

        manager.close()

        assert token_exchanger._http_client.is_closed

    def test_close_without_closable_exchanger(self, exchanger: FakeExchanger):
        """Test exchangers without close() are accepted."""
        StandardAuthManager(MemoryStorage(), exchanger).close()

    def test_concurrent_callers_share_one_exchange(self):
        """Test the lock prevents interleaved exchanges."""
        exchanger = FakeExchanger(delay=0.05)
        manager = StandardAuthManager(MemoryStorage(AuthDetails("refresh", "")), exchanger)
        results: List[str] = []

        def worker() -> None:
            results.append(manager.access_token())

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert exchanger.calls == ["refresh"]
        assert results == ["access-1"] * 5


# =============================================================================
# Token Exchanger Tests
# =============================================================================

class TestTokenExchanger:
    """Tests for StandardTokenExchanger."""

    def test_requires_client_credentials(self):
        """Test empty client id/secret are configuration errors."""
        with pytest.raises(ConfigurationError):
            StandardTokenExchanger("", "secret")
        with pytest.raises(ConfigurationError):
            StandardTokenExchanger("id", "")

    @respx.mock
    def test_retrieve(self, token_exchanger: StandardTokenExchanger):
        """Test the form POST and access token extraction."""
        route = respx.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={
                "access_token": "ya29.fresh",
                "expires_in": 3599,
                "token_type": "Bearer",
            })
        )

        assert token_exchanger.retrieve("refresh-123") == "ya29.fresh"

        request = route.calls.last.request
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        form = parse_qs(request.content.decode("utf-8"))
        assert form == {
            "refresh_token": ["refresh-123"],
            "grant_type": ["refresh_token"],
            "client_id": ["client-id"],
            "client_secret": ["client-secret"],
        }

    @respx.mock
    def test_rejected_exchange(self, token_exchanger: StandardTokenExchanger):
        """Test a 4xx answer is an ExchangeError carrying the body."""
        respx.post(TOKEN_URL).mock(
            return_value=httpx.Response(400, json={"error": "invalid_grant"})
        )

        with pytest.raises(ExchangeError) as exc_info:
            token_exchanger.retrieve("revoked")

        assert exc_info.value.status_code == 400
        assert "invalid_grant" in exc_info.value.details["body"]

    @respx.mock
    def test_non_json_response(self, token_exchanger: StandardTokenExchanger):
        """Test an unparseable body is a DecodeError."""
        respx.post(TOKEN_URL).mock(return_value=httpx.Response(200, text="<html>"))

        with pytest.raises(DecodeError):
            token_exchanger.retrieve("refresh")

    @respx.mock
    def test_missing_access_token(self, token_exchanger: StandardTokenExchanger):
        """Test a JSON answer without access_token is an ExchangeError."""
        respx.post(TOKEN_URL).mock(return_value=httpx.Response(200, json={"token_type": "Bearer"}))

        with pytest.raises(ExchangeError):
            token_exchanger.retrieve("refresh")

    @respx.mock
    def test_per_call_timeout(self, token_exchanger: StandardTokenExchanger):
        """Test a per-call timeout overrides the exchanger default."""
        route = respx.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "ya29.fresh"})
        )

        token_exchanger.retrieve("refresh", timeout=1.5)
        token_exchanger.retrieve("refresh")

        assert route.calls[0].request.extensions["timeout"]["read"] == 1.5
        assert route.calls[1].request.extensions["timeout"]["read"] == 30.0

    @respx.mock
    def test_network_failure(self, token_exchanger: StandardTokenExchanger):
        """Test connection errors become NetworkError."""
        respx.post(TOKEN_URL).mock(side_effect=httpx.ConnectError("connection refused"))

        with pytest.raises(NetworkError):
            token_exchanger.retrieve("refresh")
