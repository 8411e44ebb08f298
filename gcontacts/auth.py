"""
Google Contacts Client Authentication

Access tokens are obtained by exchanging the stored refresh token at the
OAuth token endpoint. The manager never checks token freshness; a stale
token is discovered when the contacts service rejects a request and the
client calls renew().
"""

import logging
import threading
from typing import Any, Dict, Optional

import httpx

from .errors import (
    ConfigurationError,
    CredentialSaveError,
    DecodeError,
    ExchangeError,
    MissingRefreshTokenError,
    NetworkError,
)
from .types import AuthDetails, CredentialStorage, TokenExchanger


logger = logging.getLogger("gcontacts")

TOKEN_URL = "https://www.googleapis.com/oauth2/v4/token"


class StandardTokenExchanger:
    """Exchanges refresh tokens at the OAuth token endpoint."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        token_url: str = TOKEN_URL,
        timeout: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        if not client_id:
            raise ConfigurationError("client_id is required")
        if not client_secret:
            raise ConfigurationError("client_secret is required")

        self._client_id = client_id
        self._client_secret = client_secret
        self._token_url = token_url
        self._timeout = timeout
        self._http_client = http_client or httpx.Client(timeout=timeout)
        self._owns_http_client = http_client is None

    def retrieve(self, refresh_token: str, timeout: Optional[float] = None) -> str:
        """
        Exchange a refresh token for a new access token.

        Args:
            refresh_token: Stored refresh token
            timeout: Deadline for this exchange; the exchanger default when None
        """
        form = {
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
            "client_id": self._client_id,
            "client_secret": self._client_secret,
        }

        try:
            response = self._http_client.post(
                self._token_url,
                data=form,
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.TimeoutException:
            raise NetworkError("Token exchange timeout", {"timeout": timeout or self._timeout})
        except httpx.RequestError as e:
            raise NetworkError(str(e), {"url": self._token_url})

        if response.status_code >= 300:
            raise ExchangeError(
                f"token exchange failed; got {response.status_code} {response.reason_phrase}",
                response.status_code,
                {"body": response.text},
            )

        return _parse_access_token(response)

    def close(self) -> None:
        """Close the HTTP client if this exchanger created it."""
        if self._owns_http_client:
            self._http_client.close()


def _parse_access_token(response: httpx.Response) -> str:
    """Pull access_token out of a token endpoint JSON response."""
    try:
        data: Dict[str, Any] = response.json()
    except ValueError as e:
        raise DecodeError(f"token response is not valid JSON: {e}") from e

    access_token = data.get("access_token") if isinstance(data, dict) else None
    if not access_token:
        raise ExchangeError("token response carries no access_token", 0, {"body": data})
    return str(access_token)


class StandardAuthManager:
    """
    Hands out access tokens backed by a credential store.

    The credential record is reloaded on every call. Load, check, exchange
    and store run under one lock so concurrent callers never interleave
    exchanges.
    """

    def __init__(self, storage: CredentialStorage, exchanger: TokenExchanger) -> None:
        self._storage = storage
        self._exchanger = exchanger
        self._lock = threading.RLock()

    def access_token(self, timeout: Optional[float] = None) -> str:
        """Return the cached access token, exchanging one if none is cached."""
        with self._lock:
            auth_details = self._storage.load()
            if auth_details.access_token:
                return auth_details.access_token
            return self._exchange_and_store(auth_details, timeout)

    def renew(self, timeout: Optional[float] = None) -> str:
        """Discard the cached access token and exchange a new one."""
        with self._lock:
            auth_details = self._storage.load()
            auth_details.access_token = ""
            return self._exchange_and_store(auth_details, timeout)

    def _exchange_and_store(self, auth_details: AuthDetails, timeout: Optional[float]) -> str:
        if not auth_details.refresh_token:
            raise MissingRefreshTokenError()

        logger.debug("Exchanging refresh token for a new access token")
        access_token = self._exchanger.retrieve(auth_details.refresh_token, timeout)
        auth_details.access_token = access_token

        try:
            self._storage.save(auth_details)
        except (CredentialSaveError, OSError) as e:
            # The token is still good for this call
            logger.warning("Access token could not be persisted: %s", e)

        return access_token

    def close(self) -> None:
        """Close the exchanger if it holds a connection pool."""
        close = getattr(self._exchanger, "close", None)
        if callable(close):
            close()
