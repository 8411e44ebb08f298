"""
Google Contacts Client

Synchronous client for the contacts and groups feeds. Every operation
fetches an access token from the auth manager; when the wire call fails the
token is renewed once and the call is repeated with the new token.
"""

import logging
from typing import Any, Callable, Dict, Optional, TypeVar

import httpx

from . import codec
from .auth import StandardAuthManager, StandardTokenExchanger
from .errors import (
    ConfigurationError,
    ContactsError,
    NetworkError,
    RequestBuildError,
    is_unauthorized_error,
    rejection_for_status,
)
from .models import ContactImage, Entry, Feed
from .storage import FileStorage
from .types import GDATA_VERSION, AuthManager, ContactQuery, ContactsConfig, Resource


logger = logging.getLogger("gcontacts")

T = TypeVar("T")

ATOM_CONTENT_TYPE = "application/atom+xml"


class ContactsClient:
    """
    Google Contacts client.

    Reads contact and group feeds, single entries and photos, and writes
    entries back with If-Match so concurrent edits are rejected.
    """

    def __init__(
        self,
        auth_manager: AuthManager,
        config: Optional[ContactsConfig] = None,
        *,
        owns_auth_manager: bool = False,
    ) -> None:
        """
        Initialize the contacts client.

        Args:
            auth_manager: Source of access tokens
            config: Client configuration
            owns_auth_manager: Close the auth manager together with the client
        """
        config = config or ContactsConfig()
        self._validate_config(config)

        self._auth_manager = auth_manager
        self._owns_auth_manager = owns_auth_manager
        self._config = config
        self._timeout = config.timeout
        self._debug = config.debug
        self._custom_headers = config.headers or {}
        self._renew_on_unauthorized_only = config.renew_on_unauthorized_only

        # HTTP client
        self._owns_http_client = config.http_client is None
        self._http_client = config.http_client or httpx.Client(
            timeout=self._timeout,
            follow_redirects=True,
        )

        self._log(f"ContactsClient initialized (host={config.host}, https={not config.disable_https})")

    def _validate_config(self, config: ContactsConfig) -> None:
        """Validate configuration."""
        if not config.host:
            raise ConfigurationError("host is required")
        if "/" in config.host:
            raise ConfigurationError("host must not contain a scheme or path")
        if config.timeout <= 0:
            raise ConfigurationError("timeout must be positive", {"timeout": config.timeout})

    def _log(self, message: str, *args: Any) -> None:
        """Log debug message."""
        if self._debug:
            logger.debug(f"[Contacts] {message}", *args)

    # =========================================================================
    # Contacts Feed
    # =========================================================================

    def fetch_feed(self, query: Optional[ContactQuery] = None, *, timeout: Optional[float] = None) -> Feed:
        """Fetch one page of the contacts feed."""
        return codec.decode_feed(self.fetch_feed_raw(query, timeout=timeout))

    def fetch_feed_raw(self, query: Optional[ContactQuery] = None, *, timeout: Optional[float] = None) -> bytes:
        """Fetch one page of the contacts feed as raw XML."""
        query = query or ContactQuery()
        params = query.to_params()
        url = self._config.contacts_url

        def operation(access_token: str) -> bytes:
            return self._get(url, access_token, params=params, timeout=timeout).content

        return self._with_renewal(operation, "fetch feed", timeout)

    # =========================================================================
    # Groups Feed
    # =========================================================================

    def fetch_groups(
        self,
        start_index: int = 1,
        max_results: int = 100,
        query: str = "",
        *,
        timeout: Optional[float] = None,
    ) -> Feed:
        """Fetch one page of the contact groups feed."""
        return codec.decode_feed(
            self.fetch_groups_raw(start_index, max_results, query, timeout=timeout)
        )

    def fetch_groups_raw(
        self,
        start_index: int = 1,
        max_results: int = 100,
        query: str = "",
        *,
        timeout: Optional[float] = None,
    ) -> bytes:
        """Fetch one page of the contact groups feed as raw XML."""
        params = ContactQuery(query=query, max_results=max_results, start_index=start_index).to_params()
        url = self._config.groups_url

        def operation(access_token: str) -> bytes:
            return self._get(url, access_token, params=params, timeout=timeout).content

        return self._with_renewal(operation, "fetch groups", timeout)

    # =========================================================================
    # Single Contacts
    # =========================================================================

    def fetch_contact(self, contact_id: str, *, timeout: Optional[float] = None) -> Entry:
        """
        Fetch a single contact.

        Args:
            contact_id: Entry URI as returned in Entry.id, or its short id

        Returns:
            The decoded entry
        """
        return codec.decode_entry(self.fetch_contact_raw(contact_id, timeout=timeout))

    def fetch_contact_raw(self, contact_id: str, *, timeout: Optional[float] = None) -> bytes:
        """Fetch a single contact as raw XML."""
        url = self.entry_url(contact_id)

        def operation(access_token: str) -> bytes:
            return self._get(url, access_token, timeout=timeout).content

        return self._with_renewal(operation, "fetch contact", timeout)

    def fetch_contact_image(self, href: str, *, timeout: Optional[float] = None) -> ContactImage:
        """Fetch a contact photo from its photo link href."""

        def operation(access_token: str) -> ContactImage:
            response = self._get(href, access_token, timeout=timeout)
            return ContactImage(response.content, response.headers.get("content-type", ""))

        return self._with_renewal(operation, "fetch contact image", timeout)

    def save(self, entry: Entry, *, timeout: Optional[float] = None) -> Entry:
        """
        Write an entry back to the service.

        The write is conditional on the entry's etag; the service answers
        with the updated entry, which carries the new etag.
        """
        return codec.decode_entry(self.save_raw(entry, timeout=timeout))

    def save_raw(self, entry: Entry, *, timeout: Optional[float] = None) -> bytes:
        """Write an entry back to the service and return the raw XML response."""
        if not entry.get_uri():
            raise RequestBuildError("couldn't save entry: entry has no URI")
        body = codec.encode(entry)

        def operation(access_token: str) -> bytes:
            return self._put(entry, body, access_token, timeout=timeout).content

        return self._with_renewal(operation, "save contact", timeout)

    def entry_url(self, contact_id: str) -> str:
        """Resolve an entry URI or short id to the URL of its full projection."""
        if "://" not in contact_id:
            contact_id = self._config.contacts_url + contact_id
        return contact_id.replace("/base/", "/full/")

    # =========================================================================
    # Internal Methods
    # =========================================================================

    def _with_renewal(
        self,
        operation: Callable[[str], T],
        description: str,
        timeout: Optional[float] = None,
    ) -> T:
        """Run operation with an access token; on failure renew once and retry."""
        access_token = self._auth_manager.access_token(timeout=timeout)
        try:
            return operation(access_token)
        except ContactsError as error:
            if self._renew_on_unauthorized_only and not is_unauthorized_error(error):
                raise
            self._log(f"{description} failed ({error.message}); renewing access token")

        access_token = self._auth_manager.renew(timeout=timeout)
        return operation(access_token)

    def _headers(self, access_token: str, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers: Dict[str, str] = {
            "GData-Version": GDATA_VERSION,
            **self._custom_headers,
        }
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        if extra:
            headers.update(extra)
        return headers

    def _get(
        self,
        url: str,
        access_token: str,
        params: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        return self._execute_request(
            "GET",
            url,
            self._headers(access_token),
            params=params,
            timeout=timeout,
            failure=f"couldn't fetch {url}",
        )

    def _put(
        self,
        resource: Resource,
        body: bytes,
        access_token: str,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        url = self.entry_url(resource.get_uri())
        headers = self._headers(access_token, {
            "Content-Type": ATOM_CONTENT_TYPE,
            "If-Match": resource.get_etag(),
        })
        return self._execute_request(
            "PUT",
            url,
            headers,
            content=body,
            timeout=timeout,
            failure=f"couldn't save entry {url}",
        )

    def _execute_request(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        params: Optional[Dict[str, str]] = None,
        content: Optional[bytes] = None,
        timeout: Optional[float] = None,
        failure: str = "request failed",
    ) -> httpx.Response:
        """Execute a single HTTP request."""
        try:
            request = self._http_client.build_request(
                method,
                url,
                params=params,
                content=content,
                headers=headers,
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.InvalidURL as e:
            raise RequestBuildError(f"{failure}: {e}", {"url": url})

        self._log(f"{method} {request.url}")

        try:
            response = self._http_client.send(request)
        except httpx.UnsupportedProtocol as e:
            raise RequestBuildError(f"{failure}: {e}", {"url": url})
        except httpx.TimeoutException:
            raise NetworkError(f"{failure}: request timeout", {"timeout": timeout or self._timeout})
        except httpx.RequestError as e:
            raise NetworkError(f"{failure}: {e}", {"url": url})

        return self._handle_response(response, failure)

    def _handle_response(self, response: httpx.Response, failure: str) -> httpx.Response:
        """Convert a status of 300 or above into a RemoteRejectionError."""
        if response.status_code < 300:
            return response

        status_line = f"{response.status_code} {response.reason_phrase}".strip()
        body = response.text
        raise rejection_for_status(
            response.status_code,
            response.reason_phrase,
            str(response.request.url),
            body,
            f"{failure}; got {status_line}\nResponse:\n{body}",
        )

    def close(self) -> None:
        """Close the HTTP client and auth manager if this client owns them."""
        if self._owns_http_client:
            self._http_client.close()
        if self._owns_auth_manager:
            close = getattr(self._auth_manager, "close", None)
            if callable(close):
                close()

    def __enter__(self) -> "ContactsClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


# =============================================================================
# Factory Functions
# =============================================================================

def create_contacts_client(
    client_id: str,
    client_secret: str,
    auth_file: str,
    config: Optional[ContactsConfig] = None,
) -> ContactsClient:
    """Create a client backed by a JSON credential file."""
    auth_manager = StandardAuthManager(
        FileStorage(auth_file),
        StandardTokenExchanger(client_id, client_secret),
    )
    return ContactsClient(auth_manager, config, owns_auth_manager=True)
