"""
Google Contacts Client Type Definitions

Configuration, credential record and the collaborator interfaces the
client and auth manager are built from.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import httpx


DEFAULT_HOST = "www.google.com"
CONTACTS_PATH = "/m8/feeds/contacts/default/full/"
GROUPS_PATH = "/m8/feeds/groups/default/full/"
GDATA_VERSION = "3.0"


@dataclass
class AuthDetails:
    """Persisted credential record."""

    refresh_token: str = ""
    access_token: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthDetails":
        """Create from dictionary; absent keys load as empty strings."""
        return cls(
            refresh_token=data.get("refresh_token") or "",
            access_token=data.get("access_token") or "",
        )

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary for persistence."""
        return {
            "refresh_token": self.refresh_token,
            "access_token": self.access_token,
        }


@runtime_checkable
class CredentialStorage(Protocol):
    """Credential storage interface for custom implementations."""

    def load(self) -> AuthDetails:
        """Load the credential record."""
        ...

    def save(self, auth_details: AuthDetails) -> None:
        """Persist the credential record."""
        ...


@runtime_checkable
class TokenExchanger(Protocol):
    """Converts a refresh token into a fresh access token."""

    def retrieve(self, refresh_token: str, timeout: Optional[float] = None) -> str:
        ...


@runtime_checkable
class AuthManager(Protocol):
    """Hands out access tokens and renews them on demand."""

    def access_token(self, timeout: Optional[float] = None) -> str:
        """Return the cached access token, exchanging one if none is cached."""
        ...

    def renew(self, timeout: Optional[float] = None) -> str:
        """Discard the cached access token and exchange a new one."""
        ...


class Resource(ABC):
    """A remote resource addressable by URI and versioned by an entity tag."""

    @abstractmethod
    def get_uri(self) -> str:
        ...

    @abstractmethod
    def get_etag(self) -> str:
        ...


@dataclass
class ContactQuery:
    """Contacts feed query parameters."""

    # Free-text filter (q)
    query: str = ""
    # Page size (max-results)
    max_results: int = 100
    # 1-based index of the first result (start-index)
    start_index: int = 1
    # Restrict to members of a group feed URI (group)
    group: str = ""

    def to_params(self) -> Dict[str, str]:
        """Convert to query-string parameters."""
        params = {
            "max-results": str(self.max_results),
            "start-index": str(self.start_index),
        }
        if self.query:
            params["q"] = self.query
        if self.group:
            params["group"] = self.group
        return params


@dataclass
class ContactsConfig:
    """Client configuration options."""

    # Host serving the contacts feeds
    host: str = DEFAULT_HOST
    # Use plain HTTP instead of HTTPS for feed URLs built by the client
    disable_https: bool = False
    # Default request timeout in seconds (default: 30)
    timeout: float = 30.0
    # Only renew and retry when the service answers 401/403
    renew_on_unauthorized_only: bool = False
    # Enable debug logging (default: False)
    debug: bool = False
    # Custom headers to include in requests
    headers: Optional[Dict[str, str]] = None
    # HTTP client to use instead of one owned by ContactsClient
    http_client: Optional[httpx.Client] = None

    @property
    def scheme(self) -> str:
        return "http" if self.disable_https else "https"

    @property
    def contacts_url(self) -> str:
        return f"{self.scheme}://{self.host}{CONTACTS_PATH}"

    @property
    def groups_url(self) -> str:
        return f"{self.scheme}://{self.host}{GROUPS_PATH}"
