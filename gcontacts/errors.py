"""
Google Contacts Client Error Classes

Every failure raised by the library derives from ContactsError so callers
can catch one type and still inspect the code and HTTP status.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class ContactsError(Exception):
    """Base error class for the contacts client."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 0,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "name": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "status_code": self.status_code,
            "details": self.details,
            "timestamp": self.timestamp,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class CredentialLoadError(ContactsError):
    """Credential store could not be read or holds a corrupt record."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("CREDENTIAL_LOAD_FAILED", message, 0, details)


class CredentialSaveError(ContactsError):
    """Credential store could not persist the record."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("CREDENTIAL_SAVE_FAILED", message, 0, details)


class MissingRefreshTokenError(ContactsError):
    """No refresh token is stored, so no access token can ever be obtained."""

    def __init__(self, message: str = "no refresh token provided"):
        super().__init__("MISSING_REFRESH_TOKEN", message, 0)


class ExchangeError(ContactsError):
    """Token endpoint rejected the refresh token exchange."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__("TOKEN_EXCHANGE_FAILED", message, status_code, details)


class NetworkError(ContactsError):
    """Network error (connection issues, timeouts)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("NETWORK_ERROR", message, 0, details)


class RequestBuildError(ContactsError):
    """Request could not be constructed (malformed URL or unsupported scheme)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("REQUEST_BUILD_FAILED", message, 0, details)


class RemoteRejectionError(ContactsError):
    """Remote service answered with a status of 300 or above."""

    def __init__(
        self,
        message: str,
        status_code: int,
        reason: str = "",
        url: str = "",
        body: str = "",
        code: str = "REMOTE_REJECTION",
    ):
        super().__init__(
            code,
            message,
            status_code,
            {"reason": reason, "url": url, "body": body},
        )
        self.reason = reason
        self.url = url
        self.body = body

    @property
    def status_line(self) -> str:
        return f"{self.status_code} {self.reason}".strip()


class UnauthorizedError(RemoteRejectionError):
    """Remote service rejected the bearer token (401 or 403)."""

    def __init__(
        self,
        message: str,
        status_code: int = 401,
        reason: str = "",
        url: str = "",
        body: str = "",
    ):
        super().__init__(message, status_code, reason, url, body, code="UNAUTHORIZED")


class DecodeError(ContactsError):
    """Response body is not valid XML/JSON for the expected document."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("DECODE_FAILED", message, 0, details)


class EncodeError(ContactsError):
    """Entry holds a value that cannot be written as XML 1.0."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("ENCODE_FAILED", message, 0, details)


class ConfigurationError(ContactsError):
    """Configuration error."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, 0, details)


UNAUTHORIZED_STATUS_CODES = (401, 403)


def rejection_for_status(
    status_code: int,
    reason: str,
    url: str,
    body: str,
    message: str,
) -> RemoteRejectionError:
    """Pick the rejection class matching an HTTP status."""
    if status_code in UNAUTHORIZED_STATUS_CODES:
        return UnauthorizedError(message, status_code, reason, url, body)
    return RemoteRejectionError(message, status_code, reason, url, body)


def is_contacts_error(error: Any) -> bool:
    """Check if error is a ContactsError."""
    return isinstance(error, ContactsError)


def is_unauthorized_error(error: Any) -> bool:
    """Check if error means the access token was not accepted."""
    return isinstance(error, UnauthorizedError)
