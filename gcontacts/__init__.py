"""
Google Contacts Python Client

Reads and updates Google Contacts over the GData v3 Atom protocol, with
refresh-token authentication and automatic token renewal.
"""

from .auth import StandardAuthManager, StandardTokenExchanger, TOKEN_URL
from .client import ContactsClient, create_contacts_client
from .codec import decode, decode_entry, decode_feed, encode
from .models import (
    Birthday,
    ContactImage,
    Email,
    Entry,
    Event,
    ExtendedProperty,
    FamilyName,
    Feed,
    GivenName,
    GroupMembershipInfo,
    InstantMessenger,
    Link,
    Name,
    Organization,
    PhoneNumber,
    PostalAddress,
    Relation,
    StructuredPostalAddress,
    UserDefinedField,
    Website,
    When,
)
from .types import (
    AuthDetails,
    AuthManager,
    ContactQuery,
    ContactsConfig,
    CredentialStorage,
    Resource,
    TokenExchanger,
)
from .errors import (
    ContactsError,
    CredentialLoadError,
    CredentialSaveError,
    MissingRefreshTokenError,
    ExchangeError,
    NetworkError,
    RequestBuildError,
    RemoteRejectionError,
    UnauthorizedError,
    DecodeError,
    EncodeError,
    ConfigurationError,
    is_contacts_error,
    is_unauthorized_error,
)
from .storage import MemoryStorage, FileStorage

__version__ = "0.1.0"
__all__ = [
    # Client
    "ContactsClient",
    "create_contacts_client",
    # Auth
    "StandardAuthManager",
    "StandardTokenExchanger",
    "TOKEN_URL",
    # Codec
    "decode",
    "decode_entry",
    "decode_feed",
    "encode",
    # Models
    "Birthday",
    "ContactImage",
    "Email",
    "Entry",
    "Event",
    "ExtendedProperty",
    "FamilyName",
    "Feed",
    "GivenName",
    "GroupMembershipInfo",
    "InstantMessenger",
    "Link",
    "Name",
    "Organization",
    "PhoneNumber",
    "PostalAddress",
    "Relation",
    "StructuredPostalAddress",
    "UserDefinedField",
    "Website",
    "When",
    # Types
    "AuthDetails",
    "AuthManager",
    "ContactQuery",
    "ContactsConfig",
    "CredentialStorage",
    "Resource",
    "TokenExchanger",
    # Errors
    "ContactsError",
    "CredentialLoadError",
    "CredentialSaveError",
    "MissingRefreshTokenError",
    "ExchangeError",
    "NetworkError",
    "RequestBuildError",
    "RemoteRejectionError",
    "UnauthorizedError",
    "DecodeError",
    "EncodeError",
    "ConfigurationError",
    "is_contacts_error",
    "is_unauthorized_error",
    # Storage
    "MemoryStorage",
    "FileStorage",
]
