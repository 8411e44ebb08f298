"""
Google Contacts Entry Model

In-memory form of the Atom/GData contact entry and contacts feed. Each
fetch or save produces fresh instances.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .types import Resource


@dataclass
class Link:
    rel: str = ""
    type: str = ""
    href: str = ""


@dataclass
class GivenName:
    value: str = ""
    # Phonetic reading (yomi)
    phonetic: str = ""


@dataclass
class FamilyName:
    value: str = ""
    # Phonetic reading (yomi)
    phonetic: str = ""


@dataclass
class Name:
    full_name: str = ""
    name_prefix: str = ""
    given_name: GivenName = field(default_factory=GivenName)
    additional_name: str = ""
    family_name: FamilyName = field(default_factory=FamilyName)
    name_suffix: str = ""

    def is_empty(self) -> bool:
        return self == Name()


@dataclass
class Organization:
    rel: str = ""
    org_name: str = ""
    org_title: str = ""

    def is_empty(self) -> bool:
        return self == Organization()


@dataclass
class Email:
    address: str = ""
    primary: bool = False
    label: str = ""
    rel: str = ""


@dataclass
class InstantMessenger:
    address: str = ""
    protocol: str = ""
    rel: str = ""


@dataclass
class PhoneNumber:
    value: str = ""
    label: str = ""
    rel: str = ""
    uri: str = ""


@dataclass
class PostalAddress:
    """Unstructured postal address."""

    value: str = ""
    rel: str = ""
    primary: bool = False
    label: str = ""


@dataclass
class StructuredPostalAddress:
    rel: str = ""
    primary: bool = False
    label: str = ""
    street: str = ""
    pobox: str = ""
    neighborhood: str = ""
    city: str = ""
    region: str = ""
    postcode: str = ""
    country: str = ""
    formatted_address: str = ""


@dataclass
class ExtendedProperty:
    name: str = ""
    value: str = ""


@dataclass
class Birthday:
    # YYYY-MM-DD, or --MM-DD when the year is unknown
    when: str = ""


@dataclass
class When:
    start_time: str = ""


@dataclass
class Event:
    when: When = field(default_factory=When)
    label: str = ""
    rel: str = ""


@dataclass
class Relation:
    value: str = ""
    rel: str = ""


@dataclass
class UserDefinedField:
    key: str = ""
    value: str = ""


@dataclass
class Website:
    href: str = ""
    rel: str = ""
    label: str = ""


@dataclass
class GroupMembershipInfo:
    href: str = ""
    deleted: bool = False


@dataclass
class Entry(Resource):
    """A single contact (or group) entry."""

    id: str = ""
    etag: str = ""
    updated: Optional[datetime] = None
    title: str = ""
    content: str = ""
    links: List[Link] = field(default_factory=list)

    # gd namespace
    name: Name = field(default_factory=Name)
    organization: Organization = field(default_factory=Organization)
    emails: List[Email] = field(default_factory=list)
    instant_messengers: List[InstantMessenger] = field(default_factory=list)
    phone_numbers: List[PhoneNumber] = field(default_factory=list)
    postal_addresses: List[PostalAddress] = field(default_factory=list)
    structured_postal_addresses: List[StructuredPostalAddress] = field(default_factory=list)
    extended_properties: List[ExtendedProperty] = field(default_factory=list)

    # gContact namespace
    nickname: str = ""
    file_as: str = ""
    birthday: Birthday = field(default_factory=Birthday)
    events: List[Event] = field(default_factory=list)
    relations: List[Relation] = field(default_factory=list)
    user_defined_fields: List[UserDefinedField] = field(default_factory=list)
    websites: List[Website] = field(default_factory=list)
    group_memberships: List[GroupMembershipInfo] = field(default_factory=list)

    def get_uri(self) -> str:
        return self.id

    def get_etag(self) -> str:
        return self.etag

    def get_id(self) -> str:
        """Short identifier: the part of the URI after the last '/'."""
        return self.id.rsplit("/", 1)[-1]

    def photo_link(self) -> Optional[Link]:
        """Link to the contact photo, if the entry has one."""
        for link in self.links:
            if link.rel.endswith("#photo"):
                return link
        return None


@dataclass
class Feed:
    """One page of entries."""

    total_results: int = 0
    start_index: int = 0
    items_per_page: int = 0
    entries: List[Entry] = field(default_factory=list)


@dataclass
class ContactImage:
    """Contact photo bytes and the content type the service declared."""

    data: bytes = b""
    content_type: str = ""
