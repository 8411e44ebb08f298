"""
Atom/GData XML serialization for contact entries and feeds.

Atom elements (id, title, content, link, ...) are written in the default
namespace declared on <entry>. Every element in GD_TAGS is bound to the gd
namespace and every element in GCONTACT_TAGS to the gContact namespace when
it is created, so the serializer emits the prefixes itself. Tag sets are
looked up by exact name.

Decoding matches elements and attributes by local name and skips anything
it does not know, leaving the corresponding model field at its default.
"""

import re
import xml.etree.ElementTree as ET
from datetime import datetime
from typing import Dict, Iterator, Optional, Tuple, Union

from .errors import DecodeError, EncodeError
from .models import (
    Birthday,
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


ATOM_NS = "http://www.w3.org/2005/Atom"
GD_NS = "http://schemas.google.com/g/2005"
GCONTACT_NS = "http://schemas.google.com/contact/2008"

GD_TAGS = frozenset({
    "name",
    "fullName",
    "namePrefix",
    "givenName",
    "additionalName",
    "familyName",
    "nameSuffix",
    "extendedProperty",
    "organization",
    "orgName",
    "orgTitle",
    "email",
    "im",
    "phoneNumber",
    "postalAddress",
    "structuredPostalAddress",
    "formattedAddress",
    "street",
    "pobox",
    "neighborhood",
    "city",
    "region",
    "postcode",
    "country",
    "when",
})

GCONTACT_TAGS = frozenset({
    "groupMembershipInfo",
    "nickname",
    "birthday",
    "fileAs",
    "event",
    "relation",
    "userDefinedField",
    "website",
})

ET.register_namespace("gd", GD_NS)
ET.register_namespace("gContact", GCONTACT_NS)

# Characters outside the XML 1.0 Char production
_INVALID_XML_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


# =============================================================================
# Encoding
# =============================================================================

def qualify(tag: str) -> str:
    """Return the ElementTree name for a tag, bound to its namespace."""
    if tag in GD_TAGS:
        return f"{{{GD_NS}}}{tag}"
    if tag in GCONTACT_TAGS:
        return f"{{{GCONTACT_NS}}}{tag}"
    # Atom, written in the document's default namespace
    return tag


def _checked(tag: str, value: str) -> str:
    match = _INVALID_XML_CHARS.search(value)
    if match:
        raise EncodeError(
            f"<{tag}> holds a character not allowed in XML: {match.group()!r}",
            {"tag": tag, "position": match.start()},
        )
    return value


def _sub(
    parent: ET.Element,
    tag: str,
    text: Optional[str] = None,
    **attrs: Union[str, bool, None],
) -> ET.Element:
    elem = ET.SubElement(parent, qualify(tag))
    for key, value in attrs.items():
        if value is True:
            elem.set(key, "true")
        elif value:
            elem.set(key, _checked(tag, value))
    if text:
        elem.text = _checked(tag, text)
    return elem


def _sub_text(parent: ET.Element, tag: str, text: str) -> None:
    """Add a text-only child, skipping empty values."""
    if text:
        _sub(parent, tag, text)


def _format_datetime(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


def _encode_name(parent: ET.Element, name: Name) -> None:
    elem = _sub(parent, "name")
    _sub_text(elem, "fullName", name.full_name)
    _sub_text(elem, "namePrefix", name.name_prefix)
    if name.given_name.value or name.given_name.phonetic:
        _sub(elem, "givenName", name.given_name.value, yomi=name.given_name.phonetic)
    _sub_text(elem, "additionalName", name.additional_name)
    if name.family_name.value or name.family_name.phonetic:
        _sub(elem, "familyName", name.family_name.value, yomi=name.family_name.phonetic)
    _sub_text(elem, "nameSuffix", name.name_suffix)


def _encode_structured_address(parent: ET.Element, address: StructuredPostalAddress) -> None:
    elem = _sub(
        parent,
        "structuredPostalAddress",
        rel=address.rel,
        primary=address.primary,
        label=address.label,
    )
    _sub_text(elem, "street", address.street)
    _sub_text(elem, "pobox", address.pobox)
    _sub_text(elem, "neighborhood", address.neighborhood)
    _sub_text(elem, "city", address.city)
    _sub_text(elem, "region", address.region)
    _sub_text(elem, "postcode", address.postcode)
    _sub_text(elem, "country", address.country)
    _sub_text(elem, "formattedAddress", address.formatted_address)


def entry_to_element(entry: Entry) -> ET.Element:
    """Build the <entry> element tree for an entry."""
    root = ET.Element("entry")
    # Default namespace for the unqualified Atom elements
    root.set("xmlns", ATOM_NS)
    if entry.etag:
        root.set(f"{{{GD_NS}}}etag", _checked("entry", entry.etag))

    _sub_text(root, "id", entry.id)
    if entry.updated is not None:
        _sub(root, "updated", _format_datetime(entry.updated))
    _sub_text(root, "title", entry.title)
    _sub_text(root, "content", entry.content)
    for link in entry.links:
        _sub(root, "link", rel=link.rel, type=link.type, href=link.href)

    # An empty container means "absent"; the service rejects it
    if not entry.name.is_empty():
        _encode_name(root, entry.name)
    if not entry.organization.is_empty():
        org = _sub(root, "organization", rel=entry.organization.rel)
        _sub_text(org, "orgName", entry.organization.org_name)
        _sub_text(org, "orgTitle", entry.organization.org_title)

    for email in entry.emails:
        _sub(root, "email", address=email.address, primary=email.primary,
             label=email.label, rel=email.rel)
    for im in entry.instant_messengers:
        _sub(root, "im", address=im.address, protocol=im.protocol, rel=im.rel)
    for phone in entry.phone_numbers:
        _sub(root, "phoneNumber", phone.value, label=phone.label, rel=phone.rel, uri=phone.uri)
    for postal in entry.postal_addresses:
        _sub(root, "postalAddress", postal.value, rel=postal.rel,
             primary=postal.primary, label=postal.label)
    for address in entry.structured_postal_addresses:
        _encode_structured_address(root, address)
    for prop in entry.extended_properties:
        _sub(root, "extendedProperty", name=prop.name, value=prop.value)

    _sub_text(root, "nickname", entry.nickname)
    _sub_text(root, "fileAs", entry.file_as)
    if entry.birthday.when:
        _sub(root, "birthday", when=entry.birthday.when)
    for event in entry.events:
        event_elem = _sub(root, "event", label=event.label, rel=event.rel)
        _sub(event_elem, "when", startTime=event.when.start_time)
    for relation in entry.relations:
        _sub(root, "relation", relation.value, rel=relation.rel)
    for udf in entry.user_defined_fields:
        _sub(root, "userDefinedField", key=udf.key, value=udf.value)
    for website in entry.websites:
        _sub(root, "website", rel=website.rel, label=website.label, href=website.href)
    for membership in entry.group_memberships:
        _sub(root, "groupMembershipInfo", deleted=membership.deleted, href=membership.href)

    return root


def encode(entry: Entry) -> bytes:
    """
    Serialize an entry to an Atom XML document.

    Raises:
        EncodeError: A value holds a character XML 1.0 cannot carry
    """
    root = entry_to_element(entry)
    ET.indent(root, space="  ")
    data = ET.tostring(root, encoding="utf-8", xml_declaration=True)
    # Attribute values are already escaped; a raw CR can only come from
    # element text, where parsers would fold it into LF
    return data.replace(b"\r", b"&#13;")


# =============================================================================
# Decoding
# =============================================================================

def _local(name: str) -> str:
    """Strip the {namespace} part of an ElementTree name."""
    return name.rsplit("}", 1)[-1]


def _attrs(elem: ET.Element) -> Dict[str, str]:
    return {_local(key): value for key, value in elem.attrib.items()}


def _children(elem: ET.Element) -> Iterator[Tuple[str, ET.Element]]:
    for child in elem:
        yield _local(child.tag), child


def _text(elem: ET.Element) -> str:
    return elem.text or ""


def _parse_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("true", "1")


def _parse_int(elem: ET.Element) -> int:
    try:
        return int(_text(elem).strip() or 0)
    except ValueError as e:
        raise DecodeError(f"expected an integer in <{_local(elem.tag)}>, got {elem.text!r}") from e


def _parse_datetime(elem: ET.Element) -> Optional[datetime]:
    raw = _text(elem).strip()
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw)
    except ValueError as e:
        raise DecodeError(f"expected a timestamp in <{_local(elem.tag)}>, got {elem.text!r}") from e


def _decode_name(elem: ET.Element) -> Name:
    name = Name()
    for tag, child in _children(elem):
        if tag == "fullName":
            name.full_name = _text(child)
        elif tag == "namePrefix":
            name.name_prefix = _text(child)
        elif tag == "givenName":
            name.given_name = GivenName(_text(child), _attrs(child).get("yomi", ""))
        elif tag == "additionalName":
            name.additional_name = _text(child)
        elif tag == "familyName":
            name.family_name = FamilyName(_text(child), _attrs(child).get("yomi", ""))
        elif tag == "nameSuffix":
            name.name_suffix = _text(child)
    return name


def _decode_organization(elem: ET.Element) -> Organization:
    org = Organization(rel=_attrs(elem).get("rel", ""))
    for tag, child in _children(elem):
        if tag == "orgName":
            org.org_name = _text(child)
        elif tag == "orgTitle":
            org.org_title = _text(child)
    return org


_ADDRESS_FIELDS = {
    "street": "street",
    "pobox": "pobox",
    "neighborhood": "neighborhood",
    "city": "city",
    "region": "region",
    "postcode": "postcode",
    "country": "country",
    "formattedAddress": "formatted_address",
}


def _decode_structured_address(elem: ET.Element) -> StructuredPostalAddress:
    attrs = _attrs(elem)
    address = StructuredPostalAddress(
        rel=attrs.get("rel", ""),
        primary=_parse_bool(attrs.get("primary")),
        label=attrs.get("label", ""),
    )
    for tag, child in _children(elem):
        if tag in _ADDRESS_FIELDS:
            setattr(address, _ADDRESS_FIELDS[tag], _text(child))
    return address


def _decode_event(elem: ET.Element) -> Event:
    attrs = _attrs(elem)
    event = Event(label=attrs.get("label", ""), rel=attrs.get("rel", ""))
    for tag, child in _children(elem):
        if tag == "when":
            event.when = When(start_time=_attrs(child).get("startTime", ""))
    return event


def element_to_entry(root: ET.Element) -> Entry:
    """Build an entry from a parsed <entry> element."""
    entry = Entry(etag=_attrs(root).get("etag", ""))

    for tag, child in _children(root):
        attrs = _attrs(child)
        if tag == "id":
            entry.id = _text(child)
        elif tag == "updated":
            entry.updated = _parse_datetime(child)
        elif tag == "title":
            entry.title = _text(child)
        elif tag == "content":
            entry.content = _text(child)
        elif tag == "link":
            entry.links.append(Link(attrs.get("rel", ""), attrs.get("type", ""), attrs.get("href", "")))
        elif tag == "name":
            entry.name = _decode_name(child)
        elif tag == "organization":
            entry.organization = _decode_organization(child)
        elif tag == "email":
            entry.emails.append(Email(
                address=attrs.get("address", ""),
                primary=_parse_bool(attrs.get("primary")),
                label=attrs.get("label", ""),
                rel=attrs.get("rel", ""),
            ))
        elif tag == "im":
            entry.instant_messengers.append(InstantMessenger(
                attrs.get("address", ""), attrs.get("protocol", ""), attrs.get("rel", ""),
            ))
        elif tag == "phoneNumber":
            entry.phone_numbers.append(PhoneNumber(
                _text(child), attrs.get("label", ""), attrs.get("rel", ""), attrs.get("uri", ""),
            ))
        elif tag == "postalAddress":
            entry.postal_addresses.append(PostalAddress(
                _text(child), attrs.get("rel", ""), _parse_bool(attrs.get("primary")), attrs.get("label", ""),
            ))
        elif tag == "structuredPostalAddress":
            entry.structured_postal_addresses.append(_decode_structured_address(child))
        elif tag == "extendedProperty":
            entry.extended_properties.append(ExtendedProperty(attrs.get("name", ""), attrs.get("value", "")))
        elif tag == "nickname":
            entry.nickname = _text(child)
        elif tag == "fileAs":
            entry.file_as = _text(child)
        elif tag == "birthday":
            entry.birthday = Birthday(when=attrs.get("when", ""))
        elif tag == "event":
            entry.events.append(_decode_event(child))
        elif tag == "relation":
            entry.relations.append(Relation(_text(child), attrs.get("rel", "")))
        elif tag == "userDefinedField":
            entry.user_defined_fields.append(UserDefinedField(attrs.get("key", ""), attrs.get("value", "")))
        elif tag == "website":
            entry.websites.append(Website(attrs.get("href", ""), attrs.get("rel", ""), attrs.get("label", "")))
        elif tag == "groupMembershipInfo":
            entry.group_memberships.append(GroupMembershipInfo(
                attrs.get("href", ""), _parse_bool(attrs.get("deleted")),
            ))

    return entry


def _parse(data: Union[bytes, str]) -> ET.Element:
    try:
        return ET.fromstring(data)
    except ET.ParseError as e:
        raise DecodeError(f"malformed XML: {e}") from e


def decode_entry(data: Union[bytes, str]) -> Entry:
    """Parse an <entry> document."""
    root = _parse(data)
    if _local(root.tag) != "entry":
        raise DecodeError(f"expected element <entry>, got <{_local(root.tag)}>")
    return element_to_entry(root)


def decode_feed(data: Union[bytes, str]) -> Feed:
    """Parse a feed document."""
    return element_to_feed(_parse(data))


def element_to_feed(root: ET.Element) -> Feed:
    """Build a feed from a parsed feed element."""
    feed = Feed()
    for tag, child in _children(root):
        if tag == "totalResults":
            feed.total_results = _parse_int(child)
        elif tag == "startIndex":
            feed.start_index = _parse_int(child)
        elif tag == "itemsPerPage":
            feed.items_per_page = _parse_int(child)
        elif tag == "entry":
            feed.entries.append(element_to_entry(child))
    return feed


def decode(data: Union[bytes, str]) -> Union[Entry, Feed]:
    """Parse either an entry or a feed, depending on the root element."""
    root = _parse(data)
    if _local(root.tag) == "entry":
        return element_to_entry(root)
    return element_to_feed(root)
