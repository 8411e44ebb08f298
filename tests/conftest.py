"""Shared fixtures: sample Atom documents as served by the contacts API."""

import pytest


ENTRY_XML = """<?xml version='1.0' encoding='UTF-8'?>
<entry xmlns='http://www.w3.org/2005/Atom' xmlns:gContact='http://schemas.google.com/contact/2008' xmlns:batch='http://schemas.google.com/gdata/batch' xmlns:gd='http://schemas.google.com/g/2005' gd:etag='"Qn04eTVSLit7I2A9XRdRGUgNQQ0."'>
  <id>http://www.google.com/m8/feeds/contacts/test%40example.com/base/abc123</id>
  <updated>2017-03-01T10:20:30.456Z</updated>
  <app:edited xmlns:app='http://www.w3.org/2007/app'>2017-03-01T10:20:30.456Z</app:edited>
  <category scheme='http://schemas.google.com/g/2005#kind' term='http://schemas.google.com/contact/2008#contact'/>
  <title>Jane Doe</title>
  <content>Met at the conference</content>
  <link rel='http://schemas.google.com/contacts/2008/rel#photo' type='image/*' href='https://www.google.com/m8/feeds/photos/media/test%40example.com/abc123'/>
  <link rel='self' type='application/atom+xml' href='https://www.google.com/m8/feeds/contacts/test%40example.com/full/abc123'/>
  <gd:name>
    <gd:fullName>Jane Doe</gd:fullName>
    <gd:givenName yomi='ジェーン'>Jane</gd:givenName>
    <gd:familyName>Doe</gd:familyName>
  </gd:name>
  <gContact:nickname>JD</gContact:nickname>
  <gContact:fileAs>Doe, Jane</gContact:fileAs>
  <gContact:birthday when='1980-05-17'/>
  <gd:organization rel='http://schemas.google.com/g/2005#work'>
    <gd:orgName>Acme</gd:orgName>
    <gd:orgTitle>Engineer</gd:orgTitle>
  </gd:organization>
  <gd:email rel='http://schemas.google.com/g/2005#work' address='jane@example.com' primary='true'/>
  <gd:email rel='http://schemas.google.com/g/2005#home' address='jane@home.example.com'/>
  <gd:im address='jane@jabber.example.com' protocol='http://schemas.google.com/g/2005#JABBER' rel='http://schemas.google.com/g/2005#other'/>
  <gd:phoneNumber rel='http://schemas.google.com/g/2005#mobile' uri='tel:+1-555-0100'>+1 555 0100</gd:phoneNumber>
  <gd:structuredPostalAddress rel='http://schemas.google.com/g/2005#home' primary='true'>
    <gd:formattedAddress>1 Main St, Springfield</gd:formattedAddress>
    <gd:street>1 Main St</gd:street>
    <gd:city>Springfield</gd:city>
    <gd:postcode>12345</gd:postcode>
    <gd:country>US</gd:country>
  </gd:structuredPostalAddress>
  <gContact:event rel='anniversary'>
    <gd:when startTime='2005-06-06'/>
  </gContact:event>
  <gContact:relation rel='spouse'>John Doe</gContact:relation>
  <gContact:userDefinedField key='shoe size' value='38'/>
  <gContact:website href='https://jane.example.com' rel='blog'/>
  <gContact:groupMembershipInfo deleted='false' href='http://www.google.com/m8/feeds/groups/test%40example.com/base/6'/>
  <gd:extendedProperty name='source' value='import'/>
</entry>
"""

FEED_XML = """<?xml version='1.0' encoding='UTF-8'?>
<feed xmlns='http://www.w3.org/2005/Atom' xmlns:openSearch='http://a9.com/-/spec/opensearch/1.1/' xmlns:gContact='http://schemas.google.com/contact/2008' xmlns:gd='http://schemas.google.com/g/2005' gd:etag='W/"CUMBRHY4fCp7I2A9XRdRGUo."'>
  <id>test@example.com</id>
  <updated>2017-03-01T10:20:30.456Z</updated>
  <title>Test User's Contacts</title>
  <openSearch:totalResults>2</openSearch:totalResults>
  <openSearch:startIndex>1</openSearch:startIndex>
  <openSearch:itemsPerPage>100</openSearch:itemsPerPage>
  <entry gd:etag='"first"'>
    <id>http://www.google.com/m8/feeds/contacts/test%40example.com/base/first</id>
    <title>First Contact</title>
    <gd:email address='first@example.com' primary='true'/>
  </entry>
  <entry gd:etag='"second"'>
    <id>http://www.google.com/m8/feeds/contacts/test%40example.com/base/second</id>
    <title>Second Contact</title>
    <gContact:nickname>Two</gContact:nickname>
  </entry>
</feed>
"""


@pytest.fixture
def entry_xml() -> bytes:
    """Single contact entry document."""
    return ENTRY_XML.encode("utf-8")


@pytest.fixture
def feed_xml() -> bytes:
    """Contacts feed page with two entries."""
    return FEED_XML.encode("utf-8")
