"""Atom 1.0 and RSS 2.0 serialization."""

from dataclasses import dataclass, field
from datetime import datetime
from email.utils import format_datetime
from xml.etree.ElementTree import Element, SubElement, register_namespace, tostring

ATOM_NS = "http://www.w3.org/2005/Atom"
DC_NS = "http://purl.org/dc/elements/1.1/"

_XML_DECLARATION = "<?xml version='1.0' encoding='UTF-8'?>\n"


@dataclass(frozen=True)
class FeedEntry:
    id: str
    title: str
    link: str
    description: str = ""
    published: datetime | None = None
    author: str | None = None
    image: str | None = None


@dataclass(frozen=True)
class Feed:
    title: str
    description: str
    link: str
    updated: datetime
    entries: tuple[FeedEntry, ...] = field(default_factory=tuple)


def render_atom(feed: Feed, self_link: str) -> str:
    """Serialize a feed as an Atom 1.0 document."""
    root = Element("feed", attrib={"xmlns": ATOM_NS})
    SubElement(root, "id").text = self_link
    SubElement(root, "title").text = feed.title
    SubElement(root, "subtitle").text = feed.description
    SubElement(root, "updated").text = feed.updated.isoformat()
    SubElement(root, "link", attrib={"href": feed.link, "rel": "alternate"})
    SubElement(root, "link", attrib={"href": self_link, "rel": "self"})

    for entry in feed.entries:
        entry_el = SubElement(root, "entry")
        SubElement(entry_el, "id").text = entry.id
        SubElement(entry_el, "title").text = entry.title
        SubElement(entry_el, "link", attrib={"href": entry.link, "rel": "alternate"})
        timestamp = (entry.published or feed.updated).isoformat()
        if entry.published:
            SubElement(entry_el, "published").text = timestamp
        SubElement(entry_el, "updated").text = timestamp
        if entry.author:
            SubElement(SubElement(entry_el, "author"), "name").text = entry.author
        if entry.description:
            SubElement(entry_el, "summary").text = entry.description
        if entry.image:
            SubElement(entry_el, "link", attrib={"href": entry.image, "rel": "enclosure"})

    return _XML_DECLARATION + tostring(root, encoding="unicode")


def render_rss(feed: Feed) -> str:
    """Serialize a feed as an RSS 2.0 document."""
    register_namespace("dc", DC_NS)

    root = Element("rss", attrib={"version": "2.0"})
    channel = SubElement(root, "channel")
    SubElement(channel, "title").text = feed.title
    SubElement(channel, "link").text = feed.link
    SubElement(channel, "description").text = feed.description
    SubElement(channel, "lastBuildDate").text = format_datetime(feed.updated)

    for entry in feed.entries:
        item = SubElement(channel, "item")
        SubElement(item, "title").text = entry.title
        SubElement(item, "link").text = entry.link
        SubElement(item, "guid", attrib={"isPermaLink": "false"}).text = entry.id
        if entry.description:
            SubElement(item, "description").text = entry.description
        if entry.published:
            SubElement(item, "pubDate").text = format_datetime(entry.published)
        if entry.author:
            SubElement(item, f"{{{DC_NS}}}creator").text = entry.author

    return _XML_DECLARATION + tostring(root, encoding="unicode")
