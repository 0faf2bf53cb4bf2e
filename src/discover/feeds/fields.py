"""Feed field extraction: which document values become feed entry fields.

A FeedFields struct holds one plain function per entry field. The news feed
uses ``feed_item_fields()``, which reads everything from the document's
FeedItem projection.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from discover.documents import Document, SiteKeys
from discover.modules.feed_items import feed_item_of


def _no_value(document: Document) -> None:
    return None


@dataclass(frozen=True)
class FeedFields:
    """Per-field extraction functions for feed entries."""

    title: Callable[[Document], str | None]
    description: Callable[[Document], str | None]
    published: Callable[[Document], datetime | None]
    link: Callable[[Document], str | None]
    id: Callable[[Document], str | None]
    author: Callable[[Document], str | None]
    image: Callable[[Document], str | None] = _no_value


def _item_title(document: Document) -> str | None:
    item = feed_item_of(document)
    return item.title if item else None


def _item_description(document: Document) -> str | None:
    item = feed_item_of(document)
    return item.description if item else None


def _item_published(document: Document) -> datetime | None:
    item = feed_item_of(document)
    return item.published if item else None


def _item_link(document: Document) -> str | None:
    item = feed_item_of(document)
    return str(item.link) if item else None


def _item_author(document: Document) -> str | None:
    """Feed item author, then document author, then document title."""
    item = feed_item_of(document)
    candidates = (
        item.author if item else None,
        document.get_str(SiteKeys.AUTHOR),
        document.get_str(SiteKeys.TITLE),
    )
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()
    return None


def feed_item_fields() -> FeedFields:
    """Fields for documents carrying a FeedItem; the entry id is the link."""
    return FeedFields(
        title=_item_title,
        description=_item_description,
        published=_item_published,
        link=_item_link,
        id=_item_link,
        author=_item_author,
        image=_no_value,
    )
