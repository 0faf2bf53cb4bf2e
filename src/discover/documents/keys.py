"""Metadata keys and their conventional value types.

Document metadata is schema-less, but every key used across the site has one
fixed type. ``KEY_TYPES`` documents that type; values are checked against it
with pydantic at the enrichment and feed boundaries (``validate_value``),
not on every clone.
"""

from datetime import datetime
from functools import lru_cache
from typing import Any

from pydantic import TypeAdapter, ValidationError

from discover.documents.models import FeedItem, Issue


class SiteKeys:
    """Metadata key names (case-sensitive)."""

    # Content
    TITLE = "title"
    DESCRIPTION = "description"
    AUTHOR = "author"
    LINK = "link"
    PUBLISHED = "published"
    SOURCE_CODE = "source_code"

    # GitHub enrichment
    GITHUB_OWNER = "github_owner"
    GITHUB_NAME = "github_name"
    ISSUES = "issues"
    ISSUES_COUNT = "issues_count"
    RECENT_ISSUES_COUNT = "recent_issues_count"
    HELP_WANTED_ISSUES_COUNT = "help_wanted_issues_count"
    MICROSOFT = "microsoft"
    FOUNDATION = "foundation"

    # Feeds
    FEED_ITEM = "feed_item"

    # Output
    DESTINATION = "destination"
    CONTENT = "content"
    MEDIA_TYPE = "media_type"


KEY_TYPES: dict[str, Any] = {
    SiteKeys.TITLE: str,
    SiteKeys.DESCRIPTION: str,
    SiteKeys.AUTHOR: str,
    SiteKeys.LINK: str,
    SiteKeys.PUBLISHED: datetime,
    SiteKeys.SOURCE_CODE: str,
    SiteKeys.GITHUB_OWNER: str,
    SiteKeys.GITHUB_NAME: str,
    SiteKeys.ISSUES: tuple[Issue, ...],
    SiteKeys.ISSUES_COUNT: int,
    SiteKeys.RECENT_ISSUES_COUNT: int,
    SiteKeys.HELP_WANTED_ISSUES_COUNT: int,
    SiteKeys.MICROSOFT: bool,
    SiteKeys.FOUNDATION: bool,
    SiteKeys.FEED_ITEM: FeedItem,
    SiteKeys.DESTINATION: str,
    SiteKeys.CONTENT: str,
    SiteKeys.MEDIA_TYPE: str,
}


class MetadataTypeError(TypeError):
    """A metadata value does not have its key's documented type."""

    def __init__(self, key: str, value: Any, cause: ValidationError) -> None:
        super().__init__(
            f"Metadata '{key}' expected {KEY_TYPES.get(key)!r}, "
            f"got {type(value).__name__}: {cause.errors()[0]['msg']}"
        )
        self.key = key
        self.value = value


@lru_cache(maxsize=None)
def _adapter(key: str) -> TypeAdapter:
    return TypeAdapter(KEY_TYPES[key])


def validate_value(key: str, value: Any) -> Any:
    """Validate (and coerce) a value against its key's documented type.

    Keys without a documented type are returned unchanged.

    Raises:
        MetadataTypeError: If the value does not fit the documented type
    """
    if key not in KEY_TYPES:
        return value
    try:
        return _adapter(key).validate_python(value)
    except ValidationError as e:
        raise MetadataTypeError(key, value, e) from e
