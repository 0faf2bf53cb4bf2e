"""Document model: immutable documents, metadata keys, derived records."""

from discover.documents.document import Document
from discover.documents.keys import KEY_TYPES, MetadataTypeError, SiteKeys, validate_value
from discover.documents.models import FeedItem, Issue

__all__ = [
    "Document",
    "KEY_TYPES",
    "MetadataTypeError",
    "SiteKeys",
    "validate_value",
    "FeedItem",
    "Issue",
]
