"""Posts and Episodes pipelines: blog posts and broadcast episodes.

Both project their documents into feed items and order them newest first,
so the news feed can merge them.
"""

from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from discover.documents import Document
from discover.modules import ProjectFeedItems, feed_item_of
from discover.pipeline import CreateDocuments, OrderDocuments, Pipeline

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def published_key(document: Document) -> datetime:
    """Feed item publish time; documents without one sort as oldest."""
    item = feed_item_of(document)
    return item.published if item else _OLDEST


class Posts(Pipeline):
    """Blog posts, newest first."""

    def __init__(self, items: Iterable[Mapping[str, Any]]) -> None:
        super().__init__(
            input_modules=[CreateDocuments(items)],
            process_modules=[
                ProjectFeedItems(),
                OrderDocuments(published_key, descending=True),
            ],
            is_read_only=True,
        )


class Episodes(Pipeline):
    """Broadcast episodes, newest first."""

    def __init__(self, items: Iterable[Mapping[str, Any]]) -> None:
        super().__init__(
            input_modules=[CreateDocuments(items)],
            process_modules=[
                ProjectFeedItems(),
                OrderDocuments(published_key, descending=True),
            ],
            is_read_only=True,
        )
