"""Feed item projection for posts and episodes."""

import logging
from datetime import timedelta
from typing import Callable, Sequence

from pydantic import ValidationError

from discover.documents import Document, FeedItem, MetadataTypeError, SiteKeys
from discover.documents.models import as_utc
from discover.pipeline.context import ExecutionContext
from discover.pipeline.modules import DocumentModule

logger = logging.getLogger(__name__)


def feed_item_of(document: Document) -> FeedItem | None:
    """The document's validated feed item, None if it has none."""
    return document.get_typed(SiteKeys.FEED_ITEM, None)


def is_recent_feed_item(document: Document) -> bool:
    item = feed_item_of(document)
    return item is not None and item.recent


class ProjectFeedItems(DocumentModule):
    """Attach a FeedItem built from title, description, published, link.

    Documents missing a title, link or published time, or carrying values of
    the wrong type, pass through without a feed item.

    Args:
        author: Optional explicit item author for each document
    """

    def __init__(self, author: Callable[[Document], str | None] | None = None) -> None:
        self.author = author

    async def execute_document(
        self,
        document: Document,
        context: ExecutionContext,
    ) -> Sequence[Document]:
        title = document.get_str(SiteKeys.TITLE)
        link = document.get_str(SiteKeys.LINK)
        if not title or not link or SiteKeys.PUBLISHED not in document:
            logger.debug("%s: document %s has no feed fields", context.pipeline_name, document.id)
            return [document]

        cutoff = as_utc(context.started_at) - timedelta(days=context.settings.feed_recent_days)
        try:
            item = FeedItem(
                title=title,
                description=document.get_str(SiteKeys.DESCRIPTION) or "",
                published=document.get_typed(SiteKeys.PUBLISHED),
                link=link,
                author=self.author(document) if self.author else None,
            )
        except (MetadataTypeError, ValidationError) as e:
            logger.warning("%s: skipping feed item for %r: %s", context.pipeline_name, title, e)
            return [document]

        item = item.model_copy(update={"recent": item.published >= cutoff})
        return [document.clone({SiteKeys.FEED_ITEM: item})]
