"""GenerateFeeds: turn ordered documents into Atom and RSS documents.

Input must already be filtered and ordered; entries keep input order.
Output is exactly two new documents (Atom, then RSS), each carrying
``destination``, ``content`` and ``media_type``.

Usage:
    GenerateFeeds(
        atom_path="feeds/news.atom",
        rss_path="feeds/news.rss",
        feed_title="Recent News",
        feed_description="A roundup of recent posts.",
        fields=feed_item_fields(),
    )
"""

import logging
from typing import Sequence

from discover.documents import Document, SiteKeys
from discover.feeds.fields import FeedFields
from discover.feeds.render import Feed, FeedEntry, render_atom, render_rss
from discover.pipeline.context import ExecutionContext
from discover.pipeline.modules import Module

logger = logging.getLogger(__name__)

ATOM_MEDIA_TYPE = "application/atom+xml"
RSS_MEDIA_TYPE = "application/rss+xml"


class GenerateFeeds(Module):
    """Emit an Atom feed and an RSS feed for the incoming documents.

    Args:
        atom_path: Relative destination of the Atom document
        rss_path: Relative destination of the RSS document
        feed_title: Channel title
        feed_description: Channel description
        fields: Entry field extraction functions
        feed_link: Channel link (default: settings.site_url)
    """

    def __init__(
        self,
        atom_path: str,
        rss_path: str,
        feed_title: str,
        feed_description: str,
        fields: FeedFields,
        feed_link: str | None = None,
    ) -> None:
        self.atom_path = atom_path.lstrip("/")
        self.rss_path = rss_path.lstrip("/")
        self.feed_title = feed_title
        self.feed_description = feed_description
        self.fields = fields
        self.feed_link = feed_link

    def _entry(self, document: Document) -> FeedEntry | None:
        title = self.fields.title(document)
        link = self.fields.link(document)
        if not title or not link:
            logger.warning("Skipping feed entry for document %s: missing title or link", document.id)
            return None
        return FeedEntry(
            id=str(self.fields.id(document) or link),
            title=title,
            link=link,
            description=self.fields.description(document) or "",
            published=self.fields.published(document),
            author=self.fields.author(document),
            image=self.fields.image(document),
        )

    async def execute(
        self,
        documents: Sequence[Document],
        context: ExecutionContext,
    ) -> list[Document]:
        entries = tuple(
            entry for entry in (self._entry(doc) for doc in documents) if entry is not None
        )
        published = [entry.published for entry in entries if entry.published]
        site_url = self.feed_link or context.settings.site_url

        feed = Feed(
            title=self.feed_title,
            description=self.feed_description,
            link=site_url,
            updated=max(published) if published else context.started_at,
            entries=entries,
        )

        base = context.settings.site_url.rstrip("/")
        atom = render_atom(feed, self_link=f"{base}/{self.atom_path}")
        rss = render_rss(feed)

        logger.info(
            "%s: generated feeds with %d entries (%s, %s)",
            context.pipeline_name, len(entries), self.atom_path, self.rss_path,
        )
        return [
            Document({
                SiteKeys.DESTINATION: self.atom_path,
                SiteKeys.CONTENT: atom,
                SiteKeys.MEDIA_TYPE: ATOM_MEDIA_TYPE,
            }),
            Document({
                SiteKeys.DESTINATION: self.rss_path,
                SiteKeys.CONTENT: rss,
                SiteKeys.MEDIA_TYPE: RSS_MEDIA_TYPE,
            }),
        ]
