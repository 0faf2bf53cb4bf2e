"""Syndication feed generation (Atom + RSS)."""

from discover.feeds.fields import FeedFields, feed_item_fields
from discover.feeds.generator import ATOM_MEDIA_TYPE, RSS_MEDIA_TYPE, GenerateFeeds
from discover.feeds.render import Feed, FeedEntry, render_atom, render_rss

__all__ = [
    "FeedFields",
    "feed_item_fields",
    "ATOM_MEDIA_TYPE",
    "RSS_MEDIA_TYPE",
    "GenerateFeeds",
    "Feed",
    "FeedEntry",
    "render_atom",
    "render_rss",
]
