"""NewsFeed pipeline: recent posts and episodes as Atom and RSS."""

from discover.feeds import GenerateFeeds, feed_item_fields
from discover.modules import OutputWriter, WriteFiles, is_recent_feed_item
from discover.pipeline import FilterDocuments, OrderDocuments, Pipeline, ReplaceDocuments
from discover.pipelines.content import Episodes, Posts, published_key

NEWS_ATOM_PATH = "feeds/news.atom"
NEWS_RSS_PATH = "feeds/news.rss"


class NewsFeed(Pipeline):
    """Merge posts and episodes, keep recent ones, newest first, emit feeds."""

    def __init__(self, writer: OutputWriter | None = None) -> None:
        super().__init__(
            dependencies=[Posts.__name__, Episodes.__name__],
            process_modules=[
                ReplaceDocuments(Posts.__name__, Episodes.__name__),
                FilterDocuments(is_recent_feed_item),
                OrderDocuments(published_key, descending=True),
                GenerateFeeds(
                    atom_path=NEWS_ATOM_PATH,
                    rss_path=NEWS_RSS_PATH,
                    feed_title="Recent News From Discover .NET",
                    feed_description="A roundup of recent blog posts, podcasts, and more.",
                    fields=feed_item_fields(),
                ),
            ],
            output_modules=[WriteFiles(writer)] if writer else [],
        )
