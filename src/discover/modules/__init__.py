"""Site-specific modules: GitHub enrichment, feed items, output."""

from discover.modules.feed_items import ProjectFeedItems, feed_item_of, is_recent_feed_item
from discover.modules.github_issues import GetIssueGitHubData, parse_github_repository
from discover.modules.output import MemoryOutputWriter, OutputWriter, WriteFiles

__all__ = [
    "ProjectFeedItems",
    "feed_item_of",
    "is_recent_feed_item",
    "GetIssueGitHubData",
    "parse_github_repository",
    "MemoryOutputWriter",
    "OutputWriter",
    "WriteFiles",
]
