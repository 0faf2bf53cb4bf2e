"""Site pipelines.

- Projects: project documents with GitHub issue data
- Posts / Episodes: feed-item projections of posts and episodes
- NewsFeed: recent posts + episodes as Atom and RSS
"""

from typing import Any, Iterable, Mapping

from discover.modules import OutputWriter
from discover.pipeline import Pipeline
from discover.pipelines.content import Episodes, Posts
from discover.pipelines.feeds import NEWS_ATOM_PATH, NEWS_RSS_PATH, NewsFeed
from discover.pipelines.projects import Projects


def default_pipelines(
    projects: Iterable[Mapping[str, Any]] = (),
    posts: Iterable[Mapping[str, Any]] = (),
    episodes: Iterable[Mapping[str, Any]] = (),
    writer: OutputWriter | None = None,
) -> list[Pipeline]:
    """One instance of every site pipeline."""
    return [
        Projects(projects, writer=writer),
        Posts(posts),
        Episodes(episodes),
        NewsFeed(writer=writer),
    ]


__all__ = [
    "Episodes",
    "NEWS_ATOM_PATH",
    "NEWS_RSS_PATH",
    "NewsFeed",
    "Posts",
    "Projects",
    "default_pipelines",
]
