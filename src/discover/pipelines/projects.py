"""Projects pipeline: project documents enriched with GitHub issue data."""

from typing import Any, Iterable, Mapping

from discover.documents import SiteKeys
from discover.modules import GetIssueGitHubData, OutputWriter, WriteFiles
from discover.pipeline import CreateDocuments, OrderDocuments, Pipeline


class Projects(Pipeline):
    """Create project documents, attach issues, order by title.

    Args:
        items: Project metadata (title, source_code, ...)
        writer: Output writer (default: no output stage)
    """

    def __init__(
        self,
        items: Iterable[Mapping[str, Any]],
        writer: OutputWriter | None = None,
    ) -> None:
        super().__init__(
            input_modules=[CreateDocuments(items)],
            process_modules=[
                GetIssueGitHubData(),
                OrderDocuments(lambda doc: (doc.get_str(SiteKeys.TITLE) or "").lower()),
            ],
            output_modules=[WriteFiles(writer)] if writer else [],
        )
