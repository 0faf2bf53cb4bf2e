"""Execution context handed to every module.

One base context is created per run; the scheduler derives a per-pipeline
copy that exposes only the outputs of that pipeline's dependencies.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Any, Mapping, Protocol, Sequence

from discover.config import Settings
from discover.documents import Document
from discover.pipeline.errors import PipelineConfigurationError
from discover.services.foundation import FoundationMembership


class IssueSource(Protocol):
    """Anything that can list raw issues for a repository."""

    async def fetch_all_issues(self, owner: str, name: str) -> Sequence[dict[str, Any]]: ...


@dataclass(frozen=True)
class ExecutionContext:
    """Run-scoped state and services for modules.

    Attributes:
        settings: Build settings
        started_at: Run start time, the anchor for every recency cutoff
        foundation: Foundation membership service
        github: Issue source, None when enrichment is disabled
        pipeline_name: Pipeline currently executing ("" on the base context)
        dependencies: Pipelines whose outputs this pipeline may read
        outputs: Cached outputs of those dependencies
    """

    settings: Settings
    started_at: datetime
    foundation: FoundationMembership = field(default_factory=FoundationMembership)
    github: IssueSource | None = None
    pipeline_name: str = ""
    dependencies: frozenset[str] = frozenset()
    outputs: Mapping[str, tuple[Document, ...]] = field(default_factory=dict)

    @property
    def one_day_ago(self) -> datetime:
        """Recency anchor for issues, fixed for the whole run."""
        return self.started_at - timedelta(hours=24)

    def for_pipeline(
        self,
        name: str,
        dependencies: frozenset[str],
        outputs: Mapping[str, tuple[Document, ...]],
    ) -> "ExecutionContext":
        """Derive the context for one pipeline from the run context."""
        return replace(
            self,
            pipeline_name=name,
            dependencies=dependencies,
            outputs=MappingProxyType({dep: outputs[dep] for dep in dependencies}),
        )

    def outputs_of(self, name: str) -> tuple[Document, ...]:
        """Return the cached output of a dependency pipeline.

        Raises:
            PipelineConfigurationError: If ``name`` is not a declared dependency
        """
        if name not in self.dependencies:
            raise PipelineConfigurationError(
                f"Pipeline '{self.pipeline_name}' reads '{name}' without declaring it as a dependency"
            )
        return self.outputs[name]
