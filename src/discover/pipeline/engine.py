"""Engine: one build run from start to finished outputs.

Wires settings, services and the scheduler together:
1. Plan the run (configuration errors surface before any I/O)
2. Open the GitHub client for the run (unless validating or injected)
3. Execute the scheduler with a run context anchored at the start time
4. Return all pipeline outputs, or raise without publishing any

Usage:
    engine = Engine(default_pipelines(projects, posts, episodes))
    result = await engine.run()
    for doc in result.documents("NewsFeed"):
        print(doc.get("destination"))
"""

import asyncio
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Mapping, Sequence

from discover.clients.github import GitHubClient
from discover.config import Settings, settings as default_settings
from discover.documents import Document
from discover.pipeline.context import ExecutionContext, IssueSource
from discover.pipeline.pipeline import Pipeline
from discover.pipeline.scheduler import PipelineScheduler
from discover.services.foundation import FoundationMembership, HttpFoundationSource

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outputs of a completed run."""

    started_at: datetime
    order: list[str]
    outputs: Mapping[str, tuple[Document, ...]] = field(default_factory=dict)

    def documents(self, pipeline: str) -> tuple[Document, ...]:
        return self.outputs[pipeline]


class Engine:
    """Executes registered pipelines as a single build run.

    Args:
        pipelines: Pipeline instances to register
        settings: Build settings (default: global settings)
        foundation: Foundation membership service (default: per run, loaded
            from settings.foundation_url when set, else empty)
        github: Issue source to use instead of opening a GitHubClient
    """

    def __init__(
        self,
        pipelines: Iterable[Pipeline],
        settings: Settings | None = None,
        foundation: FoundationMembership | None = None,
        github: IssueSource | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.scheduler = PipelineScheduler(pipelines)
        self.foundation = foundation
        self.github = github

    def _default_foundation(self) -> FoundationMembership:
        """Per-run membership from ``settings.foundation_url``, empty when unset."""
        if self.settings.foundation_url:
            return FoundationMembership(HttpFoundationSource(self.settings.foundation_url))
        return FoundationMembership()

    async def run(
        self,
        targets: Sequence[str] | None = None,
        deploy: bool = False,
        cancel_event: asyncio.Event | None = None,
        started_at: datetime | None = None,
    ) -> RunResult:
        """Run the selected pipelines.

        Args:
            targets: Pipeline names (default: all default pipelines)
            deploy: Include deployment pipelines
            cancel_event: Setting it aborts the run
            started_at: Run start time (default: now, UTC)

        Returns:
            RunResult with every executed pipeline's documents

        Raises:
            PipelineConfigurationError: Invalid pipeline graph or targets
            PipelineExecutionError: A module failed
            RunAbortedError: The run was cancelled
        """
        started_at = started_at or datetime.now(timezone.utc)
        order = self.scheduler.plan(targets, deploy)

        logger.info(
            "Starting run at %s (validate_only=%s, deploy=%s)",
            started_at.isoformat(), self.settings.validate_only, deploy,
        )

        async with AsyncExitStack() as stack:
            github = self.github
            if github is None and not self.settings.validate_only:
                github = await stack.enter_async_context(
                    GitHubClient(
                        token=self.settings.github_token,
                        base_url=self.settings.github_api_url,
                        rate_limit=self.settings.github_rate_limit,
                        cache_ttl=self.settings.github_cache_ttl,
                    )
                )

            context = ExecutionContext(
                settings=self.settings,
                started_at=started_at,
                foundation=self.foundation or self._default_foundation(),
                github=github,
            )
            outputs = await self.scheduler.execute(
                context, targets=targets, deploy=deploy, cancel_event=cancel_event,
            )

        logger.info("Run finished: %d pipelines", len(outputs))
        return RunResult(started_at=started_at, order=order, outputs=outputs)
