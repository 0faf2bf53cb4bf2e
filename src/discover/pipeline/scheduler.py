"""Pipeline scheduler: dependency-ordered, concurrent pipeline execution.

Planning validates the whole registry (unknown dependencies, cycles) before
anything runs, then selects the pipelines for the run:
- Default run: NORMAL and ALWAYS pipelines
- Targeted run: the named pipelines plus ALWAYS pipelines
- Dependencies of selected pipelines are pulled in transitively
- Deployment pipelines only run in deploy runs or when named

Execution starts every pipeline whose dependencies are done, up to
``settings.max_pipeline_concurrency`` at a time. Only the dependency partial
order is guaranteed. Each finished pipeline's documents are cached by name.
A failure or a cancellation stops all running pipelines and nothing is
returned.

Usage:
    scheduler = PipelineScheduler([Posts(items), Episodes(items), NewsFeed()])
    scheduler.plan()  # ["Episodes", "Posts", "NewsFeed"]
    outputs = await scheduler.execute(context)
"""

import asyncio
import logging
from graphlib import CycleError, TopologicalSorter
from typing import Iterable, Sequence

from discover.documents import Document
from discover.pipeline.context import ExecutionContext
from discover.pipeline.errors import (
    PipelineConfigurationError,
    PipelineError,
    PipelineExecutionError,
    RunAbortedError,
)
from discover.pipeline.modules import Module
from discover.pipeline.pipeline import ExecutionPolicy, Pipeline

logger = logging.getLogger(__name__)


class PipelineScheduler:
    """Orders and executes registered pipelines.

    Args:
        pipelines: One instance per pipeline; names must be unique

    Raises:
        PipelineConfigurationError: On duplicate pipeline names
    """

    def __init__(self, pipelines: Iterable[Pipeline]) -> None:
        self.pipelines: dict[str, Pipeline] = {}
        for pipeline in pipelines:
            if pipeline.name in self.pipelines:
                raise PipelineConfigurationError(f"Duplicate pipeline name '{pipeline.name}'")
            self.pipelines[pipeline.name] = pipeline

    def _graph(self, names: Iterable[str]) -> dict[str, list[str]]:
        return {
            name: sorted(self.pipelines[name].dependencies)
            for name in sorted(names)
        }

    def validate(self) -> None:
        """Check that every dependency exists and the graph is acyclic.

        Raises:
            PipelineConfigurationError: On unknown dependencies or cycles
        """
        for name in sorted(self.pipelines):
            missing = self.pipelines[name].dependencies - self.pipelines.keys()
            if missing:
                raise PipelineConfigurationError(
                    f"Pipeline '{name}' depends on unknown pipeline(s): {', '.join(sorted(missing))}"
                )
        try:
            TopologicalSorter(self._graph(self.pipelines)).prepare()
        except CycleError as e:
            cycle = " -> ".join(e.args[1])
            raise PipelineConfigurationError(f"Pipeline dependency cycle: {cycle}") from e

    def select(self, targets: Sequence[str] | None = None, deploy: bool = False) -> set[str]:
        """Names of the pipelines taking part in a run.

        Raises:
            PipelineConfigurationError: If a target is not registered
        """
        always = {
            name for name, p in self.pipelines.items()
            if p.execution_policy is ExecutionPolicy.ALWAYS
        }
        if targets is None:
            roots = always | {
                name for name, p in self.pipelines.items()
                if p.execution_policy is ExecutionPolicy.NORMAL
            }
            named: set[str] = set()
        else:
            named = set(targets)
            unknown = named - self.pipelines.keys()
            if unknown:
                raise PipelineConfigurationError(
                    f"Unknown pipeline(s): {', '.join(sorted(unknown))}"
                )
            roots = named | always

        if not deploy:
            roots = {
                name for name in roots
                if name in named or not self.pipelines[name].is_deployment
            }

        selected: set[str] = set()
        pending = list(roots)
        while pending:
            name = pending.pop()
            if name in selected:
                continue
            selected.add(name)
            pending.extend(self.pipelines[name].dependencies)
        return selected

    def plan(self, targets: Sequence[str] | None = None, deploy: bool = False) -> list[str]:
        """Validate the registry and return a dependency-respecting order.

        Raises:
            PipelineConfigurationError: On any configuration problem
        """
        self.validate()
        selected = self.select(targets, deploy)
        return list(TopologicalSorter(self._graph(selected)).static_order())

    async def execute(
        self,
        context: ExecutionContext,
        targets: Sequence[str] | None = None,
        deploy: bool = False,
        cancel_event: asyncio.Event | None = None,
    ) -> dict[str, tuple[Document, ...]]:
        """Run the selected pipelines.

        Args:
            context: Run context (settings, services, start time)
            targets: Pipeline names to run (default: all default pipelines)
            deploy: Whether deployment pipelines take part
            cancel_event: Setting it aborts the run

        Returns:
            Final documents of every executed pipeline, by name

        Raises:
            PipelineConfigurationError: Before executing anything
            PipelineExecutionError: If any module fails
            RunAbortedError: If cancel_event is set during the run
        """
        order = self.plan(targets, deploy)
        logger.info("Executing %d pipelines: %s", len(order), ", ".join(order))

        if cancel_event is not None and cancel_event.is_set():
            raise RunAbortedError("Run cancelled before start")

        sorter = TopologicalSorter(self._graph(order))
        sorter.prepare()

        semaphore = asyncio.Semaphore(context.settings.max_pipeline_concurrency)
        outputs: dict[str, tuple[Document, ...]] = {}
        running: dict[asyncio.Future, str] = {}
        cancel_waiter = (
            asyncio.ensure_future(cancel_event.wait()) if cancel_event is not None else None
        )

        async def _run_limited(pipeline: Pipeline, pipeline_context: ExecutionContext):
            async with semaphore:
                return await self._execute_pipeline(pipeline, pipeline_context)

        try:
            while sorter.is_active():
                for name in sorted(sorter.get_ready()):
                    pipeline = self.pipelines[name]
                    pipeline_context = context.for_pipeline(name, pipeline.dependencies, outputs)
                    running[asyncio.ensure_future(_run_limited(pipeline, pipeline_context))] = name

                waitables = set(running)
                if cancel_waiter is not None:
                    waitables.add(cancel_waiter)
                done, _ = await asyncio.wait(waitables, return_when=asyncio.FIRST_COMPLETED)

                if cancel_waiter is not None and cancel_waiter in done:
                    logger.warning("Run cancelled, discarding %d running pipelines", len(running))
                    raise RunAbortedError("Run cancelled")

                for task in done:
                    name = running.pop(task)
                    outputs[name] = task.result()
                    sorter.done(name)
                    logger.info("  %s: %d documents", name, len(outputs[name]))
        finally:
            for task in running:
                task.cancel()
            if running:
                await asyncio.gather(*running, return_exceptions=True)
            if cancel_waiter is not None:
                cancel_waiter.cancel()

        return outputs

    async def _execute_pipeline(
        self,
        pipeline: Pipeline,
        context: ExecutionContext,
    ) -> tuple[Document, ...]:
        """Run one pipeline's stages and return its cached documents."""
        logger.debug("Starting pipeline %s", pipeline.name)
        documents: list[Document] = []
        for module in (*pipeline.input_modules, *pipeline.process_modules):
            documents = await self._execute_module(pipeline, module, documents, context)

        result = tuple(documents)
        for module in pipeline.output_modules:
            await self._execute_module(pipeline, module, result, context)
        return result

    async def _execute_module(
        self,
        pipeline: Pipeline,
        module: Module,
        documents: Sequence[Document],
        context: ExecutionContext,
    ) -> list[Document]:
        logger.debug("%s: %s on %d documents", pipeline.name, module.name, len(documents))
        try:
            return await module.execute(documents, context)
        except PipelineError:
            raise
        except Exception as e:
            logger.error("Pipeline %s failed in %s: %s", pipeline.name, module.name, e)
            raise PipelineExecutionError(pipeline.name, module.name, e) from e
