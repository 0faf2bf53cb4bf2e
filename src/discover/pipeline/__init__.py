"""Pipeline execution: modules, pipelines, scheduling, runs.

The engine coordinates a build run:
1. Plan pipelines by dependency (reject cycles and unknown names)
2. Execute independent pipelines concurrently
3. Cache each pipeline's documents for its dependents

Components:
- Engine: one build run
- PipelineScheduler: ordering + execution
- Pipeline / Module: the units being scheduled
"""

from discover.pipeline.context import ExecutionContext
from discover.pipeline.engine import Engine, RunResult
from discover.pipeline.errors import (
    PipelineConfigurationError,
    PipelineError,
    PipelineExecutionError,
    RunAbortedError,
)
from discover.pipeline.modules import (
    CreateDocuments,
    DocumentModule,
    FilterDocuments,
    Module,
    OrderDocuments,
    ReplaceDocuments,
)
from discover.pipeline.pipeline import ExecutionPolicy, Pipeline
from discover.pipeline.scheduler import PipelineScheduler

__all__ = [
    "ExecutionContext",
    "Engine",
    "RunResult",
    "PipelineConfigurationError",
    "PipelineError",
    "PipelineExecutionError",
    "RunAbortedError",
    "CreateDocuments",
    "DocumentModule",
    "FilterDocuments",
    "Module",
    "OrderDocuments",
    "ReplaceDocuments",
    "ExecutionPolicy",
    "Pipeline",
    "PipelineScheduler",
]
