"""Errors raised while planning or executing pipelines."""


class PipelineError(Exception):
    """Base exception for pipeline errors."""


class PipelineConfigurationError(PipelineError):
    """The pipeline graph is invalid (cycle, unknown or duplicate name).

    Raised before any pipeline executes.
    """


class PipelineExecutionError(PipelineError):
    """A module failed; the enclosing run is aborted.

    Attributes:
        pipeline: Name of the failing pipeline
        module: Name of the failing module
    """

    def __init__(self, pipeline: str, module: str, cause: BaseException) -> None:
        super().__init__(f"Pipeline '{pipeline}' failed in {module}: {cause}")
        self.pipeline = pipeline
        self.module = module


class RunAbortedError(PipelineError):
    """The run was cancelled; no pipeline output is published."""
