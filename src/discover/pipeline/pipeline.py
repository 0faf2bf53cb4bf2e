"""Pipeline: a named, staged list of modules.

Stages run in order: input → process → output. The pipeline's result (cached
for downstream pipelines) is the sequence after the process stage; output
modules only see it.

Pipelines are immutable once constructed. Site pipelines subclass Pipeline
and pass their modules to ``super().__init__``.
"""

from enum import Enum
from typing import Any, Iterable

from discover.pipeline.modules import Module


class ExecutionPolicy(str, Enum):
    """When a pipeline takes part in a run."""

    NORMAL = "normal"  # default runs, and when selected
    MANUAL = "manual"  # only when selected (directly or as a dependency)
    ALWAYS = "always"  # every run


class Pipeline:
    """Named unit of document transformation.

    Args:
        name: Unique pipeline name (default: class name)
        dependencies: Pipelines that must finish first
        input_modules: Produce the initial documents
        process_modules: Transform documents in declared order
        output_modules: Consume the final documents
        execution_policy: Participation in default runs
        is_deployment: Only runs in deploy runs
        is_read_only: Produces no output stage
    """

    name: str
    dependencies: frozenset[str]
    input_modules: tuple[Module, ...]
    process_modules: tuple[Module, ...]
    output_modules: tuple[Module, ...]
    execution_policy: ExecutionPolicy
    is_deployment: bool
    is_read_only: bool

    def __init__(
        self,
        name: str | None = None,
        dependencies: Iterable[str] = (),
        input_modules: Iterable[Module] = (),
        process_modules: Iterable[Module] = (),
        output_modules: Iterable[Module] = (),
        execution_policy: ExecutionPolicy = ExecutionPolicy.NORMAL,
        is_deployment: bool = False,
        is_read_only: bool = False,
    ) -> None:
        values = {
            "name": name or type(self).__name__,
            "dependencies": frozenset(dependencies),
            "input_modules": tuple(input_modules),
            "process_modules": tuple(process_modules),
            "output_modules": tuple(output_modules),
            "execution_policy": ExecutionPolicy(execution_policy),
            "is_deployment": is_deployment,
            "is_read_only": is_read_only,
        }
        if values["name"] in values["dependencies"]:
            raise ValueError(f"Pipeline '{values['name']}' cannot depend on itself")
        if is_read_only and values["output_modules"]:
            raise ValueError(f"Read-only pipeline '{values['name']}' cannot have output modules")
        for key, value in values.items():
            object.__setattr__(self, key, value)

    def __setattr__(self, key: str, value: Any) -> None:
        raise AttributeError(f"Pipeline '{self.name}' is immutable")

    def __repr__(self) -> str:
        deps = ", ".join(sorted(self.dependencies))
        return f"{type(self).__name__}(name={self.name!r}, dependencies=[{deps}])"
