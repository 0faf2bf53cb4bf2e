"""Pipeline modules: units of document transformation.

Every module maps a sequence of documents to a new sequence:
- CreateDocuments: produce documents from metadata (input stage)
- FilterDocuments: keep documents matching a predicate
- OrderDocuments: stable sort by a key
- ReplaceDocuments: substitute the sequence with other pipelines' outputs

Per-document modules subclass DocumentModule and implement
``execute_document``; documents are processed concurrently and the output
keeps input order.
"""

import asyncio
import logging
from typing import Any, Callable, Iterable, Mapping, Sequence

from discover.documents import Document
from discover.pipeline.context import ExecutionContext

logger = logging.getLogger(__name__)


class Module:
    """Base class for all modules."""

    @property
    def name(self) -> str:
        return type(self).__name__

    async def execute(
        self,
        documents: Sequence[Document],
        context: ExecutionContext,
    ) -> list[Document]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.name}()"


class DocumentModule(Module):
    """Module applied to each document independently.

    Subclasses may override ``before_execution`` for one-time setup per
    execution (it runs before the first document).
    """

    async def before_execution(self, context: ExecutionContext) -> None:
        return None

    async def execute_document(
        self,
        document: Document,
        context: ExecutionContext,
    ) -> Sequence[Document]:
        raise NotImplementedError

    async def execute(
        self,
        documents: Sequence[Document],
        context: ExecutionContext,
    ) -> list[Document]:
        await self.before_execution(context)

        semaphore = asyncio.Semaphore(context.settings.max_document_concurrency)

        async def _one(document: Document) -> Sequence[Document]:
            async with semaphore:
                return await self.execute_document(document, context)

        tasks = [asyncio.ensure_future(_one(doc)) for doc in documents]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            # Fail fast: stop sibling documents before propagating
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return [doc for batch in results for doc in batch]


class CreateDocuments(Module):
    """Create fresh documents from metadata mappings (replaces the input)."""

    def __init__(self, items: Iterable[Mapping[str, Any]]) -> None:
        self.items = tuple(dict(item) for item in items)

    async def execute(
        self,
        documents: Sequence[Document],
        context: ExecutionContext,
    ) -> list[Document]:
        return [Document(metadata=item) for item in self.items]


class FilterDocuments(Module):
    """Keep documents for which the predicate is true."""

    def __init__(self, predicate: Callable[[Document], bool]) -> None:
        self.predicate = predicate

    async def execute(
        self,
        documents: Sequence[Document],
        context: ExecutionContext,
    ) -> list[Document]:
        kept = [doc for doc in documents if self.predicate(doc)]
        logger.debug(
            "%s: kept %d/%d documents", context.pipeline_name, len(kept), len(documents),
        )
        return kept


class OrderDocuments(Module):
    """Stable sort by key; equal keys keep their incoming order."""

    def __init__(self, key: Callable[[Document], Any], descending: bool = False) -> None:
        self.key = key
        self.descending = descending

    async def execute(
        self,
        documents: Sequence[Document],
        context: ExecutionContext,
    ) -> list[Document]:
        return sorted(documents, key=self.key, reverse=self.descending)


class ReplaceDocuments(Module):
    """Replace the sequence with the outputs of other pipelines, in order."""

    def __init__(self, *pipelines: str) -> None:
        if not pipelines:
            raise ValueError("ReplaceDocuments needs at least one pipeline name")
        self.pipelines = pipelines

    async def execute(
        self,
        documents: Sequence[Document],
        context: ExecutionContext,
    ) -> list[Document]:
        replaced: list[Document] = []
        for name in self.pipelines:
            replaced.extend(context.outputs_of(name))
        return replaced

    def __repr__(self) -> str:
        return f"{self.name}({', '.join(self.pipelines)})"
