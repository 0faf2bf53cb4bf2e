"""Output stage: hand final documents to a writer.

Persistence itself lives behind the OutputWriter protocol. The destination
of a document is its ``destination`` metadata, or ``<pipeline>/<id>.json``
when it has none.
"""

import logging
from typing import Protocol, Sequence

from discover.documents import Document, SiteKeys
from discover.pipeline.context import ExecutionContext
from discover.pipeline.modules import Module

logger = logging.getLogger(__name__)


class OutputWriter(Protocol):
    """Receives immutable documents and persists them."""

    def write(self, destination: str, document: Document) -> None: ...


class MemoryOutputWriter:
    """Keeps written documents in memory, keyed by destination."""

    def __init__(self) -> None:
        self.files: dict[str, Document] = {}

    def write(self, destination: str, document: Document) -> None:
        if destination in self.files and self.files[destination].id != document.id:
            logger.warning("Overwriting %s with a different document", destination)
        self.files[destination] = document

    def content(self, destination: str) -> str | None:
        document = self.files.get(destination)
        return document.get_str(SiteKeys.CONTENT) if document else None


def destination_of(document: Document, pipeline: str) -> str:
    return document.get_str(SiteKeys.DESTINATION) or f"{pipeline}/{document.id}.json"


class WriteFiles(Module):
    """Write every document and pass the sequence through unchanged."""

    def __init__(self, writer: OutputWriter) -> None:
        self.writer = writer

    async def execute(
        self,
        documents: Sequence[Document],
        context: ExecutionContext,
    ) -> list[Document]:
        for document in documents:
            self.writer.write(destination_of(document, context.pipeline_name), document)
        logger.info("%s: wrote %d documents", context.pipeline_name, len(documents))
        return list(documents)
