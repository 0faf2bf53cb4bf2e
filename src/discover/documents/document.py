"""Immutable document with an insertion-ordered metadata mapping.

Documents are never changed in place. Every transformation produces a new
document through ``clone`` (overlay wins) or ``clone_if_absent`` (existing
keys win). A clone keeps the parent's ``id`` and bumps ``version``.

Usage:
    doc = Document({"title": "Orleans"})
    enriched = doc.clone({"issues_count": 3})
    flagged = enriched.clone_if_absent({"foundation": True})
"""

import uuid
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from discover.documents.keys import validate_value

_MISSING = object()


@dataclass(frozen=True, eq=False)
class Document:
    """A unit of content flowing through pipelines.

    Attributes:
        metadata: Read-only, insertion-ordered mapping of case-sensitive keys
        id: Identity shared by a document and all of its clones
        version: 0 for a new document, parent version + 1 for a clone
    """

    metadata: Mapping[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    version: int = 0

    def __post_init__(self) -> None:
        items = dict(self.metadata)
        for key in items:
            if not isinstance(key, str):
                raise TypeError(f"Metadata keys must be strings, got {key!r}")
        object.__setattr__(self, "metadata", MappingProxyType(items))

    def __contains__(self, key: object) -> bool:
        return key in self.metadata

    def get(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key, default)

    def get_str(self, key: str) -> str | None:
        """Return the value as a stripped string, or None when absent or blank."""
        value = self.metadata.get(key)
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    def get_typed(self, key: str, default: Any = _MISSING) -> Any:
        """Return the value validated against the key's documented type.

        Raises:
            KeyError: If the key is absent and no default is given
            MetadataTypeError: If the value has the wrong type
        """
        if key not in self.metadata:
            if default is _MISSING:
                raise KeyError(key)
            return default
        return validate_value(key, self.metadata[key])

    def clone(self, overlay: Mapping[str, Any] | None = None) -> "Document":
        """Return a new document with overlay keys set over this one's."""
        merged = dict(self.metadata)
        merged.update(overlay or {})
        return Document(metadata=merged, id=self.id, version=self.version + 1)

    def clone_if_absent(self, overlay: Mapping[str, Any]) -> "Document":
        """Return a new document adding only keys this one does not carry."""
        merged = dict(self.metadata)
        for key, value in overlay.items():
            merged.setdefault(key, value)
        return Document(metadata=merged, id=self.id, version=self.version + 1)

    def __repr__(self) -> str:
        return f"Document(id={self.id!r}, version={self.version}, keys={list(self.metadata)})"
