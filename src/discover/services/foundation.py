"""Foundation membership: which repositories belong to the foundation.

The membership set is an explicitly owned service: the engine creates one per
run and hands it to modules through the execution context. ``populate()``
loads the set from its source at most once; after that, lookups are plain
reads with no locking.

Sources:
- StaticFoundationSource: a fixed list of (owner, name) pairs
- HttpFoundationSource: a JSON array of "owner/name" strings or GitHub URLs
"""

import asyncio
import logging
from typing import Iterable, Protocol
from urllib.parse import urlsplit

from discover.clients.base import APIProviderError, BaseAsyncClient

logger = logging.getLogger(__name__)


class FoundationSource(Protocol):
    """Anything that can list foundation repositories."""

    async def load(self) -> Iterable[tuple[str, str]]: ...


class StaticFoundationSource:
    """Foundation membership from an in-memory list."""

    def __init__(self, pairs: Iterable[tuple[str, str]] = ()) -> None:
        self.pairs = tuple(pairs)

    async def load(self) -> Iterable[tuple[str, str]]:
        return self.pairs


def parse_repository(entry: str) -> tuple[str, str] | None:
    """Parse "owner/name" or a GitHub URL into a pair, None if malformed."""
    entry = entry.strip()
    if "://" in entry:
        entry = urlsplit(entry).path
    segments = [s for s in entry.strip("/").split("/") if s]
    if len(segments) < 2:
        return None
    name = segments[1].removesuffix(".git")
    return segments[0], name


class HttpFoundationSource:
    """Foundation membership from a JSON list served over HTTP.

    Args:
        url: Absolute URL of a JSON array of repository references
        timeout: Request timeout in seconds
    """

    def __init__(self, url: str, timeout: float = 30.0) -> None:
        parts = urlsplit(url)
        self.base_url = f"{parts.scheme}://{parts.netloc}"
        self.path = parts.path or "/"
        if parts.query:
            self.path = f"{self.path}?{parts.query}"
        self.timeout = timeout

    async def load(self) -> Iterable[tuple[str, str]]:
        async with BaseAsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
            payload = await client.get(self.path)

        if not isinstance(payload, list):
            raise APIProviderError(f"Foundation list at {self.base_url}{self.path} is not a JSON array")

        pairs = []
        for entry in payload:
            pair = parse_repository(str(entry))
            if pair is None:
                logger.warning("Skipping malformed foundation entry: %r", entry)
                continue
            pairs.append(pair)
        return pairs


class FoundationMembership:
    """Populate-once lookup of foundation (owner, name) pairs.

    Usage:
        foundation = FoundationMembership(StaticFoundationSource([("dotnet", "orleans")]))
        await foundation.populate()
        foundation.is_member("dotnet", "orleans")  # True
    """

    def __init__(self, source: FoundationSource | None = None) -> None:
        self.source = source or StaticFoundationSource()
        self._members: frozenset[tuple[str, str]] | None = None
        self._lock = asyncio.Lock()

    @property
    def populated(self) -> bool:
        return self._members is not None

    async def populate(self) -> None:
        """Load the membership set from the source, once."""
        if self._members is not None:
            return
        async with self._lock:
            if self._members is not None:
                return
            members = frozenset((owner, name) for owner, name in await self.source.load())
            self._members = members
            logger.info("Loaded %d foundation projects", len(members))

    def is_member(self, owner: str, name: str) -> bool:
        """Exact, case-sensitive (owner, name) lookup.

        Raises:
            RuntimeError: If called before populate()
        """
        if self._members is None:
            raise RuntimeError("Foundation membership not populated. Call populate() first.")
        return (owner, name) in self._members
