"""API client layer for discover.

Async HTTP clients for external enrichment sources:
- GitHub: repository issues for project documents
"""

from discover.clients.base import (
    APIProviderError,
    AuthenticationError,
    BaseAsyncClient,
    Clock,
    NotFoundError,
    RateLimiter,
    TransportError,
)
from discover.clients.github import GitHubClient, MICROSOFT_OWNERS, is_microsoft_owner
from discover.clients.singleflight import SingleFlight

__all__ = [
    "APIProviderError",
    "AuthenticationError",
    "BaseAsyncClient",
    "Clock",
    "NotFoundError",
    "RateLimiter",
    "TransportError",
    "GitHubClient",
    "MICROSOFT_OWNERS",
    "is_microsoft_owner",
    "SingleFlight",
]
