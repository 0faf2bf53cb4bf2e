"""Run-scoped services shared by pipeline modules."""

from discover.services.foundation import (
    FoundationMembership,
    HttpFoundationSource,
    StaticFoundationSource,
)

__all__ = ["FoundationMembership", "HttpFoundationSource", "StaticFoundationSource"]
