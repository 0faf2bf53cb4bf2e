"""GitHub REST API client for repository issues.

Provides async access to the "list repository issues" endpoint with:
- Transparent pagination (100 per page, following Link rel="next")
- Single-flight coalescing of concurrent fetches for the same repository
- A short-lived per-client result cache
- Rate-limit waits and retries inherited from BaseAsyncClient

A renamed or deleted repository (404) yields an empty result. Auth and
transport failures raise and name the repository.

API Documentation: https://docs.github.com/en/rest/issues/issues#list-repository-issues

Usage:
    from discover.config import settings
    from discover.clients.github import GitHubClient

    async with GitHubClient(token=settings.github_token) as client:
        issues = await client.fetch_all_issues("dotnet", "orleans")
"""

import logging
from typing import Any

from discover.clients.base import APIProviderError, BaseAsyncClient, Clock, NotFoundError
from discover.clients.singleflight import SingleFlight

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
API_VERSION = "2022-11-28"

# Owners whose repositories are Microsoft-owned
MICROSOFT_OWNERS = frozenset([
    "aspnet",
    "azure",
    "dotnet",
    "dotnet-architecture",
    "microsoft",
    "mono",
    "nuget",
    "powershell",
    "xamarin",
])


def is_microsoft_owner(owner: str) -> bool:
    """Case-insensitive check against the Microsoft owner allow-list."""
    return owner.lower() in MICROSOFT_OWNERS


class GitHubClient(BaseAsyncClient):
    """Async client for GitHub repository issues.

    One instance serves one build run; its single-flight table and cache
    live exactly as long as the instance.

    Args:
        token: GitHub API token (optional, anonymous when None)
        base_url: API root (default: https://api.github.com)
        rate_limit: Max requests per second (default: 10)
        cache_ttl: Seconds a fetched issue list is reused (default: 600)
        clock: Time source for waits and cache expiry
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str = "https://api.github.com",
        rate_limit: int = 10,
        cache_ttl: float = 600.0,
        clock: Clock | None = None,
    ) -> None:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        super().__init__(
            base_url=base_url,
            headers=headers,
            rate_limit=rate_limit,
            clock=clock,
        )
        self._issues: SingleFlight[tuple[str, str], tuple[dict[str, Any], ...]] = SingleFlight(
            ttl=cache_ttl, clock=self.clock,
        )

    async def fetch_all_issues(self, owner: str, name: str) -> tuple[dict[str, Any], ...]:
        """Get every issue (open and closed) for a repository.

        Pull requests are included as the API returns them; callers filter
        on the ``pull_request`` back-reference.

        Args:
            owner: Repository owner
            name: Repository name

        Returns:
            Raw issue objects in API order, empty if the repository is gone

        Raises:
            AuthenticationError: Bad or missing credentials
            TransportError: Network failure after retries
            APIProviderError: Any other non-retryable failure
        """
        return await self._issues.do(
            (owner, name), lambda: self._fetch_pages(owner, name)
        )

    async def _fetch_pages(self, owner: str, name: str) -> tuple[dict[str, Any], ...]:
        logger.info("Getting GitHub issue data for %s/%s", owner, name)
        issues: list[dict[str, Any]] = []
        url: str | None = f"/repos/{owner}/{name}/issues"
        params: dict[str, Any] | None = {"state": "all", "per_page": PAGE_SIZE}
        pages = 0

        try:
            while url:
                response = await self._send("GET", url, params=params)
                page = response.json()
                if not isinstance(page, list):
                    raise APIProviderError(
                        message=f"Unexpected issues payload for {owner}/{name}",
                        status_code=response.status_code,
                        response_body=response.text[:500],
                    )
                issues.extend(page)
                pages += 1
                # The next link already carries the query string
                url = response.links.get("next", {}).get("url")
                params = None
        except NotFoundError:
            logger.info("Repository %s/%s not found, treating as no issues", owner, name)
            return ()
        except APIProviderError as e:
            raise type(e)(
                message=f"GitHub issues for {owner}/{name}: {e}",
                status_code=e.status_code,
                response_body=e.response_body,
            ) from e
        except ValueError as e:
            raise APIProviderError(f"Invalid JSON for {owner}/{name} issues: {e}") from e

        logger.debug("%s/%s: %d issues over %d pages", owner, name, len(issues), pages)
        return tuple(issues)
