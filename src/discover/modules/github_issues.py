"""GitHub issue enrichment for project documents.

For each document whose source code lives on GitHub, fetch every issue,
drop pull requests, and attach the issues plus summary counters to a clone
of the document. Documents without a usable GitHub reference, or whose
repository has no issues, pass through untouched.

Client errors (auth, transport, other HTTP) are not caught: a broken
credential must stop the build instead of quietly producing data-poor pages.
"""

import logging
from typing import Mapping, Sequence
from urllib.parse import urlsplit

from pydantic import ValidationError

from discover.clients.github import is_microsoft_owner
from discover.documents import Document, Issue, SiteKeys
from discover.pipeline.context import ExecutionContext
from discover.pipeline.modules import DocumentModule

logger = logging.getLogger(__name__)

GITHUB_HOST = "github.com"


def parse_github_repository(url: str | None) -> tuple[str, str] | None:
    """Extract (owner, name) from a GitHub URL, None when not applicable.

    The URL must be absolute with a host ending in github.com
    (case-insensitive) and at least two path segments.
    """
    if not url:
        return None
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return None
    host = (parts.hostname or "").lower()
    if not parts.scheme or not host.endswith(GITHUB_HOST):
        return None
    segments = [s for s in parts.path.split("/") if s]
    if len(segments) < 2:
        return None
    return segments[0], segments[1]


class GetIssueGitHubData(DocumentModule):
    """Attach GitHub issue data to project documents.

    Writes github_owner, github_name, issues (newest first), issues_count,
    recent_issues_count and help_wanted_issues_count. Also sets microsoft and
    foundation flags when they are true and the document does not already
    carry them.
    """

    async def before_execution(self, context: ExecutionContext) -> None:
        if not context.settings.validate_only:
            await context.foundation.populate()

    async def execute_document(
        self,
        document: Document,
        context: ExecutionContext,
    ) -> Sequence[Document]:
        # Don't get data if we're just validating
        if context.settings.validate_only:
            return [document]

        repository = parse_github_repository(document.get_str(SiteKeys.SOURCE_CODE))
        if repository is None:
            return [document]
        owner, name = repository

        if context.github is None:
            raise RuntimeError("GitHub enrichment requires an issue source in the execution context")

        raw_issues = await context.github.fetch_all_issues(owner, name)
        malformed = sum(1 for raw in raw_issues if not isinstance(raw, Mapping))
        if malformed:
            logger.warning("%s/%s: dropping %d malformed issue entries", owner, name, malformed)
        raw_issues = [
            raw for raw in raw_issues
            if isinstance(raw, Mapping) and raw.get("pull_request") is None
        ]
        if not raw_issues:
            logger.debug("%s/%s: no issues", owner, name)
            return [document]

        try:
            issues = sorted(
                (Issue.from_api(raw, context.one_day_ago) for raw in raw_issues),
                key=lambda issue: issue.created_at,
                reverse=True,
            )
        except (ValidationError, TypeError, AttributeError) as e:
            logger.warning("%s/%s: malformed issue data, skipping enrichment: %s", owner, name, e)
            return [document]

        enriched = document.clone({
            SiteKeys.GITHUB_OWNER: owner,
            SiteKeys.GITHUB_NAME: name,
            SiteKeys.ISSUES: tuple(issues),
            SiteKeys.ISSUES_COUNT: len(issues),
            SiteKeys.RECENT_ISSUES_COUNT: sum(1 for issue in issues if issue.recent),
            SiteKeys.HELP_WANTED_ISSUES_COUNT: sum(1 for issue in issues if issue.help_wanted),
        })

        # Upstream values always win
        flags = {}
        if is_microsoft_owner(owner):
            flags[SiteKeys.MICROSOFT] = True
        if context.foundation.is_member(owner, name):
            flags[SiteKeys.FOUNDATION] = True
        if flags:
            enriched = enriched.clone_if_absent(flags)

        logger.info(
            "%s/%s: %d issues (%d recent, %d help wanted)",
            owner, name, len(issues),
            enriched.get(SiteKeys.RECENT_ISSUES_COUNT),
            enriched.get(SiteKeys.HELP_WANTED_ISSUES_COUNT),
        )
        return [enriched]
