"""Tests for GitHub issue enrichment."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from discover.clients.base import AuthenticationError
from discover.clients.github import GitHubClient
from discover.config import Settings
from discover.documents import Document, SiteKeys
from discover.modules.github_issues import GetIssueGitHubData, parse_github_repository
from discover.pipeline import ExecutionContext
from discover.services.foundation import FoundationMembership, StaticFoundationSource

STARTED_AT = datetime(2024, 1, 15, 12, tzinfo=timezone.utc)


def stamp(when: datetime) -> str:
    return when.isoformat().replace("+00:00", "Z")


def raw_issue(number, created, labels=(), pull_request=False):
    payload = {
        "number": number,
        "title": f"Issue {number}",
        "created_at": stamp(created),
        "updated_at": stamp(created),
        "labels": [{"name": label} for label in labels],
    }
    if pull_request:
        payload["pull_request"] = {"url": "https://api.github.com/pulls/1"}
    return payload


class FakeIssues:
    """Issue source keyed by (owner, name)."""

    def __init__(self, issues=None, error=None):
        self.issues = issues or {}
        self.error = error
        self.calls = []

    async def fetch_all_issues(self, owner, name):
        self.calls.append((owner, name))
        if self.error is not None:
            raise self.error
        return tuple(self.issues.get((owner, name), ()))


def make_context(github, foundation=None, **settings) -> ExecutionContext:
    return ExecutionContext(
        settings=Settings(_env_file=None, **settings),
        started_at=STARTED_AT,
        foundation=foundation or FoundationMembership(),
        github=github,
        pipeline_name="Projects",
    )


async def enrich(document, context):
    return await GetIssueGitHubData().execute([document], context)


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://github.com/dotnet/orleans", ("dotnet", "orleans")),
        ("https://GitHub.com/dotnet/orleans/", ("dotnet", "orleans")),
        ("https://www.github.com/dotnet/orleans/tree/main", ("dotnet", "orleans")),
        ("http://github.com/JamesNK/Newtonsoft.Json", ("JamesNK", "Newtonsoft.Json")),
        ("https://github.com/dotnet", None),
        ("https://gitlab.com/dotnet/orleans", None),
        ("github.com/dotnet/orleans", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_github_repository(url, expected):
    """GitHub repository URLs parse to owner and name."""
    assert parse_github_repository(url) == expected


class TestEnrichment:
    @pytest.mark.asyncio
    async def test_document_without_reference_passes_through(self):
        """Documents without a GitHub source link are returned as-is."""
        github = FakeIssues()
        doc = Document({SiteKeys.TITLE: "Local", SiteKeys.SOURCE_CODE: "https://example.com/local"})

        [result] = await enrich(doc, make_context(github))

        assert result is doc
        assert github.calls == []

    @pytest.mark.asyncio
    async def test_attaches_issues_newest_first_without_pull_requests(self):
        """Issues are attached newest first with pull requests removed."""
        github = FakeIssues({
            ("dotnet", "orleans"): [
                raw_issue(1, STARTED_AT - timedelta(days=3), labels=["help wanted"]),
                raw_issue(2, STARTED_AT - timedelta(hours=2), pull_request=True),
                raw_issue(3, STARTED_AT - timedelta(hours=1), labels=["bug"]),
                raw_issue(4, STARTED_AT - timedelta(days=10), labels=["help wanted", "bug"]),
            ],
        })
        doc = Document({SiteKeys.TITLE: "Orleans", SiteKeys.SOURCE_CODE: "https://github.com/dotnet/orleans"})

        [result] = await enrich(doc, make_context(github))

        assert result.id == doc.id
        assert result.get(SiteKeys.GITHUB_OWNER) == "dotnet"
        assert result.get(SiteKeys.GITHUB_NAME) == "orleans"
        assert [i.number for i in result.get(SiteKeys.ISSUES)] == [3, 1, 4]
        assert result.get(SiteKeys.ISSUES_COUNT) == 3
        assert result.get(SiteKeys.RECENT_ISSUES_COUNT) == 1
        assert result.get(SiteKeys.HELP_WANTED_ISSUES_COUNT) == 2
        assert result.get(SiteKeys.TITLE) == "Orleans"
        assert SiteKeys.ISSUES not in doc

    @pytest.mark.asyncio
    async def test_recency_uses_run_start(self):
        """Recent counts are relative to the run start."""
        exactly_one_day = STARTED_AT - timedelta(hours=24)
        github = FakeIssues({
            ("acme", "tool"): [
                raw_issue(1, exactly_one_day),
                raw_issue(2, exactly_one_day - timedelta(seconds=1)),
            ],
        })
        doc = Document({SiteKeys.SOURCE_CODE: "https://github.com/acme/tool"})

        [result] = await enrich(doc, make_context(github))

        assert {i.number: i.recent for i in result.get(SiteKeys.ISSUES)} == {1: True, 2: False}

    @pytest.mark.asyncio
    async def test_only_pull_requests_passes_through(self):
        """A repository with only pull requests is not enriched."""
        github = FakeIssues({
            ("acme", "tool"): [raw_issue(1, STARTED_AT, pull_request=True)],
        })
        doc = Document({SiteKeys.SOURCE_CODE: "https://github.com/acme/tool"})

        [result] = await enrich(doc, make_context(github))

        assert result is doc

    @pytest.mark.asyncio
    async def test_no_issues_passes_through(self):
        """A repository with no issues is not enriched."""
        doc = Document({SiteKeys.SOURCE_CODE: "https://github.com/acme/tool"})

        [result] = await enrich(doc, make_context(FakeIssues()))

        assert result is doc

    @pytest.mark.asyncio
    async def test_sets_microsoft_and_foundation_flags(self):
        """Microsoft and foundation flags are set for members."""
        github = FakeIssues({("dotnet", "orleans"): [raw_issue(1, STARTED_AT)]})
        foundation = FoundationMembership(StaticFoundationSource([("dotnet", "orleans")]))
        doc = Document({SiteKeys.SOURCE_CODE: "https://github.com/dotnet/orleans"})

        [result] = await enrich(doc, make_context(github, foundation))

        assert result.get(SiteKeys.MICROSOFT) is True
        assert result.get(SiteKeys.FOUNDATION) is True

    @pytest.mark.asyncio
    async def test_existing_flags_are_not_overwritten(self):
        """Flags already present on the document are kept."""
        github = FakeIssues({("dotnet", "orleans"): [raw_issue(1, STARTED_AT)]})
        foundation = FoundationMembership(StaticFoundationSource([("dotnet", "orleans")]))
        doc = Document({
            SiteKeys.SOURCE_CODE: "https://github.com/dotnet/orleans",
            SiteKeys.FOUNDATION: False,
        })

        [result] = await enrich(doc, make_context(github, foundation))

        assert result.get(SiteKeys.FOUNDATION) is False
        assert result.get(SiteKeys.MICROSOFT) is True

    @pytest.mark.asyncio
    async def test_non_member_gets_no_flags(self):
        """Projects outside both sets get no flags."""
        github = FakeIssues({("JamesNK", "Newtonsoft.Json"): [raw_issue(1, STARTED_AT)]})
        doc = Document({SiteKeys.SOURCE_CODE: "https://github.com/JamesNK/Newtonsoft.Json"})

        [result] = await enrich(doc, make_context(github))

        assert SiteKeys.MICROSOFT not in result
        assert SiteKeys.FOUNDATION not in result

    @pytest.mark.asyncio
    async def test_validate_only_skips_fetching(self):
        """Validate-only runs do not fetch issues."""
        github = FakeIssues()
        foundation = FoundationMembership(StaticFoundationSource([("dotnet", "orleans")]))
        doc = Document({SiteKeys.SOURCE_CODE: "https://github.com/dotnet/orleans"})

        [result] = await enrich(doc, make_context(github, foundation, validate_only=True))

        assert result is doc
        assert github.calls == []
        assert foundation.populated is False

    @pytest.mark.asyncio
    async def test_malformed_issue_data_passes_through(self):
        """Issue data that fails validation leaves the document unchanged."""
        bad = raw_issue(1, STARTED_AT)
        bad["created_at"] = "yesterday"
        doc = Document({SiteKeys.SOURCE_CODE: "https://github.com/acme/tool"})

        [result] = await enrich(doc, make_context(FakeIssues({("acme", "tool"): [bad]})))

        assert result is doc

    @pytest.mark.asyncio
    async def test_non_object_issue_entries_pass_through(self):
        """Entries that are not JSON objects leave the document unchanged."""
        doc = Document({SiteKeys.SOURCE_CODE: "https://github.com/acme/tool"})

        [result] = await enrich(doc, make_context(FakeIssues({("acme", "tool"): ["not-an-issue"]})))

        assert result is doc

    @pytest.mark.asyncio
    async def test_non_object_entries_are_dropped_from_valid_issues(self):
        """Valid issues are still attached when malformed entries are mixed in."""
        github = FakeIssues({("acme", "tool"): ["not-an-issue", None, raw_issue(5, STARTED_AT)]})
        doc = Document({SiteKeys.SOURCE_CODE: "https://github.com/acme/tool"})

        [result] = await enrich(doc, make_context(github))

        assert [i.number for i in result.get(SiteKeys.ISSUES)] == [5]

    @pytest.mark.asyncio
    async def test_unexpected_label_shape_passes_through(self):
        """A labels value that cannot be iterated is treated as malformed data."""
        bad = raw_issue(1, STARTED_AT)
        bad["labels"] = 42
        doc = Document({SiteKeys.SOURCE_CODE: "https://github.com/acme/tool"})

        [result] = await enrich(doc, make_context(FakeIssues({("acme", "tool"): [bad]})))

        assert result is doc

    @pytest.mark.asyncio
    async def test_client_errors_propagate(self):
        """Client errors fail the module."""
        github = FakeIssues(error=AuthenticationError("bad credentials", status_code=401))
        doc = Document({SiteKeys.SOURCE_CODE: "https://github.com/acme/tool"})

        with pytest.raises(AuthenticationError):
            await enrich(doc, make_context(github))

    @pytest.mark.asyncio
    async def test_requires_issue_source(self):
        """Enriching without an issue source is an error."""
        doc = Document({SiteKeys.SOURCE_CODE: "https://github.com/acme/tool"})

        with pytest.raises(RuntimeError, match="issue source"):
            await enrich(doc, make_context(None))

    @pytest.mark.asyncio
    async def test_documents_keep_order(self):
        """Enriched documents keep their input order."""
        github = FakeIssues({
            ("acme", "a"): [raw_issue(1, STARTED_AT)],
            ("acme", "b"): [raw_issue(2, STARTED_AT)],
        })
        docs = [
            Document({SiteKeys.TITLE: "B", SiteKeys.SOURCE_CODE: "https://github.com/acme/b"}),
            Document({SiteKeys.TITLE: "None"}),
            Document({SiteKeys.TITLE: "A", SiteKeys.SOURCE_CODE: "https://github.com/acme/a"}),
        ]

        result = await GetIssueGitHubData().execute(docs, make_context(github))

        assert [d.get(SiteKeys.TITLE) for d in result] == ["B", "None", "A"]


@pytest.mark.asyncio
async def test_enrichment_through_github_client(respx_mock):
    """Enrichment works end to end through GitHubClient."""
    route = respx_mock.get("https://api.github.com/repos/dotnet/orleans/issues").mock(
        return_value=httpx.Response(200, json=[raw_issue(7, STARTED_AT, labels=["help wanted"])])
    )
    docs = [
        Document({SiteKeys.TITLE: "Orleans", SiteKeys.SOURCE_CODE: "https://github.com/dotnet/orleans"}),
        Document({SiteKeys.TITLE: "Orleans again", SiteKeys.SOURCE_CODE: "https://github.com/dotnet/orleans"}),
    ]

    async with GitHubClient() as client:
        result = await GetIssueGitHubData().execute(docs, make_context(client))

    assert route.call_count == 1
    assert all(d.get(SiteKeys.HELP_WANTED_ISSUES_COUNT) == 1 for d in result)
