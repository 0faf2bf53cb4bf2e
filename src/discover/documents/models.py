"""Records derived from documents and upstream payloads.

Issue: one GitHub issue, computed once at fetch time.
FeedItem: the syndication projection of a post or episode.
"""

from datetime import datetime, timezone
from typing import Any, Mapping

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, TypeAdapter, field_validator


HELP_WANTED_LABEL = "help wanted"

_DATETIME = TypeAdapter(datetime)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so comparisons never mix kinds."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Issue(BaseModel):
    """A GitHub issue attached to a project document."""

    model_config = ConfigDict(frozen=True)

    number: int
    title: str
    created_at: datetime
    updated_at: datetime
    labels: frozenset[str] = frozenset()
    recent: bool = False
    help_wanted: bool = False

    @classmethod
    def from_api(cls, payload: Mapping[str, Any], one_day_ago: datetime) -> "Issue":
        """Build an Issue from a raw API record.

        Args:
            payload: Issue object as returned by the GitHub REST API
            one_day_ago: The run's recency anchor

        Raises:
            pydantic.ValidationError: If the payload is malformed
        """
        created_at = as_utc(_DATETIME.validate_python(payload.get("created_at")))
        labels = frozenset(
            label.get("name", "") if isinstance(label, Mapping) else str(label)
            for label in payload.get("labels") or ()
        )
        return cls(
            number=payload.get("number"),
            title=payload.get("title"),
            created_at=created_at,
            updated_at=as_utc(_DATETIME.validate_python(payload.get("updated_at"))),
            labels=labels,
            recent=created_at >= as_utc(one_day_ago),
            help_wanted=HELP_WANTED_LABEL in labels,
        )


class FeedItem(BaseModel):
    """Minimal field set needed to emit one syndication entry."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str = ""
    published: datetime
    link: AnyHttpUrl
    author: str | None = None
    recent: bool = False

    @field_validator("published")
    @classmethod
    def validate_published(cls, v: datetime) -> datetime:
        """Normalize to an aware timestamp."""
        return as_utc(v)
