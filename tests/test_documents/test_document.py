"""Tests for the immutable Document model."""

from datetime import datetime, timezone

import pytest

from discover.documents import Document, MetadataTypeError, SiteKeys


class TestDocument:
    """Construction and read access."""

    def test_metadata_preserves_insertion_order(self):
        """Metadata iterates in insertion order."""
        doc = Document({"b": 1, "a": 2, "c": 3})
        assert list(doc.metadata) == ["b", "a", "c"]

    def test_metadata_is_read_only(self):
        """Metadata cannot be mutated in place."""
        doc = Document({"title": "Orleans"})
        with pytest.raises(TypeError):
            doc.metadata["title"] = "Other"

    def test_attributes_are_frozen(self):
        """Document attributes cannot be reassigned."""
        doc = Document({"title": "Orleans"})
        with pytest.raises(AttributeError):
            doc.id = "other"

    def test_source_mapping_changes_do_not_leak(self):
        """Later changes to the source mapping are not visible."""
        source = {"title": "Orleans"}
        doc = Document(source)
        source["title"] = "Changed"
        assert doc.get("title") == "Orleans"

    def test_rejects_non_string_keys(self):
        """Metadata keys must be strings."""
        with pytest.raises(TypeError, match="must be strings"):
            Document({1: "one"})

    def test_keys_are_case_sensitive(self):
        """Key lookup is case sensitive."""
        doc = Document({"Title": "Upper"})
        assert "Title" in doc
        assert "title" not in doc

    def test_get_str_strips_and_blanks_to_none(self):
        """get_str strips whitespace and treats blanks as missing."""
        doc = Document({"a": "  text ", "b": "   ", "c": None})
        assert doc.get_str("a") == "text"
        assert doc.get_str("b") is None
        assert doc.get_str("c") is None
        assert doc.get_str("missing") is None


class TestClone:
    """Clone-with-overlay semantics."""

    def test_clone_overlays_and_keeps_parent_keys(self):
        """clone overlays new values on the parent's metadata."""
        doc = Document({"title": "Orleans", "stars": 10})
        clone = doc.clone({"stars": 11, "forks": 2})

        assert dict(clone.metadata) == {"title": "Orleans", "stars": 11, "forks": 2}
        assert dict(doc.metadata) == {"title": "Orleans", "stars": 10}

    def test_clone_keeps_identity_and_bumps_version(self):
        """Clones keep the id and increment the version."""
        doc = Document({"title": "Orleans"})
        clone = doc.clone({"x": 1})

        assert clone is not doc
        assert clone.id == doc.id
        assert clone.version == doc.version + 1

    def test_fresh_documents_get_distinct_ids(self):
        """New documents get distinct ids."""
        assert Document().id != Document().id

    def test_clone_if_absent_never_overwrites(self):
        """clone_if_absent only adds missing keys."""
        doc = Document({SiteKeys.FOUNDATION: False})
        clone = doc.clone_if_absent({SiteKeys.FOUNDATION: True, SiteKeys.MICROSOFT: True})

        assert clone.get(SiteKeys.FOUNDATION) is False
        assert clone.get(SiteKeys.MICROSOFT) is True
        assert SiteKeys.MICROSOFT not in doc


class TestTypedAccess:
    """Boundary validation against documented key types."""

    def test_get_typed_coerces_iso_timestamp(self):
        """ISO timestamp strings coerce to datetimes."""
        doc = Document({SiteKeys.PUBLISHED: "2024-01-15T10:00:00Z"})
        assert doc.get_typed(SiteKeys.PUBLISHED) == datetime(2024, 1, 15, 10, tzinfo=timezone.utc)

    def test_get_typed_rejects_wrong_type(self):
        """Values that cannot coerce raise."""
        doc = Document({SiteKeys.ISSUES_COUNT: "many"})
        with pytest.raises(MetadataTypeError) as exc_info:
            doc.get_typed(SiteKeys.ISSUES_COUNT)
        assert exc_info.value.key == SiteKeys.ISSUES_COUNT

    def test_get_typed_default_and_missing(self):
        """Missing keys return the default."""
        doc = Document()
        assert doc.get_typed(SiteKeys.TITLE, None) is None
        with pytest.raises(KeyError):
            doc.get_typed(SiteKeys.TITLE)

    def test_undocumented_keys_pass_through(self):
        """Keys outside the documented set are kept as-is."""
        doc = Document({"custom": object})
        assert doc.get_typed("custom") is object
