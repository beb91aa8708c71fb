"""Tests for LogEntry and LogVersion models."""

import re

import pytest
from pydantic import ValidationError

from echo_log_service.models.log_entry import LogEntry, LogVersion


def test_log_entry_assigns_id_and_timestamp():
    """A new entry gets an id, a Z-suffixed ISO timestamp and the default tag."""
    entry = LogEntry(content="first entry")

    assert entry.id
    assert re.match(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$", entry.timestamp)
    assert entry.tags == ["needs review"]
    assert entry.edited_at is None
    assert entry.versions is None


def test_default_tag_follows_settings(monkeypatch):
    from echo_log_service.config import settings

    monkeypatch.setattr(settings.storage, "default_tag", "inbox")

    assert LogEntry(content="x").tags == ["inbox"]
    assert LogEntry(content="x", tags=[]).tags == ["inbox"]
    assert LogEntry(content="x", tags=["work"]).with_tags([]).tags == ["inbox"]


def test_log_entry_ids_are_unique():
    ids = {LogEntry(content="x").id for _ in range(200)}
    assert len(ids) == 200


def test_log_entry_rejects_empty_content():
    with pytest.raises(ValidationError):
        LogEntry(content="")


def test_empty_tags_fall_back_to_default():
    assert LogEntry(content="x", tags=[]).tags == ["needs review"]


def test_to_dict_uses_stored_field_names_and_omits_unset():
    entry = LogEntry(id="abc", content="hello", tags=["Work"], timestamp="2024-01-01T00:00:00.000Z")

    assert entry.to_dict() == {
        "id": "abc",
        "content": "hello",
        "tags": ["work"],
        "timestamp": "2024-01-01T00:00:00.000Z",
    }


def test_from_dict_reads_camel_case_fields():
    entry = LogEntry.from_dict(
        {
            "id": "abc",
            "content": "B",
            "tags": ["work"],
            "timestamp": "2024-01-01T00:00:00.000Z",
            "editedAt": "2024-01-02T00:00:00.000Z",
            "versions": [{"content": "A", "editedAt": "2024-01-01T00:00:00.000Z"}],
        }
    )

    assert entry.edited_at == "2024-01-02T00:00:00.000Z"
    assert entry.versions == [LogVersion(content="A", edited_at="2024-01-01T00:00:00.000Z")]
    assert entry.to_dict()["versions"] == [{"content": "A", "editedAt": "2024-01-01T00:00:00.000Z"}]


class TestWithContent:
    """Content edits keep the previous value in versions."""

    def test_first_edit_versions_initial_content_with_creation_time(self):
        entry = LogEntry(id="1", content="A", timestamp="2024-01-01T00:00:00.000Z")

        edited = entry.with_content("B", edited_at="2024-01-02T00:00:00.000Z")

        assert edited.content == "B"
        assert edited.edited_at == "2024-01-02T00:00:00.000Z"
        assert edited.versions == [LogVersion(content="A", edited_at="2024-01-01T00:00:00.000Z")]
        # Source entry is untouched
        assert entry.content == "A"
        assert entry.versions is None

    def test_second_edit_versions_with_previous_edit_time(self):
        entry = LogEntry(id="1", content="A", timestamp="2024-01-01T00:00:00.000Z")
        edited = entry.with_content("B", edited_at="2024-01-02T00:00:00.000Z")

        edited = edited.with_content("C", edited_at="2024-01-03T00:00:00.000Z")

        assert [v.content for v in edited.versions] == ["A", "B"]
        assert edited.versions[1].edited_at == "2024-01-02T00:00:00.000Z"
        assert edited.edited_at == "2024-01-03T00:00:00.000Z"

    def test_same_content_is_noop(self):
        entry = LogEntry(id="1", content="A")
        assert entry.with_content("A") is entry

    def test_identity_fields_unchanged(self):
        entry = LogEntry(id="1", content="A", timestamp="2024-01-01T00:00:00.000Z")
        edited = entry.with_content("B")
        assert edited.id == "1"
        assert edited.timestamp == "2024-01-01T00:00:00.000Z"


def test_with_tags_replaces_wholesale():
    entry = LogEntry(id="1", content="A", tags=["work", "ideas"])
    assert entry.with_tags(["home"]).tags == ["home"]
    assert entry.with_tags([]).tags == ["needs review"]


def test_is_private():
    assert LogEntry(content="x", tags=["private"]).is_private
    assert not LogEntry(content="x", tags=["work"]).is_private
