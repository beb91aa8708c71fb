"""Tests for legacy record shape detection and upgrades."""

from echo_log_service.storage.migrations import (
    RecordShape,
    detect_shapes,
    normalize_record,
    normalize_records,
)

CURRENT = {
    "id": "lq1x2-abcd1234",
    "content": "hello",
    "tags": ["work"],
    "timestamp": "2024-03-01T10:00:00.000Z",
}


class TestDetectShapes:
    def test_current_record_has_no_shapes(self):
        assert detect_shapes(CURRENT) == frozenset()

    def test_legacy_private_flag(self):
        record = {"id": "1", "content": "x", "timestamp": "2024-01-01T00:00:00.000Z", "private": True}
        assert detect_shapes(record) == {RecordShape.UNTAGGED, RecordShape.PRIVATE_FLAG}

    def test_sql_row(self):
        record = {"id": 7, "content": "x", "is_private": 0, "created_at": "2024-01-01 00:00:00"}
        shapes = detect_shapes(record)
        assert RecordShape.SQL_ROW in shapes
        assert RecordShape.MISSING_TIMESTAMP not in shapes

    def test_missing_id_and_timestamp(self):
        shapes = detect_shapes({"content": "x", "tags": ["a"]})
        assert shapes == {RecordShape.MISSING_ID, RecordShape.MISSING_TIMESTAMP}


class TestNormalizeRecord:
    def test_current_record_returned_unchanged(self):
        record, changed = normalize_record(CURRENT)
        assert changed is False
        assert record is CURRENT

    def test_private_true_becomes_private_tag(self):
        raw = {"id": "1", "content": "secret", "timestamp": "2024-01-01T00:00:00.000Z", "private": True}

        record, changed = normalize_record(raw)

        assert changed is True
        assert record["tags"] == ["needs review", "private"]
        assert "private" not in record
        # Input is not modified
        assert raw["private"] is True

    def test_private_false_is_dropped(self):
        raw = {"id": "1", "content": "x", "tags": ["work"], "timestamp": "t", "private": False}

        record, _ = normalize_record(raw)

        assert record == {"id": "1", "content": "x", "tags": ["work"], "timestamp": "t"}

    def test_private_flag_does_not_duplicate_tag(self):
        raw = {"id": "1", "content": "x", "tags": ["private"], "timestamp": "t", "private": True}
        record, _ = normalize_record(raw)
        assert record["tags"] == ["private"]

    def test_private_flag_with_string_tags(self):
        raw = {"id": "1", "content": "x", "timestamp": "t", "tags": "Work, ideas", "private": True}

        record, changed = normalize_record(raw)

        assert changed is True
        assert record["tags"] == ["work", "ideas", "private"]
        assert "private" not in record

    def test_configured_default_tag(self, monkeypatch):
        from echo_log_service.config import settings

        monkeypatch.setattr(settings.storage, "default_tag", "inbox")

        record, _ = normalize_record({"id": "1", "content": "x", "timestamp": "t"})

        assert record["tags"] == ["inbox"]

    def test_missing_id_is_generated(self):
        record, _ = normalize_record({"content": "x", "tags": ["a"], "timestamp": "t"})
        assert isinstance(record["id"], str) and record["id"]

    def test_empty_tags_get_default(self):
        record, _ = normalize_record({"id": "1", "content": "x", "tags": [], "timestamp": "t"}, default_tag="inbox")
        assert record["tags"] == ["inbox"]

    def test_sql_row_upgrade(self):
        raw = {"id": 3, "content": "from sql", "is_private": 1, "created_at": "2024-02-02 08:30:00"}

        record, changed = normalize_record(raw)

        assert changed is True
        assert record == {
            "id": "3",
            "content": "from sql",
            "timestamp": "2024-02-02 08:30:00",
            "tags": ["needs review", "private"],
        }

    def test_upgrade_is_idempotent(self):
        raw = {"content": "x", "private": True, "is_private": 1}

        once, _ = normalize_record(raw)
        twice, changed = normalize_record(once)

        assert changed is False
        assert twice == once

    def test_unknown_fields_preserved(self):
        raw = {"id": "1", "content": "x", "timestamp": "t", "private": False, "mood": "calm"}
        record, _ = normalize_record(raw)
        assert record["mood"] == "calm"


def test_normalize_records_reports_any_change():
    records, changed = normalize_records([CURRENT, {"id": "2", "content": "y", "timestamp": "t"}])

    assert changed is True
    assert records[0] is CURRENT
    assert records[1]["tags"] == ["needs review"]


def test_normalize_records_no_change():
    records, changed = normalize_records([CURRENT])
    assert changed is False
    assert records == [CURRENT]
