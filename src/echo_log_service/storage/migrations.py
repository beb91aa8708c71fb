# Copyright 2024 Heinrich Krupp
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Shape upgrades for log records written by older versions of the service.

Each legacy trait a raw record can carry is a ``RecordShape`` member. A
record is classified once, then the upgrade registered for every detected
shape runs in ``UPGRADE_ORDER``. Adding a new legacy shape means adding a
member, a detector and an upgrade function; nothing else changes.

The functions here are pure: they never touch storage. Callers persist the
batch when ``normalize_records`` reports a change.
"""

import logging
from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any

from ..config import PRIVATE_TAG, settings
from ..models.validators import normalize_tags
from ..utils.timestamps import generate_log_id, now_iso

logger = logging.getLogger(__name__)


class RecordShape(str, Enum):
    """Legacy traits a stored record may carry."""

    SQL_ROW = "sql_row"  # relational columns: is_private / created_at / integer id
    MISSING_ID = "missing_id"
    MISSING_TIMESTAMP = "missing_timestamp"
    UNTAGGED = "untagged"
    PRIVATE_FLAG = "private_flag"  # boolean ``private`` field instead of the tag


def detect_shapes(record: dict[str, Any]) -> frozenset[RecordShape]:
    """Classify a raw record. An empty set means it is already current."""
    shapes = set()
    if "is_private" in record or "created_at" in record or isinstance(record.get("id"), int):
        shapes.add(RecordShape.SQL_ROW)
    if record.get("id") in (None, ""):
        shapes.add(RecordShape.MISSING_ID)
    if not record.get("timestamp") and not record.get("created_at"):
        shapes.add(RecordShape.MISSING_TIMESTAMP)
    if not record.get("tags"):
        shapes.add(RecordShape.UNTAGGED)
    if "private" in record or "is_private" in record:
        shapes.add(RecordShape.PRIVATE_FLAG)
    return frozenset(shapes)


def _upgrade_sql_row(record: dict[str, Any], default_tag: str) -> None:
    if isinstance(record.get("id"), int):
        record["id"] = str(record["id"])
    if "created_at" in record:
        created_at = record.pop("created_at")
        record.setdefault("timestamp", created_at)
    if "is_private" in record:
        is_private = record.pop("is_private")
        record.setdefault("private", bool(is_private))


def _upgrade_missing_id(record: dict[str, Any], default_tag: str) -> None:
    record["id"] = generate_log_id()


def _upgrade_missing_timestamp(record: dict[str, Any], default_tag: str) -> None:
    record["timestamp"] = now_iso()


def _upgrade_untagged(record: dict[str, Any], default_tag: str) -> None:
    record["tags"] = [default_tag]


def _upgrade_private_flag(record: dict[str, Any], default_tag: str) -> None:
    # Hand-edited files may carry a comma-separated string instead of a list
    tags = normalize_tags(record.get("tags")) or [default_tag]
    record["tags"] = tags
    if record.get("private") is True and PRIVATE_TAG not in tags:
        tags.append(PRIVATE_TAG)
    record.pop("private", None)


Upgrade = Callable[[dict[str, Any], str], None]

# Order matters: the SQL row upgrade surfaces a ``private`` flag for the
# private-flag upgrade, and tags must exist before the private tag is added.
UPGRADE_ORDER: list[tuple[RecordShape, Upgrade]] = [
    (RecordShape.SQL_ROW, _upgrade_sql_row),
    (RecordShape.MISSING_ID, _upgrade_missing_id),
    (RecordShape.MISSING_TIMESTAMP, _upgrade_missing_timestamp),
    (RecordShape.UNTAGGED, _upgrade_untagged),
    (RecordShape.PRIVATE_FLAG, _upgrade_private_flag),
]


def normalize_record(record: dict[str, Any], default_tag: str | None = None) -> tuple[dict[str, Any], bool]:
    """
    Upgrade a single raw record to the current shape.

    Args:
        record: Raw record as read from storage. Not modified.
        default_tag: Tag given to records that carry none; defaults to the
            configured storage default tag.

    Returns:
        Tuple of (normalized record, whether anything changed)
    """
    shapes = detect_shapes(record)
    if not shapes:
        return record, False
    default_tag = default_tag or settings.storage.default_tag

    upgraded = dict(record)
    if isinstance(upgraded.get("tags"), list):
        upgraded["tags"] = list(upgraded["tags"])

    # Re-detect between steps: an earlier upgrade can resolve a later trait
    for shape, upgrade in UPGRADE_ORDER:
        if shape in detect_shapes(upgraded):
            upgrade(upgraded, default_tag)

    logger.debug("Upgraded record %s from shapes %s", upgraded.get("id"), sorted(s.value for s in shapes))
    return upgraded, True


def normalize_records(
    records: Iterable[dict[str, Any]], default_tag: str | None = None
) -> tuple[list[dict[str, Any]], bool]:
    """Normalize a batch, reporting whether any record changed."""
    normalized = []
    changed = False
    for record in records:
        upgraded, record_changed = normalize_record(record, default_tag)
        normalized.append(upgraded)
        changed = changed or record_changed
    return normalized, changed
