"""JSON-lines storage for check-ins and ratings.

A minimal append-only adapter behind the ``list(from, to)`` / ``append``
contract the analytics consume.  One JSON object per line; records are
validated before they are written and re-checked when read back.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Callable

from checkin_dates import parse_timestamp
from checkin_validation import (
    InvalidRecordError,
    is_iso_instant,
    validate_check_in,
    validate_rating,
)

logger = logging.getLogger(__name__)


class InvalidRangeError(ValueError):
    """Raised when a list() bound is not a canonical ISO instant."""


def load_records(path: str | Path) -> list[dict]:
    """Load a JSON array export of check-ins or ratings.

    Args:
        path: Filesystem path to a JSON file holding a list of records.

    Returns:
        The decoded list.

    Raises:
        FileNotFoundError: If the file at *path* does not exist.
        json.JSONDecodeError: If the file contains invalid JSON.
        ValueError: If the top-level JSON value is not a list.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a JSON array")
    return data


class JsonLinesStore:
    """Append-only record store backed by a JSON-lines file.

    Args:
        path: File to append to.  Parent directories are created on the
            first write; a missing file reads as empty.
        validator: Returns None for a storable record or a rejection
            reason string.
    """

    def __init__(self, path: str | Path, validator: Callable[[Any], str | None]):
        self.path = Path(path)
        self._validator = validator
        self._lock = threading.Lock()

    def append(self, record: dict) -> None:
        """Validate and append *record*; nothing is written on rejection.

        Raises:
            InvalidRecordError: If the validator rejects the record.
        """
        reason = self._validator(record)
        if reason:
            raise InvalidRecordError(reason)

        line = json.dumps(record, ensure_ascii=False)
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    def _read_valid(self) -> list[dict]:
        if not self.path.exists():
            return []

        records = []
        with self._lock:
            with open(self.path, "rb") as f:
                lines = f.readlines()

        for lineno, raw in enumerate(lines, 1):
            if not raw.strip():
                continue
            try:
                record = json.loads(raw.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError):
                logger.warning("Skipping unparseable line %d in %s", lineno, self.path)
                continue
            reason = self._validator(record)
            if reason:
                logger.warning("Skipping line %d in %s: %s", lineno, self.path, reason)
                continue
            records.append(record)
        return records

    def list(self, from_iso: str, to_iso: str) -> list[dict]:
        """Return records with from_iso <= timestamp <= to_iso, oldest first.

        Raises:
            InvalidRangeError: If either bound is not a canonical ISO instant.
        """
        if not is_iso_instant(from_iso) or not is_iso_instant(to_iso):
            raise InvalidRangeError("invalid_range")

        start = parse_timestamp(from_iso)
        end = parse_timestamp(to_iso)
        selected = [
            record
            for record in self._read_valid()
            if start <= parse_timestamp(record["timestamp"]) <= end
        ]
        selected.sort(key=lambda r: r["timestamp"])
        return selected


class CheckInStore(JsonLinesStore):
    def __init__(self, path: str | Path):
        super().__init__(path, validate_check_in)


class RatingStore(JsonLinesStore):
    def __init__(self, path: str | Path):
        super().__init__(path, validate_rating)
