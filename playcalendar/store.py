import json
import logging
import os
import tempfile
from collections.abc import Mapping
from enum import Enum
from pathlib import Path

from playcalendar.date_keys import MalformedKeyError
from playcalendar.date_keys import decode


logger = logging.getLogger(__name__)


class CountsFileMissingOrInvalid(Exception):
    """Raised when the counts blob is absent or cannot be parsed."""


class LoadOutcome(str, Enum):
    LOADED = "loaded"
    ABSENT = "absent"
    CORRUPT = "corrupt"


class PlayCountStore:
    """Per-day play counts keyed by canonical date key.

    Absent keys count as zero. Entries are only ever added or increased.
    """

    def __init__(self, counts: Mapping[str, int] | None = None) -> None:
        self._counts: dict[str, int] = {}
        self.dirty = False
        for key, value in (counts or {}).items():
            decode(key)
            _check_count(value)
            self._counts[key] = value

    def __len__(self) -> int:
        return len(self._counts)

    def __contains__(self, key: object) -> bool:
        return key in self._counts

    def items(self) -> list[tuple[str, int]]:
        return sorted(self._counts.items())

    def count_for(self, key: str) -> int:
        return self._counts.get(key, 0)

    def increment(self, key: str, by: int = 1) -> int:
        """Add `by` plays to a day and return the new count."""

        decode(key)
        _check_count(by)
        self._counts[key] = self._counts.get(key, 0) + by
        self.dirty = True
        return self._counts[key]

    def merge(self, additions: Mapping[str, int]) -> None:
        """Add counts from another source; overlapping days are summed."""

        for key, value in additions.items():
            decode(key)
            _check_count(value)

        for key, value in additions.items():
            self._counts[key] = self._counts.get(key, 0) + value
        if additions:
            self.dirty = True

    def serialize(self) -> str:
        return json.dumps(self._counts, sort_keys=True, indent=2)

    @classmethod
    def load(cls, blob: str | bytes | None) -> tuple["PlayCountStore", LoadOutcome]:
        """Parse a counts blob, degrading to an empty store on any failure."""

        try:
            counts = parse_counts_blob(blob)
        except CountsFileMissingOrInvalid as exc:
            outcome = LoadOutcome.ABSENT if blob is None else LoadOutcome.CORRUPT
            if outcome is LoadOutcome.CORRUPT:
                logger.warning("Play counts are unreadable, starting empty: %s", exc)
            return cls(), outcome

        return cls(counts), LoadOutcome.LOADED


def _check_count(value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"play count must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"play count must be non-negative, got {value}")


def parse_counts_blob(blob: str | bytes | None) -> dict[str, int]:
    """Decode a flat `{date_key: count}` JSON object.

    Individual bad entries are skipped; a missing blob or a blob that is not
    a JSON object raises CountsFileMissingOrInvalid.
    """

    if blob is None:
        raise CountsFileMissingOrInvalid("counts blob is missing")

    try:
        payload = json.loads(blob)
    except (ValueError, UnicodeDecodeError, RecursionError) as exc:
        raise CountsFileMissingOrInvalid("counts blob is not valid JSON") from exc

    if not isinstance(payload, Mapping):
        raise CountsFileMissingOrInvalid("counts blob is not a JSON object")

    counts: dict[str, int] = {}
    for key, value in payload.items():
        try:
            decode(key)
            _check_count(value)
        except (MalformedKeyError, ValueError):
            logger.warning("Skipping invalid play count entry %r: %r", key, value)
            continue
        counts[key] = value

    return counts


def read_counts_file(path: Path) -> tuple[PlayCountStore, LoadOutcome]:
    try:
        blob = path.read_bytes()
    except FileNotFoundError:
        blob = None
    except OSError as exc:
        logger.warning("Cannot read play counts file %s: %s", path, exc)
        return PlayCountStore(), LoadOutcome.CORRUPT

    return PlayCountStore.load(blob)


def write_counts_file(path: Path, store: PlayCountStore) -> None:
    """Replace the counts file atomically and clear the dirty flag."""

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=".playcounts-", suffix=".json", dir=str(path.parent)
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(store.serialize())
            handle.write("\n")
        os.replace(tmp_name, path)
    finally:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)

    store.dirty = False
