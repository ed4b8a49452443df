"""
Feedback storage - durable, page-partitioned record of feedback entries.

Entries are immutable and append-only. The whole collection lives in one
local slot as a JSON array and is rewritten on every change, so reads
never see a half-applied append.

Used by:
- FeedbackSession for local submissions and page listings
- Reconciler for merging remote entries
"""

import json
import logging
import re
import uuid
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Iterable, Optional

from pagefeedback.config import (
    ENTRIES_SLOT,
    ANONYMOUS_NAME,
    MAX_NAME_LENGTH,
    MAX_MESSAGE_LENGTH,
    MAX_AGENT_LENGTH,
)
from pagefeedback.errors import ValidationError
from pagefeedback.feedback.slots import SlotStore

logger = logging.getLogger(__name__)

# Postgres drops trailing zeros from fractional seconds
_FRACTION = re.compile(r"(T\d{2}:\d{2}:\d{2})\.(\d+)")


@dataclass(frozen=True)
class Entry:
    """A single feedback entry."""
    id: str
    page: str
    name: str
    message: str
    created_at: str
    source_agent: str = ""  # diagnostic only, stored as "ua"

    def __post_init__(self):
        if not self.id:
            raise ValidationError("Entry id must not be empty")
        if not self.page:
            raise ValidationError("Entry page must not be empty")

    @classmethod
    def create(cls, page: str, name: str, message: str, source_agent: str = "") -> "Entry":
        """Build a new entry from a user submission."""
        message = (message or "").strip()
        if not message:
            raise ValidationError("Message must not be empty")

        name = (name or "").strip() or ANONYMOUS_NAME

        return cls(
            id=uuid.uuid4().hex,
            page=page,
            name=name[:MAX_NAME_LENGTH],
            message=message[:MAX_MESSAGE_LENGTH],
            created_at=datetime.now(timezone.utc).isoformat(),
            source_agent=(source_agent or "")[:MAX_AGENT_LENGTH],
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["ua"] = data.pop("source_agent")
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Entry":
        if not isinstance(data, dict):
            raise ValidationError(f"Entry record must be an object, got {type(data).__name__}")

        message = data.get("message")
        if not isinstance(message, str):
            raise ValidationError("Entry message must be a string")

        return cls(
            id=str(data.get("id") or ""),
            page=str(data.get("page") or ""),
            name=str(data.get("name") or ANONYMOUS_NAME),
            message=message,
            created_at=str(data.get("created_at") or ""),
            source_agent=str(data.get("ua") or data.get("source_agent") or ""),
        )

    def timestamp(self) -> Optional[float]:
        """created_at as a POSIX timestamp, or None if it does not parse."""
        try:
            text = self.created_at.replace("Z", "+00:00")
            text = _FRACTION.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text, count=1)
            parsed = datetime.fromisoformat(text)
        except (AttributeError, ValueError):
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.timestamp()


def parse_entries(records: Iterable) -> list[Entry]:
    """Parse raw records, skipping any that are malformed."""
    entries = []
    for record in records:
        try:
            entries.append(Entry.from_dict(record))
        except ValidationError as e:
            logger.debug(f"Skipping malformed entry record: {e}")
    return entries


def sort_for_display(entries: Iterable[Entry]) -> list[Entry]:
    """
    Order entries by created_at ascending.

    Entries whose timestamp does not parse go last, keeping their
    relative insertion order.
    """
    def key(entry: Entry):
        ts = entry.timestamp()
        return (0, ts) if ts is not None else (1, 0.0)

    return sorted(entries, key=key)


class EntryStore:
    """
    Manages the local feedback collection.

    The collection is loaded once and kept in memory; every change is
    written back to the slot before the call returns. If the write fails
    the in-memory collection keeps the change and PersistenceError is
    raised so the caller can warn about it.
    """

    def __init__(self, slots: SlotStore, key: str = ENTRIES_SLOT):
        self.slots = slots
        self.key = key

        self.entries: list[Entry] = []
        self._ids: set[str] = set()
        self._load()

    def _load(self):
        """Load entries from the slot, treating bad data as empty."""
        raw = self.slots.get(self.key)
        records = []
        if raw:
            try:
                records = json.loads(raw)
            except json.JSONDecodeError as e:
                logger.warning(f"Stored feedback is not valid JSON, starting empty: {e}")
            if not isinstance(records, list):
                logger.warning("Stored feedback is not a list, starting empty")
                records = []

        self.entries = []
        self._ids = set()
        for entry in parse_entries(records):
            if entry.id in self._ids:
                logger.debug(f"Dropping duplicate stored entry {entry.id}")
                continue
            self.entries.append(entry)
            self._ids.add(entry.id)

    def _save(self):
        """Save the whole collection to the slot."""
        self.slots.set(self.key, json.dumps([e.to_dict() for e in self.entries]))

    def reload(self):
        """Re-read the collection from local storage."""
        self._load()

    def append(self, entry: Entry) -> None:
        """Add an entry unless one with the same id is already stored."""
        if entry.id in self._ids:
            return
        self.entries.append(entry)
        self._ids.add(entry.id)
        self._save()

    def query(self, page: str) -> list[Entry]:
        """Get all entries for a page, oldest first."""
        return sort_for_display(e for e in self.entries if e.page == page)

    def count(self, page: str) -> int:
        """Number of entries for a page."""
        return sum(1 for e in self.entries if e.page == page)

    def pages(self) -> list[str]:
        """Distinct page keys, in first-seen order."""
        return list(dict.fromkeys(e.page for e in self.entries))

    def load_all(self) -> list[Entry]:
        """Snapshot of the whole collection in insertion order."""
        return list(self.entries)

    def replace_all(self, entries: Iterable[Entry]) -> None:
        """
        Rewrite the whole collection in one step.

        Only the reconciler calls this. Duplicate ids in the input keep
        their first occurrence.
        """
        unique = []
        ids = set()
        for entry in entries:
            if entry.id in ids:
                continue
            unique.append(entry)
            ids.add(entry.id)

        self.entries = unique
        self._ids = ids
        self._save()
