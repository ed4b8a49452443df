"""
Tests for local slot storage and the entry store.
"""

import json
import pytest
from unittest.mock import patch

from pagefeedback.errors import PersistenceError, ValidationError
from pagefeedback.feedback.slots import SlotStore
from pagefeedback.feedback.storage import Entry, EntryStore, sort_for_display

from factories import make_entry


class TestEntry:
    """Test the Entry dataclass."""

    def test_create_entry(self):
        """Test creating an entry from a submission."""
        entry = Entry.create("day1", "Al", "  nice work  ", source_agent="Mozilla/5.0")

        assert entry.page == "day1"
        assert entry.name == "Al"
        assert entry.message == "nice work"
        assert entry.source_agent == "Mozilla/5.0"
        assert entry.id
        assert entry.timestamp() is not None

    def test_create_generates_unique_ids(self):
        """Test that every created entry gets its own id."""
        ids = {Entry.create("day1", "", "hello").id for _ in range(50)}
        assert len(ids) == 50

    def test_empty_name_becomes_anonymous(self):
        """Test that a blank name falls back to the anonymous sentinel."""
        entry = Entry.create("day1", "   ", "hello")
        assert entry.name == "anonymous"

    def test_empty_message_rejected(self):
        """Test that a whitespace-only message is refused."""
        with pytest.raises(ValidationError):
            Entry.create("day1", "Al", "   ")

    def test_empty_page_rejected(self):
        """Test that an entry cannot exist without a page."""
        with pytest.raises(ValidationError):
            Entry.create("", "Al", "hello")

    def test_lengths_are_capped(self):
        """Test name, message and agent truncation."""
        entry = Entry.create("day1", "n" * 100, "m" * 5000, source_agent="u" * 500)

        assert len(entry.name) == 40
        assert len(entry.message) == 1000
        assert len(entry.source_agent) == 120

    def test_entries_are_immutable(self):
        """Test that an entry cannot be changed after creation."""
        entry = make_entry("a")
        with pytest.raises(AttributeError):
            entry.message = "changed"

    def test_to_dict_uses_wire_keys(self):
        """Test that the agent string is serialized as 'ua'."""
        entry = Entry.create("day1", "Al", "hello", source_agent="agent")
        d = entry.to_dict()

        assert set(d) == {"id", "page", "name", "message", "created_at", "ua"}
        assert d["ua"] == "agent"

    def test_from_dict_ignores_unknown_keys(self):
        """Test loading a record with extra server-side columns."""
        entry = Entry.from_dict({
            "id": "a",
            "page": "day1",
            "name": "Al",
            "message": "hi",
            "created_at": "2024-01-15T10:00:00Z",
            "ua": "agent",
            "inserted_at": "2024-01-15T10:00:01Z",
        })

        assert entry.id == "a"
        assert entry.source_agent == "agent"

    def test_from_dict_missing_name(self):
        """Test that a record without a name reads as anonymous."""
        entry = Entry.from_dict({"id": "a", "page": "day1", "message": "hi"})
        assert entry.name == "anonymous"

    def test_from_dict_rejects_missing_id(self):
        with pytest.raises(ValidationError):
            Entry.from_dict({"page": "day1", "message": "hi"})

    def test_timestamp_parsing(self):
        """Test Z-suffixed, naive and invalid timestamps."""
        assert make_entry("a", created_at="2024-01-15T10:00:00Z").timestamp() == \
            make_entry("b", created_at="2024-01-15T10:00:00+00:00").timestamp()
        assert make_entry("c", created_at="2024-01-15T10:00:00").timestamp() is not None
        assert make_entry("d", created_at="not a date").timestamp() is None
        assert make_entry("e", created_at="").timestamp() is None

    @pytest.mark.parametrize("fraction", ["1", "12", "1234", "12345", "1234567"])
    def test_timestamp_short_fractions(self, fraction):
        """Test fractional seconds of any length, as Postgres trims trailing zeros."""
        entry = make_entry("a", created_at=f"2024-01-05T12:00:00.{fraction}+00:00")
        whole = make_entry("b", created_at="2024-01-05T12:00:00+00:00").timestamp()

        assert entry.timestamp() is not None
        assert whole < entry.timestamp() < whole + 1


class TestSlotStore:
    """Test the file-backed slots."""

    def test_missing_slot_is_none(self, slots):
        assert slots.get("nothing") is None

    def test_set_and_get(self, slots):
        slots.set("name", "Al")
        assert slots.get("name") == "Al"

    def test_set_overwrites(self, slots):
        slots.set("name", "Al")
        slots.set("name", "Bo")
        assert slots.get("name") == "Bo"

    def test_write_failure_raises_persistence_error(self, slots):
        """Test that OS errors during a write are wrapped."""
        with patch("pagefeedback.feedback.slots.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(PersistenceError):
                slots.set("name", "Al")

        # No partial write and no leftover temp files
        assert slots.get("name") is None
        assert [p for p in slots.directory.iterdir() if p.name.endswith(".tmp")] == []

    def test_unencodable_text_raises_persistence_error(self, slots):
        """Test that text the codec rejects is wrapped and leaves no temp file."""
        with pytest.raises(PersistenceError):
            slots.set("name", "Al\udcff")

        assert slots.get("name") is None
        assert [p for p in slots.directory.iterdir() if p.name.endswith(".tmp")] == []


class TestEntryStore:
    """Test the local entry collection."""

    def test_empty_store(self, store):
        assert store.query("day1") == []
        assert store.count("day1") == 0

    def test_append_then_query(self, store):
        """Test that an appended entry is visible exactly once."""
        entry = make_entry("a")
        store.append(entry)

        assert store.query("day1") == [entry]
        assert store.count("day1") == 1

    def test_append_is_idempotent(self, store):
        """Test that appending an existing id is a no-op."""
        store.append(make_entry("a", message="first"))
        store.append(make_entry("a", message="second"))

        entries = store.query("day1")
        assert len(entries) == 1
        assert entries[0].message == "first"

    def test_no_duplicate_ids_after_many_appends(self, store):
        for i in range(20):
            store.append(make_entry(str(i % 7), page=f"day{i % 3}"))

        ids = [e.id for e in store.load_all()]
        assert len(ids) == len(set(ids)) == 7

    def test_query_filters_by_page(self, store):
        store.append(make_entry("a", page="day1"))
        store.append(make_entry("b", page="day2"))
        store.append(make_entry("c", page="day1"))

        assert {e.id for e in store.query("day1")} == {"a", "c"}
        assert all(e.page == "day2" for e in store.query("day2"))
        assert store.pages() == ["day1", "day2"]

    def test_query_orders_by_created_at(self, store):
        """Test ascending order with unparsable timestamps last, in insertion order."""
        store.append(make_entry("late", created_at="2024-01-02T00:00:00Z"))
        store.append(make_entry("bad1", created_at="garbage"))
        store.append(make_entry("early", created_at="2024-01-01T00:00:00+00:00"))
        store.append(make_entry("bad2", created_at=""))

        assert [e.id for e in store.query("day1")] == ["early", "late", "bad1", "bad2"]

    def test_persists_across_instances(self, slots):
        """Test that entries survive a fresh store on the same slots."""
        EntryStore(slots).append(make_entry("a"))

        reopened = EntryStore(slots)
        assert [e.id for e in reopened.query("day1")] == ["a"]

    def test_malformed_json_reads_as_empty(self, slots):
        slots.set("sdl_feedback", "{not json")
        assert EntryStore(slots).load_all() == []

    def test_non_list_reads_as_empty(self, slots):
        slots.set("sdl_feedback", json.dumps({"id": "a"}))
        assert EntryStore(slots).load_all() == []

    def test_bad_records_are_skipped(self, slots):
        """Test that individual malformed records do not spoil the rest."""
        slots.set("sdl_feedback", json.dumps([
            {"id": "a", "page": "day1", "message": "ok"},
            {"id": "b", "message": "no page"},
            "not an object",
            {"id": "c", "page": "day1", "message": 42},
        ]))

        assert [e.id for e in EntryStore(slots).load_all()] == ["a"]

    def test_stored_duplicates_are_dropped(self, slots):
        slots.set("sdl_feedback", json.dumps([
            {"id": "a", "page": "day1", "message": "first"},
            {"id": "a", "page": "day1", "message": "second"},
        ]))

        entries = EntryStore(slots).load_all()
        assert len(entries) == 1
        assert entries[0].message == "first"

    def test_write_failure_keeps_entry_in_memory(self, store):
        """Test degraded in-memory behaviour when the slot cannot be written."""
        with patch.object(store.slots, "set", side_effect=PersistenceError("quota exceeded")):
            with pytest.raises(PersistenceError):
                store.append(make_entry("a"))

        assert store.count("day1") == 1

    def test_replace_all(self, store):
        store.append(make_entry("a"))
        store.replace_all([make_entry("a"), make_entry("b"), make_entry("b")])

        assert [e.id for e in store.load_all()] == ["a", "b"]

    def test_reload(self, slots, store):
        other = EntryStore(slots)
        other.append(make_entry("a"))

        assert store.count("day1") == 0
        store.reload()
        assert store.count("day1") == 1


class TestSortForDisplay:

    def test_mixed_offsets(self):
        """Test that timestamps in different offsets compare as instants."""
        a = make_entry("a", created_at="2024-01-01T12:00:00+02:00")  # 10:00 UTC
        b = make_entry("b", created_at="2024-01-01T11:00:00Z")

        assert [e.id for e in sort_for_display([b, a])] == ["a", "b"]

    def test_trimmed_fraction_sorts_by_time(self):
        """Test that a trimmed fraction still orders before a later entry."""
        a = make_entry("a", created_at="2024-01-05T12:00:00.1234+00:00")
        b = make_entry("b", created_at="2024-01-05T13:00:00+00:00")

        assert [e.id for e in sort_for_display([b, a])] == ["a", "b"]
