"""
Feedback session - the interface a page front end talks to.

A session is built explicitly and handed to whatever renders the page;
there is no shared module-level instance.

Usage:
    session = FeedbackSession.from_config()
    entries = session.init("day1")
    result = session.submit("day1", "Al", "nice work")
"""

import logging
from concurrent.futures import Future
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from pagefeedback.config import DATA_DIR, DEFAULT_PAGE
from pagefeedback.errors import PersistenceError
from pagefeedback.feedback.identity import IdentityStore
from pagefeedback.feedback.slots import SlotStore
from pagefeedback.feedback.storage import Entry, EntryStore
from pagefeedback.remote.gateway import RemoteGateway
from pagefeedback.sync.reconciler import Reconciler

logger = logging.getLogger(__name__)


def page_from_path(path: Optional[str]) -> str:
    """Page key for a URL path: its last segment without '.html'."""
    segment = (path or "").split("/")[-1]
    if segment.endswith(".html"):
        segment = segment[: -len(".html")]
    return segment or DEFAULT_PAGE


@dataclass
class Submission:
    """Outcome of a submit call."""
    entry: Entry
    persisted: bool
    push: Future
    warnings: list[str] = field(default_factory=list)


class FeedbackSession:
    """Local-first feedback for one device, optionally synced with a remote."""

    def __init__(
        self,
        store: EntryStore,
        identity: IdentityStore,
        gateway: RemoteGateway,
        reconciler: Optional[Reconciler] = None,
        source_agent: str = "",
    ):
        self.store = store
        self.identity = identity
        self.gateway = gateway
        self.reconciler = reconciler or Reconciler(store, gateway)
        self.source_agent = source_agent

    @classmethod
    def from_config(
        cls,
        data_dir: Optional[Path] = None,
        gateway: Optional[RemoteGateway] = None,
        source_agent: str = "",
    ) -> "FeedbackSession":
        """Wire up a session from the configured data directory and remote."""
        slots = SlotStore(data_dir or DATA_DIR)
        return cls(
            store=EntryStore(slots),
            identity=IdentityStore(slots),
            gateway=gateway or RemoteGateway(),
            source_agent=source_agent,
        )

    @property
    def remote_enabled(self) -> bool:
        return self.gateway.is_configured

    def init(self, page: str) -> list[Entry]:
        """Reconcile a page once and return its entries, ready to render."""
        added = self.reconciler.sync(page)
        if added:
            logger.debug(f"Page {page!r} gained {added} entries from the remote")
        return self.list(page)

    def submit(self, page: str, name: str, message: str) -> Submission:
        """
        Record a new entry for a page.

        Raises ValidationError for an empty message, before anything is
        stored or sent. Storage failures are reported in the result.
        """
        entry = Entry.create(page, name, message, self.source_agent)
        warnings = []

        if name and name.strip():
            try:
                self.identity.set(entry.name)
            except PersistenceError as e:
                logger.warning(f"Could not remember display name: {e}")
                warnings.append(str(e))

        persisted = True
        try:
            self.store.append(entry)
        except PersistenceError as e:
            logger.warning(f"Entry {entry.id} kept in memory only: {e}")
            warnings.append(str(e))
            persisted = False

        push = self.gateway.push(entry)
        return Submission(entry=entry, persisted=persisted, push=push, warnings=warnings)

    def list(self, page: str) -> list[Entry]:
        """Entries for a page in display order."""
        return self.store.query(page)

    def count(self, page: str) -> int:
        return self.store.count(page)

    def display_name(self) -> str:
        return self.identity.get()

    def remember_name(self, name: str) -> bool:
        """Save a display name; returns False if it could not be stored."""
        try:
            self.identity.set(name)
        except PersistenceError as e:
            logger.warning(f"Could not remember display name: {e}")
            return False
        return True

    def close(self):
        self.gateway.close()
