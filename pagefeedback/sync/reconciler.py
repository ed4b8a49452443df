"""
Reconciler - merges a page's remote entries into the local store.

One direction only (remote -> local). Local entries the remote has not
seen are never removed, so a sync can only grow the collection; local
entries reach the remote separately, when they are pushed at creation.
"""

import logging
from typing import Iterable

from pagefeedback.errors import PersistenceError
from pagefeedback.feedback.storage import Entry, EntryStore
from pagefeedback.remote.gateway import RemoteGateway

logger = logging.getLogger(__name__)


def merge(local: Iterable[Entry], remote: Iterable[Entry]) -> list[Entry]:
    """
    Union of two entry sequences keyed by id.

    Local entries come first in their original order; remote entries with
    an unseen id are appended in remote order.
    """
    merged = []
    seen = set()
    for entry in [*local, *remote]:
        if entry.id in seen:
            continue
        seen.add(entry.id)
        merged.append(entry)
    return merged


class Reconciler:
    """Pulls a page from the remote and folds it into the local store."""

    def __init__(self, store: EntryStore, gateway: RemoteGateway):
        self.store = store
        self.gateway = gateway

    def sync(self, page: str) -> int:
        """
        Merge the remote entries for a page into the local store.

        Returns the number of entries added. If the remote is unavailable
        the local store is left exactly as it was.
        """
        remote = self.gateway.pull(page)
        if remote is None:
            return 0

        foreign = [e for e in remote if e.page != page]
        if foreign:
            logger.debug(f"Ignoring {len(foreign)} remote entries not belonging to page {page!r}")
        remote = [e for e in remote if e.page == page]

        local = self.store.load_all()
        merged = merge(local, remote)
        added = len(merged) - len(local)
        if not added:
            return 0

        try:
            self.store.replace_all(merged)
        except PersistenceError as e:
            logger.warning(f"Merged {added} remote entries for {page!r} but could not save them: {e}")
        else:
            logger.info(f"Merged {added} remote entries into page {page!r}")
        return added
