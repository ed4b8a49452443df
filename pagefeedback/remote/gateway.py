"""
Remote Gateway - best-effort push and pull against a shared feedback table.

The remote speaks the PostgREST dialect used by Supabase:
- POST {url}/rest/v1/{table}                         create one entry
- GET  {url}/rest/v1/{table}?page=eq.X&order=...     list a page's entries

Failures never escape: pull() returns None and the push future resolves
to False, both after logging a warning.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

import requests

from pagefeedback.config import REMOTE_URL, REMOTE_KEY, REMOTE_TABLE, REMOTE_TIMEOUT
from pagefeedback.errors import NetworkError
from pagefeedback.feedback.storage import Entry, parse_entries

logger = logging.getLogger(__name__)


def _resolved(value) -> Future:
    future = Future()
    future.set_result(value)
    return future


class RemoteGateway:
    """
    Bridge to the shared remote feedback table.

    Usage:
        gateway = RemoteGateway("https://xyz.supabase.co", "anon-key")
        remote = gateway.pull("day1")      # list[Entry] or None
        gateway.push(entry)                # Future[bool], not awaited
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        table: str = REMOTE_TABLE,
        timeout: float = REMOTE_TIMEOUT,
    ):
        self.base_url = (REMOTE_URL if base_url is None else base_url).rstrip("/")
        self.api_key = REMOTE_KEY if api_key is None else api_key
        self.table = table
        self.timeout = timeout
        self._closed = False

        self.session = requests.Session()
        self.session.headers.update({
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
        })

        # One worker keeps pushes in submission order
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="feedback-push")

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_key) and not self._closed

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/rest/v1/{self.table}"

    def push(self, entry: Entry) -> Future:
        """
        Submit one entry in the background.

        Returns a future resolving to True when the remote accepted the
        entry and False otherwise. Nothing local depends on it.
        """
        if not self.is_configured:
            return _resolved(False)
        try:
            return self._executor.submit(self._push, entry)
        except RuntimeError:
            # Executor shut down between the check and the submit
            return _resolved(False)

    def _push(self, entry: Entry) -> bool:
        try:
            response = self.session.post(
                self.endpoint,
                json=entry.to_dict(),
                headers={"Prefer": "return=minimal"},
                timeout=self.timeout,
            )
            self._check(response)
        except (requests.RequestException, NetworkError) as e:
            logger.warning(f"Remote push of entry {entry.id} failed: {e}")
            return False

        logger.debug(f"Pushed entry {entry.id} for page {entry.page}")
        return True

    def pull(self, page: str) -> Optional[list[Entry]]:
        """
        Fetch all remote entries for a page, oldest first.

        Returns None when the remote is unconfigured or unreachable, and a
        (possibly empty) list otherwise.
        """
        if not self.is_configured:
            return None

        try:
            response = self.session.get(
                self.endpoint,
                params={"page": f"eq.{page}", "order": "created_at.asc"},
                timeout=self.timeout,
            )
            self._check(response)
            try:
                data = response.json()
            except ValueError as e:
                raise NetworkError(f"Response is not JSON: {e}") from e
            if not isinstance(data, list):
                raise NetworkError(f"Expected a JSON list, got {type(data).__name__}")
        except (requests.RequestException, NetworkError) as e:
            logger.warning(f"Remote pull for page {page!r} failed: {e}")
            return None

        return parse_entries(data)

    @staticmethod
    def _check(response: requests.Response):
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise NetworkError(str(e)) from e

    def close(self):
        """Abandon queued pushes and release the HTTP session."""
        self._closed = True
        self._executor.shutdown(wait=False, cancel_futures=True)
        self.session.close()
