"""
Slot storage - string values kept under fixed keys on the local device.

Each slot is one UTF-8 file in the data directory. Reads are permissive
(a missing or unreadable slot is simply empty); writes replace the whole
file atomically.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from pagefeedback.config import DATA_DIR
from pagefeedback.errors import PersistenceError

logger = logging.getLogger(__name__)


class SlotStore:
    """Directory-backed key/value store of plain strings."""

    def __init__(self, directory: Path = DATA_DIR):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.slot"

    def get(self, key: str) -> Optional[str]:
        """Return the value stored under key, or None if there is none."""
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read slot {key!r}, treating it as empty: {e}")
            return None

    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        path = self._path(key)
        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, path)
        except (OSError, ValueError) as e:
            # ValueError covers text the codec cannot encode, e.g. lone surrogates
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(f"Could not write slot {key!r}: {e}") from e
