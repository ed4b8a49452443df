"""Remembered display name for the person leaving feedback."""

from pagefeedback.config import NAME_SLOT, MAX_NAME_LENGTH
from pagefeedback.errors import ValidationError
from pagefeedback.feedback.slots import SlotStore


class IdentityStore:
    """Persists the last display name the user typed."""

    def __init__(self, slots: SlotStore, key: str = NAME_SLOT):
        self.slots = slots
        self.key = key

    def get(self) -> str:
        """Last saved name, or an empty string."""
        return (self.slots.get(self.key) or "").strip()

    def set(self, name: str) -> None:
        """Save a non-empty name. Raises PersistenceError if the write fails."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Display name must not be empty")
        self.slots.set(self.key, name[:MAX_NAME_LENGTH])
