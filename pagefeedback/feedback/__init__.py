"""
Feedback - local-first comments attached to site pages.

Entries are stored on the device first and shared through the remote
gateway when one is configured. Front ends should use
pagefeedback.feedback.session.FeedbackSession.
"""

from pagefeedback.feedback.storage import Entry, EntryStore
from pagefeedback.feedback.identity import IdentityStore

__all__ = ["Entry", "EntryStore", "IdentityStore"]
