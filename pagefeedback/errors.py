"""
Error taxonomy for the feedback store.

Persistence and network errors are handled inside the store; only
ValidationError is meant to reach the presentation layer.
"""


class FeedbackError(Exception):
    """Base class for feedback store errors."""


class PersistenceError(FeedbackError):
    """Local storage could not be written."""


class NetworkError(FeedbackError):
    """The remote store failed, timed out, or answered with something unusable."""


class ValidationError(FeedbackError):
    """A submission was rejected before touching storage or the network."""
