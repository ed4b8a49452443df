"""Remote-to-local reconciliation of feedback entries."""

from pagefeedback.sync.reconciler import Reconciler, merge

__all__ = ["Reconciler", "merge"]
