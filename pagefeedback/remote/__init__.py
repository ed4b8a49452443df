"""
Remote store bridge.

Optional: with no endpoint or key configured every call is a no-op that
reports the remote as unavailable.
"""

from pagefeedback.remote.gateway import RemoteGateway

__all__ = ["RemoteGateway"]
