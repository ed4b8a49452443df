"""
Pytest configuration and fixtures for page feedback tests.
"""

import pytest
from pathlib import Path
import sys

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from pagefeedback.feedback.identity import IdentityStore
from pagefeedback.feedback.session import FeedbackSession
from pagefeedback.feedback.slots import SlotStore
from pagefeedback.feedback.storage import EntryStore
from pagefeedback.remote.gateway import RemoteGateway


@pytest.fixture
def slots(tmp_path):
    """Slot storage in a temporary directory."""
    return SlotStore(tmp_path / "feedback")


@pytest.fixture
def store(slots):
    """An empty entry store."""
    return EntryStore(slots)


@pytest.fixture
def identity(slots):
    return IdentityStore(slots)


@pytest.fixture
def offline_gateway():
    """A gateway with no remote configured."""
    gateway = RemoteGateway(base_url="", api_key="")
    yield gateway
    gateway.close()


@pytest.fixture
def gateway():
    """A gateway pointed at a fake remote; tests patch requests.Session."""
    gateway = RemoteGateway(base_url="https://example.supabase.co/", api_key="anon-key", timeout=5)
    yield gateway
    gateway.close()


@pytest.fixture
def offline_session(store, identity, offline_gateway):
    return FeedbackSession(store, identity, offline_gateway, source_agent="pytest")

