"""
Pytest configuration and fixtures for mockworker tests.
"""

import sys
from pathlib import Path

import httpx
import pytest

# Add the repository root to path for imports
# This allows `from mockworker import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from mockworker import get_settings  # noqa: E402


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached process-wide; start and end every test clean."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def base_url():
    return "https://api.example.com"


@pytest.fixture
def make_request(base_url):
    """Factory for httpx requests against the example API."""

    def _make(method: str, path: str) -> httpx.Request:
        return httpx.Request(method, f"{base_url}{path}")

    return _make


@pytest.fixture
def network():
    """
    Stand-in for the real network.

    Answers every request with status 599 and records what reached it.
    """
    seen: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(599, text="network")

    transport = httpx.MockTransport(_handler)
    transport.seen = seen
    return transport
