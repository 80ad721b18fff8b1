"""Test utilities for parrot applications.

Provides an ASGI test client and SSE testing helpers::

    from parrot.testing import TestClient
"""

from parrot.testing.client import TestClient
from parrot.testing.sse import SSETestResult, parse_sse_frames

__all__ = [
    "SSETestResult",
    "TestClient",
    "parse_sse_frames",
]
