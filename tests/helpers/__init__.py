"""Test helpers for scrappey-mcp."""
from __future__ import annotations

import socket

API_KEY = "test-key"


def free_port() -> int:
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]
