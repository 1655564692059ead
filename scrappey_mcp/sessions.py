"""In-memory registry of Scrappey sessions this process has created.

An id is recorded after a successful sessions.create and forgotten after a
successful sessions.destroy. Presence means "believed live": there is no
heartbeat, so the backend may have expired a session we still list.
Nothing is persisted; sessions still open at exit are abandoned.
"""
from __future__ import annotations

from typing import Iterator


class SessionRegistry:
    """Insertion-ordered set of live session ids.

    All mutation happens on the event loop thread, and record/forget are
    single dict operations, so no lock is taken.
    """

    def __init__(self) -> None:
        self._ids: dict[str, None] = {}

    def record(self, session_id: str) -> None:
        """Add a session id. Re-recording keeps its original position."""
        self._ids.setdefault(session_id, None)

    def forget(self, session_id: str) -> None:
        """Remove a session id. Unknown ids are ignored."""
        self._ids.pop(session_id, None)

    def list(self) -> list[str]:
        """Return live ids, oldest first."""
        return list(self._ids)

    def contains(self, session_id: str) -> bool:
        return session_id in self._ids

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(self.list())
