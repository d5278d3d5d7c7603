from __future__ import annotations

import logging
import threading
from typing import Any, Hashable


class NickRegistry:
    """
    Shared table of registered sessions and their nicknames.

    Keys are connection objects (the session identity); values are
    nicknames, pairwise distinct at all times. A reverse index keeps
    name lookups O(1). Every read or write of either map happens under
    one lock.
    """

    def __init__(self) -> None:
        self.log = logging.getLogger("lrcd.registry")
        self._lock = threading.Lock()
        self._nicks: dict[Hashable, str] = {}
        self._index_by_nick: dict[str, Hashable] = {}

    def is_available(self, name: str) -> bool:
        with self._lock:
            return name not in self._index_by_nick

    def register(self, conn: Hashable, name: str) -> None:
        """
        Insert or update the entry for *conn*.

        Does not check availability; callers must already know that
        *name* is free. Prefer :meth:`claim`, which checks and inserts in
        a single critical section.
        """
        with self._lock:
            self._set_locked(conn, name)

    def claim(self, conn: Hashable, name: str) -> bool:
        """
        Assign *name* to *conn* if no entry currently holds it.

        Also used for renames: the entry for *conn* is updated in place.
        A name already held by *conn* itself counts as taken.
        """
        with self._lock:
            if name in self._index_by_nick:
                return False
            old = self._set_locked(conn, name)

        if old is None:
            self.log.debug("Registered nick=%r conn=%r", name, conn)
        else:
            self.log.debug("Renamed nick=%r -> %r conn=%r", old, name, conn)
        return True

    def remove(self, conn: Hashable) -> str | None:
        """Drop the entry for *conn*; returns the released nickname, if any."""
        with self._lock:
            nick = self._nicks.pop(conn, None)
            if nick is not None:
                self._index_by_nick.pop(nick, None)
        return nick

    def list(self) -> list[str]:
        with self._lock:
            return sorted(self._nicks.values())

    def find_by_name(self, name: str) -> Hashable | None:
        with self._lock:
            return self._index_by_nick.get(name)

    def nick_of(self, conn: Hashable) -> str | None:
        with self._lock:
            return self._nicks.get(conn)

    def snapshot(self) -> list[tuple[Hashable, str]]:
        """Copy of all (connection, nickname) entries, safe to use unlocked."""
        with self._lock:
            return list(self._nicks.items())

    def get_stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "registered": len(self._nicks),
                "indexed_by_nick": len(self._index_by_nick),
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._nicks)

    def __contains__(self, conn: object) -> bool:
        with self._lock:
            return conn in self._nicks

    def _set_locked(self, conn: Hashable, name: str) -> str | None:
        old = self._nicks.get(conn)
        if old is not None:
            self._index_by_nick.pop(old, None)
        self._nicks[conn] = name
        self._index_by_nick[name] = conn
        return old
