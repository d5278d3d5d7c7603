from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .constants import F_BROADCAST, F_BROADCAST_ECHO, F_PRIVATE, R_NOT_FOUND

if TYPE_CHECKING:
    from .registry import NickRegistry
    from .stats import StatsManager


@dataclass
class RouteResult:
    """Outcome of one routing call.

    ``sender_ok`` is False when a line addressed to the sender's own
    connection (broadcast echo or not-found notice) could not be written.
    """

    delivered: int = 0
    found: bool = True
    sender_ok: bool = True


class MessageRouter:
    """
    Delivers chat messages between registered sessions.

    This class is responsible for:
    - Broadcasting a message to every registered session
    - Routing a private message to exactly one named session
    - Absorbing write failures on recipient connections

    The router holds no state of its own. Recipients are read from the
    registry under its lock, and the writes happen after the lock is
    released so a stalled peer cannot block registrations server-wide.
    Write failures on other sessions' connections are logged and
    skipped; a failure on the sender's connection is reported back in
    the result so the sending session can end.
    """

    def __init__(self, registry: NickRegistry, stats: StatsManager | None = None) -> None:
        self.registry = registry
        self.stats = stats
        self.log = logging.getLogger("lrcd.router")

    def broadcast(self, body: str, sender_nick: str, sender_conn: Any) -> RouteResult:
        """
        Send *body* to all registered sessions.

        Every other session receives ``<sender>: <body>``; the sender's own
        connection receives ``You: <body>``.
        """
        recipients = self.registry.snapshot()
        result = RouteResult()

        for conn, _nick in recipients:
            if conn is sender_conn:
                ok = self._deliver(conn, F_BROADCAST_ECHO.format(body=body))
                result.sender_ok = ok
            else:
                ok = self._deliver(conn, F_BROADCAST.format(sender=sender_nick, body=body))
            if ok:
                result.delivered += 1

        self._inc("broadcasts")
        self.log.debug(
            "Broadcast from=%r recipients=%s delivered=%s",
            sender_nick,
            len(recipients),
            result.delivered,
        )
        return result

    def send_private(
        self, recipient_nick: str, body: str, sender_nick: str, sender_conn: Any
    ) -> RouteResult:
        """
        Send *body* to the session registered as *recipient_nick*.

        If no such session exists, the sender is told the user was not
        found and ``found`` is False.
        """
        target = self.registry.find_by_name(recipient_nick)
        if target is None:
            self._inc("private_misses")
            ok = self._deliver(sender_conn, R_NOT_FOUND.format(nick=recipient_nick))
            return RouteResult(found=False, sender_ok=ok)

        ok = self._deliver(target, F_PRIVATE.format(sender=sender_nick, body=body))
        self._inc("privates")
        self.log.debug("Private from=%r to=%r", sender_nick, recipient_nick)
        # A private message to oneself is also a write to the sender.
        sender_ok = ok or target is not sender_conn
        return RouteResult(delivered=int(ok), sender_ok=sender_ok)

    def _deliver(self, conn: Any, text: str) -> bool:
        try:
            sent = conn.write_line(text)
        except OSError as e:
            self._inc("write_failures")
            self.log.warning("Failed to send message to %r: %s", conn, e)
            return False
        self._inc("bytes_out", sent or 0)
        return True

    def _inc(self, key: str, delta: int = 1) -> None:
        if self.stats is not None:
            self.stats.inc(key, delta)
