from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Any

from .constants import (
    CMD_BC,
    CMD_LIST,
    CMD_MSG,
    CMD_NICK,
    COMMAND_USAGE,
    DEFAULT_NICK_MAX_CHARS,
    R_BAD_COMMAND,
    R_CLIENT_LIST,
    R_LINE_TOO_LONG,
    R_MSG_USAGE,
    R_NICK_HINT,
    R_NICK_IN_USE,
    R_NICK_INVALID,
    R_NICK_SET,
    R_REGISTER_FIRST,
    R_WELCOME,
)
from .connection import LineTooLong
from .util import normalize_nick, split_private

if TYPE_CHECKING:
    from .registry import NickRegistry
    from .router import MessageRouter
    from .stats import StatsManager


class SessionState(enum.Enum):
    UNREGISTERED = "unregistered"
    REGISTERED = "registered"
    CLOSED = "closed"


class Session:
    """
    Per-connection protocol state machine.

    A session starts UNREGISTERED, becomes REGISTERED on its first
    successful ``/NICK`` and ends CLOSED when its connection reaches
    end-of-stream or fails. The session owns its connection; the
    registry only refers to it.
    """

    def __init__(
        self,
        conn: Any,
        registry: NickRegistry,
        router: MessageRouter,
        *,
        stats: StatsManager | None = None,
        nick_max_chars: int = DEFAULT_NICK_MAX_CHARS,
        greeting: str | None = None,
    ) -> None:
        self.conn = conn
        self.registry = registry
        self.router = router
        self.stats = stats
        self.nick_max_chars = nick_max_chars
        self.greeting = greeting
        self.log = logging.getLogger("lrcd.session")

        self.nickname: str | None = None
        self.state = SessionState.UNREGISTERED

    @property
    def registered(self) -> bool:
        return self.state is SessionState.REGISTERED

    @property
    def closed(self) -> bool:
        return self.state is SessionState.CLOSED

    def run(self) -> None:
        """Serve the connection until it closes. Blocks the calling thread."""
        self.log.info("Session created peer=%s", self._peer())
        try:
            lines = [R_WELCOME, R_NICK_HINT]
            if self.greeting:
                lines.append(self.greeting)
            if not self._reply(*lines):
                return

            while not self.closed:
                try:
                    line = self.conn.read_line()
                except LineTooLong as e:
                    self._inc("usage_errors")
                    self.log.debug("Dropped input peer=%s: %s", self._peer(), e)
                    if not self._reply(R_LINE_TOO_LONG):
                        break
                    continue
                except OSError as e:
                    self.log.info("Read failed peer=%s: %s", self._peer(), e)
                    break
                if line is None:
                    break
                if not self.handle_line(line):
                    break
        finally:
            self.close()

    def handle_line(self, raw: str) -> bool:
        """
        Process one input line.

        Returns False if a line addressed to this session (a reply, the
        broadcast echo or a not-found notice) could not be written to its
        own connection, in which case the session must end.
        """
        self._inc("lines_in")
        self._inc("bytes_in", len(raw.encode("utf-8", errors="replace")))

        message = raw.strip()

        if message.startswith(CMD_NICK):
            return self._handle_nick(message[len(CMD_NICK):])

        if not self.registered:
            return self._reply(R_REGISTER_FIRST, R_NICK_HINT)

        if message == CMD_LIST:
            names = " ".join(self.registry.list())
            return self._reply(R_CLIENT_LIST.format(names=names))

        if message.startswith(CMD_BC):
            result = self.router.broadcast(message[len(CMD_BC):], self.nickname, self.conn)
            return result.sender_ok

        if message.startswith(CMD_MSG):
            parts = split_private(message[len(CMD_MSG):])
            if parts is None:
                self._inc("usage_errors")
                return self._reply(R_MSG_USAGE)
            recipient, body = parts
            result = self.router.send_private(recipient, body, self.nickname, self.conn)
            return result.sender_ok

        self._inc("usage_errors")
        return self._reply(R_BAD_COMMAND, *COMMAND_USAGE)

    def close(self) -> None:
        """Release the nickname and the connection. Safe to call repeatedly."""
        if self.closed:
            return
        self.state = SessionState.CLOSED
        self.registry.remove(self.conn)
        try:
            self.conn.close()
        except OSError as e:
            self.log.debug("Close failed peer=%s: %s", self._peer(), e)
        self._inc("disconnects")
        self.log.info("Client disconnected peer=%s nick=%r", self._peer(), self.nickname)

    def _handle_nick(self, name: str) -> bool:
        nick = normalize_nick(name, max_chars=self.nick_max_chars)
        if nick is None:
            self._inc("usage_errors")
            return self._reply(R_NICK_INVALID)

        if not self.registry.claim(self.conn, nick):
            self._inc("nick_conflicts")
            return self._reply(R_NICK_IN_USE)

        old = self.nickname
        self.nickname = nick
        self.state = SessionState.REGISTERED
        self._inc("nick_changes")
        if old is None:
            self.log.info("Nick set peer=%s nick=%r", self._peer(), nick)
        else:
            self.log.info("Nick changed peer=%s nick=%r -> %r", self._peer(), old, nick)
        return self._reply(R_NICK_SET.format(nick=nick))

    def _reply(self, *lines: str) -> bool:
        try:
            sent = self.conn.write_lines(lines)
        except OSError as e:
            self._inc("write_failures")
            self.log.warning("Failed to write to client peer=%s: %s", self._peer(), e)
            return False
        self._inc("bytes_out", sent or 0)
        return True

    def _peer(self) -> str:
        return str(getattr(self.conn, "peer", "-"))

    def _inc(self, key: str, delta: int = 1) -> None:
        if self.stats is not None:
            self.stats.inc(key, delta)
