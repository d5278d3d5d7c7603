"""Line-oriented connection wrapper around an accepted TCP socket."""

from __future__ import annotations

import socket
import threading
from typing import Iterable


class LineTooLong(ValueError):
    """An input line exceeded the connection's byte limit and was discarded."""


class SocketConnection:
    """
    Full-duplex text line stream over a connected socket.

    Reads are performed only by the owning session's worker thread.
    Writes may come from any worker (the router writes to other
    sessions' connections), so each write call is serialized with a
    per-connection lock and sent with a single ``sendall``.
    """

    def __init__(
        self,
        sock: socket.socket,
        *,
        peer: str | None = None,
        newline: str = "\r\n",
        encoding: str = "utf-8",
        max_line_bytes: int = 0,
    ) -> None:
        self.sock = sock
        self.peer = peer or _fmt_peer(sock)
        self.newline = newline
        self.encoding = encoding
        self.max_line_bytes = max_line_bytes
        self._rfile = sock.makefile("rb")
        self._write_lock = threading.Lock()
        self._closed = False

    def read_line(self) -> str | None:
        """Return the next line without its terminator, or None at end-of-stream.

        Raises OSError when the transport fails and LineTooLong when the
        line is longer than ``max_line_bytes``; in that case the rest of the
        line is read and dropped so the next call starts on a fresh line.
        """
        limit = self.max_line_bytes if self.max_line_bytes > 0 else -1
        raw = self._rfile.readline(limit)
        if not raw:
            return None
        if limit > 0 and len(raw) >= limit and not raw.endswith(b"\n"):
            self._discard_rest_of_line(limit)
            raise LineTooLong(f"line exceeds {self.max_line_bytes} bytes")
        return raw.decode(self.encoding, errors="replace").rstrip("\r\n")

    def _discard_rest_of_line(self, chunk: int) -> None:
        while True:
            raw = self._rfile.readline(chunk)
            if not raw or raw.endswith(b"\n"):
                return

    def write_lines(self, lines: Iterable[str]) -> int:
        """Write each line followed by the terminator; returns bytes sent."""
        payload = "".join(f"{line}{self.newline}" for line in lines).encode(
            self.encoding, errors="replace"
        )
        with self._write_lock:
            self.sock.sendall(payload)
        return len(payload)

    def write_line(self, text: str) -> int:
        return self.write_lines((text,))

    def shutdown(self) -> None:
        """Wake a blocked reader by shutting the socket down in both directions."""
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._rfile.close()
        finally:
            self.sock.close()

    def __repr__(self) -> str:
        return f"<SocketConnection peer={self.peer}>"


def _fmt_peer(sock: socket.socket) -> str:
    try:
        addr = sock.getpeername()
    except OSError:
        return "-"
    if isinstance(addr, tuple) and len(addr) >= 2:
        return f"{addr[0]}:{addr[1]}"
    return str(addr) or "-"
