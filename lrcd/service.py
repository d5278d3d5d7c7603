from __future__ import annotations

import logging
import signal
import socket
import threading
import time

from .config import HubRuntimeConfig
from .connection import SocketConnection
from .registry import NickRegistry
from .router import MessageRouter
from .session import Session
from .stats import StatsManager


class HubService:
    """
    TCP front end for the chat hub.

    Accepts connections and runs one :class:`Session` per connection on
    its own worker thread. The nickname registry is the only state the
    sessions share; the service itself only tracks live sessions so it
    can shut them down.
    """

    def __init__(self, config: HubRuntimeConfig) -> None:
        self.config = config
        self.log = logging.getLogger("lrcd.hub")

        self.registry = NickRegistry()
        self.stats_manager = StatsManager(self.registry)
        self.router = MessageRouter(self.registry, self.stats_manager)

        self._shutdown = threading.Event()
        self._sessions_lock = threading.Lock()
        self._sessions: dict[Session, threading.Thread] = {}

        self._listener: socket.socket | None = None
        self._accept_thread: threading.Thread | None = None
        self._stats_thread: threading.Thread | None = None

    @property
    def address(self) -> tuple[str, int] | None:
        """Bound (host, port) of the listener, once started."""
        if self._listener is None:
            return None
        host, port = self._listener.getsockname()[:2]
        return host, port

    def start(self) -> None:
        self.stats_manager.set_start_time()

        # Failure to bind is fatal; let OSError propagate to the caller.
        listener = socket.create_server((self.config.host, int(self.config.port)))
        # Periodic wakeups let the accept loop notice shutdown.
        listener.settimeout(0.5)
        self._listener = listener

        self._accept_thread = threading.Thread(
            target=self._accept_loop, name="lrcd-accept", daemon=True
        )
        self._accept_thread.start()

        if self.config.stats_interval_s and self.config.stats_interval_s > 0:
            self._stats_thread = threading.Thread(
                target=self._stats_loop, name="lrcd-stats", daemon=True
            )
            self._stats_thread.start()

        host, port = self.address or ("-", 0)
        self.log.info("Hub running name=%s host=%s port=%s", self.config.hub_name, host, port)
        self.log.info(
            "Policy nick_max_chars=%s max_line_bytes=%s newline=%r encoding=%s",
            self.config.nick_max_chars,
            self.config.max_line_bytes,
            self.config.newline,
            self.config.encoding,
        )

    def run_forever(self) -> None:
        if self._listener is None:
            self.start()

        signal.signal(signal.SIGINT, lambda *_: self.stop())
        signal.signal(signal.SIGTERM, lambda *_: self.stop())

        while not self._shutdown.is_set():
            time.sleep(0.25)

    def stop(self, *, join_timeout_s: float = 2.0) -> None:
        if self._shutdown.is_set():
            return
        self._shutdown.set()
        self.log.info("Stopping hub")

        if self._listener is not None:
            try:
                self._listener.close()
            except OSError:
                self.log.debug("Listener close failed", exc_info=True)

        with self._sessions_lock:
            sessions = list(self._sessions.items())

        # Shutting the socket down wakes the blocked reader, which then
        # runs the session's normal cleanup.
        for session, _thread in sessions:
            session.conn.shutdown()

        deadline = time.monotonic() + join_timeout_s
        for _session, thread in sessions:
            thread.join(max(0.0, deadline - time.monotonic()))

        if self._accept_thread is not None:
            self._accept_thread.join(max(0.0, deadline - time.monotonic()))

        self.log.info("Final stats:\n%s", self.stats_manager.format_stats())

    @property
    def session_count(self) -> int:
        with self._sessions_lock:
            return len(self._sessions)

    def _accept_loop(self) -> None:
        listener = self._listener
        if listener is None:
            raise RuntimeError("accept loop started before the listener was bound")

        while not self._shutdown.is_set():
            try:
                sock, _addr = listener.accept()
            except TimeoutError:
                continue
            except OSError as e:
                if self._shutdown.is_set():
                    break
                self.log.warning("Failed to accept client connection: %s", e)
                continue

            sock.settimeout(None)
            self._spawn_session(sock)

    def _spawn_session(self, sock: socket.socket) -> None:
        conn = SocketConnection(
            sock,
            newline=self.config.newline,
            encoding=self.config.encoding,
            max_line_bytes=self.config.max_line_bytes,
        )
        session = Session(
            conn,
            self.registry,
            self.router,
            stats=self.stats_manager,
            nick_max_chars=self.config.nick_max_chars,
            greeting=self.config.greeting,
        )
        thread = threading.Thread(
            target=self._run_session,
            args=(session,),
            name=f"lrcd-session-{conn.peer}",
            daemon=True,
        )
        with self._sessions_lock:
            if self._shutdown.is_set():
                conn.close()
                return
            self._sessions[session] = thread
        self.stats_manager.inc("connections")
        thread.start()

    def _run_session(self, session: Session) -> None:
        try:
            session.run()
        except Exception:
            self.log.exception("Session crashed peer=%s", session.conn.peer)
            session.close()
        finally:
            with self._sessions_lock:
                self._sessions.pop(session, None)

    def _stats_loop(self) -> None:
        period = float(self.config.stats_interval_s)
        while not self._shutdown.wait(period):
            self.log.info("Stats:\n%s", self.stats_manager.format_stats())
