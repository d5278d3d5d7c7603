import socket
import threading

import pytest

from lrcd.connection import LineTooLong, SocketConnection


@pytest.fixture
def pair():
    left, right = socket.socketpair()
    yield left, right
    left.close()
    right.close()


def test_over_long_line_is_discarded(pair) -> None:
    left, right = pair
    conn = SocketConnection(left, peer="t", max_line_bytes=16)
    right.sendall(b"x" * 100 + b"\n/LIST\n")

    with pytest.raises(LineTooLong):
        conn.read_line()
    assert conn.read_line() == "/LIST"


def test_line_at_limit_is_accepted(pair) -> None:
    left, right = pair
    conn = SocketConnection(left, peer="t", max_line_bytes=8)
    right.sendall(b"1234567\n")
    assert conn.read_line() == "1234567"


def test_unlimited_reads_long_lines(pair) -> None:
    left, right = pair
    conn = SocketConnection(left, peer="t", max_line_bytes=0)
    right.sendall(b"y" * 20000 + b"\r\n")
    right.shutdown(socket.SHUT_WR)

    assert conn.read_line() == "y" * 20000
    assert conn.read_line() is None


def test_concurrent_writes_do_not_interleave(pair) -> None:
    left, right = pair
    conn = SocketConnection(left, peer="t", newline="\n")
    writers, per_writer = 8, 50
    body = "z" * 3000
    received: list[bytes] = []

    def reader() -> None:
        with right.makefile("rb") as rfile:
            for _ in range(writers * per_writer):
                received.append(rfile.readline())

    def writer(n: int) -> None:
        for i in range(per_writer):
            conn.write_line(f"w{n}:{i}:{body}")

    reader_thread = threading.Thread(target=reader)
    reader_thread.start()
    threads = [threading.Thread(target=writer, args=(n,)) for n in range(writers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(10)
    reader_thread.join(10)

    assert len(received) == writers * per_writer
    seen: dict[str, list[int]] = {}
    for raw in received:
        tag, index, rest = raw.decode("utf-8").rstrip("\n").split(":", 2)
        assert rest == body
        seen.setdefault(tag, []).append(int(index))
    assert seen == {f"w{n}": list(range(per_writer)) for n in range(writers)}
