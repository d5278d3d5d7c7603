import threading

from lrcd.registry import NickRegistry


def test_claim_rejects_taken_name() -> None:
    reg = NickRegistry()
    a, b = object(), object()

    assert reg.claim(a, "alice") is True
    assert reg.claim(b, "alice") is False
    assert reg.nick_of(b) is None
    assert reg.list() == ["alice"]


def test_claim_own_name_counts_as_taken() -> None:
    reg = NickRegistry()
    a = object()
    assert reg.claim(a, "alice")
    assert reg.claim(a, "alice") is False
    assert reg.nick_of(a) == "alice"


def test_rename_updates_entry_in_place_and_frees_old_name() -> None:
    reg = NickRegistry()
    a, b = object(), object()
    reg.claim(a, "alice")

    assert reg.claim(a, "alicia")
    assert len(reg) == 1
    assert reg.find_by_name("alice") is None
    assert reg.find_by_name("alicia") is a
    assert reg.is_available("alice")
    assert reg.claim(b, "alice")


def test_is_available_and_register() -> None:
    reg = NickRegistry()
    a = object()
    assert reg.is_available("bob")
    reg.register(a, "bob")
    assert not reg.is_available("bob")
    assert a in reg


def test_remove_is_idempotent() -> None:
    reg = NickRegistry()
    a, b = object(), object()
    reg.claim(a, "alice")
    reg.claim(b, "bob")

    assert reg.remove(a) == "alice"
    assert reg.remove(a) is None
    assert reg.list() == ["bob"]
    assert reg.get_stats() == {"registered": 1, "indexed_by_nick": 1}


def test_remove_unknown_connection_is_noop() -> None:
    reg = NickRegistry()
    assert reg.remove(object()) is None
    assert len(reg) == 0


def test_snapshot_is_a_copy() -> None:
    reg = NickRegistry()
    a, b = object(), object()
    reg.claim(a, "alice")
    snap = reg.snapshot()
    reg.claim(b, "bob")
    assert snap == [(a, "alice")]


def test_concurrent_claims_have_one_winner() -> None:
    reg = NickRegistry()
    conns = [object() for _ in range(32)]
    barrier = threading.Barrier(len(conns))
    results: list[bool] = []
    results_lock = threading.Lock()

    def worker(conn) -> None:
        barrier.wait()
        ok = reg.claim(conn, "contested")
        with results_lock:
            results.append(ok)

    threads = [threading.Thread(target=worker, args=(c,)) for c in conns]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 1
    assert reg.list() == ["contested"]


def test_names_stay_unique_under_concurrent_renames() -> None:
    reg = NickRegistry()
    conns = [object() for _ in range(8)]
    names = [f"n{i}" for i in range(4)]

    def worker(conn) -> None:
        for i in range(200):
            reg.claim(conn, names[i % len(names)])
            if i % 7 == 0:
                reg.remove(conn)

    threads = [threading.Thread(target=worker, args=(c,)) for c in conns]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    current = [nick for _conn, nick in reg.snapshot()]
    assert len(current) == len(set(current))
    for conn, nick in reg.snapshot():
        assert reg.find_by_name(nick) is conn
