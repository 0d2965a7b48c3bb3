from concurrent.futures import ThreadPoolExecutor

from archiver.history import HistoryStore

HELLO = "5d41402abc4b2a76b9719d911017c592"
WORLD = "7d793037a0760186574b0282f2f435e7"


def test_missing_history_loads_empty(tmp_path):
    store = HistoryStore.load(tmp_path, "docs")
    assert len(store) == 0
    assert store.path == tmp_path / "docs.history"
    assert not store.path.exists()


def test_record_is_idempotent(tmp_path):
    store = HistoryStore.load(tmp_path, "docs")
    store.record(HELLO)
    store.record(HELLO)
    assert len(store) == 1
    assert store.contains(HELLO)
    assert HELLO in store
    assert store.added == [HELLO]


def test_check_and_record_returns_true_once(tmp_path):
    store = HistoryStore.load(tmp_path, "docs")
    assert store.check_and_record(HELLO) is True
    assert store.check_and_record(HELLO) is False


def test_check_and_record_is_atomic_across_threads(tmp_path):
    store = HistoryStore.load(tmp_path, "docs")
    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(lambda _: store.check_and_record(HELLO), range(64)))
    assert outcomes.count(True) == 1


def test_persist_overwrites_with_union(tmp_path):
    path = tmp_path / "docs.history"
    path.write_text(HELLO + "\n\n", encoding="utf-8")

    store = HistoryStore.load(tmp_path, "docs")
    assert store.contains(HELLO)
    store.record(WORLD)
    store.persist()

    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines == sorted([HELLO, WORLD])
    assert not (tmp_path / "docs.history.tmp").exists()

    reloaded = HistoryStore.load(tmp_path, "docs")
    assert set(reloaded) == {HELLO, WORLD}
    assert reloaded.added == []


def test_persist_to_explicit_path(tmp_path):
    store = HistoryStore(tmp_path / "a.history", [HELLO])
    target = store.persist(tmp_path / "other" / "b.history")
    assert target.read_text(encoding="utf-8") == HELLO + "\n"
