import io
import re
from concurrent.futures import ThreadPoolExecutor
import pytest

from file_processor import storage as storage_module
from file_processor.errors import StorageError
from file_processor.storage import StoredFile, TempStorage


def test_creates_upload_dir_idempotently(tmp_path):
    target = tmp_path / "nested" / "uploads"
    TempStorage(target)
    TempStorage(target)
    assert target.is_dir()


def test_unique_name_scheme_keeps_original_extension(tmp_path):
    name = TempStorage(tmp_path).unique_name("Report.XLSX")
    assert re.fullmatch(r"file-\d{13}-\d+\.XLSX", name)


def test_store_writes_bytes_and_release_removes(tmp_path):
    store = TempStorage(tmp_path)
    stored = store.store(io.BytesIO(b"a,b\n1,2\n"), "data.csv")
    assert stored.path.parent == tmp_path.resolve()
    assert stored.path.read_bytes() == b"a,b\n1,2\n"
    assert stored.original_name == "data.csv"

    assert store.release(stored) is True
    assert not stored.path.exists()


def test_release_is_safe_when_file_already_gone(tmp_path):
    store = TempStorage(tmp_path)
    stored = store.store(io.BytesIO(b"x"), "x.csv")
    stored.path.unlink()
    assert store.release(stored) is False
    assert store.release(StoredFile(path=tmp_path / "never-existed.csv", original_name="n.csv")) is False


def test_name_clash_never_overwrites(tmp_path, monkeypatch):
    monkeypatch.setattr(storage_module.time, "time", lambda: 1700000000.0)
    suffixes = iter([7, 7, 8])
    monkeypatch.setattr(storage_module.random, "randint", lambda a, b: next(suffixes))

    store = TempStorage(tmp_path)
    first = store.store(io.BytesIO(b"first"), "a.csv")
    second = store.store(io.BytesIO(b"second"), "b.csv")

    assert first.path != second.path
    assert first.path.read_bytes() == b"first"
    assert second.path.read_bytes() == b"second"


def test_gives_up_after_repeated_clashes(tmp_path, monkeypatch):
    monkeypatch.setattr(storage_module.time, "time", lambda: 1700000000.0)
    monkeypatch.setattr(storage_module.random, "randint", lambda a, b: 1)

    store = TempStorage(tmp_path)
    store.store(io.BytesIO(b"first"), "a.csv")
    with pytest.raises(StorageError):
        store.store(io.BytesIO(b"second"), "a.csv")


def test_concurrent_stores_get_distinct_paths(tmp_path):
    store = TempStorage(tmp_path)
    payloads = [f"id,value\n{i},{i * 2}\n".encode() for i in range(40)]

    with ThreadPoolExecutor(max_workers=8) as pool:
        stored = list(pool.map(lambda p: store.store(io.BytesIO(p), "data.csv"), payloads))

    assert len({s.path for s in stored}) == len(payloads)
    for s, payload in zip(stored, payloads):
        assert s.path.read_bytes() == payload


def test_write_failure_raises_storage_error(tmp_path):
    class BrokenStream:
        def read(self, *args):
            raise OSError("disk on fire")

    store = TempStorage(tmp_path)
    with pytest.raises(StorageError, match="disk on fire"):
        store.store(BrokenStream(), "a.csv")
    assert list(tmp_path.iterdir()) == []
