from __future__ import annotations

from pathlib import Path

import pytest

from saigon_guide.config import StoreConfig
from saigon_guide.core import StorageError
from saigon_guide.services import KmlFileStorage, RedisWriterLock, build_writer_lock
from saigon_guide.services.locks import no_lock
from saigon_guide.utils import detect_encoding


def test_write_replaces_whole_file(tmp_path: Path):
    storage = KmlFileStorage(tmp_path / "doc.kml")

    storage.write("<kml>first</kml>")
    storage.write("<kml/>")

    assert storage.read() == "<kml/>"


def test_atomic_write_leaves_no_temporary_files(tmp_path: Path):
    storage = KmlFileStorage(tmp_path / "doc.kml", atomic=True)

    storage.write("<kml/>")

    assert [path.name for path in tmp_path.iterdir()] == ["doc.kml"]


def test_write_into_missing_directory_is_a_storage_error(tmp_path: Path):
    storage = KmlFileStorage(tmp_path / "missing" / "doc.kml")

    with pytest.raises(StorageError):
        storage.write("<kml/>")


def test_auto_encoding_detects_utf8(tmp_path: Path):
    text = "<kml><name>Phở Hòa Pasteur, quán cơm tấm, cà phê sữa đá, bánh mì Huỳnh Hoa</name></kml>\n" * 20
    path = tmp_path / "doc.kml"
    path.write_text(text, encoding="utf-8")

    assert KmlFileStorage(path, encoding="auto").read() == text


def test_auto_encoding_follows_xml_declaration(tmp_path: Path):
    text = '<?xml version="1.0" encoding="ISO-8859-1"?>\n<kml><name>Café Sài Gòn</name></kml>'
    path = tmp_path / "doc.kml"
    path.write_bytes(text.encode("latin-1"))

    assert detect_encoding(path) == "ISO-8859-1"
    assert KmlFileStorage(path, encoding="auto").read() == text


@pytest.mark.parametrize(
    "payload, expected",
    [
        (b"<kml/>", "utf-8"),
        (b"\xef\xbb\xbf<kml/>", "utf-8-sig"),
    ],
)
def test_detect_encoding_defaults(tmp_path: Path, payload, expected):
    path = tmp_path / "doc.kml"
    path.write_bytes(payload)

    assert detect_encoding(path) == expected


def test_undecodable_file_is_a_storage_error(tmp_path: Path):
    path = tmp_path / "doc.kml"
    path.write_bytes(b"<kml>\xff\xfe\xfa</kml>")

    with pytest.raises(StorageError):
        KmlFileStorage(path).read()


class FakeRedisLock:
    def __init__(self, acquired: bool):
        self.acquired = acquired
        self.released = False

    def acquire(self):
        return self.acquired

    def release(self):
        self.released = True


class FakeRedis:
    def __init__(self, acquired: bool = True):
        self.locks: list[FakeRedisLock] = []
        self.acquired = acquired
        self.calls: list[dict] = []

    def lock(self, name, timeout=None, blocking_timeout=None):
        self.calls.append({"name": name, "timeout": timeout, "blocking_timeout": blocking_timeout})
        lock = FakeRedisLock(self.acquired)
        self.locks.append(lock)
        return lock


def test_redis_writer_lock_releases_after_use():
    connection = FakeRedis()
    writer_lock = RedisWriterLock(connection, name="kml", timeout=5)

    with writer_lock():
        assert connection.locks[0].released is False

    assert connection.locks[0].released is True
    assert connection.calls == [{"name": "kml", "timeout": 5, "blocking_timeout": 5}]


def test_redis_writer_lock_timeout_is_a_storage_error():
    writer_lock = RedisWriterLock(FakeRedis(acquired=False), name="kml")

    with pytest.raises(StorageError):
        with writer_lock():
            pass


def test_build_writer_lock_selects_backend():
    assert build_writer_lock(StoreConfig()) is no_lock
    assert isinstance(build_writer_lock(StoreConfig(lock_backend="redis")), RedisWriterLock)

    thread_lock = build_writer_lock(StoreConfig(lock_backend="thread"))
    with thread_lock():
        assert thread_lock().locked()
    assert not thread_lock().locked()


def test_unknown_lock_backend_is_rejected():
    with pytest.raises(ValueError):
        StoreConfig(lock_backend="zookeeper")
