from __future__ import annotations

import threading

from beanscan.stores import ReadWriteLock


def test_readers_share_the_lock() -> None:
    lock = ReadWriteLock()
    entered = threading.Event()

    with lock.read_locked():

        def _reader() -> None:
            with lock.read_locked():
                entered.set()

        thread = threading.Thread(target=_reader)
        thread.start()
        thread.join(timeout=5)

    assert entered.is_set()


def test_writer_waits_for_active_readers() -> None:
    lock = ReadWriteLock()
    acquired = threading.Event()

    def _writer() -> None:
        with lock.write_locked():
            acquired.set()

    lock.acquire_read()
    thread = threading.Thread(target=_writer)
    thread.start()
    assert not acquired.wait(timeout=0.2)

    lock.release_read()
    thread.join(timeout=5)

    assert acquired.is_set()


def test_writer_excludes_readers() -> None:
    lock = ReadWriteLock()
    acquired = threading.Event()

    def _reader() -> None:
        with lock.read_locked():
            acquired.set()

    lock.acquire_write()
    thread = threading.Thread(target=_reader)
    thread.start()
    assert not acquired.wait(timeout=0.2)

    lock.release_write()
    thread.join(timeout=5)

    assert acquired.is_set()
