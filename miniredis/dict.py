"""A sharded dictionary with per-shard reader/writer locks."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3
_MASK64 = 0xFFFFFFFFFFFFFFFF

Consumer = Callable[[str, Any], bool]


def fnv64a(key: str) -> int:
    """64-bit FNV-1a hash of the UTF-8 encoding of ``key``."""
    value = _FNV64_OFFSET
    for byte in key.encode("utf-8", "surrogateescape"):
        value ^= byte
        value = (value * _FNV64_PRIME) & _MASK64
    return value


def compute_capacity(param: int) -> int:
    """Round a requested shard count up to a power of two, at least 16."""
    if param <= 16:
        return 16
    n = param - 1
    for shift in (1, 2, 4, 8, 16):
        n |= n >> shift
    return n + 1


class _RWLock:
    """Many readers or one writer; not re-entrant for writers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if not self._readers:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            while self._writer or self._readers:
                self._cond.wait()
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def reading(self):
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def writing(self):
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


@dataclass
class _Shard:
    data: dict[str, Any] = field(default_factory=dict)
    lock: _RWLock = field(default_factory=_RWLock)


class ConcurrentDict:
    """String-keyed map split into shards guarded by their own locks."""

    def __init__(self, shard_count: int) -> None:
        size = compute_capacity(shard_count)
        self._table = [_Shard() for _ in range(size)]
        self._count = 0
        self._count_lock = threading.Lock()

    def _index(self, key: str) -> int:
        return (len(self._table) - 1) & fnv64a(key)

    def _shard(self, key: str) -> _Shard:
        return self._table[self._index(key)]

    def _adjust_count(self, delta: int) -> None:
        with self._count_lock:
            self._count += delta

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under ``key``, or ``default``."""
        shard = self._shard(key)
        with shard.lock.reading():
            return shard.data.get(key, default)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        shard = self._shard(key)
        with shard.lock.reading():
            return key in shard.data

    def put(self, key: str, val: Any) -> int:
        """Store ``val`` under ``key``; always reports one entry written."""
        shard = self._shard(key)
        with shard.lock.writing():
            if key not in shard.data:
                self._adjust_count(1)
            shard.data[key] = val
        return 1

    def put_if_absent(self, key: str, val: Any) -> int:
        """Store ``val`` only if ``key`` is new; 1 if stored, else 0."""
        shard = self._shard(key)
        with shard.lock.writing():
            if key in shard.data:
                return 0
            shard.data[key] = val
            self._adjust_count(1)
            return 1

    def delete(self, key: str) -> int:
        """Remove ``key``; 1 if it was present, else 0."""
        shard = self._shard(key)
        with shard.lock.writing():
            if key not in shard.data:
                return 0
            del shard.data[key]
            self._adjust_count(-1)
            return 1

    def __len__(self) -> int:
        with self._count_lock:
            return self._count

    def items(self) -> list[tuple[str, Any]]:
        """Snapshot of all entries, shard by shard."""
        result: list[tuple[str, Any]] = []
        for shard in self._table:
            with shard.lock.reading():
                result.extend(shard.data.items())
        return result

    def for_each(self, consumer: Consumer) -> None:
        """Call ``consumer(key, value)`` per entry until it returns False."""
        for shard in self._table:
            with shard.lock.reading():
                entries = list(shard.data.items())
            for key, value in entries:
                if not consumer(key, value):
                    return

    def for_each_without_lock(self, consumer: Consumer) -> None:
        """Like :meth:`for_each` but without taking the shard locks."""
        for shard in self._table:
            for key, value in list(shard.data.items()):
                if not consumer(key, value):
                    return

    def _lock_plan(
        self, write_keys: Iterable[str], read_keys: Iterable[str]
    ) -> tuple[list[int], set[int]]:
        write_keys = list(write_keys)
        write_indices = {self._index(key) for key in write_keys}
        indices = write_indices | {self._index(key) for key in read_keys}
        return sorted(indices), write_indices

    def rw_locks(self, write_keys: Iterable[str], read_keys: Iterable[str]) -> None:
        """Lock the shards of the given keys, in index order."""
        indices, writes = self._lock_plan(write_keys, read_keys)
        for index in indices:
            lock = self._table[index].lock
            if index in writes:
                lock.acquire_write()
            else:
                lock.acquire_read()

    def rw_unlocks(self, write_keys: Iterable[str], read_keys: Iterable[str]) -> None:
        """Release the locks taken by :meth:`rw_locks`, in reverse order."""
        indices, writes = self._lock_plan(write_keys, read_keys)
        for index in reversed(indices):
            lock = self._table[index].lock
            if index in writes:
                lock.release_write()
            else:
                lock.release_read()