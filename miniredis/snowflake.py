"""Snowflake-style unique identifiers."""

from __future__ import annotations

import threading
import time

WORKER_BITS = 10
NUMBER_BITS = 12
WORKER_MAX = (1 << 63) - 1
NUMBER_MAX = (1 << NUMBER_BITS) - 1
TIME_SHIFT = WORKER_BITS + NUMBER_BITS
WORKER_SHIFT = NUMBER_BITS
START_TIME = 1525705533000

_FNV32_OFFSET = 0x811C9DC5
_FNV32_PRIME = 0x01000193
_MASK32 = 0xFFFFFFFF
_MASK64 = (1 << 64) - 1


def fnv32a(key: str) -> int:
    """32-bit FNV-1a hash of the UTF-8 encoding of ``key``."""
    value = _FNV32_OFFSET
    for byte in key.encode("utf-8", "surrogateescape"):
        value ^= byte
        value = (value * _FNV32_PRIME) & _MASK32
    return value


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _to_int64(value: int) -> int:
    value &= _MASK64
    return value - (1 << 64) if value >> 63 else value


class Worker:
    """Generates identifiers from time, a worker id and a sequence number."""

    def __init__(self, worker_id: int) -> None:
        if worker_id < 0 or worker_id > WORKER_MAX:
            raise ValueError("worker ID excess of quantity")
        self.worker_id = worker_id
        self._timestamp = 0
        self._number = 0
        self._lock = threading.Lock()

    def get_id(self) -> str:
        """A new identifier as a hexadecimal string."""
        with self._lock:
            now = _now_ms()
            if self._timestamp == now:
                self._number += 1
                if self._number > NUMBER_MAX:
                    while now <= self._timestamp:
                        now = _now_ms()
                    self._number = 0
                    self._timestamp = now
            else:
                self._number = 0
                self._timestamp = now
            ident = _to_int64(
                ((now - START_TIME) << TIME_SHIFT)
                | (self.worker_id << WORKER_SHIFT)
                | self._number
            )
            return format(ident, "x")