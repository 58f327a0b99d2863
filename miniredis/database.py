"""The keyspace: command dispatch, expiry and the append-only log."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from .aof import AofPersister
from .commands import get_command, undo_handler
from .common import CmdLine
from .dict import ConcurrentDict
from .protocol import ErrReply, Reply
from .trans import bytes_to_strings

logger = logging.getLogger(__name__)

DATA_DICT_SIZE = 1 << 16
TTL_DICT_SIZE = 1 << 10
DEFAULT_ROUND_CHECK_TIME = 3.0
AOF_LOAD_LIMIT = 1024
NO_SUCH_COMMAND = "NO SUCH COMMAND"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

EntryHandler = Callable[[str, Any, "datetime | None"], bool]


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _from_ms(millis: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=millis)


class Database:
    """Holds the data and expiry maps and runs commands against them.

    With an ``aof_filename`` the log is replayed on start and written to on
    every persisted command; the file must already exist.
    """

    def __init__(self, aof_filename: str | None = None, tmp_dir: str | None = None) -> None:
        self.data = ConcurrentDict(DATA_DICT_SIZE)
        self.ttl_map = ConcurrentDict(TTL_DICT_SIZE)
        self._aof = AofPersister(aof_filename, tmp_dir) if aof_filename else None
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []
        if self._aof is not None:
            logger.info("AOF file name: %s", self._aof.filename)
            self._aof.load(AOF_LOAD_LIMIT, self._replay)

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _replay(self, args: list[str]) -> None:
        command = get_command(args[0].lower())
        if command is not None:
            command.handler(args, self)

    def exec(self, cmd_line: CmdLine) -> Reply:
        """Run one command given as a list of byte strings."""
        args = bytes_to_strings(cmd_line)
        command = get_command(args[0].lower()) if args else None
        if command is None:
            return ErrReply(NO_SUCH_COMMAND)
        reply, extra = command.handler(args, self)
        if extra is not None and extra.to_persist and self._aof is not None:
            for entry in extra.special_aof:
                self._aof.append(entry)
        return reply

    def for_each(self, handler: EntryHandler) -> None:
        """Call ``handler(key, data, expiration)`` for every key until it returns False."""

        def consumer(key: str, value: Any) -> bool:
            expire_at = self.ttl_map.get(key)
            expiration = None if expire_at is None else _from_ms(expire_at)
            return handler(key, value, expiration)

        self.data.for_each(consumer)

    def get_undo_logs(self, lines: list[CmdLine]) -> list[CmdLine | None]:
        """The commands that undo each of ``lines``, in the same order."""
        undo_log: list[CmdLine | None] = []
        for line in lines:
            name = line[0].decode("utf-8", "surrogateescape")
            builder = undo_handler(name)
            if builder is None:
                raise ValueError(f"no undo command for {name!r}")
            undo_log.append(builder(line, self))
        return undo_log

    def rw_lock(self, write_keys: list[str], read_keys: list[str]) -> None:
        """Lock the shards of the given keys for writing and reading."""
        self.data.rw_locks(write_keys, read_keys)

    def rw_unlock(self, write_keys: list[str], read_keys: list[str]) -> None:
        """Release locks taken by :meth:`rw_lock`."""
        self.data.rw_unlocks(write_keys, read_keys)

    def remove_expired(self) -> int:
        """Drop every key whose expiry has passed; returns how many."""
        now = _now_ms()
        expired: list[str] = []

        def collect(key: str, expire_at: Any) -> bool:
            if expire_at < now:
                expired.append(key)
            return True

        self.ttl_map.for_each_without_lock(collect)
        for key in expired:
            self.data.delete(key)
            self.ttl_map.delete(key)
            logger.info("delete expire key: %s", key)
        return len(expired)

    def rewrite_aof(self) -> bool:
        """Rewrite the log so it holds only what recreates the current data."""
        if self._aof is None:
            raise RuntimeError("no append-only file configured")
        entries: list[tuple[str, Any, datetime | None]] = []

        def collect(key: str, value: Any, expiration: datetime | None) -> bool:
            entries.append((key, value, expiration))
            return True

        ctx = self._aof.start_rewrite()
        self.for_each(collect)
        self._aof.do_rewrite(ctx, entries)
        return self._aof.finish_rewrite(ctx)

    def _loop(self, interval: float, action: Callable[[], Any], name: str) -> None:
        while not self._stop.wait(interval):
            try:
                action()
            except Exception:
                logger.exception("%s failed", name)

    def start_background(
        self,
        rewrite_interval: float | None = None,
        check_interval: float | None = DEFAULT_ROUND_CHECK_TIME,
    ) -> None:
        """Start periodic log rewriting and expired-key removal."""
        jobs: list[tuple[float, Callable[[], Any], str]] = []
        if check_interval and check_interval > 0:
            jobs.append((check_interval, self.remove_expired, "expired key check"))
        if self._aof is not None and rewrite_interval and rewrite_interval > 0:
            jobs.append((rewrite_interval, self.rewrite_aof, "aof rewrite"))
        for interval, action, name in jobs:
            thread = threading.Thread(
                target=self._loop, args=(interval, action, name), name=name, daemon=True
            )
            thread.start()
            self._threads.append(thread)

    def close(self) -> None:
        """Stop background work and close the log."""
        self._stop.set()
        for thread in self._threads:
            thread.join()
        self._threads.clear()
        if self._aof is not None:
            self._aof.close()
            self._aof = None