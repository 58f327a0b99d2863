"""Append-only command log: appending, replaying and rewriting."""

from __future__ import annotations

import io
import logging
import os
import shutil
import tempfile
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, BinaryIO

from .cmd_utils import data_to_cmd, make_expire_cmd
from .parser import parse_stream
from .protocol import MultiBulkReply
from .trans import bytes_to_strings

logger = logging.getLogger(__name__)

Entry = tuple[str, Any, "datetime | None"]


@dataclass
class RewriteContext:
    """State carried from the start of a rewrite to its end."""

    tmp_file: BinaryIO
    file_size: int


def _open_append(filename: str, create: bool) -> BinaryIO:
    flags = os.O_APPEND | os.O_RDWR
    if create:
        flags |= os.O_CREAT
    fd = os.open(filename, flags, 0o600)
    return os.fdopen(fd, "ab")


class AofPersister:
    """Writes commands to an append-only file and replays them."""

    def __init__(self, filename: str, tmp_dir: str | None = None) -> None:
        self.filename = os.fspath(filename)
        self.tmp_dir = tmp_dir or None
        self._file = _open_append(self.filename, create=False)
        self._lock = threading.RLock()
        self._loading = False

    def __enter__(self) -> AofPersister:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def append(self, reply: MultiBulkReply) -> None:
        """Write one command to the end of the log; ignored while loading."""
        if self._loading:
            return
        with self._lock:
            try:
                self._file.write(reply.to_bytes())
                self._file.flush()
            except OSError as exc:
                logger.error("aof file write error: %s", exc)

    def load(self, max_bytes: int, replay: Callable[[list[str]], Any]) -> int:
        """Replay commands from the first ``max_bytes`` of the log.

        ``replay`` receives each command as a list of strings. Returns the
        number of commands replayed. A missing log replays nothing.
        """
        with self._lock:
            self._file.flush()
        try:
            with open(self.filename, "rb") as handle:
                data = handle.read(max_bytes)
        except OSError:
            return 0
        replayed = 0
        self._loading = True
        try:
            for payload in parse_stream(io.BytesIO(data)):
                if payload.err is not None:
                    if isinstance(payload.err, EOFError):
                        break
                    logger.warning("parse error: %s", payload.err)
                    continue
                if payload.data is None:
                    logger.warning("empty payload")
                    continue
                if not isinstance(payload.data, MultiBulkReply) or not payload.data.args:
                    logger.warning("require multi bulk reply")
                    continue
                args = bytes_to_strings(arg or b"" for arg in payload.data.args)
                logger.debug("load aof cmd %s", args[0].lower())
                replay(args)
                replayed += 1
        finally:
            self._loading = False
        return replayed

    def start_rewrite(self) -> RewriteContext:
        """Sync the log, note its size and open a temporary file."""
        with self._lock:
            self._file.flush()
            os.fsync(self._file.fileno())
            size = os.stat(self.filename).st_size
            tmp = tempfile.NamedTemporaryFile(
                mode="wb", suffix=".aof", dir=self.tmp_dir, delete=False
            )
        return RewriteContext(tmp_file=tmp, file_size=size)

    def do_rewrite(self, ctx: RewriteContext, entries: Iterable[Entry]) -> None:
        """Write commands that recreate ``(key, data, expiration)`` entries."""
        for key, data, expiration in entries:
            cmd = data_to_cmd(key, data)
            if cmd is not None:
                ctx.tmp_file.write(cmd.to_bytes())
                if expiration is not None:
                    ctx.tmp_file.write(make_expire_cmd(key, expiration).to_bytes())

    def finish_rewrite(self, ctx: RewriteContext) -> bool:
        """Copy what was appended meanwhile and swap the new log in."""
        with self._lock:
            tmp = ctx.tmp_file
            try:
                self._file.flush()
                with open(self.filename, "rb") as src:
                    src.seek(ctx.file_size)
                    shutil.copyfileobj(src, tmp)
                tmp.close()
            except OSError as exc:
                logger.error("copy aof file failed: %s", exc)
                tmp.close()
                os.unlink(tmp.name)
                return False
            self._file.close()
            os.replace(tmp.name, self.filename)
            self._file = _open_append(self.filename, create=True)
            logger.info("aof rewrite finished")
            return True

    def rewrite(self, entries: Iterable[Entry]) -> bool:
        """Run a whole rewrite from the given entries."""
        ctx = self.start_rewrite()
        self.do_rewrite(ctx, entries)
        return self.finish_rewrite(ctx)

    def close(self) -> None:
        """Close the log file."""
        with self._lock:
            self._file.close()