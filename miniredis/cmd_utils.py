"""Commands that recreate stored values, used when rewriting the log."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from .protocol import MultiBulkReply

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_PEXPIREAT = b"PEXPIREAT"


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def data_to_cmd(key: str, data: Any) -> MultiBulkReply | None:
    """A command that recreates ``data`` under ``key``.

    Only plain string values can be recreated; anything else gives None.
    """
    if isinstance(data, str):
        return MultiBulkReply([b"set", _encode(key), _encode(data)])
    return None


def make_expire_cmd(key: str, expire_at: datetime) -> MultiBulkReply:
    """A PEXPIREAT command setting ``key`` to expire at ``expire_at``."""
    if expire_at.tzinfo is None:
        expire_at = expire_at.astimezone()
    millis = (expire_at - _EPOCH) // timedelta(milliseconds=1)
    return MultiBulkReply([_PEXPIREAT, _encode(key), str(millis).encode()])