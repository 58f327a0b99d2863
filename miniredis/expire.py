"""Key expiry commands and their undo commands.

Expiry times are stored in the ttl map as Unix milliseconds.
"""

from __future__ import annotations

import re
import time
from datetime import datetime, timedelta, timezone
from typing import Any

from .common import CmdLine, Extra
from .protocol import ErrReply, Reply, StatusReply, TimeReply

NO_SUCH_EXPIRE_KEY = "NO SUCH EXPIRE KEY"

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_INT64_LIMIT = 1 << 63
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

Result = tuple[Reply, "Extra | None"]


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", "surrogateescape")


def _parse_int64(text: str) -> int:
    if not _INT_PATTERN.fullmatch(text):
        raise ValueError(f'strconv.ParseInt: parsing "{text}": invalid syntax')
    value = int(text)
    if not -_INT64_LIMIT <= value < _INT64_LIMIT:
        raise ValueError(f'strconv.ParseInt: parsing "{text}": value out of range')
    return value


def _from_ms(millis: int) -> datetime:
    return (_EPOCH + timedelta(milliseconds=millis)).astimezone()


def _time_text(millis: int) -> str:
    try:
        moment = _from_ms(millis)
    except (OverflowError, OSError, ValueError):
        return f"{millis}ms"
    text = moment.strftime("%Y-%m-%d %H:%M:%S")
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.strftime("%z") or "+0000"
    return f"{text} {offset} {moment.tzname() or offset}"


def _set_expire(db: Any, key: str, expire_at: int) -> Result:
    if db.ttl_map.put(key, expire_at) == 1:
        return (
            StatusReply(
                "EXPIRE SET OK \nKEY:" + key + "\nEXPIRE TIME:" + _time_text(expire_at)
            ),
            None,
        )
    return StatusReply("EXPIRE TIME SET FAILED"), None


def _with_number(args: list[str], db: Any, to_expire_at) -> Result:
    try:
        number = _parse_int64(args[2])
    except ValueError as exc:
        return ErrReply("EXPIRE PARAMS FORMAT ERROR:" + str(exc)), None
    return _set_expire(db, args[1], to_expire_at(number))


def cmd_expire(args: list[str], db: Any) -> Result:
    """EXPIRE key seconds"""
    return _with_number(args, db, lambda seconds: _now_ms() + 1000 * seconds)


def cmd_pexpire(args: list[str], db: Any) -> Result:
    """PEXPIRE key milliseconds"""
    return _with_number(args, db, lambda millis: _now_ms() + millis)


def cmd_expireat(args: list[str], db: Any) -> Result:
    """EXPIREAT key unix-seconds"""
    return _with_number(args, db, lambda seconds: seconds * 1000)


def cmd_pexpireat(args: list[str], db: Any) -> Result:
    """PEXPIREAT key unix-milliseconds"""
    return _with_number(args, db, lambda millis: millis)


def cmd_ttl(args: list[str], db: Any) -> Result:
    """TTL key: the remaining seconds, as a time since the epoch."""
    expire_at = db.ttl_map.get(args[1])
    if expire_at is not None:
        remaining = expire_at // 1000 - _now_ms() // 1000
        if remaining > 0:
            return TimeReply(_from_ms(remaining * 1000)), None
    return StatusReply(NO_SUCH_EXPIRE_KEY), None


def cmd_pttl(args: list[str], db: Any) -> Result:
    """PTTL key: the remaining milliseconds, as a time since the epoch."""
    expire_at = db.ttl_map.get(args[1])
    if expire_at is not None:
        remaining = expire_at - _now_ms()
        if remaining > 0:
            return TimeReply(_from_ms(remaining)), None
    return StatusReply(NO_SUCH_EXPIRE_KEY), None


def cmd_persist(args: list[str], db: Any) -> Result:
    """PERSIST key: drop the expiry of a key."""
    key = args[1]
    if db.ttl_map.delete(key) == 1:
        return StatusReply("OK! DELETE EXPIRE TIME SUCCESSFULLY! KEY:" + key), None
    return StatusReply(NO_SUCH_EXPIRE_KEY), None


def expire_rollback(cmd_line: CmdLine, db: Any) -> CmdLine:
    """Undo for EXPIRE: drop the expiry."""
    return [b"persist", cmd_line[1]]


def pexpire_rollback(cmd_line: CmdLine, db: Any) -> CmdLine:
    """Undo for PEXPIRE: drop the expiry."""
    return [b"persist", cmd_line[1]]


def persist_rollback(cmd_line: CmdLine, db: Any) -> CmdLine | None:
    """Undo for PERSIST: restore the stored expiry value."""
    expire_at = db.ttl_map.get(_decode(cmd_line[1]))
    if expire_at is None:
        return None
    return [b"pexpire", cmd_line[1], str(expire_at).encode()]