"""Plain string commands: set, get, mset, mget, delete and ping."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from .protocol import BulkReply, ErrReply, MultiBulkReply, Reply, StatusReply
from .trans import any_to_bytes, anys_to_bytes, anys_to_strings

PARAMS_NUMBER_ERROR = "COMMAND'S PARAMS NUMBER ERROR"

CmdLine = list[bytes]


@dataclass
class Extra:
    """What a command asks to be persisted beside its reply."""

    to_persist: bool = False
    special_aof: list[MultiBulkReply] = field(default_factory=list)


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", "surrogateescape")


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _expired(db: Any, key: str) -> bool:
    """Drop ``key`` if its expiry has passed; True when it was dropped."""
    expire_at = db.ttl_map.get(key)
    if expire_at is not None and expire_at < _now_ms():
        db.ttl_map.delete(key)
        db.data.delete(key)
        return True
    return False


def _missing(key: str) -> BulkReply:
    return BulkReply(_encode("DO NOT EXISTED! KEY:" + key))


def cmd_set(args: list[str], db: Any) -> tuple[Reply, Extra | None]:
    """SET key value"""
    if len(args) < 3:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    key, value = args[1], args[2]
    result = db.data.put(key, value)
    extra = Extra(to_persist=result > 0)
    if result > 0:
        extra.special_aof = [MultiBulkReply([b"set", _encode(key), _encode(value)])]
    if result >= 1:
        return StatusReply("SET OK , NEW KEY"), extra
    return StatusReply("SET OK , ORIGIN KEY'S VAL HAS BEEN UPDATED!"), extra


def cmd_get(args: list[str], db: Any) -> tuple[Reply, Extra | None]:
    """GET key"""
    if len(args) < 2:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    key = args[1]
    exists = key in db.data
    value = db.data.get(key)
    if _expired(db, key):
        return _missing(key), None
    if not exists:
        return _missing(key), None
    if not isinstance(value, str):
        raise TypeError(f"value of key {key!r} is not a string")
    return BulkReply(_encode(value)), None


def cmd_mset(args: list[str], db: Any) -> tuple[Reply, Extra | None]:
    """MSET key value [key value ...]"""
    if len(args) < 3 or (len(args) - 1) % 2 != 0:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    pairs = zip(args[1::2], args[2::2])
    result = sum(1 for key, value in pairs if db.data.put(key, value) == 1)
    if result >= (len(args) - 1) // 2:
        return StatusReply("SET OK , ALL NEW KEY"), None
    return StatusReply("SET OK , SOME ORIGIN KEY'S VAL HAS BEEN UPDATED!"), None


def cmd_mget(args: list[str], db: Any) -> tuple[Reply, Extra | None]:
    """MGET key [key ...]"""
    if len(args) < 3:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    found: list[Any] = []
    missing: list[str] = []
    for key in args[1:]:
        if key in db.data:
            value = db.data.get(key)
            if _expired(db, key):
                missing.append(key)
                continue
            found.append(value)
        else:
            missing.append(key)
    if len(found) == len(args) - 1:
        return MultiBulkReply(anys_to_bytes(found)), None
    keys = "".join(key + " " for key in missing)
    return (
        StatusReply(
            "FAILED! SOME KEY IS NOT EXIST! KEYS:"
            + keys
            + " FIND: "
            + "".join(anys_to_strings(found))
        ),
        None,
    )


def cmd_delete(args: list[str], db: Any) -> tuple[Reply, Extra | None]:
    """DELETE key"""
    if len(args) < 2:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    if db.data.delete(args[1]) == 1:
        return StatusReply("DELETE OK"), None
    return StatusReply("THE KEY IS NOT EXISTED"), None


def cmd_ping(args: list[str], db: Any) -> tuple[Reply, Extra | None]:
    """PING"""
    return BulkReply(b"PONG"), None


def delete_rollback(cmd_line: CmdLine, db: Any) -> CmdLine | None:
    """Undo command for DELETE: a set of the current value, if any."""
    key = _decode(cmd_line[1])
    if key not in db.data:
        return None
    return [b"set", any_to_bytes(db.data.get(key))]


def set_rollback(cmd_line: CmdLine, db: Any) -> CmdLine:
    """Undo command for SET: delete the key."""
    return [b"delete", cmd_line[1]]