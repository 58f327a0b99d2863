"""List commands: pushes, pops, indexing, ranges and their undo commands."""

from __future__ import annotations

import re
from typing import Any

from .common import PARAMS_NUMBER_ERROR, CmdLine, Extra
from .linkedlist import RedisList
from .protocol import BulkReply, ErrReply, IntReply, MultiBulkReply, Reply, StatusReply
from .trans import any_to_bytes, any_to_string, anys_to_bytes

_KEY_MISSING = "FAILED! THE KEY DO NOT EXISTED!"
_NOT_LIST = "FAILED! THE KEY'S TYPE IS NOT LIST!"
_INT_PATTERN = re.compile(r"[+-]?[0-9]+")

Result = tuple[Reply, "Extra | None"]


def _atoi(text: str) -> int:
    if not _INT_PATTERN.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    return int(text)


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", "surrogateescape")


def _lookup(db: Any, key: str) -> tuple[RedisList | None, Reply | None]:
    """The list stored under ``key``, or the reply explaining why there is none."""
    if key not in db.data:
        return None, StatusReply(_KEY_MISSING)
    value = db.data.get(key)
    if not isinstance(value, RedisList):
        return None, StatusReply(_NOT_LIST)
    return value, None


def _push(db: Any, key: str, values: list[str], left: bool) -> Result:
    if key in db.data:
        target = db.data.get(key)
        if not isinstance(target, RedisList):
            return StatusReply(_NOT_LIST), None
        created = False
    else:
        target = RedisList()
        created = True
    push = target.left_push if left else target.right_push
    for value in values:
        push(value)
    if created:
        db.data.put(key, target)
    added = "".join(value + " " for value in values)
    return StatusReply("OK! LIST KEY " + key + " ADD: " + added), None


def cmd_lpush(args: list[str], db: Any) -> Result:
    """LPUSH key value [value ...]"""
    if len(args) < 3:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    return _push(db, args[1], args[2:], left=True)


def cmd_rpush(args: list[str], db: Any) -> Result:
    """RPUSH key value [value ...]"""
    if len(args) < 3:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    return _push(db, args[1], args[2:], left=False)


def _pop(db: Any, key: str, left: bool) -> Result:
    target, problem = _lookup(db, key)
    if target is None:
        return problem, None
    popped = target.left_pop() if left else target.right_pop()
    if popped:
        return StatusReply("OK! LIST KEY " + key + " POP "), None
    return StatusReply("FAILED! LIST HAVE NO ELEMENT!"), None


def cmd_lpop(args: list[str], db: Any) -> Result:
    """LPOP key"""
    if len(args) < 2:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    return _pop(db, args[1], left=True)


def cmd_rpop(args: list[str], db: Any) -> Result:
    """RPOP key"""
    if len(args) < 2:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    return _pop(db, args[1], left=False)


def cmd_lindex(args: list[str], db: Any) -> Result:
    """LINDEX key index"""
    if len(args) < 3:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    target, problem = _lookup(db, args[1])
    if target is None:
        return problem, None
    try:
        index = _atoi(args[2])
    except ValueError:
        return StatusReply("FAILED! INDEX FORMAT ERROR!"), None
    value = target.index_value(index)
    if value is None:
        return StatusReply("FAILED! CAN'T FIND THE INDEX's VALUE!"), None
    return BulkReply(any_to_bytes(value)), None


def cmd_llen(args: list[str], db: Any) -> Result:
    """LLEN key"""
    if len(args) < 2:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    target, problem = _lookup(db, args[1])
    if target is None:
        return problem, None
    return IntReply(len(target)), None


def cmd_lrange(args: list[str], db: Any) -> Result:
    """LRANGE key start end"""
    if len(args) < 4:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    target, problem = _lookup(db, args[1])
    if target is None:
        return problem, None
    try:
        start, end = _atoi(args[2]), _atoi(args[3])
    except ValueError:
        return StatusReply("FAILED! START OR END FORMAT ERROR!"), None
    return MultiBulkReply(anys_to_bytes(target.range(start, end))), None


def cmd_linsert(args: list[str], db: Any) -> Result:
    """LINSERT key BEFORE|AFTER pivot value"""
    if len(args) < 5:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    key, flag, pivot, value = args[1], args[2].lower(), args[3], args[4]
    target, problem = _lookup(db, key)
    if target is None:
        return problem, None
    if flag == "before":
        inserted = target.insert_before(pivot, value)
    elif flag == "after":
        inserted = target.insert_after(pivot, value)
    else:
        return StatusReply("FAILED! NO FLAG!"), None
    if inserted:
        return StatusReply("OK! LIST KEY " + key + " INSERT "), None
    return StatusReply("FAILED! THE PIVOT DO NOT EXISTED!"), None


def cmd_lset(args: list[str], db: Any) -> Result:
    """LSET key index value"""
    if len(args) < 4:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    target, problem = _lookup(db, args[1])
    if target is None:
        return problem, None
    try:
        index = _atoi(args[2])
    except ValueError:
        return StatusReply("FAILED! INDEX FORMAT ERROR!"), None
    value = args[3]
    try:
        changed = target.set(index, value)
    except IndexError:
        changed = False
    if changed:
        return StatusReply("OK! SET INDEX " + args[2] + " VALUE " + any_to_string(value)), None
    return StatusReply("FAILED! SAME AS BEFORE OR HAVE NO INDEX!"), None


def cmd_lrem(args: list[str], db: Any) -> Result:
    """LREM key value: remove the first matching element."""
    if len(args) < 3:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    target, problem = _lookup(db, args[1])
    if target is None:
        return problem, None
    if target.remove(args[2]):
        return StatusReply("OK! THE VALUE'S ELEMENT HAVE BEEN REMOVED!"), None
    return StatusReply("FAILED! THE VALUE'S ELEMENT MAY NOT EXISTED!"), None


def cmd_ltrim(args: list[str], db: Any) -> Result:
    """LTRIM key start end"""
    if len(args) < 4:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    target, problem = _lookup(db, args[1])
    if target is None:
        return problem, None
    try:
        start, end = _atoi(args[2]), _atoi(args[3])
    except ValueError:
        return StatusReply("FAILED! START OR END FORMAT ERROR!"), None
    if target.trim(start, end):
        return (
            StatusReply("OK! THE LIST HAVE BEEN TRIM! START " + args[2] + " END " + args[3]),
            None,
        )
    return StatusReply("FAILED! THE VALUE'S ELEMENT MAY NOT EXISTED!"), None


def _existing_list(cmd_line: CmdLine, db: Any) -> RedisList | None:
    value = db.data.get(_decode(cmd_line[1]))
    return value if isinstance(value, RedisList) else None


def lpush_rollback(cmd_line: CmdLine, db: Any) -> CmdLine | None:
    """Undo for LPUSH: trim the pushed values off the front."""
    target = _existing_list(cmd_line, db)
    if target is None:
        return None
    pushed = len(cmd_line) - 2
    return [b"ltrim", cmd_line[1], str(pushed).encode(), str(len(target) - 1).encode()]


def rpush_rollback(cmd_line: CmdLine, db: Any) -> CmdLine | None:
    """Undo for RPUSH: trim the pushed values off the back."""
    target = _existing_list(cmd_line, db)
    if target is None:
        return None
    pushed = len(cmd_line) - 2
    return [b"ltrim", cmd_line[1], b"0", str(len(target) - pushed - 1).encode()]


def lpop_rollback(cmd_line: CmdLine, db: Any) -> CmdLine | None:
    """Undo for LPOP: push the current first value back."""
    target = _existing_list(cmd_line, db)
    if target is None:
        return None
    return [b"lpush", cmd_line[1], any_to_bytes(target.header())]


def rpop_rollback(cmd_line: CmdLine, db: Any) -> CmdLine | None:
    """Undo for RPOP: push the current last value back."""
    target = _existing_list(cmd_line, db)
    if target is None:
        return None
    return [b"rpush", cmd_line[1], any_to_bytes(target.tail())]


def linsert_rollback(cmd_line: CmdLine, db: Any) -> CmdLine | None:
    """Undo for LINSERT: remove one occurrence of the inserted value."""
    if _existing_list(cmd_line, db) is None:
        return None
    return [b"lrem", cmd_line[1], b"1", cmd_line[4]]


def lset_rollback(cmd_line: CmdLine, db: Any) -> CmdLine | None:
    """Undo for LSET: set the index back to its current value."""
    target = _existing_list(cmd_line, db)
    if target is None:
        return None
    try:
        value = target.get_value(_atoi(_decode(cmd_line[2])))
    except (ValueError, IndexError):
        return None
    return [b"lset", cmd_line[1], cmd_line[2], any_to_bytes(value)]


def lrem_rollback(cmd_line: CmdLine, db: Any) -> CmdLine:
    """Undo for LREM: nothing can be recorded."""
    return []


def ltrim_rollback(cmd_line: CmdLine, db: Any) -> CmdLine:
    """Undo for LTRIM: nothing can be recorded."""
    return []