"""Sorted-set commands and their undo commands."""

from __future__ import annotations

import math
from typing import Any

from .border import (
    SCORE_NEGATIVE_INF,
    SCORE_POSITIVE_INF,
    Border,
    LexBorder,
    ScoreBorder,
)
from .common import PARAMS_NUMBER_ERROR, CmdLine, Extra
from .protocol import (
    ErrReply,
    FloatReply,
    IntReply,
    MultiBulkReply,
    Reply,
    StatusReply,
    make_null_multi_bulk,
)
from .sortedset import SortedSet
from .trans import any_to_bytes, any_to_string

_KEY_MISSING = "FAILED! THE KEY DO NOT EXISTED!"

Result = tuple[Reply, "Extra | None"]


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", "surrogateescape")


def _parse_float(text: str) -> float:
    """Parse a float the strict way: no padding, no digit separators."""
    invalid = not text or text != text.strip() or "_" in text
    value = 0.0
    if not invalid:
        try:
            value = float(text)
        except ValueError:
            invalid = True
    if invalid:
        raise ValueError(f'strconv.ParseFloat: parsing "{text}": invalid syntax')
    if math.isinf(value) and "inf" not in text.lower():
        raise ValueError(f'strconv.ParseFloat: parsing "{text}": value out of range')
    return value


def _sorted_set(db: Any, key: str) -> SortedSet | None:
    """The sorted set under ``key``; None when absent, TypeError for another type."""
    value = db.data.get(key)
    if value is None:
        return None
    if not isinstance(value, SortedSet):
        raise TypeError(f"value of key {key!r} is not a sorted set")
    return value


def _score_text(score: float) -> str:
    return any_to_string(float(score))


def cmd_zadd(args: list[str], db: Any) -> Result:
    """ZADD key score member [score member ...]"""
    if len(args) < 4:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    if len(args) % 2 != 0:
        return ErrReply("ZADD CMD FORMAT ERROR"), None
    pairs: list[tuple[str, float]] = []
    for score_text, member in zip(args[2::2], args[3::2]):
        try:
            score = _parse_float(score_text)
        except ValueError as exc:
            return ErrReply(str(exc)), None
        pairs.append((member, score))

    key = args[1]
    target = _sorted_set(db, key)
    if target is not None:
        for member, score in pairs:
            target.add(member, score)
        return StatusReply(f"OK! KEY {key} ADD:{len(pairs)}"), None
    target = SortedSet()
    for member, score in pairs:
        target.add(member, score)
    db.data.put(key, target)
    return StatusReply(f"OK! NEW KEY {key} ADD:{len(pairs)}"), None


def cmd_zrem(args: list[str], db: Any) -> Result:
    """ZREM key member [member ...]"""
    if len(args) < 3:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    key, members = args[1], args[2:]
    target = _sorted_set(db, key)
    if target is None:
        return StatusReply(_KEY_MISSING), None
    for member in members:
        target.delete(member)
    return StatusReply(f"OK! KEY {key} DELETE:{len(members)}"), None


def _range_reply(db: Any, key: str, low: Border, high: Border, with_scores: bool) -> Result:
    target = _sorted_set(db, key)
    if target is None:
        return make_null_multi_bulk(), None
    elements = target.range(low, high, 0, -1, False)
    if with_scores:
        lines = [
            _encode(f"key: {element.member}   value: {_score_text(element.score)}")
            for element in elements
        ]
    else:
        lines = [_encode(f"key: {element.member}") for element in elements]
    return MultiBulkReply(lines), None


def _zrange(args: list[str], db: Any) -> Result:
    """ZRANGE key min max [withscore] or ZRANGEBYLEX key min max [withscore]."""
    with_scores = len(args) == 5 and args[4].lower() == "withscore"
    name = args[0].lower()
    try:
        low_value = _parse_float(args[2])
        high_value = _parse_float(args[3])
        numeric = True
    except ValueError:
        numeric = False
    if numeric and name == "zrange":
        return _range_reply(
            db, args[1], ScoreBorder(value=low_value), ScoreBorder(value=high_value), with_scores
        )
    if name == "zrangebylex":
        return _range_reply(
            db, args[1], LexBorder(value=args[2]), LexBorder(value=args[3]), with_scores
        )
    return ErrReply("CMD PARSE ERROR"), None


def cmd_zrange(args: list[str], db: Any) -> Result:
    """ZRANGE key min max [withscore]: members whose score lies in the range."""
    if len(args) < 4:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    return _zrange(args, db)


def cmd_zrangebylex(args: list[str], db: Any) -> Result:
    """ZRANGEBYLEX key min max [withscore]: members whose name lies in the range."""
    if len(args) < 4:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    return _zrange(args, db)


def cmd_zrank(args: list[str], db: Any) -> Result:
    """ZRANK key member [reverse]"""
    if len(args) < 3:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    reverse = len(args) == 4 and args[-1].lower() == "reverse"
    target = _sorted_set(db, args[1])
    if target is None:
        return IntReply(-1), None
    return IntReply(target.get_rank(args[2], reverse)), None


def cmd_zscore(args: list[str], db: Any) -> Result:
    """ZSCORE key member"""
    if len(args) < 3:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    target = _sorted_set(db, args[1])
    if target is None:
        return FloatReply(-1.0), None
    element = target.get(args[2])
    if element is None:
        return FloatReply(-1.0), None
    return FloatReply(element.score), None


def cmd_zcount(args: list[str], db: Any) -> Result:
    """ZCOUNT key min max, by score when max is a number, by member otherwise."""
    if len(args) < 4:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    low: Border
    high: Border
    try:
        high_value = _parse_float(args[3])
    except ValueError:
        low, high = LexBorder(value=args[2]), LexBorder(value=args[3])
    else:
        try:
            low_value = _parse_float(args[2])
        except ValueError:
            low_value = 0.0
        low, high = ScoreBorder(value=low_value), ScoreBorder(value=high_value)
    target = _sorted_set(db, args[1])
    if target is None:
        return IntReply(-1), None
    return IntReply(target.range_count(low, high)), None


def cmd_zincby(args: list[str], db: Any) -> Result:
    """ZINCBY key increment member.

    An existing member is re-added with the increment as its new score.
    """
    if len(args) < 4:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    try:
        increment = _parse_float(args[2])
    except ValueError as exc:
        return ErrReply("ZINCBY INCREMENT PARSE ERROR:" + str(exc)), None
    key, member = args[1], args[3]
    target = _sorted_set(db, key)
    if target is None:
        return StatusReply(_KEY_MISSING), None
    if target.get(member) is None:
        return StatusReply("FAILED! THE MEMBER DO NOT EXISTED!"), None
    target.delete(member)
    target.add(member, 0.0 + increment)
    return StatusReply(f"OK! KEY {key} SCORE INC"), None


def cmd_zcard(args: list[str], db: Any) -> Result:
    """ZCARD key"""
    if len(args) < 2:
        return ErrReply(PARAMS_NUMBER_ERROR), None
    target = _sorted_set(db, args[1])
    if target is None:
        return IntReply(-1), None
    count = target.range_count(
        ScoreBorder(inf=SCORE_NEGATIVE_INF), ScoreBorder(inf=SCORE_POSITIVE_INF)
    )
    return IntReply(count), None


def zadd_rollback(cmd_line: CmdLine, db: Any) -> CmdLine:
    """Undo for ZADD: remove every added member."""
    return [b"zrem", cmd_line[1], *cmd_line[3::2]]


def zrem_rollback(cmd_line: CmdLine, db: Any) -> CmdLine | None:
    """Undo for ZREM: add the removed members back with their current scores."""
    value = db.data.get(_decode(cmd_line[1]))
    if not isinstance(value, SortedSet):
        return None
    rollback: CmdLine = [b"zadd", cmd_line[1]]
    for raw in cmd_line[2:]:
        element = value.get(_decode(raw))
        if element is not None:
            rollback.append(any_to_bytes(float(element.score)))
            rollback.append(any_to_bytes(element.member))
    return rollback


def zincby_rollback(cmd_line: CmdLine, db: Any) -> CmdLine | None:
    """Undo for ZINCBY: apply the negated increment."""
    try:
        increment = _parse_float(_decode(cmd_line[2]))
    except ValueError:
        return None
    return [b"zincby", cmd_line[1], _encode(_score_text(-increment)), cmd_line[3]]