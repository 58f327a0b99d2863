from types import SimpleNamespace

import pytest

from miniredis.common import PARAMS_NUMBER_ERROR
from miniredis.dict import ConcurrentDict
from miniredis.protocol import ErrReply, FloatReply, IntReply, MultiBulkReply, StatusReply
from miniredis.zsetcmds import (
    cmd_zadd,
    cmd_zcard,
    cmd_zcount,
    cmd_zincby,
    cmd_zrange,
    cmd_zrangebylex,
    cmd_zrank,
    cmd_zrem,
    cmd_zscore,
    zadd_rollback,
    zincby_rollback,
    zrem_rollback,
)


@pytest.fixture
def db():
    return SimpleNamespace(data=ConcurrentDict(16), ttl_map=ConcurrentDict(16))


def _fill(db, key="k"):
    cmd_zadd(["zadd", key, "1", "a", "2", "b", "3", "c"], db)
    return ["a", "b", "c"]


def test_zadd_new_then_existing_key(db):
    reply, extra = cmd_zadd(["zadd", "key1", "10", "mem1"], db)
    assert reply == StatusReply("OK! NEW KEY key1 ADD:1")
    assert extra is None
    reply, _ = cmd_zadd(["zadd", "key1", "20", "mem2"], db)
    assert reply == StatusReply("OK! KEY key1 ADD:1")


def test_zadd_argument_errors(db):
    assert cmd_zadd(["zadd", "k", "1"], db)[0] == ErrReply(PARAMS_NUMBER_ERROR)
    assert cmd_zadd(["zadd", "k", "1", "a", "2"], db)[0] == ErrReply("ZADD CMD FORMAT ERROR")
    reply, _ = cmd_zadd(["zadd", "k", "x", "a"], db)
    assert isinstance(reply, ErrReply)
    assert reply.message.startswith("strconv.ParseFloat")
    assert "k" not in db.data


def test_zscore_present_and_missing(db):
    cmd_zadd(["zadd", "key1", "10", "mem1"], db)
    assert cmd_zscore(["zscore", "key1", "mem1"], db)[0] == FloatReply(10.0)
    assert cmd_zscore(["zscore", "key1", "nope"], db)[0] == FloatReply(-1.0)
    assert cmd_zscore(["zscore", "nokey", "mem1"], db)[0] == FloatReply(-1.0)


def test_zrangebylex_case_from_client(db):
    cmd_zadd(["zadd", "key1", "10", "mem1"], db)
    cmd_zadd(["zadd", "key1", "20", "mem2"], db)
    reply, _ = cmd_zrangebylex(["zrangebylex", "key1", "mem", "z"], db)
    assert reply == MultiBulkReply([b"key: mem1", b"key: mem2"])


def test_zrange_with_scores(db):
    cmd_zadd(["zadd", "k", "1.5", "a", "2.5", "b"], db)
    reply, _ = cmd_zrange(["zrange", "k", "0", "100", "withscore"], db)
    assert reply == MultiBulkReply([b"key: a   value: 1.5", b"key: b   value: 2.5"])
    reply, _ = cmd_zrange(["ZRANGE", "k", "2", "100"], db)
    assert reply == MultiBulkReply([b"key: b"])


def test_zrange_errors_and_missing_key(db):
    assert cmd_zrange(["zrange", "k", "0"], db)[0] == ErrReply(PARAMS_NUMBER_ERROR)
    assert cmd_zrange(["zrange", "k", "x", "1"], db)[0] == ErrReply("CMD PARSE ERROR")
    assert cmd_zrange(["zrange", "nokey", "0", "1"], db)[0] == MultiBulkReply([])


def test_zrank_forward_and_reverse_are_mirrored(db):
    members = _fill(db)
    for member in members:
        forward = cmd_zrank(["zrank", "k", member], db)[0].value
        backward = cmd_zrank(["zrank", "k", member, "reverse"], db)[0].value
        assert forward + backward == len(members) - 1
    assert cmd_zrank(["zrank", "k", "a"], db)[0] == IntReply(0)
    assert cmd_zrank(["zrank", "k", "zz"], db)[0] == IntReply(-1)
    assert cmd_zrank(["zrank", "nokey", "a"], db)[0] == IntReply(-1)


def test_zcount_by_score_and_by_member(db):
    _fill(db)
    assert cmd_zcount(["zcount", "k", "2", "3"], db)[0] == IntReply(2)
    assert cmd_zcount(["zcount", "k", "a", "b"], db)[0] == IntReply(2)
    assert cmd_zcount(["zcount", "nokey", "0", "1"], db)[0] == IntReply(-1)


def test_zcard(db):
    members = _fill(db)
    assert cmd_zcard(["zcard", "k"], db)[0] == IntReply(len(members))
    assert cmd_zcard(["zcard", "nokey"], db)[0] == IntReply(-1)


def test_zrem(db):
    members = _fill(db)
    reply, _ = cmd_zrem(["zrem", "k", "a"], db)
    assert reply == StatusReply("OK! KEY k DELETE:1")
    assert cmd_zscore(["zscore", "k", "a"], db)[0] == FloatReply(-1.0)
    assert cmd_zcard(["zcard", "k"], db)[0] == IntReply(len(members) - 1)
    assert cmd_zrem(["zrem", "nokey", "a"], db)[0] == StatusReply(
        "FAILED! THE KEY DO NOT EXISTED!"
    )


def test_zincby_sets_increment_as_score(db):
    _fill(db)
    assert cmd_zincby(["zincby", "k", "5", "b"], db)[0] == StatusReply("OK! KEY k SCORE INC")
    assert cmd_zscore(["zscore", "k", "b"], db)[0] == FloatReply(5.0)
    assert cmd_zincby(["zincby", "k", "5", "zz"], db)[0] == StatusReply(
        "FAILED! THE MEMBER DO NOT EXISTED!"
    )
    reply, _ = cmd_zincby(["zincby", "k", "bad", "b"], db)
    assert isinstance(reply, ErrReply)
    assert reply.message.startswith("ZINCBY INCREMENT PARSE ERROR:")


def test_wrong_type_raises(db):
    db.data.put("s", "text")
    with pytest.raises(TypeError):
        cmd_zscore(["zscore", "s", "a"], db)


def test_zadd_rollback():
    line = [b"zadd", b"k", b"1", b"a", b"2", b"b"]
    assert zadd_rollback(line, None) == [b"zrem", b"k", b"a", b"b"]


def test_zrem_rollback_restores_score(db):
    cmd_zadd(["zadd", "k", "1.5", "a", "2.5", "b"], db)
    undo = zrem_rollback([b"zrem", b"k", b"a", b"missing"], db)
    assert undo == [b"zadd", b"k", b"1.5", b"a"]
    cmd_zrem(["zrem", "k", "a"], db)
    cmd_zadd([part.decode() for part in undo], db)
    assert cmd_zscore(["zscore", "k", "a"], db)[0] == FloatReply(1.5)
    assert zrem_rollback([b"zrem", b"nokey", b"a"], db) is None


def test_zincby_rollback():
    assert zincby_rollback([b"zincby", b"k", b"2.5", b"m"], None) == [
        b"zincby",
        b"k",
        b"-2.5",
        b"m",
    ]
    assert zincby_rollback([b"zincby", b"k", b"nan?", b"m"], None) is None