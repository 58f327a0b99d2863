import time

import pytest

from miniredis.common import (
    Extra,
    cmd_delete,
    cmd_get,
    cmd_mget,
    cmd_mset,
    cmd_ping,
    cmd_set,
    delete_rollback,
    set_rollback,
)
from miniredis.dict import ConcurrentDict
from miniredis.protocol import BulkReply, ErrReply, MultiBulkReply, StatusReply


class _Db:
    def __init__(self):
        self.data = ConcurrentDict(16)
        self.ttl_map = ConcurrentDict(16)


@pytest.fixture
def db():
    return _Db()


def _past_ms():
    return time.time_ns() // 1_000_000 - 10_000


def test_set_then_get_round_trip(db):
    reply, extra = cmd_set(["set", "k", "v"], db)
    assert reply == StatusReply("SET OK , NEW KEY")
    assert extra.to_persist is True
    assert extra.special_aof == [MultiBulkReply([b"set", b"k", b"v"])]
    assert cmd_get(["get", "k"], db) == (BulkReply(b"v"), None)


def test_param_count_errors(db):
    error = ErrReply("COMMAND'S PARAMS NUMBER ERROR")
    assert cmd_set(["set", "k"], db) == (error, None)
    assert cmd_get(["get"], db) == (error, None)
    assert cmd_mset(["mset", "a", "1", "b"], db) == (error, None)
    assert cmd_mget(["mget", "a"], db) == (error, None)
    assert cmd_delete(["delete"], db) == (error, None)


def test_get_missing_key(db):
    reply, extra = cmd_get(["get", "nope"], db)
    assert reply == BulkReply(b"DO NOT EXISTED! KEY:nope")
    assert extra is None


def test_get_expired_key_is_removed(db):
    cmd_set(["set", "k", "v"], db)
    db.ttl_map.put("k", _past_ms())
    reply, _ = cmd_get(["get", "k"], db)
    assert reply == BulkReply(b"DO NOT EXISTED! KEY:k")
    assert "k" not in db.data
    assert "k" not in db.ttl_map


def test_get_non_string_raises(db):
    db.data.put("k", object())
    with pytest.raises(TypeError):
        cmd_get(["get", "k"], db)


def test_mset_then_mget(db):
    reply, _ = cmd_mset(["mset", "a", "1", "b", "2"], db)
    assert reply == StatusReply("SET OK , ALL NEW KEY")
    reply, _ = cmd_mget(["mget", "a", "b"], db)
    assert reply == MultiBulkReply([b"1", b"2"])


def test_mget_reports_missing_keys(db):
    cmd_mset(["mset", "a", "1", "b", "2"], db)
    db.ttl_map.put("b", _past_ms())
    reply, _ = cmd_mget(["mget", "a", "b", "c"], db)
    assert isinstance(reply, StatusReply)
    assert reply.status.startswith("FAILED! SOME KEY IS NOT EXIST! KEYS:b c ")
    assert reply.status.endswith(" FIND: 1")
    assert "b" not in db.data


def test_delete(db):
    cmd_set(["set", "k", "v"], db)
    assert cmd_delete(["delete", "k"], db)[0] == StatusReply("DELETE OK")
    assert cmd_delete(["delete", "k"], db)[0] == StatusReply("THE KEY IS NOT EXISTED")


def test_ping(db):
    assert cmd_ping(["ping"], db) == (BulkReply(b"PONG"), None)


def test_extra_defaults():
    extra = Extra()
    assert extra.to_persist is False
    assert extra.special_aof == []


def test_set_rollback_deletes_key(db):
    assert set_rollback([b"set", b"k", b"v"], db) == [b"delete", b"k"]


def test_delete_rollback_restores_value(db):
    assert delete_rollback([b"delete", b"k"], db) is None
    cmd_set(["set", "k", "v"], db)
    assert delete_rollback([b"delete", b"k"], db) == [b"set", b"v"]