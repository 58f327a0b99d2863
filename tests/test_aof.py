from datetime import datetime, timezone

import pytest

from miniredis.aof import AofPersister
from miniredis.parser import parse_stream
from miniredis.protocol import MultiBulkReply


def _cmd(*parts):
    return MultiBulkReply([part.encode() for part in parts])


def _commands(path):
    with open(path, "rb") as handle:
        return [
            payload.data.args
            for payload in parse_stream(handle)
            if payload.err is None
        ]


@pytest.fixture
def aof_path(tmp_path):
    path = tmp_path / "data.aof"
    path.write_bytes(b"")
    return path


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        AofPersister(str(tmp_path / "none.aof"), str(tmp_path))


def test_append_writes_wire_bytes(aof_path, tmp_path):
    reply = _cmd("set", "a", "1")
    with AofPersister(str(aof_path), str(tmp_path)) as aof:
        aof.append(reply)
    assert aof_path.read_bytes() == reply.to_bytes()


def test_load_replays_commands(aof_path, tmp_path):
    seen = []
    with AofPersister(str(aof_path), str(tmp_path)) as aof:
        aof.append(_cmd("set", "a", "1"))
        aof.append(_cmd("set", "b", "2"))
        count = aof.load(1024, seen.append)
    assert count == 2
    assert seen == [["set", "a", "1"], ["set", "b", "2"]]


def test_load_respects_byte_limit(aof_path, tmp_path):
    first = _cmd("set", "a", "1")
    seen = []
    with AofPersister(str(aof_path), str(tmp_path)) as aof:
        aof.append(first)
        aof.append(_cmd("set", "b", "2"))
        aof.load(len(first.to_bytes()), seen.append)
    assert seen == [["set", "a", "1"]]


def test_appends_during_load_are_ignored(aof_path, tmp_path):
    with AofPersister(str(aof_path), str(tmp_path)) as aof:
        aof.append(_cmd("set", "a", "1"))
        before = aof_path.read_bytes()
        aof.load(1024, lambda args: aof.append(_cmd(*args)))
    assert aof_path.read_bytes() == before


def test_rewrite_replaces_log_with_entries(aof_path, tmp_path):
    with AofPersister(str(aof_path), str(tmp_path)) as aof:
        aof.append(_cmd("set", "k", "old"))
        aof.append(_cmd("set", "k", "new"))
        assert aof.rewrite([("k", "new", None), ("x", 5, None)]) is True
        aof.append(_cmd("set", "z", "9"))
    assert _commands(aof_path) == [[b"set", b"k", b"new"], [b"set", b"z", b"9"]]


def test_rewrite_keeps_commands_appended_meanwhile(aof_path, tmp_path):
    with AofPersister(str(aof_path), str(tmp_path)) as aof:
        aof.append(_cmd("set", "k", "v"))
        ctx = aof.start_rewrite()
        aof.append(_cmd("set", "late", "1"))
        aof.do_rewrite(ctx, [("k", "v", None)])
        assert aof.finish_rewrite(ctx) is True
    assert _commands(aof_path) == [[b"set", b"k", b"v"], [b"set", b"late", b"1"]]


def test_rewrite_adds_expiration(aof_path, tmp_path):
    moment = datetime(2030, 1, 1, tzinfo=timezone.utc)
    with AofPersister(str(aof_path), str(tmp_path)) as aof:
        aof.rewrite([("k", "v", moment)])
    commands = _commands(aof_path)
    assert commands[0] == [b"set", b"k", b"v"]
    assert commands[1][:2] == [b"PEXPIREAT", b"k"]
    assert int(commands[1][2]) == int(moment.timestamp() * 1000)