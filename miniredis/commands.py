"""The table of commands: handlers, write flags and undo builders."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from . import common, expire, listcmds, zsetcmds
from .common import CmdLine, Extra
from .protocol import Reply

CommandHandler = Callable[[list[str], Any], "tuple[Reply, Extra | None]"]
UndoHandler = Callable[[CmdLine, Any], "CmdLine | None"]


@dataclass(frozen=True)
class Command:
    """A named command and the function that runs it against a database."""

    name: str
    handler: CommandHandler


_COMMANDS: dict[str, Command] = {
    command.name: command
    for command in (
        Command("get", common.cmd_get),
        Command("delete", common.cmd_delete),
        Command("set", common.cmd_set),
        Command("ping", common.cmd_ping),
        Command("mset", common.cmd_mset),
        Command("mget", common.cmd_mget),
        Command("zadd", zsetcmds.cmd_zadd),
        Command("zrem", zsetcmds.cmd_zrem),
        Command("zrange", zsetcmds.cmd_zrange),
        Command("zrangebylex", zsetcmds.cmd_zrangebylex),
        Command("zrank", zsetcmds.cmd_zrank),
        Command("zscore", zsetcmds.cmd_zscore),
        Command("zcount", zsetcmds.cmd_zcount),
        Command("zincby", zsetcmds.cmd_zincby),
        Command("zcard", zsetcmds.cmd_zcard),
        Command("expire", expire.cmd_expire),
        Command("pexpire", expire.cmd_pexpire),
        Command("expireat", expire.cmd_expireat),
        Command("pexpireat", expire.cmd_pexpireat),
        Command("ttl", expire.cmd_ttl),
        Command("pttl", expire.cmd_pttl),
        Command("persist", expire.cmd_persist),
        Command("lpush", listcmds.cmd_lpush),
        Command("rpush", listcmds.cmd_rpush),
        Command("lpop", listcmds.cmd_lpop),
        Command("rpop", listcmds.cmd_rpop),
        Command("lindex", listcmds.cmd_lindex),
        Command("llen", listcmds.cmd_llen),
        Command("lrange", listcmds.cmd_lrange),
        Command("linser", listcmds.cmd_linsert),
        Command("lset", listcmds.cmd_lset),
        Command("lrem", listcmds.cmd_lrem),
        Command("ltrim", listcmds.cmd_ltrim),
    )
}

_WRITE_COMMANDS: dict[str, bool] = {
    "get": False,
    "delete": True,
    "set": True,
    "ping": False,
    "mset": True,
    "mget": False,
    "zadd": True,
    "zrem": True,
    "zrange": False,
    "zrangebylex": False,
    "zrank": False,
    "zscore": False,
    "zcount": False,
    "zincby": True,
    "zcard": False,
    "expire": True,
    "pexpire": True,
    "expireat": False,
    "pexpireat": False,
    "ttl": False,
    "pttl": False,
    "persist": True,
    "lpush": True,
    "rpush": True,
    "lpop": True,
    "rpop": True,
    "lindex": False,
    "llen": False,
    "lrange": False,
    "linser": True,
    "lset": True,
    "lrem": True,
    "ltrim": True,
    "sadd": True,
    "srem": True,
    "sismember": False,
    "scard": False,
    "smembers": False,
    "srangemember": False,
    "spop": True,
    "sinter": False,
    "sunion": False,
    "sdiff": False,
    "sinterstore": False,
    "sunionstore": False,
    "sdiffstore": False,
    "smove": True,
    "srandmember": False,
    "hset": True,
    "hget": False,
    "hdel": True,
    "hexists": False,
    "hgetall": False,
    "hincrby": True,
    "hincrbyfloat": True,
    "hkeys": False,
    "hlen": True,
    "hmset": True,
    "hmget": False,
    "hsetnx": True,
    "hvals": False,
    "hscan": False,
}

_UNDO: dict[str, UndoHandler | None] = {
    "delete": common.delete_rollback,
    "set": common.set_rollback,
    "mset": None,
    "zadd": zsetcmds.zadd_rollback,
    "zrem": zsetcmds.zrem_rollback,
    "zincby": zsetcmds.zincby_rollback,
    "expire": expire.expire_rollback,
    "pexpire": expire.pexpire_rollback,
    "persist": expire.persist_rollback,
    "lpush": listcmds.lpush_rollback,
    "rpush": listcmds.rpush_rollback,
    "lpop": listcmds.lpop_rollback,
    "rpop": listcmds.rpop_rollback,
    "linser": listcmds.linsert_rollback,
    "lset": listcmds.lset_rollback,
    "lrem": listcmds.lrem_rollback,
    "ltrim": listcmds.ltrim_rollback,
}


def get_command(name: str) -> Command | None:
    """The command registered under ``name`` (lower case), or None."""
    return _COMMANDS.get(name)


def is_write(name: str) -> bool:
    """True when the command modifies data."""
    return _WRITE_COMMANDS.get(name, False)


def undo_handler(name: str) -> UndoHandler | None:
    """The function building the undo command for ``name``, or None."""
    return _UNDO.get(name)