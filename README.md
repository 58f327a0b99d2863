# miniredis

A small key-value server that speaks the Redis serialization protocol (RESP).
It keeps strings, lists and sorted sets in memory, supports key expiry, and
can record write commands in an append-only file (AOF) that is replayed at
start-up and rewritten periodically.

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Running the server

```
miniredis-server --config path/to/config.yaml
```

Options:

- `--config` – a YAML file, or a directory holding `config.yaml` or
  `config.yml` (default: `config`). The file must exist.
- `--name` – the server's name (default: `redis-server` followed by the
  current time and a random number).
- `--version` – the server's version string (default: `1.0`).
- `--cluster` – not supported; the command exits with status 2.

The server binds to `127.0.0.1` on a free port, or on port `9999` when
`is_dev` is true in the configuration. It logs the address it binds to, and
shuts down on SIGINT, SIGTERM, SIGHUP or SIGQUIT.

Commands are sent as RESP arrays; a plain space-separated line is also
accepted. Command names are case-insensitive. For example:

```
SET greeting hello
GET greeting
ZADD board 10 alice 20 bob
ZRANGE board 0 100 withscore
LPUSH queue a b c
EXPIRE greeting 30
TTL greeting
```

The commands available are:

- strings: `set`, `get`, `mset`, `mget`, `delete`, `ping`
- sorted sets: `zadd`, `zrem`, `zrange`, `zrangebylex`, `zrank`, `zscore`,
  `zcount`, `zincby`, `zcard`
- expiry: `expire`, `pexpire`, `expireat`, `pexpireat`, `ttl`, `pttl`,
  `persist`
- lists: `lpush`, `rpush`, `lpop`, `rpop`, `lindex`, `llen`, `lrange`,
  `linser`, `lset`, `lrem`, `ltrim`

Replies are human-readable status lines (for example `SET OK , NEW KEY`)
rather than the replies a standard Redis server gives. Any other command
name is answered with the error `NO SUCH COMMAND`.

## Configuration

`miniredis.config.load_config(path)` reads a YAML file and returns a
`Settings` object holding an `AofConfig`, an `EtcdConfig` and an `is_dev`
flag:

```yaml
is_dev: true
persist:
  aof:
    aof_file: ./data/appendonly.aof
    temp_dir: ./data/tmp
    aof_rewrite_time: 60
etcd_addresses:
  - 127.0.0.1:2379
dial_time_out: 5
ttl: 10
```

`aof_file` must name an existing file; leave it empty to run without a log.
`aof_rewrite_time` is the number of seconds between log rewrites. The etcd
settings are read but not used by the server.

## Using it as a library

The database can be driven directly, without a network:

```python
from miniredis.database import Database

db = Database()                  # no append-only file
reply = db.exec([b"set", b"greeting", b"hello"])
print(reply.to_bytes())          # b'+SET OK , NEW KEY\r\n'
print(db.exec([b"get", b"greeting"]).to_bytes())
db.close()
```

`Database(aof_filename, tmp_dir)` replays and appends to an existing log
file. `start_background(rewrite_interval, check_interval)` starts the
periodic log rewrite and expired-key removal; `remove_expired()` and
`rewrite_aof()` run them once.

Every command returns a `miniredis.protocol.Reply` (`StatusReply`,
`ErrReply`, `IntReply`, `FloatReply`, `BulkReply`, `MultiBulkReply` or
`TimeReply`), whose `to_bytes()` gives its RESP encoding.

RESP input can be decoded with the parser:

```python
from miniredis.parser import parse_one

reply = parse_one(b"*2\r\n$3\r\nGET\r\n$1\r\nk\r\n")
```

`parse_stream(reader)` yields `Payload` objects for a whole binary stream.

The building blocks are usable on their own as well:

- `miniredis.sortedset.SortedSet` – a skip-list backed sorted set with range
  queries by score (`ScoreBorder`) or member (`LexBorder`) from
  `miniredis.border`.
- `miniredis.linkedlist.RedisList` – the list type behind the list commands.
- `miniredis.dict.ConcurrentDict` – a sharded, lock-protected dictionary.
- `miniredis.consistent.ConsistentHash` – a consistent-hash ring for
  spreading keys over nodes.
- `miniredis.snowflake.Worker` – a snowflake-style unique id generator.
- `miniredis.aof.AofPersister` – append-only file writing, replay and rewrite.

## What it does not do

- There are no set or hash commands.
- There is no cluster mode and no service registration; `--cluster` is
  refused.
- No client program is included; use any RESP client.
- Only `set` is written to the append-only file, and a rewrite keeps only
  string keys (with their expiry); lists and sorted sets are not persisted.