"""TCP server: connection handling, the accept loop and the command line."""

from __future__ import annotations

import argparse
import logging
import random
import signal
import socket
import sys
import threading
import time
from dataclasses import dataclass

from .config import load_config
from .database import Database
from .parser import parse_stream
from .protocol import UNKNOWN_BYTES_RESULT, ErrReply, MultiBulkReply

logger = logging.getLogger(__name__)

DEV_PORT = "9999"
_ACCEPT_POLL = 0.2


@dataclass
class ServerConfig:
    """Where and as what the server listens."""

    addr: str
    name: str = "redis-server"
    version: str = "1.0"
    max_connect: int = 0
    timeout: float = 0.0


class Handler:
    """Serves one database to the connections handed to it."""

    def __init__(self, db: Database) -> None:
        self.db = db
        self.closed = False
        self._connections: set[socket.socket] = set()
        self._lock = threading.Lock()

    def handle(self, conn: socket.socket) -> None:
        """Read commands from ``conn`` and write the replies until it fails or ends."""
        with self._lock:
            self._connections.add(conn)
        try:
            with conn.makefile("rb") as reader:
                for payload in parse_stream(reader):
                    if payload.err is not None:
                        return
                    if payload.data is None:
                        logger.warning("payload is nil")
                        continue
                    if not isinstance(payload.data, MultiBulkReply):
                        logger.warning("require multi bulk protocol")
                        continue
                    args = [arg or b"" for arg in payload.data.args]
                    try:
                        result = self.db.exec(args)
                    except Exception as exc:
                        result = ErrReply(str(exc))
                    data = result.to_bytes() if result is not None else UNKNOWN_BYTES_RESULT
                    try:
                        conn.sendall(data)
                    except OSError:
                        return
        except OSError:
            return
        finally:
            with self._lock:
                self._connections.discard(conn)

    def close(self) -> None:
        """Mark the handler closed and shut down open connections."""
        self.closed = True
        with self._lock:
            connections = list(self._connections)
        for conn in connections:
            try:
                conn.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass


def get_free_port(is_dev: bool = False) -> str:
    """A port number that is free now; the fixed development port when ``is_dev``."""
    if is_dev:
        return DEV_PORT
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as probe:
            probe.bind(("", 0))
            port = probe.getsockname()[1]
    except OSError as exc:
        print("Failed to listen:", exc)
        return ""
    time.sleep(0.5)
    return str(port)


def _serve_connection(handler: Handler, conn: socket.socket) -> None:
    try:
        handler.handle(conn)
    finally:
        conn.close()


def listen_and_serve(
    listener: socket.socket, handler: Handler, stop_event: threading.Event
) -> None:
    """Accept connections until ``stop_event`` is set or the listener fails."""
    listener.settimeout(_ACCEPT_POLL)
    try:
        while not stop_event.is_set():
            try:
                conn, _ = listener.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            conn.settimeout(None)
            logger.info("accept link")
            threading.Thread(
                target=_serve_connection, args=(handler, conn), daemon=True
            ).start()
    finally:
        logger.info("shut down...")
        listener.close()
        handler.close()


def _split_addr(addr: str) -> tuple[str, int]:
    host, _, port = addr.rpartition(":")
    return host, int(port)


def listen_and_serve_with_signal(config: ServerConfig, handler: Handler) -> None:
    """Listen on ``config.addr`` and serve until a termination signal arrives."""
    stop_event = threading.Event()
    previous: dict[int, object] = {}
    if threading.current_thread() is threading.main_thread():
        for name in ("SIGHUP", "SIGQUIT", "SIGTERM", "SIGINT"):
            signum = getattr(signal, name, None)
            if signum is not None:
                previous[signum] = signal.signal(signum, lambda *_: stop_event.set())
    try:
        listener = socket.create_server(_split_addr(config.addr))
        logger.info("bind: %s,start listening...", config.addr)
        listen_and_serve(listener, handler, stop_event)
    finally:
        for signum, old in previous.items():
            signal.signal(signum, old)


def main(argv: list[str] | None = None) -> int:
    """Run the server from the command line."""
    default_name = f"redis-server{int(time.time())}{random.randrange(1_000_000)}"
    parser = argparse.ArgumentParser(prog="miniredis")
    parser.add_argument("--cluster", action="store_true", help="is cluster mod")
    parser.add_argument("--version", default="1.0", help="the server's version")
    parser.add_argument("--name", default=default_name, help="the server's name")
    parser.add_argument("--config", default="config", help="config file or directory")
    args = parser.parse_args(argv)
    if args.cluster:
        print("cluster mode is not supported", file=sys.stderr)
        return 2
    logging.basicConfig(level=logging.INFO)
    settings = load_config(args.config)
    config = ServerConfig(
        addr="127.0.0.1:" + get_free_port(settings.is_dev),
        name=args.name,
        version=args.version,
    )
    db = Database(settings.aof.aof_file, settings.aof.tmp_file or None)
    try:
        db.start_background(settings.aof.aof_rewrite_time)
        listen_and_serve_with_signal(config, Handler(db))
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())