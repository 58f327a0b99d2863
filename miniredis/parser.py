"""Streaming parser for the RESP wire format."""

from __future__ import annotations

import io
import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import BinaryIO

from .protocol import (
    BulkReply,
    ErrReply,
    IntReply,
    MultiBulkReply,
    Reply,
    StatusReply,
    make_null_bulk_reply,
    make_null_multi_bulk,
)

_CRLF = b"\r\n"
_INT_PATTERN = re.compile(rb"[+-]?[0-9]+")


class ProtocolError(Exception):
    """Raised or reported for malformed protocol data."""


@dataclass
class Payload:
    """One parsed reply, or the error met while parsing."""

    data: Reply | None = None
    err: Exception | None = None


def _text(raw: bytes) -> str:
    return raw.decode("utf-8", "surrogateescape")


def _parse_int(raw: bytes, bits: int) -> int:
    if not _INT_PATTERN.fullmatch(raw):
        raise ValueError(f"invalid syntax: {_text(raw)!r}")
    value = int(raw)
    limit = 1 << (bits - 1)
    if not -limit <= value < limit:
        raise ValueError(f"value out of range: {_text(raw)!r}")
    return value


def _read_exact(reader: BinaryIO, size: int) -> bytes:
    data = reader.read(size)
    if len(data) < size:
        raise EOFError("unexpected EOF" if data else "EOF")
    return data


def _read_line(reader: BinaryIO) -> bytes:
    line = reader.readline()
    if not line.endswith(b"\n"):
        raise EOFError("EOF")
    return line


def _protocol_error(message: str) -> Payload:
    return Payload(err=ProtocolError("protocol error: " + message))


def _parse_bulk_string(header: bytes, reader: BinaryIO) -> Payload:
    try:
        length = _parse_int(header[1:], 64)
    except ValueError:
        length = None
    if length is None or length < -1:
        return _protocol_error("illegal bulk string header: " + _text(header))
    if length == -1:
        return Payload(data=make_null_bulk_reply())
    body = _read_exact(reader, length + 2)
    return Payload(data=BulkReply(body[:length]))


def _parse_array(header: bytes, reader: BinaryIO) -> Payload | None:
    try:
        count = _parse_int(header[1:], 32)
    except ValueError:
        count = None
    if count is None or count < 0:
        return _protocol_error("parse arr len error")
    if count == 0:
        return Payload(data=make_null_multi_bulk())
    items: list[bytes | None] = []
    for _ in range(count):
        item_header = _read_line(reader)
        if item_header.endswith(_CRLF):
            item_header = item_header[:-2]
        if not item_header:
            return _protocol_error("illegal bulk string header")
        try:
            length = _parse_int(item_header[1:], 64)
        except ValueError:
            length = None
        if length is None or length < -1:
            return _protocol_error("illegal bulk string header")
        if length == -1:
            # A null element abandons the whole array.
            return None
        body = _read_exact(reader, length + 2)
        items.append(body[:length])
    return Payload(data=MultiBulkReply(items))


def parse_stream(reader: BinaryIO) -> Iterator[Payload]:
    """Yield payloads read from a binary stream until it ends or fails.

    The last payload always carries the error that stopped parsing;
    the end of the stream is reported as :class:`EOFError`.
    """
    while True:
        try:
            line = _read_line(reader)
        except EOFError as exc:
            yield Payload(err=exc)
            return
        if len(line) <= 2 or line[-2:-1] != b"\r":
            continue
        line = line[:-2]
        kind = line[:1]
        if kind == b"+":
            yield Payload(data=StatusReply(_text(line[1:])))
        elif kind == b"-":
            yield Payload(data=ErrReply(_text(line[1:])))
        elif kind == b":":
            try:
                value = _parse_int(line[1:], 64)
            except ValueError as exc:
                yield Payload(err=exc)
                return
            yield Payload(data=IntReply(value))
        elif kind in (b"$", b"*"):
            try:
                if kind == b"$":
                    payload = _parse_bulk_string(line, reader)
                else:
                    payload = _parse_array(line, reader)
            except EOFError as exc:
                yield Payload(err=exc)
                return
            if payload is not None:
                yield payload
        else:
            yield Payload(data=MultiBulkReply(line.split(b" ")))


def parse_one(data: bytes) -> Reply:
    """Parse the first reply in ``data``, raising the error met instead."""
    for payload in parse_stream(io.BytesIO(data)):
        if payload.err is not None:
            raise payload.err
        return payload.data
    raise ProtocolError("no reply")