"""RESP reply types and their wire encoding."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime

from .trans import any_to_string

CRLF = "\r\n"
NULL_BULK_BYTES = b"$-1"
UNKNOWN_BYTES_RESULT = b"-Err\r\n"

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def _encode(text: str) -> bytes:
    return text.encode(_ENCODING, _ERRORS)


class Reply(ABC):
    """Anything that can be written to a client."""

    @abstractmethod
    def to_bytes(self) -> bytes:
        """Encode the reply in the wire format."""


@dataclass
class StatusReply(Reply):
    """A simple string such as ``+OK``."""

    status: str

    def to_bytes(self) -> bytes:
        return _encode("+" + self.status + CRLF)


@dataclass
class ErrReply(Reply):
    """An error line such as ``-ERR something``."""

    message: str

    def error(self) -> Exception:
        """Return the reply as an exception object."""
        return Exception(self.message)

    def to_bytes(self) -> bytes:
        return _encode("-" + self.message + CRLF)


@dataclass
class IntReply(Reply):
    """An integer line such as ``:1``."""

    value: int

    def to_bytes(self) -> bytes:
        return _encode(f":{self.value}{CRLF}")


@dataclass
class FloatReply(Reply):
    """A floating point number, sent on an integer line."""

    value: float

    def to_bytes(self) -> bytes:
        return _encode(":" + any_to_string(float(self.value)) + CRLF)


@dataclass
class BulkReply(Reply):
    """A length-prefixed binary string; ``None`` is the null bulk string."""

    arg: bytes | None

    def to_bytes(self) -> bytes:
        if self.arg is None:
            return NULL_BULK_BYTES
        return b"$" + str(len(self.arg)).encode() + b"\r\n" + self.arg + b"\r\n"


@dataclass
class MultiBulkReply(Reply):
    """An array of bulk strings; ``None`` elements are encoded as null."""

    args: list[bytes | None] = field(default_factory=list)

    def to_bytes(self) -> bytes:
        parts = [b"*" + str(len(self.args)).encode() + b"\r\n"]
        for arg in self.args:
            if arg is None:
                parts.append(b"$-1\r\n")
            else:
                parts.append(b"$" + str(len(arg)).encode() + b"\r\n" + arg + b"\r\n")
        return b"".join(parts)


def _time_string(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.astimezone()
    text = moment.strftime("%Y-%m-%d %H:%M:%S")
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.strftime("%z") or "+0000"
    name = moment.tzname() or offset
    return f"{text} {offset} {name}"


@dataclass
class TimeReply(Reply):
    """A point in time, sent as a simple string."""

    time: datetime

    def to_bytes(self) -> bytes:
        return _encode("+" + _time_string(self.time) + CRLF)


def make_null_bulk_reply() -> BulkReply:
    """Return the null bulk string reply."""
    return BulkReply(None)


def make_null_multi_bulk() -> MultiBulkReply:
    """Return an empty array reply."""
    return MultiBulkReply([])