"""A small RESP key-value server with strings, lists, sorted sets, expiry and an append-only log."""

__version__ = "0.1.0"