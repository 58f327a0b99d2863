"""Consistent hashing ring with virtual replicas."""

from __future__ import annotations

import bisect
import zlib
from collections.abc import Callable

DEFAULT_REPLICAS = 3

HashFn = Callable[[bytes], int]


class ConsistentHash:
    """Maps keys onto nodes placed on a hash ring."""

    def __init__(self, replicas: int = DEFAULT_REPLICAS, hash_fn: HashFn | None = None) -> None:
        self.replicas = replicas
        self._hash: HashFn = hash_fn or zlib.crc32
        self._keys: list[int] = []
        self._nodes: dict[int, str] = {}

    def _replica_hashes(self, node: str):
        for i in range(self.replicas):
            yield self._hash(f"{i}{node}".encode("utf-8", "surrogateescape"))

    def add(self, *args: str) -> None:
        """Place each node on the ring ``replicas`` times."""
        for node in args:
            for number in self._replica_hashes(node):
                self._keys.append(number)
                self._nodes[number] = node
        self._keys.sort()

    def get(self, key: str) -> str:
        """The node responsible for ``key``; empty string when the ring is empty."""
        if not self._keys:
            return ""
        number = self._hash(key.encode("utf-8", "surrogateescape"))
        index = bisect.bisect_left(self._keys, number)
        return self._nodes[self._keys[index % len(self._keys)]]

    def delete(self, key: str) -> None:
        """Take a node off the ring."""
        for number in self._replica_hashes(key):
            self._keys = [item for item in self._keys if item != number]
            self._nodes.pop(number, None)