"""Doubly ended list used as the value of list keys."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from typing import Any

from .trans import any_compare


class RedisList:
    """An ordered sequence with pushes and pops at both ends."""

    def __init__(self) -> None:
        self._items: deque[Any] = deque()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._items))

    def header(self) -> Any:
        """The first value, or None when the list is empty."""
        return self._items[0] if self._items else None

    def tail(self) -> Any:
        """The last value, or None when the list is empty."""
        return self._items[-1] if self._items else None

    def left_push(self, data: Any) -> bool:
        """Insert ``data`` at the front."""
        self._items.appendleft(data)
        return True

    def right_push(self, data: Any) -> bool:
        """Insert ``data`` at the back."""
        self._items.append(data)
        return True

    def left_pop(self) -> bool:
        """Drop the first value; False when the list is empty."""
        if not self._items:
            return False
        self._items.popleft()
        return True

    def right_pop(self) -> bool:
        """Drop the last value; False when the list is empty."""
        if not self._items:
            return False
        self._items.pop()
        return True

    def index_value(self, index: int) -> Any:
        """The value at ``index``, or None when out of range."""
        if index < 0 or index > len(self._items) - 1:
            return None
        return self._items[index]

    def range(self, start: int, end: int) -> list[Any]:
        """Values from ``start`` up to, but not including, ``end``.

        ``end`` is clamped to the last index; an invalid range gives no values.
        """
        end = min(end, len(self._items) - 1)
        if start < 0 or start > end:
            return []
        return list(self._items)[start:end]

    def _find(self, pivot: Any) -> int | None:
        return next(
            (pos for pos, value in enumerate(self._items) if any_compare(value, pivot)),
            None,
        )

    def insert_after(self, pivot: Any, value: Any) -> bool:
        """Insert ``value`` after the first value equal to ``pivot``."""
        pos = self._find(pivot)
        if pos is None:
            return False
        self._items.insert(pos + 1, value)
        return True

    def insert_before(self, pivot: Any, value: Any) -> bool:
        """Insert ``value`` before the first value equal to ``pivot``."""
        pos = self._find(pivot)
        if pos is None:
            return False
        self._items.insert(pos, value)
        return True

    def trim(self, start: int, end: int) -> bool:
        """Keep only the values from ``start`` to ``end`` inclusive."""
        end = min(end, len(self._items) - 1)
        length = len(self._items)
        if start < 0 or start > end:
            return False
        for _ in range(start):
            self.left_pop()
        for _ in range(length - end - 1):
            self.right_pop()
        return True

    def set(self, index: int, val: Any) -> bool:
        """Replace the value at ``index``; False when it is already equal."""
        if index < 0 or index > len(self._items) - 1:
            raise IndexError(f"list index out of range: {index}")
        if any_compare(self._items[index], val):
            return False
        self._items[index] = val
        return True

    def remove(self, val: Any) -> bool:
        """Remove the first value equal to ``val``."""
        pos = self._find(val)
        if pos is None:
            return False
        del self._items[pos]
        return True

    def get_value(self, index: int) -> Any:
        """The value at ``index``; raises IndexError when out of range."""
        if index < 0 or index > len(self._items) - 1:
            raise IndexError(f"list index out of range: {index}")
        return self._items[index]