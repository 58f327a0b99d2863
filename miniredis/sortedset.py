"""Skip list and the sorted set built on it."""

from __future__ import annotations

import random
from collections.abc import Callable

from .border import (
    SCORE_NEGATIVE_INF_BORDER,
    SCORE_POSITIVE_INF_BORDER,
    Border,
    Element,
    ScoreBorder,
)

MAX_LEVEL = 16

ElementConsumer = Callable[[Element], bool]


def random_level() -> int:
    """Draw a node height: each extra level has a one in four chance."""
    level = 1
    while random.getrandbits(16) < 0.25 * 0xFFFF:
        level += 1
    return min(level, MAX_LEVEL)


class _Level:
    __slots__ = ("forward", "span")

    def __init__(self) -> None:
        self.forward: _Node | None = None
        self.span = 0


class _Node:
    __slots__ = ("element", "backward", "levels")

    def __init__(self, level: int, member: str, score: float) -> None:
        self.element = Element(member, score)
        self.backward: _Node | None = None
        self.levels = [_Level() for _ in range(level)]


def _before(element: Element, member: str, score: float) -> bool:
    return element.score < score or (element.score == score and element.member < member)


class SkipList:
    """Elements ordered by score, then member, with spans for ranks."""

    def __init__(self) -> None:
        self.header = _Node(MAX_LEVEL, "", 0.0)
        self.tail: _Node | None = None
        self.length = 0
        self.level = 1

    def get_by_rank(self, rank: int) -> _Node | None:
        """Return the node at a 1-based rank, or the header for rank 0."""
        passed = 0
        node = self.header
        for level in range(min(self.level, MAX_LEVEL - 1), -1, -1):
            while (
                node.levels[level].forward is not None
                and passed + node.levels[level].span <= rank
            ):
                passed += node.levels[level].span
                node = node.levels[level].forward
            if passed == rank:
                return node
        return None

    def has_in_range(self, low: Border, high: Border) -> bool:
        """Quick check whether any element may lie between the borders."""
        if self.tail is None or low.greater(self.tail.element):
            return False
        if high.less(self.header.element):
            return False
        return True

    def get_first_in_range(self, low: Border, high: Border) -> _Node | None:
        """Lowest node within the borders."""
        if not self.has_in_range(low, high):
            return None
        node = self.header
        for level in range(self.level - 1, -1, -1):
            while (
                node.levels[level].forward is not None
                and not low.less(node.levels[level].forward.element)
            ):
                node = node.levels[level].forward
        node = node.levels[0].forward
        if node is None or not high.greater(node.element):
            return None
        return node

    def get_last_in_range(self, low: Border, high: Border) -> _Node | None:
        """Highest node within the borders."""
        if not self.has_in_range(low, high):
            return None
        node = self.header
        for level in range(self.level - 1, -1, -1):
            while (
                node.levels[level].forward is not None
                and high.greater(node.levels[level].forward.element)
            ):
                node = node.levels[level].forward
        if not low.less(node.element):
            return None
        return node

    def insert(self, member: str, score: float) -> _Node:
        """Insert a new node and return it."""
        update: list[_Node] = [self.header] * MAX_LEVEL
        rank = [0] * MAX_LEVEL
        node = self.header
        for i in range(self.level - 1, -1, -1):
            rank[i] = 0 if i == self.level - 1 else rank[i + 1]
            while (
                node.levels[i].forward is not None
                and _before(node.levels[i].forward.element, member, score)
            ):
                rank[i] += node.levels[i].span
                node = node.levels[i].forward
            update[i] = node

        level = random_level()
        if level > self.level:
            for i in range(self.level, level):
                rank[i] = 0
                update[i] = self.header
                self.header.levels[i].span = self.length
            self.level = level

        node = _Node(level, member, score)
        for i in range(level):
            prev = update[i].levels[i]
            node.levels[i].forward = prev.forward
            prev.forward = node
            node.levels[i].span = prev.span - (rank[0] - rank[i])
            prev.span = rank[0] - rank[i] + 1

        for i in range(level, self.level):
            update[i].levels[i].span += 1

        node.backward = None if update[0] is self.header else update[0]
        if node.levels[0].forward is not None:
            node.levels[0].forward.backward = node
        else:
            self.tail = node
        self.length += 1
        return node

    def _remove_node(self, node: _Node, update: list[_Node]) -> None:
        for i in range(self.level):
            link = update[i].levels[i]
            if link.forward is node:
                link.span += node.levels[i].span - 1
                link.forward = node.levels[i].forward
            else:
                link.span -= 1
        if node.levels[0].forward is not None:
            node.levels[0].forward.backward = node.backward
        else:
            self.tail = node.backward
        while self.level > 1 and self.header.levels[self.level - 1].forward is None:
            self.level -= 1
        self.length -= 1

    def remove(self, member: str, score: float) -> bool:
        """Remove the node with this member and score; True if found."""
        update: list[_Node] = [self.header] * MAX_LEVEL
        node = self.header
        for i in range(self.level - 1, -1, -1):
            while (
                node.levels[i].forward is not None
                and _before(node.levels[i].forward.element, member, score)
            ):
                node = node.levels[i].forward
            update[i] = node
        node = node.levels[0].forward
        if node is not None and node.element.score == score and node.element.member == member:
            self._remove_node(node, update)
            return True
        return False

    def get_rank(self, member: str, score: float) -> int:
        """1-based rank of the member, or 0 when it is not found."""
        rank = 0
        node = self.header
        for i in range(self.level - 1, -1, -1):
            while node.levels[i].forward is not None:
                forward = node.levels[i].forward.element
                if not (
                    forward.score < score
                    or (forward.score == score and forward.member <= member)
                ):
                    break
                rank += node.levels[i].span
                node = node.levels[i].forward
            if node.element.member == member:
                return rank
        return 0

    def remove_range(self, low: Border, high: Border, limit: int = 0) -> list[Element]:
        """Remove elements between the borders, at most ``limit`` if positive."""
        update: list[_Node] = [self.header] * MAX_LEVEL
        removed: list[Element] = []
        node = self.header
        for i in range(self.level - 1, -1, -1):
            while node.levels[i].forward is not None:
                if low.less(node.levels[i].forward.element):
                    break
                node = node.levels[i].forward
            update[i] = node

        current = node.levels[0].forward
        while current is not None:
            if not high.greater(current.element):
                break
            following = current.levels[0].forward
            removed.append(Element(current.element.member, current.element.score))
            self._remove_node(current, update)
            if limit > 0 and len(removed) == limit:
                break
            current = following
        return removed

    def remove_range_by_rank(self, start: int, stop: int) -> list[Element]:
        """Remove elements whose 1-based rank is in ``[start, stop)``."""
        passed = 0
        update: list[_Node] = [self.header] * MAX_LEVEL
        removed: list[Element] = []
        node = self.header
        for level in range(self.level - 1, -1, -1):
            while (
                node.levels[level].forward is not None
                and passed + node.levels[level].span < start
            ):
                passed += node.levels[level].span
                node = node.levels[level].forward
            update[level] = node

        passed += 1
        current = node.levels[0].forward
        while current is not None and passed < stop:
            following = current.levels[0].forward
            removed.append(Element(current.element.member, current.element.score))
            self._remove_node(current, update)
            current = following
            passed += 1
        return removed


class SortedSet:
    """Members with scores, kept ordered by score then member."""

    def __init__(self) -> None:
        self._dict: dict[str, Element] = {}
        self._skip = SkipList()

    def __len__(self) -> int:
        return len(self._dict)

    def add(self, member: str, score: float) -> bool:
        """Add or rescore a member; False only when the score is unchanged."""
        previous = self._dict.get(member)
        self._dict[member] = Element(member, score)
        if previous is not None:
            if score != previous.score:
                self._skip.remove(member, previous.score)
                self._skip.insert(member, score)
                return True
            return False
        self._skip.insert(member, score)
        return True

    def delete(self, member: str) -> bool:
        """Remove a member; True if it was present."""
        previous = self._dict.pop(member, None)
        if previous is None:
            return False
        self._skip.remove(member, previous.score)
        return True

    def update(self, member: str, score: float) -> bool:
        """Change the score of an existing member; True if it changed."""
        previous = self._dict.get(member)
        self._dict[member] = Element(member, score)
        if previous is not None and score != previous.score:
            self._skip.remove(member, previous.score)
            self._skip.insert(member, score)
            return True
        return False

    def get(self, member: str) -> Element | None:
        """The element for ``member``, or None."""
        return self._dict.get(member)

    def remove_by_rank(self, start: int, stop: int) -> int:
        """Remove by 1-based rank in ``[start, stop)``; number removed."""
        return len(self._skip.remove_range_by_rank(start, stop))

    def pop_min(self, count: int) -> list[Element]:
        """Remove and return up to ``count`` lowest elements."""
        first = self._skip.get_first_in_range(
            SCORE_NEGATIVE_INF_BORDER, SCORE_POSITIVE_INF_BORDER
        )
        if first is None:
            return []
        border = ScoreBorder(value=first.element.score, exclude=False)
        removed = self._skip.remove_range(border, SCORE_POSITIVE_INF_BORDER, count)
        for element in removed:
            self._dict.pop(element.member, None)
        return removed

    def remove_range(self, low: Border, high: Border) -> int:
        """Remove every element between the borders; number removed."""
        removed = self._skip.remove_range(low, high, 0)
        for element in removed:
            self._dict.pop(element.member, None)
        return len(removed)

    def range(
        self,
        low: Border,
        high: Border,
        offset: int = 0,
        limit: int = -1,
        desc: bool = False,
    ) -> list[Element]:
        """Elements between the borders; a negative limit means no limit."""
        if limit == 0 or offset < 0:
            return []
        result: list[Element] = []

        def collect(element: Element) -> bool:
            result.append(element)
            return True

        self.for_each(low, high, offset, limit, desc, collect)
        return result

    def for_each(
        self,
        low: Border,
        high: Border,
        offset: int,
        limit: int,
        desc: bool,
        consumer: ElementConsumer,
    ) -> None:
        """Feed elements between the borders to ``consumer`` until it returns False."""
        if desc:
            node = self._skip.get_last_in_range(low, high)
        else:
            node = self._skip.get_first_in_range(low, high)

        while node is not None and offset > 0:
            node = node.backward if desc else node.levels[0].forward
            offset -= 1

        visited = 0
        while (visited < limit or limit < 0) and node is not None:
            if not consumer(node.element):
                break
            node = node.backward if desc else node.levels[0].forward
            if node is None:
                break
            if not low.less(node.element) or not high.greater(node.element):
                break
            visited += 1

    def range_count(self, low: Border, high: Border) -> int:
        """Number of elements between the borders."""
        count = 0

        def counter(element: Element) -> bool:
            nonlocal count
            if not low.less(element):
                return True
            if not high.greater(element):
                return False
            count += 1
            return True

        self.for_each_by_rank(0, len(self), False, counter)
        return count

    def range_by_rank(self, start: int, stop: int, desc: bool = False) -> list[Element]:
        """Elements with 0-based rank in ``[start, stop)``."""
        result: list[Element] = []

        def collect(element: Element) -> bool:
            result.append(element)
            return True

        self.for_each_by_rank(start, stop, desc, collect)
        return result

    def for_each_by_rank(
        self, start: int, stop: int, desc: bool, consumer: ElementConsumer
    ) -> None:
        """Feed elements with 0-based rank in ``[start, stop)`` to ``consumer``."""
        size = len(self)
        if start < 0 or start >= size:
            raise ValueError(f"illegal start {start}")
        if stop < start or stop > size:
            raise ValueError(f"illegal end {stop}")

        if desc:
            node = self._skip.tail
            if start > 0:
                node = self._skip.get_by_rank(size - start)
        else:
            node = self._skip.header.levels[0].forward
            if start > 0:
                node = self._skip.get_by_rank(start + 1)

        for _ in range(stop - start):
            if node is None or not consumer(node.element):
                break
            node = node.backward if desc else node.levels[0].forward

    def get_rank(self, member: str, desc: bool = False) -> int:
        """0-based rank of ``member``, or -1 when absent."""
        element = self._dict.get(member)
        if element is None:
            return -1
        rank = self._skip.get_rank(member, element.score)
        if desc:
            return self._skip.length - rank
        return rank - 1