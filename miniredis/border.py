"""Range borders for sorted-set queries, by score or by member."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

SCORE_NEGATIVE_INF = -1
SCORE_POSITIVE_INF = 1
LEX_NEGATIVE_INF = ord("-")
LEX_POSITIVE_INF = ord("+")


@dataclass
class Element:
    """A member of a sorted set together with its score."""

    member: str
    score: float = 0.0


class Border(ABC):
    """One end of a range.

    ``greater`` answers whether an element lies within this border used as
    the upper end; ``less`` whether it lies within it used as the lower end.
    """

    @abstractmethod
    def greater(self, element: Element) -> bool:
        """True when the element is not beyond this upper border."""

    @abstractmethod
    def less(self, element: Element) -> bool:
        """True when the element is not before this lower border."""

    @abstractmethod
    def is_intersected(self, other: Border) -> bool:
        """True when this border, used as minimum, leaves an empty range with ``other``."""


def _parse_float(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        raise ValueError(f"invalid float: {text!r}")
    return float(text)


@dataclass(frozen=True)
class ScoreBorder(Border):
    """A border on the score; ``inf`` is -1, 1 or 0 for a finite value."""

    inf: int = 0
    value: float = 0.0
    exclude: bool = False

    def greater(self, element: Element) -> bool:
        if self.inf == SCORE_NEGATIVE_INF:
            return False
        if self.inf == SCORE_POSITIVE_INF:
            return True
        if self.exclude:
            return self.value > element.score
        return self.value >= element.score

    def less(self, element: Element) -> bool:
        if self.inf == SCORE_NEGATIVE_INF:
            return True
        if self.inf == SCORE_POSITIVE_INF:
            return False
        if self.exclude:
            return self.value < element.score
        return self.value <= element.score

    def is_intersected(self, other: Border) -> bool:
        if not isinstance(other, ScoreBorder):
            raise TypeError("a score border can only be compared with a score border")
        low, high = self.value, other.value
        return low > high or (low == high and (self.exclude or other.exclude))


@dataclass(frozen=True)
class LexBorder(Border):
    """A border on the member string; ``inf`` is ``ord('-')``, ``ord('+')`` or 0."""

    inf: int = 0
    value: str = ""
    exclude: bool = False

    def greater(self, element: Element) -> bool:
        if self.inf == LEX_NEGATIVE_INF:
            return False
        if self.inf == LEX_POSITIVE_INF:
            return True
        if self.exclude:
            return self.value > element.member
        return self.value >= element.member

    def less(self, element: Element) -> bool:
        if self.inf == LEX_NEGATIVE_INF:
            return True
        if self.inf == LEX_POSITIVE_INF:
            return False
        if self.exclude:
            return self.value < element.member
        return self.value <= element.member

    def is_intersected(self, other: Border) -> bool:
        if not isinstance(other, LexBorder):
            raise TypeError("a lex border can only be compared with a lex border")
        low, high = self.value, other.value
        return (
            self.inf == LEX_POSITIVE_INF
            or low > high
            or (low == high and (self.exclude or other.exclude))
        )


SCORE_POSITIVE_INF_BORDER = ScoreBorder(inf=SCORE_POSITIVE_INF)
SCORE_NEGATIVE_INF_BORDER = ScoreBorder(inf=SCORE_NEGATIVE_INF)
LEX_POSITIVE_INF_BORDER = LexBorder(inf=LEX_POSITIVE_INF)
LEX_NEGATIVE_INF_BORDER = LexBorder(inf=LEX_NEGATIVE_INF)


def parse_score_border(text: str) -> ScoreBorder:
    """Parse ``inf``, ``+inf``, ``-inf``, ``(value`` or ``value``."""
    if text in ("inf", "+inf"):
        return SCORE_POSITIVE_INF_BORDER
    if text == "-inf":
        return SCORE_NEGATIVE_INF_BORDER
    exclude = text.startswith("(")
    body = text[1:] if exclude else text
    try:
        value = _parse_float(body)
    except ValueError:
        raise ValueError("max or min is not float64") from None
    return ScoreBorder(value=value, exclude=exclude)


def parse_lex_border(text: str) -> LexBorder:
    """Parse ``+``, ``-``, ``(member`` or ``[member``."""
    if text == "+":
        return LEX_POSITIVE_INF_BORDER
    if text == "-":
        return LEX_NEGATIVE_INF_BORDER
    if text.startswith("("):
        return LexBorder(value=text[1:], exclude=True)
    if text.startswith("["):
        return LexBorder(value=text[1:], exclude=False)
    raise ValueError("ERR min or max not valid string range item")