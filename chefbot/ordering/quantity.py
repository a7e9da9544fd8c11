# chefbot/ordering/quantity.py
from __future__ import annotations

from typing import List, Optional, Tuple

from .nlp import normalize, parse_quantity_token, words_with_spans

BEFORE_WINDOW = 20
AFTER_WINDOW = 10

# Words allowed between a quantity and the item: "2 latas de coca", "coca x 2"
_UNIT_WORDS = frozenset({
    "x", "un", "unidade", "unidades",
    "porcao", "porcoes", "copo", "copos",
    "lata", "latas", "garrafa", "garrafas",
    "de", "do", "da",
})


def _scan(words: List[Tuple[str, int, int]]) -> Optional[Tuple[int, int, int]]:
    """First quantity walking outward from the mention; stops at any other word."""
    for w, s, e in words:
        q = parse_quantity_token(w)
        if q is not None:
            return q, s, e
        if w in _UNIT_WORDS:
            continue
        break
    return None


def find_quantity(text: str, span_start: Optional[int] = None, span_end: Optional[int] = None) -> Optional[int]:
    """
    Explicit quantity for the mention at [span_start, span_end), or None.

    Looks BEFORE_WINDOW chars before and AFTER_WINDOW chars after the
    mention; the nearest token wins and a tie goes to the one before.
    Without a span, the first quantity token anywhere in the text.
    """
    text = normalize(text)
    words = words_with_spans(text)
    if not words:
        return None

    if span_start is None:
        for w, _s, _e in words:
            q = parse_quantity_token(w)
            if q is not None:
                return q
        return None

    end = span_end if span_end is not None else span_start
    lo = max(0, span_start - BEFORE_WINDOW)
    hi = end + AFTER_WINDOW

    before_words = [(w, s, e) for (w, s, e) in words if s >= lo and e <= span_start]
    after_words = [(w, s, e) for (w, s, e) in words if s >= end and e <= hi]

    before = _scan(list(reversed(before_words)))
    after = _scan(after_words)

    if before and after:
        d_before = span_start - before[2]
        d_after = after[1] - end
        return before[0] if d_before <= d_after else after[0]
    if before:
        return before[0]
    if after:
        return after[0]
    return None


def quantity_for(text: str, span_start: Optional[int] = None, span_end: Optional[int] = None) -> int:
    """Quantity for a mention, defaulting to 1. Never below 1."""
    q = find_quantity(text, span_start, span_end)
    return max(1, q) if q is not None else 1
