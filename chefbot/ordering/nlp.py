# chefbot/ordering/nlp.py
from __future__ import annotations

import re
import unicodedata
from typing import Dict, List, Optional, Tuple

# ----------------------------
# Regex helpers
# ----------------------------
# Anything outside [a-z0-9 ] becomes a space (run after lowercasing + accent strip)
_NON_WORD_RE = re.compile(r"[^a-z0-9 ]+")
_SPACES_RE = re.compile(r"\s+")
_WORD_RE = re.compile(r"\S+")

# Quantity tokens glued to an "x": "2x", "x2"
_QTY_TIMES_RE = re.compile(r"^(?:(\d+)x|x(\d+))$")

# Cardinal number words (pt-BR, accents already stripped)
NUMBER_WORDS: Dict[str, int] = {
    "um": 1,
    "uma": 1,
    "dois": 2,
    "duas": 2,
    "tres": 3,
    "quatro": 4,
    "cinco": 5,
    "seis": 6,
    "sete": 7,
    "oito": 8,
    "nove": 9,
    "dez": 10,
}

# Chatty words that never name a dish
FILLER_WORDS = frozenset({
    "que", "com", "para", "pra", "uma", "mais", "por", "favor",
    "quero", "gostaria", "pedir", "pedido", "tem", "dos", "das",
    "nos", "nas", "sem", "tambem", "mim", "voce", "vcs", "aqui",
})


def normalize(text: Optional[str]) -> str:
    """
    Canonical form used for every comparison:
    - lower
    - decompose accents and drop the combining marks
    - anything outside [a-z0-9 ] to spaces
    - collapse whitespace
    """
    s = (text or "").lower()
    s = unicodedata.normalize("NFKD", s)
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    s = _NON_WORD_RE.sub(" ", s)
    return _SPACES_RE.sub(" ", s).strip()


def words_with_spans(text: str) -> List[Tuple[str, int, int]]:
    """[(word, start, end)] for an already-normalized text."""
    return [(m.group(0), m.start(), m.end()) for m in _WORD_RE.finditer(text or "")]


def contains_phrase(text: str, phrase: str) -> int:
    """
    Index of `phrase` in `text` on word boundaries, or -1.
    Both sides must already be normalized.
    """
    if not text or not phrase:
        return -1
    # offset in the padded string == offset of the phrase in `text`
    return f" {text} ".find(f" {phrase} ")


def parse_quantity_token(token: str) -> Optional[int]:
    """
    Digits, "2x"/"x2", or a number word. Non-positive values clamp to 1.
    Returns None when the token is not a quantity.
    """
    t = (token or "").strip()
    if not t:
        return None
    if t.isdigit():
        return max(1, int(t))
    m = _QTY_TIMES_RE.match(t)
    if m:
        return max(1, int(m.group(1) or m.group(2)))
    if t in NUMBER_WORDS:
        return NUMBER_WORDS[t]
    return None
