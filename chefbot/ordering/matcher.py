# chefbot/ordering/matcher.py
from __future__ import annotations

import difflib
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .domain import MenuItem, Mention
from .nlp import FILLER_WORDS, contains_phrase, normalize, words_with_spans

logger = logging.getLogger(__name__)

EXACT_STRENGTH = 1.0
PARTIAL_MIN_RATIO = 0.7
SYNONYM_STRENGTH = 0.6
SIMILAR_CUTOFF = 0.6

# ----------------------------
# Synonyms (base, pt-BR)
# Key: fragment of a normalized menu item name.
# Value: colloquial ways people ask for it.
# Plurals of one-word names come from the partial-word rule; names of two
# or more words need their plurals listed here.
# ----------------------------
_DEFAULT_SYNONYMS: Dict[str, List[str]] = {
    "hamburguer": ["burger", "sanduiche", "hamburgao", "hamburgueres", "lanche"],
    "coca cola": ["coca", "cocas", "coke", "refri", "refris", "refrigerante"],
    "refrigerante": ["refri", "refris", "coca", "cocas", "pepsi", "guarana"],
    "batata": ["fritas", "batatas"],
    "agua": ["agua mineral", "aguinha"],
    "cerveja": ["breja", "gelada"],
    "camarao": ["camaroes"],
    "salmao": ["salmon"],
    "frango": ["galinha", "chicken"],
    "suco": ["suquinho"],
    "caipirinha": ["caipi"],
    "petit gateau": ["petit gato"],
}


def default_synonyms() -> Dict[str, List[str]]:
    """Base synonym map. Menus can extend this in menu.meta.synonyms."""
    return {k: list(v) for k, v in _DEFAULT_SYNONYMS.items()}


def merge_synonyms(custom: Optional[Mapping[str, object]]) -> Dict[str, List[str]]:
    """
    Built-in table plus menu-declared entries. Values may be a single
    string or a list; everything is normalized.
    """
    merged = default_synonyms()
    if not isinstance(custom, Mapping):
        return merged

    for key, raw in custom.items():
        frag = normalize(str(key))
        if not frag:
            continue
        alts = [raw] if isinstance(raw, str) else list(raw or [])  # type: ignore[arg-type]
        bucket = merged.setdefault(frag, [])
        for alt in alts:
            a = normalize(str(alt))
            if a and a not in bucket:
                bucket.append(a)
    return merged


# ----------------------------
# Matching tiers
# ----------------------------
def _significant_item_words(name_norm: str) -> List[str]:
    words = name_norm.split()
    # sizes like "350ml" and joiners like "de" don't identify a dish
    keep = [w for w in words if len(w) >= 3 and not any(ch.isdigit() for ch in w)]
    return keep or words


def _significant_text_words(text: str) -> List[Tuple[str, int, int]]:
    return [
        (w, s, e) for (w, s, e) in words_with_spans(text)
        if len(w) >= 3 and w not in FILLER_WORDS
    ]


def _exact(text: str, name_norm: str) -> Optional[Tuple[float, int, int]]:
    idx = text.find(name_norm)
    if idx < 0:
        return None
    return EXACT_STRENGTH, idx, idx + len(name_norm)


def _partial(text_words: Sequence[Tuple[str, int, int]], name_norm: str) -> Optional[Tuple[float, int, int]]:
    item_words = _significant_item_words(name_norm)
    if not item_words or not text_words:
        return None

    matched = 0
    start: Optional[int] = None
    end: Optional[int] = None
    for iw in item_words:
        for tw, s, e in text_words:
            if iw in tw or tw in iw:
                matched += 1
                start = s if start is None else min(start, s)
                end = e if end is None else max(end, e)
                break

    ratio = matched / len(item_words)
    if ratio < PARTIAL_MIN_RATIO or start is None or end is None:
        return None
    return ratio, start, end


def _synonym(text: str, name_norm: str, synonyms: Mapping[str, Iterable[str]]) -> Optional[Tuple[float, int, int]]:
    # longer fragments first so "coca cola" wins over a generic "refrigerante" entry
    for frag in sorted(synonyms.keys(), key=len, reverse=True):
        if contains_phrase(name_norm, frag) < 0:
            continue
        for alt in synonyms[frag]:
            idx = contains_phrase(text, alt)
            if idx >= 0:
                return SYNONYM_STRENGTH, idx, idx + len(alt)
    return None


def find_mentions(
    text: str,
    catalog: Sequence[MenuItem],
    synonyms: Optional[Mapping[str, Iterable[str]]] = None,
) -> List[Mention]:
    """
    Every available catalog item mentioned in `text`, ordered by where the
    mention starts. Per item the first tier that succeeds wins:
      1) exact substring of the normalized name      -> 1.0
      2) partial word overlap >= PARTIAL_MIN_RATIO   -> overlap ratio
      3) synonym alternate present                   -> SYNONYM_STRENGTH
    """
    text = normalize(text)
    if not text or not catalog:
        return []

    syn = synonyms if synonyms is not None else _DEFAULT_SYNONYMS
    text_words = _significant_text_words(text)

    out: List[Mention] = []
    for item in catalog:
        if not item.available:
            continue
        name_norm = normalize(item.name)
        if not name_norm:
            continue

        hit = _exact(text, name_norm) or _partial(text_words, name_norm) or _synonym(text, name_norm, syn)
        if not hit:
            continue

        strength, start, end = hit
        out.append(Mention(item=item, strength=strength, span_start=start, span_end=end))

    out.sort(key=lambda m: m.span_start if m.span_start is not None else len(text))
    if out:
        logger.debug("Mentions in %r: %s", text, [(m.item.name, round(m.strength, 2)) for m in out])
    return out


# ----------------------------
# Low-confidence suggestions
# ----------------------------
def suggest_similar(
    text: str,
    catalog: Sequence[MenuItem],
    limit: int = 3,
    cutoff: float = SIMILAR_CUTOFF,
) -> List[Tuple[MenuItem, float]]:
    """
    Catalog items that look like something the customer typed, best first.
    Score is the best difflib ratio between any text word and any name word.
    """
    words = [w for (w, _s, _e) in _significant_text_words(normalize(text))]
    if not words or not catalog:
        return []

    scored: List[Tuple[MenuItem, float]] = []
    for item in catalog:
        if not item.available:
            continue
        name_words = normalize(item.name).split()
        best = 0.0
        for w in words:
            for nw in name_words:
                best = max(best, difflib.SequenceMatcher(None, w, nw).ratio())
        if best >= cutoff:
            scored.append((item, round(best, 3)))

    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[:limit]
