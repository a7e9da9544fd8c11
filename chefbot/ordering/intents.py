# chefbot/ordering/intents.py
"""
Deterministic intent rules.

Rules run in list order. Field rules (table number, party size) are
cumulative: they always run and only fill a provisional intent. Keyword
rules are exclusive: the first one that fires sets the intent and the
remaining keyword rules are skipped for that turn.
"""
from __future__ import annotations

import re
from typing import FrozenSet, List, Optional, Pattern, Sequence, Set

from .domain import ActionType, Intent, IntentAnalysis
from .nlp import NUMBER_WORDS, normalize, parse_quantity_token

_NUM = r"(\d+|" + "|".join(sorted(NUMBER_WORDS, key=len, reverse=True)) + r")"

TABLE_RE = re.compile(rf"\bmesa (?:numero |n )?{_NUM}\b")
PEOPLE_RE = re.compile(rf"\b{_NUM} pessoas?\b")
SOMOS_RE = re.compile(rf"\bsomos {_NUM}\b")


class Rule:
    name = "rule"
    cumulative = False

    def apply(self, text: str, words: Set[str], analysis: IntentAnalysis) -> bool:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class FieldRule(Rule):
    """Pulls a number out of the text into extracted fields."""

    cumulative = True

    def __init__(self, name: str, field: str, patterns: Sequence[Pattern[str]], intent: Intent) -> None:
        self.name = name
        self.field = field
        self.patterns = list(patterns)
        self.intent = intent

    def apply(self, text: str, words: Set[str], analysis: IntentAnalysis) -> bool:
        value: Optional[int] = None
        for pat in self.patterns:
            m = pat.search(text)
            if m:
                value = parse_quantity_token(m.group(1))
                break
        if value is None:
            return False

        setattr(analysis.extracted, self.field, value)
        # people_count outranks table_info; keyword intents overwrite both later
        if analysis.intent in (Intent.GENERAL, Intent.TABLE_INFO):
            analysis.intent = self.intent
        return True


class KeywordRule(Rule):
    def __init__(
        self,
        name: str,
        keywords: FrozenSet[str],
        intent: Intent,
        suggestion: Optional[ActionType] = None,
    ) -> None:
        self.name = name
        self.keywords = keywords
        self.intent = intent
        self.suggestion = suggestion

    def apply(self, text: str, words: Set[str], analysis: IntentAnalysis) -> bool:
        if not (words & self.keywords):
            return False
        analysis.intent = self.intent
        if self.suggestion is not None:
            analysis.suggest(self.suggestion)
        return True


def default_rules() -> List[Rule]:
    return [
        FieldRule("table", "table_number", [TABLE_RE], Intent.TABLE_INFO),
        FieldRule("party", "party_size", [PEOPLE_RE, SOMOS_RE], Intent.PEOPLE_COUNT),
        KeywordRule(
            "removal",
            frozenset({"tira", "tirar", "retira", "retirar", "remove", "remover", "cancela", "cancelar"}),
            Intent.REMOVAL,
        ),
        KeywordRule("ordering", frozenset({"quero", "gostaria", "pedido", "pedir"}), Intent.ORDERING),
        KeywordRule(
            "confirmation",
            frozenset({"sim", "confirma", "confirmar", "confirmo", "ok", "okay", "certo"}),
            Intent.CONFIRMATION,
        ),
        KeywordRule(
            "payment",
            frozenset({"pix", "pagar", "pagamento"}),
            Intent.PAYMENT,
            suggestion=ActionType.PRESENT_PAYMENT_OPTIONS,
        ),
    ]


class IntentClassifier:
    def __init__(self, rules: Optional[Sequence[Rule]] = None) -> None:
        self.rules: List[Rule] = list(rules) if rules is not None else default_rules()

    def classify(self, text: str) -> IntentAnalysis:
        """Never raises; unknown or empty text is Intent.GENERAL."""
        analysis = IntentAnalysis()
        text = normalize(text)
        if not text:
            return analysis

        words = set(text.split())
        keyword_fired = False
        for rule in self.rules:
            if rule.cumulative:
                rule.apply(text, words, analysis)
                continue
            if keyword_fired:
                continue
            keyword_fired = rule.apply(text, words, analysis)
        return analysis


_DEFAULT = IntentClassifier()


def classify(text: str) -> IntentAnalysis:
    return _DEFAULT.classify(text)
