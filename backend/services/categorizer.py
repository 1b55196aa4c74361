"""Rule-based transaction categorizer.

Classification is a pure function of a transaction's text fields. The
rules are an ordered tuple; the first rule whose pattern matches wins, so
list position is precedence (a station that also sells groceries is
``Auto:Fuel``). Confidence is a fixed tag, not a probability:
``MATCH_CONFIDENCE`` when a rule matched, ``DEFAULT_CONFIDENCE`` when none did.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import NamedTuple, Sequence

MATCH_CONFIDENCE = 0.9
DEFAULT_CONFIDENCE = 0.3
UNCATEGORIZED = "Uncategorized"


class Classification(NamedTuple):
    """Category label and confidence tag assigned to a transaction."""

    category: str
    confidence: float


@dataclass(frozen=True)
class CategoryRule:
    """One keyword rule: a pattern searched in the combined lowercase text."""

    label: str
    pattern: re.Pattern
    confidence: float = MATCH_CONFIDENCE

    @classmethod
    def keywords(cls, label: str, *words: str, confidence: float = MATCH_CONFIDENCE) -> CategoryRule:
        """Build a rule that matches any of ``words`` as a plain substring."""
        pattern = re.compile("|".join(re.escape(w) for w in words))
        return cls(label=label, pattern=pattern, confidence=confidence)

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None


# Order is precedence.
DEFAULT_RULES: tuple[CategoryRule, ...] = (
    CategoryRule.keywords(
        "Auto:Fuel",
        "shell", "exxon", "chevron", "bp ", "gas station", "fuel", "mobil",
    ),
    CategoryRule.keywords(
        "Groceries",
        "walmart", "publix", "costco", "kroger", "whole foods", "trader joe",
        "safeway", "grocery",
    ),
    CategoryRule.keywords(
        "Dining:Coffee",
        "starbucks", "dunkin", "coffee",
    ),
    CategoryRule.keywords(
        "Property:Materials",
        "home depot", "lowes", "hardware",
    ),
    CategoryRule.keywords(
        "Dining:Restaurant",
        "restaurant", "dining", "pizza", "burger", "chipotle", "panera",
    ),
    CategoryRule.keywords(
        "Utilities",
        "electric", "water", "utility", "internet", "cable", "phone",
    ),
)


def combined_text(name: str | None, merchant: str | None, raw_category: str | None) -> str:
    """Join the text fields (absent ones as empty) into one lowercase string."""
    return f"{name or ''} {merchant or ''} {raw_category or ''}".lower()


class Categorizer:
    """Classifies transactions against an ordered rule list."""

    def __init__(
        self,
        rules: Sequence[CategoryRule] = DEFAULT_RULES,
        default: Classification = Classification(UNCATEGORIZED, DEFAULT_CONFIDENCE),
    ):
        self._rules = tuple(rules)
        self._default = default

    @property
    def rules(self) -> tuple[CategoryRule, ...]:
        return self._rules

    def classify(
        self,
        name: str | None,
        merchant: str | None = None,
        raw_category: str | None = None,
    ) -> Classification:
        """Return the first matching rule's label and confidence.

        Never raises; falls back to the default classification when no
        rule matches.
        """
        text = combined_text(name, merchant, raw_category)
        for rule in self._rules:
            if rule.matches(text):
                return Classification(rule.label, rule.confidence)
        return self._default


_default_categorizer = Categorizer()


def classify(
    name: str | None,
    merchant: str | None = None,
    raw_category: str | None = None,
) -> Classification:
    """Classify with the built-in rule list."""
    return _default_categorizer.classify(name, merchant, raw_category)
