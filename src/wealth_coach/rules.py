"""Ordered keyword/regex rule tables.

Every text classifier in the package has the same shape: an ordered list of
``(label, patterns)`` pairs where either the first or every matching rule
wins. A pattern is a lower-case substring or a compiled regular expression.
"""

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Literal

Pattern = str | re.Pattern
Strength = Literal["high", "medium"]


@dataclass(frozen=True)
class Rule:
    """A label and the patterns that select it."""

    label: str
    patterns: tuple[Pattern, ...]

    def find(self, text: str) -> Pattern | None:
        """Return the first pattern found in ``text`` (already lower-cased)."""
        for pattern in self.patterns:
            if isinstance(pattern, re.Pattern):
                if pattern.search(text):
                    return pattern
            elif pattern in text:
                return pattern
        return None


@dataclass(frozen=True)
class RuleMatch:
    label: str
    strength: Strength
    keyword: str


@dataclass
class RuleTable:
    """Ordered rules evaluated against lower-cased text."""

    rules: list[Rule] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, mapping: dict[str, Iterable[Pattern]]) -> "RuleTable":
        return cls([Rule(label, tuple(patterns)) for label, patterns in mapping.items()])

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[Pattern, str]]) -> "RuleTable":
        """Build a table from ``(pattern, label)`` pairs, one rule per pair."""
        return cls([Rule(label, (pattern,)) for pattern, label in pairs])

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    @property
    def labels(self) -> list[str]:
        return [rule.label for rule in self.rules]

    def subset(self, labels: Iterable[str], exclude: bool = False) -> "RuleTable":
        """Rules whose label is (or, with ``exclude``, is not) in ``labels``, order kept."""
        wanted = set(labels)
        return RuleTable([r for r in self.rules if (r.label in wanted) != exclude])

    def first_match(self, text: str) -> str | None:
        text = text.lower()
        for rule in self.rules:
            if rule.find(text) is not None:
                return rule.label
        return None

    def matches(self, text: str) -> list[str]:
        text = text.lower()
        return [rule.label for rule in self.rules if rule.find(text) is not None]

    def any(self, text: str) -> bool:
        return self.first_match(text) is not None

    def count(self, text: str) -> int:
        return len(self.matches(text))

    def match_strength(self, text: str) -> list[RuleMatch]:
        """One match per rule: word-boundary hit is high, bare substring is medium."""
        text = text.lower()
        results = []
        for rule in self.rules:
            for pattern in rule.patterns:
                if isinstance(pattern, re.Pattern):
                    if pattern.search(text):
                        results.append(RuleMatch(rule.label, "high", pattern.pattern))
                        break
                    continue
                if re.search(rf"\b{re.escape(pattern)}\b", text):
                    results.append(RuleMatch(rule.label, "high", pattern))
                    break
                if pattern in text:
                    results.append(RuleMatch(rule.label, "medium", pattern))
                    break
        return results
