"""
Phone number recognition patterns.

Each pattern is run on its own over the whole text. Several patterns can hit
the same number at the same (or an overlapping) offset; choosing between
them is the resolver's job.
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass

from clicktocall.models.domain.number_domain import PatternMatch


@dataclass(frozen=True)
class NumberPattern:
    name: str
    regex: re.Pattern

    def finditer(self, text: str) -> Iterator[PatternMatch]:
        for match in self.regex.finditer(text):
            yield PatternMatch(pattern=self.name, text=match.group(0), start=match.start())


def _compile(pattern: str) -> re.Pattern:
    # Digits are spelled [0-9] to stay ASCII; \s stays Unicode so &nbsp; separators match
    return re.compile(pattern)


# Order matters: on a shared start offset the earlier pattern wins.
NUMBER_PATTERNS: tuple[NumberPattern, ...] = (
    # 123-456-7890, 123.456.7890, 123 456 7890
    NumberPattern("digit_groups", _compile(r"\b[0-9]{3}[-.\s]?[0-9]{3}[-.\s]?[0-9]{4}\b")),
    # (123) 456-7890
    NumberPattern("paren_area_code", _compile(r"\([0-9]{3}\)\s?[0-9]{3}[-.\s]?[0-9]{4}\b")),
    # (123)-456-7890
    NumberPattern("paren_area_code_sep", _compile(r"\([0-9]{3}\)[-.\s]?[0-9]{3}[-.\s]?[0-9]{4}\b")),
    # 1-855-VASPIAN, 1-800-FLOWERS, 1-800-GO-FEDEX
    NumberPattern(
        "vanity",
        _compile(
            r"\b[0-9]{1,3}[-.\s]?(?:[0-9]{3}|\([A-Za-z0-9]{3}\))[-.\s]?[A-Za-z][A-Za-z0-9\-.\s]{4,}\b"
        ),
    ),
    # (800) MATTRESS
    NumberPattern(
        "paren_vanity", _compile(r"\([A-Za-z0-9]{3}\)\s?[A-Za-z][A-Za-z0-9\-.\s]{4,}\b")
    ),
    # 1234567890, 12345678901
    NumberPattern("bare_digits", _compile(r"\b[0-9]{10,11}\b")),
    # +1 1234567890
    NumberPattern("international", _compile(r"\+[0-9]{1,3}\s?[0-9]{10,11}\b")),
)


def find_pattern_matches(
    text: str, patterns: tuple[NumberPattern, ...] = NUMBER_PATTERNS
) -> list[PatternMatch]:
    """Run every pattern independently and collect all hits in pattern order."""
    matches: list[PatternMatch] = []
    for pattern in patterns:
        matches.extend(pattern.finditer(text))
    return matches


def contains_number_like(text: str, patterns: tuple[NumberPattern, ...] = NUMBER_PATTERNS) -> bool:
    """Cheap pre-filter used before a text node is resolved."""
    return any(pattern.regex.search(text) for pattern in patterns)
