"""
Match resolution: turns raw pattern hits into validated, ordered candidates.

Duplicates are collapsed by start offset only (first pattern wins), not by
span. Overlapping hits that start at different offsets both survive here;
the rewriter drops any candidate that starts inside an earlier one.
"""

import re

from clicktocall.models.domain.number_domain import NumberCandidate
from clicktocall.recognition.keypad import letters_to_digits
from clicktocall.recognition.patterns import NUMBER_PATTERNS, NumberPattern, find_pattern_matches

VALID_DIGIT_COUNTS = frozenset({10, 11})

_NON_DIALABLE = re.compile(r"[^0-9+]")
_FORMATTING = re.compile(r"[\s.\-()]")


def canonical_digits(text: str) -> str:
    """Keypad-map letters and keep only digits and '+'."""
    return _NON_DIALABLE.sub("", letters_to_digits(text))


def digit_count(text: str) -> int:
    return len(canonical_digits(text).replace("+", ""))


def is_valid_phone_number(text: str) -> bool:
    """True when the text canonicalises to exactly 10 or 11 digits."""
    return digit_count(text) in VALID_DIGIT_COUNTS


def resolve_candidates(
    text: str, patterns: tuple[NumberPattern, ...] = NUMBER_PATTERNS
) -> list[NumberCandidate]:
    if not text:
        return []

    seen_offsets: set[int] = set()
    candidates: list[NumberCandidate] = []

    for match in find_pattern_matches(text, patterns):
        if match.start in seen_offsets:
            continue
        seen_offsets.add(match.start)

        if not is_valid_phone_number(match.text):
            continue

        candidates.append(
            NumberCandidate(
                text=match.text,
                start_offset=match.start,
                digits=canonical_digits(match.text),
            )
        )

    candidates.sort(key=lambda candidate: candidate.start_offset)
    return candidates


def to_dialable(text: str) -> str:
    """
    Number as sent to the dialer: letters mapped, spacing/punctuation removed.

    Only spaces, dots, dashes and parentheses are stripped; a leading '+' is
    kept for international numbers.
    """
    return _FORMATTING.sub("", letters_to_digits(text.strip()))


def format_for_display(phone_number: str) -> str:
    """
    Pretty-print a dialable number for notifications.

    +1 (555) 123-4567 for international, (555) 123-4567 for 10 digits,
    anything else unchanged.
    """
    cleaned = _NON_DIALABLE.sub("", phone_number)
    digits = cleaned.replace("+", "")

    if cleaned.startswith("+") and len(digits) >= 11:
        return f"+{digits[0]} ({digits[1:4]}) {digits[4:7]}-{digits[7:11]}"
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    return phone_number
