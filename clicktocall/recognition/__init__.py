"""
Phone number recognition: keypad mapping, patterns and match resolution.
"""

from clicktocall.recognition.keypad import letters_to_digits
from clicktocall.recognition.patterns import NUMBER_PATTERNS, find_pattern_matches
from clicktocall.recognition.resolver import (
    format_for_display,
    is_valid_phone_number,
    resolve_candidates,
    to_dialable,
)

__all__ = [
    "NUMBER_PATTERNS",
    "find_pattern_matches",
    "format_for_display",
    "is_valid_phone_number",
    "letters_to_digits",
    "resolve_candidates",
    "to_dialable",
]
