"""Telephone keypad mapping for vanity numbers (1-800-FLOWERS)."""

KEYPAD_GROUPS = {
    "2": "abc",
    "3": "def",
    "4": "ghi",
    "5": "jkl",
    "6": "mno",
    "7": "pqrs",
    "8": "tuv",
    "9": "wxyz",
}

_LETTER_TO_DIGIT = str.maketrans(
    {letter: digit for digit, letters in KEYPAD_GROUPS.items() for letter in letters}
)


def letters_to_digits(text: str) -> str:
    """Replace every letter with its keypad digit; other characters pass through."""
    return text.lower().translate(_LETTER_TO_DIGIT)
