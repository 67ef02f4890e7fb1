from dataclasses import dataclass


@dataclass(frozen=True)
class PatternMatch:
    """Raw hit of a single recognition pattern."""

    pattern: str
    text: str
    start: int


@dataclass(frozen=True)
class NumberCandidate:
    """Validated phone-number substring of one text node."""

    text: str
    start_offset: int
    digits: str

    @property
    def end_offset(self) -> int:
        return self.start_offset + len(self.text)
