"""
Conditions under which a trimmed read is discarded
"""
from abc import ABC, abstractmethod

from .modifiers import ModificationInfo


class Predicate(ABC):
    # Key under which discarded reads are counted in the reports
    name: str

    @abstractmethod
    def test(self, read, info: ModificationInfo) -> bool:
        """Return True if *read* is to be discarded"""


class TooShort(Predicate):
    """The trimmed read has fewer than minimum_length bases"""

    name = "too_short"

    def __init__(self, minimum_length: int):
        if minimum_length < 1:
            raise ValueError("minimum_length must be at least 1")
        self.minimum_length = minimum_length

    def __repr__(self):
        return f"TooShort({self.minimum_length})"

    def test(self, read, info: ModificationInfo) -> bool:
        return len(read) < self.minimum_length


class IsUntrimmed(Predicate):
    name = "is_untrimmed"

    def __repr__(self):
        return "IsUntrimmed()"

    def test(self, read, info: ModificationInfo) -> bool:
        return not info.matches
