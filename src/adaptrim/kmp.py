"""
Exact adaptor matching with a Knuth-Morris-Pratt automaton

The failure table is built once per adaptor. A single scan over a read
then finds either the leftmost full occurrence of the adaptor or, if there
is none, the longest suffix of the read that is also a prefix of the
adaptor (a trailing overlap). Both outcomes come from the same automaton
state, so a read is never scanned twice.
"""
from abc import ABC, abstractmethod
from typing import List, Sequence


class InvalidPattern(ValueError):
    pass


def failure_table(pattern: str) -> List[int]:
    """
    Return the KMP prefix function of *pattern*.

    Entry i is the length of the longest proper prefix of pattern[:i + 1]
    that is also a suffix of it.

    >>> failure_table("AGATCGGAAG")
    [0, 0, 1, 0, 0, 0, 0, 1, 1, 2]
    """
    if not pattern:
        raise InvalidPattern("The adaptor sequence must not be empty")
    table = [0] * len(pattern)
    k = 0
    for i in range(1, len(pattern)):
        while k > 0 and pattern[i] != pattern[k]:
            k = table[k - 1]
        if pattern[i] == pattern[k]:
            k += 1
        table[i] = k
    return table


class MatchResult(ABC):
    """Outcome of matching an adaptor against one read"""

    @abstractmethod
    def trim_point(self, read_length: int) -> int:
        """Return the index at which a read of the given length is truncated"""

    def trimmed(self, read):
        """Return the read truncated at the trim point"""
        return read[: self.trim_point(len(read))]

    def removed_length(self, read_length: int) -> int:
        return read_length - self.trim_point(read_length)

    def __bool__(self):
        return True


class NoMatch(MatchResult):
    def __repr__(self):
        return "NoMatch()"

    def __eq__(self, other):
        return isinstance(other, NoMatch)

    def __hash__(self):
        return hash(NoMatch)

    def __bool__(self):
        return False

    def trim_point(self, read_length: int) -> int:
        return read_length

    def trimmed(self, read):
        # Unchanged reads are passed on as the same object
        return read


class FullOccurrence(MatchResult):
    """The whole adaptor occurs in the read, starting at *start*"""

    __slots__ = ("start",)

    def __init__(self, start: int):
        if start < 0:
            raise ValueError("start must not be negative")
        self.start = start

    def __repr__(self):
        return f"FullOccurrence(start={self.start})"

    def __eq__(self, other):
        return isinstance(other, FullOccurrence) and other.start == self.start

    def __hash__(self):
        return hash((FullOccurrence, self.start))

    def trim_point(self, read_length: int) -> int:
        return self.start


class TrailingOverlap(MatchResult):
    """The last *length* characters of the read equal the adaptor's first ones"""

    __slots__ = ("length",)

    def __init__(self, length: int):
        if length < 1:
            raise ValueError("A trailing overlap must have a length of at least 1")
        self.length = length

    def __repr__(self):
        return f"TrailingOverlap(length={self.length})"

    def __eq__(self, other):
        return isinstance(other, TrailingOverlap) and other.length == self.length

    def __hash__(self):
        return hash((TrailingOverlap, self.length))

    def trim_point(self, read_length: int) -> int:
        return read_length - self.length


NO_MATCH = NoMatch()


def find_adaptor(pattern: str, table: Sequence[int], sequence: str) -> MatchResult:
    """
    Match *pattern* against *sequence* using its precomputed failure *table*.

    Return FullOccurrence for the leftmost full occurrence, otherwise
    TrailingOverlap for the longest read suffix that is a prefix of the
    pattern, or NO_MATCH if there is neither.
    """
    m = len(pattern)
    k = 0
    for i, c in enumerate(sequence):
        while k > 0 and pattern[k] != c:
            k = table[k - 1]
        if pattern[k] == c:
            k += 1
            if k == m:
                return FullOccurrence(i - m + 1)
    if k == 0:
        return NO_MATCH
    return TrailingOverlap(k)
