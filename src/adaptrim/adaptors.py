"""
The adaptor to be removed and statistics about where it was found
"""
import logging
from collections import defaultdict
from typing import Any, DefaultDict, Dict, List

from .kmp import (
    InvalidPattern,
    MatchResult,
    FullOccurrence,
    TrailingOverlap,
    NO_MATCH,
    failure_table,
    find_adaptor,
)

logger = logging.getLogger()

# Illumina TruSeq adaptor
DEFAULT_ADAPTOR = "AGATCGGAAGAGC"

DNA_ALPHABET = "ACGTN"


class Adaptor:
    """
    A 3' adaptor that is matched exactly against the ends of reads.

    The failure table is computed here, once, and reused for every read
    passed to match_to(). Instances are never modified after construction
    and can be shared by any number of readers (including worker processes,
    which receive a pickled copy).

    Arguments:
        sequence: The adaptor sequence. It is converted to uppercase.
        min_overlap: Trailing overlaps shorter than this are not reported.
            Full occurrences are always reported.
        alphabet: Characters allowed in the adaptor sequence.
        name: Used in reports.
    """

    def __init__(
        self,
        sequence: str,
        min_overlap: int = 1,
        alphabet: str = DNA_ALPHABET,
        name: str = "1",
    ):
        sequence = sequence.upper()
        if not sequence:
            raise InvalidPattern("The adaptor sequence must not be empty")
        invalid = sorted(set(sequence) - set(alphabet))
        if invalid:
            raise InvalidPattern(
                f"Character(s) {''.join(invalid)!r} in adaptor sequence "
                f"{sequence!r} are not allowed. Allowed are: {alphabet}"
            )
        if min_overlap < 1:
            raise ValueError("The minimum overlap must be at least 1")
        self.sequence = sequence
        self.min_overlap = min_overlap
        self.name = name
        self.table = failure_table(sequence)
        logger.debug("Failure table for adaptor %s: %s", sequence, self.table)

    def __repr__(self):
        return (
            f"Adaptor(name={self.name!r}, sequence={self.sequence!r}, "
            f"min_overlap={self.min_overlap})"
        )

    def __len__(self):
        return len(self.sequence)

    def match_to(self, sequence: str) -> MatchResult:
        result = find_adaptor(self.sequence, self.table, sequence)
        if isinstance(result, TrailingOverlap) and result.length < self.min_overlap:
            return NO_MATCH
        return result

    def create_statistics(self) -> "AdaptorStatistics":
        return AdaptorStatistics(self)


class AdaptorStatistics:
    """
    Count how often the adaptor was found, split into full occurrences and
    trailing overlaps, and how many bases were removed each time.
    """

    def __init__(self, adaptor: Adaptor):
        self.name = adaptor.name
        self.sequence = adaptor.sequence
        self.min_overlap = adaptor.min_overlap
        self.full_occurrences = 0
        self.trailing_overlaps = 0
        # removed length -> number of reads from which that many bases were removed
        self.removed: DefaultDict[int, int] = defaultdict(int)
        # overlap length -> count
        self.overlap_lengths: DefaultDict[int, int] = defaultdict(int)

    def __repr__(self):
        return (
            f"AdaptorStatistics(name={self.name!r}, full={self.full_occurrences}, "
            f"trailing={self.trailing_overlaps}, removed={dict(self.removed)})"
        )

    def __iadd__(self, other: Any):
        if not isinstance(other, AdaptorStatistics):
            raise ValueError("Cannot add")
        if self.sequence != other.sequence or self.min_overlap != other.min_overlap:
            raise RuntimeError("Incompatible AdaptorStatistics, cannot be added")
        self.full_occurrences += other.full_occurrences
        self.trailing_overlaps += other.trailing_overlaps
        for length, count in other.removed.items():
            self.removed[length] += count
        for length, count in other.overlap_lengths.items():
            self.overlap_lengths[length] += count
        return self

    def add_match(self, match: MatchResult, read_length: int) -> None:
        if isinstance(match, FullOccurrence):
            self.full_occurrences += 1
        elif isinstance(match, TrailingOverlap):
            self.trailing_overlaps += 1
            self.overlap_lengths[match.length] += 1
        else:
            return
        self.removed[match.removed_length(read_length)] += 1

    @property
    def total(self) -> int:
        return self.full_occurrences + self.trailing_overlaps

    @property
    def removed_bp(self) -> int:
        return sum(length * count for length, count in self.removed.items())

    def random_match_probabilities(self) -> List[float]:
        """
        Return a list p where p[i] is the probability that the first i
        bases of the adaptor match a random sequence with uniform base
        composition.
        """
        return [0.25**i for i in range(len(self.sequence) + 1)]

    def as_json(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "sequence": self.sequence,
            "min_overlap": self.min_overlap,
            "total_matches": self.total,
            "full_occurrences": self.full_occurrences,
            "trailing_overlaps": self.trailing_overlaps,
            "removed_bp": self.removed_bp,
            "overlap_lengths": {str(k): v for k, v in sorted(self.overlap_lengths.items())},
        }
