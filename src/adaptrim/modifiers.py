"""
Read modifications. A modifier is called with a read and its
ModificationInfo and returns the modified read, or the same object if
nothing changed.
"""
import re
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from dnaio import SequenceRecord

from .adaptors import Adaptor
from .kmp import MatchResult

logger = logging.getLogger()


class ModificationInfo:
    """
    Per-read record of what the modifiers did, read by the filters. Holds
    the MatchResult of every adaptor match that led to trimming.
    """

    __slots__ = ["matches"]

    def __init__(self):
        self.matches: List[MatchResult] = []

    def __repr__(self):
        return f"ModificationInfo(matches={self.matches!r})"


class SingleEndModifier(ABC):
    @abstractmethod
    def __call__(self, read: SequenceRecord, info: ModificationInfo):
        pass


class PairedEndModifierWrapper:
    """
    Wrap two SingleEndModifiers that work on both reads in a paired-end read
    """

    def __init__(
        self,
        modifier1: Optional[SingleEndModifier],
        modifier2: Optional[SingleEndModifier],
    ):
        """Set one of the modifiers to None to work on R1 or R2 only"""
        if modifier1 is None and modifier2 is None:
            raise ValueError("Not both modifiers may be None")
        self._modifier1 = modifier1
        self._modifier2 = modifier2

    def __repr__(self):
        return (
            "PairedEndModifierWrapper("
            f"modifier1={self._modifier1!r}, modifier2={self._modifier2!r})"
        )

    def __call__(self, read1, read2, info1: ModificationInfo, info2: ModificationInfo):
        if self._modifier1 is None:
            return read1, self._modifier2(read2, info2)  # type: ignore
        if self._modifier2 is None:
            return self._modifier1(read1, info1), read2
        return self._modifier1(read1, info1), self._modifier2(read2, info2)


class AdaptorCutter(SingleEndModifier):
    """
    Find the adaptor in each read and remove it together with everything
    that follows it.

    The adaptor is searched for exactly once per read. The leftmost full
    occurrence is removed if there is one; otherwise the longest trailing
    overlap of at least adaptor.min_overlap bases is removed.
    """

    def __init__(self, adaptor: Adaptor):
        self.adaptor = adaptor
        self.with_adaptors = 0
        self.adaptor_statistics = adaptor.create_statistics()

    def __repr__(self):
        return f"AdaptorCutter(adaptor={self.adaptor!r})"

    def __call__(self, read, info: ModificationInfo):
        match = self.adaptor.match_to(read.sequence)
        if not match:
            return read
        self.with_adaptors += 1
        self.adaptor_statistics.add_match(match, len(read))
        info.matches.append(match)
        return match.trimmed(read)


class NEndTrimmer(SingleEndModifier):
    """Trims Ns from the 3' and 5' end of reads"""

    def __init__(self):
        self.start_trim = re.compile(r"^N+")
        self.end_trim = re.compile(r"N+$")
        self.trimmed_bases = 0

    def __repr__(self):
        return "NEndTrimmer()"

    def __call__(self, read, info: ModificationInfo):
        sequence = read.sequence
        start_cut = self.start_trim.match(sequence)
        start = start_cut.end() if start_cut else 0
        end_cut = self.end_trim.search(sequence, start)
        stop = end_cut.start() if end_cut else len(read)
        if start == 0 and stop == len(read):
            return read
        self.trimmed_bases += len(read) - (stop - start)
        return read[start:stop]


class NameTruncator(SingleEndModifier):
    """
    Truncate the read name at the first whitespace character, which drops
    the comment part of a FASTQ header
    """

    def __repr__(self):
        return "NameTruncator()"

    def __call__(self, read, info: ModificationInfo):
        name = read.name.split(maxsplit=1)
        if not name or name[0] == read.name:
            return read
        read = read[:]
        read.name = name[0]
        return read
