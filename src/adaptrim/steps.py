"""
Steps that trimmed reads pass through on their way to the output

A step returns the (possibly replaced) read or read pair, or None if it
consumed it. The pipeline stops at the first None. make_pipeline() adds
steps in this order:

1. Filters, which discard reads for which a Predicate holds.
2. For paired-end data with --empty-mate-placeholder, EmptyMatePlaceholder.
3. A sink, which writes everything it receives. It must come last.

Filters and the placeholder count what they discard in ``filtered`` under
the key ``name``. Sinks keep a ReadLengthStatistics in ``statistics``.
"""
from abc import ABC, abstractmethod
from typing import Optional, Tuple

from dnaio import SequenceRecord

from .predicates import Predicate
from .modifiers import ModificationInfo
from .statistics import ReadLengthStatistics

RecordPair = Tuple[SequenceRecord, SequenceRecord]


class SingleEndStep(ABC):
    @abstractmethod
    def __call__(self, read, info: ModificationInfo) -> Optional[SequenceRecord]:
        pass


class PairedEndStep(ABC):
    @abstractmethod
    def __call__(
        self, read1, read2, info1: ModificationInfo, info2: ModificationInfo
    ) -> Optional[RecordPair]:
        pass


class SingleEndFilter(SingleEndStep):
    def __init__(self, predicate: Predicate):
        self.predicate = predicate
        self.name = predicate.name
        self.filtered = 0

    def __repr__(self):
        return f"SingleEndFilter({self.predicate!r})"

    def __call__(self, read, info: ModificationInfo) -> Optional[SequenceRecord]:
        if self.predicate.test(read, info):
            self.filtered += 1
            return None
        return read


class PairedEndFilter(PairedEndStep):
    """
    Discard a read pair if the predicate holds for both reads. A pair in
    which only one read is, say, too short is kept intact.
    """

    def __init__(self, predicate: Predicate):
        self.predicate = predicate
        self.name = predicate.name
        self.filtered = 0

    def __repr__(self):
        return f"PairedEndFilter({self.predicate!r})"

    def __call__(
        self, read1, read2, info1: ModificationInfo, info2: ModificationInfo
    ) -> Optional[RecordPair]:
        if self.predicate.test(read1, info1) and self.predicate.test(read2, info2):
            self.filtered += 1
            return None
        return (read1, read2)


class EmptyMatePlaceholder(PairedEndStep):
    """
    Keep both output files free of empty records.

    If exactly one mate has been trimmed to length zero, it is replaced by
    a record with a single placeholder base. If both mates are empty, the
    pair is discarded and counted in ``filtered``.
    """

    name = "both_empty"

    def __init__(self, base: str = "N", quality: str = "B"):
        self._base = base
        self._quality = quality
        self.replaced = 0
        self.filtered = 0

    def __repr__(self):
        return f"EmptyMatePlaceholder(base={self._base!r}, quality={self._quality!r})"

    def _placeholder(self, read) -> SequenceRecord:
        self.replaced += 1
        return SequenceRecord(read.name, self._base, self._quality)

    def __call__(self, read1, read2, info1, info2) -> Optional[RecordPair]:
        if len(read1) and len(read2):
            return (read1, read2)
        if not len(read1) and not len(read2):
            self.filtered += 1
            return None
        if not len(read1):
            return (self._placeholder(read1), read2)
        return (read1, self._placeholder(read2))


class SingleEndSink(SingleEndStep):
    def __init__(self, writer):
        self.writer = writer
        self.statistics = ReadLengthStatistics()

    def __repr__(self):
        return f"SingleEndSink({self.writer!r})"

    def __call__(self, read, info: ModificationInfo) -> None:
        self.writer.write(read)
        self.statistics.update(read)
        return None


class PairedEndSink(PairedEndStep):
    def __init__(self, writer):
        self.writer = writer
        self.statistics = ReadLengthStatistics()

    def __repr__(self):
        return f"PairedEndSink({self.writer!r})"

    def __call__(self, read1, read2, info1, info2) -> None:
        self.writer.write(read1, read2)
        self.statistics.update2(read1, read2)
        return None


# Steps that discard reads and count them
FILTER_STEPS = (SingleEndFilter, PairedEndFilter, EmptyMatePlaceholder)

SINKS = (SingleEndSink, PairedEndSink)
