from collections import Counter, defaultdict
from typing import DefaultDict, Tuple


class ReadLengthStatistics:
    """
    Length histogram of the reads (or read pairs) that were written
    """

    def __init__(self) -> None:
        self._lengths: Tuple[DefaultDict[int, int], DefaultDict[int, int]] = (
            defaultdict(int),
            defaultdict(int),
        )

    def __repr__(self):
        return f"ReadLengthStatistics(written_reads={self.written_reads()})"

    def update(self, read) -> None:
        """Record a written single-end read"""
        self._lengths[0][len(read)] += 1

    def update2(self, read1, read2) -> None:
        """Record a written read pair"""
        self._lengths[0][len(read1)] += 1
        self._lengths[1][len(read2)] += 1

    def written_reads(self) -> int:
        """Number of written reads or read pairs"""
        return sum(self._lengths[0].values())

    def written_bp(self) -> Tuple[int, int]:
        return (
            sum(length * count for length, count in self._lengths[0].items()),
            sum(length * count for length, count in self._lengths[1].items()),
        )

    def written_lengths(self) -> Tuple[Counter, Counter]:
        return Counter(self._lengths[0]), Counter(self._lengths[1])

    def __iadd__(self, other: "ReadLengthStatistics"):
        for mine, theirs in zip(self._lengths, other.written_lengths()):
            for length, count in theirs.items():
                mine[length] += count
        return self
