"""
Routines for printing a report.
"""
import copy
from dataclasses import dataclass
from io import StringIO
from collections import defaultdict
from typing import Any, Dict, Iterator, List, Optional

from .adaptors import AdaptorStatistics
from .modifiers import AdaptorCutter, NEndTrimmer, PairedEndModifierWrapper
from .statistics import ReadLengthStatistics
from .steps import EmptyMatePlaceholder, FILTER_STEPS, SINKS
from .utils import MICRO

FILTERS = {
    "too_short": "that were too short",
    "is_untrimmed": "discarded as untrimmed",
    "both_empty": "with both mates empty",
}


def safe_divide(numerator: Optional[int], denominator: int) -> float:
    if numerator is None or not denominator:
        return 0.0
    else:
        return numerator / denominator


def add_if_not_none(a: Optional[int], b: Optional[int]) -> Optional[int]:
    if a is None:
        return b
    if b is None:
        return a
    return a + b


class Statistics:
    """
    Counts collected from the modifiers and steps of a pipeline after it has run.
    Statistics of pipelines that processed different parts of the input
    (worker processes) are combined with +=.
    """

    def __init__(self) -> None:
        self.paired: Optional[bool] = None
        self.n = 0
        self.total_bp = [0, 0]
        # Map a filter name to the number of filtered reads/read pairs
        self.filtered: Dict[str, int] = defaultdict(int)
        self.read_length_statistics = ReadLengthStatistics()
        self.with_adaptors: List[Optional[int]] = [None, None]
        self.adaptor_stats: List[Optional[AdaptorStatistics]] = [None, None]
        self.n_trimmed_bp: List[Optional[int]] = [None, None]
        self.placeholders: Optional[int] = None
        self._collected = False

    def __iadd__(self, other: Any):
        if not isinstance(other, Statistics):
            raise ValueError(f"Cannot add {type(other).__name__}")
        if self.paired is None:
            self.paired = other.paired
        elif other.paired is not None and self.paired != other.paired:
            raise ValueError("Incompatible Statistics: paired is not equal")
        self.n += other.n
        self.read_length_statistics += other.read_length_statistics
        for filter_name, count in other.filtered.items():
            self.filtered[filter_name] += count
        self.placeholders = add_if_not_none(self.placeholders, other.placeholders)
        for i in (0, 1):
            self.total_bp[i] += other.total_bp[i]
            self.with_adaptors[i] = add_if_not_none(
                self.with_adaptors[i], other.with_adaptors[i]
            )
            self.n_trimmed_bp[i] = add_if_not_none(
                self.n_trimmed_bp[i], other.n_trimmed_bp[i]
            )
            if self.adaptor_stats[i] is None:
                self.adaptor_stats[i] = copy.deepcopy(other.adaptor_stats[i])
            elif other.adaptor_stats[i] is not None:
                self.adaptor_stats[i] += other.adaptor_stats[i]  # type: ignore
        return self

    def collect(
        self, n: int, total_bp1: int, total_bp2: Optional[int], modifiers, steps
    ):
        """
        n -- total number of reads
        total_bp1 -- number of bases in first reads
        total_bp2 -- number of bases in second reads. None for single-end data.
        """
        if self._collected:
            raise ValueError("Cannot call Statistics.collect more than once")
        self.n = n
        self.total_bp[0] = total_bp1
        self.paired = total_bp2 is not None
        if total_bp2 is not None:
            self.total_bp[1] = total_bp2
        for step in steps:
            self._collect_step(step)
        for modifier in modifiers:
            self._collect_modifier(modifier)
        self._collected = True

        # For chaining
        return self

    def _collect_step(self, step) -> None:
        if isinstance(step, SINKS):
            self.read_length_statistics += step.statistics
        if isinstance(step, FILTER_STEPS):
            self.filtered[step.name] += step.filtered
        if isinstance(step, EmptyMatePlaceholder):
            self.placeholders = add_if_not_none(self.placeholders, step.replaced)

    def _collect_modifier(self, m) -> None:
        if isinstance(m, PairedEndModifierWrapper):
            modifiers_list = [(0, m._modifier1), (1, m._modifier2)]
        else:
            modifiers_list = [(0, m)]
        for i, modifier in modifiers_list:
            if isinstance(modifier, AdaptorCutter):
                self.with_adaptors[i] = modifier.with_adaptors
                self.adaptor_stats[i] = modifier.adaptor_statistics
            elif isinstance(modifier, NEndTrimmer):
                self.n_trimmed_bp[i] = add_if_not_none(
                    self.n_trimmed_bp[i], modifier.trimmed_bases
                )

    @property
    def total(self) -> int:
        return sum(self.total_bp)

    @property
    def written(self) -> int:
        return self.read_length_statistics.written_reads()

    @property
    def written_bp(self):
        return self.read_length_statistics.written_bp()

    @property
    def total_written_bp(self) -> int:
        return sum(self.written_bp)

    @property
    def n_trimmed(self) -> Optional[int]:
        return add_if_not_none(*self.n_trimmed_bp)

    @property
    def written_fraction(self) -> float:
        return safe_divide(self.written, self.n)

    @property
    def with_adaptors_fraction(self) -> List[float]:
        return [safe_divide(v, self.n) for v in self.with_adaptors]

    @property
    def total_written_bp_fraction(self) -> float:
        return safe_divide(self.total_written_bp, self.total)

    def filtered_fraction(self, filter_name: str) -> float:
        return safe_divide(self.filtered.get(filter_name), self.n)

    def as_json(self) -> Dict:
        """
        Return a dict representation suitable for dumping in JSON format
        """
        written_bp = self.written_bp
        adaptors = []
        for i in (0, 1) if self.paired else (0,):
            astats = self.adaptor_stats[i]
            adaptors.append(astats.as_json() if astats is not None else None)
        return {
            "read_counts": {  # pairs or reads
                "input": self.n,
                "filtered": {name: self.filtered.get(name) for name in FILTERS},
                "output": self.written,
                "read1_with_adaptor": self.with_adaptors[0],
                "read2_with_adaptor": self.with_adaptors[1] if self.paired else None,
                "empty_mates_replaced": self.placeholders,
            },
            "basepair_counts": {
                "input": self.total,
                "input_read1": self.total_bp[0],
                "input_read2": self.total_bp[1] if self.paired else None,
                "n_trimmed": self.n_trimmed,
                "output": self.total_written_bp,
                "output_read1": written_bp[0],
                "output_read2": written_bp[1] if self.paired else None,
            },
            "adaptor_read1": adaptors[0],
            "adaptor_read2": adaptors[1] if self.paired else None,
        }


@dataclass
class HistogramRow:
    """One row in the trailing overlap histogram"""

    length: int
    count: int
    expect: float


def histogram_rows(astats: AdaptorStatistics, n: int) -> Iterator[HistogramRow]:
    """
    Yield one row per observed trailing overlap length, including the number
    of reads expected to overlap by chance (assuming a uniform distribution
    of nucleotides in the reads).

    n -- total no. of reads.
    """
    probabilities = astats.random_match_probabilities()
    for length in sorted(astats.overlap_lengths):
        yield HistogramRow(
            length=length,
            count=astats.overlap_lengths[length],
            expect=n * probabilities[length],
        )


def histogram(astats: AdaptorStatistics, n: int) -> str:
    sio = StringIO()
    print("length", "count", "expect", sep="\t", file=sio)
    for row in histogram_rows(astats, n):
        print(row.length, row.count, f"{row.expect:.1F}", sep="\t", file=sio)
    return sio.getvalue()


def adaptor_report(astats: AdaptorStatistics, n: int, title: str) -> str:
    sio = StringIO()

    def print_s(*args, **kwargs):
        kwargs["file"] = sio
        print(*args, **kwargs)

    print_s("===", title, "===")
    print_s()
    print_s(
        f"Sequence: {astats.sequence}; Length: {len(astats.sequence)}; "
        f"Trimmed: {astats.total} times"
    )
    if astats.total == 0:
        return sio.getvalue()
    print_s()
    print_s(f"Minimum overlap: {astats.min_overlap}")
    print_s(f"Full occurrences:  {astats.full_occurrences:13,d}")
    print_s(f"Trailing overlaps: {astats.trailing_overlaps:13,d}")
    print_s(f"Removed bases:     {astats.removed_bp:13,d} bp")
    if astats.trailing_overlaps:
        print_s()
        print_s("Overview of trailing overlaps")
        print_s(histogram(astats, n))
    return sio.getvalue()


def format_filter_report(stats: Statistics) -> str:
    report = ""
    pairs_or_reads = "Pairs" if stats.paired else "Reads"
    for name, description in FILTERS.items():
        if name not in stats.filtered:
            continue
        value = stats.filtered[name]
        fraction = stats.filtered_fraction(name)
        report += (
            f"{pairs_or_reads} "
            + (description + ":").ljust(27)
            + f"{value:13,d} ({fraction:.1%})\n"
        )
    return report


def full_report(stats: Statistics, time: float) -> str:
    """Return the human-readable report that is logged at the end of a run"""
    if stats.n == 0:
        return "No reads processed!"
    if time == 0:
        time = 1e-6
    sio = StringIO()

    def print_s(*args, **kwargs):
        kwargs["file"] = sio
        print(*args, **kwargs)

    print_s(
        f"Finished in {time:.3F} s ({1e6 * time / stats.n:.3F} {MICRO}s/read; "
        f"{stats.n / time * 60 / 1e6:.2F} M reads/minute)."
    )
    print_s()
    print_s("=== Summary ===")
    print_s()
    pairs_or_reads = "Pairs" if stats.paired else "Reads"
    if stats.paired:
        print_s(f"Total read pairs processed:      {stats.n:13,d}")
        for i in (0, 1):
            if stats.with_adaptors[i] is not None:
                print_s(
                    f"  Read {i + 1} with adaptor:           "
                    f"{stats.with_adaptors[i]:13,d} ({stats.with_adaptors_fraction[i]:.1%})"
                )
    else:
        print_s(f"Total reads processed:           {stats.n:13,d}")
        if stats.with_adaptors[0] is not None:
            print_s(
                f"Reads with adaptors:             "
                f"{stats.with_adaptors[0]:13,d} ({stats.with_adaptors_fraction[0]:.1%})"
            )
    if stats.placeholders is not None:
        print_s(f"Empty mates replaced:            {stats.placeholders:13,d}")

    filter_report = format_filter_report(stats)
    if filter_report:
        print_s()
        print_s("== Read fate breakdown ==")
        print_s(filter_report, end="")
    print_s(
        f"{pairs_or_reads} written (passing filters): "
        f"{stats.written:13,d} ({stats.written_fraction:.1%})"
    )
    print_s()
    print_s(f"Total basepairs processed: {stats.total:13,d} bp")
    if stats.paired:
        print_s(f"  Read 1: {stats.total_bp[0]:13,d} bp")
        print_s(f"  Read 2: {stats.total_bp[1]:13,d} bp")
    if stats.n_trimmed is not None:
        print_s(
            f"N-trimmed:                 {stats.n_trimmed:13,d} bp "
            f"({safe_divide(stats.n_trimmed, stats.total):.1%})"
        )
    print_s(
        f"Total written (filtered):  {stats.total_written_bp:13,d} bp "
        f"({stats.total_written_bp_fraction:.1%})"
    )
    if stats.paired:
        print_s(f"  Read 1: {stats.written_bp[0]:13,d} bp")
        print_s(f"  Read 2: {stats.written_bp[1]:13,d} bp")
    print_s()

    for i in (0, 1):
        astats = stats.adaptor_stats[i]
        if astats is None:
            continue
        if stats.paired:
            title = ("First read: " if i == 0 else "Second read: ") + "Adaptor"
        else:
            title = "Adaptor"
        print_s(adaptor_report(astats, stats.n, f"{title} {astats.name}"))

    return sio.getvalue().rstrip()


def minimal_report(stats: Statistics, time: float) -> str:
    """Create a minimal tabular report suitable for concatenation"""
    _ = time

    fields = [
        "OK",
        stats.n,  # reads/pairs in
        stats.total,  # bases in
        stats.filtered.get("too_short", 0),  # reads/pairs
        stats.filtered.get("is_untrimmed", 0),  # reads/pairs
        stats.written,  # reads/pairs out
        stats.with_adaptors[0] if stats.with_adaptors[0] is not None else 0,  # reads
        stats.written_bp[0],  # bases out
    ]
    header = [
        "status",
        "in_reads",
        "in_bp",
        "too_short",
        "untrimmed",
        "out_reads",
        "w/adaptors",
        "out_bp",
    ]
    if stats.paired:
        fields += [
            stats.with_adaptors[1] if stats.with_adaptors[1] is not None else 0,
            stats.written_bp[1],
        ]
        header += ["w/adaptors2", "out2_bp"]
    return "\t".join(header) + "\n" + "\t".join(str(x) for x in fields)
