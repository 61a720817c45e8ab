import pytest
from dnaio import SequenceRecord

from adaptrim.kmp import TrailingOverlap
from adaptrim.modifiers import ModificationInfo
from adaptrim.predicates import TooShort, IsUntrimmed
from adaptrim.steps import (
    SingleEndFilter,
    PairedEndFilter,
    EmptyMatePlaceholder,
    SingleEndSink,
    PairedEndSink,
)


class ListWriter:
    def __init__(self):
        self.written = []

    def write(self, *reads):
        self.written.append(reads)


def make_read(sequence, name="r"):
    read = SequenceRecord(name, sequence, "I" * len(sequence))
    return read, ModificationInfo()


def test_predicate_names():
    assert TooShort(1).name == "too_short"
    assert IsUntrimmed().name == "is_untrimmed"


def test_too_short():
    predicate = TooShort(3)
    assert predicate.test(*make_read("AC"))
    assert not predicate.test(*make_read("ACG"))
    assert TooShort(1).test(*make_read(""))
    with pytest.raises(ValueError):
        TooShort(0)


def test_is_untrimmed():
    read, info = make_read("ACGT")
    assert IsUntrimmed().test(read, info)
    info.matches.append(TrailingOverlap(1))
    assert not IsUntrimmed().test(read, info)


def test_single_end_filter():
    step = SingleEndFilter(TooShort(3))
    read, info = make_read("AC")
    assert step(read, info) is None
    read, info = make_read("ACGT")
    assert step(read, info) is read
    assert step.filtered == 1
    assert step.name == "too_short"


@pytest.mark.parametrize(
    "lengths,discarded",
    [
        ((0, 0), True),
        ((0, 5), False),
        ((5, 0), False),
        ((5, 5), False),
    ],
)
def test_paired_end_filter_needs_both_reads(lengths, discarded):
    step = PairedEndFilter(TooShort(1))
    read1, info1 = make_read("A" * lengths[0])
    read2, info2 = make_read("A" * lengths[1])
    result = step(read1, read2, info1, info2)
    if discarded:
        assert result is None
    else:
        assert result == (read1, read2)
    assert step.filtered == int(discarded)
    assert step.name == "too_short"


def test_empty_mate_placeholder():
    step = EmptyMatePlaceholder()
    empty, empty_info = make_read("", name="pair1")
    full, full_info = make_read("ACGT", name="pair1")

    out1, out2 = step(empty, full, empty_info, full_info)
    assert (out1.name, out1.sequence, out1.qualities) == ("pair1", "N", "B")
    assert out2 is full

    out1, out2 = step(full, empty, full_info, empty_info)
    assert out1 is full
    assert (out2.sequence, out2.qualities) == ("N", "B")

    assert step(full, full, full_info, full_info) == (full, full)
    assert step.replaced == 2
    assert step.filtered == 0


def test_empty_mate_placeholder_discards_pairs_with_both_mates_empty():
    step = EmptyMatePlaceholder()
    read1, info1 = make_read("")
    read2, info2 = make_read("")
    assert step(read1, read2, info1, info2) is None
    assert step.filtered == 1
    assert step.replaced == 0
    assert step.name == "both_empty"


def test_single_end_sink():
    writer = ListWriter()
    sink = SingleEndSink(writer)
    read, info = make_read("ACGT")
    assert sink(read, info) is None
    assert writer.written == [(read,)]
    assert sink.statistics.written_reads() == 1
    assert sink.statistics.written_bp() == (4, 0)


def test_paired_end_sink():
    writer = ListWriter()
    sink = PairedEndSink(writer)
    read1, info1 = make_read("ACGT")
    read2, info2 = make_read("AC")
    assert sink(read1, read2, info1, info2) is None
    assert writer.written == [(read1, read2)]
    assert sink.statistics.written_bp() == (4, 2)
