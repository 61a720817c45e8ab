import random

import pytest

from adaptrim.kmp import (
    InvalidPattern,
    failure_table,
    find_adaptor,
    FullOccurrence,
    TrailingOverlap,
    NoMatch,
    NO_MATCH,
)


def naive_failure_table(pattern):
    table = []
    for i in range(len(pattern)):
        prefix = pattern[: i + 1]
        table.append(
            max(k for k in range(len(prefix)) if prefix[:k] == prefix[len(prefix) - k :])
        )
    return table


def naive_find_adaptor(pattern, sequence):
    """Reference: leftmost substring search, then longest suffix-prefix overlap"""
    start = sequence.find(pattern)
    if start != -1:
        return FullOccurrence(start)
    for length in range(min(len(pattern), len(sequence)), 0, -1):
        if sequence.endswith(pattern[:length]):
            return TrailingOverlap(length)
    return NO_MATCH


def random_sequence(rng, length, alphabet="ACGT"):
    return "".join(rng.choice(alphabet) for _ in range(length))


@pytest.mark.parametrize(
    "pattern,expected",
    [
        ("A", [0]),
        ("AAAA", [0, 1, 2, 3]),
        ("ABAB", [0, 0, 1, 2]),
        ("AABAAA", [0, 1, 0, 1, 2, 2]),
        ("AGATCGGAAG", [0, 0, 1, 0, 0, 0, 0, 1, 1, 2]),
        ("AGATCGGAAGAGC", [0, 0, 1, 0, 0, 0, 0, 1, 1, 2, 3, 2, 0]),
    ],
)
def test_failure_table(pattern, expected):
    assert failure_table(pattern) == expected


def test_failure_table_empty_pattern():
    with pytest.raises(InvalidPattern):
        failure_table("")


def test_invalid_pattern_is_value_error():
    assert issubclass(InvalidPattern, ValueError)


def test_failure_table_properties():
    rng = random.Random(42)
    for _ in range(200):
        pattern = random_sequence(rng, rng.randint(1, 20), alphabet="AC")
        table = failure_table(pattern)
        assert len(table) == len(pattern)
        assert table[0] == 0
        for i, value in enumerate(table):
            assert 0 <= value < i + 1
        assert table == naive_failure_table(pattern)


@pytest.mark.parametrize(
    "sequence,expected",
    [
        ("TTTTAGATCGGAAG", FullOccurrence(4)),
        ("TTTTAGATC", TrailingOverlap(5)),
        ("TTTTTTTT", NO_MATCH),
        ("", NO_MATCH),
        ("AGATCGGAAG", FullOccurrence(0)),
        ("AGATCGGAAGAGATCGGAAG", FullOccurrence(0)),
        ("CCAGATCGGAAGTTTAGATC", FullOccurrence(2)),
        ("TTTTAGATCGGAA", TrailingOverlap(9)),
        ("TTTTA", TrailingOverlap(1)),
        ("AGATCAGATCGG", TrailingOverlap(7)),
    ],
)
def test_find_adaptor(sequence, expected):
    pattern = "AGATCGGAAG"
    assert find_adaptor(pattern, failure_table(pattern), sequence) == expected


def test_find_adaptor_matches_reference():
    rng = random.Random(1)
    for _ in range(1000):
        pattern = random_sequence(rng, rng.randint(1, 6), alphabet="AC")
        sequence = random_sequence(rng, rng.randint(0, 15), alphabet="AC")
        expected = naive_find_adaptor(pattern, sequence)
        assert find_adaptor(pattern, failure_table(pattern), sequence) == expected, (
            pattern,
            sequence,
        )


def test_full_occurrence_after_partial_prefix():
    # The scan must fall back correctly after "AAB" fails to continue "AABAAC"
    pattern = "AABAAC"
    assert find_adaptor(pattern, failure_table(pattern), "AABAABAAC") == FullOccurrence(3)


def test_trimmed_read_never_contains_full_occurrence():
    rng = random.Random(7)
    for _ in range(1000):
        pattern = random_sequence(rng, rng.randint(1, 6), alphabet="AC")
        sequence = random_sequence(rng, rng.randint(0, 15), alphabet="AC")
        table = failure_table(pattern)
        trimmed = find_adaptor(pattern, table, sequence).trimmed(sequence)
        again = find_adaptor(pattern, table, trimmed)
        assert not isinstance(again, FullOccurrence), (pattern, sequence)
        assert again == naive_find_adaptor(pattern, trimmed)


@pytest.mark.parametrize(
    "sequence,first,second",
    [
        # What remains before a full occurrence can end in an adaptor prefix
        ("TTTTAAGATCGGAAG", FullOccurrence(5), TrailingOverlap(1)),
        # and so can what remains before a trailing overlap
        ("TTTAAGATC", TrailingOverlap(5), TrailingOverlap(1)),
        ("TTTTAGATCGGAAG", FullOccurrence(4), NO_MATCH),
        ("TTTTAGATC", TrailingOverlap(5), NO_MATCH),
    ],
)
def test_trimming_twice(sequence, first, second):
    pattern = "AGATCGGAAG"
    table = failure_table(pattern)
    match = find_adaptor(pattern, table, sequence)
    assert match == first
    assert find_adaptor(pattern, table, match.trimmed(sequence)) == second


def test_match_results():
    assert not NO_MATCH
    assert isinstance(NO_MATCH, NoMatch)
    assert FullOccurrence(0)
    assert TrailingOverlap(1)
    assert FullOccurrence(4).trim_point(14) == 4
    assert TrailingOverlap(5).trim_point(9) == 4
    assert NO_MATCH.trim_point(8) == 8
    assert FullOccurrence(4).removed_length(14) == 10
    assert TrailingOverlap(5).trimmed("TTTTAGATC") == "TTTT"
    assert FullOccurrence(2) != FullOccurrence(3)
    assert FullOccurrence(2) != TrailingOverlap(2)
    with pytest.raises(ValueError):
        TrailingOverlap(0)
    with pytest.raises(ValueError):
        FullOccurrence(-1)


def test_no_match_returns_same_object():
    sequence = "TTTTTTTT"
    assert NO_MATCH.trimmed(sequence) is sequence
