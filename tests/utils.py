import os
from typing import Iterable, Tuple

import dnaio


def write_fastq(path, records: Iterable[Tuple[str, str, str]]) -> str:
    """Write (name, sequence, qualities) tuples as FASTQ to path and return the path"""
    with dnaio.open(path, mode="w", fileformat="fastq") as f:
        for name, sequence, qualities in records:
            f.write(dnaio.SequenceRecord(name, sequence, qualities))
    return os.fspath(path)


def read_fastq(path):
    """Return a list of (name, sequence, qualities) tuples"""
    with dnaio.open(path, mode="r", fileformat="fastq") as f:
        return [(r.name, r.sequence, r.qualities) for r in f]


def record(name: str, sequence: str) -> Tuple[str, str, str]:
    return (name, sequence, "I" * len(sequence))


ADAPTOR = "AGATCGGAAG"

# Reads and how they look after the adaptor above has been removed
READS = [
    ("full", "TTTTAGATCGGAAG", "TTTT"),
    ("full_internal", "CCAGATCGGAAGTTTAGATC", "CC"),
    ("overlap", "TTTTAGATC", "TTTT"),
    ("overlap1", "GGGGCCA", "GGGGCC"),
    ("none", "TTTTTTTT", "TTTTTTTT"),
    ("adaptor_only", "AGATCGGAAG", ""),
    ("empty", "", ""),
]


def input_records():
    return [record(name, seq) for name, seq, _ in READS]


def expected_records():
    return [(name, trimmed, "I" * len(trimmed)) for name, _, trimmed in READS]
