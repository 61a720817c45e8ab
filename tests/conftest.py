import os

import pytest

from adaptrim.cli import main
from utils import write_fastq, read_fastq


@pytest.fixture(params=[1, 2])
def cores(request):
    return request.param


@pytest.fixture
def run(tmp_path):
    """
    Write records to an input FASTQ file, run adaptrim on it and return the
    Statistics and the records of the output file
    """

    def _run(params, records):
        if type(params) is str:
            params = params.split()
        inpath = write_fastq(tmp_path / "in.fastq", records)
        outpath = os.fspath(tmp_path / "out.fastq")
        params = list(params) + ["-o", outpath, inpath]
        stats = main([str(p) for p in params])
        return stats, read_fastq(outpath)

    return _run


@pytest.fixture
def run_paired(tmp_path):
    def _run(params, records1, records2, cores=1):
        if type(params) is str:
            params = params.split()
        in1 = write_fastq(tmp_path / "in.1.fastq", records1)
        in2 = write_fastq(tmp_path / "in.2.fastq", records2)
        out1 = os.fspath(tmp_path / "out.1.fastq")
        out2 = os.fspath(tmp_path / "out.2.fastq")
        params = list(params) + ["--cores", str(cores), "--buffer-size=512"]
        params += ["-o", out1, "-p", out2, in1, in2]
        stats = main([str(p) for p in params])
        return stats, read_fastq(out1), read_fastq(out2)

    return _run
