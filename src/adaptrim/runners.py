import io
import copy
import logging
import multiprocessing
from abc import ABC, abstractmethod
from collections import deque
from contextlib import ExitStack
from typing import Deque, Iterator, List, Optional, Sequence, Tuple

import dnaio

from adaptrim.files import (
    InputFiles,
    InputPaths,
    OutputFiles,
    ProxyRecordWriter,
    xopen_binary,
)
from adaptrim.pipeline import Pipeline
from adaptrim.report import Statistics
from adaptrim.utils import Progress

logger = logging.getLogger()

mpctx = multiprocessing.get_context("spawn")

# Set in each worker process by _init_worker
_worker_state: Optional[Tuple[Pipeline, List[ProxyRecordWriter]]] = None


def _init_worker(pipeline: Pipeline, proxy_writers: List[ProxyRecordWriter]) -> None:
    global _worker_state
    _worker_state = (pipeline, proxy_writers)


def _process_chunk(chunks: Sequence[bytes]) -> Tuple[int, List[bytes], Statistics]:
    """
    Run the worker's pipeline on one chunk of raw FASTQ data (one chunk per
    input file) and return the number of processed reads, the serialized
    output (one item per output file) and statistics for this chunk.
    """
    assert _worker_state is not None
    # Copy pipeline and writers together so that the sinks in the copied
    # pipeline still refer to the copied writers
    pipeline, proxy_writers = copy.deepcopy(_worker_state)
    infiles = InputFiles(*(io.BytesIO(chunk) for chunk in chunks))
    n, bp1, bp2 = pipeline.process_reads(infiles)
    stats = Statistics().collect(n, bp1, bp2, pipeline.modifiers, pipeline.steps)
    outputs = [data for writer in proxy_writers for data in writer.drain()]
    return n, outputs, stats


class PipelineRunner(ABC):
    """
    A read processing pipeline
    """

    @abstractmethod
    def run(self, pipeline: Pipeline, progress: Progress, outfiles: OutputFiles) -> Statistics:
        """
        progress: Use an object that supports .update() and .close() such
        as DummyProgress or adaptrim.utils.Progress
        """

    @abstractmethod
    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


class ParallelPipelineRunner(PipelineRunner):
    """
    Run a Pipeline in a pool of worker processes

    The main process reads the input in chunks of raw FASTQ data and hands
    them to the workers. Each worker receives the pipeline (and with it the
    adaptor and its failure table) once, when it starts, and processes a
    fresh copy of it per chunk. At most 2 * n_workers chunks are in flight.
    Results are written to the output files in input order, and the
    statistics of all chunks are summed.

    The output files must have been opened with OutputFiles(proxied=True).
    """

    def __init__(
        self,
        inpaths: InputPaths,
        n_workers: int,
        buffer_size: Optional[int] = None,
    ):
        if n_workers < 1:
            raise ValueError("n_workers must be at least 1")
        self._inpaths = inpaths
        self._n_workers = n_workers
        self._buffer_size = 4 * 1024**2 if buffer_size is None else buffer_size

    def _read_chunks(self, *files) -> Iterator[Tuple[bytes, ...]]:
        if len(files) == 1:
            for chunk in dnaio.read_chunks(files[0], self._buffer_size):
                yield (bytes(chunk),)
        else:
            for chunk1, chunk2 in dnaio.read_paired_chunks(
                files[0], files[1], self._buffer_size
            ):
                yield (bytes(chunk1), bytes(chunk2))

    def run(self, pipeline: Pipeline, progress: Progress, outfiles: OutputFiles) -> Statistics:
        if not outfiles.proxied:
            raise ValueError("ParallelPipelineRunner requires proxied output files")
        binary_files = outfiles.binary_files()
        stats = Statistics()
        pending: Deque = deque()

        def write_result(result) -> None:
            nonlocal stats
            n, outputs, chunk_stats = result.get()
            assert len(outputs) == len(binary_files)
            for f, data in zip(binary_files, outputs):
                f.write(data)
            stats += chunk_stats
            progress.update(n)

        with ExitStack() as stack:
            files = [
                stack.enter_context(xopen_binary(path, "rb"))
                for path in self._inpaths.paths
            ]
            pool = stack.enter_context(
                mpctx.Pool(
                    self._n_workers,
                    initializer=_init_worker,
                    initargs=(pipeline, outfiles.proxy_writers()),
                )
            )
            logger.debug("Started pool of %d worker processes", self._n_workers)
            for chunks in self._read_chunks(*files):
                pending.append(pool.apply_async(_process_chunk, (chunks,)))
                if len(pending) >= 2 * self._n_workers:
                    write_result(pending.popleft())
            while pending:
                write_result(pending.popleft())
        if stats.paired is None:
            # Empty input: no chunks were processed
            stats += Statistics().collect(
                0, 0, 0 if pipeline.paired else None, pipeline.modifiers, pipeline.steps
            )
        progress.close()
        return stats

    def close(self) -> None:
        pass


class SerialPipelineRunner(PipelineRunner):
    """
    Run a Pipeline on a single core
    """

    def __init__(self, infiles: InputFiles):
        self._infiles = infiles

    def run(self, pipeline: Pipeline, progress: Progress, outfiles: OutputFiles) -> Statistics:
        (n, total1_bp, total2_bp) = pipeline.process_reads(
            self._infiles, progress=progress
        )
        if progress is not None:
            progress.close()
        return Statistics().collect(
            n, total1_bp, total2_bp, pipeline.modifiers, pipeline.steps
        )

    def close(self):
        self._infiles.close()


def make_runner(
    inpaths: InputPaths,
    cores: int,
    buffer_size: Optional[int] = None,
) -> PipelineRunner:
    """
    Return a SerialPipelineRunner if cores is 1 and a ParallelPipelineRunner otherwise.

    Args:
        inpaths:
        cores: number of worker processes
        buffer_size: Forwarded to `ParallelPipelineRunner()`. Ignored if cores is 1.
    """
    runner: PipelineRunner
    if cores > 1:
        runner = ParallelPipelineRunner(inpaths, n_workers=cores, buffer_size=buffer_size)
    else:
        runner = SerialPipelineRunner(inpaths.open())
    return runner
