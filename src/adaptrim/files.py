import io
import logging
from typing import Any, BinaryIO, List

import dnaio
from xopen import xopen

logger = logging.getLogger(__name__)

# Input is always parsed as FASTQ, there is no format detection
FILE_FORMAT = "fastq"


def xopen_binary(path: str, mode: str) -> BinaryIO:
    f = xopen(path, mode, threads=0)
    logger.debug("Opening '%s', mode '%s' with xopen resulted in %s", path, mode, f)
    return f


class InputFiles:
    """
    Already opened binary input files (one for single-end, two for paired-end
    data) from which FASTQ records are read
    """

    def __init__(self, *files: BinaryIO):
        if len(files) not in (1, 2):
            raise ValueError("Expected one or two input files")
        self._files = files

    @property
    def paired(self) -> bool:
        return len(self._files) == 2

    def open(self):
        return dnaio.open(*self._files, mode="r", fileformat=FILE_FORMAT)

    def close(self) -> None:
        for file in self._files:
            file.close()


class InputPaths:
    def __init__(self, *paths: str):
        if len(paths) not in (1, 2):
            raise ValueError("Expected one or two input paths")
        self.paths = paths

    @property
    def paired(self) -> bool:
        return len(self.paths) == 2

    def open(self) -> InputFiles:
        return InputFiles(*(xopen_binary(path, "rb") for path in self.paths))


class ProxyRecordWriter:
    """
    A FASTQ writer that is backed by BytesIO objects. Worker processes write
    to it, and the collected bytes are handed to the main process with drain().
    """

    def __init__(self, n_files: int):
        self._n_files = n_files
        self._buffers = [io.BytesIO() for _ in range(n_files)]
        self._writer = dnaio.open(*self._buffers, mode="w", fileformat=FILE_FORMAT)

    def __repr__(self):
        return f"ProxyRecordWriter(n_files={self._n_files})"

    def write(self, *args, **kwargs):
        self._writer.write(*args, **kwargs)

    def drain(self) -> List[bytes]:
        chunks = [buf.getvalue() for buf in self._buffers]
        for buf in self._buffers:
            buf.seek(0)
            buf.truncate()
        return chunks

    def __getstate__(self):
        """The dnaio writer cannot be pickled, only remember the number of files"""
        return self._n_files

    def __setstate__(self, state):
        self.__init__(state)


class OutputFiles:
    """
    Keep track of the output files and the record writers opened for them.

    If *proxied* is True, record writers are ProxyRecordWriter instances and
    the opened binary files are written to by a ParallelPipelineRunner.
    """

    def __init__(self, *, proxied: bool):
        self._proxied = proxied
        self._binary_files: List[BinaryIO] = []
        self._binary_files_to_close: List[BinaryIO] = []
        self._writers: List[Any] = []
        self._proxy_writers: List[ProxyRecordWriter] = []

    @property
    def proxied(self) -> bool:
        return self._proxied

    def open_record_writer(self, *paths: str):
        if len(paths) not in (1, 2):
            raise ValueError("Expected one or two paths")
        files = []
        for path in paths:
            binary_file = xopen_binary(path, "wb")
            files.append(binary_file)
            self._binary_files_to_close.append(binary_file)
        return self._make_writer(files)

    def open_stdout_record_writer(self, binary_file: BinaryIO):
        """Write records to an already open file such as sys.stdout.buffer, which is not closed"""
        return self._make_writer([binary_file])

    def _make_writer(self, files: List[BinaryIO]):
        self._binary_files.extend(files)
        if self._proxied:
            proxy_writer = ProxyRecordWriter(len(files))
            self._proxy_writers.append(proxy_writer)
            return proxy_writer
        writer = dnaio.open(*files, mode="w", fileformat=FILE_FORMAT)
        self._writers.append(writer)
        return writer

    def binary_files(self) -> List[BinaryIO]:
        return self._binary_files[:]

    def proxy_writers(self) -> List[ProxyRecordWriter]:
        return self._proxy_writers

    def close(self) -> None:
        """Close all output files that were opened from a path"""
        for writer in self._writers:
            writer.close()
        for f in self._binary_files:
            if f not in self._binary_files_to_close:
                f.flush()
        for bf in self._binary_files_to_close:
            bf.close()
