import os
import sys
import time
import locale
import itertools
import multiprocessing

try:
    "µ".encode(locale.getpreferredencoding())
    MICRO = "µ"
except UnicodeEncodeError:
    MICRO = "u"


def available_cpu_count() -> int:
    """
    Number of CPUs this process may run on, which can be smaller than the
    number of CPUs in the machine when an affinity mask is set
    """
    if hasattr(os, "sched_getaffinity"):
        return len(os.sched_getaffinity(0)) or multiprocessing.cpu_count()
    return multiprocessing.cpu_count()


class Progress:
    """
    Show the number of processed reads and the throughput on stderr, at
    most once per *every* seconds, next to a pair of scissors moving along
    a dashed line
    """

    def __init__(self, every: float = 1):
        self._every = every
        self._frames = self.scissors()
        self._n = 0
        self._start_time = self._shown_at = time.time()

    def __repr__(self):
        return f"Progress(n={self._n})"

    @staticmethod
    def scissors(width: int = 10):
        frames = []
        for cut in range(width + 1):
            line = " " * cut + "{}" + "-" * (width - cut)
            frames.append("[" + line.format("8<") + "]")
            frames.append("[" + line.format("8=") + "]")
        return itertools.cycle(frames + frames[::-1])

    def _show(self, frame: str, now: float) -> None:
        elapsed = now - self._start_time
        if self._n == 0 or elapsed <= 0:
            return
        hours, rest = divmod(int(elapsed), 3600)
        minutes, seconds = divmod(rest, 60)
        print(
            f"\r{frame} {hours:02d}:{minutes:02d}:{seconds:02d} "
            f"{self._n:13,d} reads @ {elapsed / self._n * 1e6:5.1F} {MICRO}s/read; "
            f"{self._n / elapsed * 60 / 1e6:6.2F} M reads/minute",
            end="",
            file=sys.stderr,
        )

    def update(self, increment: int) -> None:
        self._n += increment
        now = time.time()
        if now - self._shown_at >= self._every:
            self._show(next(self._frames), now)
            self._shown_at = now

    def close(self) -> None:
        """Show the final total and end the line"""
        frame = next(self._frames)
        self._show("Done".ljust(len(frame)), time.time())
        print(file=sys.stderr)


class DummyProgress(Progress):
    """Progress that shows nothing"""

    def update(self, increment: int) -> None:
        pass

    def close(self) -> None:
        pass
