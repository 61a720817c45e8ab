import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple, Union

from .files import InputFiles
from .utils import Progress
from .modifiers import SingleEndModifier, PairedEndModifierWrapper, ModificationInfo
from .steps import SingleEndStep, PairedEndStep

logger = logging.getLogger()

# Number of records between two progress updates
PROGRESS_INTERVAL = 10000


class Pipeline(ABC):
    """
    Run every record from the input through the modifiers and then the steps.

    The last step is expected to be a sink; a record that a filter consumes
    never reaches it.
    """

    paired: bool

    def __init__(self, modifiers, steps):
        self._modifiers: List = list(modifiers)
        self._steps: List = list(steps)
        self._chain = self._modifiers + self._steps
        for i, step in enumerate(self._chain, 1):
            logger.debug("Pipeline step %d: %s", i, step)

    @property
    def modifiers(self):
        return self._modifiers

    @property
    def steps(self):
        return self._steps

    def process_reads(
        self,
        infiles: InputFiles,
        progress: Optional[Progress] = None,
    ) -> Tuple[int, int, Optional[int]]:
        """
        Process all records from *infiles* and close the files.

        Return (number of reads or pairs, bases in R1, bases in R2). The
        last entry is None for single-end data.
        """
        n = 0
        bp = [0, 0]
        try:
            with infiles.open() as reader:
                for record in reader:
                    n += 1
                    if progress is not None and n % PROGRESS_INTERVAL == 0:
                        progress.update(PROGRESS_INTERVAL)
                    self._process_record(record, bp)
        finally:
            infiles.close()
        if progress is not None:
            progress.update(n % PROGRESS_INTERVAL)
        return (n, bp[0], bp[1] if self.paired else None)

    @abstractmethod
    def _process_record(self, record, bp: List[int]) -> None:
        """Add the length of the untrimmed record to bp and run the chain"""


class SingleEndPipeline(Pipeline):
    paired = False

    def __init__(
        self,
        modifiers: List[SingleEndModifier],
        steps: List[SingleEndStep],
    ):
        super().__init__(modifiers, steps)

    def _process_record(self, read, bp: List[int]) -> None:
        bp[0] += len(read)
        info = ModificationInfo()
        for step in self._chain:
            read = step(read, info)
            if read is None:
                return


class PairedEndPipeline(Pipeline):
    """
    Pipeline for read pairs. Modifiers are (modifier1, modifier2) tuples of
    single-end modifiers for R1 and R2, either of which may be None, or
    PairedEndModifierWrapper instances.
    """

    paired = True

    def __init__(
        self,
        modifiers: List[
            Union[
                PairedEndModifierWrapper,
                Tuple[Optional[SingleEndModifier], Optional[SingleEndModifier]],
            ]
        ],
        steps: List[PairedEndStep],
    ):
        super().__init__(
            [
                PairedEndModifierWrapper(*m) if isinstance(m, tuple) else m
                for m in modifiers
            ],
            steps,
        )

    def _process_record(self, pair, bp: List[int]) -> None:
        read1, read2 = pair
        bp[0] += len(read1)
        bp[1] += len(read2)
        info1 = ModificationInfo()
        info2 = ModificationInfo()
        for step in self._chain:
            pair = step(*pair, info1, info2)
            if pair is None:
                return
