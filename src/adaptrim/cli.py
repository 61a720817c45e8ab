#!/usr/bin/env python
#
# Copyright (c) 2024 The adaptrim contributors
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN
# THE SOFTWARE.

"""
adaptrim version {version}

adaptrim removes a 3' adaptor from the reads in FASTQ files.

Usage:
    adaptrim [-a ADAPTOR] [options] [-o output.fastq] input.fastq

For paired-end reads:
    adaptrim [-a ADAPTOR] [options] -o out1.fastq -p out2.fastq in1.fastq in2.fastq

The adaptor is matched exactly (no mismatches or indels). If it occurs in
full, the read is cut at the leftmost occurrence. Otherwise, if the read ends
with the beginning of the adaptor, that partial adaptor is removed. For
paired-end data, the same adaptor is removed from both reads.

Use the file name '-' for standard input/output. Without the -o option,
output is sent to standard output.

Run "adaptrim --help" to see all command-line options.
"""
import sys
import copy
import json
import time
import shutil
import logging
import platform
from typing import List
from argparse import ArgumentParser, SUPPRESS, HelpFormatter

import dnaio
import xopen

from adaptrim import __version__
from adaptrim.adaptors import Adaptor, DEFAULT_ADAPTOR
from adaptrim.kmp import InvalidPattern
from adaptrim.modifiers import AdaptorCutter, NEndTrimmer, NameTruncator
from adaptrim.pipeline import Pipeline, SingleEndPipeline, PairedEndPipeline
from adaptrim.predicates import TooShort, IsUntrimmed
from adaptrim.steps import (
    SingleEndFilter,
    PairedEndFilter,
    EmptyMatePlaceholder,
    SingleEndSink,
    PairedEndSink,
)
from adaptrim.report import full_report, minimal_report, Statistics
from adaptrim.runners import make_runner
from adaptrim.files import InputPaths, OutputFiles
from adaptrim.utils import available_cpu_count, Progress, DummyProgress
from adaptrim.log import setup_logging, REPORT

logger = logging.getLogger()


class AdaptrimArgumentParser(ArgumentParser):
    """
    This ArgumentParser customizes two things:
    - The usage message is not prefixed with 'usage:'
    - A brief message is shown on errors, not full usage
    """

    class CustomUsageHelpFormatter(HelpFormatter):
        def __init__(self, *args, **kwargs):
            kwargs["width"] = min(24 + 80, shutil.get_terminal_size().columns)
            super().__init__(*args, **kwargs)

        def add_usage(self, usage, actions, groups, prefix=None):
            if usage is not SUPPRESS:
                args = usage, actions, groups, ""
                self._add_item(self._format_usage, args)

    def __init__(self, *args, **kwargs):
        kwargs["formatter_class"] = self.CustomUsageHelpFormatter
        kwargs["usage"] = kwargs["usage"].replace("{version}", __version__)
        super().__init__(*args, **kwargs)

    def error(self, message):
        """
        If you override this in a subclass, it should not return -- it
        should either exit or raise an exception.
        """
        print('Run "adaptrim --help" to see command-line options.', file=sys.stderr)
        self.exit(2, f"\n{self.prog}: error: {message}\n")


class CommandLineError(Exception):
    pass


def get_argument_parser() -> ArgumentParser:
    parser = AdaptrimArgumentParser(usage=__doc__, add_help=False)
    group = parser.add_argument_group("Options")
    group.add_argument("-h", "--help", action="help", help="Show this help message and exit")
    group.add_argument("--version", action="version", help="Show version number and exit",
        version=__version__)
    group.add_argument("--debug", action="store_true", default=False,
        help="Print debugging information.")
    group.add_argument("-j", "--cores", type=int, default=1,
        help="Number of CPU cores to use. Use 0 to auto-detect. Default: %(default)s")

    # Hidden options
    # Buffer size for reading chunks of input when running in parallel
    group.add_argument("--buffer-size", type=int, default=4000000,
        help=SUPPRESS)

    group = parser.add_argument_group("Finding the adaptor")
    group.add_argument("-a", "--adaptor", default=DEFAULT_ADAPTOR, metavar="ADAPTOR",
        help="Sequence of the adaptor ligated to the 3' end of the reads (paired "
            "data: of both reads). The adaptor and subsequent bases are trimmed. "
            "Default: %(default)s")
    group.add_argument("-O", "--overlap", type=int, metavar="MINLENGTH", default=1,
        help="Require MINLENGTH overlap between read and adaptor for a partial "
            "adaptor at the end of a read to be trimmed. Full occurrences are "
            "always trimmed. Default: %(default)s")

    group = parser.add_argument_group("Additional read modifications")
    group.add_argument("--trim-n", action="store_true", default=False,
        help="Trim N's on ends of reads before searching for the adaptor.")
    group.add_argument("--short-names", action="store_true", default=False,
        help="Truncate read names at the first whitespace character. "
            "Default: read names are written unchanged.")

    group = parser.add_argument_group("Filtering of processed reads",
        description="Filters are applied after the above read modifications. "
            "Paired-end reads are only discarded if both reads match a filtering "
            "criterion.")
    group.add_argument("-m", "--minimum-length", type=int, default=0, metavar="LENGTH",
        help="Discard reads shorter than LENGTH. Default: %(default)s")
    group.add_argument("--discard-untrimmed", action="store_true", default=False,
        help="Discard reads that do not contain the adaptor.")

    group = parser.add_argument_group("Output")
    group.add_argument("--quiet", default=False, action="store_true",
        help="Print only error messages.")
    group.add_argument("--report", choices=("full", "minimal"), default=None,
        help="Which type of report to print: 'full' or 'minimal'. Default: full")
    group.add_argument("--json", metavar="FILE",
        help="Dump report in JSON format to FILE")
    group.add_argument("-o", "--output", metavar="FILE",
        help="Write trimmed reads to FILE. Default: write to standard output")

    group = parser.add_argument_group("Paired-end options",
        description="Provide two input files and use -o and -p to write the "
            "trimmed first and second reads of each pair.")
    group.add_argument("-p", "--paired-output", metavar="FILE",
        help="Write second read in a pair to FILE.")
    group.add_argument("--empty-mate-placeholder", action="store_true", default=False,
        help="If only one read of a pair has been trimmed to length zero, replace "
            "it with a single 'N' base. Pairs in which both reads are empty are "
            "discarded. Neither output file then contains empty records.")

    parser.add_argument("inputs", nargs="*", help=SUPPRESS)
    return parser


def determine_paired(args) -> bool:
    """
    Determine whether we should work in paired-end mode.
    """
    if not args.inputs:
        raise CommandLineError("You did not provide any input file names. "
            "Please give me something to do!")
    if len(args.inputs) > 2:
        raise CommandLineError("Too many input files. At most two (one for "
            "each read of a pair) are supported.")
    return len(args.inputs) == 2


def check_arguments(args, paired: bool) -> None:
    if args.overlap < 1:
        raise CommandLineError("The overlap must be at least 1.")
    if args.minimum_length < 0:
        raise CommandLineError("The minimum length cannot be negative.")
    if args.buffer_size < 1:
        raise CommandLineError("The buffer size must be positive.")
    if paired:
        if not args.output or not args.paired_output:
            raise CommandLineError("When trimming paired-end reads, you need to "
                "provide both output files with -o and -p.")
        if "-" in (args.output, args.paired_output):
            raise CommandLineError("Paired-end reads cannot be written to "
                "standard output.")
    else:
        if args.paired_output:
            raise CommandLineError("Option -p/--paired-output requires two input files.")
        if args.empty_mate_placeholder:
            raise CommandLineError("Option --empty-mate-placeholder requires "
                "paired-end data.")


def is_any_output_stdout(args) -> bool:
    return args.output is None or args.output == "-"


def open_record_writer(args, outfiles: OutputFiles, default_outfile, paired: bool):
    if paired:
        return outfiles.open_record_writer(args.output, args.paired_output)
    if is_any_output_stdout(args):
        return outfiles.open_stdout_record_writer(default_outfile)
    return outfiles.open_record_writer(args.output)


def make_pipeline(args, paired: bool, adaptor: Adaptor, writer) -> Pipeline:
    """Assemble modifiers and steps from the command-line arguments"""
    modifiers = []
    if args.short_names:
        modifiers.append(NameTruncator())
    if args.trim_n:
        modifiers.append(NEndTrimmer())
    modifiers.append(AdaptorCutter(adaptor))

    if not paired:
        steps = []
        if args.minimum_length > 0:
            steps.append(SingleEndFilter(TooShort(args.minimum_length)))
        if args.discard_untrimmed:
            steps.append(SingleEndFilter(IsUntrimmed()))
        steps.append(SingleEndSink(writer))
        return SingleEndPipeline(modifiers, steps)

    paired_steps = []
    if args.minimum_length > 0:
        paired_steps.append(PairedEndFilter(TooShort(args.minimum_length)))
    if args.discard_untrimmed:
        paired_steps.append(PairedEndFilter(IsUntrimmed()))
    if args.empty_mate_placeholder:
        paired_steps.append(EmptyMatePlaceholder())
    paired_steps.append(PairedEndSink(writer))
    return PairedEndPipeline(
        [(modifier, copy.deepcopy(modifier)) for modifier in modifiers],
        paired_steps,
    )


def log_header(cmdlineargs):
    """Print the "This is adaptrim ..." header"""
    logger.info(
        "This is adaptrim %s with Python %s", __version__, platform.python_version()
    )
    logger.info("Command line parameters: %s", " ".join(cmdlineargs))


def log_system_info():
    logger.debug("Python executable: %s", sys.executable)
    logger.debug("dnaio version: %s", dnaio.__version__)
    logger.debug("xopen version: %s", xopen.__version__)


def main_cli():  # pragma: no cover
    """Entry point for command-line script"""
    main(sys.argv[1:])
    return 0


def main(cmdlineargs: List[str], default_outfile=sys.stdout.buffer) -> Statistics:
    """
    Set up a processing pipeline from the command-line arguments, run it and return
    a Statistics object.

    default_outfile is the file to which trimmed reads are sent if the ``-o``
    parameter is not used.
    """
    start_time = time.time()
    parser = get_argument_parser()
    args, leftover_args = parser.parse_known_args(args=cmdlineargs)
    # Setup logging only if there are not already any handlers (can happen when
    # this function is being called externally such as from unit tests)
    if not logging.root.handlers:
        setup_logging(
            logger,
            log_to_stderr=is_any_output_stdout(args),
            quiet=args.quiet,
            minimal=args.report == "minimal",
            debug=args.debug,
        )
    log_header(cmdlineargs)
    log_system_info()
    if args.quiet and args.report:
        parser.error("Options --quiet and --report cannot be used at the same time")

    if leftover_args:
        parser.error("unrecognized arguments: " + " ".join(leftover_args))

    if args.cores < 0:
        parser.error("Value for --cores cannot be negative")

    cores = available_cpu_count() if args.cores == 0 else args.cores
    if sys.stderr.isatty() and not args.quiet and not args.debug:
        progress: Progress = Progress()
    else:
        progress = DummyProgress()

    try:
        paired = determine_paired(args)
        check_arguments(args, paired)
        # Fails before any input is opened if the adaptor is invalid
        adaptor = Adaptor(args.adaptor, min_overlap=args.overlap)
        logger.debug("Adaptor: %s", adaptor)
        inpaths = InputPaths(*args.inputs)
        with make_runner(inpaths, cores, args.buffer_size) as runner:
            outfiles = OutputFiles(proxied=cores > 1)
            writer = open_record_writer(args, outfiles, default_outfile, paired)
            pipeline = make_pipeline(args, paired, adaptor, writer)
            logger.info(
                "Processing %s reads on %d core%s ...",
                "paired-end" if paired else "single-end",
                cores,
                "s" if cores > 1 else "",
            )
            stats = runner.run(pipeline, progress, outfiles)
        outfiles.close()
    except KeyboardInterrupt:
        if args.debug:
            raise
        else:
            print("Interrupted", file=sys.stderr)
            sys.exit(130)
    except BrokenPipeError:
        sys.exit(1)
    except (InvalidPattern, CommandLineError) as e:
        logger.debug("Command line error. Traceback:", exc_info=True)
        logger.error("%s", e)
        sys.exit(2)
    except (
        OSError,
        EOFError,
        dnaio.UnknownFileFormat,
        dnaio.FileFormatError,
    ) as e:
        logger.debug("Error. Traceback:", exc_info=True)
        logger.error("%s", e)
        sys.exit(1)

    elapsed = time.time() - start_time
    if args.report == "minimal":
        report = minimal_report
    else:
        report = full_report
    logger.log(REPORT, "%s", report(stats, elapsed))
    if args.json is not None:
        with open(args.json, "w") as f:
            json.dump(stats.as_json(), f, indent=2)
            f.write("\n")
    return stats
