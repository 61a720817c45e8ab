"""
Logging for the command-line tool

Everything is logged through the root logger to a single stream handler.
INFO messages and the report are printed as they are; all other messages
are prefixed with their level name.
"""
import sys
import logging

# Level of the report. It lies between INFO and WARNING, so that
# --report=minimal can hide INFO messages but still print the report.
REPORT = 25
logging.addLevelName(REPORT, "REPORT")

UNPREFIXED_LEVELS = frozenset([logging.INFO, REPORT])


class CrashingHandler(logging.StreamHandler):
    """
    A StreamHandler that re-raises errors from writing to the stream (such
    as BrokenPipeError) instead of printing them and carrying on
    """

    def handleError(self, record):
        raise


class NiceFormatter(logging.Formatter):
    def format(self, record):
        message = super().format(record)
        if record.levelno in UNPREFIXED_LEVELS:
            return message
        return f"{record.levelname}: {message}"


def log_level(quiet=False, minimal=False, debug=False) -> int:
    """--debug takes precedence over --quiet, which takes precedence over --report=minimal"""
    if debug:
        return logging.DEBUG
    if quiet:
        return logging.ERROR
    if minimal:
        return REPORT
    return logging.INFO


def setup_logging(logger, log_to_stderr=True, minimal=False, quiet=False, debug=False):
    """
    Attach a handler to *logger* and return it. Messages go to stdout only
    if trimmed reads do not.
    """
    handler = CrashingHandler(sys.stderr if log_to_stderr else sys.stdout)
    handler.setFormatter(NiceFormatter())
    level = log_level(quiet=quiet, minimal=minimal, debug=debug)
    handler.setLevel(level)
    logger.setLevel(level)
    logger.addHandler(handler)
    return handler
