"""
Logging for the build process.
"""

from datetime import datetime
from termcolor import colored
from typing import Any
from typing import Optional

import logging
import sys

#: The log level for tracing file removals.
FILE = (1 * logging.DEBUG + 3 * logging.INFO) // 4
logging.addLevelName(FILE, 'FILE')

#: The log level for logging the reasons for rebuilding a target.
WHY = (2 * logging.DEBUG + 2 * logging.INFO) // 4
logging.addLevelName(WHY, 'WHY')

#: The log level for tracing job completions.
TRACE = (3 * logging.DEBUG + 1 * logging.INFO) // 4
logging.addLevelName(TRACE, 'TRACE')

#: The default logger name.
LOGGER_NAME = 'stepmake'


class LoggingFormatter(logging.Formatter):  # pragma: no cover
    """
    A formatter that uses a decimal point for milliseconds.
    """

    def formatTime(self, record: Any, datefmt: Optional[str] = None) -> str:
        """
        Format the time.
        """
        record_datetime = datetime.fromtimestamp(record.created)
        if datefmt is not None:
            return record_datetime.strftime(datefmt)

        seconds = record_datetime.strftime('%Y-%m-%d %H:%M:%S')
        return '%s.%03d' % (seconds, record.msecs)


def default_logger() -> logging.Logger:
    """
    The logger used when no explicit one was given.
    """
    return logging.getLogger(LOGGER_NAME)


def setup_logging(logger_name: str = LOGGER_NAME, level: str = 'INFO') -> logging.Logger:
    """
    Create the logger for a build script, logging to ``stderr``.
    """
    logger = logging.getLogger(logger_name)
    logging.getLogger('asyncio').setLevel('WARN')

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        log_format = '%(asctime)s - ' + logger_name + ' - %(levelname)s - %(message)s'
        handler.setFormatter(LoggingFormatter(log_format))
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger


def color(string: str) -> str:
    """
    Return the string in bold if ``stderr`` is a terminal.
    """
    if sys.stderr.isatty():
        return colored(string, attrs=['bold'])
    return string
