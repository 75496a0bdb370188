"""
The settings shared by all the steps of a build.
"""

from .log import default_logger
from typing import Optional

import logging


class Context:  # pylint: disable=too-few-public-methods
    """
    Explicit configuration passed to a :py:class:`stepmake.build.Build` and its steps.
    """

    def __init__(self, *, cc: str = 'cc', ar: str = 'ar', force: bool = False,
                 logger: Optional[logging.Logger] = None) -> None:
        #: The C compiler (and linker) program.
        self.cc = cc  # pylint: disable=invalid-name

        #: The static library archiver program.
        self.ar = ar  # pylint: disable=invalid-name

        #: Whether to rebuild all targets regardless of their modification times.
        self.force = force

        #: The logger to report progress to.
        self.logger = logger or default_logger()

    def __repr__(self) -> str:
        return 'Context(cc=%r, ar=%r, force=%r, logger=%r)' \
            % (self.cc, self.ar, self.force, self.logger.name)
