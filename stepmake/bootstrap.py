"""
Rebuild a compiled build program from its own source.
"""

from .context import Context
from .errors import StaleCheckError
from .jobs import run_command
from .stat import Stat
from .stat import needs_rebuild
from typing import List
from typing import Optional

import os
import shutil
import sys


def rebuild_yourself(argv: List[str], *, source: Optional[str] = None,
                     binary: Optional[str] = None, context: Optional[Context] = None) -> bool:
    """
    Recompile the running program if its source is newer, and restart it with the same arguments.

    The ``binary`` defaults to ``argv[0]`` (looked up in the ``PATH`` if it is a bare name that is
    not in the current directory) and the ``source`` to the same path with a ``.c`` suffix.
    Returns ``False`` if the binary is up to date, or can not be found. Otherwise, this either
    replaces the current process (using ``execv``) or exits with a non-zero status, after
    restoring the old binary.
    """
    context = context or Context()
    logger = context.logger

    binary = binary or argv[0]
    Stat.forget(binary)
    if os.sep not in binary and not Stat.exists(binary):
        binary = shutil.which(binary) or binary
        Stat.forget(binary)
    if not Stat.exists(binary):
        logger.warning('%s - Can not find the running program to rebuild', binary)
        return False

    source = source or binary + '.c'
    try:
        if not needs_rebuild(binary, [source], logger):
            return False
    except StaleCheckError as exception:
        logger.error('%s - Can not rebuild: %s', binary, exception)
        sys.exit(1)

    old_binary = binary + '.old'
    logger.info('%s - Rebuild from: %s', binary, source)

    try:
        os.replace(binary, old_binary)
    except OSError as exception:
        logger.error('%s - Failed to rename to: %s (%s)', binary, old_binary, exception.strerror)
        sys.exit(1)
    Stat.forget(binary)

    if not run_command([context.cc, '-o', binary, source], logger):
        _restore(binary, old_binary, context)
        sys.exit(1)

    logger.info('%s - Restart: %s', binary, ' '.join(argv))
    try:
        os.execv(binary, argv)
    except OSError as exception:
        logger.error('%s - Failed to restart (%s)', binary, exception.strerror)
        _restore(binary, old_binary, context)
        sys.exit(1)
    return True


def _restore(binary: str, old_binary: str, context: Context) -> None:
    try:
        os.replace(old_binary, binary)
    except OSError as exception:
        context.logger.error('%s - Failed to restore from: %s (%s)',
                             binary, old_binary, exception.strerror)
    Stat.forget(binary)
