"""
Cache stat calls and decide whether targets are stale.
"""

from .errors import StaleCheckError
from .log import WHY
from sortedcontainers import SortedDict  # type: ignore
from stat import S_ISDIR
from typing import Optional
from typing import Sequence
from typing import Union

import errno
import logging
import os
import shutil

#: Internal cached stat result.
StatResult = Union[BaseException, os.stat_result]


def clean_path(path: str) -> str:
    """
    Return a clean and hopefully "canonical" path.

    We do not use absolute paths everywhere (as that would change the logged names). Instead we
    just convert each `//` to a single `/` and drop trailing `/`.
    """
    while '//' in path:
        path = path.replace('//', '/')
    while len(path) > 1 and path.endswith('/'):
        path = path[:-1]
    return path


class Stat:
    """
    Cache stat calls for better performance.
    """

    _cache: SortedDict

    @staticmethod
    def reset() -> None:
        """
        Clear the cached data.
        """
        Stat._cache = SortedDict()

    @staticmethod
    def stat(path: str) -> os.stat_result:
        """
        Return the ``stat`` data for a file.
        """
        return Stat._result(path, throw=True)  # type: ignore

    @staticmethod
    def try_stat(path: str) -> Optional[os.stat_result]:
        """
        Return the ``stat`` data for a file, or ``None`` if it does not exist.
        """
        result = Stat._result(path, throw=False)
        if isinstance(result, BaseException):
            return None
        return result

    @staticmethod
    def exists(path: str) -> bool:
        """
        Test whether a file exists on disk.
        """
        result = Stat._result(path, throw=False)
        return not isinstance(result, BaseException)

    @staticmethod
    def isfile(path: str) -> bool:
        """
        Whether a file exists and is not a directory.
        """
        result = Stat._result(path, throw=False)
        return not isinstance(result, BaseException) and not S_ISDIR(result.st_mode)

    @staticmethod
    def isdir(path: str) -> bool:
        """
        Whether a file exists and is a directory.
        """
        result = Stat._result(path, throw=False)
        return not isinstance(result, BaseException) and S_ISDIR(result.st_mode)

    @staticmethod
    def _result(path: str, *, throw: bool) -> StatResult:
        path = clean_path(path)
        result = Stat._cache.get(path)

        if result is not None and (not throw or not isinstance(result, BaseException)):
            return result

        try:
            result = os.stat(path)
        except OSError as exception:
            result = exception

        Stat._cache[path] = result

        if throw and isinstance(result, BaseException):
            raise result

        return result

    @staticmethod
    def forget(path: str) -> None:
        """
        Forget the cached ``stat`` data about a file. If it is a directory,
        also forget all the data about any files it contains.
        """
        path = clean_path(path)
        Stat._cache.pop(path, None)
        below = Stat._cache.irange(path + '/', path + '0', inclusive=(True, False))
        for index_path in list(below):
            del Stat._cache[index_path]

    @staticmethod
    def remove(path: str) -> None:
        """
        Force remove of a file or a directory.

        Raises ``FileNotFoundError`` if there is nothing to remove.
        """
        if Stat.isfile(path):
            Stat.forget(path)
            os.remove(path)
        elif Stat.exists(path):
            Stat.forget(path)
            shutil.rmtree(path)
        else:
            Stat.forget(path)
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)

    @staticmethod
    def mkdir_exists(path: str) -> None:
        """
        Ensure a directory exists.
        """
        if path and not Stat.exists(path):
            Stat.forget(path)
            os.makedirs(path, exist_ok=True)


Stat.reset()


def mtime_seconds(path: str) -> int:
    """
    The whole-second modification time of an existing file.
    """
    return int(Stat.stat(path).st_mtime)


def needs_rebuild(output_path: str, input_paths: Sequence[str],
                  logger: Optional[logging.Logger] = None) -> bool:
    """
    Whether the output needs to be rebuilt from the inputs.

    This is the case if the output does not exist, or if any of the inputs is newer (at a
    granularity of whole seconds). An input that can't be examined is an error.
    """
    try:
        output_mtime = mtime_seconds(output_path)
    except FileNotFoundError:
        if logger is not None:
            logger.log(WHY, '%s - Must build the missing output', output_path)
        return True
    except OSError as exception:
        raise StaleCheckError(output_path, exception.strerror or str(exception)) from exception

    for input_path in input_paths:
        try:
            input_mtime = mtime_seconds(input_path)
        except OSError as exception:
            raise StaleCheckError(input_path, exception.strerror or str(exception)) from exception
        if input_mtime > output_mtime:
            if logger is not None:
                logger.log(WHY, '%s - Must rebuild since the input: %s is newer',
                           output_path, input_path)
            return True

    return False
