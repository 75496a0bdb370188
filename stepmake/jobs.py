"""
Spawn and reap the external processes of the build.
"""

from .errors import BuildError
from .errors import ProcessFailed
from .errors import ProcessSignaled
from .errors import SpawnError
from .log import TRACE
from .log import color
from .log import default_logger
from .stat import Stat
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Optional
from typing import Sequence

import asyncio
import logging
import shlex
import signal


def render_command(command: Sequence[str], emphasized: Optional[str] = None) -> str:
    """
    Join a command into a string that can be pasted into a shell.

    An argument equal to ``emphasized`` (typically the target being built) is highlighted.
    """
    parts: List[str] = []
    for part in command:
        quoted = shlex.quote(part)
        if emphasized is not None and part == emphasized:
            quoted = color(quoted)
        parts.append(quoted)
    return ' '.join(parts)


class Job:
    """
    A spawned external process.

    A job may be associated with the target it produces, so that waiting for the job tells whether
    the target was built.
    """

    def __init__(self, command: List[str], process: asyncio.subprocess.Process,
                 target: Optional[str], logger: logging.Logger) -> None:
        #: The command line of the process.
        self.command = command

        #: The command as it is logged.
        self.log_command = render_command(command)

        #: The underlying process.
        self.process = process

        #: The target (output path) this job produces, if any.
        self.target = target

        #: The stream writing to the process standard input, if requested.
        self.stdin = process.stdin

        #: The stream reading the process standard output and error, if requested.
        self.stdout = process.stdout

        self._logger = logger
        self._log = target or command[0]

    @property
    def pid(self) -> int:
        """
        The process id.
        """
        return self.process.pid

    @staticmethod
    async def spawn(command: Sequence[str], *, stdin: bool = False, stdout: bool = False,
                    target: Optional[str] = None,
                    logger: Optional[logging.Logger] = None) -> 'Job':
        """
        Start an external process without waiting for it to complete.

        If ``stdin`` is set, the job's ``stdin`` is a pipe to the process. If ``stdout`` is set, the
        job's ``stdout`` is a pipe carrying both the standard output and error of the process.
        """
        command = list(command)
        if logger is None:
            logger = default_logger()
        if not command:
            raise SpawnError(command, 'empty command')

        if target is not None:
            Stat.forget(target)

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.PIPE if stdin else None,
                stdout=asyncio.subprocess.PIPE if stdout else None,
                stderr=asyncio.subprocess.STDOUT if stdout else None)
        except (OSError, ValueError) as exception:
            logger.error('%s - Failed to spawn: %s', target or command[0], render_command(command))
            raise SpawnError(command, str(exception)) from exception

        job = Job(command, process, target, logger)
        logger.debug('%s - Spawned the process: %s', job._log, process.pid)
        return job

    async def wait(self) -> None:
        """
        Wait for the process to exit, raising a :py:class:`BuildError` if it did not succeed.
        """
        try:
            status = await self.process.wait()
        finally:
            if self.target is not None:
                Stat.forget(self.target)

        if status == 0:
            self._logger.log(TRACE, '%s - Success: %s', self._log, self.log_command)
            return

        if status < 0:
            try:
                signal_name = signal.Signals(-status).name
            except ValueError:
                signal_name = str(-status)
            self._logger.error('%s - Killed by %s: %s', self._log, signal_name, self.log_command)
            raise ProcessSignaled(self.command, signal_name)

        self._logger.error('%s - Failure: %s', self._log, self.log_command)
        raise ProcessFailed(self.command, status)


class JobPool:
    """
    The collection of jobs which were spawned but not waited for yet.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        #: The live jobs, in the order they were spawned.
        self.jobs: List[Job] = []

        #: The total number of jobs spawned through the pool.
        self.spawned_count = 0

        self._logger = logger or default_logger()

    def __len__(self) -> int:
        return len(self.jobs)

    def __iter__(self) -> Iterator[Job]:
        return iter(self.jobs)

    def job_of(self, target: str) -> Optional[Job]:
        """
        The live job producing some target, if any.
        """
        for job in self.jobs:
            if job.target == target:
                return job
        return None

    async def spawn(self, command: Sequence[str], *, target: Optional[str] = None,
                    stdin: bool = False, stdout: bool = False) -> Job:
        """
        Spawn a new job and add it to the pool.
        """
        job = await Job.spawn(command, stdin=stdin, stdout=stdout, target=target,
                              logger=self._logger)
        self.jobs.append(job)
        self.spawned_count += 1
        return job

    async def wait_for(self, targets: Iterable[str]) -> None:
        """
        Wait for the jobs producing any of the targets, and remove them from the pool.
        """
        targets = set(targets)
        waited = [job for job in self.jobs if job.target in targets]
        if not waited:
            return
        self.jobs = [job for job in self.jobs if job.target not in targets]
        await _wait_jobs(waited)

    async def wait_all_and_reset(self) -> None:
        """
        Wait for all the jobs in the pool and clear it, even if some of them failed.

        Raises the first failure, if any.
        """
        waited = self.jobs
        self.jobs = []
        if waited:
            self._logger.debug('Wait for %s job(s)', len(waited))
        await _wait_jobs(waited)


async def _wait_jobs(jobs: List[Job]) -> None:
    failure: Optional[BuildError] = None
    for job in jobs:
        try:
            await job.wait()
        except BuildError as exception:
            if failure is None:
                failure = exception
    if failure is not None:
        raise failure


def run_command(command: Sequence[str], logger: Optional[logging.Logger] = None) -> bool:
    """
    Run a command to completion, returning whether it succeeded.

    This runs its own event loop so it must not be called from inside a running one.
    """
    if logger is None:
        logger = default_logger()

    async def _run() -> None:
        logger.info('Run: %s', render_command(command))
        job = await Job.spawn(command, logger=logger)
        await job.wait()

    try:
        asyncio.run(_run())
    except BuildError:
        return False
    return True
