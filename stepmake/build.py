"""
Build a collection of steps.
"""

from .context import Context
from .errors import BuildError
from .errors import RemoveError
from .jobs import JobPool
from .log import FILE
from .log import TRACE
from .stat import Stat
from .step import Step
from .step import StepKind
from typing import Any
from typing import Awaitable
from typing import Callable
from typing import Dict
from typing import Iterable
from typing import List
from typing import Optional

import asyncio


def _verify_names(steps: Iterable[Step]) -> None:
    by_name: Dict[str, Step] = {}
    for top in steps:
        for step in top.walk():
            other = by_name.get(step.name)
            if other is None:
                by_name[step.name] = step
            elif other.kind != StepKind.FILE or step.kind != StepKind.FILE:
                raise RuntimeError('Conflicting definitions for the target: %s '
                                   'as both: %s and: %s' % (step.name, other.kind.value,
                                                            step.kind.value))


class Build:
    """
    A collection of top-level steps sharing a single pool of jobs.

    All the jobs run in an event loop owned by the build, so a build must be released using
    :py:meth:`free` (or by using it as a context manager) when it is no longer needed.
    """

    def __init__(self, context: Optional[Context] = None) -> None:
        #: The settings shared by all the steps.
        self.context = context or Context()

        #: The top-level steps, in the order they were installed.
        self.steps: List[Step] = []

        #: The jobs which were spawned but not waited for yet.
        self.pool = JobPool(self.context.logger)

        #: The number of jobs spawned by the last call to :py:meth:`build`.
        self.actions_count = 0

        self._loop: Optional[asyncio.AbstractEventLoop] = asyncio.new_event_loop()

    def __enter__(self) -> 'Build':
        return self

    def __exit__(self, *_args: Any) -> None:
        self.free()

    def install(self, step: Step) -> None:
        """
        Add a top-level step.

        Two different steps may not produce the same target, but multiple file steps may refer
        to the same file.
        """
        _verify_names(self.steps + [step])
        self.steps.append(step)

    def build(self, cores: int) -> None:
        """
        Build all the stale targets, running at most ``cores`` jobs at a time.

        On failure, jobs spawned before the failure may still be running; they are waited for by
        :py:meth:`clean` and :py:meth:`free`.
        """
        if cores < 1:
            raise RuntimeError('Invalid number of cores: %s' % cores)
        _verify_names(self.steps)
        Stat.reset()

        spawned_count = self.pool.spawned_count
        try:
            self._run(self._build, cores)
        except BuildError as exception:
            self.context.logger.error('Fail: %s', exception)
            raise
        finally:
            self.actions_count = self.pool.spawned_count - spawned_count

        if self.actions_count > 0:
            self.context.logger.log(TRACE, 'Done: %s job(s)', self.actions_count)
        else:
            self.context.logger.log(TRACE, 'Complete')

    async def _build(self, cores: int) -> None:
        for step in self.steps:
            await step.build(self.pool, cores, self.context)
        await self.pool.wait_all_and_reset()

    def clean(self) -> None:
        """
        Remove the targets of all the steps, except for files.
        """
        self._drain()
        Stat.reset()

        logger = self.context.logger
        for top in self.steps:
            for step in top.walk():
                if step.kind == StepKind.FILE:
                    continue
                try:
                    Stat.remove(step.name)
                except FileNotFoundError:
                    logger.debug('%s - Nothing to remove', step.name)
                    continue
                except OSError as exception:
                    logger.error('%s - Failed to remove the output', step.name)
                    raise RemoveError(step.name, exception.strerror or str(exception)) \
                        from exception
                logger.log(FILE, '%s - Remove the output', step.name)

    def free(self) -> None:
        """
        Wait for any remaining jobs and release all the steps.
        """
        if self._loop is None:
            return
        self._drain()
        self.steps = []
        self._loop.close()
        self._loop = None

    def _drain(self) -> None:
        try:
            self._run(self.pool.wait_all_and_reset)
        except BuildError as exception:
            self.context.logger.warning('Ignore the failed job: %s', exception)

    def _run(self, function: Callable[..., Awaitable], *args: Any) -> Any:
        if self._loop is None:
            raise RuntimeError('The build was already freed')
        return self._loop.run_until_complete(function(*args))
