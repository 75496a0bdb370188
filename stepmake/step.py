"""
The nodes of the build graph.
"""

from .context import Context
from .errors import BuildError
from .jobs import JobPool
from .jobs import render_command
from .log import WHY
from .stat import Stat
from .stat import needs_rebuild as output_needs_rebuild
from enum import Enum
from typing import Any
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Optional

import os


class StepKind(Enum):
    """
    What a step produces.
    """

    #: An existing file (typically a source file), which has no build action.
    FILE = 'file'

    #: An executable program linked from its sources.
    EXECUTABLE = 'executable'

    #: A static library archived from its sources.
    STATIC_LIBRARY = 'static_library'

    #: A dynamic (shared) library linked from its sources.
    DYNAMIC_LIBRARY = 'dynamic_library'


class DebugLevel(Enum):
    """
    How much debug information to generate.

    The value is the compiler flag (if any).
    """

    NONE = ''
    AUTO = '-g'
    GDB = '-ggdb'


class OptimizeLevel(Enum):
    """
    How much to optimize the generated code.

    The value is the compiler flag (if any).
    """

    NONE = ''
    O1 = '-O1'
    O2 = '-O2'
    O3 = '-O3'
    OFAST = '-Ofast'
    OS = '-Os'
    OZ = '-Oz'


class Step:  # pylint: disable=too-many-instance-attributes
    """
    A build step, producing a single target from other steps.

    Each step exclusively owns its ``srcs`` and ``deps``, so the steps of a build form a tree.
    """

    def __init__(self, kind: StepKind, name: str, *,  # pylint: disable=too-many-arguments
                 srcs: Iterable['Step'] = (), deps: Iterable['Step'] = (),
                 debug: DebugLevel = DebugLevel.NONE,
                 optimize: OptimizeLevel = OptimizeLevel.NONE,
                 flags: Iterable[str] = (), linker_flags: Iterable[str] = ()) -> None:
        """
        Create a build step.
        """
        #: What the step produces.
        self.kind = kind

        #: The path of the target.
        self.name = name

        #: The debug information level.
        self.debug = debug

        #: The optimization level.
        self.optimize = optimize

        #: The steps whose targets are passed to the compiler.
        self.srcs: List[Step] = []

        #: The steps whose targets only affect whether this step is stale (e.g. headers).
        self.deps: List[Step] = []

        #: Additional compiler flags (e.g. ``-Wall``).
        self.flags: List[str] = []

        #: Flags passed to the linker (each as ``-Wl,flag``).
        self.linker_flags: List[str] = []

        for src in srcs:
            self.add_src(src)
        for dep in deps:
            self.add_dep(dep)
        for flag in flags:
            self.add_flag(flag)
        for flag in linker_flags:
            self.add_linker_flag(flag)

    def __repr__(self) -> str:
        return 'Step(%s, %r)' % (self.kind.name, self.name)

    def _verify_not_file(self, what: str) -> None:
        if self.kind == StepKind.FILE:
            raise RuntimeError('The file: %s can not have %s' % (self.name, what))

    def add_src(self, src: 'Step') -> None:
        """
        Add a step whose target is passed to the compiler.
        """
        self._verify_not_file('sources')
        self.srcs.append(src)

    def add_dep(self, dep: 'Step') -> None:
        """
        Add a step whose target is only used to decide whether this step is stale.
        """
        self._verify_not_file('dependencies')
        self.deps.append(dep)

    def add_flag(self, flag: str) -> None:
        """
        Add a compiler flag.
        """
        self._verify_not_file('flags')
        self.flags.append(flag)

    def add_linker_flag(self, flag: str) -> None:
        """
        Add a linker flag.
        """
        self._verify_not_file('linker flags')
        self.linker_flags.append(flag)

    def children(self) -> List['Step']:
        """
        All the direct inputs of the step, ``srcs`` first and then ``deps``.
        """
        return self.srcs + self.deps

    def walk(self) -> Iterator['Step']:
        """
        Iterate on this step and all the steps below it.
        """
        yield self
        for child in self.children():
            yield from child.walk()

    def needs_rebuild(self, context: Optional[Context] = None) -> bool:
        """
        Whether the target of this step needs to be (re)built.

        A file never needs to be built. Otherwise, the target is stale if it is missing, if any of
        its inputs is newer, or if any of its inputs needs to be rebuilt.
        """
        if self.kind == StepKind.FILE:
            return False

        context = context or Context()
        return self._needs_rebuild(context, (child for child in self.children()
                                             if child.needs_rebuild(context)))

    def _needs_rebuild(self, context: Context, stale_children: Iterator['Step']) -> bool:
        if context.force:
            context.logger.log(WHY, '%s - Must rebuild since forced', self.name)
            return True

        stale_child = next(stale_children, None)
        if stale_child is not None:
            context.logger.log(WHY, '%s - Must rebuild since the input: %s is stale',
                               self.name, stale_child.name)
            return True

        return output_needs_rebuild(self.name, [child.name for child in self.children()],
                                    context.logger)

    def command(self, context: Optional[Context] = None) -> List[str]:
        """
        The command line for building the target.
        """
        context = context or Context()
        sources = [src.name for src in self.srcs]

        if self.kind == StepKind.FILE:
            raise RuntimeError('The file: %s has no build command' % self.name)

        if self.kind == StepKind.STATIC_LIBRARY:
            return [context.ar, 'rcs', self.name] + sources

        command = [context.cc]
        for flag in (self.debug.value, self.optimize.value):
            if flag:
                command.append(flag)
        command += self.flags
        if self.kind == StepKind.DYNAMIC_LIBRARY:
            command += ['-shared', '-fPIC']
        command += ['-o', self.name]
        command += sources
        command += ['-Wl,' + flag for flag in self.linker_flags]
        return command

    async def build(self, pool: JobPool, cores: int, context: Optional[Context] = None) -> bool:
        """
        Build the inputs of the step and then, if needed, spawn the job building its target.

        Does not wait for the spawned job, which is left in the ``pool``. However, if the pool
        already contains ``cores`` jobs, first waits for all of them. Returns whether a job was
        spawned.
        """
        context = context or Context()
        logger = context.logger

        if len(pool) >= cores:
            logger.debug('%s - Wait for the full pool', self.name)
            await pool.wait_all_and_reset()

        rebuilt_children: List[Step] = []
        for child in self.children():
            if await child.build(pool, cores, context):
                rebuilt_children.append(child)

        if self.kind == StepKind.FILE:
            logger.debug('%s - Use the file', self.name)
            return False

        # A child is stale exactly when its build spawned a job.
        if not self._needs_rebuild(context, iter(rebuilt_children)):
            logger.info('%s - No rebuild needed', self.name)
            return False

        await pool.wait_for([child.name for child in self.children()])

        command = self.command(context)
        directory = os.path.dirname(self.name)
        try:
            Stat.mkdir_exists(directory)
        except OSError as exception:
            logger.error('%s - Failed to create the directory: %s', self.name, directory)
            raise BuildError('Failed to create the directory: %s (%s)'
                             % (directory, exception.strerror or exception)) from exception

        logger.info('%s - Build: %s', self.name, render_command(command, emphasized=self.name))
        await pool.spawn(command, target=self.name)
        return True


def file(name: str) -> Step:
    """
    A step for an existing file.
    """
    return Step(StepKind.FILE, name)


def executable(name: str, srcs: Iterable[Step] = (), **kwargs: Any) -> Step:
    """
    A step linking an executable.
    """
    return Step(StepKind.EXECUTABLE, name, srcs=srcs, **kwargs)


def static_library(name: str, srcs: Iterable[Step] = (), **kwargs: Any) -> Step:
    """
    A step archiving a static library.
    """
    return Step(StepKind.STATIC_LIBRARY, name, srcs=srcs, **kwargs)


def dynamic_library(name: str, srcs: Iterable[Step] = (), **kwargs: Any) -> Step:
    """
    A step linking a dynamic library.
    """
    return Step(StepKind.DYNAMIC_LIBRARY, name, srcs=srcs, **kwargs)
