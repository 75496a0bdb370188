"""
StepMake: build executables and libraries from a tree of steps.
"""

from .bootstrap import rebuild_yourself
from .build import Build
from .context import Context
from .errors import BuildError
from .errors import ProcessFailed
from .errors import ProcessSignaled
from .errors import RemoveError
from .errors import SpawnError
from .errors import StaleCheckError
from .jobs import Job
from .jobs import JobPool
from .jobs import render_command
from .jobs import run_command
from .make import make
from .stat import Stat
from .stat import needs_rebuild
from .step import DebugLevel
from .step import OptimizeLevel
from .step import Step
from .step import StepKind
from .step import dynamic_library
from .step import executable
from .step import file
from .step import static_library
from .version import version as __version__  # pylint: disable=unused-import

__all__ = [
    'Build', 'BuildError', 'Context', 'DebugLevel', 'Job', 'JobPool', 'OptimizeLevel',
    'ProcessFailed', 'ProcessSignaled', 'RemoveError', 'SpawnError', 'StaleCheckError', 'Stat',
    'Step', 'StepKind', 'dynamic_library', 'executable', 'file', 'make', 'needs_rebuild',
    'rebuild_yourself', 'render_command', 'run_command', 'static_library',
]
