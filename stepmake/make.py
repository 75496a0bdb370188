"""
A generic ``main`` for build scripts.
"""

from .build import Build
from .context import Context
from .errors import BuildError
from .log import LOGGER_NAME
from .log import setup_logging
from .parameters import build_parameters
from .parameters import compute_jobs
from .step import Step
from argparse import ArgumentParser
from importlib import import_module
from importlib import invalidate_caches
from typing import Callable
from typing import List
from typing import Optional
from typing import Sequence
from typing import Union

import os
import sys

#: The default module to load for the steps.
DEFAULT_MODULE = 'StepMake'

#: Either the top-level steps or a function creating them for a context.
Steps = Union[Sequence[Step], Callable[[Context], Sequence[Step]]]


def make(steps: Steps, parser: Optional[ArgumentParser] = None, *,
         logger_name: str = LOGGER_NAME, argv: Optional[List[str]] = None) -> None:
    """
    Build (or clean) the top-level steps according to the command line arguments.

    The command line accepts a ``build`` (the default) or ``clean`` command, the ``--force`` flag
    and the build parameters. Exits with a status of 1 on any failure.
    """
    if parser is None:
        parser = ArgumentParser(description='Build some targets using StepMake.')

    parser.add_argument('COMMAND', nargs='?', default='build', choices=['build', 'clean'],
                        help='Whether to build or clean the targets (default: build)')
    parser.add_argument('--force', '-f', default=False, action='store_true',
                        help='Rebuild all the targets, even if they are up to date')

    parameters = build_parameters()
    parameters.add_to_parser(parser)

    args = parser.parse_args(argv)
    logger = setup_logging(logger_name)

    try:
        parameters.parse_args(args)
        logger.setLevel(parameters['log_level'])
        context = Context(cc=parameters['cc'], ar=parameters['ar'], force=args.force,
                          logger=logger)

        with Build(context) as build:
            for step in (steps(context) if callable(steps) else steps):
                build.install(step)
            if args.COMMAND == 'clean':
                build.clean()
            else:
                build.build(compute_jobs(parameters['jobs']))
    except BuildError:
        sys.exit(1)
    except RuntimeError as exception:
        logger.error('%s', exception)
        sys.exit(1)


def main() -> None:
    """
    Universal main function for invoking StepMake build scripts.

    The build script module (given by ``--module``, or ``StepMake.py`` by default) must define a
    ``steps`` function, which is given the build context and returns the top-level steps.
    """
    parser = ArgumentParser(description='Build some targets using StepMake.')
    parser.add_argument('--module', '-m', metavar='MODULE', action='append',
                        help='A Python module to load (containing the steps function)')
    steps = _load_steps()
    make(steps, parser)


def _load_steps() -> Steps:
    # The module must be loaded before parsing the arguments, so this employs a simple scan of the
    # command line options.
    if os.getcwd() not in sys.path:
        sys.path.insert(0, os.getcwd())

    names = [value for option, value in zip(sys.argv, sys.argv[1:]) if option in ['-m', '--module']]
    if not names and os.path.exists(DEFAULT_MODULE + '.py'):
        names = [DEFAULT_MODULE]
    if not names:
        raise RuntimeError('No build script module given, and no %s.py file found'
                           % DEFAULT_MODULE)

    invalidate_caches()
    functions = []
    for name in names:
        module = import_module(name)
        function = getattr(module, 'steps', None)
        if function is None:
            raise RuntimeError('The build script module: %s does not define a steps function'
                               % name)
        functions.append(function)

    def _steps(context: Context) -> List[Step]:
        return [step for function in functions for step in function(context)]

    return _steps
