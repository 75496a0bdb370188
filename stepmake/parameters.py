"""
Configurable build parameters.

Values are taken from the defaults, then from configuration YAML files, and finally from explicit
command line flags.
"""

# pylint: disable=redefined-builtin

from argparse import ArgumentParser
from argparse import ArgumentTypeError
from argparse import Namespace
from typing import Any
from typing import Callable
from typing import Dict
from typing import List
from typing import Optional

import os
import yaml

#: The default parameter configuration YAML file to load.
DEFAULT_CONFIG = 'StepMake.yaml'

#: The known log levels.
LOG_LEVELS = ['DEBUG', 'TRACE', 'WHY', 'FILE', 'INFO', 'WARN', 'ERROR']


def str2bool(string: str) -> bool:
    """
    Parse a boolean command line argument.
    """
    if string.lower() in ['yes', 'true', 't', 'y', '1']:
        return True
    if string.lower() in ['no', 'false', 'f', 'n', '0']:
        return False
    raise ArgumentTypeError('Boolean value expected.')


def str2int(min: Optional[int] = None, max: Optional[int] = None) -> Callable[[str], int]:
    """
    Return a parser that accepts an int argument in an optional range.
    """
    def _parse(string: str) -> int:
        try:
            value = int(string)
        except ValueError:
            raise ArgumentTypeError('Expected int value')  # pylint: disable=raise-missing-from

        if (min is not None and value < min) or (max is not None and value > max):
            raise ArgumentTypeError('Expected int value, where %s <= value <= %s' % (min, max))

        return value

    return _parse


def str2choice(options: List[str]) -> Callable[[str], str]:
    """
    Return a parser that accepts a string argument which is one of the options.
    """
    def _parse(string: str) -> str:
        if string not in options:
            raise ArgumentTypeError('Expected one of: %s' % ' '.join(options))
        return string

    return _parse


class Parameter:  # pylint: disable=too-few-public-methods
    """
    Describe a configurable build parameter.
    """

    def __init__(self, *, name: str, default: Any, parser: Callable[[str], Any], description: str,
                 short: Optional[str] = None, metavar: Optional[str] = None) -> None:
        """
        Create a parameter description.
        """

        #: The unique name of the parameter.
        self.name = name

        #: The unique short name of the parameter.
        self.short = short

        #: The value to use if the parameter is not explicitly configured.
        self.default = default

        #: How to parse the parameter value from a string (command line argument).
        self.parser = parser

        #: A description of the parameter for help messages.
        self.description = description

        #: Optional name of the command line parameter value (``metavar`` in ``argparse``).
        self.metavar = metavar

        #: The effective value of the parameter.
        self.value = default

    def parse(self, value: Any, where: str) -> None:
        """
        Set the value of the parameter, parsing it if it is a string.
        """
        if not isinstance(value, str):
            self.value = value
            return
        try:
            self.value = self.parser(value)
        except (ArgumentTypeError, ValueError):
            raise RuntimeError(  # pylint: disable=raise-missing-from
                'Invalid value: %s for the parameter: %s%s' % (value, self.name, where))


class Parameters:
    """
    A collection of parameters.
    """

    def __init__(self) -> None:
        #: The known parameters.
        self.by_name: Dict[str, Parameter] = {}

    def add(self, parameter: Parameter) -> Parameter:
        """
        Register a parameter.
        """
        if parameter.name in self.by_name:
            raise RuntimeError('Multiple definitions for the parameter: %s' % parameter.name)
        self.by_name[parameter.name] = parameter
        return parameter

    def __getitem__(self, name: str) -> Any:
        return self.by_name[name].value

    def add_to_parser(self, parser: ArgumentParser) -> None:
        """
        Add a command line flag for each parameter to the parser to allow
        overriding parameter values directly from the command line.
        """
        parser.add_argument('--config', '-c', metavar='FILE', action='append',
                            help='Load a parameters configuration YAML file')
        for parameter in self.by_name.values():
            text = parameter.description.replace('%', '%%') + ' (default: %s)' % parameter.default
            if parameter.short:
                parser.add_argument('--' + parameter.name, '-' + parameter.short,
                                    help=text, metavar=parameter.metavar)
            else:
                parser.add_argument('--' + parameter.name, help=text, metavar=parameter.metavar)

    def parse_args(self, args: Namespace) -> None:
        """
        Update the values based on loaded configuration files and/or explicit
        command line flags.
        """
        if os.path.exists(DEFAULT_CONFIG):
            self.load_config(DEFAULT_CONFIG)
        for path in (vars(args).get('config') or []):
            self.load_config(path)

        for name, parameter in self.by_name.items():
            value = vars(args).get(name)
            if value is not None:
                parameter.parse(value, '')

    def load_config(self, path: str) -> None:
        """
        Load a configuration file.
        """
        with open(path, 'r') as file:
            try:
                data = yaml.safe_load(file.read())
            except yaml.YAMLError as exception:
                raise RuntimeError('Failed to parse the configuration file: %s (%s)'
                                   % (path, exception)) from exception

        if data is None:
            data = {}

        if not isinstance(data, dict):
            raise RuntimeError('The configuration file: %s '
                               'does not contain a top-level mapping' % path)

        for name, value in data.items():
            parameter = self.by_name.get(name)
            if parameter is None:
                raise RuntimeError('Unknown parameter: %s '
                                   'specified in the configuration file: %s'
                                   % (name, path))
            parameter.parse(value, ' specified in the configuration file: %s' % path)


def build_parameters() -> Parameters:
    """
    Create the standard parameters of a build script.
    """
    parameters = Parameters()

    parameters.add(Parameter(
        name='jobs',
        short='j',
        metavar='INT',
        default=-1,
        parser=str2int(),
        description="""
            The number of jobs to run in parallel. Use 0 for unlimited
            parallelism, 1 for serial jobs execution, and a negative number for
            a fraction of the logical processors in the system (-1 for one per
            logical processor, -2 for one per two logical processors, etc.).
        """))

    parameters.add(Parameter(
        name='log_level',
        short='ll',
        metavar='STR',
        default='INFO',
        parser=str2choice(LOG_LEVELS),
        description='The log level to use'))

    parameters.add(Parameter(
        name='cc',
        metavar='PROGRAM',
        default='cc',
        parser=str,
        description='The C compiler to use for executables and dynamic libraries'))

    parameters.add(Parameter(
        name='ar',
        metavar='PROGRAM',
        default='ar',
        parser=str,
        description='The archiver to use for static libraries'))

    return parameters


def compute_jobs(jobs: int) -> int:
    """
    Convert the ``jobs`` parameter to the actual number of jobs to run in parallel.
    """
    if jobs == 0:
        return 1 << 30
    if jobs < 0:
        jobs = (os.cpu_count() or 1) // -jobs
    return max(jobs, 1)
