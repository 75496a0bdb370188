"""
Errors raised while building.
"""

from typing import List


class BuildError(RuntimeError):
    """
    Indicates a build step has failed and its output must not be used by other steps.
    """


class StaleCheckError(BuildError):
    """
    A declared input of a step could not be examined.
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__('Failed to stat: %s (%s)' % (path, reason))

        #: The path that could not be examined.
        self.path = path


class SpawnError(BuildError):
    """
    A command could not be started.
    """

    def __init__(self, command: List[str], reason: str) -> None:
        super().__init__('Failed to spawn: %s (%s)' % (' '.join(command), reason))

        #: The command that failed to start.
        self.command = command


class ProcessFailed(BuildError):
    """
    A command exited with a non-zero status.
    """

    def __init__(self, command: List[str], code: int) -> None:
        super().__init__('The command: %s exited with the status: %s' % (' '.join(command), code))

        #: The command that failed.
        self.command = command

        #: The exit status.
        self.code = code


class ProcessSignaled(BuildError):
    """
    A command was terminated by a signal.
    """

    def __init__(self, command: List[str], signal: str) -> None:
        super().__init__('The command: %s was killed by the signal: %s' % (' '.join(command), signal))

        #: The command that was killed.
        self.command = command

        #: The name of the signal.
        self.signal = signal


class RemoveError(BuildError):
    """
    An output could not be removed while cleaning.
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__('Failed to remove the output: %s (%s)' % (path, reason))

        #: The output that could not be removed.
        self.path = path
