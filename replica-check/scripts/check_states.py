"""
Nagios plugin states and the errors that end a check early
"""
from enum import IntEnum


class State(IntEnum):
    """Plugin states, valued by their process exit code"""
    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3


class CheckError(Exception):
    """Terminal condition of a check, reported with ``state``"""
    state = State.UNKNOWN


class MissingPrerequisiteCommand(CheckError):
    pass


class MissingRequiredArgument(CheckError):
    pass


class InvalidArgument(CheckError):
    pass


class InvalidThresholdConfiguration(CheckError):
    pass


class ConnectionFailure(CheckError):
    """The replica did not answer with a replication status"""
    state = State.CRITICAL
