"""
Contract violations raised by the search engine.

An unreachable goal is not an error; it is reported as a NO_PATH result.
"""


class PathSearchError(ValueError):
    """Base class for misuse of the search engine."""


class InvalidStartError(PathSearchError):
    """Start coordinate is off the grid or on a wall."""


class InvalidEndError(PathSearchError):
    """End coordinate is off the grid or on a wall."""


class SearchTerminatedError(PathSearchError):
    """step() was called on a search that already finished."""


class PathNotFoundError(PathSearchError):
    """Path reconstruction was requested before the end cell was reached."""
