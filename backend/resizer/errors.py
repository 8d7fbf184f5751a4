"""
Exceptions raised by the resizer collaborators.

The orchestrator catches all of these and turns them into a ``FailureKind``;
they only escape when a component is used on its own.
"""

from .models import FailureKind


class ResizerError(Exception):
    """Base class for resizer failures."""
    kind = FailureKind.INTERNAL_ERROR


class SourceNotFoundError(ResizerError):
    kind = FailureKind.SOURCE_NOT_FOUND

    def __init__(self, path):
        self.path = str(path)
        super().__init__(f'File "{self.path}" was not found.')


class DecodeFailureError(ResizerError):
    kind = FailureKind.DECODE_FAILURE

    def __init__(self, path, reason: str = ""):
        self.path = str(path)
        self.reason = reason
        message = f'File "{self.path}" could not be loaded.'
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class EncodeFailureError(ResizerError):
    kind = FailureKind.ENCODE_FAILURE
