"""
Data model shared by the resizer components.

Sizes are plain integer pairs; images themselves are Pillow images and are
never wrapped, so a "RawImage" is simply a ``PIL.Image.Image``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from .encoders import EncoderPolicy


@dataclass(frozen=True)
class Size:
    width: int
    height: int

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Size dimensions must be non-negative, got {self.width}x{self.height}")

    @classmethod
    def for_width(cls, original: "Size", width: int) -> "Size":
        """
        Derive a size from ``original`` for a target width, keeping the aspect ratio:
        height = floor(width * original.height / original.width).
        """
        if original.width == 0:
            return cls(0, 0)
        return cls(width, (width * original.height) // original.width)

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    @property
    def pixels(self) -> int:
        return self.width * self.height

    def as_tuple(self):
        return (self.width, self.height)

    def __str__(self) -> str:
        return f"{self.width} x {self.height}"


@dataclass
class SearchBounds:
    """Feasible/infeasible width boundaries narrowed during one search."""
    min_width: int
    max_width: int

    @property
    def converged(self) -> bool:
        return self.max_width <= self.min_width + 1

    def next_width(self) -> int:
        return (self.min_width + self.max_width) // 2


@dataclass(frozen=True)
class EncodedResult:
    data: bytes
    size: Size
    policy: "EncoderPolicy"

    @property
    def mime_type(self) -> str:
        from .encoders import mime_type
        return mime_type(self.policy)

    @property
    def extension(self) -> str:
        from .encoders import file_extension
        return file_extension(self.policy)


class FailureKind(str, Enum):
    SOURCE_NOT_FOUND = "source_not_found"
    DECODE_FAILURE = "decode_failure"
    ENCODE_FAILURE = "encode_failure"
    INTERNAL_ERROR = "internal_error"


class ResizeState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SEARCHING = "searching"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ResizeResult:
    """
    Outcome of one orchestrated run.

    Exactly one of ``result`` / ``failure`` is set. ``data`` collapses the outcome
    to bytes-or-None for callers that only care whether output was produced.
    """
    state: ResizeState
    result: Optional[EncodedResult] = None
    failure: Optional[FailureKind] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None and self.result is not None

    @property
    def data(self) -> Optional[bytes]:
        return self.result.data if self.result is not None else None

    @property
    def size(self) -> Optional[Size]:
        return self.result.size if self.result is not None else None

    @classmethod
    def succeeded(cls, result: EncodedResult, message: str = "") -> "ResizeResult":
        return cls(state=ResizeState.DONE, result=result, message=message)

    @classmethod
    def failed(cls, failure: Union[FailureKind, str], message: str) -> "ResizeResult":
        return cls(state=ResizeState.FAILED, failure=FailureKind(failure), message=message)
