"""
Exception hierarchy:

    FetchError
    ├── ArgumentError        (bad URL, unencodable request)
    ├── FileAccessError      (upload file / output file)
    ├── TransportError       (DNS, connect, TLS, redirects, reads)
    ├── EncodingError        (response body is not valid text)
    └── OutputWriteError     (sink write failure)

Every error carries the pipeline phase it was raised in.
"""

from __future__ import annotations

import enum
import typing

__all__ = [
    "ArgumentError",
    "EncodingError",
    "FetchError",
    "FileAccessError",
    "OutputWriteError",
    "Phase",
    "TransportError",
]


class Phase(str, enum.Enum):
    BUILDING = "building"
    SENDING = "sending"
    WRITING = "writing"


class FetchError(Exception):
    """Base class for every failure that ends an invocation."""

    default_phase: typing.ClassVar[Phase] = Phase.BUILDING

    def __init__(self, message: str, *, phase: Phase | None = None) -> None:
        super().__init__(message)
        self.phase = phase if phase is not None else self.default_phase

    def __str__(self) -> str:
        return f"{self.args[0]} (while {self.phase.value})"


class ArgumentError(FetchError):
    default_phase = Phase.BUILDING


class FileAccessError(FetchError):
    default_phase = Phase.BUILDING


class TransportError(FetchError):
    default_phase = Phase.SENDING


class EncodingError(FetchError):
    default_phase = Phase.WRITING


class OutputWriteError(FetchError):
    default_phase = Phase.WRITING
