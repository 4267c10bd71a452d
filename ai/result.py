# ai/result.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    TIMEOUT = "TIMEOUT"
    UPSTREAM = "UPSTREAM"
    MALFORMED = "MALFORMED"  # the call worked but the reply could not be used
    EMPTY = "EMPTY"


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of one external capability call.
    Exactly one of value / error is meaningful: check `ok` first.
    """
    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ErrorKind, detail: str = "") -> "Result[T]":
        return cls(error=error, detail=detail)
