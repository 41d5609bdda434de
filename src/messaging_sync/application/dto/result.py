"""Discriminated result returned by every transport operation."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Literal, TypeVar, Union

from messaging_sync.application.exceptions import ErrorKind

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    data: T
    ok: Literal[True] = True


@dataclass(frozen=True, slots=True)
class Err:
    error_kind: ErrorKind
    message: str = ""
    ok: Literal[False] = False


Result = Union[Ok[T], Err]
