"""
Error taxonomy and upstream result types.

Callers of the service layer see exceptions (ValidationError, NotFoundError,
UpstreamError). The upstream client never raises for a lookup outcome; it
returns one of Ok, NotFound or Failure so the collector can absorb per-item
misses without string matching on error text.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class MovieApiError(Exception):
    """Base class for errors surfaced to callers of the service layer."""


class ValidationError(MovieApiError, ValueError):
    """Caller-supplied intent is malformed (blank title, non-integer season)."""


class NotFoundError(MovieApiError):
    """The upstream catalog explicitly reported no match for a direct lookup."""


class UpstreamError(MovieApiError):
    """Transport failure, bad status, malformed body or expired deadline."""


class ConfigurationError(MovieApiError):
    """The engine cannot be built from the current configuration."""


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class NotFound:
    message: str = "not found"


@dataclass(frozen=True)
class Failure:
    detail: str


Result = Union[Ok[T], NotFound, Failure]


def unwrap(result: Result[T], what: str = "lookup") -> T:
    """
    Return the value of an Ok result or raise the matching caller-facing error.

    Args:
        result: Outcome returned by the upstream client
        what: Short description used in the error message

    Raises:
        NotFoundError: for NotFound
        UpstreamError: for Failure
    """
    if isinstance(result, Ok):
        return result.value
    if isinstance(result, NotFound):
        raise NotFoundError(f"{what}: {result.message}")
    if isinstance(result, Failure):
        raise UpstreamError(f"{what}: {result.detail}")
    raise TypeError(f"Unexpected result type: {type(result).__name__}")
