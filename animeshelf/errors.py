"""Error taxonomy and the typed result returned across the core's boundaries."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

import httpx
from pydantic import ValidationError as PydanticValidationError

T = TypeVar("T")


class AnimeShelfError(Exception):
    """Base class for errors raised by the persistence and catalog layers."""


class TransportError(AnimeShelfError):
    """The remote catalog was unreachable or returned an unusable response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StorageError(AnimeShelfError):
    """The underlying key-value store failed to read or write."""


class ValidationError(AnimeShelfError, ValueError):
    """Caller supplied input that cannot be accepted (e.g. blank credentials)."""


class CorruptDataError(AnimeShelfError):
    """A persisted value could not be decoded."""


class ErrorKind(str, Enum):
    TRANSPORT = "transport"
    NOT_FOUND = "not_found"
    STORAGE = "storage"
    VALIDATION = "validation"
    CORRUPT = "corrupt"
    UNKNOWN = "unknown"


def classify_error(exc: BaseException) -> ErrorKind:
    """Map an exception raised at a client or repository boundary to its kind."""

    if isinstance(exc, TransportError):
        if exc.status_code == 404:
            return ErrorKind.NOT_FOUND
        return ErrorKind.TRANSPORT
    if isinstance(exc, httpx.HTTPStatusError):
        if exc.response.status_code == 404:
            return ErrorKind.NOT_FOUND
        return ErrorKind.TRANSPORT
    if isinstance(exc, httpx.HTTPError):
        return ErrorKind.TRANSPORT
    if isinstance(exc, StorageError):
        return ErrorKind.STORAGE
    if isinstance(exc, ValidationError):
        return ErrorKind.VALIDATION
    if isinstance(exc, (CorruptDataError, json.JSONDecodeError, PydanticValidationError)):
        return ErrorKind.CORRUPT
    return ErrorKind.UNKNOWN


@dataclass(slots=True)
class Outcome(Generic[T]):
    """Success/value or failure/kind, returned instead of raising."""

    value: T | None = None
    error: ErrorKind | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: T | None = None) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, exc: BaseException) -> "Outcome[T]":
        return cls(error=classify_error(exc), detail=str(exc) or exc.__class__.__name__)
