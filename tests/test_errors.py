"""Error classification and typed outcomes."""

from __future__ import annotations

import json

import httpx
import pytest

from animeshelf.errors import (
    CorruptDataError,
    ErrorKind,
    Outcome,
    StorageError,
    TransportError,
    ValidationError,
    classify_error,
)


def _status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.example.com/anime/1")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError("failed", request=request, response=response)


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (TransportError("down"), ErrorKind.TRANSPORT),
        (TransportError("missing", status_code=404), ErrorKind.NOT_FOUND),
        (_status_error(404), ErrorKind.NOT_FOUND),
        (_status_error(500), ErrorKind.TRANSPORT),
        (httpx.ConnectError("refused"), ErrorKind.TRANSPORT),
        (StorageError("disk full"), ErrorKind.STORAGE),
        (ValidationError("blank"), ErrorKind.VALIDATION),
        (CorruptDataError("bad"), ErrorKind.CORRUPT),
        (json.JSONDecodeError("bad", "{", 0), ErrorKind.CORRUPT),
        (RuntimeError("boom"), ErrorKind.UNKNOWN),
    ],
)
def test_classify_error(exc: BaseException, expected: ErrorKind) -> None:
    assert classify_error(exc) is expected


def test_outcome_truthiness_tracks_success() -> None:
    success: Outcome[int] = Outcome.success(3)
    failure: Outcome[int] = Outcome.failure(StorageError("disk full"))

    assert success and success.ok and success.value == 3
    assert not failure
    assert failure.error is ErrorKind.STORAGE
    assert failure.detail == "disk full"
    assert failure.value is None


def test_validation_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        raise ValidationError("Email and password are required")
