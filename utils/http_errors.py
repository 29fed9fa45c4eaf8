"""Translate domain errors into HTTP errors for the API layer."""

from fastapi import HTTPException

from models.errors import (
    ConflictError,
    GatewayError,
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    TrainerError,
    ValidationError,
)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (InvalidStateError, 409),
    (GatewayError, 502),
    (PersistenceError, 500),
)


def to_http_exception(exc: TrainerError) -> HTTPException:
    """Return the HTTPException matching a domain error (500 when unmapped)."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
