"""Domain errors shared by the stores, services and controllers."""

from __future__ import annotations


class TrainerError(Exception):
    """Base class for every error raised by the trainer services."""


class GatewayError(TrainerError):
    """The language model call failed or returned nothing usable."""


class ValidationError(TrainerError):
    """A record is missing required fields."""


class NotFoundError(TrainerError):
    """The targeted record does not exist."""


class ConflictError(TrainerError):
    """The write would break a uniqueness rule."""


class PersistenceError(TrainerError):
    """The backing file could not be read or written."""


class InvalidStateError(TrainerError):
    """A chat operation was requested in a state that does not allow it."""
