"""Error taxonomy shared by the room directory and the REST surface."""
from __future__ import annotations


class RelayError(Exception):
    """Base class for expected failures; carries the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(RelayError):
    status_code = 400


class NotFoundError(RelayError):
    status_code = 404


class ConflictError(RelayError):
    status_code = 409
