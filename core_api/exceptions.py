"""
Typed application errors for core-api.

Every error carries an HTTP-style status code and a message payload (a string
or a small dict such as ``{"error": ..., "message": ...}``). The HTTP layer
renders them unchanged; nothing in here is retried.
"""

from __future__ import annotations

from typing import Any, Dict, Union

Message = Union[str, Dict[str, Any]]


class RestException(Exception):
    """Error tagged with a status code, raised at the point a check fails."""

    status_code: int = 500

    def __init__(self, status_code: int | None = None, message: Message = "") -> None:
        if status_code is not None:
            self.status_code = status_code
        self.message = message
        super().__init__(self.status_code, message)

    def __str__(self) -> str:
        return f"{self.status_code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        if isinstance(self.message, dict):
            return dict(self.message)
        return {"message": self.message}


class MissingPrecondition(RestException):
    """Missing connection, table, where/values data or required fields."""

    status_code = 412

    def __init__(self, message: Message) -> None:
        super().__init__(None, message)


class MissingData(MissingPrecondition):
    """A where-map filtered down to nothing."""


class InvalidQuery(RestException):
    status_code = 417

    def __init__(self, message: Message) -> None:
        super().__init__(None, message)


class Conflict(RestException):
    """Duplicate key reported by the driver."""

    status_code = 409

    def __init__(self, message: Message) -> None:
        super().__init__(None, message)


class DatabaseError(RestException):
    status_code = 500

    def __init__(self, message: Message) -> None:
        super().__init__(None, message)


__all__ = [
    "RestException",
    "MissingPrecondition",
    "MissingData",
    "InvalidQuery",
    "Conflict",
    "DatabaseError",
]
