"""JSON error bodies returned by the salary API."""

from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Mapping

from flask import jsonify
from werkzeug.exceptions import HTTPException

BAD_REQUEST = "bad_request"
VALIDATION_ERROR = "validation_error"
NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ProblemResponse:
    """Error code, HTTP status and optional human readable detail."""

    error: str
    status: int
    message: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error, **self.extra}
        if self.message:
            body["message"] = self.message
        return body

    def to_response(self) -> tuple[Any, int]:
        return jsonify(self.as_dict()), int(self.status)


def problem_response(
    error: str,
    *,
    status: int,
    message: str | None = None,
    **extra: Any,
) -> ProblemResponse:
    """Build a :class:`ProblemResponse`; keyword extras are merged into the body."""

    return ProblemResponse(error=error, status=status, message=message, extra=extra)


def problem_from_exception(
    error: Exception, *, code: str, default_message: str | None = None
) -> ProblemResponse:
    """Map ``error`` onto a problem body.

    Werkzeug exceptions keep their own status and description. Anything else is
    treated as a client input problem and answered with ``400``.
    """

    if isinstance(error, HTTPException):
        status = error.code or HTTPStatus.BAD_REQUEST
        message = error.description or default_message
    else:
        status = HTTPStatus.BAD_REQUEST
        message = str(error) or default_message
    return problem_response(code, status=status, message=message)


__all__ = [
    "BAD_REQUEST",
    "NOT_FOUND",
    "ProblemResponse",
    "VALIDATION_ERROR",
    "problem_from_exception",
    "problem_response",
]
