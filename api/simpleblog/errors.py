"""Domain error taxonomy.

Services raise these; the exception handlers registered in ``main`` turn them
into ``schemas.Problem`` responses. Anything that is not a ``SimpleBlogError``
is treated as an internal failure.
"""

from __future__ import annotations

from typing import Any


class SimpleBlogError(Exception):
    """Base class for expected, client-attributable failures."""

    kind: str = "error"
    title: str = "Error"
    status_code: int = 400

    def __init__(self, detail: str | None = None, *, errors: dict[str, list[str]] | None = None) -> None:
        self.detail = detail or self.title
        self.errors = errors
        super().__init__(self.detail)

    def to_problem(self) -> dict[str, Any]:
        problem: dict[str, Any] = {
            "kind": self.kind,
            "title": self.title,
            "status": self.status_code,
            "detail": self.detail,
        }
        if self.errors:
            problem["errors"] = self.errors
        return problem


class Unauthorized(SimpleBlogError):
    kind = "unauthorized"
    title = "Authentication required"
    status_code = 401


class Forbidden(SimpleBlogError):
    kind = "forbidden"
    title = "Forbidden"
    status_code = 403


class NotFound(SimpleBlogError):
    kind = "not_found"
    title = "Not found"
    status_code = 404


class InvalidOperation(SimpleBlogError):
    kind = "invalid_operation"
    title = "Invalid operation"
    status_code = 400


class Conflict(SimpleBlogError):
    kind = "conflict"
    title = "Conflict"
    status_code = 409


class InvalidTransition(SimpleBlogError):
    kind = "invalid_transition"
    title = "Invalid status transition"
    status_code = 409


class ValidationFailed(SimpleBlogError):
    kind = "validation_error"
    title = "Validation failed"
    status_code = 422
