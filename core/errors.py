"""
core/errors.py -- Error taxonomy shared by every layer.

Each error carries the HTTP status it maps to, so the exception handler in
api/main.py can render any of them without a lookup table. Stores and
services raise these; routes let them propagate.

Wire shape (rendered by api/main.py):
  ValidationFailed -> {"errors": [{"msg", "param", "location"}, ...]}
  everything else  -> {"msg": "..."}

Layer rule: no imports from api/, auth/, or social/.
"""

from __future__ import annotations

from typing import Optional


class AppError(Exception):
    """Base class for every error the API reports to a client."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(AppError):
    """Malformed or missing input. Carries every field violation, not just the first."""

    status_code = 400

    def __init__(self, errors: list[dict]) -> None:
        super().__init__("; ".join(e["msg"] for e in errors) or "Validation failed")
        self.errors = errors

    @classmethod
    def single(cls, msg: str, param: Optional[str] = None, location: str = "body") -> "ValidationFailed":
        error: dict = {"msg": msg}
        if param is not None:
            error["param"] = param
            error["location"] = location
        return cls([error])


class Unauthenticated(AppError):
    """Missing, invalid, or expired token."""

    status_code = 401


class Unauthorized(AppError):
    """Caller is authenticated but does not own the resource."""

    status_code = 401


class NotFound(AppError):
    status_code = 404


class DuplicateOperation(AppError):
    status_code = 400


class InvalidState(AppError):
    status_code = 400


class UpstreamFailure(AppError):
    """An external enrichment service answered with something other than 200."""

    status_code = 404


class Internal(AppError):
    status_code = 500
