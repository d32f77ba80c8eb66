"""Typed failures raised by the recount services.

Every error carries a machine-readable ``code`` and the HTTP status it maps
to, so the API boundary can render the ``{code, message}`` envelope without
inspecting messages.
"""

from __future__ import annotations


class RecountError(Exception):
    """Base class for business-rule failures."""

    code: str = "INTERNAL_ERROR"
    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_envelope(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class NotFoundError(RecountError):
    code = "NOT_FOUND"
    status_code = 404


class BadRequestError(RecountError):
    code = "BAD_REQUEST"
    status_code = 400


class ConflictError(RecountError):
    """Optimistic-lock version mismatch; the caller must reread and retry."""

    code = "CONFLICT"
    status_code = 409

    def __init__(self, expected: int, submitted: int) -> None:
        self.expected = expected
        self.submitted = submitted
        super().__init__(f"Version mismatch. Expected {expected}, got {submitted}")


class UnprocessableEntityError(RecountError):
    """Illegal document status transition."""

    code = "UNPROCESSABLE_ENTITY"
    status_code = 422


class TransactionTimeoutError(RecountError):
    """The transaction could not start or finish within its time budget."""

    code = "TRANSACTION_TIMEOUT"
    status_code = 503
    retry_after_seconds = 1


class DocumentNotFoundError(NotFoundError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__("Document not found")


__all__ = [
    "RecountError",
    "NotFoundError",
    "DocumentNotFoundError",
    "BadRequestError",
    "ConflictError",
    "UnprocessableEntityError",
    "TransactionTimeoutError",
]
