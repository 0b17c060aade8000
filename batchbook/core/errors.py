"""
Error taxonomy shared by the HTTP API and the realtime gateway.

- BatchbookError: base, carries a machine code and HTTP status
- Unauthenticated / InvalidCredential / Expired: credential problems
- Forbidden: authenticated but not the owner
- NotFound: entry or version absent
- ValidationFailed / InvalidEntry: malformed input to a mutation
- Conflict: reserved, saves are last-write-wins
- Internal: storage or unexpected failure
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class BatchbookError(Exception):
    """Base exception for all BatchBook domain errors.

    Attributes:
        message: Human readable message
        code: Error code for programmatic handling
        status: HTTP status used when surfaced over the API
        details: Additional error context
    """

    code = "internal_error"
    status = 500

    def __init__(
        self,
        message: str = "",
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code
        if code:
            self.code = code
        self.details = details or {}


class Unauthenticated(BatchbookError):
    """No usable credential was presented."""

    code = "unauthenticated"
    status = 401


class InvalidCredential(Unauthenticated):
    """Credential failed signature or format checks, or names an unknown user."""

    code = "invalid_credential"


class Expired(Unauthenticated):
    code = "token_expired"


class Forbidden(BatchbookError):
    code = "forbidden"
    status = 403


class NotFound(BatchbookError):
    code = "not_found"
    status = 404


class ValidationFailed(BatchbookError):
    code = "validation_error"
    status = 400


class InvalidEntry(ValidationFailed):
    """Entry reference is missing an identity."""

    code = "invalid_entry"


class Conflict(BatchbookError):
    # Not raised today: concurrent saves are last-write-wins.
    code = "conflict"
    status = 409


class Internal(BatchbookError):
    code = "internal_error"
    status = 500
