"""Domain error taxonomy.

Services raise these exceptions; the handlers registered in
`audora.main` turn them into `{message, errors?}` JSON responses.
"""

from __future__ import annotations

from typing import Any

from fastapi import status


class AudoraError(RuntimeError):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, *, errors: Any = None) -> None:
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body sent to the client."""
        payload: dict[str, Any] = {"message": self.message}
        if self.errors is not None:
            payload["errors"] = self.errors
        return payload


class ValidationError(AudoraError):
    """Request data failed validation; `errors` carries field-level messages."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed."


class AuthenticationError(AudoraError):
    """Missing or invalid credentials. The message never says which."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid credentials."


class AuthorizationError(AudoraError):
    """Authenticated caller is not allowed to touch the resource."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You are not allowed to perform this action."


class NotFoundError(AudoraError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found."


class ConflictError(AudoraError):
    """Duplicate edge or unique constraint violation."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists."


def field_errors_from_pydantic(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    """Flatten Pydantic error dicts into `[{field, message}]`.

    The leading location segment added by FastAPI (`body`, `query`, ...) is
    dropped so clients only see their own field names.
    """
    flattened: list[dict[str, str]] = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in {"body", "query", "path", "form", "header", "cookie"}:
            loc = loc[1:]
        flattened.append({"field": ".".join(loc), "message": str(error.get("msg", ""))})
    return flattened
