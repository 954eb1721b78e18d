"""Error taxonomy shared by the service layer and the JSON routes."""

from __future__ import annotations

from typing import Any, List, Optional


class ReelScriptError(RuntimeError):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500

    def __init__(self, message: str, *, details: Optional[List[Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = list(details or [])

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InputValidationError(ReelScriptError):
    """Raised when a caller payload fails shape checks."""

    status_code = 400


class AuthenticationError(ReelScriptError):
    """Raised when no valid caller identity is available."""

    status_code = 401


class NotFoundError(ReelScriptError):
    """Raised when a referenced entity does not exist."""

    status_code = 404


class PersistenceError(ReelScriptError):
    """Raised when a lookup or write that the request depends on fails."""

    status_code = 500


class PermissionDeniedError(ReelScriptError):
    """Raised when the caller is known but not allowed to act."""

    status_code = 403
