"""Custom exception classes for the application."""

from typing import Dict, Optional


class CrmError(Exception):
    """Base class for every error raised by the CRM services."""


class ValidationError(CrmError):
    """Raised when local validation fails. Never reaches the network."""

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None) -> None:
        super().__init__(message)
        self.errors = errors or {}


class RemoteError(CrmError):
    """Raised when the hosted backend rejects or fails a request."""


class NotFoundError(CrmError):
    """Raised when a record no longer resolves."""


class AuthError(CrmError):
    """Raised when signing in, signing out or a session operation fails."""


class PermissionDeniedError(CrmError):
    """Raised when the current user's role does not allow an action."""
