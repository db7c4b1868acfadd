"""Abstract gateway interface: one strategy for Supabase, one in memory"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel


class AuthUser(BaseModel):
    """Account as returned by the auth provider"""
    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = {}


class AuthSession(BaseModel):
    """A live session"""
    access_token: str
    refresh_token: Optional[str] = None
    user: AuthUser


AuthCallback = Callable[[str, Optional[AuthSession]], None]


class Subscription:
    """Handle for an auth-state listener; call unsubscribe() on teardown."""

    def __init__(self, unsubscribe: Callable[[], None]):
        self._unsubscribe = unsubscribe
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._unsubscribe()
            self.active = False


class GatewayInterface(ABC):
    """Everything the app asks of the hosted backend.
    Implemented by the Supabase client and an in-memory stand-in.

    Rows are plain dicts with snake_case wire columns. ``columns`` accepts
    the PostgREST select syntax, including embedded joins such as
    ``*, person:persons(*)``.
    """

    # Tables

    @abstractmethod
    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[dict]:
        """Select rows matching all equality filters."""

    @abstractmethod
    def select_one(self, table: str, row_id: str, columns: str = "*") -> Optional[dict]:
        """Fetch a single row by id. None when it does not exist."""

    @abstractmethod
    def insert(self, table: str, row: dict, columns: str = "*") -> dict:
        """Insert a row and return it as stored."""

    @abstractmethod
    def update(self, table: str, row_id: str, values: dict, columns: str = "*") -> Optional[dict]:
        """Update a row by id. Returns the stored row, None when no row matched."""

    @abstractmethod
    def delete(self, table: str, row_id: str) -> None:
        """Delete a row by id."""

    def maybe_single(self, table: str, column: str, value: Any, columns: str = "*") -> Optional[dict]:
        """First row where ``column`` equals ``value``, or None."""
        rows = self.select(table, columns, filters={column: value}, limit=1)
        return rows[0] if rows else None

    # Auth

    @abstractmethod
    def get_session(self) -> Optional[AuthSession]:
        """Current session, if any."""

    @abstractmethod
    def sign_in(self, email: str, password: str) -> AuthSession:
        """Sign in with e-mail and password."""

    @abstractmethod
    def sign_out(self) -> None:
        """End the current session."""

    @abstractmethod
    def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        """Send a password recovery link."""

    @abstractmethod
    def update_password(
        self,
        password: str,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
    ) -> AuthUser:
        """Set a new password for the session (or recovery tokens) given."""

    @abstractmethod
    def get_user(self, access_token: Optional[str] = None) -> Optional[AuthUser]:
        """Resolve the user behind a token (default: the current session)."""

    @abstractmethod
    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        """Listen for SIGNED_IN / SIGNED_OUT / ... events."""

    # Functions and storage

    @abstractmethod
    def invoke(self, function_name: str, body: dict) -> dict:
        """Invoke a serverless function and return its JSON response."""

    @abstractmethod
    def upload(self, bucket: str, path: str, content: bytes, content_type: str) -> str:
        """Upload a file to storage. Returns its storage path."""
