"""Supabase gateway implementing GatewayInterface"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ngo_crm.db.base import (
    AuthCallback,
    AuthSession,
    AuthUser,
    GatewayInterface,
    Subscription,
)
from ngo_crm.errors import AuthError, RemoteError
from ngo_crm.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Lazy import to avoid requiring supabase when using memory mode
_supabase_client = None


def _get_supabase_client(settings: Settings):
    """Get or create the singleton Supabase client (anon key)."""
    global _supabase_client
    if _supabase_client is None:
        from supabase import ClientOptions, create_client

        if not settings.supabase_url or not settings.supabase_key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_KEY must be set when DB_MODE=supabase"
            )
        _supabase_client = create_client(
            settings.supabase_url,
            settings.supabase_key,
            options=ClientOptions(
                postgrest_client_timeout=10,
                storage_client_timeout=30,
            ),
        )
    return _supabase_client


def _to_auth_user(user) -> AuthUser:
    return AuthUser(
        id=str(user.id),
        email=user.email,
        user_metadata=dict(user.user_metadata or {}),
    )


def _to_auth_session(session) -> Optional[AuthSession]:
    if session is None or session.user is None:
        return None
    return AuthSession(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        user=_to_auth_user(session.user),
    )


class SupabaseGateway(GatewayInterface):
    """Supabase implementation of GatewayInterface.

    Every backend exception is re-raised as RemoteError (tables, functions,
    storage) or AuthError (auth), carrying the backend's message.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._client = None
        self._session_path = (
            Path(self.settings.session_file).expanduser()
            if self.settings.session_file
            else None
        )

    @property
    def client(self):
        if self._client is None:
            self._client = _get_supabase_client(self.settings)
            self._restore_session()
        return self._client

    # Session persistence between CLI runs

    def _restore_session(self) -> None:
        if not self._session_path or not self._session_path.exists():
            return
        try:
            tokens = json.loads(self._session_path.read_text(encoding="utf-8"))
            self._client.auth.set_session(tokens["access_token"], tokens["refresh_token"])
            logger.debug("Restored saved session")
        except Exception as e:
            logger.warning(f"Discarding saved session: {e}")
            self._session_path.unlink(missing_ok=True)

    def _save_session(self, session: AuthSession) -> None:
        if not self._session_path or not session.refresh_token:
            return
        self._session_path.parent.mkdir(parents=True, exist_ok=True)
        self._session_path.write_text(
            json.dumps({
                "access_token": session.access_token,
                "refresh_token": session.refresh_token,
            }),
            encoding="utf-8",
        )

    def _forget_session(self) -> None:
        if self._session_path:
            self._session_path.unlink(missing_ok=True)

    # Tables

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[dict]:
        try:
            query = self.client.table(table).select(columns)
            for column, value in (filters or {}).items():
                query = query.eq(column, value)
            if order:
                query = query.order(order, desc=descending)
            if limit:
                query = query.limit(limit)
            return query.execute().data or []
        except Exception as e:
            raise RemoteError(_message(e)) from e

    def select_one(self, table: str, row_id: str, columns: str = "*") -> Optional[dict]:
        rows = self.select(table, columns, filters={"id": row_id}, limit=1)
        return rows[0] if rows else None

    def insert(self, table: str, row: dict, columns: str = "*") -> dict:
        try:
            result = self.client.table(table).insert(row).execute()
        except Exception as e:
            raise RemoteError(_message(e)) from e
        if not result.data:
            raise RemoteError(f"Insert into {table} returned no row")
        stored = result.data[0]
        if columns != "*":
            # Writes return bare rows; re-read to get embedded joins
            stored = self.select_one(table, stored["id"], columns) or stored
        return stored

    def update(self, table: str, row_id: str, values: dict, columns: str = "*") -> Optional[dict]:
        try:
            result = self.client.table(table).update(values).eq("id", row_id).execute()
        except Exception as e:
            raise RemoteError(_message(e)) from e
        if not result.data:
            return None
        stored = result.data[0]
        if columns != "*":
            stored = self.select_one(table, row_id, columns) or stored
        return stored

    def delete(self, table: str, row_id: str) -> None:
        try:
            self.client.table(table).delete().eq("id", row_id).execute()
        except Exception as e:
            raise RemoteError(_message(e)) from e

    # Auth

    def get_session(self) -> Optional[AuthSession]:
        try:
            return _to_auth_session(self.client.auth.get_session())
        except Exception as e:
            raise AuthError(_message(e)) from e

    def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            raise AuthError(_message(e)) from e
        session = _to_auth_session(response.session)
        if session is None:
            raise AuthError("Sign-in did not return a session")
        self._save_session(session)
        return session

    def sign_out(self) -> None:
        try:
            self.client.auth.sign_out()
        except Exception as e:
            raise AuthError(_message(e)) from e
        finally:
            self._forget_session()

    def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        try:
            self.client.auth.reset_password_for_email(email, {"redirect_to": redirect_to})
        except Exception as e:
            raise AuthError(_message(e)) from e

    def update_password(
        self,
        password: str,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
    ) -> AuthUser:
        try:
            if access_token and refresh_token:
                self.client.auth.set_session(access_token, refresh_token)
            response = self.client.auth.update_user({"password": password})
        except Exception as e:
            raise AuthError(_message(e)) from e
        return _to_auth_user(response.user)

    def get_user(self, access_token: Optional[str] = None) -> Optional[AuthUser]:
        try:
            response = self.client.auth.get_user(access_token)
        except Exception as e:
            logger.warning(f"Could not resolve user from token: {e}")
            return None
        if response is None or response.user is None:
            return None
        return _to_auth_user(response.user)

    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        def relay(event, session):
            callback(str(event), _to_auth_session(session))

        subscription = self.client.auth.on_auth_state_change(relay)
        return Subscription(subscription.unsubscribe)

    # Functions and storage

    def invoke(self, function_name: str, body: dict) -> dict:
        try:
            data = self.client.functions.invoke(
                function_name,
                invoke_options={"body": body, "responseType": "json"},
            )
        except Exception as e:
            raise RemoteError(_message(e)) from e
        if isinstance(data, (bytes, str)):
            data = json.loads(data)
        return data

    def upload(self, bucket: str, path: str, content: bytes, content_type: str) -> str:
        try:
            self.client.storage.from_(bucket).upload(
                path=path,
                file=content,
                file_options={"content-type": content_type, "upsert": "true"},
            )
        except Exception as e:
            raise RemoteError(_message(e)) from e
        return path


def _message(exc: Exception) -> str:
    """Best human-readable message from a postgrest/gotrue/functions error."""
    message = getattr(exc, "message", None)
    return str(message or exc)
