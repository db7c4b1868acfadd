"""In-memory gateway implementing GatewayInterface.

Used in development (DB_MODE=memory) and by the test-suite. Emulates what
the app relies on from the hosted backend: tables with generated ids and
timestamps, embedded joins, password auth with auth-state events, recovery
links, serverless functions and file storage.
"""

import copy
import logging
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from ngo_crm.db.base import (
    AuthCallback,
    AuthSession,
    AuthUser,
    GatewayInterface,
    Subscription,
)
from ngo_crm.errors import AuthError, RemoteError

logger = logging.getLogger(__name__)

TABLES = ("persons", "contracts", "document_templates", "user_roles", "users")

# (table, embed alias) -> (target table, foreign key column)
RELATIONS = {
    ("contracts", "person"): ("persons", "person_id"),
    ("user_roles", "users"): ("users", "user_id"),
}

_EMBED = re.compile(r"(\w+)\s*:\s*(\w+)\s*\(([^)]*)\)")

FunctionHandler = Callable[[dict], Tuple[dict, int]]


def _split_columns(columns: str) -> List[str]:
    return [c.strip() for c in columns.split(",") if c.strip()]


def _project(row: dict, columns: List[str]) -> dict:
    if not columns or "*" in columns:
        return copy.deepcopy(row)
    return {c: copy.deepcopy(row.get(c)) for c in columns}


class MemoryGateway(GatewayInterface):
    """Dict-backed implementation of GatewayInterface."""

    def __init__(self, functions: Optional[Dict[str, FunctionHandler]] = None):
        self.tables: Dict[str, Dict[str, dict]] = {name: {} for name in TABLES}
        self.functions: Dict[str, FunctionHandler] = dict(functions or {})
        self.files: Dict[Tuple[str, str], bytes] = {}
        self.calls: List[Tuple[str, str]] = []
        self.sent_resets: List[dict] = []
        self._accounts: Dict[str, dict] = {}
        self._session: Optional[AuthSession] = None
        self._recovery: Dict[str, str] = {}
        self._listeners: Dict[int, AuthCallback] = {}
        self._next_listener = 0
        self._last_timestamp: Optional[datetime] = None

    def _timestamp(self) -> str:
        now = datetime.now(timezone.utc)
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now.isoformat()

    def _table(self, table: str) -> Dict[str, dict]:
        if table not in self.tables:
            raise RemoteError(f'relation "public.{table}" does not exist')
        return self.tables[table]

    def _render(self, table: str, row: dict, columns: str) -> dict:
        embeds = _EMBED.findall(columns)
        base = _split_columns(_EMBED.sub("", columns))
        rendered = _project(row, base)
        for alias, _target, embed_columns in embeds:
            relation = RELATIONS.get((table, alias))
            if relation is None:
                raise RemoteError(f"Could not find a relationship between '{table}' and '{alias}'")
            target_table, foreign_key = relation
            target = self.tables[target_table].get(row.get(foreign_key))
            rendered[alias] = (
                _project(target, _split_columns(embed_columns)) if target else None
            )
        return rendered

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
        self.calls.append(("select", table))
        rows = [
            row for row in self._table(table).values()
            if all(row.get(column) == value for column, value in (filters or {}).items())
        ]
        if order:
            rows.sort(key=lambda r: (r.get(order) is None, r.get(order) or ""), reverse=descending)
        if limit:
            rows = rows[:limit]
        return [self._render(table, row, columns) for row in rows]

    def select_one(self, table: str, row_id: str, columns: str = "*") -> Optional[dict]:
        self.calls.append(("select_one", table))
        row = self._table(table).get(row_id)
        return self._render(table, row, columns) if row else None

    def insert(self, table: str, row: dict, columns: str = "*") -> dict:
        self.calls.append(("insert", table))
        rows = self._table(table)
        stored = copy.deepcopy(row)
        stored.setdefault("id", str(uuid.uuid4()))
        if stored["id"] in rows:
            raise RemoteError(f'duplicate key value violates unique constraint "{table}_pkey"')
        stamp = self._timestamp()
        stored.setdefault("created_at", stamp)
        stored.setdefault("updated_at", stamp)
        rows[stored["id"]] = stored
        return self._render(table, stored, columns)

    def update(self, table: str, row_id: str, values: dict, columns: str = "*") -> Optional[dict]:
        self.calls.append(("update", table))
        stored = self._table(table).get(row_id)
        if stored is None:
            return None
        stored.update(copy.deepcopy(values))
        stored["updated_at"] = self._timestamp()
        return self._render(table, stored, columns)

    def delete(self, table: str, row_id: str) -> None:
        self.calls.append(("delete", table))
        self._table(table).pop(row_id, None)

    # Auth

    def add_user(
        self,
        email: str,
        password: str,
        full_name: Optional[str] = None,
        avatar_url: Optional[str] = None,
        role: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> AuthUser:
        """Register an account (and optionally its role assignment)."""
        metadata = {}
        if full_name:
            metadata["full_name"] = full_name
        if avatar_url:
            metadata["avatar_url"] = avatar_url
        user = AuthUser(id=user_id or str(uuid.uuid4()), email=email, user_metadata=metadata)
        self._accounts[email.lower()] = {"user": user, "password": password}
        self.tables["users"][user.id] = {
            "id": user.id,
            "email": email,
            "raw_user_meta_data": metadata,
        }
        if role:
            self.tables["user_roles"][user.id] = {
                "id": user.id,
                "user_id": user.id,
                "role_id": role,
            }
        return user

    def _emit(self, event: str, session: Optional[AuthSession]) -> None:
        for callback in list(self._listeners.values()):
            callback(event, session)

    def _user_for_token(self, token: str) -> Optional[AuthUser]:
        if self._session and self._session.access_token == token:
            return self._session.user
        user_id = self._recovery.get(token)
        for account in self._accounts.values():
            if account["user"].id == user_id:
                return account["user"]
        return None

    def get_session(self) -> Optional[AuthSession]:
        self.calls.append(("auth", "get_session"))
        return self._session

    def sign_in(self, email: str, password: str) -> AuthSession:
        self.calls.append(("auth", "sign_in"))
        account = self._accounts.get(email.lower())
        if account is None or account["password"] != password:
            raise AuthError("Invalid login credentials")
        self._session = AuthSession(
            access_token=uuid.uuid4().hex,
            refresh_token=uuid.uuid4().hex,
            user=account["user"],
        )
        self._emit("SIGNED_IN", self._session)
        return self._session

    def sign_out(self) -> None:
        self.calls.append(("auth", "sign_out"))
        self._session = None
        self._emit("SIGNED_OUT", None)

    def expire_session(self) -> None:
        """Drop the session as if it expired or another tab signed out."""
        self._session = None
        self._emit("SIGNED_OUT", None)

    def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        self.calls.append(("auth", "reset_password_for_email"))
        entry = {"email": email, "redirect_to": redirect_to}
        account = self._accounts.get(email.lower())
        if account is not None:
            token = uuid.uuid4().hex
            self._recovery[token] = account["user"].id
            entry.update(access_token=token, refresh_token=uuid.uuid4().hex)
        self.sent_resets.append(entry)

    def update_password(
        self,
        password: str,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
    ) -> AuthUser:
        self.calls.append(("auth", "update_password"))
        if access_token:
            user = self._user_for_token(access_token)
        else:
            user = self._session.user if self._session else None
        if user is None:
            raise AuthError("Auth session missing!")
        self._accounts[user.email.lower()]["password"] = password
        self._recovery.pop(access_token or "", None)
        return user

    def get_user(self, access_token: Optional[str] = None) -> Optional[AuthUser]:
        self.calls.append(("auth", "get_user"))
        if access_token is None:
            return self._session.user if self._session else None
        return self._user_for_token(access_token)

    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        key = self._next_listener
        self._next_listener += 1
        self._listeners[key] = callback
        return Subscription(lambda: self._listeners.pop(key, None))

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    # Functions and storage

    def invoke(self, function_name: str, body: dict) -> dict:
        self.calls.append(("invoke", function_name))
        handler = self.functions.get(function_name)
        if handler is None:
            raise RemoteError(f"Function not found: {function_name}")
        payload, status = handler(body)
        if status >= 400:
            raise RemoteError(payload.get("error") or f"Function {function_name} failed ({status})")
        return payload

    def upload(self, bucket: str, path: str, content: bytes, content_type: str) -> str:
        self.calls.append(("upload", bucket))
        self.files[(bucket, path)] = content
        return path
