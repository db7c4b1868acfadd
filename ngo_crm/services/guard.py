"""Route guard over the auth session.

States: LOADING until the session is resolved, then AUTHENTICATED or
UNAUTHENTICATED. Auth events from the backend keep the state current while
mounted; after ``unmount`` they are ignored.
"""

import logging
from enum import Enum
from typing import NamedTuple, Optional
from urllib.parse import quote

from ngo_crm.db.base import AuthSession, Subscription
from ngo_crm.models import User
from ngo_crm.services.auth import RESET_PASSWORD_PATH, AuthService

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
PUBLIC_PATHS = (LOGIN_PATH, RESET_PASSWORD_PATH)


class GuardState(str, Enum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class GuardDecision(NamedTuple):
    allowed: bool
    redirect: Optional[str] = None


def login_redirect(path: str) -> str:
    return f"{LOGIN_PATH}?from={quote(path, safe='/')}"


class AuthGuard:
    def __init__(self, auth: AuthService):
        self.auth = auth
        self.state = GuardState.LOADING
        self.user: Optional[User] = None
        self._subscription: Optional[Subscription] = None

    @property
    def mounted(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def mount(self) -> GuardState:
        """Resolve the session and start listening for auth events."""
        if self.auth.bypass_enabled:
            self._set_user(self.auth.current_user())
            return self.state
        if not self.mounted:
            self._subscription = self.auth.gateway.on_auth_state_change(self._on_auth_event)
        self._set_user(self.auth.current_user())
        return self.state

    def unmount(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _on_auth_event(self, event: str, session: Optional[AuthSession]) -> None:
        if not self.mounted:
            return
        logger.debug(f"Auth event {event}")
        self._set_user(self.auth.resolve(session))

    def _set_user(self, user: Optional[User]) -> None:
        self.user = user
        self.state = GuardState.AUTHENTICATED if user else GuardState.UNAUTHENTICATED

    def check(self, path: str) -> GuardDecision:
        """May ``path`` be shown now? Unauthenticated visitors go to login."""
        route = path.split("?", 1)[0]
        if route == RESET_PASSWORD_PATH:
            return GuardDecision(True)
        if self.state == GuardState.LOADING:
            self.mount()
        if route == LOGIN_PATH:
            return GuardDecision(True)
        if self.state == GuardState.AUTHENTICATED:
            return GuardDecision(True)
        return GuardDecision(False, login_redirect(path))
