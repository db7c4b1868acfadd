"""Authentication and role resolution"""

import logging
from typing import Optional

from ngo_crm.db.base import AuthSession, AuthUser, GatewayInterface
from ngo_crm.errors import AuthError, CrmError, PermissionDeniedError, ValidationError
from ngo_crm.models import Role, User
from ngo_crm.models.user import avatar_url, display_name
from ngo_crm.services.person_form import is_valid_email
from ngo_crm.utils.config import Settings

logger = logging.getLogger(__name__)

ROLES_TABLE = "user_roles"
RESET_PASSWORD_PATH = "/reset-password"
MIN_PASSWORD_LENGTH = 6


def user_from_auth_user(auth_user: AuthUser, role: Role = Role.GUEST) -> User:
    metadata = auth_user.user_metadata or {}
    return User(
        id=auth_user.id,
        email=auth_user.email or "",
        name=display_name(auth_user.email, metadata),
        picture=metadata.get("avatar_url") or avatar_url(auth_user.email or ""),
        role=role,
    )


def require_role(user: Optional[User], *roles: Role) -> User:
    """Return ``user`` when signed in with one of ``roles``."""
    if user is None:
        raise AuthError("Not signed in")
    if roles and user.role not in roles:
        raise PermissionDeniedError(
            f"This action requires the {' or '.join(r.value for r in roles)} role"
        )
    return user


class AuthService:
    """Session, current user and password flows"""

    def __init__(self, gateway: GatewayInterface, settings: Settings):
        self.gateway = gateway
        self.settings = settings
        self.user: Optional[User] = None
        self.is_loading = False
        self.error: Optional[str] = None

    @property
    def bypass_enabled(self) -> bool:
        return self.settings.bypass_enabled

    def dev_user(self) -> User:
        return User(
            id=self.settings.dev_user_id,
            email=self.settings.dev_user_email,
            name=self.settings.dev_user_name,
            picture=avatar_url(self.settings.dev_user_email),
            role=Role(self.settings.dev_user_role),
        )

    def get_user_role(self, user_id: str) -> Role:
        """Role from the assignment table; guest when none is assigned."""
        try:
            row = self.gateway.maybe_single(ROLES_TABLE, "user_id", user_id, "role_id")
        except CrmError as e:
            logger.error(f"Failed to fetch role for {user_id}: {e}")
            return Role.GUEST
        if not row or not row.get("role_id"):
            return Role.GUEST
        try:
            return Role(row["role_id"])
        except ValueError:
            logger.warning(f"Unknown role '{row['role_id']}' for {user_id}")
            return Role.GUEST

    def resolve(self, session: Optional[AuthSession]) -> Optional[User]:
        """Turn a session into the current user, role included."""
        if session is None:
            self.user = None
            return None
        self.user = user_from_auth_user(session.user, self.get_user_role(session.user.id))
        return self.user

    def current_user(self) -> Optional[User]:
        if self.bypass_enabled:
            self.user = self.dev_user()
            return self.user
        try:
            session = self.gateway.get_session()
        except AuthError as e:
            logger.error(f"Failed to get session: {e}")
            self.error = str(e)
            session = None
        return self.resolve(session)

    def login(self, email: str, password: str) -> User:
        errors = {}
        if not email.strip():
            errors["email"] = "Email is required"
        if not password:
            errors["password"] = "Password is required"
        if errors:
            raise ValidationError("Please enter your e-mail and password", errors)

        if self.bypass_enabled and email == self.settings.dev_user_email \
                and password == self.settings.dev_user_password:
            self.user = self.dev_user()
            logger.info("Signed in as the development user")
            return self.user

        self.is_loading = True
        self.error = None
        try:
            session = self.gateway.sign_in(email.strip(), password)
        except CrmError as e:
            logger.error(f"Login failed: {e}")
            self.error = str(e)
            raise
        finally:
            self.is_loading = False
        logger.info(f"Signed in {session.user.email}")
        return self.resolve(session)

    def logout(self) -> None:
        self.error = None
        try:
            self.gateway.sign_out()
        except CrmError as e:
            logger.error(f"Logout failed: {e}")
            self.error = str(e)
            raise
        finally:
            self.user = None
        logger.info("Signed out")

    def send_password_reset(self, email: str) -> str:
        """E-mail a recovery link; returns the redirect it points at."""
        email = email.strip()
        if not email:
            raise ValidationError("Email is required", {"email": "Email is required"})
        if not is_valid_email(email):
            raise ValidationError("Email is invalid", {"email": "Email is invalid"})
        redirect_to = f"{self.settings.app_url.rstrip('/')}{RESET_PASSWORD_PATH}"
        self.gateway.reset_password_for_email(email, redirect_to)
        logger.info(f"Sent password reset link to {email}")
        return redirect_to

    def validate_recovery_link(
        self, access_token: Optional[str], link_type: Optional[str] = "recovery"
    ) -> AuthUser:
        """Check a password recovery link before showing the reset form."""
        if not access_token or link_type != "recovery":
            raise AuthError("Invalid or expired recovery link")
        auth_user = self.gateway.get_user(access_token)
        if auth_user is None:
            raise AuthError("Invalid or expired recovery link")
        return auth_user

    def reset_password(
        self,
        password: str,
        confirm_password: str,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
    ) -> User:
        """Set a new password from a recovery link (or the current session)."""
        if password != confirm_password:
            raise ValidationError(
                "Passwords do not match",
                {"confirm_password": "Passwords do not match"},
            )
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                {"password": "Password is too short"},
            )
        if access_token:
            self.validate_recovery_link(access_token)

        auth_user = self.gateway.update_password(password, access_token, refresh_token)
        logger.info(f"Password updated for {auth_user.email}")
        return user_from_auth_user(auth_user, self.get_user_role(auth_user.id))
