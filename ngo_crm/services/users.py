"""Users tab: who has which role"""

import logging
from typing import List, Optional

from ngo_crm.db.base import GatewayInterface
from ngo_crm.errors import CrmError
from ngo_crm.models import Role, User
from ngo_crm.models.user import avatar_url, display_name

logger = logging.getLogger(__name__)

USER_ROLE_COLUMNS = "user_id, role_id, users:user_id(email, raw_user_meta_data)"


def _user_from_role_row(row: dict) -> User:
    account = row.get("users") or {}
    email = account.get("email") or ""
    metadata = account.get("raw_user_meta_data") or {}
    try:
        role = Role(row.get("role_id"))
    except ValueError:
        role = Role.GUEST
    return User(
        id=row["user_id"],
        email=email,
        name=display_name(email, metadata),
        picture=metadata.get("avatar_url") or avatar_url(email or "User"),
        role=role,
    )


def filter_users(users: List[User], query: str = "", role: Optional[Role] = None) -> List[User]:
    query = query.strip().lower()
    return [
        u for u in users
        if (not query or query in u.name.lower() or query in u.email.lower())
        and (role is None or u.role == role)
    ]


class UserDirectory:
    def __init__(self, gateway: GatewayInterface):
        self.gateway = gateway
        self.error: Optional[str] = None

    def list_users(self, current_user: Optional[User]) -> List[User]:
        """Admins see every role assignment; anyone else sees only themselves."""
        if current_user is None:
            return []
        if current_user.role != Role.ADMIN:
            return [current_user.model_copy(update={
                "name": current_user.name or current_user.email.split("@")[0],
                "picture": avatar_url(current_user.email),
            })]
        self.error = None
        try:
            rows = self.gateway.select("user_roles", USER_ROLE_COLUMNS)
        except CrmError as e:
            logger.error(f"Error fetching users: {e}")
            self.error = str(e)
            return []
        return [_user_from_role_row(row) for row in rows]
