"""User and role models"""

from enum import Enum
from typing import Optional
from urllib.parse import quote

from ngo_crm.models.base import CamelModel


class Role(str, Enum):
    ADMIN = "admin"
    ACCOUNTANT = "accountant"
    GUEST = "guest"


class ThemeMode(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class User(CamelModel):
    """The signed-in user as the app sees it"""
    id: str
    email: str = ""
    name: str = ""
    picture: str = ""
    role: Role = Role.GUEST


def avatar_url(name: str) -> str:
    """Generated avatar used when the account has none"""
    return f"https://ui-avatars.com/api/?name={quote(name or 'User')}"


def display_name(email: Optional[str], metadata: Optional[dict]) -> str:
    metadata = metadata or {}
    if metadata.get("full_name"):
        return metadata["full_name"]
    if email:
        return email.split("@")[0]
    return "User"
