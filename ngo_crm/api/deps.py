"""Request dependencies: services, signed-in user, role checks"""

from typing import Callable

from fastapi import Depends, Request

from ngo_crm.models import Role, User
from ngo_crm.services.auth import require_role as check_role
from ngo_crm.services.container import Services


class LoginRequired(Exception):
    """Raised for a protected path when nobody is signed in."""

    def __init__(self, redirect: str):
        super().__init__("Not signed in")
        self.redirect = redirect

    def to_dict(self) -> dict:
        return {"detail": str(self), "redirect": self.redirect}


def get_services(request: Request) -> Services:
    return request.app.state.services


def require_user(request: Request, services: Services = Depends(get_services)) -> User:
    """The signed-in user, or LoginRequired pointing back at this path."""
    path = request.url.path
    if request.url.query:
        path = f"{path}?{request.url.query}"
    decision = services.guard.check(path)
    if not decision.allowed or services.guard.user is None:
        raise LoginRequired(decision.redirect or "/login")
    return services.guard.user


def require_role(*roles: Role) -> Callable[..., User]:
    def dependency(user: User = Depends(require_user)) -> User:
        return check_role(user, *roles)

    return dependency
