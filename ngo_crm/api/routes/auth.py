"""Login, logout and password recovery routes"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ngo_crm.api.deps import get_services, require_user
from ngo_crm.api.schemas import (
    ForgotPasswordRequest,
    LoginPageResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ResetPasswordRequest,
)
from ngo_crm.models import User
from ngo_crm.services.container import Services
from ngo_crm.services.guard import GuardState, LOGIN_PATH

logger = logging.getLogger(__name__)

router = APIRouter()

HOME_PATH = "/"


def _safe_redirect(from_path: Optional[str]) -> str:
    """Only follow local paths after sign-in."""
    if from_path and from_path.startswith("/") and from_path[1:2] not in ("/", "\\"):
        return from_path
    return HOME_PATH


@router.get("/login", response_model=LoginPageResponse)
def login_page(
    from_path: Optional[str] = Query(None, alias="from"),
    services: Services = Depends(get_services),
):
    """Login page data; tells the client where to go if already signed in."""
    services.guard.check(LOGIN_PATH)
    return LoginPageResponse(
        google_client_id=services.settings.google_client_id,
        from_path=_safe_redirect(from_path),
        authenticated=services.guard.state == GuardState.AUTHENTICATED,
    )


@router.post("/login", response_model=LoginResponse)
def login(request: LoginRequest, services: Services = Depends(get_services)):
    user = services.auth.login(request.email, request.password)
    if services.guard.state != GuardState.AUTHENTICATED:
        services.guard.mount()
    return LoginResponse(user=user, redirect=_safe_redirect(request.from_path))


@router.post("/logout", response_model=MessageResponse)
def logout(services: Services = Depends(get_services)):
    services.auth.logout()
    services.guard.mount()
    return MessageResponse(message="Signed out", redirect=LOGIN_PATH)


@router.get("/me", response_model=User)
def me(user: User = Depends(require_user)):
    return user


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(request: ForgotPasswordRequest, services: Services = Depends(get_services)):
    services.auth.send_password_reset(request.email)
    return MessageResponse(message="Password reset instructions have been sent to your email")


@router.get("/reset-password", response_model=MessageResponse)
def reset_password_page(
    access_token: Optional[str] = None,
    type: Optional[str] = None,
    services: Services = Depends(get_services),
):
    """Validate a recovery link. Reachable without a session."""
    services.auth.validate_recovery_link(access_token, type)
    return MessageResponse(message="Enter a new password")


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(request: ResetPasswordRequest, services: Services = Depends(get_services)):
    services.auth.reset_password(
        request.password,
        request.confirm_password,
        request.access_token,
        request.refresh_token,
    )
    return MessageResponse(
        message="Password updated successfully. Please sign in with your new password.",
        redirect=LOGIN_PATH,
    )
