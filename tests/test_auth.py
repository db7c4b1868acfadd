"""Tests for authentication, roles and the route guard"""

import pytest

from ngo_crm.errors import AuthError, PermissionDeniedError, ValidationError
from ngo_crm.models import Role
from ngo_crm.services.auth import require_role, user_from_auth_user
from ngo_crm.db.base import AuthUser
from ngo_crm.services.container import build_services
from ngo_crm.services.guard import AuthGuard, GuardState
from ngo_crm.utils.config import Settings

from conftest import ACCOUNTANT_EMAIL, ADMIN_EMAIL, PASSWORD


class TestLogin:

    def test_login_resolves_role(self, services):
        user = services.auth.login(ADMIN_EMAIL, PASSWORD)
        assert user.role == Role.ADMIN
        assert user.name == "Ada Admin"

    def test_user_without_role_row_is_guest(self, services, gateway):
        gateway.add_user("new@example.org", PASSWORD)
        assert services.auth.login("new@example.org", PASSWORD).role == Role.GUEST

    def test_bad_credentials(self, services):
        with pytest.raises(AuthError):
            services.auth.login(ADMIN_EMAIL, "wrong")
        assert services.auth.error == "Invalid login credentials"
        assert services.auth.is_loading is False

    def test_blank_credentials_are_rejected_locally(self, services, gateway):
        gateway.calls.clear()
        with pytest.raises(ValidationError):
            services.auth.login("", "")
        assert gateway.calls == []

    def test_logout(self, signed_in):
        signed_in.auth.logout()
        assert signed_in.auth.user is None
        assert signed_in.auth.current_user() is None


class TestDisplay:

    def test_name_falls_back_to_email_local_part(self):
        user = user_from_auth_user(AuthUser(id="u1", email="jane.roe@example.org"))
        assert user.name == "jane.roe"
        assert user.picture == "https://ui-avatars.com/api/?name=jane.roe%40example.org"

    def test_metadata_avatar_wins(self):
        user = user_from_auth_user(AuthUser(
            id="u1", email="a@b.co", user_metadata={"avatar_url": "https://img/a.png", "full_name": "A B"}
        ))
        assert (user.name, user.picture) == ("A B", "https://img/a.png")

    def test_no_email(self):
        assert user_from_auth_user(AuthUser(id="u1")).name == "User"


class TestRoles:

    def test_require_role(self, services):
        accountant = services.auth.login(ACCOUNTANT_EMAIL, PASSWORD)
        assert require_role(accountant) is accountant
        assert require_role(accountant, Role.ADMIN, Role.ACCOUNTANT) is accountant
        with pytest.raises(PermissionDeniedError):
            require_role(accountant, Role.ADMIN)

    def test_require_role_needs_a_user(self):
        with pytest.raises(AuthError):
            require_role(None)

    def test_users_tab(self, services):
        admin = services.auth.login(ADMIN_EMAIL, PASSWORD)
        listed = services.users.list_users(admin)
        assert {u.email for u in listed} == {ADMIN_EMAIL, ACCOUNTANT_EMAIL}

        accountant = services.auth.login(ACCOUNTANT_EMAIL, PASSWORD)
        assert [u.email for u in services.users.list_users(accountant)] == [ACCOUNTANT_EMAIL]


class TestPasswordReset:

    def test_reset_link_points_at_reset_page(self, services, gateway):
        redirect = services.auth.send_password_reset(ADMIN_EMAIL)
        assert redirect == "https://crm.example.org/reset-password"
        assert gateway.sent_resets[-1]["redirect_to"] == redirect

    def test_invalid_email(self, services):
        with pytest.raises(ValidationError):
            services.auth.send_password_reset("nope")

    def test_reset_with_recovery_token(self, services, gateway):
        services.auth.send_password_reset(ADMIN_EMAIL)
        link = gateway.sent_resets[-1]

        services.auth.reset_password("newpass1", "newpass1", link["access_token"], link["refresh_token"])

        assert services.auth.login(ADMIN_EMAIL, "newpass1").email == ADMIN_EMAIL

    def test_mismatch_and_length(self, services):
        with pytest.raises(ValidationError, match="do not match"):
            services.auth.reset_password("abcdef", "abcdeg")
        with pytest.raises(ValidationError, match="at least 6"):
            services.auth.reset_password("abc", "abc")

    def test_bad_token(self, services):
        with pytest.raises(AuthError):
            services.auth.reset_password("newpass1", "newpass1", "forged-token")

    def test_recovery_link_type(self, services):
        with pytest.raises(AuthError):
            services.auth.validate_recovery_link("token", "signup")


class TestGuard:

    def test_starts_loading(self, services):
        assert AuthGuard(services.auth).state == GuardState.LOADING

    def test_unauthenticated_redirects_with_original_path(self, services):
        decision = services.guard.check("/contracts/new")
        assert not decision.allowed
        assert decision.redirect == "/login?from=/contracts/new"
        assert services.guard.state == GuardState.UNAUTHENTICATED

    def test_reset_password_is_exempt(self, services):
        assert services.guard.check("/reset-password").allowed
        assert services.guard.state == GuardState.LOADING

    def test_follows_external_sign_in_and_out(self, services, gateway):
        guard = services.guard
        guard.mount()
        assert guard.state == GuardState.UNAUTHENTICATED

        gateway.sign_in(ADMIN_EMAIL, PASSWORD)
        assert guard.state == GuardState.AUTHENTICATED
        assert guard.user.role == Role.ADMIN

        gateway.expire_session()
        assert guard.state == GuardState.UNAUTHENTICATED
        assert not guard.check("/persons").allowed

    def test_unmount_releases_subscription(self, services, gateway):
        guard = services.guard
        guard.mount()
        assert gateway.listener_count == 1

        guard.unmount()
        assert gateway.listener_count == 0
        gateway.sign_in(ADMIN_EMAIL, PASSWORD)
        assert guard.state == GuardState.UNAUTHENTICATED

    def test_mount_twice_keeps_one_listener(self, services, gateway):
        services.guard.mount()
        services.guard.mount()
        assert gateway.listener_count == 1

    def test_dev_bypass(self, gateway):
        settings = Settings(db_mode="memory", is_development=True, bypass_auth=True, session_file="")
        services = build_services(settings=settings, gateway=gateway)
        assert services.guard.check("/dashboard").allowed
        assert services.guard.user.email == settings.dev_user_email
        assert services.guard.user.role == Role.ADMIN

    def test_bypass_needs_development_build(self, gateway):
        settings = Settings(db_mode="memory", is_development=False, bypass_auth=True, session_file="")
        services = build_services(settings=settings, gateway=gateway)
        assert not services.guard.check("/dashboard").allowed
