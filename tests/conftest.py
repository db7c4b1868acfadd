"""Pytest configuration and fixtures"""

from datetime import date

import pytest

from ngo_crm.db import get_gateway
from ngo_crm.models import Engagement, PersonFields, Role
from ngo_crm.services.container import build_services
from ngo_crm.utils.config import get_settings

ADMIN_EMAIL = "admin@example.org"
ACCOUNTANT_EMAIL = "accountant@example.org"
PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def test_env(tmp_path, monkeypatch):
    """Set up test environment with the in-memory backend"""
    monkeypatch.setenv("DB_MODE", "memory")
    monkeypatch.setenv("SESSION_FILE", "")
    monkeypatch.setenv("DOCUMENT_GENERATION_DELAY", "0")
    monkeypatch.setenv("IS_DEVELOPMENT", "false")
    monkeypatch.setenv("BYPASS_AUTH", "false")
    monkeypatch.setenv("APP_URL", "https://crm.example.org")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    monkeypatch.chdir(tmp_path)

    yield


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def gateway(settings):
    gateway = get_gateway(settings=settings)
    gateway.add_user(ADMIN_EMAIL, PASSWORD, full_name="Ada Admin", role=Role.ADMIN.value)
    gateway.add_user(ACCOUNTANT_EMAIL, PASSWORD, role=Role.ACCOUNTANT.value)
    return gateway


@pytest.fixture
def services(settings, gateway):
    return build_services(settings=settings, gateway=gateway)


@pytest.fixture
def signed_in(services):
    """Services with the admin signed in"""
    services.auth.login(ADMIN_EMAIL, PASSWORD)
    services.guard.mount()
    return services


def make_person(**overrides) -> PersonFields:
    values = dict(
        first_name="John",
        last_name="Doe",
        email="john.doe@example.org",
        phone="+48 600 100 200",
    )
    values.update(overrides)
    return PersonFields(**values)


def make_contractor(**overrides) -> PersonFields:
    values = dict(
        engagement=[Engagement.CONTRACTOR],
        birth_date=date(1990, 5, 17),
        national_id="90051712345",
        street="Marszalkowska 1",
        city="Warszawa",
        postal_code="00-001",
        bank_account="PL61109010140000071219812874",
        tax_declaration_file="tax_declaration_file/abc/pit2.pdf",
    )
    values.update(overrides)
    return make_person(**values)
