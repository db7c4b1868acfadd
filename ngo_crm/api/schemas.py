"""Request/response schemas for the CRM API"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from ngo_crm.models import (
    Contract,
    ContractStatus,
    DocumentTemplate,
    DocumentType,
    Person,
    ThemeMode,
    User,
)
from ngo_crm.models.base import CamelModel


class HealthResponse(CamelModel):
    status: str = "ok"
    version: str
    db_mode: str
    timestamp: datetime = Field(default_factory=datetime.now)


# Auth

class LoginPageResponse(CamelModel):
    google_client_id: Optional[str] = None
    from_path: str = "/dashboard"
    authenticated: bool = False


class LoginRequest(CamelModel):
    email: str = ""
    password: str = ""
    from_path: Optional[str] = Field(None, description="Where to go after signing in")


class LoginResponse(CamelModel):
    user: User
    redirect: str


class ForgotPasswordRequest(CamelModel):
    email: str = ""


class ResetPasswordRequest(CamelModel):
    password: str = ""
    confirm_password: str = ""
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


class MessageResponse(CamelModel):
    message: str
    redirect: Optional[str] = None


# Persons

class CompletenessResponse(CamelModel):
    is_complete: bool
    problems: List[str] = []


class PersonListResponse(CamelModel):
    persons: List[Person] = []
    total: int = 0


# Contracts

class ContractView(Contract):
    """Contract as listed, with its display helpers"""
    status_label: str = ""
    is_active: bool = True
    pdf_url: Optional[str] = None


class ContractListResponse(CamelModel):
    contracts: List[ContractView] = []
    total: int = 0
    notice: Optional[str] = None


class ContractDetailsRequest(CamelModel):
    template_id: Optional[str] = None
    start_date: str = ""
    end_date: str = ""
    description: str = ""
    custom_fields: Dict[str, str] = {}


class WizardPageResponse(CamelModel):
    """First step of the contract wizard"""
    step: int = 0
    templates: List[DocumentTemplate] = []
    search_limit: int = 10


class ReviewedPerson(CamelModel):
    """Person fields confirmed in the wizard's review step"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[str] = None
    national_id: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    bank_account: Optional[str] = None


class ContractCreateRequest(CamelModel):
    """Everything the contract wizard collects, submitted at once"""
    person_id: str
    person: ReviewedPerson = Field(default_factory=ReviewedPerson, description="Reviewed person fields")
    update_profile: Optional[bool] = Field(
        None, description="Persist reviewed fields (True) or skip (False); required when they differ"
    )
    contract: ContractDetailsRequest = Field(default_factory=ContractDetailsRequest)


class ContractCreateResponse(CamelModel):
    contract: Contract
    redirect: str = "/contracts"


class ContractUpdateRequest(CamelModel):
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    description: Optional[str] = None
    template_id: Optional[str] = None
    custom_fields: Optional[Dict[str, str]] = None


class StatusRequest(CamelModel):
    status: ContractStatus


# Settings

class UserListResponse(CamelModel):
    users: List[User] = []
    can_view_all: bool = False


class TemplateListResponse(CamelModel):
    templates: List[DocumentTemplate] = []
    total: int = 0


class BuiltInFieldsResponse(CamelModel):
    type: DocumentType
    fields: List[str] = []


class ThemeResponse(CamelModel):
    mode: ThemeMode
    is_dark: bool


class ThemeRequest(CamelModel):
    mode: ThemeMode


# Pages

class DashboardResponse(CamelModel):
    total_persons: int
    with_email: int
    with_phone: int
    incomplete: int
    active_contracts: int
    updated_this_week: int
    recent_persons: List[Person] = []


class StubPageResponse(CamelModel):
    title: str
    message: str = "Coming soon"
