"""Person models"""

from datetime import date
from enum import Enum
from typing import List, Optional

from pydantic import field_validator

from ngo_crm.models.base import CamelModel, blank_to_none


class Engagement(str, Enum):
    """Roles a person can hold at the same time"""
    VOLUNTEER = "volunteer"
    CONTRACTOR = "contractor"
    DONATOR = "donator"


class PersonFilter(str, Enum):
    """Person list filters"""
    ALL = "all"
    INCOMPLETE = "incomplete"
    VOLUNTEER = "volunteer"
    DONATOR = "donator"
    CONTRACTOR = "contractor"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


COUNTRIES = {
    "PL": "Polska",
    "DE": "Niemcy",
    "UK": "Wielka Brytania",
    "US": "Stany Zjednoczone",
}

DEFAULT_COUNTRY = "PL"


class PersonFields(CamelModel):
    """Everything a person form submits (a new person has no id yet)"""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    engagement: List[Engagement] = []

    # Contractor
    birth_date: Optional[date] = None
    national_id: Optional[str] = None   # PESEL
    street: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = DEFAULT_COUNTRY
    bank_account: Optional[str] = None
    tax_declaration_file: Optional[str] = None

    # Volunteer
    volunteer_start_date: Optional[date] = None
    volunteer_end_date: Optional[date] = None
    volunteer_contract_file: Optional[str] = None

    # Donator
    donator_bank_accounts: List[str] = []
    donator_emails: List[str] = []

    completeness_problems: List[str] = []

    @field_validator(
        "birth_date", "volunteer_start_date", "volunteer_end_date",
        "national_id", "street", "city", "postal_code", "bank_account",
        "tax_declaration_file", "volunteer_contract_file",
        mode="before",
    )
    @classmethod
    def _blank_optional(cls, value):
        return blank_to_none(value)

    @field_validator("engagement", "donator_bank_accounts", "donator_emails", "completeness_problems", mode="before")
    @classmethod
    def _none_to_list(cls, value):
        return [] if value is None else value

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_complete(self) -> bool:
        return not self.completeness_problems

    def has_engagement(self, engagement: Engagement) -> bool:
        return engagement in self.engagement


class Person(PersonFields):
    """A stored person"""
    id: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class PersonSummary(CamelModel):
    """Person fields joined into a contract for display"""
    id: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class SortState(CamelModel):
    field: str = "first_name"
    direction: SortDirection = SortDirection.ASC
