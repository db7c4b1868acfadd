"""Contract models"""

from datetime import date
from enum import Enum
from typing import Dict, Optional

from pydantic import field_validator

from ngo_crm.models.base import CamelModel, blank_to_none
from ngo_crm.models.person import PersonSummary


class ContractStatus(str, Enum):
    """Contract lifecycle, in order"""
    IN_PROGRESS = "in_progress"
    WAITING_FOR_SIGNATURE = "waiting_for_signature"
    SIGNED = "signed"

    @property
    def label(self) -> str:
        return " ".join(word.capitalize() for word in self.value.split("_"))


class ContractFilter(str, Enum):
    """Contract list filters. Archive means the end date has passed."""
    ALL = "all"
    ACTIVE = "active"
    ARCHIVE = "archive"


class ContractFields(CamelModel):
    """Fields a contract is created or edited with"""
    person_id: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    description: Optional[str] = None
    status: ContractStatus = ContractStatus.IN_PROGRESS
    template_id: Optional[str] = None
    custom_fields: Dict[str, str] = {}
    source_document_url: Optional[str] = None

    @field_validator(
        "start_date", "end_date", "description", "template_id", "source_document_url",
        mode="before",
    )
    @classmethod
    def _blank_optional(cls, value):
        return blank_to_none(value)

    @field_validator("custom_fields", mode="before")
    @classmethod
    def _none_to_dict(cls, value):
        return {} if value is None else value


class Contract(ContractFields):
    """A stored contract with its person joined in"""
    id: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    person: Optional[PersonSummary] = None
