"""Document template models"""

from enum import Enum
from typing import Dict, List, Optional

from ngo_crm.models.base import CamelModel


class DocumentType(str, Enum):
    """Kinds of documents a template produces"""
    CONTRACT = "contract"
    RECEIPT = "receipt"


_PERSON_FIELDS = [
    "FIRST_NAME",
    "LAST_NAME",
    "EMAIL",
    "PHONE",
    "BIRTH_DATE",
    "PESEL",
    "STREET",
    "CITY",
    "POSTAL_CODE",
    "COUNTRY",
    "BANK_ACCOUNT",
]

# Placeholders every template of a type gets for free; not user editable
BUILT_IN_FIELDS: Dict[DocumentType, List[str]] = {
    DocumentType.CONTRACT: list(_PERSON_FIELDS),
    DocumentType.RECEIPT: _PERSON_FIELDS + [
        "CONTRACT_NUMBER",
        "CONTRACT_DATE",
        "RECEIPT_NUMBER",
        "RECEIPT_DATE",
    ],
}


class TemplateFields(CamelModel):
    """Fields of a template form"""
    name: str = ""
    type: DocumentType = DocumentType.CONTRACT
    url: str = ""
    is_active: bool = True
    custom_fields: List[str] = []


class DocumentTemplate(TemplateFields):
    """A stored document template"""
    id: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def built_in_fields(self) -> List[str]:
        return BUILT_IN_FIELDS[self.type]
