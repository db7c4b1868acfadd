"""Data models"""

from ngo_crm.models.person import (
    COUNTRIES,
    DEFAULT_COUNTRY,
    Engagement,
    Person,
    PersonFields,
    PersonFilter,
    PersonSummary,
    SortDirection,
    SortState,
)
from ngo_crm.models.contract import (
    Contract,
    ContractFields,
    ContractFilter,
    ContractStatus,
)
from ngo_crm.models.template import (
    BUILT_IN_FIELDS,
    DocumentTemplate,
    DocumentType,
    TemplateFields,
)
from ngo_crm.models.user import Role, ThemeMode, User

__all__ = [
    "COUNTRIES",
    "DEFAULT_COUNTRY",
    "Engagement",
    "Person",
    "PersonFields",
    "PersonFilter",
    "PersonSummary",
    "SortDirection",
    "SortState",
    "Contract",
    "ContractFields",
    "ContractFilter",
    "ContractStatus",
    "BUILT_IN_FIELDS",
    "DocumentTemplate",
    "DocumentType",
    "TemplateFields",
    "Role",
    "ThemeMode",
    "User",
]
