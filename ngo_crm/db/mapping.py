"""Bidirectional field mapping between models and wire rows.

Models use Python names (``first_name``, ``national_id``); the tables use
their own column names (``firstname``, ``pesel``). Every read and write goes
through a ``FieldMap`` so the translation lives in one place.
"""

from typing import Dict, Iterable, Optional

from ngo_crm.models import Contract, DocumentTemplate, Person, PersonSummary


class FieldMap:
    """Explicit model-field <-> column mapping for one table"""

    def __init__(
        self,
        columns: Dict[str, str],
        blank_is_null: Iterable[str] = (),
        list_fields: Iterable[str] = (),
        dict_fields: Iterable[str] = (),
    ):
        self.columns = dict(columns)
        self.fields = {column: field for field, column in self.columns.items()}
        self.blank_is_null = set(blank_is_null)
        self.list_fields = set(list_fields)
        self.dict_fields = set(dict_fields)

    def column(self, field: str) -> str:
        return self.columns[field]

    def to_wire(self, values: dict) -> dict:
        """Rename model fields to columns. Unknown keys are dropped."""
        row = {}
        for field, value in values.items():
            if field not in self.columns:
                continue
            if field in self.blank_is_null and (value is None or value == ""):
                value = None
            row[self.columns[field]] = value
        return row

    def from_wire(self, row: dict) -> dict:
        """Rename columns to model fields, filling empty collections."""
        values = {}
        for column, value in row.items():
            field = self.fields.get(column)
            if field is None:
                continue
            if value is None and field in self.list_fields:
                value = []
            elif value is None and field in self.dict_fields:
                value = {}
            values[field] = value
        return values


_TIMESTAMPS = {"id": "id", "created_at": "created_at", "updated_at": "updated_at"}

PERSON_MAP = FieldMap(
    {
        **_TIMESTAMPS,
        "first_name": "firstname",
        "last_name": "lastname",
        "email": "email",
        "phone": "phone",
        "engagement": "engagement",
        "birth_date": "birth_date",
        "national_id": "pesel",
        "street": "street",
        "city": "city",
        "postal_code": "postal_code",
        "country": "country",
        "bank_account": "bank_account",
        "tax_declaration_file": "tax_declaration_file",
        "volunteer_start_date": "volunteer_start_date",
        "volunteer_end_date": "volunteer_end_date",
        "volunteer_contract_file": "volunteer_contract_file",
        "donator_bank_accounts": "donator_bank_accounts",
        "donator_emails": "donator_emails",
        "completeness_problems": "completeness_problems",
    },
    blank_is_null=("birth_date", "volunteer_start_date", "volunteer_end_date"),
    list_fields=("engagement", "donator_bank_accounts", "donator_emails", "completeness_problems"),
)

CONTRACT_MAP = FieldMap(
    {
        **_TIMESTAMPS,
        "person_id": "person_id",
        "start_date": "start_date",
        "end_date": "end_date",
        "description": "description",
        "status": "status",
        "template_id": "template_id",
        "custom_fields": "custom_fields",
        "source_document_url": "source_document_url",
    },
    blank_is_null=("end_date", "template_id"),
    dict_fields=("custom_fields",),
)

TEMPLATE_MAP = FieldMap(
    {
        **_TIMESTAMPS,
        "name": "name",
        "type": "type",
        "url": "url",
        "is_active": "is_active",
        "custom_fields": "custom_fields",
    },
    list_fields=("custom_fields",),
)

# Select clause that embeds the owning person into each contract row
CONTRACT_COLUMNS = "*, person:persons(*)"


def person_from_row(row: dict) -> Person:
    return Person(**PERSON_MAP.from_wire(row))


def contract_from_row(row: dict) -> Contract:
    values = CONTRACT_MAP.from_wire(row)
    joined = row.get("person")
    if joined:
        values["person"] = _person_summary(joined)
    return Contract(**values)


def template_from_row(row: dict) -> DocumentTemplate:
    return DocumentTemplate(**TEMPLATE_MAP.from_wire(row))


def _person_summary(row: dict) -> Optional[PersonSummary]:
    values = PERSON_MAP.from_wire(row)
    return PersonSummary(**{k: v for k, v in values.items() if k in PersonSummary.model_fields and v is not None})
