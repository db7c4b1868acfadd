"""Person profile completeness.

A person may be stored incomplete; completeness is a derived flag plus a
list of problems shown to the operator. Required fields depend on the
person's engagement roles:

- everyone: first name, last name, e-mail, phone
- contractor: birth date, PESEL, street, city, postal code, bank account,
  plus an uploaded tax declaration
- volunteer: start and end date, plus an uploaded signed contract
- donator: nothing beyond the basics

Missing fields are reported one message per group, not one per field.
"""

from typing import Any, List, NamedTuple, Sequence, Tuple

from ngo_crm.models import Engagement

REQUIRED_FIELDS: Sequence[Tuple[str, str]] = (
    ("first_name", "First Name"),
    ("last_name", "Last Name"),
    ("email", "Email"),
    ("phone", "Phone Number"),
)

CONTRACTOR_FIELDS: Sequence[Tuple[str, str]] = (
    ("birth_date", "Birth Date"),
    ("national_id", "PESEL"),
    ("street", "Street Address"),
    ("city", "City"),
    ("postal_code", "Postal Code"),
    ("bank_account", "Bank Account"),
)

VOLUNTEER_FIELDS: Sequence[Tuple[str, str]] = (
    ("volunteer_start_date", "Volunteer Start Date"),
    ("volunteer_end_date", "Volunteer End Date"),
)

TAX_DECLARATION_MISSING = "Tax declaration file not uploaded"
VOLUNTEER_CONTRACT_MISSING = "Volunteer contract not uploaded"


class Completeness(NamedTuple):
    is_complete: bool
    problems: List[str]


def _value(person: Any, field: str) -> Any:
    if isinstance(person, dict):
        return person.get(field)
    return getattr(person, field, None)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _missing(person: Any, fields: Sequence[Tuple[str, str]]) -> List[str]:
    return [label for field, label in fields if _is_blank(_value(person, field))]


def evaluate_completeness(person: Any) -> Completeness:
    """Check a person (model or plain dict of model fields).

    Pure: the same input always yields the same problems in the same order.
    """
    problems: List[str] = []
    engagement = {Engagement(e) for e in (_value(person, "engagement") or [])}

    missing = _missing(person, REQUIRED_FIELDS)
    if missing:
        problems.append(f"Missing required fields: {', '.join(missing)}")

    if Engagement.CONTRACTOR in engagement:
        missing = _missing(person, CONTRACTOR_FIELDS)
        if missing:
            problems.append(f"Missing contractor fields: {', '.join(missing)}")
        if _is_blank(_value(person, "tax_declaration_file")):
            problems.append(TAX_DECLARATION_MISSING)

    if Engagement.VOLUNTEER in engagement:
        missing = _missing(person, VOLUNTEER_FIELDS)
        if missing:
            problems.append(f"Missing volunteer fields: {', '.join(missing)}")
        if _is_blank(_value(person, "volunteer_contract_file")):
            problems.append(VOLUNTEER_CONTRACT_MISSING)

    return Completeness(is_complete=not problems, problems=problems)
