"""Person create/edit form state.

Holds what the operator typed, keeps a live completeness status that is
recomputed on every change, and produces the fields to persist on submit.
The completeness computed at submit time is the one that gets stored.
"""

import re
from typing import Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ngo_crm.errors import ValidationError
from ngo_crm.models import DEFAULT_COUNTRY, Engagement, Person, PersonFields
from ngo_crm.models.base import text
from ngo_crm.services.completeness import Completeness, evaluate_completeness

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

TEXT_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "birth_date",
    "national_id",
    "street",
    "city",
    "postal_code",
    "country",
    "bank_account",
    "tax_declaration_file",
    "volunteer_start_date",
    "volunteer_end_date",
    "volunteer_contract_file",
)


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value or ""))


class PersonForm:
    """Form values for one person, optionally pre-filled from a stored one."""

    def __init__(self, initial: Optional[Person] = None):
        self.values: Dict[str, str] = {
            field: text(getattr(initial, field, None)) for field in TEXT_FIELDS
        }
        if not self.values["country"]:
            self.values["country"] = DEFAULT_COUNTRY
        self.engagement: List[Engagement] = list(initial.engagement) if initial else []
        self.donator_bank_accounts: List[str] = list(initial.donator_bank_accounts) if initial else []
        self.donator_emails: List[str] = list(initial.donator_emails) if initial else []
        self.errors: Dict[str, str] = {}
        self.status = Completeness(True, [])
        self._refresh()

    @classmethod
    def from_data(cls, data: dict, initial: Optional[Person] = None) -> "PersonForm":
        """Build a form from submitted model-field data on top of ``initial``."""
        form = cls(initial)
        for field in TEXT_FIELDS:
            if field in data:
                form.set_field(field, text(data[field]))
        if "engagement" in data:
            form.engagement = [Engagement(e) for e in data["engagement"] or []]
        if "donator_bank_accounts" in data:
            form.donator_bank_accounts = []
            for account in data["donator_bank_accounts"] or []:
                form.add_bank_account(account)
        if "donator_emails" in data:
            form.donator_emails = []
            for email in data["donator_emails"] or []:
                if not form.add_email(email):
                    form.errors["donator_emails"] = f"Invalid e-mail: {email}"
        form._refresh()
        return form

    def _refresh(self) -> None:
        self.status = evaluate_completeness(self._snapshot())

    def _snapshot(self) -> dict:
        return {
            **self.values,
            "engagement": self.engagement,
            "donator_bank_accounts": self.donator_bank_accounts,
            "donator_emails": self.donator_emails,
        }

    # Edits

    def set_field(self, field: str, value: str) -> None:
        if field not in self.values:
            raise ValidationError(f"Unknown field '{field}'", {field: "Unknown field"})
        self.values[field] = value
        self.errors.pop(field, None)
        self._refresh()

    def toggle_engagement(self, engagement: Engagement) -> None:
        if engagement in self.engagement:
            self.engagement = [e for e in self.engagement if e != engagement]
        else:
            self.engagement = self.engagement + [engagement]
        self._refresh()

    def add_bank_account(self, account: str) -> bool:
        account = (account or "").strip()
        if not account:
            return False
        self.donator_bank_accounts.append(account)
        self._refresh()
        return True

    def remove_bank_account(self, index: int) -> None:
        del self.donator_bank_accounts[index]
        self._refresh()

    def add_email(self, email: str) -> bool:
        email = (email or "").strip()
        if not email or not is_valid_email(email):
            return False
        self.donator_emails.append(email)
        self._refresh()
        return True

    def remove_email(self, index: int) -> None:
        del self.donator_emails[index]
        self._refresh()

    # Submit

    def validate(self) -> Dict[str, str]:
        errors = {}
        if not self.values["first_name"].strip():
            errors["first_name"] = "First name is required"
        if not self.values["last_name"].strip():
            errors["last_name"] = "Last name is required"
        if not self.values["email"].strip():
            errors["email"] = "Email is required"
        elif not is_valid_email(self.values["email"]):
            errors["email"] = "Email is invalid"
        if not self.values["phone"].strip():
            errors["phone"] = "Phone number is required"
        if "donator_emails" in self.errors:
            errors["donator_emails"] = self.errors["donator_emails"]
        self.errors = errors
        return errors

    def submit(self) -> PersonFields:
        """Validate and return the fields to store, completeness included."""
        if self.validate():
            raise ValidationError("Please correct the highlighted fields", dict(self.errors))
        self._refresh()
        try:
            return PersonFields(
                **self.values,
                engagement=self.engagement,
                donator_bank_accounts=self.donator_bank_accounts,
                donator_emails=self.donator_emails,
                completeness_problems=self.status.problems,
            )
        except PydanticValidationError as e:
            self.errors = {str(err["loc"][0]): err["msg"] for err in e.errors()}
            raise ValidationError("Please correct the highlighted fields", dict(self.errors)) from e
