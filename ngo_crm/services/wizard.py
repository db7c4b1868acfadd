"""Contract creation wizard.

A three-step state machine:

    SELECT_PERSON -> REVIEW_PERSON -> CONTRACT_DETAILS -> (created)

Leaving REVIEW_PERSON is gated: when the reviewed fields differ from the
stored person, or the person is not yet a contractor, ``next`` stops with
CONFIRM_UPDATE and the caller either ``confirm_update`` (persist the
fields, add the contractor role) or ``skip_update`` (move on, persist
nothing). ``back`` from the first step exits the wizard.
"""

import logging
from enum import Enum, IntEnum
from typing import Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ngo_crm.errors import CrmError, NotFoundError, ValidationError
from ngo_crm.models import (
    DEFAULT_COUNTRY,
    Contract,
    ContractFields,
    ContractStatus,
    Engagement,
    Person,
    PersonFields,
)
from ngo_crm.models.base import text
from ngo_crm.services.completeness import evaluate_completeness
from ngo_crm.services.contracts import ContractStore
from ngo_crm.services.persons import PersonStore

logger = logging.getLogger(__name__)

REVIEW_FIELDS = (
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
)

CONTRACT_FIELDS = ("template_id", "start_date", "end_date", "description")
CUSTOM_FIELD_PREFIX = "custom_fields."


class WizardStep(IntEnum):
    SELECT_PERSON = 0
    REVIEW_PERSON = 1
    CONTRACT_DETAILS = 2


class WizardOutcome(str, Enum):
    ADVANCED = "advanced"
    WENT_BACK = "went_back"
    CONFIRM_UPDATE = "confirm_update"
    EXITED = "exited"
    CREATED = "created"


def search_persons(persons: List[Person], query: str, limit: int = 10) -> List[Person]:
    """Case-insensitive substring match over first name, last name and e-mail."""
    query = query.strip().lower()
    if not query:
        return []
    matches = [
        p for p in persons
        if query in p.first_name.lower()
        or query in p.last_name.lower()
        or query in p.email.lower()
    ]
    return matches[:limit]


def _review_values(person: Optional[Person]) -> Dict[str, str]:
    values = {field: text(getattr(person, field, None)) for field in REVIEW_FIELDS}
    if not values["country"]:
        values["country"] = DEFAULT_COUNTRY
    return values


class ContractWizard:
    def __init__(self, persons: PersonStore, contracts: ContractStore, search_limit: int = 10):
        self.persons = persons
        self.contracts = contracts
        self.search_limit = search_limit
        self.step = WizardStep.SELECT_PERSON
        self.search_query = ""
        self.selected_person: Optional[Person] = None
        self.details = _review_values(None)
        self.contract_data: Dict[str, str] = {field: "" for field in CONTRACT_FIELDS}
        self.custom_fields: Dict[str, str] = {}
        self.awaiting_confirmation = False
        self.error: Optional[str] = None
        self.created: Optional[Contract] = None

    def start(self) -> "ContractWizard":
        self.persons.fetch_all()
        return self

    # Step 1: person lookup

    def search(self, query: str) -> List[Person]:
        self.search_query = query
        return search_persons(self.persons.persons, query, self.search_limit)

    def select_person(self, person: Person) -> None:
        self.selected_person = person
        self.search_query = person.full_name
        self.details = _review_values(person)

    def select_person_by_id(self, person_id: str) -> Person:
        person = next((p for p in self.persons.persons if p.id == person_id), None)
        if person is None:
            person = self.persons.get_by_id(person_id)
        if person is None:
            raise NotFoundError("Person not found")
        self.select_person(person)
        return person

    # Step 2: review

    def set_detail(self, field: str, value: str) -> None:
        if field not in REVIEW_FIELDS:
            raise ValidationError(f"Unknown person field '{field}'", {field: "Unknown field"})
        self.details[field] = value

    def has_changes(self) -> bool:
        return self.details != _review_values(self.selected_person)

    def needs_profile_update(self) -> bool:
        if self.selected_person is None:
            return False
        is_contractor = self.selected_person.has_engagement(Engagement.CONTRACTOR)
        return self.has_changes() or not is_contractor

    def confirm_update(self) -> WizardOutcome:
        """Persist the reviewed fields, make the person a contractor, move on."""
        person = self.selected_person
        if person is None:
            raise ValidationError("Select a person first", {"person": "Select a person"})

        engagement = list(person.engagement)
        if Engagement.CONTRACTOR not in engagement:
            engagement.append(Engagement.CONTRACTOR)
        try:
            reviewed = PersonFields.model_validate(self.details)
        except PydanticValidationError as e:
            errors = {str(err["loc"][0]): err["msg"] for err in e.errors()}
            raise ValidationError("Please correct the highlighted fields", errors) from e

        update = reviewed.model_dump(include=set(REVIEW_FIELDS))
        merged = {**person.model_dump(), **update, "engagement": engagement}
        update["engagement"] = engagement
        update["completeness_problems"] = evaluate_completeness(merged).problems

        try:
            self.selected_person = self.persons.update(person.id, update)
        except CrmError as e:
            self.error = "Failed to update person details"
            logger.error(f"{self.error}: {e}")
            raise
        self.details = _review_values(self.selected_person)
        self.awaiting_confirmation = False
        self.step = WizardStep.CONTRACT_DETAILS
        return WizardOutcome.ADVANCED

    def skip_update(self) -> WizardOutcome:
        self.awaiting_confirmation = False
        self.step = WizardStep.CONTRACT_DETAILS
        return WizardOutcome.ADVANCED

    # Step 3: contract details

    def set_contract_field(self, field: str, value: str) -> None:
        if field.startswith(CUSTOM_FIELD_PREFIX):
            self.set_custom_field(field[len(CUSTOM_FIELD_PREFIX):], value)
        elif field in CONTRACT_FIELDS:
            self.contract_data[field] = value
        else:
            raise ValidationError(f"Unknown contract field '{field}'", {field: "Unknown field"})

    def set_custom_field(self, name: str, value: str) -> None:
        self.custom_fields[name] = value

    def _contract_fields(self) -> ContractFields:
        start_date = self.contract_data["start_date"].strip()
        if not start_date:
            self.error = "Start date is required"
            raise ValidationError(self.error, {"start_date": self.error})
        try:
            return ContractFields(
                person_id=self.selected_person.id,
                start_date=start_date,
                end_date=self.contract_data["end_date"].strip() or None,
                description=self.contract_data["description"],
                status=ContractStatus.IN_PROGRESS,
                template_id=self.contract_data["template_id"] or None,
                custom_fields=dict(self.custom_fields),
            )
        except PydanticValidationError as e:
            errors = {str(err["loc"][0]): err["msg"] for err in e.errors()}
            self.error = "Please correct the highlighted fields"
            raise ValidationError(self.error, errors) from e

    def create_contract(self) -> Contract:
        self.error = None
        fields = self._contract_fields()
        try:
            self.created = self.contracts.create(fields)
        except CrmError as e:
            self.error = str(e) or "Failed to create contract"
            raise
        logger.info(f"Wizard created contract {self.created.id}")
        return self.created

    # Navigation

    def next(self) -> WizardOutcome:
        if self.step == WizardStep.SELECT_PERSON:
            if self.selected_person is None:
                raise ValidationError("Select a person first", {"person": "Select a person"})
        elif self.step == WizardStep.REVIEW_PERSON:
            if self.needs_profile_update():
                self.awaiting_confirmation = True
                return WizardOutcome.CONFIRM_UPDATE
        else:
            self.create_contract()
            return WizardOutcome.CREATED

        self.step = WizardStep(self.step + 1)
        return WizardOutcome.ADVANCED

    def back(self) -> WizardOutcome:
        self.awaiting_confirmation = False
        if self.step == WizardStep.SELECT_PERSON:
            return WizardOutcome.EXITED
        self.step = WizardStep(self.step - 1)
        return WizardOutcome.WENT_BACK
