"""Person store"""

import logging
import mimetypes
import uuid
from datetime import date
from enum import Enum
from typing import List, Optional, Union

from ngo_crm.db.base import GatewayInterface
from ngo_crm.db.mapping import PERSON_MAP, person_from_row
from ngo_crm.errors import CrmError, NotFoundError, ValidationError
from ngo_crm.models import (
    Engagement,
    Person,
    PersonFields,
    PersonFilter,
    SortDirection,
    SortState,
)
from ngo_crm.services.completeness import evaluate_completeness
from ngo_crm.services.store import RemoteStore

logger = logging.getLogger(__name__)

TABLE = "persons"


class PersonFile(str, Enum):
    """Documents that can be attached to a person"""
    TAX_DECLARATION = "tax_declaration_file"
    VOLUNTEER_CONTRACT = "volunteer_contract_file"


def _search_matches(person: Person, query: str) -> bool:
    haystack = (person.first_name, person.last_name, person.email, person.phone)
    return any(query in (value or "").lower() for value in haystack)


def filter_persons(
    persons: List[Person],
    query: str = "",
    person_filter: PersonFilter = PersonFilter.ALL,
) -> List[Person]:
    """Search (name, e-mail, phone) and filter by completeness or engagement."""
    query = query.strip().lower()
    if query:
        persons = [p for p in persons if _search_matches(p, query)]

    if person_filter == PersonFilter.INCOMPLETE:
        persons = [p for p in persons if p.completeness_problems]
    elif person_filter != PersonFilter.ALL:
        engagement = Engagement(person_filter.value)
        persons = [p for p in persons if engagement in p.engagement]
    return persons


def sort_persons(persons: List[Person], sort_state: SortState) -> List[Person]:
    """Sort by any person field; text compares case-insensitively."""
    field = sort_state.field
    if field not in Person.model_fields:
        raise ValidationError(f"Cannot sort by '{field}'", {"sort": "Unknown field"})

    def key(person: Person):
        value = getattr(person, field)
        if isinstance(value, str):
            return value.lower()
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, list):
            return len(value)
        return value

    # Blank cells stay at the bottom whichever way the column is sorted
    present = [p for p in persons if getattr(p, field) not in (None, "")]
    blank = [p for p in persons if getattr(p, field) in (None, "")]
    return sorted(present, key=key, reverse=sort_state.direction == SortDirection.DESC) + blank


class PersonStore(RemoteStore):
    """Cache of the persons table plus list view state"""

    def __init__(self, gateway: GatewayInterface, documents_bucket: str = "person-documents"):
        super().__init__(gateway)
        self.documents_bucket = documents_bucket
        self.persons: List[Person] = []
        self.selected_person: Optional[Person] = None
        self.search_query = ""
        self.sort_state = SortState()

    def fetch_all(self) -> List[Person]:
        """Load every person, newest first. Keeps the old list on failure."""
        try:
            with self._request("Failed to fetch persons"):
                rows = self.gateway.select(TABLE, order="created_at", descending=True)
                self.persons = [person_from_row(row) for row in rows]
        except CrmError:
            pass
        return self.persons

    def get_by_id(self, person_id: str) -> Optional[Person]:
        try:
            with self._request("Failed to get person"):
                row = self.gateway.select_one(TABLE, person_id)
        except CrmError:
            return None
        return person_from_row(row) if row else None

    def create(self, fields: PersonFields) -> Person:
        with self._request("Failed to create person"):
            row = self.gateway.insert(TABLE, PERSON_MAP.to_wire(fields.model_dump(mode="json")))
            person = person_from_row(row)
        self.persons = [person] + self.persons
        logger.info(f"Created person {person.id}")
        return person

    def update(self, person_id: str, update: Union[PersonFields, dict]) -> Person:
        """Write the given fields. A model writes only the fields that were set."""
        if isinstance(update, PersonFields):
            values = update.model_dump(mode="json", exclude_unset=True)
        else:
            values = PersonFields.model_validate(update).model_dump(
                mode="json", include=set(update)
            )
        with self._request("Failed to update person"):
            row = self.gateway.update(TABLE, person_id, PERSON_MAP.to_wire(values))
            if row is None:
                raise NotFoundError("Person not found")
            person = person_from_row(row)

        self.persons = [person if p.id == person_id else p for p in self.persons]
        if self.selected_person is not None and self.selected_person.id == person_id:
            self.selected_person = person
        logger.info(f"Updated person {person_id}")
        return person

    def delete(self, person_id: str) -> None:
        with self._request("Failed to delete person"):
            self.gateway.delete(TABLE, person_id)
        self.persons = [p for p in self.persons if p.id != person_id]
        if self.selected_person is not None and self.selected_person.id == person_id:
            self.selected_person = None
        logger.info(f"Deleted person {person_id}")

    def attach_file(self, kind: PersonFile, filename: str, content: bytes) -> str:
        """Upload a person document; returns the storage path to record on the person."""
        content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        path = f"{kind.value}/{uuid.uuid4().hex}/{filename}"
        with self._request("Failed to upload file"):
            return self.gateway.upload(self.documents_bucket, path, content, content_type)

    def add_document(self, person: Person, kind: PersonFile, filename: str, content: bytes) -> Person:
        """Upload a document, record it on the person and refresh completeness."""
        path = self.attach_file(kind, filename, content)
        update = {kind.value: path}
        update["completeness_problems"] = evaluate_completeness(
            {**person.model_dump(), **update}
        ).problems
        return self.update(person.id, update)

    # List view state

    def select(self, person: Optional[Person]) -> None:
        self.selected_person = person

    def set_search_query(self, query: str) -> None:
        self.search_query = query

    def set_sort_state(self, sort_state: SortState) -> None:
        self.sort_state = sort_state

    def toggle_sort(self, field: str) -> SortState:
        """Clicking a column header: same column flips direction, new column sorts ascending."""
        if self.sort_state.field == field and self.sort_state.direction == SortDirection.ASC:
            direction = SortDirection.DESC
        else:
            direction = SortDirection.ASC
        self.sort_state = SortState(field=field, direction=direction)
        return self.sort_state

    def visible_persons(self, person_filter: PersonFilter = PersonFilter.ALL) -> List[Person]:
        filtered = filter_persons(self.persons, self.search_query, person_filter)
        return sort_persons(filtered, self.sort_state)
