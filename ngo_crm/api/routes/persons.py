"""Person routes"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ngo_crm.api.deps import get_services, require_user
from ngo_crm.api.schemas import CompletenessResponse, PersonListResponse
from ngo_crm.models import Person, PersonFields, PersonFilter, SortDirection, SortState, User
from ngo_crm.services.completeness import evaluate_completeness
from ngo_crm.services.container import Services
from ngo_crm.services.person_form import PersonForm
from ngo_crm.services.persons import PersonFile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/persons", dependencies=[Depends(require_user)])


def _get_person(services: Services, person_id: str) -> Person:
    person = services.persons.get_by_id(person_id)
    if person is None:
        raise HTTPException(status_code=404, detail="Person not found")
    return person


@router.get("", response_model=PersonListResponse)
def list_persons(
    search: str = "",
    filter: PersonFilter = PersonFilter.ALL,
    sort: Optional[str] = None,
    direction: Optional[SortDirection] = None,
    services: Services = Depends(get_services),
):
    store = services.persons
    store.fetch_all()
    if store.error:
        raise HTTPException(status_code=502, detail=store.error)
    store.set_search_query(search)
    if sort is not None:
        store.set_sort_state(SortState(field=sort, direction=direction or SortDirection.ASC))
    persons = store.visible_persons(filter)
    return PersonListResponse(persons=persons, total=len(persons))


@router.post("/completeness", response_model=CompletenessResponse)
def check_completeness(draft: PersonFields):
    """Live completeness of a person form that has not been saved."""
    status = evaluate_completeness(draft)
    return CompletenessResponse(is_complete=status.is_complete, problems=status.problems)


@router.get("/{person_id}", response_model=Person)
def get_person(person_id: str, services: Services = Depends(get_services)):
    person = _get_person(services, person_id)
    services.persons.select(person)
    return person


@router.post("", response_model=Person, status_code=201)
def create_person(draft: PersonFields, services: Services = Depends(get_services)):
    form = PersonForm.from_data(draft.model_dump(exclude_unset=True))
    return services.persons.create(form.submit())


@router.put("/{person_id}", response_model=Person)
def update_person(person_id: str, draft: PersonFields, services: Services = Depends(get_services)):
    current = _get_person(services, person_id)
    form = PersonForm.from_data(draft.model_dump(exclude_unset=True), initial=current)
    return services.persons.update(person_id, form.submit())


@router.delete("/{person_id}", status_code=204)
def delete_person(person_id: str, services: Services = Depends(get_services)):
    services.persons.delete(person_id)


@router.put("/{person_id}/files/{kind}", response_model=Person)
async def upload_person_file(
    person_id: str,
    kind: PersonFile,
    request: Request,
    filename: str = Query(..., min_length=1),
    services: Services = Depends(get_services),
    user: User = Depends(require_user),
):
    """Attach a tax declaration or signed volunteer contract (raw request body)."""
    content = await request.body()
    if not content:
        raise HTTPException(status_code=400, detail="Empty file")
    current = _get_person(services, person_id)
    person = services.persons.add_document(current, kind, filename, content)
    logger.info(f"{user.email} attached {kind.value} to person {person_id}")
    return person
