"""Contract routes: list, wizard, edit, lifecycle"""

import logging
from datetime import date
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse, RedirectResponse

from ngo_crm.api.deps import get_services, require_user
from ngo_crm.api.schemas import (
    ContractCreateRequest,
    ContractCreateResponse,
    ContractListResponse,
    ContractUpdateRequest,
    ContractView,
    StatusRequest,
    WizardPageResponse,
)
from ngo_crm.models import Contract, ContractFilter, ContractStatus, DocumentType, Person, User
from ngo_crm.services.container import Services
from ngo_crm.services.contracts import is_active, pdf_url
from ngo_crm.services.wizard import WizardOutcome, WizardStep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contracts", dependencies=[Depends(require_user)])

NOT_FOUND_NOTICE = "Contract not found"


def _view(contract: Contract, today: Optional[date] = None) -> ContractView:
    return ContractView(
        **contract.model_dump(),
        status_label=contract.status.label,
        is_active=is_active(contract, today),
        pdf_url=pdf_url(contract.source_document_url),
    )


def _list_redirect(notice: str) -> RedirectResponse:
    return RedirectResponse(url=f"/contracts?notice={quote(notice)}", status_code=303)


@router.get("", response_model=ContractListResponse)
def list_contracts(
    view: ContractFilter = ContractFilter.ALL,
    status: Optional[ContractStatus] = None,
    search: str = "",
    notice: Optional[str] = None,
    services: Services = Depends(get_services),
):
    store = services.contracts
    store.fetch_all()
    if store.error:
        raise HTTPException(status_code=502, detail=store.error)
    today = date.today()
    contracts = store.visible_contracts(view, status, search, today)
    return ContractListResponse(
        contracts=[_view(c, today) for c in contracts],
        total=len(contracts),
        notice=notice,
    )


@router.get("/new", response_model=WizardPageResponse)
def wizard_page(services: Services = Depends(get_services)):
    """Start the wizard: the active contract templates to choose from."""
    templates = services.templates
    templates.fetch_all()
    return WizardPageResponse(
        step=WizardStep.SELECT_PERSON,
        templates=templates.active_templates(DocumentType.CONTRACT),
        search_limit=services.settings.person_search_limit,
    )


@router.get("/new/persons", response_model=List[Person])
def search_persons(q: str = "", services: Services = Depends(get_services)):
    """Search-as-you-type for the wizard's first step."""
    wizard = services.new_wizard().start()
    return wizard.search(q)


@router.post("/new", response_model=ContractCreateResponse, status_code=201)
def create_contract(request: ContractCreateRequest, services: Services = Depends(get_services)):
    """Run the contract wizard in one request.

    Answers 409 when the reviewed person fields differ from the stored
    person (or the person is not a contractor yet) and ``updateProfile``
    was not given.
    """
    wizard = services.new_wizard()
    wizard.select_person_by_id(request.person_id)
    wizard.next()

    for field, value in request.person.model_dump(exclude_unset=True).items():
        wizard.set_detail(field, value or "")
    if wizard.next() == WizardOutcome.CONFIRM_UPDATE:
        if request.update_profile is None:
            return JSONResponse(
                status_code=409,
                content={
                    "detail": "Person details changed. Update the profile or skip?",
                    "hasChanges": wizard.has_changes(),
                },
            )
        if request.update_profile:
            wizard.confirm_update()
        else:
            wizard.skip_update()

    details = request.contract
    for field in ("template_id", "start_date", "end_date", "description"):
        wizard.set_contract_field(field, getattr(details, field) or "")
    for name, value in details.custom_fields.items():
        wizard.set_custom_field(name, value)
    wizard.next()
    return ContractCreateResponse(contract=wizard.created)


@router.get("/{contract_id}", response_model=ContractView)
def get_contract(contract_id: str, services: Services = Depends(get_services)):
    contract = services.contracts.get_by_id(contract_id)
    if contract is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND_NOTICE)
    return _view(contract)


@router.get("/{contract_id}/edit", response_model=ContractView)
def edit_contract_page(contract_id: str, services: Services = Depends(get_services)):
    contract = services.contracts.get_by_id(contract_id)
    if contract is None:
        return _list_redirect(NOT_FOUND_NOTICE)
    services.contracts.select(contract)
    return _view(contract)


@router.put("/{contract_id}/edit", response_model=ContractView)
def edit_contract(
    contract_id: str,
    request: ContractUpdateRequest,
    services: Services = Depends(get_services),
):
    if services.contracts.get_by_id(contract_id) is None:
        return _list_redirect(NOT_FOUND_NOTICE)
    update = request.model_dump(exclude_unset=True)
    contract = services.contracts.update(contract_id, update)
    return _view(contract)


@router.post("/{contract_id}/send", response_model=ContractView)
def send_contract(
    contract_id: str,
    services: Services = Depends(get_services),
    user: User = Depends(require_user),
):
    """Generate the source document and wait for signature."""
    return _view(services.contracts.send(contract_id, user.email))


@router.post("/{contract_id}/status", response_model=ContractView)
def set_status(contract_id: str, request: StatusRequest, services: Services = Depends(get_services)):
    return _view(services.contracts.update(contract_id, {"status": request.status.value}))


@router.post("/{contract_id}/advance", response_model=ContractView)
def advance_contract(contract_id: str, services: Services = Depends(get_services)):
    return _view(services.contracts.advance(contract_id))


@router.delete("/{contract_id}", status_code=204)
def delete_contract(contract_id: str, services: Services = Depends(get_services)):
    services.contracts.delete(contract_id)
