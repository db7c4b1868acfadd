"""Settings tabs: users, document templates, theme"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ngo_crm.api.deps import get_services, require_role, require_user
from ngo_crm.api.schemas import (
    BuiltInFieldsResponse,
    TemplateListResponse,
    ThemeRequest,
    ThemeResponse,
    UserListResponse,
)
from ngo_crm.models import BUILT_IN_FIELDS, DocumentTemplate, DocumentType, Role, TemplateFields, User
from ngo_crm.services.container import Services
from ngo_crm.services.templates import filter_templates
from ngo_crm.services.users import filter_users

router = APIRouter(prefix="/settings", dependencies=[Depends(require_user)])

TABS = ["users", "documents", "theme"]


@router.get("")
def settings_page(user: User = Depends(require_user)):
    return {"tabs": TABS, "role": user.role.value}


# Users

@router.get("/users", response_model=UserListResponse)
def list_users(
    search: str = "",
    role: Optional[Role] = None,
    services: Services = Depends(get_services),
    user: User = Depends(require_user),
):
    users = services.users.list_users(user)
    return UserListResponse(
        users=filter_users(users, search, role),
        can_view_all=user.role == Role.ADMIN,
    )


# Document templates

@router.get("/documents", response_model=TemplateListResponse)
def list_templates(
    search: str = "",
    type: Optional[DocumentType] = None,
    show_inactive: bool = Query(False, alias="showInactive"),
    services: Services = Depends(get_services),
):
    templates = filter_templates(services.templates.fetch_all(), search, type, show_inactive)
    return TemplateListResponse(templates=templates, total=len(templates))


@router.get("/documents/built-in-fields", response_model=BuiltInFieldsResponse)
def built_in_fields(type: DocumentType = DocumentType.CONTRACT):
    return BuiltInFieldsResponse(type=type, fields=BUILT_IN_FIELDS[type])


@router.get("/documents/{template_id}", response_model=DocumentTemplate)
def get_template(template_id: str, services: Services = Depends(get_services)):
    template = services.templates.get_by_id(template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Template not found")
    return template


@router.post(
    "/documents",
    response_model=DocumentTemplate,
    status_code=201,
    dependencies=[Depends(require_role(Role.ADMIN))],
)
def create_template(fields: TemplateFields, services: Services = Depends(get_services)):
    return services.templates.create(fields)


@router.put(
    "/documents/{template_id}",
    response_model=DocumentTemplate,
    dependencies=[Depends(require_role(Role.ADMIN))],
)
def update_template(template_id: str, fields: TemplateFields, services: Services = Depends(get_services)):
    return services.templates.update(template_id, fields)


@router.post(
    "/documents/{template_id}/toggle",
    response_model=DocumentTemplate,
    dependencies=[Depends(require_role(Role.ADMIN))],
)
def toggle_template(template_id: str, services: Services = Depends(get_services)):
    return services.templates.toggle_status(template_id)


# Theme

def _theme(services: Services, system_prefers_dark: bool) -> ThemeResponse:
    theme = services.theme
    return ThemeResponse(mode=theme.mode, is_dark=theme.is_dark(system_prefers_dark))


@router.get("/theme", response_model=ThemeResponse)
def get_theme(
    system_prefers_dark: bool = Query(False, alias="systemPrefersDark"),
    services: Services = Depends(get_services),
):
    return _theme(services, system_prefers_dark)


@router.put("/theme", response_model=ThemeResponse)
def set_theme(request: ThemeRequest, services: Services = Depends(get_services)):
    services.theme.set_mode(request.mode)
    return _theme(services, False)


@router.post("/theme/toggle", response_model=ThemeResponse)
def toggle_theme(services: Services = Depends(get_services)):
    services.theme.toggle_mode()
    return _theme(services, False)
