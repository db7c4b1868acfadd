"""Document template store"""

import logging
from typing import Dict, List, Optional, Union

from pydantic import AnyUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ngo_crm.db.base import GatewayInterface
from ngo_crm.db.mapping import TEMPLATE_MAP, template_from_row
from ngo_crm.errors import CrmError, NotFoundError, ValidationError
from ngo_crm.models import DocumentTemplate, DocumentType, TemplateFields
from ngo_crm.services.store import RemoteStore

logger = logging.getLogger(__name__)

TABLE = "document_templates"

_url_adapter = TypeAdapter(AnyUrl)


def normalize_field_name(name: str) -> str:
    return name.strip().upper()


def add_custom_field(fields: List[str], name: str) -> List[str]:
    """Append an upper-cased field name unless it is blank or already present."""
    name = normalize_field_name(name)
    if not name or name in fields:
        return list(fields)
    return list(fields) + [name]


def remove_custom_field(fields: List[str], name: str) -> List[str]:
    name = normalize_field_name(name)
    return [f for f in fields if f != name]


def is_valid_url(url: str) -> bool:
    try:
        _url_adapter.validate_python(url)
    except PydanticValidationError:
        return False
    return True


def validate_template(fields: TemplateFields) -> Dict[str, str]:
    errors = {}
    if not fields.name.strip():
        errors["name"] = "Name is required"
    if not fields.url.strip():
        errors["url"] = "URL is required"
    elif not is_valid_url(fields.url.strip()):
        errors["url"] = "Please enter a valid URL"
    return errors


def filter_templates(
    templates: List[DocumentTemplate],
    search: str = "",
    document_type: Optional[DocumentType] = None,
    show_inactive: bool = False,
) -> List[DocumentTemplate]:
    search = search.strip().lower()
    return [
        t for t in templates
        if (not search or search in t.name.lower())
        and (document_type is None or t.type == document_type)
        and (show_inactive or t.is_active)
    ]


def _clean(fields: TemplateFields) -> TemplateFields:
    errors = validate_template(fields)
    if errors:
        raise ValidationError("Please correct the highlighted fields", errors)
    custom: List[str] = []
    for name in fields.custom_fields:
        custom = add_custom_field(custom, name)
    return fields.model_copy(update={
        "name": fields.name.strip(),
        "url": fields.url.strip(),
        "custom_fields": custom,
    })


class TemplateStore(RemoteStore):
    """Cache of the document_templates table"""

    def __init__(self, gateway: GatewayInterface):
        super().__init__(gateway)
        self.templates: List[DocumentTemplate] = []

    def fetch_all(self) -> List[DocumentTemplate]:
        try:
            with self._request("Failed to fetch templates"):
                rows = self.gateway.select(TABLE, order="created_at", descending=True)
                self.templates = [template_from_row(row) for row in rows]
        except CrmError:
            pass
        return self.templates

    def get_by_id(self, template_id: str) -> Optional[DocumentTemplate]:
        try:
            with self._request("Failed to get template"):
                row = self.gateway.select_one(TABLE, template_id)
        except CrmError:
            return None
        return template_from_row(row) if row else None

    def active_templates(self, document_type: Optional[DocumentType] = None) -> List[DocumentTemplate]:
        return filter_templates(self.templates, document_type=document_type)

    def create(self, fields: TemplateFields) -> DocumentTemplate:
        with self._request("Failed to create template"):
            fields = _clean(fields)
            row = self.gateway.insert(TABLE, TEMPLATE_MAP.to_wire(fields.model_dump(mode="json")))
            template = template_from_row(row)
        self.templates = [template] + self.templates
        logger.info(f"Created template {template.name}")
        return template

    def update(self, template_id: str, update: Union[TemplateFields, dict]) -> DocumentTemplate:
        """Replace a template with the submitted form."""
        if isinstance(update, dict):
            update = TemplateFields.model_validate(update)
        with self._request("Failed to update template"):
            values = _clean(update).model_dump(mode="json")
            row = self.gateway.update(TABLE, template_id, TEMPLATE_MAP.to_wire(values))
            if row is None:
                raise NotFoundError("Template not found")
            template = template_from_row(row)
        self.templates = [template if t.id == template_id else t for t in self.templates]
        logger.info(f"Updated template {template_id}")
        return template

    def toggle_status(self, template_id: str) -> DocumentTemplate:
        """Flip the active flag with a partial update."""
        current = next((t for t in self.templates if t.id == template_id), None)
        if current is None:
            current = self.get_by_id(template_id)
        if current is None:
            raise NotFoundError("Template not found")

        is_active = not current.is_active
        with self._request("Failed to update template status"):
            row = self.gateway.update(TABLE, template_id, {"is_active": is_active})
            if row is None:
                raise NotFoundError("Template not found")
        toggled = current.model_copy(update={"is_active": is_active})
        self.templates = [toggled if t.id == template_id else t for t in self.templates]
        logger.info(f"Template {template_id} is now {'active' if is_active else 'inactive'}")
        return toggled
