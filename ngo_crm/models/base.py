"""Shared model configuration"""

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase when serialized for clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def blank_to_none(value: Any) -> Any:
    """Form inputs send '' for an untouched optional field."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def text(value: Any) -> str:
    """Render a field value the way a form input shows it."""
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    return str(value)
