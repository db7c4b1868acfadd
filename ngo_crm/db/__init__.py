"""Gateway to the hosted backend"""

from ngo_crm.db.base import AuthSession, AuthUser, GatewayInterface, Subscription
from ngo_crm.db.mapping import (
    CONTRACT_COLUMNS,
    CONTRACT_MAP,
    PERSON_MAP,
    TEMPLATE_MAP,
    FieldMap,
)
from ngo_crm.utils.config import Settings, get_settings


def get_gateway(mode: str = None, settings: Settings = None) -> GatewayInterface:
    """Factory: returns the gateway for DB_MODE ('supabase' or 'memory')."""
    settings = settings or get_settings()
    if mode is None:
        mode = settings.db_mode

    if mode == "memory":
        from functools import partial

        from ngo_crm.db.memory import MemoryGateway
        from ngo_crm.functions.generate_document import handle_generate_document

        return MemoryGateway(functions={
            settings.document_function: partial(
                handle_generate_document,
                delay=settings.document_generation_delay,
            ),
        })

    from ngo_crm.db.supabase import SupabaseGateway

    return SupabaseGateway(settings)


__all__ = [
    "AuthSession",
    "AuthUser",
    "GatewayInterface",
    "Subscription",
    "CONTRACT_COLUMNS",
    "CONTRACT_MAP",
    "PERSON_MAP",
    "TEMPLATE_MAP",
    "FieldMap",
    "get_gateway",
]
