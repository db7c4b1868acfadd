"""Service objects, built once per process and passed to the API and the CLI"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from ngo_crm.db import get_gateway
from ngo_crm.db.base import GatewayInterface
from ngo_crm.services.auth import AuthService
from ngo_crm.services.contracts import ContractStore
from ngo_crm.services.documents import DocumentGenerator
from ngo_crm.services.guard import AuthGuard
from ngo_crm.services.persons import PersonStore
from ngo_crm.services.templates import TemplateStore
from ngo_crm.services.theme import ThemeStore
from ngo_crm.services.users import UserDirectory
from ngo_crm.services.wizard import ContractWizard
from ngo_crm.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    gateway: GatewayInterface
    auth: AuthService
    guard: AuthGuard
    persons: PersonStore
    contracts: ContractStore
    templates: TemplateStore
    users: UserDirectory
    theme: ThemeStore = field(default_factory=ThemeStore)

    def new_wizard(self) -> ContractWizard:
        return ContractWizard(
            self.persons,
            self.contracts,
            search_limit=self.settings.person_search_limit,
        )


def build_services(
    settings: Optional[Settings] = None,
    gateway: Optional[GatewayInterface] = None,
) -> Services:
    settings = settings or get_settings()
    gateway = gateway or get_gateway(settings=settings)
    auth = AuthService(gateway, settings)
    logger.debug(f"Building services (DB_MODE={settings.db_mode})")
    return Services(
        settings=settings,
        gateway=gateway,
        auth=auth,
        guard=AuthGuard(auth),
        persons=PersonStore(gateway, settings.documents_bucket),
        contracts=ContractStore(
            gateway,
            DocumentGenerator(gateway, settings.document_function),
        ),
        templates=TemplateStore(gateway),
        users=UserDirectory(gateway),
    )
