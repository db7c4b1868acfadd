"""Source document generation through the hosted function"""

import logging
from typing import List, NamedTuple

from ngo_crm.db.base import GatewayInterface
from ngo_crm.errors import RemoteError
from ngo_crm.models import Contract, Person

logger = logging.getLogger(__name__)

ACTION = "generateSourceDocument"


class GeneratedFile(NamedTuple):
    name: str
    url: str


class GeneratedDocument(NamedTuple):
    source_document_url: str
    files: List[GeneratedFile]


class DocumentGenerator:
    """Invokes the document function with a person and a contract"""

    def __init__(self, gateway: GatewayInterface, function_name: str = "generate-document"):
        self.gateway = gateway
        self.function_name = function_name

    @staticmethod
    def build_payload(person: Person, contract: Contract, user_email: str) -> dict:
        return {
            "action": ACTION,
            "userEmail": user_email,
            "ctx": {
                "person": person.model_dump(mode="json", by_alias=True),
                "contract": contract.model_dump(mode="json", by_alias=True, exclude={"person"}),
            },
        }

    def generate(self, person: Person, contract: Contract, user_email: str) -> GeneratedDocument:
        logger.info(f"Generating document for contract {contract.id}")
        result = self.gateway.invoke(self.function_name, self.build_payload(person, contract, user_email))
        if not isinstance(result, dict):
            raise RemoteError("Unexpected response from document generation")
        if result.get("error"):
            raise RemoteError(str(result["error"]))
        if not result.get("sourceDocumentUrl"):
            raise RemoteError("Document generation returned no document")

        files = [
            GeneratedFile(name=f.get("name", ""), url=f.get("url", ""))
            for f in result.get("files") or []
        ]
        return GeneratedDocument(source_document_url=result["sourceDocumentUrl"], files=files)
