"""Tests for document generation"""

import pytest

from ngo_crm.db.memory import MemoryGateway
from ngo_crm.errors import RemoteError
from ngo_crm.functions.generate_document import PLACEHOLDER_URL, handle_generate_document
from ngo_crm.models import Contract, Person
from ngo_crm.services.documents import DocumentGenerator

PERSON = Person(id="p1", first_name="Anna", last_name="Nowak", email="anna@example.org")
CONTRACT = Contract(id="c1", person_id="p1", start_date="2024-01-01")


class TestFunctionStub:

    def test_returns_placeholder_document(self):
        body, status = handle_generate_document(
            DocumentGenerator.build_payload(PERSON, CONTRACT, "op@example.org"), delay=0
        )
        assert status == 200
        assert body["sourceDocumentUrl"] == PLACEHOLDER_URL
        assert body["files"] == [{"name": "Contract.pdf", "url": PLACEHOLDER_URL}]

    def test_rejects_unknown_action(self):
        assert handle_generate_document({"action": "sendEmail"}, delay=0) == ({"error": "Invalid action"}, 400)

    def test_rejects_missing_context(self):
        body, status = handle_generate_document({"action": "generateSourceDocument", "ctx": {}}, delay=0)
        assert status == 400
        assert "error" in body


class TestDocumentGenerator:

    def test_payload_is_camel_case(self):
        payload = DocumentGenerator.build_payload(PERSON, CONTRACT, "op@example.org")
        assert payload["action"] == "generateSourceDocument"
        assert payload["userEmail"] == "op@example.org"
        assert payload["ctx"]["person"]["firstName"] == "Anna"
        assert payload["ctx"]["contract"]["startDate"] == "2024-01-01"
        assert "person" not in payload["ctx"]["contract"]

    def test_generate(self):
        gateway = MemoryGateway(functions={"generate-document": lambda body: handle_generate_document(body, 0)})
        document = DocumentGenerator(gateway).generate(PERSON, CONTRACT, "op@example.org")
        assert document.source_document_url == PLACEHOLDER_URL
        assert document.files[0].name == "Contract.pdf"

    def test_error_object_raises(self):
        gateway = MemoryGateway(functions={"generate-document": lambda body: ({"error": "Template missing"}, 200)})
        with pytest.raises(RemoteError, match="Template missing"):
            DocumentGenerator(gateway).generate(PERSON, CONTRACT, "op@example.org")

    def test_failed_invocation_raises(self):
        gateway = MemoryGateway(functions={"generate-document": lambda body: ({"error": "boom"}, 500)})
        with pytest.raises(RemoteError, match="boom"):
            DocumentGenerator(gateway).generate(PERSON, CONTRACT, "op@example.org")
