"""Contract store"""

import logging
import re
from datetime import date
from typing import List, Optional, Union

from ngo_crm.db.base import GatewayInterface
from ngo_crm.db.mapping import CONTRACT_COLUMNS, CONTRACT_MAP, contract_from_row, person_from_row
from ngo_crm.errors import CrmError, NotFoundError, ValidationError
from ngo_crm.models import Contract, ContractFields, ContractFilter, ContractStatus
from ngo_crm.services.documents import DocumentGenerator, GeneratedDocument
from ngo_crm.services.store import RemoteStore

logger = logging.getLogger(__name__)

TABLE = "contracts"

# Allowed status moves: one step forward at a time
STATUS_FLOW = [
    ContractStatus.IN_PROGRESS,
    ContractStatus.WAITING_FOR_SIGNATURE,
    ContractStatus.SIGNED,
]


def can_transition(current: ContractStatus, target: ContractStatus) -> bool:
    if current == target:
        return True
    return STATUS_FLOW.index(target) == STATUS_FLOW.index(current) + 1


def next_status(current: ContractStatus) -> Optional[ContractStatus]:
    index = STATUS_FLOW.index(current)
    return STATUS_FLOW[index + 1] if index + 1 < len(STATUS_FLOW) else None


def is_active(contract: Contract, today: Optional[date] = None) -> bool:
    """Open-ended contracts and those ending today or later are active."""
    if contract.end_date is None:
        return True
    return contract.end_date >= (today or date.today())


def _search_matches(contract: Contract, query: str) -> bool:
    haystack = [contract.description]
    if contract.person is not None:
        haystack += [contract.person.first_name, contract.person.last_name, contract.person.email]
    return any(query in (value or "").lower() for value in haystack)


def filter_contracts(
    contracts: List[Contract],
    contract_filter: ContractFilter = ContractFilter.ALL,
    status: Optional[ContractStatus] = None,
    query: str = "",
    today: Optional[date] = None,
) -> List[Contract]:
    today = today or date.today()
    if contract_filter == ContractFilter.ACTIVE:
        contracts = [c for c in contracts if is_active(c, today)]
    elif contract_filter == ContractFilter.ARCHIVE:
        contracts = [c for c in contracts if not is_active(c, today)]

    if status is not None:
        contracts = [c for c in contracts if c.status == status]

    query = query.strip().lower()
    if query:
        contracts = [c for c in contracts if _search_matches(c, query)]
    return contracts


def pdf_url(source_document_url: Optional[str]) -> Optional[str]:
    """PDF export link for an editable document link."""
    if not source_document_url:
        return None
    return re.sub(r"/edit.*$", "/export?format=pdf", source_document_url)


class ContractStore(RemoteStore):
    """Cache of the contracts table, each contract joined with its person"""

    def __init__(self, gateway: GatewayInterface, documents: Optional[DocumentGenerator] = None):
        super().__init__(gateway)
        self.documents = documents or DocumentGenerator(gateway)
        self.contracts: List[Contract] = []
        self.selected_contract: Optional[Contract] = None

    def fetch_all(self) -> List[Contract]:
        try:
            with self._request("Failed to fetch contracts"):
                rows = self.gateway.select(
                    TABLE, CONTRACT_COLUMNS, order="created_at", descending=True
                )
                self.contracts = [contract_from_row(row) for row in rows]
        except CrmError:
            pass
        return self.contracts

    def get_by_id(self, contract_id: str) -> Optional[Contract]:
        try:
            with self._request("Failed to get contract"):
                row = self.gateway.select_one(TABLE, contract_id, CONTRACT_COLUMNS)
        except CrmError:
            return None
        return contract_from_row(row) if row else None

    def create(self, fields: ContractFields) -> Contract:
        with self._request("Failed to create contract"):
            if fields.start_date is None:
                raise ValidationError("Start date is required", {"start_date": "Start date is required"})
            row = self.gateway.insert(
                TABLE,
                CONTRACT_MAP.to_wire(fields.model_dump(mode="json")),
                CONTRACT_COLUMNS,
            )
            contract = contract_from_row(row)
        self.contracts = [contract] + self.contracts
        logger.info(f"Created contract {contract.id} for person {contract.person_id}")
        return contract

    def update(self, contract_id: str, update: Union[ContractFields, dict]) -> Contract:
        if isinstance(update, ContractFields):
            values = update.model_dump(mode="json", exclude_unset=True)
        else:
            values = ContractFields.model_validate({"person_id": "", **update}).model_dump(
                mode="json", include=set(update)
            )

        with self._request("Failed to update contract"):
            if "status" in values:
                self._check_transition(contract_id, ContractStatus(values["status"]))
            if "start_date" in values and not values["start_date"]:
                raise ValidationError("Start date is required", {"start_date": "Start date is required"})
            row = self.gateway.update(TABLE, contract_id, CONTRACT_MAP.to_wire(values), CONTRACT_COLUMNS)
            if row is None:
                raise NotFoundError("Contract not found")
            contract = contract_from_row(row)

        self.contracts = [contract if c.id == contract_id else c for c in self.contracts]
        if self.selected_contract is not None and self.selected_contract.id == contract_id:
            self.selected_contract = contract
        logger.info(f"Updated contract {contract_id}")
        return contract

    def _check_transition(self, contract_id: str, target: ContractStatus) -> None:
        current = self._cached(contract_id)
        if current is None:
            row = self.gateway.select_one(TABLE, contract_id)
            if row is None:
                raise NotFoundError("Contract not found")
            current = contract_from_row(row)
        if not can_transition(current.status, target):
            raise ValidationError(
                f"Cannot move contract from {current.status.label} to {target.label}",
                {"status": "Invalid status change"},
            )

    def _cached(self, contract_id: str) -> Optional[Contract]:
        return next((c for c in self.contracts if c.id == contract_id), None)

    def advance(self, contract_id: str) -> Contract:
        """Move a contract one step along its lifecycle."""
        current = self._cached(contract_id) or self.get_by_id(contract_id)
        if current is None:
            raise NotFoundError("Contract not found")
        target = next_status(current.status)
        if target is None:
            raise ValidationError("Contract is already signed", {"status": "Already signed"})
        return self.update(contract_id, {"status": target.value})

    def delete(self, contract_id: str) -> None:
        with self._request("Failed to delete contract"):
            self.gateway.delete(TABLE, contract_id)
        self.contracts = [c for c in self.contracts if c.id != contract_id]
        if self.selected_contract is not None and self.selected_contract.id == contract_id:
            self.selected_contract = None
        logger.info(f"Deleted contract {contract_id}")

    def select(self, contract: Optional[Contract]) -> None:
        self.selected_contract = contract

    def visible_contracts(
        self,
        contract_filter: ContractFilter = ContractFilter.ALL,
        status: Optional[ContractStatus] = None,
        query: str = "",
        today: Optional[date] = None,
    ) -> List[Contract]:
        return filter_contracts(self.contracts, contract_filter, status, query, today)

    def send(self, contract_id: str, user_email: str) -> Contract:
        """Generate the source document and mark the contract as waiting for signature."""
        contract = self._cached(contract_id) or self.get_by_id(contract_id)
        if contract is None:
            raise NotFoundError("Contract not found")
        if contract.status != ContractStatus.IN_PROGRESS:
            raise ValidationError(
                f"Only contracts in progress can be sent (status: {contract.status.label})",
                {"status": "Already sent"},
            )

        with self._request("Failed to generate document"):
            row = self.gateway.select_one("persons", contract.person_id)
            if row is None:
                raise NotFoundError("Person not found")
            document: GeneratedDocument = self.documents.generate(
                person_from_row(row), contract, user_email
            )

        return self.update(contract_id, {
            "source_document_url": document.source_document_url,
            "status": ContractStatus.WAITING_FOR_SIGNATURE.value,
        })
