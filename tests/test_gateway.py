"""Tests for field mapping and the in-memory gateway"""

import pytest

from ngo_crm.db.mapping import (
    CONTRACT_COLUMNS,
    CONTRACT_MAP,
    PERSON_MAP,
    contract_from_row,
    person_from_row,
)
from ngo_crm.db.memory import MemoryGateway
from ngo_crm.errors import AuthError, RemoteError

from conftest import make_contractor


class TestFieldMap:

    def test_person_fields_use_table_column_names(self):
        row = PERSON_MAP.to_wire({"first_name": "Anna", "last_name": "Nowak", "national_id": "123"})
        assert row == {"firstname": "Anna", "lastname": "Nowak", "pesel": "123"}

    def test_unknown_keys_are_dropped(self):
        assert PERSON_MAP.to_wire({"first_name": "Anna", "nickname": "An"}) == {"firstname": "Anna"}

    def test_blank_dates_become_null(self):
        row = PERSON_MAP.to_wire({"birth_date": "", "volunteer_end_date": ""})
        assert row == {"birth_date": None, "volunteer_end_date": None}
        assert CONTRACT_MAP.to_wire({"end_date": ""}) == {"end_date": None}

    def test_from_wire_fills_empty_collections(self):
        values = PERSON_MAP.from_wire({"id": "1", "firstname": "Anna", "engagement": None, "donator_emails": None})
        assert values["first_name"] == "Anna"
        assert values["engagement"] == []
        assert values["donator_emails"] == []
        assert CONTRACT_MAP.from_wire({"custom_fields": None}) == {"custom_fields": {}}

    def test_person_survives_wire_round_trip(self):
        fields = make_contractor()
        row = PERSON_MAP.to_wire(fields.model_dump(mode="json"))
        person = person_from_row(dict(row, id="p1"))
        assert person.model_dump(exclude={"id", "created_at", "updated_at"}) == fields.model_dump()

    def test_camel_case_for_clients(self):
        person = person_from_row({"id": "p1", "firstname": "Anna", "pesel": "1"})
        dumped = person.model_dump(by_alias=True)
        assert dumped["firstName"] == "Anna"
        assert dumped["nationalId"] == "1"
        assert "first_name" not in dumped


class TestMemoryTables:

    def test_insert_assigns_id_and_timestamps(self):
        gateway = MemoryGateway()
        row = gateway.insert("persons", {"firstname": "Anna"})
        assert row["id"]
        assert row["created_at"] == row["updated_at"]

    def test_select_orders_newest_first(self):
        gateway = MemoryGateway()
        first = gateway.insert("persons", {"firstname": "A"})
        second = gateway.insert("persons", {"firstname": "B"})
        rows = gateway.select("persons", order="created_at", descending=True)
        assert [r["id"] for r in rows] == [second["id"], first["id"]]

    def test_contract_join_embeds_person(self):
        gateway = MemoryGateway()
        person = gateway.insert("persons", {"firstname": "Anna", "lastname": "Nowak", "email": "a@b.co"})
        gateway.insert("contracts", {"person_id": person["id"], "start_date": "2024-01-01", "status": "in_progress"})

        row = gateway.select("contracts", CONTRACT_COLUMNS)[0]
        assert row["person"]["firstname"] == "Anna"
        contract = contract_from_row(row)
        assert contract.person.full_name == "Anna Nowak"

    def test_update_missing_row_returns_none(self):
        assert MemoryGateway().update("persons", "nope", {"firstname": "X"}) is None

    def test_maybe_single(self):
        gateway = MemoryGateway()
        gateway.insert("user_roles", {"user_id": "u1", "role_id": "admin"})
        assert gateway.maybe_single("user_roles", "user_id", "u1", "role_id") == {"role_id": "admin"}
        assert gateway.maybe_single("user_roles", "user_id", "u2") is None

    def test_unknown_table_is_a_remote_error(self):
        with pytest.raises(RemoteError):
            MemoryGateway().select("donations")


class TestMemoryAuth:

    def test_sign_in_and_events(self):
        gateway = MemoryGateway()
        gateway.add_user("a@b.co", "pw1234")
        events = []
        subscription = gateway.on_auth_state_change(lambda event, session: events.append(event))

        gateway.sign_in("a@b.co", "pw1234")
        gateway.sign_out()
        subscription.unsubscribe()
        gateway.sign_in("a@b.co", "pw1234")

        assert events == ["SIGNED_IN", "SIGNED_OUT"]
        assert gateway.listener_count == 0

    def test_wrong_password(self):
        gateway = MemoryGateway()
        gateway.add_user("a@b.co", "pw1234")
        with pytest.raises(AuthError, match="Invalid login credentials"):
            gateway.sign_in("a@b.co", "wrong")
