"""Tests for the person store and person form"""

import pytest

from ngo_crm.errors import NotFoundError, RemoteError, ValidationError
from ngo_crm.models import Engagement, PersonFilter, SortDirection, SortState
from ngo_crm.services.person_form import PersonForm
from ngo_crm.services.persons import PersonFile

from conftest import make_contractor, make_person


@pytest.fixture
def store(services):
    return services.persons


class TestPersonStore:

    def test_starts_empty_until_fetched(self, store):
        store.create(make_person())
        store.persons = []
        assert store.fetch_all()[0].first_name == "John"

    def test_create_then_fetch_by_id(self, store):
        created = store.create(make_contractor())
        fetched = store.get_by_id(created.id)
        assert fetched == created
        assert fetched.national_id == "90051712345"

    def test_created_person_is_listed_first(self, store):
        store.create(make_person(first_name="Older"))
        newest = store.create(make_person(first_name="Newer"))
        assert store.persons[0].id == newest.id
        assert [p.first_name for p in store.fetch_all()] == ["Newer", "Older"]

    def test_update_replaces_cached_and_selected(self, store):
        person = store.create(make_person())
        store.select(person)
        updated = store.update(person.id, {"phone": "999"})
        assert updated.phone == "999"
        assert updated.first_name == "John"
        assert store.selected_person.phone == "999"
        assert store.persons[0].phone == "999"

    def test_update_missing_person(self, store):
        with pytest.raises(NotFoundError):
            store.update("missing", {"phone": "1"})
        assert store.error == "Person not found"
        assert store.is_loading is False

    def test_delete(self, store):
        person = store.create(make_person())
        store.select(person)
        store.delete(person.id)
        assert store.persons == []
        assert store.selected_person is None
        assert store.get_by_id(person.id) is None

    def test_remote_failure_sets_error_and_keeps_list(self, store, gateway, monkeypatch):
        store.create(make_person())

        def broken(*args, **kwargs):
            raise RemoteError("connection refused")

        monkeypatch.setattr(gateway, "select", broken)
        assert len(store.fetch_all()) == 1
        assert store.error == "connection refused"
        assert store.is_loading is False

    def test_add_document_records_path_and_completeness(self, store, gateway):
        person = store.create(make_contractor(tax_declaration_file=None))
        updated = store.add_document(person, PersonFile.TAX_DECLARATION, "pit.pdf", b"%PDF")
        assert updated.tax_declaration_file.endswith("/pit.pdf")
        assert updated.tax_declaration_file.startswith("tax_declaration_file/")
        assert updated.is_complete
        assert ("person-documents", updated.tax_declaration_file) in gateway.files


class TestListView:

    @pytest.fixture
    def people(self, store):
        store.create(make_person(first_name="john", last_name="Doe", email="jd@example.org"))
        store.create(make_contractor(first_name="Anna", last_name="Zielinska", email="anna@example.org"))
        store.create(make_person(first_name="Bob", last_name="Smith", email="bob@example.org", phone="",
                                 engagement=[Engagement.DONATOR]))
        return store

    def test_search_is_case_insensitive(self, people):
        people.set_search_query("ZIEL")
        assert [p.first_name for p in people.visible_persons()] == ["Anna"]

    def test_search_matches_phone(self, people):
        people.set_search_query("600 100")
        assert {p.first_name for p in people.visible_persons()} == {"john", "Anna"}

    def test_filters(self, people):
        assert [p.first_name for p in people.visible_persons(PersonFilter.DONATOR)] == ["Bob"]
        assert [p.first_name for p in people.visible_persons(PersonFilter.CONTRACTOR)] == ["Anna"]
        assert people.visible_persons(PersonFilter.VOLUNTEER) == []

    def test_sort_ignores_case(self, people):
        assert [p.first_name for p in people.visible_persons()] == ["Anna", "Bob", "john"]
        people.toggle_sort("first_name")
        assert people.sort_state.direction == SortDirection.DESC
        assert [p.first_name for p in people.visible_persons()] == ["john", "Bob", "Anna"]

    def test_blank_values_sort_last_both_ways(self, people):
        people.create(make_contractor(first_name="Celina", last_name="Adamska", email="c@example.org", city="Krakow"))

        people.set_sort_state(SortState(field="city"))
        names = [p.first_name for p in people.visible_persons()]
        assert names[:2] == ["Celina", "Anna"]
        assert set(names[2:]) == {"john", "Bob"}

        people.set_sort_state(SortState(field="city", direction=SortDirection.DESC))
        names = [p.first_name for p in people.visible_persons()]
        assert names[:2] == ["Anna", "Celina"]
        assert set(names[2:]) == {"john", "Bob"}

    def test_toggle_new_column_sorts_ascending(self, people):
        people.set_sort_state(SortState(field="first_name", direction=SortDirection.DESC))
        assert people.toggle_sort("last_name") == SortState(field="last_name", direction=SortDirection.ASC)

    def test_unknown_sort_field(self, people):
        people.set_sort_state(SortState(field="shoe_size"))
        with pytest.raises(ValidationError):
            people.visible_persons()


class TestPersonForm:

    def test_required_field_errors(self):
        form = PersonForm()
        with pytest.raises(ValidationError) as exc:
            form.submit()
        assert exc.value.errors == {
            "first_name": "First name is required",
            "last_name": "Last name is required",
            "email": "Email is required",
            "phone": "Phone number is required",
        }

    def test_invalid_email(self):
        form = PersonForm.from_data({"first_name": "A", "last_name": "B", "email": "not-an-email", "phone": "1"})
        with pytest.raises(ValidationError) as exc:
            form.submit()
        assert exc.value.errors == {"email": "Email is invalid"}

    def test_default_country(self):
        assert PersonForm().values["country"] == "PL"

    def test_status_updates_live(self):
        form = PersonForm.from_data({"first_name": "A", "last_name": "B", "email": "a@b.co", "phone": "1"})
        assert form.status.is_complete

        form.toggle_engagement(Engagement.VOLUNTEER)
        assert not form.status.is_complete

        form.toggle_engagement(Engagement.VOLUNTEER)
        assert form.status.is_complete

    def test_submit_stores_submit_time_completeness(self):
        form = PersonForm.from_data({
            "first_name": "A", "last_name": "B", "email": "a@b.co", "phone": "1",
            "engagement": ["volunteer"],
        })
        form.set_field("volunteer_start_date", "2024-01-01")
        form.set_field("volunteer_end_date", "2024-06-30")
        form.set_field("volunteer_contract_file", "volunteer/c.pdf")
        fields = form.submit()
        assert fields.completeness_problems == []
        assert fields.volunteer_start_date.isoformat() == "2024-01-01"

    def test_donator_lists(self):
        form = PersonForm()
        assert form.add_bank_account("  PL001  ")
        assert not form.add_bank_account("   ")
        assert form.add_email("donor@example.org")
        assert not form.add_email("nope")
        assert form.donator_bank_accounts == ["PL001"]
        assert form.donator_emails == ["donor@example.org"]
        form.remove_email(0)
        assert form.donator_emails == []

    def test_bad_date_is_a_field_error(self):
        form = PersonForm.from_data({
            "first_name": "A", "last_name": "B", "email": "a@b.co", "phone": "1",
            "birth_date": "31/12/1990",
        })
        with pytest.raises(ValidationError) as exc:
            form.submit()
        assert "birth_date" in exc.value.errors

    def test_edit_form_starts_from_person(self, store):
        person = store.create(make_contractor())
        form = PersonForm(person)
        assert form.values["birth_date"] == "1990-05-17"
        assert form.engagement == [Engagement.CONTRACTOR]
