"""Tests for the contract creation wizard"""

import pytest

from ngo_crm.errors import NotFoundError, ValidationError
from ngo_crm.models import ContractStatus, Engagement
from ngo_crm.services.wizard import WizardOutcome, WizardStep, search_persons

from conftest import make_contractor, make_person


@pytest.fixture
def wizard(services):
    return services.new_wizard()


@pytest.fixture
def john(services):
    return services.persons.create(make_person())


@pytest.fixture
def contractor(services):
    return services.persons.create(make_contractor(first_name="Carl", email="carl@example.org"))


class TestSearch:

    @pytest.fixture
    def people(self, services):
        for first, last, email in [
            ("John", "Doe", "john.doe@example.org"),
            ("Joanna", "Smith", "joanna@example.org"),
            ("Mark", "Brown", "mark@example.org"),
        ]:
            services.persons.create(make_person(first_name=first, last_name=last, email=email))

    def test_case_insensitive_substring(self, wizard, people):
        wizard.start()
        names = {p.full_name for p in wizard.search("JO")}
        assert names == {"John Doe", "Joanna Smith"}

    def test_matches_last_name_and_email(self, wizard, people):
        wizard.start()
        assert [p.full_name for p in wizard.search("brown")] == ["Mark Brown"]
        assert [p.full_name for p in wizard.search("mark@")] == ["Mark Brown"]

    def test_blank_query_finds_nobody(self, wizard, people):
        wizard.start()
        assert wizard.search("  ") == []

    def test_results_are_capped(self, services):
        persons = [services.persons.create(make_person(first_name=f"Jo{i}")) for i in range(15)]
        assert len(search_persons(persons, "jo", limit=10)) == 10
        assert len(services.new_wizard().start().search("jo")) == services.settings.person_search_limit


class TestNavigation:

    def test_next_needs_a_person(self, wizard):
        with pytest.raises(ValidationError):
            wizard.next()
        assert wizard.step == WizardStep.SELECT_PERSON

    def test_back_from_first_step_exits(self, wizard):
        assert wizard.back() == WizardOutcome.EXITED

    def test_back_steps_down(self, wizard, contractor):
        wizard.select_person(contractor)
        wizard.next()
        assert wizard.step == WizardStep.REVIEW_PERSON
        assert wizard.back() == WizardOutcome.WENT_BACK
        assert wizard.step == WizardStep.SELECT_PERSON

    def test_select_unknown_person(self, wizard):
        with pytest.raises(NotFoundError):
            wizard.select_person_by_id("missing")


class TestReviewGate:

    def test_unchanged_contractor_goes_straight_through(self, wizard, contractor):
        wizard.select_person(contractor)
        wizard.next()
        assert not wizard.has_changes()
        assert wizard.next() == WizardOutcome.ADVANCED
        assert wizard.step == WizardStep.CONTRACT_DETAILS

    def test_non_contractor_must_confirm(self, wizard, john):
        wizard.select_person(john)
        wizard.next()
        assert wizard.next() == WizardOutcome.CONFIRM_UPDATE
        assert wizard.awaiting_confirmation
        assert wizard.step == WizardStep.REVIEW_PERSON

    def test_changed_fields_must_confirm(self, wizard, contractor):
        wizard.select_person(contractor)
        wizard.next()
        wizard.set_detail("city", "Krakow")
        assert wizard.has_changes()
        assert wizard.next() == WizardOutcome.CONFIRM_UPDATE

    def test_confirm_updates_person_and_adds_contractor_role(self, services, wizard, john):
        wizard.select_person(john)
        wizard.next()
        wizard.set_detail("city", "Gdansk")
        wizard.next()

        assert wizard.confirm_update() == WizardOutcome.ADVANCED

        stored = services.persons.get_by_id(john.id)
        assert stored.city == "Gdansk"
        assert Engagement.CONTRACTOR in stored.engagement
        assert any(p.startswith("Missing contractor fields") for p in stored.completeness_problems)
        assert wizard.step == WizardStep.CONTRACT_DETAILS

    def test_skip_persists_nothing(self, services, wizard, john, gateway):
        wizard.select_person(john)
        wizard.next()
        wizard.set_detail("city", "Gdansk")
        wizard.next()
        gateway.calls.clear()

        assert wizard.skip_update() == WizardOutcome.ADVANCED

        assert gateway.calls == []
        assert services.persons.get_by_id(john.id).city is None
        assert wizard.step == WizardStep.CONTRACT_DETAILS

    def test_unknown_detail(self, wizard, john):
        wizard.select_person(john)
        with pytest.raises(ValidationError):
            wizard.set_detail("shoe_size", "44")


class TestContractDetails:

    @pytest.fixture
    def at_details(self, wizard, contractor):
        wizard.select_person(contractor)
        wizard.next()
        wizard.next()
        return wizard

    def test_empty_start_date_makes_no_backend_call(self, at_details, gateway):
        gateway.calls.clear()
        with pytest.raises(ValidationError):
            at_details.next()
        assert gateway.calls == []
        assert at_details.error == "Start date is required"

    def test_creates_contract(self, services, at_details, contractor):
        at_details.set_contract_field("start_date", "2024-03-01")
        at_details.set_contract_field("end_date", "")
        at_details.set_contract_field("custom_fields.PROJECT_NAME", "Camp")

        assert at_details.next() == WizardOutcome.CREATED

        contract = at_details.created
        assert contract.person_id == contractor.id
        assert contract.status == ContractStatus.IN_PROGRESS
        assert contract.end_date is None
        assert contract.custom_fields == {"PROJECT_NAME": "Camp"}
        assert services.contracts.contracts[0].id == contract.id

    def test_bad_date(self, at_details):
        at_details.set_contract_field("start_date", "first of march")
        with pytest.raises(ValidationError):
            at_details.next()
        assert at_details.created is None
