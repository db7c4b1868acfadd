"""Tests for the command line interface"""

import pytest
from typer.testing import CliRunner

from ngo_crm.cli.common import set_services
from ngo_crm.cli.main import app

from conftest import ADMIN_EMAIL, PASSWORD, make_contractor, make_person

runner = CliRunner()


@pytest.fixture
def cli_services(services):
    set_services(services)
    yield services
    set_services(None)


@pytest.fixture
def logged_in(cli_services):
    result = runner.invoke(app, ["login", "--email", ADMIN_EMAIL, "--password", PASSWORD])
    assert result.exit_code == 0, result.output
    return cli_services


class TestSession:

    def test_login_and_whoami(self, cli_services):
        result = runner.invoke(app, ["login", "--email", ADMIN_EMAIL, "--password", PASSWORD])
        assert result.exit_code == 0
        assert "Signed in as Ada Admin (admin)" in result.output

        result = runner.invoke(app, ["whoami"])
        assert result.exit_code == 0
        assert ADMIN_EMAIL in result.output

    def test_wrong_password(self, cli_services):
        result = runner.invoke(app, ["login", "--email", ADMIN_EMAIL, "--password", "wrong"])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_commands_need_login(self, cli_services):
        result = runner.invoke(app, ["persons", "list"])
        assert result.exit_code == 1
        assert "Not signed in" in result.output

    def test_logout(self, logged_in):
        assert runner.invoke(app, ["logout"]).exit_code == 0
        assert runner.invoke(app, ["whoami"]).exit_code == 1

    def test_reset_link(self, cli_services, gateway):
        result = runner.invoke(app, ["reset-password", "--email", ADMIN_EMAIL])
        assert result.exit_code == 0
        assert gateway.sent_resets[-1]["redirect_to"] == "https://crm.example.org/reset-password"

    def test_reset_password_mismatch(self, cli_services):
        result = runner.invoke(app, ["reset-password"], input="secret1\nsecret2\n")
        assert result.exit_code == 1
        assert "Passwords do not match" in result.output


class TestPersonCommands:

    def test_add_and_list(self, logged_in):
        result = runner.invoke(app, [
            "persons", "add",
            "--first-name", "Anna", "--last-name", "Nowak",
            "--email", "anna@example.org", "--phone", "123456789",
            "-e", "contractor",
        ])
        assert result.exit_code == 0, result.output
        assert "[OK] Created Anna Nowak" in result.output
        assert "Tax declaration file not uploaded" in result.output

        result = runner.invoke(app, ["persons", "list", "--filter", "incomplete"])
        assert result.exit_code == 0
        assert "Persons (1)" in result.output

    def test_add_reports_field_errors(self, logged_in):
        result = runner.invoke(app, ["persons", "add", "--first-name", "Anna"])
        assert result.exit_code == 1
        assert "Last name is required" in result.output

    def test_attach(self, logged_in, tmp_path):
        person = logged_in.persons.create(make_contractor(tax_declaration_file=None))
        scan = tmp_path / "pit.pdf"
        scan.write_bytes(b"%PDF-1.4")

        result = runner.invoke(app, ["persons", "attach", person.id, "tax_declaration_file", str(scan)])
        assert result.exit_code == 0, result.output
        assert logged_in.persons.get_by_id(person.id).tax_declaration_file.endswith("pit.pdf")

    def test_delete(self, logged_in):
        person = logged_in.persons.create(make_person())
        result = runner.invoke(app, ["persons", "delete", person.id, "--yes"])
        assert result.exit_code == 0
        assert logged_in.persons.get_by_id(person.id) is None


class TestContractCommands:

    def test_new_keeps_reviewed_details(self, logged_in):
        person = logged_in.persons.create(make_contractor())
        # Enter through the review prompts and the optional end date
        result = runner.invoke(
            app,
            ["contracts", "new", "--person", person.id, "--start", "2024-01-01"],
            input="\n" * 12,
        )
        assert result.exit_code == 0, result.output
        assert "[OK] Created contract" in result.output
        assert len(logged_in.contracts.fetch_all()) == 1

    def test_new_updates_profile(self, logged_in):
        person = logged_in.persons.create(make_person())
        result = runner.invoke(
            app,
            ["contracts", "new", "--person", person.id, "--start", "2024-01-01",
             "--end", "2024-12-31", "--update-profile"],
            input="\n" * 11,
        )
        assert result.exit_code == 0, result.output
        assert "Person details updated" in result.output
        assert "contractor" in logged_in.persons.get_by_id(person.id).engagement

    def test_lifecycle(self, logged_in):
        person = logged_in.persons.create(make_contractor())
        wizard = logged_in.new_wizard().start()
        wizard.select_person(person)
        wizard.next()
        wizard.next()
        wizard.set_contract_field("start_date", "2024-01-01")
        wizard.next()
        contract_id = wizard.created.id

        result = runner.invoke(app, ["contracts", "send", contract_id])
        assert result.exit_code == 0, result.output
        assert "Document generated" in result.output

        result = runner.invoke(app, ["contracts", "advance", contract_id])
        assert "Contract is now Signed" in result.output

        result = runner.invoke(app, ["contracts", "advance", contract_id])
        assert result.exit_code == 1

    def test_show_missing(self, logged_in):
        result = runner.invoke(app, ["contracts", "show", "missing"])
        assert result.exit_code == 1
        assert "Contract not found" in result.output


class TestSettingsCommands:

    def test_theme_toggle(self, cli_services):
        result = runner.invoke(app, ["theme", "--toggle"])
        assert result.exit_code == 0
        assert "Theme: dark" in result.output
        assert "Theme: light" in runner.invoke(app, ["theme", "--toggle"]).output

    def test_templates_add_needs_admin(self, cli_services):
        runner.invoke(app, ["login", "--email", "accountant@example.org", "--password", PASSWORD])
        result = runner.invoke(app, [
            "templates", "add", "--name", "Agreement", "--url", "https://docs.example.org/t/edit",
        ])
        assert result.exit_code == 1

    def test_templates_add(self, logged_in):
        result = runner.invoke(app, [
            "templates", "add", "--name", "Agreement",
            "--url", "https://docs.example.org/t/edit", "--field", "fee",
        ])
        assert result.exit_code == 0, result.output
        assert logged_in.templates.fetch_all()[0].custom_fields == ["FEE"]
