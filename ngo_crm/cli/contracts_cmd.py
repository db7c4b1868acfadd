"""contracts sub-commands"""

from datetime import date
from typing import List, Optional

import typer
from rich.prompt import Confirm, Prompt
from rich.table import Table

from ngo_crm.cli.common import console, current_user, fail, get_services, handle_errors
from ngo_crm.models import Contract, ContractFilter, ContractStatus, DocumentType
from ngo_crm.services.contracts import is_active, pdf_url
from ngo_crm.services.wizard import REVIEW_FIELDS, ContractWizard, WizardOutcome
from ngo_crm.utils.dates import format_date

app = typer.Typer(help="Manage contracts", no_args_is_help=True)

STATUS_STYLE = {
    ContractStatus.IN_PROGRESS: "yellow",
    ContractStatus.WAITING_FOR_SIGNATURE: "blue",
    ContractStatus.SIGNED: "green",
}


def _status(contract: Contract) -> str:
    style = STATUS_STYLE[contract.status]
    return f"[{style}]{contract.status.label}[/{style}]"


def _parse_fields(pairs: Optional[List[str]]) -> dict:
    fields = {}
    for pair in pairs or []:
        if "=" not in pair:
            fail(f"Custom field must look like NAME=value, got '{pair}'")
        name, value = pair.split("=", 1)
        fields[name.strip().upper()] = value
    return fields


def _print_contract(contract: Contract) -> None:
    person = contract.person.full_name if contract.person else contract.person_id
    console.print(f"[bold]{person}[/bold]  {_status(contract)}")
    console.print(f"  Period: {format_date(contract.start_date)} - {format_date(contract.end_date) or 'open-ended'}")
    if contract.source_document_url:
        console.print(f"  Document: {contract.source_document_url}")
        console.print(f"  PDF: {pdf_url(contract.source_document_url)}")


@app.command("list")
def list_contracts(
    view: ContractFilter = typer.Option(ContractFilter.ALL, "--view", "-v", help="all, active or archive"),
    status: Optional[ContractStatus] = typer.Option(None, "--status", help="Only this status"),
    search: str = typer.Option("", "--search", "-s", help="Search person or description"),
):
    """List contracts"""
    current_user()
    store = get_services().contracts
    store.fetch_all()
    if store.error:
        fail(store.error)
    today = date.today()
    contracts = store.visible_contracts(view, status, search, today)
    if not contracts:
        console.print("[yellow]No contracts found[/yellow]")
        return

    table = Table(title=f"Contracts ({len(contracts)})")
    table.add_column("ID", style="dim")
    table.add_column("Person", style="cyan")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Status")
    table.add_column("Active", justify="center")

    for contract in contracts:
        table.add_row(
            contract.id,
            contract.person.full_name if contract.person else "-",
            format_date(contract.start_date),
            format_date(contract.end_date) or "-",
            _status(contract),
            "yes" if is_active(contract, today) else "archive",
        )
    console.print(table)


def _pick_person(wizard: ContractWizard) -> None:
    while wizard.selected_person is None:
        query = Prompt.ask("Search person (name or e-mail)")
        results = wizard.search(query)
        if not results:
            console.print("[yellow]No persons found[/yellow]")
            continue
        for index, person in enumerate(results, 1):
            console.print(f"  {index}. {person.full_name} <{person.email}> {person.phone}")
        choice = Prompt.ask("Choose", choices=[str(i) for i in range(len(results) + 1)], default="1")
        if choice != "0":
            wizard.select_person(results[int(choice) - 1])


def _review_person(wizard: ContractWizard, update_profile: Optional[bool]) -> None:
    console.print("\n[bold]Person details[/bold] (Enter keeps the current value)")
    for field in REVIEW_FIELDS:
        label = field.replace("_", " ").capitalize()
        wizard.set_detail(field, Prompt.ask(label, default=wizard.details[field]))

    if wizard.next() != WizardOutcome.CONFIRM_UPDATE:
        return
    if update_profile is None:
        update_profile = Confirm.ask(
            "Update the person's profile (and mark them as a contractor)?", default=True
        )
    if update_profile:
        wizard.confirm_update()
        console.print("[green][OK] Person details updated[/green]")
    else:
        wizard.skip_update()


def _contract_details(wizard: ContractWizard, start: Optional[str], end: Optional[str],
                      template_id: Optional[str], fields: dict) -> None:
    templates = get_services().templates
    templates.fetch_all()
    active = templates.active_templates(DocumentType.CONTRACT)
    if template_id is None and active:
        for index, template in enumerate(active, 1):
            console.print(f"  {index}. {template.name}")
        choice = Prompt.ask("Template (0 for none)", choices=[str(i) for i in range(len(active) + 1)], default="1")
        template_id = active[int(choice) - 1].id if choice != "0" else None

    wizard.set_contract_field("template_id", template_id or "")
    wizard.set_contract_field("start_date", start if start is not None else Prompt.ask("Start date (YYYY-MM-DD)"))
    wizard.set_contract_field("end_date", end if end is not None else Prompt.ask("End date (optional)", default=""))

    template = next((t for t in active if t.id == template_id), None)
    for name in template.custom_fields if template else []:
        if name not in fields:
            fields[name] = Prompt.ask(name, default="")
    for name, value in fields.items():
        wizard.set_custom_field(name, value)


@app.command("new")
def new(
    person_id: Optional[str] = typer.Option(None, "--person", "-p", help="Person id (skips the search)"),
    start: Optional[str] = typer.Option(None, "--start", help="Start date YYYY-MM-DD"),
    end: Optional[str] = typer.Option(None, "--end", help="End date YYYY-MM-DD"),
    template_id: Optional[str] = typer.Option(None, "--template", "-t", help="Template id"),
    field: Optional[List[str]] = typer.Option(None, "--field", help="Custom field NAME=value"),
    update_profile: Optional[bool] = typer.Option(
        None, "--update-profile/--skip-update", help="Answer the profile update question up front"
    ),
):
    """Create a contract step by step"""
    current_user()
    wizard = get_services().new_wizard().start()
    fields = _parse_fields(field)

    with handle_errors():
        if person_id:
            wizard.select_person_by_id(person_id)
        else:
            _pick_person(wizard)
        console.print(f"Selected [cyan]{wizard.selected_person.full_name}[/cyan]")
        wizard.next()

        _review_person(wizard, update_profile)
        _contract_details(wizard, start, end, template_id, fields)
        wizard.next()

    console.print(f"[green][OK] Created contract {wizard.created.id}[/green]")


@app.command("show")
def show(contract_id: str = typer.Argument(..., help="Contract id")):
    """Show one contract"""
    current_user()
    contract = get_services().contracts.get_by_id(contract_id)
    if contract is None:
        fail("Contract not found")
    _print_contract(contract)


@app.command("edit")
def edit(
    contract_id: str = typer.Argument(..., help="Contract id"),
    start: Optional[str] = typer.Option(None, "--start", help="Start date YYYY-MM-DD"),
    end: Optional[str] = typer.Option(None, "--end", help="End date YYYY-MM-DD ('' clears it)"),
    template_id: Optional[str] = typer.Option(None, "--template", "-t", help="Template id"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
    field: Optional[List[str]] = typer.Option(None, "--field", help="Custom field NAME=value"),
):
    """Edit contract dates, template or custom fields"""
    current_user()
    store = get_services().contracts
    contract = store.get_by_id(contract_id)
    if contract is None:
        fail("Contract not found")

    update = {}
    for name, value in (("start_date", start), ("end_date", end),
                        ("template_id", template_id), ("description", description)):
        if value is not None:
            update[name] = value
    if field:
        update["custom_fields"] = {**contract.custom_fields, **_parse_fields(field)}
    if not update:
        fail("Nothing to change")

    with handle_errors():
        contract = store.update(contract_id, update)
    console.print("[green][OK] Contract updated[/green]")
    _print_contract(contract)


@app.command("send")
def send(contract_id: str = typer.Argument(..., help="Contract id")):
    """Generate the contract document and mark it as waiting for signature"""
    user = current_user()
    with handle_errors():
        with console.status("Generating document..."):
            contract = get_services().contracts.send(contract_id, user.email)
    console.print("[green][OK] Document generated[/green]")
    _print_contract(contract)


@app.command("advance")
def advance(contract_id: str = typer.Argument(..., help="Contract id")):
    """Move a contract to its next status"""
    current_user()
    with handle_errors():
        contract = get_services().contracts.advance(contract_id)
    console.print(f"[green][OK] Contract is now {contract.status.label}[/green]")


@app.command("delete")
def delete(
    contract_id: str = typer.Argument(..., help="Contract id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete a contract"""
    current_user()
    if not yes and not typer.confirm("Delete this contract?"):
        console.print("Cancelled")
        return
    with handle_errors():
        get_services().contracts.delete(contract_id)
    console.print("[green][OK] Contract deleted[/green]")
