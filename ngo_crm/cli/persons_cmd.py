"""persons sub-commands"""

from pathlib import Path
from typing import List, Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ngo_crm.cli.common import console, current_user, fail, get_services, handle_errors
from ngo_crm.models import COUNTRIES, Engagement, Person, PersonFilter, SortDirection, SortState
from ngo_crm.services.person_form import PersonForm
from ngo_crm.services.persons import PersonFile

app = typer.Typer(help="Manage persons", no_args_is_help=True)


def _form_data(
    first_name: Optional[str],
    last_name: Optional[str],
    email: Optional[str],
    phone: Optional[str],
    engagement: Optional[List[Engagement]],
    birth_date: Optional[str],
    pesel: Optional[str],
    street: Optional[str],
    city: Optional[str],
    postal_code: Optional[str],
    country: Optional[str],
    bank_account: Optional[str],
    volunteer_start: Optional[str],
    volunteer_end: Optional[str],
    donator_account: Optional[List[str]],
    donator_email: Optional[List[str]],
) -> dict:
    values = {
        "first_name": first_name,
        "last_name": last_name,
        "email": email,
        "phone": phone,
        "birth_date": birth_date,
        "national_id": pesel,
        "street": street,
        "city": city,
        "postal_code": postal_code,
        "country": country,
        "bank_account": bank_account,
        "volunteer_start_date": volunteer_start,
        "volunteer_end_date": volunteer_end,
    }
    data = {k: v for k, v in values.items() if v is not None}
    if engagement:
        data["engagement"] = list(engagement)
    if donator_account:
        data["donator_bank_accounts"] = list(donator_account)
    if donator_email:
        data["donator_emails"] = list(donator_email)
    return data


def _print_person(person: Person) -> None:
    lines = [
        f"[bold]{person.full_name}[/bold]",
        f"Email: {person.email or '-'}",
        f"Phone: {person.phone or '-'}",
        f"Engagement: {', '.join(e.value for e in person.engagement) or '-'}",
    ]
    if person.has_engagement(Engagement.CONTRACTOR):
        lines += [
            f"Birth date: {person.birth_date or '-'}",
            f"PESEL: {person.national_id or '-'}",
            f"Address: {person.street or '-'}, {person.postal_code or ''} {person.city or ''}, "
            f"{COUNTRIES.get(person.country or '', person.country or '-')}",
            f"Bank account: {person.bank_account or '-'}",
            f"Tax declaration: {person.tax_declaration_file or 'not uploaded'}",
        ]
    if person.has_engagement(Engagement.VOLUNTEER):
        lines += [
            f"Volunteering: {person.volunteer_start_date or '-'} to {person.volunteer_end_date or '-'}",
            f"Volunteer contract: {person.volunteer_contract_file or 'not uploaded'}",
        ]
    if person.has_engagement(Engagement.DONATOR):
        lines += [
            f"Donation accounts: {', '.join(person.donator_bank_accounts) or '-'}",
            f"Donation e-mails: {', '.join(person.donator_emails) or '-'}",
        ]
    if person.completeness_problems:
        lines.append("")
        lines += [f"[yellow]! {problem}[/yellow]" for problem in person.completeness_problems]

    border = "green" if person.is_complete else "yellow"
    console.print(Panel("\n".join(lines), title=f"Person {person.id}", border_style=border))


@app.command("list")
def list_persons(
    search: str = typer.Option("", "--search", "-s", help="Search name, e-mail or phone"),
    person_filter: PersonFilter = typer.Option(PersonFilter.ALL, "--filter", "-f", help="Filter"),
    sort: str = typer.Option("first_name", "--sort", help="Field to sort by"),
    desc: bool = typer.Option(False, "--desc", help="Sort descending"),
):
    """List persons"""
    current_user()
    store = get_services().persons
    with handle_errors():
        store.fetch_all()
        if store.error:
            fail(store.error)
        store.set_search_query(search)
        store.set_sort_state(SortState(field=sort, direction=SortDirection.DESC if desc else SortDirection.ASC))
        persons = store.visible_persons(person_filter)

    if not persons:
        console.print("[yellow]No persons found[/yellow]")
        return

    table = Table(title=f"Persons ({len(persons)})")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Email", style="green")
    table.add_column("Phone")
    table.add_column("Engagement")
    table.add_column("Complete", justify="center")

    for person in persons:
        table.add_row(
            person.id,
            person.full_name,
            person.email,
            person.phone,
            ", ".join(e.value for e in person.engagement),
            "[green]yes[/green]" if person.is_complete else "[yellow]no[/yellow]",
        )
    console.print(table)


@app.command("show")
def show(person_id: str = typer.Argument(..., help="Person id")):
    """Show one person"""
    current_user()
    person = get_services().persons.get_by_id(person_id)
    if person is None:
        fail(f"Person '{person_id}' not found")
    _print_person(person)


ENGAGEMENT_HELP = "volunteer, contractor or donator (repeatable)"


@app.command("add")
def add(
    first_name: Optional[str] = typer.Option(None, "--first-name"),
    last_name: Optional[str] = typer.Option(None, "--last-name"),
    email: Optional[str] = typer.Option(None, "--email"),
    phone: Optional[str] = typer.Option(None, "--phone"),
    engagement: Optional[List[Engagement]] = typer.Option(None, "--engagement", "-e", help=ENGAGEMENT_HELP),
    birth_date: Optional[str] = typer.Option(None, "--birth-date", help="YYYY-MM-DD"),
    pesel: Optional[str] = typer.Option(None, "--pesel"),
    street: Optional[str] = typer.Option(None, "--street"),
    city: Optional[str] = typer.Option(None, "--city"),
    postal_code: Optional[str] = typer.Option(None, "--postal-code"),
    country: Optional[str] = typer.Option(None, "--country", help=", ".join(COUNTRIES)),
    bank_account: Optional[str] = typer.Option(None, "--bank-account"),
    volunteer_start: Optional[str] = typer.Option(None, "--volunteer-start", help="YYYY-MM-DD"),
    volunteer_end: Optional[str] = typer.Option(None, "--volunteer-end", help="YYYY-MM-DD"),
    donator_account: Optional[List[str]] = typer.Option(None, "--donator-account"),
    donator_email: Optional[List[str]] = typer.Option(None, "--donator-email"),
):
    """Add a person"""
    current_user()
    data = _form_data(
        first_name, last_name, email, phone, engagement, birth_date, pesel, street, city,
        postal_code, country, bank_account, volunteer_start, volunteer_end,
        donator_account, donator_email,
    )
    with handle_errors():
        form = PersonForm.from_data(data)
        person = get_services().persons.create(form.submit())
    console.print(f"[green][OK] Created {person.full_name} ({person.id})[/green]")
    for problem in person.completeness_problems:
        console.print(f"  [yellow]! {problem}[/yellow]")


@app.command("edit")
def edit(
    person_id: str = typer.Argument(..., help="Person id"),
    first_name: Optional[str] = typer.Option(None, "--first-name"),
    last_name: Optional[str] = typer.Option(None, "--last-name"),
    email: Optional[str] = typer.Option(None, "--email"),
    phone: Optional[str] = typer.Option(None, "--phone"),
    engagement: Optional[List[Engagement]] = typer.Option(None, "--engagement", "-e", help=ENGAGEMENT_HELP),
    birth_date: Optional[str] = typer.Option(None, "--birth-date", help="YYYY-MM-DD"),
    pesel: Optional[str] = typer.Option(None, "--pesel"),
    street: Optional[str] = typer.Option(None, "--street"),
    city: Optional[str] = typer.Option(None, "--city"),
    postal_code: Optional[str] = typer.Option(None, "--postal-code"),
    country: Optional[str] = typer.Option(None, "--country", help=", ".join(COUNTRIES)),
    bank_account: Optional[str] = typer.Option(None, "--bank-account"),
    volunteer_start: Optional[str] = typer.Option(None, "--volunteer-start", help="YYYY-MM-DD"),
    volunteer_end: Optional[str] = typer.Option(None, "--volunteer-end", help="YYYY-MM-DD"),
    donator_account: Optional[List[str]] = typer.Option(None, "--donator-account"),
    donator_email: Optional[List[str]] = typer.Option(None, "--donator-email"),
):
    """Edit a person; only the given options change"""
    current_user()
    store = get_services().persons
    current = store.get_by_id(person_id)
    if current is None:
        fail(f"Person '{person_id}' not found")
    data = _form_data(
        first_name, last_name, email, phone, engagement, birth_date, pesel, street, city,
        postal_code, country, bank_account, volunteer_start, volunteer_end,
        donator_account, donator_email,
    )
    with handle_errors():
        form = PersonForm.from_data(data, initial=current)
        person = store.update(person_id, form.submit())
    console.print(f"[green][OK] Updated {person.full_name}[/green]")
    for problem in person.completeness_problems:
        console.print(f"  [yellow]! {problem}[/yellow]")


@app.command("attach")
def attach(
    person_id: str = typer.Argument(..., help="Person id"),
    kind: PersonFile = typer.Argument(..., help="tax_declaration_file or volunteer_contract_file"),
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
):
    """Upload a tax declaration or signed volunteer contract"""
    current_user()
    store = get_services().persons
    current = store.get_by_id(person_id)
    if current is None:
        fail(f"Person '{person_id}' not found")
    with handle_errors():
        person = store.add_document(current, kind, file.name, file.read_bytes())
    console.print(f"[green][OK] Attached {file.name} to {person.full_name}[/green]")


@app.command("delete")
def delete(
    person_id: str = typer.Argument(..., help="Person id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete a person"""
    current_user()
    store = get_services().persons
    person = store.get_by_id(person_id)
    if person is None:
        fail(f"Person '{person_id}' not found")
    if not yes and not typer.confirm(f"Delete {person.full_name}?"):
        console.print("Cancelled")
        return
    with handle_errors():
        store.delete(person_id)
    console.print(f"[green][OK] Deleted {person.full_name}[/green]")
