"""templates sub-commands"""

from typing import List, Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ngo_crm.cli.common import console, current_user, fail, get_services, handle_errors
from ngo_crm.models import DocumentType, Role, TemplateFields
from ngo_crm.services.templates import add_custom_field, filter_templates, remove_custom_field

app = typer.Typer(help="Manage document templates", no_args_is_help=True)


@app.command("list")
def list_templates(
    search: str = typer.Option("", "--search", "-s", help="Search by name"),
    document_type: Optional[DocumentType] = typer.Option(None, "--type", help="contract or receipt"),
    show_inactive: bool = typer.Option(False, "--all", "-a", help="Include inactive templates"),
):
    """List document templates"""
    current_user()
    templates = filter_templates(get_services().templates.fetch_all(), search, document_type, show_inactive)
    if not templates:
        console.print("[yellow]No templates available[/yellow]")
        return

    table = Table(title="Document Templates")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Custom fields", justify="right")
    table.add_column("Active", justify="center")

    for template in templates:
        table.add_row(
            template.id,
            template.name,
            template.type.value,
            str(len(template.custom_fields)),
            "[green]yes[/green]" if template.is_active else "[dim]no[/dim]",
        )
    console.print(table)


@app.command("show")
def show(template_id: str = typer.Argument(..., help="Template id")):
    """Show a template and its fields"""
    current_user()
    template = get_services().templates.get_by_id(template_id)
    if template is None:
        fail("Template not found")

    console.print(Panel(
        f"[bold]{template.name}[/bold]\n\n{template.url}",
        title=f"Template: {template.type.value}",
        border_style="blue" if template.is_active else "dim",
    ))
    table = Table(title="Fields")
    table.add_column("Field", style="cyan")
    table.add_column("Kind")
    for name in template.built_in_fields:
        table.add_row(name, "built-in")
    for name in template.custom_fields:
        table.add_row(name, "custom")
    console.print(table)


@app.command("add")
def add(
    name: str = typer.Option(..., "--name", "-n"),
    url: str = typer.Option(..., "--url", "-u", help="Link to the template document"),
    document_type: DocumentType = typer.Option(DocumentType.CONTRACT, "--type"),
    field: Optional[List[str]] = typer.Option(None, "--field", "-f", help="Custom field name (repeatable)"),
    inactive: bool = typer.Option(False, "--inactive", help="Create as inactive"),
):
    """Add a document template (admin)"""
    current_user(Role.ADMIN)
    custom: List[str] = []
    for item in field or []:
        custom = add_custom_field(custom, item)
    with handle_errors():
        template = get_services().templates.create(TemplateFields(
            name=name, url=url, type=document_type, is_active=not inactive, custom_fields=custom,
        ))
    console.print(f"[green][OK] Created template {template.name} ({template.id})[/green]")


@app.command("edit")
def edit(
    template_id: str = typer.Argument(..., help="Template id"),
    name: Optional[str] = typer.Option(None, "--name", "-n"),
    url: Optional[str] = typer.Option(None, "--url", "-u"),
    document_type: Optional[DocumentType] = typer.Option(None, "--type"),
    add_field: Optional[List[str]] = typer.Option(None, "--add-field", help="Custom field to add"),
    remove_field: Optional[List[str]] = typer.Option(None, "--remove-field", help="Custom field to remove"),
):
    """Edit a document template (admin)"""
    current_user(Role.ADMIN)
    store = get_services().templates
    template = store.get_by_id(template_id)
    if template is None:
        fail("Template not found")

    custom = list(template.custom_fields)
    for item in add_field or []:
        custom = add_custom_field(custom, item)
    for item in remove_field or []:
        custom = remove_custom_field(custom, item)

    fields = TemplateFields(
        name=template.name if name is None else name,
        url=template.url if url is None else url,
        type=document_type or template.type,
        is_active=template.is_active,
        custom_fields=custom,
    )
    with handle_errors():
        template = store.update(template_id, fields)
    console.print(f"[green][OK] Updated template {template.name}[/green]")


@app.command("toggle")
def toggle(template_id: str = typer.Argument(..., help="Template id")):
    """Activate or deactivate a template (admin)"""
    current_user(Role.ADMIN)
    with handle_errors():
        template = get_services().templates.toggle_status(template_id)
    state = "active" if template.is_active else "inactive"
    console.print(f"[green][OK] {template.name} is now {state}[/green]")
