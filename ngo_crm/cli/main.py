"""Main CLI application"""

from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ngo_crm import __version__
from ngo_crm.cli import contracts_cmd, persons_cmd, templates_cmd
from ngo_crm.cli.common import console, current_user, fail, get_services, handle_errors
from ngo_crm.models import Role, ThemeMode
from ngo_crm.services.dashboard import build_dashboard
from ngo_crm.services.guard import GuardState
from ngo_crm.services.users import filter_users
from ngo_crm.utils.dates import format_date
from ngo_crm.utils.logging import configure_logging

app = typer.Typer(
    name="ngo-crm",
    help="CRM for persons, contracts and document templates",
    add_completion=False,
)
app.add_typer(persons_cmd.app, name="persons")
app.add_typer(contracts_cmd.app, name="contracts")
app.add_typer(templates_cmd.app, name="templates")


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
):
    configure_logging(log_level)


@app.command("status")
def status():
    """Show configuration and session status"""
    services = get_services()
    settings = services.settings
    services.guard.mount()

    table = Table(title=f"NGO CRM {__version__}", show_header=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    table.add_row("Backend", settings.db_mode)
    table.add_row("Supabase URL", settings.supabase_url or "[dim]not set[/dim]")
    table.add_row("App URL", settings.app_url)
    table.add_row("Auth bypass", "[yellow]on[/yellow]" if settings.bypass_enabled else "off")
    user = services.guard.user
    if services.guard.state == GuardState.AUTHENTICATED and user is not None:
        table.add_row("Signed in as", f"{user.email} ({user.role.value})")
    else:
        table.add_row("Signed in as", "[dim]nobody[/dim]")
    console.print(table)


@app.command("login")
def login(
    email: str = typer.Option(..., "--email", "-e", prompt=True),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True),
):
    """Sign in with e-mail and password"""
    with handle_errors():
        user = get_services().auth.login(email, password)
    console.print(f"[green][OK] Signed in as {user.name} ({user.role.value})[/green]")


@app.command("logout")
def logout():
    """Sign out"""
    with handle_errors():
        get_services().auth.logout()
    console.print("[green][OK] Signed out[/green]")


@app.command("whoami")
def whoami():
    """Show the signed-in user"""
    user = current_user()
    console.print(Panel(
        f"[bold]{user.name}[/bold]\n{user.email}\nRole: {user.role.value}\nAvatar: {user.picture}",
        title="Signed in",
        border_style="blue",
    ))


@app.command("reset-password")
def reset_password(
    email: Optional[str] = typer.Option(None, "--email", "-e", help="Send a recovery link to this address"),
    token: Optional[str] = typer.Option(None, "--token", help="Access token from the recovery link"),
    refresh_token: Optional[str] = typer.Option(None, "--refresh-token", help="Refresh token from the link"),
):
    """Send a recovery link, or set a new password from one"""
    auth = get_services().auth
    if email:
        with handle_errors():
            redirect_to = auth.send_password_reset(email)
        console.print("[green][OK] Password reset instructions have been sent to your email[/green]")
        console.print(f"The link opens {redirect_to}")
        return

    password = typer.prompt("New password", hide_input=True)
    confirm = typer.prompt("Confirm password", hide_input=True)
    with handle_errors():
        auth.reset_password(password, confirm, token, refresh_token)
    console.print("[green][OK] Password updated. Please sign in with your new password.[/green]")


@app.command("users")
def users(
    search: str = typer.Option("", "--search", "-s", help="Search name or e-mail"),
    role: Optional[Role] = typer.Option(None, "--role", "-r", help="Only this role"),
):
    """List users and their roles"""
    user = current_user()
    services = get_services()
    found = filter_users(services.users.list_users(user), search, role)
    if services.users.error:
        fail(services.users.error)
    if user.role != Role.ADMIN:
        console.print("[yellow]You need admin privileges to view all users.[/yellow]")

    table = Table(title="Users")
    table.add_column("Name", style="cyan")
    table.add_column("Email", style="green")
    table.add_column("Role")
    for entry in found:
        table.add_row(entry.name, entry.email, entry.role.value)
    console.print(table)


@app.command("theme")
def theme(
    mode: Optional[ThemeMode] = typer.Argument(None, help="light, dark or system"),
    toggle: bool = typer.Option(False, "--toggle", "-t", help="Switch between light and dark"),
):
    """Show or change the colour theme"""
    store = get_services().theme
    if toggle:
        store.toggle_mode()
    elif mode is not None:
        store.set_mode(mode)
    console.print(f"Theme: [cyan]{store.mode.value}[/cyan]")


@app.command("dashboard")
def dashboard():
    """Totals and the most recently added persons"""
    current_user()
    services = get_services()
    stats = build_dashboard(services.persons.fetch_all(), services.contracts.fetch_all())

    console.print(Panel(
        f"Persons: [bold]{stats.total_persons}[/bold]\n"
        f"With e-mail: {stats.with_email}\n"
        f"With phone: {stats.with_phone}\n"
        f"Incomplete profiles: [yellow]{stats.incomplete}[/yellow]\n"
        f"Active contracts: [green]{stats.active_contracts}[/green]\n"
        f"Updated this week: {stats.updated_this_week}",
        title="Dashboard",
        border_style="blue",
    ))

    if not stats.recent_persons:
        console.print("[yellow]No persons yet[/yellow]")
        return
    table = Table(title="Recent persons")
    table.add_column("Name", style="cyan")
    table.add_column("Email", style="green")
    table.add_column("Added")
    for person in stats.recent_persons:
        table.add_row(person.full_name, person.email, format_date(person.created_at))
    console.print(table)


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the HTTP API"""
    import uvicorn

    console.print(f"[blue]Serving on http://{host}:{port}[/blue]")
    if reload:
        uvicorn.run("ngo_crm.api.app:create_app", host=host, port=port, reload=True, factory=True)
    else:
        from ngo_crm.api.app import create_app

        uvicorn.run(create_app(get_services()), host=host, port=port)


if __name__ == "__main__":
    app()
