"""Shared CLI helpers: services, console, error reporting"""

from contextlib import contextmanager
from typing import Iterator, Optional

import typer
from rich.console import Console

from ngo_crm.errors import CrmError, ValidationError
from ngo_crm.models import Role, User
from ngo_crm.services.auth import require_role
from ngo_crm.services.container import Services, build_services

console = Console()

_services: Optional[Services] = None


def get_services() -> Services:
    """Services for this process, built on first use."""
    global _services
    if _services is None:
        _services = build_services()
    return _services


def set_services(services: Optional[Services]) -> None:
    global _services
    _services = services


def fail(message: str) -> None:
    console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(code=1)


@contextmanager
def handle_errors() -> Iterator[None]:
    """Print CRM errors in red and exit non-zero."""
    try:
        yield
    except ValidationError as e:
        console.print(f"[red]Error: {e}[/red]")
        for field, message in e.errors.items():
            console.print(f"  [yellow]{field}[/yellow]: {message}")
        raise typer.Exit(code=1)
    except CrmError as e:
        fail(str(e))


def current_user(*roles: Role) -> User:
    """The signed-in user (optionally with one of ``roles``), or exit."""
    services = get_services()
    decision = services.guard.check("/dashboard")
    if not decision.allowed or services.guard.user is None:
        fail("Not signed in. Run [cyan]ngo-crm login[/cyan] first.")
    with handle_errors():
        return require_role(services.guard.user, *roles)
