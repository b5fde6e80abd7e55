"""Click CLI for the inventory console."""

from __future__ import annotations

import asyncio
import json
import sys

import click

from inventory.config import get_settings
from inventory.context import AppContext, build_context
from inventory.errors import InventoryError
from inventory.models.equipment import EquipmentStatus, EquipmentType
from inventory.models.user import AppUser, Role
from inventory.services.logging_service import configure_logging
from inventory.services.snapshot_repository import LocalUserRepository


def _context() -> AppContext:
    settings = get_settings()
    configure_logging(settings.log_level, stream=sys.stderr)
    return build_context(settings)


def _run(context: AppContext, coro):
    """Run one coroutine, then release the context's network resources."""

    async def runner():
        try:
            return await coro
        finally:
            await context.close()

    return asyncio.run(runner())


@click.group()
def cli() -> None:
    """Equipment inventory: sign in, inspect the session, list equipment."""
    pass


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@cli.command("seed-user")
@click.argument("username")
@click.option("--email", required=True, help="Contact address of the new account.")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option(
    "--role",
    default=Role.USER.value,
    type=click.Choice([r.value for r in Role]),
    help="Role of the new account.",
)
@click.option("--first-name", default=None)
@click.option("--last-name", default=None)
def seed_user(
    username: str,
    email: str,
    password: str,
    role: str,
    first_name: str | None,
    last_name: str | None,
) -> None:
    """Create an account in the local data source (no sign-in required)."""
    context = _context()
    users = context.repositories.users
    if not isinstance(users, LocalUserRepository):
        click.echo("seed-user only works with DATA_SOURCE=local", err=True)
        sys.exit(2)

    try:
        created = users.add(
            AppUser(
                username=username,
                email=email,
                first_name=first_name,
                last_name=last_name,
                role=Role(role),
            ),
            password=password,
        )
    except InventoryError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    click.echo(f"Created {created.role.value} '{created.username}' ({created.id})")


@cli.command()
@click.option("--username", prompt=True)
@click.option("--password", prompt=True, hide_input=True)
def login(username: str, password: str) -> None:
    """Sign in and keep the session for later commands."""
    context = _context()
    try:
        _run(context, context.guard.login(username, password))
    except InventoryError as e:
        click.echo(f"Login failed: {e.message}", err=True)
        sys.exit(1)

    user = context.guard.user
    click.echo(f"Signed in as {user.username} ({user.role.value})")


@cli.command()
def logout() -> None:
    """Forget the stored session."""
    context = _context()
    context.guard.logout()
    click.echo("Signed out")


@cli.command()
@click.option(
    "--format",
    "output_format",
    default="text",
    type=click.Choice(["text", "json"]),
    help="Output format.",
)
def status(output_format: str) -> None:
    """Show who is signed in and until when."""
    context = _context()
    guard = context.guard
    session = guard.session

    if output_format == "json":
        click.echo(json.dumps({
            "authenticated": guard.is_authenticated,
            "isAdmin": guard.is_admin,
            "user": guard.user.model_dump(mode="json") if guard.user else None,
            "expiry": session.expiry.isoformat() if session and session.expiry else None,
            "dataSource": context.settings.data_source,
        }, indent=2))
        return

    if not guard.is_authenticated:
        click.echo("Not signed in")
        return
    click.echo(f"Signed in as {guard.user.username} ({guard.user.role.value})")
    if session.expiry:
        click.echo(f"Session expires at {session.expiry.isoformat()}")


# ---------------------------------------------------------------------------
# Equipment
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--search", default=None, help="Match name, serial number, maker, model or location.")
@click.option("--type", "equipment_type", default=None, type=click.Choice([t.value for t in EquipmentType]))
@click.option("--status", "equipment_status", default=None, type=click.Choice([s.value for s in EquipmentStatus]))
@click.option("--assigned-to", default=None, help="User id (admins only).")
@click.option("--page", default=1, help="Page number.")
@click.option(
    "--format",
    "output_format",
    default="table",
    type=click.Choice(["table", "json"]),
    help="Output format.",
)
def equipments(
    search: str | None,
    equipment_type: str | None,
    equipment_status: str | None,
    assigned_to: str | None,
    page: int,
    output_format: str,
) -> None:
    """List equipment visible to the signed-in user."""
    context = _context()
    if not context.guard.is_authenticated:
        click.echo("Not signed in. Run: inventory login", err=True)
        sys.exit(1)

    controller = context.equipment_list
    controller.filters.update(
        search=search,
        type=equipment_type,
        status=equipment_status,
        assigned_to=assigned_to,
    )
    _run(context, controller.go_to_page(page))

    if controller.session_expired:
        click.echo(controller.error, err=True)
        sys.exit(1)
    if controller.error:
        click.echo(f"Error: {controller.error}", err=True)
        sys.exit(1)

    if output_format == "json":
        click.echo(json.dumps(controller.snapshot(), indent=2, ensure_ascii=False))
        return

    if controller.is_empty:
        click.echo("No equipment matches these filters")
        return

    click.echo(f"{'NAME':<24} {'TYPE':<12} {'STATUS':<15} {'SERIAL':<16} ASSIGNED TO")
    click.echo("-" * 84)
    for item in controller.items:
        assignee = item.assigned_to.label if item.assigned_to else "-"
        click.echo(
            f"{item.name[:24]:<24} {item.type.value:<12} {item.status.value:<15} "
            f"{item.serial_number[:16]:<16} {assignee}"
        )
    click.echo(
        f"\nPage {controller.current_page}/{controller.total_pages} "
        f"({controller.total_count} items)"
    )
