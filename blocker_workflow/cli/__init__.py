"""
Command Line Interface for the blocker workflow.
"""

from typing import Optional

import typer
import uvicorn
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import get_settings
from ..workflow.enums import Role, Status
from ..workflow.permissions import ROLE_HIERARCHY, is_at_least, rank_of
from ..workflow.status_table import ACTION_CAPABILITIES, STATUS_TABLE, next_statuses

app = typer.Typer(help="Blocker Workflow - construction blocker review and verification")
console = Console()


@app.command()
def statuses():
    """Show the blocker status table."""
    table = Table(title="Blocker Statuses", show_header=True, header_style="bold magenta")
    table.add_column("Status", style="cyan")
    table.add_column("Label")
    table.add_column("Actions", style="yellow")
    table.add_column("Next", style="green")
    table.add_column("Description")

    for definition in STATUS_TABLE.values():
        actions = ", ".join(a.value for a in definition.allowed_actions) or "-"
        targets = ", ".join(s.value for s in next_statuses(definition.status)) or "terminal"
        table.add_row(
            f"[{definition.color}]●[/] {definition.status.value}",
            definition.label,
            actions,
            targets,
            definition.description,
        )

    console.print(table)


@app.command()
def roles():
    """Show the role hierarchy and which capabilities each role holds."""
    table = Table(title="Role Hierarchy", show_header=True, header_style="bold cyan")
    table.add_column("Rank", style="blue", justify="right")
    table.add_column("Role", style="yellow")
    table.add_column("Manages blockers", justify="center")

    for role in ROLE_HIERARCHY:
        manages = "✅" if is_at_least(role, Role.MAIN_CONTRACTOR) else "-"
        table.add_row(str(rank_of(role)), role.value, manages)

    console.print(table)


@app.command()
def actions(
    status: Status = typer.Argument(..., help="Blocker status"),
):
    """List the actions allowed from a status and the capability each needs."""
    definition = STATUS_TABLE[status]
    if definition.is_terminal:
        console.print(f"'{status.value}' is terminal: no actions")
        return

    table = Table(title=f"Actions from {definition.label}", header_style="bold cyan")
    table.add_column("Action", style="yellow")
    table.add_column("Capability", style="magenta")
    for action in definition.allowed_actions:
        table.add_row(action.value, ACTION_CAPABILITIES[action].value)
    console.print(table)


@app.command()
def init_db(
    database_url: Optional[str] = typer.Option(None, help="Override DATABASE_URL"),
):
    """Create all database tables."""
    from ..db.base import create_db_engine, get_database_url, init_database

    engine = create_db_engine(get_database_url(database_url)) if database_url else None
    init_database(engine)
    console.print("✅ Database initialized")


@app.command()
def serve(
    port: Optional[int] = typer.Option(None, help="Port to run the API server on"),
    host: Optional[str] = typer.Option(None, help="Host to bind the server to"),
    reload: bool = typer.Option(False, help="Reload on code changes (development)"),
):
    """Run the HTTP API."""
    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    rprint(Panel.fit(f"🏗️ Starting {settings.app_name} on http://{host}:{port}", style="bold blue"))
    uvicorn.run("blocker_workflow.api:app", host=host, port=port, reload=reload)


@app.command()
def version():
    """Show version information."""
    from .. import __version__

    rprint(Panel.fit(f"Blocker Workflow v{__version__}", style="bold green"))


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
