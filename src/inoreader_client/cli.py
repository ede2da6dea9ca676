"""Inoreader client CLI - Main entry point."""

import asyncio
import json
from dataclasses import asdict

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import InoreaderSettings
from .errors import InoreaderError

app = typer.Typer(
    name="inoreader",
    help="Inoreader API client - authorization and label tools",
    no_args_is_help=True,
)
console = Console()

auth_app = typer.Typer(help="Authentication commands")
app.add_typer(auth_app, name="auth")


# ============================================================================
# Auth Commands
# ============================================================================


@auth_app.command("login")
def auth_login():
    """Authorize with Inoreader and save the tokens.

    Uses password login when INOREADER_USER_EMAIL and INOREADER_USER_PASSWORD
    are set, otherwise opens the browser for OAuth consent.
    """
    from .auth import TokenManager

    settings = InoreaderSettings()

    try:
        manager = TokenManager.from_settings(settings)
        if not settings.password_configured:
            console.print("[dim]Opening browser for Inoreader consent...[/dim]")
        asyncio.run(manager.get_valid_token())
    except KeyboardInterrupt:
        console.print("\n[yellow]Login cancelled[/yellow]")
        raise typer.Exit(1)
    except InoreaderError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[green]Authorized.[/green]\n\nTokens saved to {settings.token_path}",
            title="Authentication",
        )
    )


@auth_app.command("status")
def auth_status():
    """Check stored token state without contacting Inoreader."""
    from .oauth import FileTokenStore

    settings = InoreaderSettings()
    status = FileTokenStore(settings.token_path).get_status()

    table = Table(title="Inoreader Authentication Status")
    table.add_column("Setting", style="cyan")
    table.add_column("Status", style="green")

    table.add_row("App ID", settings.app_id if settings.app_configured else "[red]Not set[/red]")
    table.add_row("Login method", "Password" if settings.password_configured else "OAuth")
    table.add_row("Token directory", status["config_dir"])

    oauth_info = status.get("oauth_token")
    if oauth_info:
        expires_in = oauth_info["expires_in_seconds"]
        if expires_in is None:
            expiry_str = "[dim]unknown[/dim]"
        elif expires_in > 3600:
            expiry_str = f"{expires_in // 3600}h {(expires_in % 3600) // 60}m"
        elif expires_in > 0:
            expiry_str = f"[yellow]{expires_in // 60}m[/yellow]"
        else:
            expiry_str = "[red]Expired[/red] (will auto-refresh)"
        table.add_row("OAuth token", expiry_str)
        table.add_row("Refresh token", "Yes" if oauth_info["has_refresh_token"] else "[yellow]No[/yellow]")
    else:
        table.add_row("OAuth token", "[dim]None[/dim]")

    table.add_row("Password token", "Yes" if status["password_token"] else "[dim]None[/dim]")

    console.print(table)


@auth_app.command("logout")
def auth_logout():
    """Delete stored tokens."""
    from .oauth import FileTokenStore

    settings = InoreaderSettings()
    FileTokenStore(settings.token_path).clear()
    console.print("[green]Stored tokens deleted.[/green]")


# ============================================================================
# Label Commands
# ============================================================================


@app.command("labels")
def labels(json_output: bool = typer.Option(False, "--json", help="Output JSON")):
    """List folders and tags with unread counts."""
    from .api import ActiveSearchState, FolderState, InoreaderClient, TagState

    async def _list():
        async with InoreaderClient(settings=InoreaderSettings()) as ino:
            return await ino.list_label_states()

    try:
        states = asyncio.run(_list())
    except InoreaderError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    states = [state for state in states if isinstance(state, (FolderState, TagState))]

    if json_output:
        console.print_json(
            json.dumps([{"type": type(state).__name__, "name": state.name, **asdict(state)} for state in states])
        )
        return

    table = Table(title="Folders and Tags")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Unread", justify="right")

    for state in states:
        if isinstance(state, FolderState):
            kind = "Folder"
        elif isinstance(state, ActiveSearchState):
            kind = "Active search"
        else:
            kind = "Tag"
        unread = "" if state.unread_count is None else str(state.unread_count)
        table.add_row(state.name, kind, unread)

    console.print(table)


# ============================================================================
# Main
# ============================================================================


@app.command()
def version():
    """Show version information."""
    from . import __version__

    console.print(f"inoreader-client v{__version__}")


if __name__ == "__main__":
    app()
