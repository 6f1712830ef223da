"""CLI for SpongeWallet - log in and manage locally stored agent credentials."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Optional

import typer
from rich.console import Console

from .config import BASE_URL_ENV, DEFAULT_BASE_URL
from .credentials import delete_credentials, get_credentials_path, load_credentials
from .device_flow import device_flow_auth
from .exceptions import SpongeError
from .mcp import run_stdio_server
from .version import __version__

app = typer.Typer(
    name="spongewallet",
    help="SpongeWallet - CLI for managing agent wallets.",
    add_completion=False,
    pretty_exceptions_enable=False,
    context_settings={"help_option_names": ["-h", "--help"]},
    epilog="Set SPONGE_API_KEY to skip login. Docs: https://docs.spongewallet.com",
)
console = Console()
err_console = Console(stderr=True)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"spongewallet v{__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def cli(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Show version number",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """SpongeWallet - CLI for managing agent wallets."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


# ------------------------------------------------------------------
# login / logout / whoami
# ------------------------------------------------------------------


@app.command()
def login(
    testnet: bool = typer.Option(False, "--testnet", "-t", help="Use testnets only"),
    no_browser: bool = typer.Option(False, "--no-browser", help="Don't auto-open browser"),
    base_url: Optional[str] = typer.Option(None, "--base-url", metavar="URL", help="Use custom API URL"),
    master: bool = typer.Option(False, "--master", help="Generate a master key for creating agents"),
) -> None:
    """Authenticate with SpongeWallet (opens browser)."""
    url = base_url or os.environ.get(BASE_URL_ENV) or DEFAULT_BASE_URL
    try:
        asyncio.run(
            device_flow_auth(
                base_url=url,
                no_browser=no_browser,
                testnet=testnet or None,
                key_type="master" if master else None,
            )
        )
    except SpongeError as e:
        err_console.print(f"[red]Login failed:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def logout() -> None:
    """Remove stored credentials."""
    if not delete_credentials():
        console.print("Not logged in.")
        return

    console.print("Logged out successfully.")
    console.print(f"Removed credentials from {get_credentials_path()}")


@app.command()
def whoami() -> None:
    """Show current authentication status."""
    credentials = load_credentials()
    if credentials is None:
        console.print("Not logged in.")
        console.print("Run `spongewallet login` to authenticate.")
        return

    console.print("Logged in as:")
    console.print(f"  Agent ID: {credentials.agent_id}")
    if credentials.agent_name:
        console.print(f"  Agent Name: {credentials.agent_name}")
    console.print(f"  API Key: {credentials.api_key[:20]}...")
    if credentials.testnet:
        console.print("  Mode: Testnet only")
    if credentials.base_url:
        console.print(f"  API URL: {credentials.base_url}")
    console.print(f"  Credentials: {get_credentials_path()}")


# ------------------------------------------------------------------
# mcp
# ------------------------------------------------------------------


@app.command()
def mcp(
    base_url: Optional[str] = typer.Option(None, "--base-url", metavar="URL", help="Use custom API URL"),
) -> None:
    """Serve the wallet tools to an MCP client over stdio."""
    try:
        asyncio.run(run_stdio_server(base_url=base_url))
    except SpongeError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


# ------------------------------------------------------------------
# version / help
# ------------------------------------------------------------------


@app.command()
def version() -> None:
    """Show version number."""
    console.print(f"spongewallet v{__version__}")


@app.command("help")
def help_(ctx: typer.Context) -> None:
    """Show this help message."""
    typer.echo(ctx.parent.get_help() if ctx.parent else ctx.get_help())


def main() -> None:
    """Console script entry point. Unhandled errors exit 1 without a traceback."""
    try:
        app()
    except Exception as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)
