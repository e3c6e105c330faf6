"""``planmode login`` and ``planmode registry add`` -- edit ~/.planmode/config.

Usage::

    planmode login --token ghp_xxx
    planmode registry add acme github.com/acme/planmode-registry
"""

from __future__ import annotations

import click

from planmode.cli.common import handle_errors
from planmode.cli.output import console
from planmode.config import add_registry, config_path, set_github_token
from planmode.registry.github import raw_url


@click.command("login")
@click.option(
    "--token",
    prompt="GitHub personal access token",
    hide_input=True,
    help="GitHub token sent with registry requests.",
)
@handle_errors
def login_command(token: str) -> None:
    """Store a GitHub token for private registries and rate limits."""
    token = token.strip()
    if not token:
        raise click.BadParameter("No token provided.", param_hint="--token")
    set_github_token(token)
    console.print(f"[green]✓[/green] Token saved to {config_path()}")


@click.group("registry")
def registry_group() -> None:
    """Manage scoped package registries."""


@registry_group.command("add")
@click.argument("scope")
@click.argument("url")
@handle_errors
def registry_add_command(scope: str, url: str) -> None:
    """Serve @SCOPE/* packages from the registry at URL (github.com/org/repo)."""
    scope = scope.lstrip("@")
    raw_url(url, "main", "index.json")
    add_registry(scope, url)
    console.print(f"[green]✓[/green] Registry for @{scope} set to {url}")
