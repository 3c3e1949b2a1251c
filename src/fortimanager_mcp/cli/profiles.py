"""
FortiManager MCP Server - Profile Commands

List and delete stored FortiManager credential profiles.
"""

import os

import typer

from ..core.config_loader import ConfigLoader
from ..core.exceptions import ConfigurationError


def _describe(profile: str) -> str:
    info = ConfigLoader.get_profile_info(profile)
    flags = []
    if not info["verify_ssl"]:
        flags.append("no-verify-ssl")
    if not info["verbose"]:
        flags.append("numeric-enums")
    suffix = f" [{', '.join(flags)}]" if flags else ""
    return f"{info['user']}@{info['url']} (ADOM {info['adom']}){suffix}"


def list_command(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show URL, user and ADOM for each profile"
    )
):
    """
    List all configured FortiManager profiles.

    Examples:
        fortimanager-mcp list-profiles
        fortimanager-mcp list-profiles --verbose
    """
    try:
        profiles = ConfigLoader.list_profiles()
    except Exception as e:
        typer.echo(f"❌ Error listing profiles: {e}", err=True)
        raise typer.Exit(1)

    if os.getenv("FORTIMANAGER_URL"):
        typer.echo("ℹ️  FORTIMANAGER_* environment variables are set and take precedence over profiles")

    if not profiles:
        typer.echo("No profiles configured yet")
        typer.echo("💡 Run 'fortimanager-mcp setup' to configure your first profile")
        return

    typer.echo(f"Found {len(profiles)} profile(s) in {ConfigLoader.DEFAULT_CONFIG_FILE}:\n")

    for profile in profiles:
        name = typer.style(profile, fg=typer.colors.CYAN, bold=True)
        if not verbose:
            typer.echo(f"  • {name}")
            continue
        try:
            typer.echo(f"  • {name}: {_describe(profile)}")
        except (ConfigurationError, KeyError) as e:
            typer.echo(f"  • {name}: unreadable profile ({e})")


def delete_command(
    profile: str = typer.Argument(..., help="Profile name to delete"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation prompt"),
):
    """
    Delete a credential profile.

    Examples:
        fortimanager-mcp delete-profile lab
        fortimanager-mcp delete-profile lab --force
    """
    try:
        profiles = ConfigLoader.list_profiles()
    except Exception as e:
        typer.echo(f"❌ Error reading profiles: {e}", err=True)
        raise typer.Exit(1)

    if profile not in profiles:
        typer.echo(f"❌ Profile '{profile}' not found", err=True)
        typer.echo(f"Available profiles: {', '.join(profiles) if profiles else 'none'}")
        raise typer.Exit(1)

    if not force and not typer.confirm(f"Delete profile '{profile}'?", default=False):
        typer.echo("Operation cancelled")
        raise typer.Exit(0)

    try:
        ConfigLoader.delete_profile(profile)
    except ConfigurationError as e:
        typer.echo(f"❌ Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✅ Profile '{profile}' deleted")
