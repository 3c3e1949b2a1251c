"""
FortiManager MCP Server - Setup Command

Interactive setup for configuring FortiManager credentials.
"""

import getpass

import typer

from ..core.config_loader import ConfigLoader
from ..core.exceptions import FortiManagerError, RpcError
from ..core.models import FortiManagerConfig
from ..shared.constants import DEFAULT_ADOM
from ..shared.error_handlers import describe_rpc_failure


def setup_command(
    profile: str | None = typer.Option(
        "default", "--profile", "-p", help="Profile name (default, production, lab, etc.)"
    ),
    url: str | None = typer.Option(None, "--url", help="FortiManager URL (e.g., https://fmg.example.com)"),
    user: str | None = typer.Option(None, "--user", help="FortiManager admin user"),
    password: str | None = typer.Option(None, "--password", help="FortiManager admin password"),
    adom: str = typer.Option(DEFAULT_ADOM, "--adom", help="ADOM used by object tools"),
    verify_ssl: bool = typer.Option(
        True, "--verify-ssl/--no-verify-ssl", help="Verify SSL certificates"
    ),
    verbose: bool = typer.Option(
        True, "--verbose/--no-verbose", help="Request symbolic enum values from the server"
    ),
    interactive: bool = typer.Option(
        True, "--interactive/--non-interactive", help="Interactive mode with prompts"
    ),
):
    """
    Configure FortiManager connection credentials.

    Examples:
        # Interactive setup
        fortimanager-mcp setup

        # Non-interactive setup
        fortimanager-mcp setup --url https://fmg.example.com --user api --password SECRET --non-interactive

        # Setup production profile
        fortimanager-mcp setup --profile production
    """
    typer.echo("\n🔧 FortiManager MCP Server - Credential Setup\n")
    typer.echo(f"Profile: {typer.style(profile, fg=typer.colors.CYAN, bold=True)}\n")

    if interactive:
        if not url:
            url = typer.prompt("FortiManager URL (e.g., https://fmg.example.com)")

        if not user:
            user = typer.prompt("User")

        if not password:
            password = getpass.getpass("Password (hidden): ")

        adom = typer.prompt("ADOM", default=adom)

        if not typer.confirm("Verify SSL certificates?", default=True):
            verify_ssl = False

    elif not all([url, user, password]):
        typer.echo(
            "❌ Error: In non-interactive mode, all parameters (--url, --user, --password) are required",
            err=True,
        )
        raise typer.Exit(1)

    try:
        config = FortiManagerConfig(
            url=url,
            user=user,
            passwd=password,
            adom=adom,
            verify_ssl=verify_ssl,
            verbose=verbose,
        )
    except Exception as e:
        typer.echo(f"❌ Invalid configuration: {e}", err=True)
        raise typer.Exit(1)

    typer.echo("\n🔍 Testing login...")
    if not _test_connection(config):
        typer.echo("\n⚠️  Login test failed. Save anyway?", err=True)
        if not typer.confirm("Continue with save?", default=False):
            typer.echo("Setup cancelled")
            raise typer.Exit(0)

    try:
        ConfigLoader.save_profile(profile, config)
        typer.echo(f"\n✅ Profile '{profile}' saved successfully!")
        typer.echo(f"\n📍 Config location: {ConfigLoader.DEFAULT_CONFIG_FILE}")
        typer.echo("🔒 File permissions: 0600 (owner read/write only)")

        typer.echo("\n📖 Usage:")
        typer.echo(
            f'   • In your MCP client, say: "Configure FortiManager connection using profile {profile}"'
        )
        typer.echo(f"   • Test connection: fortimanager-mcp test-connection --profile {profile}")
        typer.echo("   • List profiles: fortimanager-mcp list-profiles")

    except Exception as e:
        typer.echo(f"\n❌ Error saving profile: {e}", err=True)
        raise typer.Exit(1)


def _test_connection(config: FortiManagerConfig) -> bool:
    """
    Log in and out once to check the credentials.

    A failed logout is reported but does not fail the check.

    Args:
        config: FortiManager configuration

    Returns:
        True if login succeeded, False otherwise
    """
    from ..core.client import FortiManagerClient

    client = None
    try:
        try:
            client = FortiManagerClient(config)
            client.login()
        except RpcError as e:
            typer.echo(f"⚠️  {describe_rpc_failure(e)}")
            return False
        except Exception as e:
            typer.echo(f"⚠️  Login failed: {e}")
            return False

        if config.adom not in client.adoms:
            typer.echo(
                f"⚠️  ADOM '{config.adom}' not found on the server. "
                f"Available: {', '.join(client.adoms) or 'none'}"
            )
        typer.echo("✅ Login successful!")
        return True

    finally:
        if client:
            try:
                # login may hold a token even when it raised after /sys/login/user
                if client.is_authenticated:
                    client.logout()
            except FortiManagerError as e:
                typer.echo(f"⚠️  Logout failed: {e}")
            finally:
                client.close()
