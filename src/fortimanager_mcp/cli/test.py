"""
FortiManager MCP Server - Test Connection Command

Test login to FortiManager.
"""

import typer

from ..core.client import FortiManagerClient
from ..core.config_loader import ConfigLoader
from ..core.exceptions import (
    ConfigurationError,
    FortiManagerError,
    NetworkError,
    RpcError,
)
from ..shared.error_handlers import describe_rpc_failure


def test_command(
    profile: str = typer.Option("default", "--profile", "-p", help="Profile name to test")
):
    """
    Test login to FortiManager.

    Examples:
        # Test default profile
        fortimanager-mcp test-connection

        # Test specific profile
        fortimanager-mcp test-connection --profile production
    """
    typer.echo("\n🔍 Testing FortiManager Connection\n")
    typer.echo(f"Profile: {typer.style(profile, fg=typer.colors.CYAN, bold=True)}\n")

    try:
        typer.echo("📡 Loading credentials...")
        config = ConfigLoader.load(profile)

        typer.echo(f"URL: {config.url}")
        typer.echo(f"User: {config.user}")
        typer.echo(f"SSL Verification: {'Enabled' if config.verify_ssl else 'Disabled'}\n")

        typer.echo("🔌 Logging into FortiManager...")
        result = _test_connection(config)

        if result["success"]:
            typer.echo(
                f"\n✅ {typer.style('Login successful!', fg=typer.colors.GREEN, bold=True)}"
            )

            status = result.get("sys_status")
            if isinstance(status, dict):
                typer.echo("\n📊 System Information:")
                if "Hostname" in status:
                    typer.echo(f"   Hostname: {status['Hostname']}")
                if "Version" in status:
                    typer.echo(f"   Version: {status['Version']}")

            adoms = result.get("adoms") or []
            typer.echo(f"\n🗂️  ADOMs: {', '.join(adoms) if adoms else 'none'}")
            if config.adom not in adoms:
                typer.echo(f"⚠️  Configured ADOM '{config.adom}' was not found on the server")

            typer.echo("\n✓ Your FortiManager connection is properly configured")

        else:
            typer.echo(f"\n❌ {typer.style('Connection failed', fg=typer.colors.RED, bold=True)}")
            typer.echo(f"\nError: {result.get('error', 'Unknown error')}")
            typer.echo("\n💡 Troubleshooting tips:")
            typer.echo("   • Verify the URL is correct and accessible")
            typer.echo("   • Check the user and password are valid")
            typer.echo("   • Ensure the admin profile allows JSON API read-write access")
            typer.echo("   • Try with --no-verify-ssl if using self-signed certificate")
            raise typer.Exit(1)

    except typer.Exit:
        raise

    except ConfigurationError as e:
        typer.echo(f"❌ Configuration error: {e}", err=True)
        typer.echo("\n💡 Run 'fortimanager-mcp setup' to configure credentials")
        raise typer.Exit(1)

    except Exception as e:
        typer.echo(f"❌ Unexpected error: {e}", err=True)
        raise typer.Exit(1)


def _test_connection(config):
    """
    Log in, read system status and ADOMs, then log out.

    Args:
        config: FortiManager configuration

    Returns:
        Dictionary with test results
    """
    client = None
    try:
        client = FortiManagerClient(config)
        client.login()
        status = client.get_sys_status()
        return {"success": True, "sys_status": status, "adoms": client.adoms}

    except RpcError as e:
        return {"success": False, "error": describe_rpc_failure(e)}

    except NetworkError as e:
        return {"success": False, "error": f"Network error: {e!s}"}

    except FortiManagerError as e:
        return {"success": False, "error": str(e)}

    finally:
        if client:
            try:
                if client.is_authenticated:
                    client.logout()
            except FortiManagerError as e:
                typer.echo(f"⚠️  Logout failed: {e}", err=True)
            finally:
                client.close()
