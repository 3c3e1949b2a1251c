"""
FortiManager MCP Server - Server State Management

This module provides server state management with proper lifecycle handling.

The FortiManager session is stateful and serves one call at a time, so every
client call made by a tool goes through ``ServerState.call``, which holds a lock
for the duration of the blocking call and runs it in a worker thread.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable

import keyring

from .client import FortiManagerClient
from .exceptions import ConfigurationError, FortiManagerError
from .models import FortiManagerConfig

logger = logging.getLogger("fortimanager-mcp")


@dataclass
class ServerState:
    """Managed server state with proper lifecycle."""

    config: FortiManagerConfig | None = None
    client: FortiManagerClient | None = None
    session_created: datetime | None = None
    session_ttl: timedelta = timedelta(hours=1)  # 1 hour session timeout
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    _current_profile: str | None = None  # Track which profile is loaded

    async def initialize(self, config: FortiManagerConfig):
        """Initialize server state by logging into FortiManager.

        Args:
            config: FortiManager connection configuration

        Raises:
            MissingCredentialsError: If the configuration carries no credentials
            FortiManagerError: If login fails
        """
        await self.cleanup()

        client = FortiManagerClient(config)
        try:
            await self.call(client.login)
        except Exception:
            # login holds a token once /sys/login/user succeeded, even if loading ADOMs failed
            await self._discard(client)
            raise

        try:
            await self._store_credentials(config)
        except Exception as e:
            logger.warning(f"Could not store credentials securely: {e}. Using in-memory storage.")

        self.config = config
        self.client = client
        self.session_created = datetime.now()

        logger.info(
            f"FortiManager connection initialized successfully "
            f"(ADOM '{client.adom}', {len(client.adoms)} ADOM(s) available)"
        )

    async def _store_credentials(self, config: FortiManagerConfig):
        """Store credentials securely using keyring.

        Args:
            config: FortiManager connection configuration
        """
        service_name = "fortimanager-mcp-server"
        username = f"{config.url}-{config.user}"

        credentials = {
            "url": config.url,
            "user": config.user,
            "passwd": config.passwd,
            "adom": config.adom,
            "verify_ssl": config.verify_ssl,
            "verbose": config.verbose,
            "timeout": config.timeout,
        }

        keyring.set_password(service_name, username, json.dumps(credentials))
        logger.debug("Credentials stored securely")

    def _config_changed(self, new_config: FortiManagerConfig, old_config: FortiManagerConfig) -> bool:
        """
        Detect if credentials have changed between configs.

        Args:
            new_config: New configuration to compare
            old_config: Current configuration

        Returns:
            True if credentials changed, False otherwise

        Notes:
            Compares URL, user and password to detect rotation.
            Changes to transport flags or the ADOM don't trigger reinitialization.
        """
        return (
            new_config.url != old_config.url
            or new_config.user != old_config.user
            or new_config.passwd != old_config.passwd
        )

    async def call(self, func: Callable[..., Any], *args, **kwargs) -> Any:
        """Run a blocking client call while holding the session lock.

        Args:
            func: Client method (or any callable) to run
            *args: Positional arguments to pass to func
            **kwargs: Keyword arguments to pass to func

        Returns:
            Whatever func returns
        """
        async with self.lock:
            return await asyncio.to_thread(func, *args, **kwargs)

    async def get_client(self) -> FortiManagerClient:
        """Get FortiManager client with session validation and credential rotation detection.

        Returns:
            Logged-in FortiManager client

        Raises:
            ConfigurationError: If client is not configured

        Notes:
            Automatically detects and handles:
            - Session expiry (1 hour default)
            - Credential rotation (config file changes)
        """
        if not self.config or not self.client:
            raise ConfigurationError(
                "FortiManager client not configured. Use configure_fortimanager_connection first."
            )

        if self.session_created and datetime.now() - self.session_created > self.session_ttl:
            logger.info("Session expired, logging in again...")
            await self.initialize(self.config)

        if self._current_profile:
            try:
                from .config_loader import ConfigLoader

                current_config = ConfigLoader.load(self._current_profile)

                if self._config_changed(current_config, self.config):
                    logger.info(
                        f"Credentials changed for profile '{self._current_profile}', reinitializing..."
                    )
                    await self.initialize(current_config)
            except ConfigurationError as e:
                logger.debug(f"Could not check for config changes: {e}")

        return self.client

    async def cleanup(self):
        """Log out and release the transport."""
        if self.client:
            client = self.client
            self.client = None
            await self._discard(client)
        self.config = None
        self.session_created = None

    async def _discard(self, client: FortiManagerClient):
        """Log the client out if it holds a session, then close its transport."""
        try:
            if client.is_authenticated:
                await self.call(client.logout)
        except FortiManagerError as e:
            logger.warning(f"Logout of FortiManager session failed: {e}")
        finally:
            client.close()
