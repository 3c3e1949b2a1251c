"""
Tests for FortiManager MCP Server state management.

This module tests the server state lifecycle including login on initialization,
serialized client calls, session expiry, credential rotation and cleanup.
"""

import asyncio
import json
import threading
from datetime import datetime, timedelta
from unittest.mock import Mock, patch

import pytest

from src.fortimanager_mcp.core.client import FortiManagerClient
from src.fortimanager_mcp.core.exceptions import (
    ConfigurationError,
    MissingCredentialsError,
    RpcError,
)
from src.fortimanager_mcp.core.models import FortiManagerConfig
from src.fortimanager_mcp.core.state import ServerState
from tests.fixtures.jsonrpc import error_entry


def make_client_mock(authenticated: bool = True):
    client = Mock(spec=FortiManagerClient)
    client.adom = "root"
    client.adoms = ["root"]
    client.is_authenticated = authenticated
    return client


class TestServerStateBasics:
    """Test ServerState defaults."""

    def test_server_state_creation(self):
        state = ServerState()

        assert state.config is None
        assert state.client is None
        assert state.session_created is None
        assert state.session_ttl == timedelta(hours=1)

    def test_custom_session_ttl(self):
        assert ServerState(session_ttl=timedelta(minutes=5)).session_ttl == timedelta(minutes=5)


class TestInitialize:
    """Test ServerState.initialize."""

    @pytest.mark.asyncio
    async def test_initialize_logs_in(self, fmg_config):
        state = ServerState()
        client = make_client_mock()

        with patch("src.fortimanager_mcp.core.state.FortiManagerClient", return_value=client) as MockClient, \
             patch("src.fortimanager_mcp.core.state.keyring"):
            await state.initialize(fmg_config)

        MockClient.assert_called_once_with(fmg_config)
        client.login.assert_called_once_with()
        assert state.client is client
        assert state.config == fmg_config
        assert isinstance(state.session_created, datetime)

    @pytest.mark.asyncio
    async def test_initialize_stores_credentials(self, fmg_config):
        state = ServerState()

        with patch("src.fortimanager_mcp.core.state.FortiManagerClient", return_value=make_client_mock()), \
             patch("src.fortimanager_mcp.core.state.keyring") as mock_keyring:
            await state.initialize(fmg_config)

        service_name, username, payload = mock_keyring.set_password.call_args[0]
        assert service_name == "fortimanager-mcp-server"
        assert username == f"{fmg_config.url}-{fmg_config.user}"
        stored = json.loads(payload)
        assert stored["user"] == fmg_config.user
        assert stored["passwd"] == fmg_config.passwd
        assert stored["adom"] == "root"

    @pytest.mark.asyncio
    async def test_initialize_survives_keyring_failure(self, fmg_config):
        state = ServerState()

        with patch("src.fortimanager_mcp.core.state.FortiManagerClient", return_value=make_client_mock()), \
             patch("src.fortimanager_mcp.core.state.keyring") as mock_keyring, \
             patch("src.fortimanager_mcp.core.state.logger") as mock_logger:
            mock_keyring.set_password.side_effect = Exception("No keyring backend")

            await state.initialize(fmg_config)

        assert state.config == fmg_config
        mock_logger.warning.assert_called()

    @pytest.mark.asyncio
    async def test_failed_login_leaves_state_empty(self, fmg_config):
        state = ServerState()
        client = make_client_mock(authenticated=False)
        client.login.side_effect = RpcError(-22, "Login fail")

        with patch("src.fortimanager_mcp.core.state.FortiManagerClient", return_value=client), \
             patch("src.fortimanager_mcp.core.state.keyring"):
            with pytest.raises(RpcError):
                await state.initialize(fmg_config)

        client.close.assert_called_once()
        assert state.client is None
        assert state.config is None

    @pytest.mark.asyncio
    async def test_adom_listing_failure_logs_out(self, fmg_config, fmg_mock_transport, http_transport):
        """A login that got a token but failed to list ADOMs does not leave the session open."""
        fmg_mock_transport.routes["/dvmdb/adom"] = error_entry("/dvmdb/adom", -11, "No permission")
        state = ServerState()

        with patch(
            "src.fortimanager_mcp.core.state.FortiManagerClient",
            side_effect=lambda config: FortiManagerClient(config, transport=http_transport),
        ), patch("src.fortimanager_mcp.core.state.keyring") as mock_keyring:
            with pytest.raises(RpcError) as exc_info:
                await state.initialize(fmg_config)

        urls = [envelope["params"][0]["url"] for envelope in fmg_mock_transport.envelopes]
        assert urls == ["/sys/login/user", "/dvmdb/adom", "/sys/logout"]
        assert exc_info.value.url == "/dvmdb/adom"
        mock_keyring.set_password.assert_not_called()
        assert state.client is None

    @pytest.mark.asyncio
    async def test_half_login_keeps_original_error_when_logout_fails(self, fmg_config):
        state = ServerState()
        client = make_client_mock(authenticated=True)
        client.login.side_effect = RpcError(-11, "No permission", url="/dvmdb/adom")
        client.logout.side_effect = RpcError(-6, "Invalid url", url="/sys/logout")

        with patch("src.fortimanager_mcp.core.state.FortiManagerClient", return_value=client), \
             patch("src.fortimanager_mcp.core.state.keyring"):
            with pytest.raises(RpcError) as exc_info:
                await state.initialize(fmg_config)

        assert exc_info.value.url == "/dvmdb/adom"
        client.logout.assert_called_once()
        client.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_missing_credentials_propagate(self):
        state = ServerState()
        client = make_client_mock(authenticated=False)
        client.login.side_effect = MissingCredentialsError()

        with patch("src.fortimanager_mcp.core.state.FortiManagerClient", return_value=client), \
             patch("src.fortimanager_mcp.core.state.keyring"):
            with pytest.raises(MissingCredentialsError):
                await state.initialize(FortiManagerConfig(url="https://fmg.example.com"))

    @pytest.mark.asyncio
    async def test_initialize_replaces_previous_client(self, fmg_config):
        state = ServerState()
        first = make_client_mock()
        second = make_client_mock()

        with patch("src.fortimanager_mcp.core.state.FortiManagerClient", side_effect=[first, second]), \
             patch("src.fortimanager_mcp.core.state.keyring"):
            await state.initialize(fmg_config)
            await state.initialize(fmg_config)

        first.logout.assert_called_once()
        first.close.assert_called_once()
        assert state.client is second


class TestCall:
    """Test ServerState.call."""

    @pytest.mark.asyncio
    async def test_call_runs_in_worker_thread(self):
        state = ServerState()
        main_thread = threading.get_ident()

        result = await state.call(lambda value: (value, threading.get_ident()), 42)

        assert result[0] == 42
        assert result[1] != main_thread

    @pytest.mark.asyncio
    async def test_calls_are_serialized(self):
        """Concurrent tool calls never overlap on the session."""
        state = ServerState()
        active = []
        overlaps = []

        def blocking_call(index):
            active.append(index)
            if len(active) > 1:
                overlaps.append(list(active))
            threading.Event().wait(0.01)
            active.remove(index)
            return index

        results = await asyncio.gather(*(state.call(blocking_call, index) for index in range(5)))

        assert sorted(results) == [0, 1, 2, 3, 4]
        assert overlaps == []

    @pytest.mark.asyncio
    async def test_call_propagates_errors(self):
        state = ServerState()

        def failing():
            raise RpcError(-3, "Object does not exist")

        with pytest.raises(RpcError):
            await state.call(failing)

        assert not state.lock.locked()


class TestGetClient:
    """Test ServerState.get_client."""

    @pytest.mark.asyncio
    async def test_not_configured(self):
        with pytest.raises(ConfigurationError):
            await ServerState().get_client()

    @pytest.mark.asyncio
    async def test_returns_client(self, fmg_config):
        client = make_client_mock()
        state = ServerState(config=fmg_config, client=client, session_created=datetime.now())

        assert await state.get_client() is client

    @pytest.mark.asyncio
    async def test_expired_session_logs_in_again(self, fmg_config):
        old_client = make_client_mock()
        new_client = make_client_mock()
        state = ServerState(
            config=fmg_config,
            client=old_client,
            session_created=datetime.now() - timedelta(hours=2),
        )

        with patch("src.fortimanager_mcp.core.state.FortiManagerClient", return_value=new_client), \
             patch("src.fortimanager_mcp.core.state.keyring"):
            client = await state.get_client()

        assert client is new_client
        old_client.logout.assert_called_once()
        new_client.login.assert_called_once()

    @pytest.mark.asyncio
    async def test_credential_rotation_detected(self, fmg_config):
        state = ServerState(config=fmg_config, client=make_client_mock(), session_created=datetime.now())
        state._current_profile = "default"
        rotated = fmg_config.model_copy(update={"passwd": "rotated-password"})
        new_client = make_client_mock()

        with patch("src.fortimanager_mcp.core.config_loader.ConfigLoader.load", return_value=rotated), \
             patch("src.fortimanager_mcp.core.state.FortiManagerClient", return_value=new_client), \
             patch("src.fortimanager_mcp.core.state.keyring"):
            client = await state.get_client()

        assert client is new_client
        assert state.config.passwd == "rotated-password"

    @pytest.mark.asyncio
    async def test_adom_change_does_not_reinitialize(self, fmg_config):
        client = make_client_mock()
        state = ServerState(config=fmg_config, client=client, session_created=datetime.now())
        state._current_profile = "default"
        changed = fmg_config.model_copy(update={"adom": "corp"})

        with patch("src.fortimanager_mcp.core.config_loader.ConfigLoader.load", return_value=changed):
            assert await state.get_client() is client

        client.login.assert_not_called()

    @pytest.mark.asyncio
    async def test_unreadable_profile_keeps_client(self, fmg_config):
        client = make_client_mock()
        state = ServerState(config=fmg_config, client=client, session_created=datetime.now())
        state._current_profile = "gone"

        with patch(
            "src.fortimanager_mcp.core.config_loader.ConfigLoader.load",
            side_effect=ConfigurationError("No credentials found"),
        ):
            assert await state.get_client() is client


class TestCleanup:
    """Test ServerState.cleanup."""

    @pytest.mark.asyncio
    async def test_cleanup_logs_out_and_closes(self, fmg_config):
        client = make_client_mock()
        state = ServerState(config=fmg_config, client=client, session_created=datetime.now())

        await state.cleanup()

        client.logout.assert_called_once()
        client.close.assert_called_once()
        assert state.client is None
        assert state.config is None
        assert state.session_created is None

    @pytest.mark.asyncio
    async def test_cleanup_survives_logout_failure(self, fmg_config):
        client = make_client_mock()
        client.logout.side_effect = RpcError(-11, "No permission")
        state = ServerState(config=fmg_config, client=client, session_created=datetime.now())

        await state.cleanup()

        client.close.assert_called_once()
        assert state.client is None

    @pytest.mark.asyncio
    async def test_cleanup_skips_logout_when_unauthenticated(self, fmg_config):
        client = make_client_mock(authenticated=False)
        state = ServerState(config=fmg_config, client=client)

        await state.cleanup()

        client.logout.assert_not_called()
        client.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_cleanup_without_client(self):
        state = ServerState()

        await state.cleanup()

        assert state.client is None
