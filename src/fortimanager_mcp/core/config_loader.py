"""
FortiManager MCP Server - Secure Configuration Loader

Login credentials for FortiManager come from, in order: FORTIMANAGER_*
environment variables, a named profile in ~/.fortimanager-mcp/config.json,
or the keyring entry the MCP server stores after each successful connection.
The password is never logged and never returned by the profile listing helpers.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional, Dict, Any, List
import keyring

from .models import FortiManagerConfig
from .exceptions import ConfigurationError
from ..shared.constants import DEFAULT_ADOM

logger = logging.getLogger("fortimanager-mcp")

TRUE_VALUES = ("true", "1", "yes")

# Environment variable -> (config field, default when unset)
ENV_OPTIONAL = {
    "FORTIMANAGER_ADOM": ("adom", DEFAULT_ADOM),
    "FORTIMANAGER_VERIFY_SSL": ("verify_ssl", "true"),
    "FORTIMANAGER_VERBOSE": ("verbose", "true"),
    "FORTIMANAGER_TIMEOUT": ("timeout", "30"),
}

# Profile fields shown by list-profiles, never including passwd
PUBLIC_FIELDS = ("url", "user", "adom", "verify_ssl", "verbose")


def _profile_to_dict(config: FortiManagerConfig) -> Dict[str, Any]:
    return config.model_dump(include={"url", "user", "passwd", *PUBLIC_FIELDS, "timeout"})


def _profile_from_dict(data: Dict[str, Any]) -> FortiManagerConfig:
    # url, user and passwd are mandatory in stored profiles, the rest default
    return FortiManagerConfig(
        url=data["url"],
        user=data["user"],
        passwd=data["passwd"],
        **{key: data[key] for key in ("adom", "verify_ssl", "verbose", "timeout") if key in data},
    )


class ConfigLoader:
    """
    Resolves FortiManager credentials for a profile.

    Sources, highest priority first:
    1. FORTIMANAGER_URL / FORTIMANAGER_USER / FORTIMANAGER_PASSWORD
       (plus optional FORTIMANAGER_ADOM, _VERIFY_SSL, _VERBOSE, _TIMEOUT)
    2. A profile in ~/.fortimanager-mcp/config.json, kept at mode 0600
    3. The keyring copy ServerState stores after a successful login
    """

    DEFAULT_CONFIG_DIR = Path.home() / ".fortimanager-mcp"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"
    REQUIRED_FILE_PERMISSIONS = 0o600
    KEYRING_SERVICE_NAME = "fortimanager-mcp-server"

    @classmethod
    def load(cls, profile: str = "default") -> FortiManagerConfig:
        """
        Load FortiManager configuration for the specified profile.

        Args:
            profile: Profile name to load (default: "default")

        Returns:
            FortiManagerConfig object with credentials

        Raises:
            ConfigurationError: If no credentials found or configuration invalid
        """
        logger.debug(f"Loading configuration for profile: {profile}")

        config = cls._load_from_env()
        if config:
            logger.info("Loaded configuration from environment variables")
            return config

        config = cls._load_from_config_file(profile)
        if config:
            logger.info(f"Loaded configuration for profile '{profile}' from config file")
            return config

        config = cls._load_from_keyring(profile)
        if config:
            logger.warning(
                f"Loaded profile '{profile}' from the keyring fallback. "
                f"Run 'fortimanager-mcp setup --profile {profile}' to store it in the config file"
            )
            return config

        raise ConfigurationError(
            f"No credentials found for profile '{profile}'. "
            f"Run 'fortimanager-mcp setup' or set FORTIMANAGER_URL, FORTIMANAGER_USER "
            f"and FORTIMANAGER_PASSWORD"
        )

    @classmethod
    def _load_from_env(cls) -> Optional[FortiManagerConfig]:
        """Build a configuration from FORTIMANAGER_* variables, or None if incomplete."""
        url = os.getenv("FORTIMANAGER_URL")
        user = os.getenv("FORTIMANAGER_USER")
        passwd = os.getenv("FORTIMANAGER_PASSWORD")

        if not (url and user and passwd):
            return None

        options = {
            field: os.getenv(name, default)
            for name, (field, default) in ENV_OPTIONAL.items()
        }
        try:
            return FortiManagerConfig(
                url=url,
                user=user,
                passwd=passwd,
                adom=options["adom"],
                verify_ssl=options["verify_ssl"].lower() in TRUE_VALUES,
                verbose=options["verbose"].lower() in TRUE_VALUES,
                timeout=float(options["timeout"]),
            )
        except ValueError as e:
            # pydantic's ValidationError is a ValueError too
            logger.error(f"Invalid FORTIMANAGER_* environment variables: {e}")
            raise ConfigurationError(f"Invalid credentials in environment variables: {e}")

    @classmethod
    def _load_from_config_file(cls, profile: str) -> Optional[FortiManagerConfig]:
        """Load a profile from the config file, or None if file or profile is absent."""
        if not cls.DEFAULT_CONFIG_FILE.exists():
            logger.debug(f"Config file not found: {cls.DEFAULT_CONFIG_FILE}")
            return None

        profiles = cls._read_config_file()
        if profile not in profiles:
            logger.debug(f"Profile '{profile}' not found in config file")
            return None

        try:
            return _profile_from_dict(profiles[profile])
        except KeyError as e:
            logger.error(f"Profile '{profile}' lacks required field {e}")
            raise ConfigurationError(f"Missing required field in config file: {e}")
        except ValueError as e:
            logger.error(f"Profile '{profile}' is invalid: {e}")
            raise ConfigurationError(f"Invalid profile '{profile}' in config file: {e}")

    @classmethod
    def _load_from_keyring(cls, profile: str) -> Optional[FortiManagerConfig]:
        """Load the credentials ServerState stored in the keyring; any failure means none."""
        try:
            credentials = keyring.get_credential(cls.KEYRING_SERVICE_NAME, None)
            if not credentials:
                return None

            return _profile_from_dict(json.loads(credentials.password))
        except Exception as e:
            logger.debug(f"Could not load from keyring: {e}")
            return None

    @classmethod
    def _read_config_file(cls) -> Dict[str, Any]:
        config_file = cls.DEFAULT_CONFIG_FILE
        cls._verify_file_permissions(config_file)
        try:
            with open(config_file, 'r') as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in config file: {e}")
            raise ConfigurationError(f"Invalid JSON in config file: {e}")
        except OSError as e:
            logger.error(f"Error reading config file: {e}")
            raise ConfigurationError(f"Error loading config file: {e}")

        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Config file {config_file} must hold a JSON object of profiles")
        return config_data

    @classmethod
    def _require_profile(cls, profile: str) -> Dict[str, Any]:
        if not cls.DEFAULT_CONFIG_FILE.exists():
            raise ConfigurationError(f"Config file not found: {cls.DEFAULT_CONFIG_FILE}")

        profiles = cls._read_config_file()
        if profile not in profiles:
            raise ConfigurationError(f"Profile '{profile}' not found")
        return profiles

    @classmethod
    def _write_config_file(cls, config_data: Dict[str, Any]) -> None:
        config_file = cls.DEFAULT_CONFIG_FILE
        with open(config_file, 'w') as f:
            json.dump(config_data, f, indent=2)
        cls._set_secure_permissions(config_file)

    @classmethod
    def save_profile(cls, profile: str, config: FortiManagerConfig) -> None:
        """
        Store a profile, replacing any profile of the same name.

        Args:
            profile: Profile name
            config: FortiManager configuration to save
        """
        config_file = cls.DEFAULT_CONFIG_FILE
        config_file.parent.mkdir(parents=True, exist_ok=True)

        profiles = cls._read_config_file() if config_file.exists() else {}
        profiles[profile] = _profile_to_dict(config)
        cls._write_config_file(profiles)

        logger.info(f"Saved profile '{profile}' to config file")

    @classmethod
    def delete_profile(cls, profile: str) -> None:
        """
        Remove a profile from the config file.

        Raises:
            ConfigurationError: If the file or the profile does not exist
        """
        profiles = cls._require_profile(profile)
        del profiles[profile]
        cls._write_config_file(profiles)

        logger.info(f"Deleted profile '{profile}' from config file")

    @classmethod
    def list_profiles(cls) -> List[str]:
        """Return the profile names stored in the config file."""
        if not cls.DEFAULT_CONFIG_FILE.exists():
            return []

        return list(cls._read_config_file())

    @classmethod
    def get_profile_info(cls, profile: str) -> Dict[str, Any]:
        """
        Describe a stored profile without its password.

        Args:
            profile: Profile name

        Returns:
            Dictionary with URL, user, ADOM and transport flags

        Raises:
            ConfigurationError: If the file or the profile does not exist
            KeyError: If the profile lacks url or user
        """
        stored = cls._require_profile(profile)[profile]
        info = {"url": stored["url"], "user": stored["user"]}
        for field in PUBLIC_FIELDS[2:]:
            info[field] = stored.get(field, FortiManagerConfig.model_fields[field].default)
        return info

    @classmethod
    def _set_secure_permissions(cls, file_path: Path) -> None:
        """Restrict the file to its owner (0600)."""
        try:
            os.chmod(file_path, cls.REQUIRED_FILE_PERMISSIONS)
            logger.debug(f"Set secure permissions on {file_path}")
        except OSError as e:
            logger.warning(f"Could not set secure permissions on {file_path}: {e}")

    @classmethod
    def _verify_file_permissions(cls, file_path: Path) -> None:
        """Warn about and fix a config file readable by others."""
        try:
            current_perms = os.stat(file_path).st_mode & 0o777
        except OSError as e:
            logger.debug(f"Could not verify file permissions: {e}")
            return

        if current_perms != cls.REQUIRED_FILE_PERMISSIONS:
            logger.warning(
                f"Config file {file_path} has insecure permissions {oct(current_perms)}. "
                f"Recommended: {oct(cls.REQUIRED_FILE_PERMISSIONS)}"
            )
            cls._set_secure_permissions(file_path)
