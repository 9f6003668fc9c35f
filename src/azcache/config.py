"""Configuration management module.

Two kinds of configuration feed a workflow run:

- ServicePrincipalConfig: tenant, client id, client secret and subscription,
  read from environment variables only. The secret is never stored in a
  config file and never logged.
- WorkflowSettings: location, resource group prefix and mutation mode, read
  from an optional TOML file (~/.azcache/config.toml) and overridden by
  environment variables.

Security:
- UUID validation for tenant, client and subscription ids
- client_secret rejected when found in a config file
- Path validation for custom config files
"""

import logging
import os
import re
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any
from uuid import UUID

from azcache.log_sanitizer import LogSanitizer
from azcache.models import MutationMode

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = "centralus"
DEFAULT_RESOURCE_GROUP_PREFIX = "RedisRG"

# Primary variable name first, standard Azure SDK name as fallback
CREDENTIAL_ENV_VARS: dict[str, tuple[str, str]] = {
    "tenant_id": ("TENANT_ID", "AZURE_TENANT_ID"),
    "client_id": ("CLIENT_ID", "AZURE_CLIENT_ID"),
    "client_secret": ("CLIENT_SECRET", "AZURE_CLIENT_SECRET"),
    "subscription_id": ("SUBSCRIPTION_ID", "AZURE_SUBSCRIPTION_ID"),
}

LOCATION_PATTERN = re.compile(r"^[a-z0-9]{2,40}$")
PREFIX_PATTERN = re.compile(r"^[A-Za-z0-9][\w\-]{0,49}$")


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


def validate_uuid(value: str, field_name: str) -> None:
    """Validate UUID format. Raises ConfigError if invalid."""
    if not value:
        raise ConfigError(f"{field_name} must be valid UUID format, got empty string")

    try:
        UUID(value)
    except (ValueError, AttributeError) as e:
        raise ConfigError(f"{field_name} must be valid UUID format, got: {value}") from e


def _read_env(names: tuple[str, ...], env: dict[str, str]) -> str | None:
    for name in names:
        value = env.get(name)
        if value and value.strip():
            return value.strip()
    return None


@dataclass(frozen=True)
class ServicePrincipalConfig:
    """Service principal credentials used to build the control-plane client."""

    tenant_id: str
    client_id: str
    client_secret: str = field(repr=False)
    subscription_id: str

    def __post_init__(self):
        validate_uuid(self.tenant_id, "tenant_id")
        validate_uuid(self.client_id, "client_id")
        validate_uuid(self.subscription_id, "subscription_id")
        if not self.client_secret:
            raise ConfigError("client_secret cannot be empty")

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> "ServicePrincipalConfig":
        """Load credentials from environment variables.

        Args:
            env: Environment mapping (defaults to os.environ)

        Returns:
            ServicePrincipalConfig instance

        Raises:
            ConfigError: If a variable is missing or an id is not a UUID
        """
        env = dict(os.environ) if env is None else env
        values: dict[str, str] = {}
        missing: list[str] = []

        for field_name, names in CREDENTIAL_ENV_VARS.items():
            value = _read_env(names, env)
            if value is None:
                missing.append(" or ".join(names))
            else:
                values[field_name] = value

        if missing:
            raise ConfigError(
                "Missing environment variables: " + ", ".join(missing)
            )

        return cls(**values)

    def to_dict_masked(self) -> dict[str, str]:
        """Return a dictionary safe for logging."""
        return {
            "tenant_id": self.tenant_id,
            "client_id": self.client_id,
            "client_secret": LogSanitizer.REDACTED,
            "subscription_id": self.subscription_id,
        }


@dataclass
class WorkflowSettings:
    """Settings for one provisioning workflow run."""

    location: str = DEFAULT_LOCATION
    resource_group_prefix: str = DEFAULT_RESOURCE_GROUP_PREFIX
    mutation_mode: MutationMode = MutationMode.AWAIT

    def __post_init__(self):
        if not LOCATION_PATTERN.match(self.location):
            raise ConfigError(
                f"Invalid location: {self.location}. "
                "Use an Azure region name such as 'centralus'."
            )
        if not PREFIX_PATTERN.match(self.resource_group_prefix):
            raise ConfigError(f"Invalid resource group prefix: {self.resource_group_prefix}")
        try:
            self.mutation_mode = MutationMode(self.mutation_mode)
        except ValueError as e:
            valid = ", ".join(m.value for m in MutationMode)
            raise ConfigError(
                f"Invalid mutation_mode: {self.mutation_mode}. Expected one of: {valid}"
            ) from e

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = asdict(self)
        data["mutation_mode"] = self.mutation_mode.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WorkflowSettings":
        """Create from dictionary, ignoring unknown keys."""
        return cls(
            location=data.get("location", DEFAULT_LOCATION),
            resource_group_prefix=data.get("resource_group_prefix", DEFAULT_RESOURCE_GROUP_PREFIX),
            mutation_mode=data.get("mutation_mode", MutationMode.AWAIT),
        )


class ConfigManager:
    """Load workflow settings from ~/.azcache/config.toml and the environment."""

    DEFAULT_CONFIG_DIR = Path.home() / ".azcache"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

    ENV_OVERRIDES = {
        "location": "AZCACHE_LOCATION",
        "mutation_mode": "AZCACHE_MUTATION_MODE",
    }

    @classmethod
    def get_config_path(cls, custom_path: str | None = None) -> Path:
        """Get configuration file path.

        Raises:
            ConfigError: If a custom path is invalid or does not exist
        """
        if custom_path:
            if ".." in Path(custom_path).parts:
                raise ConfigError(f"Invalid config path: {custom_path}")
            path = Path(custom_path).expanduser().resolve()
            if not path.exists():
                raise ConfigError(f"Config file not found: {path}")
            return path

        return cls.DEFAULT_CONFIG_FILE

    @classmethod
    def load_config(
        cls, custom_path: str | None = None, env: dict[str, str] | None = None
    ) -> WorkflowSettings:
        """Load workflow settings.

        Precedence (lowest to highest): defaults, TOML file, environment.

        Args:
            custom_path: Custom config file path (optional)
            env: Environment mapping (defaults to os.environ)

        Returns:
            WorkflowSettings instance

        Raises:
            ConfigError: If the file cannot be parsed or a value is invalid
        """
        env = dict(os.environ) if env is None else env
        config_path = cls.get_config_path(custom_path)
        data: dict[str, Any] = {}

        if config_path.exists():
            try:
                with open(config_path, "rb") as f:
                    data = tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError) as e:
                raise ConfigError(f"Failed to parse config file {config_path}: {e}") from e

            if "client_secret" in data:
                raise ConfigError(
                    "client_secret not allowed in config file. "
                    "Use the CLIENT_SECRET environment variable instead."
                )
            logger.debug(f"Loaded config from {config_path}")
        else:
            logger.debug(f"No config file at {config_path}, using defaults")

        for key, env_name in cls.ENV_OVERRIDES.items():
            value = env.get(env_name)
            if value:
                data[key] = value

        return WorkflowSettings.from_dict(data)


__all__ = [
    "ConfigError",
    "ConfigManager",
    "ServicePrincipalConfig",
    "WorkflowSettings",
    "validate_uuid",
]
