"""Data models for the cache provisioning workflow.

This module defines the value types exchanged between the workflow and a
cache provider:
- ContainerHandle: the resource group scoping one workflow run
- CacheSpec / CacheInstance: create request and provider-assigned handle
- AccessKeys: cache access keys (never logged)
- ScheduleEntry, RebootRequest, CachePatch: follow-up operation payloads
- MutationMode: how discarded-result mutations are issued

Security features:
- AccessKeys redacts both keys in repr() and str()
- Frozen dataclasses for handles so they can be shared between tasks
"""

from dataclasses import dataclass, field
from datetime import timedelta
from enum import StrEnum
from typing import Any

# Tier marker gating the premium follow-up operations (exact, case-sensitive)
PREMIUM_TIER = "Premium"


class KeySlot(StrEnum):
    """Access key slot of a cache instance."""

    PRIMARY = "Primary"
    SECONDARY = "Secondary"


class RebootType(StrEnum):
    """Which nodes of a cache a reboot targets."""

    PRIMARY_NODE = "PrimaryNode"
    SECONDARY_NODE = "SecondaryNode"
    ALL_NODES = "AllNodes"


class MutationMode(StrEnum):
    """How mutations whose result is not used are issued.

    - AWAIT: await each call before moving on (default)
    - DETACH: schedule the call as a task; the workflow context awaits all
      detached tasks before tearing down the container
    """

    AWAIT = "await"
    DETACH = "detach"


@dataclass(frozen=True)
class ContainerHandle:
    """Resource group created for one workflow run."""

    name: str
    id: str
    location: str


@dataclass(frozen=True)
class CacheSpec:
    """Configuration of a single create-cache request."""

    name: str
    location: str
    sku_name: str
    sku_family: str
    sku_capacity: int
    shard_count: int | None = None

    def __post_init__(self):
        if self.sku_capacity < 0:
            raise ValueError(f"sku_capacity must be non-negative, got {self.sku_capacity}")
        if self.shard_count is not None and self.shard_count < 1:
            raise ValueError(f"shard_count must be positive, got {self.shard_count}")


@dataclass(frozen=True)
class CacheInstance:
    """Cache instance as reported by the provider."""

    name: str
    id: str
    resource_group: str
    location: str
    tier: str
    host_name: str | None = None
    port: int | None = None
    ssl_port: int | None = None
    shard_count: int | None = None
    provisioning_state: str | None = None

    @property
    def is_premium(self) -> bool:
        """Check if the reported tier is exactly the premium marker."""
        return self.tier == PREMIUM_TIER


@dataclass
class AccessKeys:
    """Cache access keys (CRITICAL: Never log this object)."""

    primary_key: str
    secondary_key: str

    def __repr__(self) -> str:
        """Prevent accidental exposure of keys in logs."""
        return "AccessKeys(primary_key=***REDACTED***, secondary_key=***REDACTED***)"

    def __str__(self) -> str:
        """Prevent accidental exposure of keys in logs."""
        return "AccessKeys(keys redacted for security)"


@dataclass(frozen=True)
class ScheduleEntry:
    """One maintenance window of a patch schedule."""

    day_of_week: str
    start_hour_utc: int
    maintenance_window: timedelta

    def __post_init__(self):
        if not 0 <= self.start_hour_utc <= 23:
            raise ValueError(f"start_hour_utc must be 0-23, got {self.start_hour_utc}")


@dataclass(frozen=True)
class RebootRequest:
    """Force-reboot parameters."""

    reboot_type: RebootType = RebootType.ALL_NODES
    shard_id: int | None = None


@dataclass
class CachePatch:
    """Configuration patch applied to an existing cache."""

    shard_count: int | None = None
    enable_non_ssl_port: bool | None = None
    redis_configuration: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding unset values."""
        result: dict[str, Any] = {}
        if self.shard_count is not None:
            result["shard_count"] = self.shard_count
        if self.enable_non_ssl_port is not None:
            result["enable_non_ssl_port"] = self.enable_non_ssl_port
        if self.redis_configuration:
            result["redis_configuration"] = dict(self.redis_configuration)
        return result


__all__ = [
    "PREMIUM_TIER",
    "AccessKeys",
    "CacheInstance",
    "CachePatch",
    "CacheSpec",
    "ContainerHandle",
    "KeySlot",
    "MutationMode",
    "RebootRequest",
    "RebootType",
    "ScheduleEntry",
]
