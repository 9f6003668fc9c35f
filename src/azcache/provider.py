"""Cache provider interface.

The workflow never talks to a cloud SDK directly. It drives a CacheProvider,
which stands in for the control plane: every method is one round trip, and
long-running operations return only once the provider reports a terminal
state.

Public API:
    CacheProvider: Abstract provider interface
    CacheProviderError: Raised by providers when a control-plane call fails
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from azcache.models import (
    AccessKeys,
    CacheInstance,
    CachePatch,
    CacheSpec,
    ContainerHandle,
    KeySlot,
    RebootRequest,
    ScheduleEntry,
)


class CacheProviderError(Exception):
    """Raised when a control-plane operation fails."""

    pass


class CacheProvider(ABC):
    """Control-plane operations needed by the provisioning workflow."""

    @abstractmethod
    async def create_container(self, name: str, location: str) -> ContainerHandle:
        """Create a resource group and wait for completion."""

    @abstractmethod
    async def create_cache_instance(
        self, container: ContainerHandle, spec: CacheSpec
    ) -> CacheInstance:
        """Create a cache inside the container and wait for completion."""

    @abstractmethod
    def list_cache_instances(self, container: ContainerHandle) -> AsyncIterator[CacheInstance]:
        """Lazily list caches inside the container."""

    @abstractmethod
    async def get_access_keys(self, instance: CacheInstance) -> AccessKeys:
        """Read the access keys of a cache."""

    @abstractmethod
    async def regenerate_access_key(self, instance: CacheInstance, slot: KeySlot) -> AccessKeys:
        """Regenerate one key slot of a cache."""

    @abstractmethod
    async def create_or_update_schedule(
        self, instance: CacheInstance, entries: list[ScheduleEntry]
    ) -> list[ScheduleEntry]:
        """Create or replace the default patch schedule of a cache."""

    @abstractmethod
    async def reboot(self, instance: CacheInstance, request: RebootRequest) -> None:
        """Force-reboot cache nodes."""

    @abstractmethod
    async def update(self, instance: CacheInstance, patch: CachePatch) -> CacheInstance:
        """Apply a configuration patch and wait for completion."""

    @abstractmethod
    async def delete(self, instance: CacheInstance) -> None:
        """Delete a cache and wait for completion."""

    @abstractmethod
    async def delete_container(self, container: ContainerHandle) -> None:
        """Delete a resource group and everything in it."""


__all__ = ["CacheProvider", "CacheProviderError"]
