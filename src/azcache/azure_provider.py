"""Azure Cache for Redis provider.

Implements CacheProvider on top of the async Azure management SDKs:
- azure-mgmt-resource for resource groups (the workflow container)
- azure-mgmt-redis for caches, access keys, patch schedules and reboots

Long-running operations (begin_*) are polled to completion with the SDK's
AsyncLROPoller before the call returns. Every AzureError is re-raised as
CacheProviderError with a sanitized message.

Public API:
    AzureRedisProvider: CacheProvider backed by Azure Resource Manager
"""

import logging
from collections.abc import AsyncIterator, Iterator
from contextlib import AsyncExitStack, contextmanager
from typing import Any

from azure.core.exceptions import AzureError
from azure.mgmt.redis.aio import RedisManagementClient
from azure.mgmt.redis.models import (
    DefaultName,
    RedisCommonPropertiesRedisConfiguration,
    RedisCreateParameters,
    RedisPatchSchedule,
    RedisRebootParameters,
    RedisRegenerateKeyParameters,
    RedisUpdateParameters,
    Sku,
)
from azure.mgmt.redis.models import ScheduleEntry as SdkScheduleEntry
from azure.mgmt.resource.resources.aio import ResourceManagementClient

from azcache.config import ServicePrincipalConfig
from azcache.credentials import CredentialFactory
from azcache.log_sanitizer import LogSanitizer
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
from azcache.provider import CacheProvider, CacheProviderError

logger = logging.getLogger(__name__)

# redis.conf key -> RedisCommonPropertiesRedisConfiguration attribute;
# other keys are sent as additional properties
REDIS_CONFIGURATION_ATTRIBUTES = {
    "maxmemory-policy": "maxmemory_policy",
    "maxmemory-reserved": "maxmemory_reserved",
    "maxmemory-delta": "maxmemory_delta",
    "maxfragmentationmemory-reserved": "maxfragmentationmemory_reserved",
}


@contextmanager
def _azure_errors(action: str) -> Iterator[None]:
    """Translate SDK errors into CacheProviderError."""
    try:
        yield
    except AzureError as e:
        raise CacheProviderError(LogSanitizer.create_safe_error_message(e, action)) from e


def _enum_value(value: Any) -> str:
    return getattr(value, "value", value)


class AzureRedisProvider(CacheProvider):
    """CacheProvider backed by Azure Resource Manager.

    Example:
        >>> config = ServicePrincipalConfig.from_env()
        >>> async with AzureRedisProvider.from_config(config) as provider:
        ...     outcome = await ProvisioningWorkflow(provider, settings).run()
    """

    def __init__(
        self,
        resource_client: ResourceManagementClient,
        redis_client: RedisManagementClient,
        credential: Any = None,
    ):
        """Initialize provider.

        Args:
            resource_client: Async resource management client
            redis_client: Async Redis management client
            credential: Credential to close with the clients (optional)
        """
        self.resource_client = resource_client
        self.redis_client = redis_client
        self._credential = credential

    @classmethod
    def from_config(cls, config: ServicePrincipalConfig) -> "AzureRedisProvider":
        """Build a provider and its clients from service principal config."""
        credential = CredentialFactory.create_credential(config)
        return cls(
            resource_client=ResourceManagementClient(credential, config.subscription_id),
            redis_client=RedisManagementClient(credential, config.subscription_id),
            credential=credential,
        )

    async def close(self) -> None:
        """Close both clients and the credential.

        Every close is attempted even when an earlier one raises.
        """
        async with AsyncExitStack() as stack:
            if self._credential is not None:
                stack.push_async_callback(self._credential.close)
            stack.push_async_callback(self.resource_client.close)
            stack.push_async_callback(self.redis_client.close)

    async def __aenter__(self) -> "AzureRedisProvider":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @staticmethod
    def _to_instance(resource: Any, resource_group: str) -> CacheInstance:
        return CacheInstance(
            name=resource.name,
            id=resource.id,
            resource_group=resource_group,
            location=resource.location,
            tier=_enum_value(resource.sku.name),
            host_name=resource.host_name,
            port=resource.port,
            ssl_port=resource.ssl_port,
            shard_count=resource.shard_count,
            provisioning_state=_enum_value(resource.provisioning_state),
        )

    @staticmethod
    def _to_sdk_schedule(entries: list[ScheduleEntry]) -> RedisPatchSchedule:
        return RedisPatchSchedule(
            schedule_entries=[
                SdkScheduleEntry(
                    day_of_week=entry.day_of_week,
                    start_hour_utc=entry.start_hour_utc,
                    maintenance_window=entry.maintenance_window,
                )
                for entry in entries
            ]
        )

    @staticmethod
    def _to_sdk_configuration(
        settings: dict[str, str],
    ) -> RedisCommonPropertiesRedisConfiguration | None:
        """Map redis.conf style keys (maxmemory-policy) onto SDK attributes."""
        if not settings:
            return None

        known: dict[str, str] = {}
        extra: dict[str, str] = {}
        for key, value in settings.items():
            attribute = REDIS_CONFIGURATION_ATTRIBUTES.get(key)
            if attribute:
                known[attribute] = value
            else:
                extra[key] = value

        return RedisCommonPropertiesRedisConfiguration(additional_properties=extra or None, **known)

    async def create_container(self, name: str, location: str) -> ContainerHandle:
        with _azure_errors(f"Failed to create resource group {name}"):
            group = await self.resource_client.resource_groups.create_or_update(
                name, {"location": location}
            )
        logger.debug(f"Resource group {group.name} provisioned in {group.location}")
        return ContainerHandle(name=group.name, id=group.id, location=group.location)

    async def create_cache_instance(
        self, container: ContainerHandle, spec: CacheSpec
    ) -> CacheInstance:
        parameters = RedisCreateParameters(
            location=spec.location,
            sku=Sku(name=spec.sku_name, family=spec.sku_family, capacity=spec.sku_capacity),
            shard_count=spec.shard_count,
        )
        with _azure_errors(f"Failed to create cache {spec.name}"):
            poller = await self.redis_client.redis.begin_create(
                container.name, spec.name, parameters
            )
            resource = await poller.result()
        return self._to_instance(resource, container.name)

    async def list_cache_instances(self, container: ContainerHandle) -> AsyncIterator[CacheInstance]:
        with _azure_errors(f"Failed to list caches in {container.name}"):
            async for resource in self.redis_client.redis.list_by_resource_group(container.name):
                yield self._to_instance(resource, container.name)

    async def get_access_keys(self, instance: CacheInstance) -> AccessKeys:
        with _azure_errors(f"Failed to read access keys of {instance.name}"):
            keys = await self.redis_client.redis.list_keys(instance.resource_group, instance.name)
        return AccessKeys(primary_key=keys.primary_key, secondary_key=keys.secondary_key)

    async def regenerate_access_key(self, instance: CacheInstance, slot: KeySlot) -> AccessKeys:
        parameters = RedisRegenerateKeyParameters(key_type=slot.value)
        with _azure_errors(f"Failed to regenerate {slot.value} key of {instance.name}"):
            keys = await self.redis_client.redis.regenerate_key(
                instance.resource_group, instance.name, parameters
            )
        return AccessKeys(primary_key=keys.primary_key, secondary_key=keys.secondary_key)

    async def create_or_update_schedule(
        self, instance: CacheInstance, entries: list[ScheduleEntry]
    ) -> list[ScheduleEntry]:
        with _azure_errors(f"Failed to set patch schedule of {instance.name}"):
            schedule = await self.redis_client.patch_schedules.create_or_update(
                instance.resource_group,
                instance.name,
                DefaultName.DEFAULT,
                self._to_sdk_schedule(entries),
            )
        return [
            ScheduleEntry(
                day_of_week=_enum_value(entry.day_of_week),
                start_hour_utc=entry.start_hour_utc,
                maintenance_window=entry.maintenance_window,
            )
            for entry in schedule.schedule_entries or []
        ]

    async def reboot(self, instance: CacheInstance, request: RebootRequest) -> None:
        parameters = RedisRebootParameters(
            reboot_type=request.reboot_type.value, shard_id=request.shard_id
        )
        with _azure_errors(f"Failed to reboot {instance.name}"):
            await self.redis_client.redis.force_reboot(
                instance.resource_group, instance.name, parameters
            )

    async def update(self, instance: CacheInstance, patch: CachePatch) -> CacheInstance:
        parameters = RedisUpdateParameters(
            shard_count=patch.shard_count,
            enable_non_ssl_port=patch.enable_non_ssl_port,
            redis_configuration=self._to_sdk_configuration(patch.redis_configuration),
        )
        logger.debug(f"Patching {instance.name}: {patch.to_dict()}")
        with _azure_errors(f"Failed to update {instance.name}"):
            poller = await self.redis_client.redis.begin_update(
                instance.resource_group, instance.name, parameters
            )
            resource = await poller.result()
        return self._to_instance(resource, instance.resource_group)

    async def delete(self, instance: CacheInstance) -> None:
        with _azure_errors(f"Failed to delete {instance.name}"):
            poller = await self.redis_client.redis.begin_delete(
                instance.resource_group, instance.name
            )
            await poller.result()

    async def delete_container(self, container: ContainerHandle) -> None:
        with _azure_errors(f"Failed to delete resource group {container.name}"):
            poller = await self.resource_client.resource_groups.begin_delete(container.name)
            await poller.result()


__all__ = ["AzureRedisProvider"]
