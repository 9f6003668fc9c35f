"""Cache provisioning workflow.

Philosophy:
- One linear sequence with a single guaranteed finalizer
- Async-first: the three cache creations run concurrently and are joined
  with a wait-for-all barrier
- No retries: every failure unwinds to the context's cleanup, then to the
  caller

Sequence:
1. Create a uniquely named resource group (the container)
2. Create three caches concurrently and wait for all of them
3. Rotate the designated cache's secondary key, configure premium caches
   (patch schedule, reboot, patch, schedule update, delete), delete the
   designated cache
4. Delete the container, whatever happened above

Public API (the "studs"):
    ProvisioningWorkflow: Runs the sequence against a CacheProvider
    WorkflowContext: Holds run state and owns the cleanup step
    WorkflowOutcome: Result summary of one run
    CleanupStatus: What the cleanup step did
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum

from azcache.config import WorkflowSettings
from azcache.log_sanitizer import LogSanitizer
from azcache.models import (
    CacheInstance,
    CachePatch,
    CacheSpec,
    ContainerHandle,
    KeySlot,
    MutationMode,
    RebootRequest,
    RebootType,
    ScheduleEntry,
)
from azcache.naming import create_random_name
from azcache.provider import CacheProvider

logger = logging.getLogger(__name__)

INITIAL_SCHEDULE = [ScheduleEntry("Tuesday", 11, timedelta(hours=11))]
UPDATED_SCHEDULE = [ScheduleEntry("Monday", 5, timedelta(hours=5))]
PREMIUM_REBOOT = RebootRequest(reboot_type=RebootType.ALL_NODES, shard_id=1)


def premium_patch() -> CachePatch:
    """Patch applied to every premium cache."""
    return CachePatch(
        shard_count=4,
        enable_non_ssl_port=True,
        redis_configuration={
            "maxmemory-policy": "allkeys-random",
            "maxmemory-reserved": "20",
        },
    )


def default_cache_specs(
    location: str, name_factory: Callable[[str], str] = create_random_name
) -> list[CacheSpec]:
    """One Basic C0 cache and two sharded Premium caches (P1, P2)."""
    return [
        CacheSpec(name_factory("rc1"), location, "Basic", "C", 0),
        CacheSpec(name_factory("rc2"), location, "Premium", "P", 1, shard_count=3),
        CacheSpec(name_factory("rc3"), location, "Premium", "P", 2, shard_count=3),
    ]


class CleanupStatus(Enum):
    """Result of the cleanup step."""

    PENDING = "pending"
    SKIPPED = "skipped"  # no container was created
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class WorkflowOutcome:
    """Summary of one workflow run."""

    container: ContainerHandle | None
    created: list[CacheInstance] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    cleanup_status: CleanupStatus = CleanupStatus.PENDING
    cleanup_error: str | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """True if the workflow finished and the container was torn down."""
        return self.error is None and self.cleanup_status == CleanupStatus.COMPLETED


class WorkflowContext:
    """State of one workflow run plus its guaranteed cleanup.

    Use as an async context manager: leaving the block runs cleanup exactly
    once on every exit path and never suppresses the block's exception.

    Example:
        >>> async with WorkflowContext(provider) as context:
        ...     context.container = await provider.create_container("rg", "centralus")
        >>> context.cleanup_status
        <CleanupStatus.COMPLETED: 'completed'>
    """

    def __init__(self, provider: CacheProvider, mutation_mode: MutationMode = MutationMode.AWAIT):
        self.provider = provider
        self.mutation_mode = MutationMode(mutation_mode)
        self.container: ContainerHandle | None = None
        self.created: list[CacheInstance] = []
        self.deleted: list[str] = []
        self.cleanup_status = CleanupStatus.PENDING
        self.cleanup_error: str | None = None
        self.error: str | None = None
        self._detached: list[tuple[str, asyncio.Task]] = []
        self._cleaned_up = False

    async def __aenter__(self) -> "WorkflowContext":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc is not None:
            self.error = LogSanitizer.sanitize_exception(exc)
        await self.cleanup()
        return False

    @property
    def pending_mutations(self) -> int:
        """Number of detached mutations not yet drained."""
        return len(self._detached)

    async def submit(self, description: str, operation: Awaitable[object]) -> None:
        """Issue a mutation whose result is not used.

        In AWAIT mode the operation is awaited here and its errors propagate.
        In DETACH mode it is scheduled as a task and awaited by drain().
        """
        if self.mutation_mode == MutationMode.AWAIT:
            await operation
            return

        task = asyncio.ensure_future(operation)
        self._detached.append((description, task))
        logger.debug(f"Detached: {description}")

    async def drain(self) -> None:
        """Wait for every detached mutation; log failures without raising."""
        if not self._detached:
            return

        detached, self._detached = self._detached, []
        results = await asyncio.gather(*(task for _, task in detached), return_exceptions=True)
        for (description, _), result in zip(detached, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning(
                    f"Detached operation failed ({description}): "
                    f"{LogSanitizer.sanitize_exception(result)}"
                )

    async def cleanup(self) -> None:
        """Delete the container and everything in it.

        Skips teardown when no container was created. Errors are logged and
        recorded, never raised.
        """
        if self._cleaned_up:
            return
        self._cleaned_up = True

        if self.container is None:
            logger.info("Did not create any resources in Azure. No clean up is necessary")
            self.cleanup_status = CleanupStatus.SKIPPED
            return

        try:
            await self.drain()
            logger.info(f"Deleting resource group: {self.container.name}")
            await self.provider.delete_container(self.container)
            logger.info(f"Deleted resource group: {self.container.name}")
            self.cleanup_status = CleanupStatus.COMPLETED
        except Exception as e:
            self.cleanup_error = LogSanitizer.sanitize_exception(e)
            self.cleanup_status = CleanupStatus.FAILED
            logger.error(f"Failed to delete resource group {self.container.name}: {self.cleanup_error}")

    def outcome(self) -> WorkflowOutcome:
        """Snapshot of the run."""
        return WorkflowOutcome(
            container=self.container,
            created=list(self.created),
            deleted=list(self.deleted),
            cleanup_status=self.cleanup_status,
            cleanup_error=self.cleanup_error,
            error=self.error,
        )


class ProvisioningWorkflow:
    """Provision, configure and tear down a set of caches.

    Example:
        >>> workflow = ProvisioningWorkflow(provider, WorkflowSettings(location="westus2"))
        >>> outcome = await workflow.run()
        >>> print(outcome.cleanup_status)
    """

    def __init__(
        self,
        provider: CacheProvider,
        settings: WorkflowSettings | None = None,
        name_factory: Callable[[str], str] = create_random_name,
        cache_specs: list[CacheSpec] | None = None,
    ):
        """Initialize workflow.

        Args:
            provider: Control-plane provider
            settings: Location, naming and mutation mode (defaults if None)
            name_factory: Builds unique names from a prefix
            cache_specs: Caches to create (default_cache_specs() if None)

        Raises:
            ValueError: If cache_specs is an empty list
        """
        if cache_specs is not None and not cache_specs:
            raise ValueError("cache_specs cannot be empty")

        self.provider = provider
        self.settings = settings or WorkflowSettings()
        self.name_factory = name_factory
        self.cache_specs = cache_specs

    async def run(self, context: WorkflowContext | None = None) -> WorkflowOutcome:
        """Run the workflow.

        Cleanup always runs before this returns or raises. Pass a context to
        inspect the run state after a failure.

        Returns:
            WorkflowOutcome of the completed run

        Raises:
            Exception: Whatever the first failing provider call raised
        """
        if context is None:
            context = WorkflowContext(self.provider, self.settings.mutation_mode)

        async with context:
            container = await self._acquire_container(context)
            created = await self._create_caches(context, container)
            await self._configure_caches(context, container, created)

        return context.outcome()

    async def _acquire_container(self, context: WorkflowContext) -> ContainerHandle:
        name = self.name_factory(self.settings.resource_group_prefix)
        logger.info(f"Creating resource group with name: {name}")
        container = await self.provider.create_container(name, self.settings.location)
        context.container = container
        logger.info(f"Created a resource group with name: {container.name}")
        return container

    async def _create_caches(
        self, context: WorkflowContext, container: ContainerHandle
    ) -> list[CacheInstance]:
        specs = self.cache_specs or default_cache_specs(self.settings.location, self.name_factory)

        tasks = []
        for spec in specs:
            logger.info(
                f"Creating cache {spec.name} ({spec.sku_name} {spec.sku_family}{spec.sku_capacity})"
            )
            tasks.append(asyncio.ensure_future(self.provider.create_cache_instance(container, spec)))

        # Wait for all, not first: every request finishes before failures surface
        results = await asyncio.gather(*tasks, return_exceptions=True)

        failures: list[BaseException] = []
        for spec, result in zip(specs, results, strict=True):
            if isinstance(result, BaseException):
                logger.error(
                    f"Failed to create cache {spec.name}: {LogSanitizer.sanitize_exception(result)}"
                )
                failures.append(result)
            else:
                context.created.append(result)
                logger.info(f"Created cache {result.name} with host name {result.host_name}")

        if failures:
            raise failures[0]

        logger.info("Created all caches")
        return list(context.created)

    async def _configure_caches(
        self,
        context: WorkflowContext,
        container: ContainerHandle,
        created: list[CacheInstance],
    ) -> None:
        designated = created[0]

        logger.info(f"Getting access keys of {designated.name}")
        await self.provider.get_access_keys(designated)
        logger.info("Got cache access keys")

        logger.info(f"Regenerating secondary access key of {designated.name}")
        await context.submit(
            f"regenerate secondary key of {designated.name}",
            self.provider.regenerate_access_key(designated, KeySlot.SECONDARY),
        )

        for instance in created:
            if instance.is_premium:
                logger.info(f"Creating patch schedule for {instance.name}")
                await self.provider.create_or_update_schedule(instance, INITIAL_SCHEDULE)

        logger.info("Listing caches")
        async for instance in self.provider.list_cache_instances(container):
            logger.info(f"{instance.name}: {instance.tier}")
            if instance.is_premium:
                await self._reconfigure_premium(context, instance)

        logger.info(f"Deleting cache {designated.name}")
        await context.submit(f"delete {designated.name}", self._delete(context, designated))

    async def _reconfigure_premium(self, context: WorkflowContext, instance: CacheInstance) -> None:
        logger.info(f"Restarting {instance.name}")
        await context.submit(
            f"reboot {instance.name}", self.provider.reboot(instance, PREMIUM_REBOOT)
        )

        logger.info(f"Updating premium cache {instance.name}")
        await self.provider.update(instance, premium_patch())

        logger.info(f"Updating patch schedule of {instance.name}")
        await self.provider.create_or_update_schedule(instance, UPDATED_SCHEDULE)

        logger.info(f"Deleting cache {instance.name}")
        await context.submit(f"delete {instance.name}", self._delete(context, instance))

    async def _delete(self, context: WorkflowContext, instance: CacheInstance) -> None:
        await self.provider.delete(instance)
        context.deleted.append(instance.name)
        logger.info(f"Deleted cache {instance.name}")


__all__ = [
    "CleanupStatus",
    "ProvisioningWorkflow",
    "WorkflowContext",
    "WorkflowOutcome",
    "default_cache_specs",
    "premium_patch",
]
