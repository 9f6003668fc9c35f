"""Command-line entry point for azcache.

Runs the cache provisioning workflow against Azure with credentials taken
from the environment:

    TENANT_ID, CLIENT_ID, CLIENT_SECRET, SUBSCRIPTION_ID

(the standard AZURE_* names are accepted as fallbacks).
"""

import asyncio
import logging
import sys

import click
from rich.console import Console
from rich.table import Table

from azcache import __version__
from azcache.azure_provider import AzureRedisProvider
from azcache.config import ConfigManager, ServicePrincipalConfig, WorkflowSettings
from azcache.log_sanitizer import LogSanitizer
from azcache.models import MutationMode
from azcache.workflow import ProvisioningWorkflow, WorkflowOutcome

logger = logging.getLogger(__name__)


async def run_workflow(
    credentials: ServicePrincipalConfig, settings: WorkflowSettings
) -> WorkflowOutcome:
    """Run the workflow against Azure and close all clients afterwards."""
    async with AzureRedisProvider.from_config(credentials) as provider:
        return await ProvisioningWorkflow(provider, settings).run()


def render_outcome(outcome: WorkflowOutcome, console: Console | None = None) -> None:
    """Print a summary table of a workflow run."""
    console = console or Console()

    table = Table(title="Cache Provisioning Summary")
    table.add_column("Item", style="cyan")
    table.add_column("Value")

    table.add_row("Resource group", outcome.container.name if outcome.container else "-")
    for instance in outcome.created:
        table.add_row(f"Created ({instance.tier})", f"{instance.name} {instance.host_name or ''}")
    table.add_row("Deleted caches", ", ".join(outcome.deleted) or "-")

    cleanup = outcome.cleanup_status.value
    if outcome.cleanup_error:
        cleanup = f"{cleanup}: {outcome.cleanup_error}"
    table.add_row("Cleanup", cleanup)

    console.print(table)


@click.command(name="azcache")
@click.option("--config", help="Config file path", type=click.Path())
@click.option("--location", help="Azure region for the resource group and caches", type=str)
@click.option(
    "--mutation-mode",
    type=click.Choice([mode.value for mode in MutationMode]),
    help="Await fire-and-forget mutations, or detach them and drain before cleanup",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(version=__version__)
def main(config: str | None, location: str | None, mutation_mode: str | None, verbose: bool):
    """Provision, configure and tear down Azure Cache for Redis instances.

    \b
    Creates a resource group, three caches (one Basic, two Premium),
    rotates access keys, configures patch schedules, reboots, patches and
    deletes the Premium caches, then deletes the resource group.

    \b
    Examples:
        azcache
        azcache --location westus2
        azcache --mutation-mode detach
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(message)s")

    try:
        settings = ConfigManager.load_config(config)
        if location:
            settings = WorkflowSettings(
                location=location,
                resource_group_prefix=settings.resource_group_prefix,
                mutation_mode=settings.mutation_mode,
            )
        if mutation_mode:
            settings.mutation_mode = MutationMode(mutation_mode)

        logger.debug(f"Workflow settings: {settings.to_dict()}")

        credentials = ServicePrincipalConfig.from_env()
        logger.debug(f"Service principal: {credentials.to_dict_masked()}")
        outcome = asyncio.run(run_workflow(credentials, settings))
    except Exception as e:
        logger.error(
            LogSanitizer.create_safe_error_message(e, f"Workflow failed ({type(e).__name__})")
        )
        logger.debug("Traceback:", exc_info=True)
        sys.exit(1)

    render_outcome(outcome)


if __name__ == "__main__":
    main()
