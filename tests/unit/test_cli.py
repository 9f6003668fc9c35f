"""Unit tests for the azcache command-line entry point."""

import logging
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from azcache.cli import main, render_outcome
from azcache.models import CacheInstance, ContainerHandle, MutationMode
from azcache.provider import CacheProviderError
from azcache.workflow import CleanupStatus, WorkflowOutcome
from tests.conftest import TEST_CLIENT_ID, TEST_CLIENT_SECRET

RG = "RedisRG-test"


@pytest.fixture
def outcome():
    return WorkflowOutcome(
        container=ContainerHandle(name=RG, id=f"/subscriptions/sub-id/resourceGroups/{RG}", location="centralus"),
        created=[
            CacheInstance(
                name="rc1-test",
                id="rc1-id",
                resource_group=RG,
                location="centralus",
                tier="Basic",
                host_name="rc1-test.redis.cache.windows.net",
            )
        ],
        deleted=["rc1-test"],
        cleanup_status=CleanupStatus.COMPLETED,
    )


class TestMain:
    """Test the azcache command."""

    @patch("azcache.cli.run_workflow", new_callable=AsyncMock)
    def test_runs_with_no_arguments(self, mock_run, outcome, credential_environ, isolated_config):
        mock_run.return_value = outcome
        runner = CliRunner()

        result = runner.invoke(main, [])

        assert result.exit_code == 0, result.output
        credentials, settings = mock_run.await_args.args
        assert credentials.client_id == credential_environ["CLIENT_ID"]
        assert settings.location == "centralus"
        assert settings.mutation_mode == MutationMode.AWAIT
        assert "Cache Provisioning Summary" in result.output
        assert RG in result.output

    @patch("azcache.cli.run_workflow", new_callable=AsyncMock)
    def test_options_override_settings(self, mock_run, outcome, credential_environ, isolated_config):
        mock_run.return_value = outcome
        isolated_config.write_text('location = "westus2"\n')
        runner = CliRunner()

        result = runner.invoke(main, ["--location", "northeurope", "--mutation-mode", "detach"])

        assert result.exit_code == 0, result.output
        _, settings = mock_run.await_args.args
        assert settings.location == "northeurope"
        assert settings.mutation_mode == MutationMode.DETACH

    @patch("azcache.cli.run_workflow", new_callable=AsyncMock)
    def test_missing_credentials_exit_nonzero(self, mock_run, isolated_config):
        runner = CliRunner()

        result = runner.invoke(main, [])

        assert result.exit_code == 1
        mock_run.assert_not_awaited()

    @patch("azcache.cli.run_workflow", new_callable=AsyncMock)
    def test_workflow_failure_logged_and_sanitized(
        self, mock_run, credential_environ, isolated_config, caplog
    ):
        mock_run.side_effect = CacheProviderError("Failed to create cache: client_secret=abc123")
        runner = CliRunner()

        with caplog.at_level(logging.ERROR, logger="azcache.cli"):
            result = runner.invoke(main, [])

        assert result.exit_code == 1
        assert "Workflow failed (CacheProviderError)" in caplog.text
        assert "abc123" not in caplog.text

    @patch("azcache.cli.run_workflow", new_callable=AsyncMock)
    def test_verbose_logs_settings_without_secret(
        self, mock_run, outcome, credential_environ, isolated_config, caplog
    ):
        mock_run.return_value = outcome
        runner = CliRunner()

        with caplog.at_level(logging.DEBUG, logger="azcache.cli"):
            result = runner.invoke(main, ["--verbose"])

        assert result.exit_code == 0, result.output
        assert "'mutation_mode': 'await'" in caplog.text
        assert TEST_CLIENT_ID in caplog.text
        assert TEST_CLIENT_SECRET not in caplog.text

    def test_invalid_mutation_mode_rejected(self, isolated_config):
        runner = CliRunner()

        result = runner.invoke(main, ["--mutation-mode", "later"])

        assert result.exit_code == 2

    def test_invalid_location_exit_nonzero(self, credential_environ, isolated_config):
        runner = CliRunner()

        result = runner.invoke(main, ["--location", "Central US"])

        assert result.exit_code == 1


class TestRenderOutcome:
    """Test the summary table."""

    def test_renders_cleanup_error(self, outcome):
        from rich.console import Console

        outcome.cleanup_status = CleanupStatus.FAILED
        outcome.cleanup_error = "locked"
        console = Console(record=True, width=120)

        render_outcome(outcome, console)

        text = console.export_text()
        assert "failed: locked" in text
        assert "rc1-test" in text

    def test_renders_without_container(self):
        from rich.console import Console

        console = Console(record=True, width=120)

        render_outcome(WorkflowOutcome(container=None, cleanup_status=CleanupStatus.SKIPPED), console)

        assert "skipped" in console.export_text()
