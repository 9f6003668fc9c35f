"""
Shared test fixtures and configuration for azcache tests.

This module provides common fixtures used across all test types:
- Fake cache provider and deterministic resource names
- Service principal environment variables
- Isolated config files
"""

import pytest

from azcache.config import ConfigManager, WorkflowSettings
from tests.mocks.cache_provider_mock import FakeCacheProvider

# ============================================================================
# CREDENTIAL FIXTURES
# ============================================================================

TEST_TENANT_ID = "11111111-1111-1111-1111-111111111111"
TEST_CLIENT_ID = "22222222-2222-2222-2222-222222222222"
TEST_SUBSCRIPTION_ID = "33333333-3333-3333-3333-333333333333"
TEST_CLIENT_SECRET = "fake-client-secret-value"  # noqa: S105 - test fixture, not a real credential


@pytest.fixture
def credential_env():
    """Environment mapping with valid service principal values."""
    return {
        "TENANT_ID": TEST_TENANT_ID,
        "CLIENT_ID": TEST_CLIENT_ID,
        "CLIENT_SECRET": TEST_CLIENT_SECRET,
        "SUBSCRIPTION_ID": TEST_SUBSCRIPTION_ID,
    }


@pytest.fixture
def credential_environ(monkeypatch, credential_env):
    """Set service principal variables in os.environ."""
    for name in ("AZURE_TENANT_ID", "AZURE_CLIENT_ID", "AZURE_CLIENT_SECRET", "AZURE_SUBSCRIPTION_ID"):
        monkeypatch.delenv(name, raising=False)
    for name, value in credential_env.items():
        monkeypatch.setenv(name, value)
    return credential_env


# ============================================================================
# CONFIG FIXTURES
# ============================================================================


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point ConfigManager at a config file inside tmp_path.

    The file does not exist until a test writes it.
    """
    config_file = tmp_path / ".azcache" / "config.toml"
    config_file.parent.mkdir(parents=True)
    monkeypatch.setattr(ConfigManager, "DEFAULT_CONFIG_FILE", config_file)
    monkeypatch.delenv("AZCACHE_LOCATION", raising=False)
    monkeypatch.delenv("AZCACHE_MUTATION_MODE", raising=False)
    return config_file


# ============================================================================
# WORKFLOW FIXTURES
# ============================================================================


def fixed_name(prefix: str) -> str:
    """Deterministic stand-in for create_random_name."""
    return f"{prefix}-test"


@pytest.fixture
def name_factory():
    return fixed_name


@pytest.fixture
def settings():
    return WorkflowSettings(location="centralus")


@pytest.fixture
def fake_provider():
    """Fake provider reporting each cache's requested SKU as its tier."""
    return FakeCacheProvider()
