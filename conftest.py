"""Pytest configuration and fixtures for azcache tests.

CRITICAL: Keeps tests away from real Azure subscriptions.
"""

import pytest

CREDENTIAL_VARIABLES = (
    "TENANT_ID",
    "CLIENT_ID",
    "CLIENT_SECRET",
    "SUBSCRIPTION_ID",
    "AZURE_TENANT_ID",
    "AZURE_CLIENT_ID",
    "AZURE_CLIENT_SECRET",
    "AZURE_SUBSCRIPTION_ID",
)


@pytest.fixture(autouse=True)
def prevent_real_azure_operations(monkeypatch):
    """Prevent tests from creating real Azure resources accidentally.

    Removes service principal variables so only tests that set them
    explicitly (with fake values) see credentials.
    """
    for name in CREDENTIAL_VARIABLES:
        monkeypatch.delenv(name, raising=False)

    yield
