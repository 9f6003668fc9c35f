"""Unit tests for the credential factory."""

from unittest.mock import patch

import pytest

from azcache.config import ServicePrincipalConfig
from azcache.credentials import CredentialFactory, CredentialFactoryError
from tests.conftest import TEST_CLIENT_ID, TEST_CLIENT_SECRET, TEST_TENANT_ID


@pytest.fixture
def sp_config(credential_env):
    return ServicePrincipalConfig.from_env(credential_env)


class TestCredentialFactory:
    """Test ClientSecretCredential creation."""

    @patch("azcache.credentials.ClientSecretCredential")
    def test_create_credential(self, mock_credential, sp_config):
        result = CredentialFactory.create_credential(sp_config)

        mock_credential.assert_called_once_with(
            tenant_id=TEST_TENANT_ID,
            client_id=TEST_CLIENT_ID,
            client_secret=TEST_CLIENT_SECRET,
        )
        assert result is mock_credential.return_value

    @patch("azcache.credentials.ClientSecretCredential")
    def test_error_is_wrapped_and_sanitized(self, mock_credential, sp_config):
        mock_credential.side_effect = ValueError("bad client_secret=topsecret")

        with pytest.raises(CredentialFactoryError) as exc_info:
            CredentialFactory.create_credential(sp_config)

        assert "topsecret" not in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, ValueError)
