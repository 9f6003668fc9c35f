"""Credential factory for Azure authentication.

Builds the async Azure Identity credential used by the control-plane
clients from a ServicePrincipalConfig.

Security:
- No token storage - delegates to Azure Identity SDK
- Client secret comes from the environment only (see azcache.config)
- Error messages are sanitized before they are raised
"""

from azure.identity.aio import ClientSecretCredential

from azcache.config import ServicePrincipalConfig
from azcache.log_sanitizer import LogSanitizer


class CredentialFactoryError(Exception):
    """Raised when credential creation fails."""

    pass


class CredentialFactory:
    """Factory for creating Azure Identity credentials."""

    @staticmethod
    def create_credential(config: ServicePrincipalConfig) -> ClientSecretCredential:
        """Create an async service principal credential.

        The caller owns the returned credential and must close it
        (``await credential.close()`` or ``async with credential``).

        Args:
            config: Service principal configuration

        Returns:
            ClientSecretCredential: Async credential with client secret

        Raises:
            CredentialFactoryError: If the credential cannot be created
        """
        try:
            return ClientSecretCredential(
                tenant_id=config.tenant_id,
                client_id=config.client_id,
                client_secret=config.client_secret,
            )
        except Exception as e:
            safe_error = LogSanitizer.sanitize_exception(e)
            raise CredentialFactoryError(
                f"Failed to create service principal credential: {safe_error}"
            ) from e


__all__ = ["CredentialFactory", "CredentialFactoryError"]
