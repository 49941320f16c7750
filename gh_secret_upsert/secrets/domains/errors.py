"""Exceptions raised while provisioning a secret."""
from typing import Optional


class SecretUpsertError(Exception):
    """Base class for all provisioning errors."""
    pass


class ConfigurationError(SecretUpsertError):
    """Configuration error exception."""
    pass


class TransportError(SecretUpsertError):
    """Connectivity, TLS or timeout failure talking to the API."""
    pass


class RemoteError(SecretUpsertError):
    """The API answered with a non-2xx status."""

    def __init__(self, status: int, message: str, url: Optional[str] = None):
        self.status = status
        self.message = message
        self.url = url
        super().__init__(f"{status}: {message}" + (f" ({url})" if url else ""))


class SecretSourceError(SecretUpsertError):
    """The secret value could not be read from its source."""
    pass
