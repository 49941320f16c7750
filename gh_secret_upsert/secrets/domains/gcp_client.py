"""GCP Secret Manager client wrapper, used as an optional source of the secret value."""
import os
import logging
from typing import Optional

from google.api_core import exceptions as gcp_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import secretmanager

from .errors import ConfigurationError, SecretSourceError

logger = logging.getLogger(__name__)


class GCPSecretClient:
    """Wrapper around GCP Secret Manager client."""

    def __init__(self):
        self._client = None

    @property
    def client(self) -> secretmanager.SecretManagerServiceClient:
        """Lazy-initialize client."""
        if self._client is None:
            self._client = secretmanager.SecretManagerServiceClient()
        return self._client

    def get_project_id(self, project_id: Optional[str] = None) -> str:
        """
        Get GCP project ID.

        Priority order:
        1. Explicit project_id (gcp-project input / --gcp-project flag)
        2. GCP_PROJECT environment variable

        Raises:
            ConfigurationError: If no project ID is available
        """
        if project_id:
            return project_id

        gcp_project_env = os.getenv("GCP_PROJECT")
        if gcp_project_env:
            logger.debug(f"Using GCP_PROJECT from environment: {gcp_project_env}")
            return gcp_project_env

        raise ConfigurationError(
            "GCP project ID not found. Set the gcp-project input or the GCP_PROJECT environment variable"
        )

    def fetch_secret(self, secret_name: str, project_id: str, version: str = "latest") -> str:
        """
        Fetch a secret value from GCP Secret Manager.

        Args:
            secret_name: Name of the secret
            project_id: GCP project ID
            version: Secret version, 'latest' by default

        Returns:
            Secret value decoded as UTF-8

        Raises:
            SecretSourceError: If the secret can't be read
        """
        name = f"projects/{project_id}/secrets/{secret_name}/versions/{version}"
        logger.info(f"Reading secret value from GCP Secret Manager: {secret_name} (project {project_id})")
        try:
            response = self.client.access_secret_version(request={"name": name})
        except (gcp_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as e:
            raise SecretSourceError(f"GCP fetch failed for {secret_name}: {e}") from e
        return response.payload.data.decode("UTF-8")
