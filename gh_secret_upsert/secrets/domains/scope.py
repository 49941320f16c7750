"""Scope resolution: organization, repository or repository environment.

Every remote operation (public key fetch, existence check, write) addresses
the same scope. The per-scope paths and payload shape live on the scope
variants below, so callers never branch on the scope kind themselves.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

from .errors import ConfigurationError
from .models import SealedPayload


def _segment(value: str) -> str:
    """Percent-encode a value as a single URL path segment."""
    return quote(value, safe="")


class Scope:
    """Target of a secret: organization, repository or environment."""

    def public_key_path(self) -> str:
        raise NotImplementedError

    def secret_path(self, secret_name: str) -> str:
        raise NotImplementedError

    def write_body(self, sealed: SealedPayload) -> Dict[str, Any]:
        """Body of the PUT request that stores the sealed value."""
        return {
            "encrypted_value": sealed.encrypted_value,
            "key_id": sealed.key_id,
        }

    def describe(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class OrganizationScope(Scope):
    owner: str

    def public_key_path(self) -> str:
        return f"/orgs/{_segment(self.owner)}/actions/secrets/public-key"

    def secret_path(self, secret_name: str) -> str:
        return f"/orgs/{_segment(self.owner)}/actions/secrets/{_segment(secret_name)}"

    def write_body(self, sealed: SealedPayload) -> Dict[str, Any]:
        # Organization secrets must declare which repositories can read them
        body = super().write_body(sealed)
        body["visibility"] = "all"
        return body

    def describe(self) -> str:
        return f"organization {self.owner}"


@dataclass(frozen=True)
class RepositoryScope(Scope):
    owner: str
    repo: str

    def _base(self) -> str:
        return f"/repos/{_segment(self.owner)}/{_segment(self.repo)}"

    def public_key_path(self) -> str:
        return f"{self._base()}/actions/secrets/public-key"

    def secret_path(self, secret_name: str) -> str:
        return f"{self._base()}/actions/secrets/{_segment(secret_name)}"

    def describe(self) -> str:
        return f"repository {self.owner}/{self.repo}"


@dataclass(frozen=True)
class EnvironmentScope(Scope):
    owner: str
    repo: str
    environment: str

    def _base(self) -> str:
        return (
            f"/repos/{_segment(self.owner)}/{_segment(self.repo)}"
            f"/environments/{_segment(self.environment)}"
        )

    def public_key_path(self) -> str:
        return f"{self._base()}/secrets/public-key"

    def secret_path(self, secret_name: str) -> str:
        return f"{self._base()}/secrets/{_segment(secret_name)}"

    def describe(self) -> str:
        return f"environment {self.environment} in repository {self.owner}/{self.repo}"


def resolve_scope(owner: str, repo: Optional[str] = None, environment: Optional[str] = None) -> Scope:
    """
    Pick the scope a secret is written into.

    Args:
        owner: Organization or user that owns the scope
        repo: Repository name, empty for an organization secret
        environment: Environment name, only meaningful together with repo

    Returns:
        OrganizationScope if repo is empty, EnvironmentScope if both repo and
        environment are set, RepositoryScope otherwise

    Raises:
        ConfigurationError: If owner is empty
    """
    if not owner:
        raise ConfigurationError("missing owner")

    if not repo:
        return OrganizationScope(owner)
    if not environment:
        return RepositoryScope(owner, repo)
    return EnvironmentScope(owner, repo, environment)
