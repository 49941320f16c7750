"""Workflow for creating or updating a secret in one scope."""
import logging
from datetime import datetime
from typing import Callable, Optional

from ..domains.errors import RemoteError
from ..domains.models import SecretRecord, UpsertResult
from ..domains.sealing import seal

logger = logging.getLogger(__name__)

Observer = Callable[[str], None]


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Unparseable timestamp from API: {value}")
        return None


def _format_timestamp(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip() if value else "an unknown time"


def get_secret_record(client, scope, secret_name: str) -> Optional[SecretRecord]:
    """
    Look up a secret's metadata in a scope.

    Returns:
        SecretRecord if the secret exists, None if the API answers 404

    Raises:
        RemoteError: On any status other than 2xx or 404
        TransportError: On connectivity failures
    """
    try:
        data = client.get(scope.secret_path(secret_name))
    except RemoteError as e:
        if e.status == 404:
            return None
        raise

    if not isinstance(data, dict):
        raise RemoteError(200, f"secret response for {secret_name} in the {scope.describe()} is not a JSON object")

    return SecretRecord(
        name=data.get("name", secret_name),
        created_at=_parse_timestamp(data.get("created_at")),
        updated_at=_parse_timestamp(data.get("updated_at")),
    )


def secret_exists(client, scope, secret_name: str, observer: Optional[Observer] = None) -> bool:
    """Check whether secret_name exists in scope, reporting its timestamps."""
    notify = observer or logger.info
    notify(f"Checking if the secret {secret_name} exists in the {scope.describe()}")

    record = get_secret_record(client, scope, secret_name)
    if record is None:
        notify(f"The secret {secret_name} does not exist")
        return False

    notify(
        f"The secret {secret_name} exists and was created at {_format_timestamp(record.created_at)} "
        f"and last updated at {_format_timestamp(record.updated_at)}"
    )
    return True


def put_secret(client, scope, secret_name: str, secret_value: str, observer: Optional[Observer] = None) -> int:
    """Seal secret_value with the scope's current key and write it. Returns the response status."""
    notify = observer or logger.info
    sealed = seal(client, scope, secret_value, observer=notify)
    notify(f"Writing secret {secret_name} to the {scope.describe()}")
    return client.put(scope.secret_path(secret_name), scope.write_body(sealed))


def upsert_secret(
    client,
    scope,
    secret_name: str,
    secret_value: str,
    overwrite: bool = False,
    observer: Optional[Observer] = None,
) -> UpsertResult:
    """
    Create a secret, or update it when overwrite is set.

    Args:
        client: GitHubClient used for every request of this run
        scope: Resolved scope the secret lives in
        secret_name: Name of the secret
        secret_value: Plaintext value, may be empty
        overwrite: Replace the value of a secret that already exists
        observer: Receives informational messages (defaults to logger.info)

    Returns:
        UpsertResult with whether the secret existed before this run and
        whether a write was made

    Behavior:
        - Existence is checked first; 404 means absent, any other error aborts
        - An existing secret is only written when overwrite is True
        - The public key is fetched right before sealing, in the same run
    """
    notify = observer or logger.info
    existed = secret_exists(client, scope, secret_name, observer=notify)

    if existed and not overwrite:
        notify(f"The secret {secret_name} already exists and overwrite is disabled, skipping")
        return UpsertResult(existed=True, written=False)

    put_secret(client, scope, secret_name, secret_value, observer=notify)
    return UpsertResult(existed=existed, written=True)
