"""Sealed-box encryption of secret values for a scope's public key."""
import base64
import logging
from typing import Callable, Optional

from nacl import public

from .errors import RemoteError
from .models import PublicKeyMaterial, SealedPayload

logger = logging.getLogger(__name__)

# 32-byte ephemeral public key + 16-byte MAC
SEAL_OVERHEAD = 48


def fetch_public_key(client, scope, observer: Optional[Callable[[str], None]] = None) -> PublicKeyMaterial:
    """
    Fetch the current public key of a scope.

    Args:
        client: GitHubClient used for the request
        scope: Scope whose key is fetched
        observer: Receives informational messages (defaults to logger.info)

    Returns:
        PublicKeyMaterial with the base64 key and its id

    Raises:
        RemoteError: On a non-2xx response or a response without key/key_id
        TransportError: On connectivity failures
    """
    notify = observer or logger.info
    notify(f"Getting public key for the {scope.describe()}")
    data = client.get(scope.public_key_path())
    if not isinstance(data, dict) or not data.get("key") or not data.get("key_id"):
        raise RemoteError(200, f"public key response for the {scope.describe()} is missing key or key_id")
    return PublicKeyMaterial(key=data["key"], key_id=str(data["key_id"]))


def seal_bytes(plaintext: str, key: str) -> bytes:
    """
    Seal a plaintext for the holder of the private half of key.

    The key uses the standard base64 alphabet; URL-safe input is rejected.
    Malformed keys raise ValueError (binascii.Error or nacl.exceptions.ValueError).
    """
    raw_key = base64.b64decode(key, validate=True)
    sealed_box = public.SealedBox(public.PublicKey(raw_key))
    return sealed_box.encrypt(plaintext.encode("utf-8"))


def seal(client, scope, plaintext: str, observer: Optional[Callable[[str], None]] = None) -> SealedPayload:
    """Fetch the scope's public key and seal plaintext with it."""
    key_material = fetch_public_key(client, scope, observer=observer)
    encrypted = seal_bytes(plaintext, key_material.key)
    return SealedPayload(
        encrypted_value=base64.b64encode(encrypted).decode("ascii"),
        key_id=key_material.key_id,
    )
