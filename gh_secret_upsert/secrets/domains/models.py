"""Domain models for secret provisioning."""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class PublicKeyMaterial:
    """Public key of a single scope, fetched fresh for every run."""
    key: str  # base64, standard alphabet
    key_id: str


@dataclass(frozen=True)
class SealedPayload:
    """Sealed secret value bound to the key it was sealed with."""
    encrypted_value: str
    key_id: str


@dataclass
class SecretRecord:
    """Metadata of a secret that already exists in the store."""
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class UpsertResult:
    """Outcome of an upsert run."""
    existed: bool
    written: bool
