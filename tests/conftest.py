"""Shared fixtures: isolate every test from the runner's environment."""
import base64
import os

import pytest
from nacl import public

from gh_secret_upsert.secrets.domains import config_loader


@pytest.fixture(autouse=True)
def clean_env(tmp_path, monkeypatch):
    """Drop Actions/GitHub/GCP variables and point the default settings file at nothing."""
    for name in list(os.environ):
        if name.startswith("INPUT_"):
            monkeypatch.delenv(name, raising=False)
    for name in (
        "GITHUB_API_URL", "GITHUB_OUTPUT", "GITHUB_ACTIONS", "GCP_PROJECT",
        config_loader.CONFIG_ENV_VAR, config_loader.TIMEOUT_ENV_VAR,
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_loader, "default_config_path", lambda: tmp_path / "missing" / "config.yml")


@pytest.fixture
def keypair():
    """A test keypair standing in for the store's scope key."""
    return public.PrivateKey.generate()


@pytest.fixture
def public_key_b64(keypair):
    return base64.b64encode(bytes(keypair.public_key)).decode("ascii")


@pytest.fixture
def open_sealed(keypair):
    """Decrypt a base64 sealed value the way the store does."""
    def _open(encrypted_value):
        return public.SealedBox(keypair).decrypt(base64.b64decode(encrypted_value))
    return _open
