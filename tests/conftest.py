"""
Pytest configuration for the OAEP gateway tests.
Provides a throwaway RSA key pair and a Flask test client wired to it.
"""

import base64
import os
import sys
from pathlib import Path
from typing import Dict, Generator

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

os.environ["OAEP_GATEWAY_ENV"] = "testing"

from config import Config, reset_config
from utils.crypto.crypto_manager import CryptoManager, set_crypto_manager


def _der_b64(private_key) -> Dict[str, str]:
    private_der = private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_der = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return {
        "private_b64": base64.b64encode(private_der).decode("ascii"),
        "public_b64": base64.b64encode(public_der).decode("ascii"),
    }


@pytest.fixture(scope="session")
def rsa_private_key():
    """A 2048-bit RSA key shared by the whole session."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def key_pair(rsa_private_key) -> Dict[str, object]:
    """Base64 DER blobs (PKCS#8 / SPKI) plus the raw key objects."""
    blobs = _der_b64(rsa_private_key)
    return {
        **blobs,
        "private_key": rsa_private_key,
        "public_key": rsa_private_key.public_key(),
    }


@pytest.fixture(scope="session")
def other_key_pair() -> Dict[str, object]:
    """A second, unrelated key pair for wrong-key scenarios."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return {**_der_b64(private_key), "private_key": private_key}


@pytest.fixture
def test_config(key_pair, monkeypatch) -> Config:
    """A testing configuration holding the session key pair."""
    for env_var in ("PRIVATE_KEY", "PUBLIC_KEY", "OAEP_GATEWAY_CONFIG", "SERVICE_NAME"):
        monkeypatch.delenv(env_var, raising=False)
    config = Config(env="testing")
    config.set("keys.private_key", key_pair["private_b64"])
    config.set("keys.public_key", key_pair["public_b64"])
    return config


@pytest.fixture
def crypto_manager(test_config) -> CryptoManager:
    return CryptoManager.from_config(test_config)


@pytest.fixture
def app(test_config, crypto_manager):
    """A Flask app using the test configuration and key pair."""
    from server import create_app

    flask_app = create_app(test_config, crypto_manager)
    flask_app.config["TESTING"] = True
    yield flask_app
    set_crypto_manager(None)
    reset_config(None)


@pytest.fixture
def client(app) -> Generator:
    """Create a Flask test client fixture"""
    with app.test_client() as test_client:
        yield test_client
