"""Shared fixtures for confcrypt tests."""

import random

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from confcrypt import keys


@pytest.fixture
def temp_dir(tmp_path):
    """Provide a temporary directory."""
    return tmp_path


@pytest.fixture(scope="session")
def rsa_key_bytes():
    """OpenSSH encoded 2048-bit RSA private key, generated once per session."""
    return keys.generate_rsa_key(2048)


@pytest.fixture(scope="session")
def other_rsa_key_bytes():
    """A second, unrelated RSA key."""
    return keys.generate_rsa_key(2048)


@pytest.fixture(scope="session")
def ed25519_key_bytes():
    """OpenSSH encoded Ed25519 private key."""
    return ed25519.Ed25519PrivateKey.generate().private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.OpenSSH,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture(scope="session")
def key_pair(rsa_key_bytes):
    return keys.unpack_private_rsa_key(rsa_key_bytes)


@pytest.fixture(scope="session")
def public_key(key_pair):
    return keys.project_public(key_pair)


@pytest.fixture(scope="session")
def private_key(key_pair):
    return keys.project_private(key_pair)


@pytest.fixture
def key_file(temp_dir, rsa_key_bytes):
    """Write the session RSA key to a file."""
    path = temp_dir / "id_rsa"
    path.write_bytes(rsa_key_bytes)
    path.chmod(0o600)
    return path


@pytest.fixture
def fixed_randfunc():
    """Deterministic randomness source for reproducible ciphertext."""
    rng = random.Random(1234)
    return rng.randbytes


@pytest.fixture
def make_randfunc():
    """Factory for deterministic randomness sources with a given seed."""

    def factory(seed):
        return random.Random(seed).randbytes

    return factory
