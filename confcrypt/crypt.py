"""Encryption and decryption of individual parameter values.

Values are encrypted with RSA-OAEP (SHA-256) under the public key and stored
as base64 text. Because a config file is line oriented, stored ciphertext is
framed as ``BEGIN<base64>END``; wrapping is applied by the commands, not by
encrypt_value itself.

Security notes:
- A single value may be at most max_payload_size(key) bytes once UTF-8 encoded
  (190 bytes for a 2048-bit key)
- The empty string is never encrypted so blank values stay visibly blank
- Randomness comes from the OS CSPRNG unless a ``randfunc`` is injected
"""

from __future__ import annotations

import base64
import binascii
import re
from collections.abc import Callable
from typing import Final

from Cryptodome.Cipher import PKCS1_OAEP
from Cryptodome.Hash import SHA256
from Cryptodome.PublicKey import RSA
from cryptography.hazmat.primitives.asymmetric import rsa

from confcrypt.exceptions import DecryptionError, EncryptionError

# Sentinel markers framing stored ciphertext
BEGIN_MARKER: Final[str] = "BEGIN"
END_MARKER: Final[str] = "END"

# OAEP overhead: two hash digests plus two bytes
_OAEP_OVERHEAD: Final[int] = 2 * SHA256.digest_size + 2

_BASE64_JUNK = re.compile(r"[^A-Za-z0-9+/]")

RandFunc = Callable[[int], bytes]


def _to_cryptodome(key: rsa.RSAPublicKey | rsa.RSAPrivateKey) -> RSA.RsaKey:
    if isinstance(key, rsa.RSAPrivateKey):
        numbers = key.private_numbers()
        pub = numbers.public_numbers
        return RSA.construct((pub.n, pub.e, numbers.d, numbers.p, numbers.q))
    pub = key.public_numbers()
    return RSA.construct((pub.n, pub.e))


def _oaep(key: rsa.RSAPublicKey | rsa.RSAPrivateKey, randfunc: RandFunc | None):
    if randfunc is None:
        return PKCS1_OAEP.new(_to_cryptodome(key), hashAlgo=SHA256)
    return PKCS1_OAEP.new(_to_cryptodome(key), hashAlgo=SHA256, randfunc=randfunc)


def max_payload_size(key: rsa.RSAPublicKey | rsa.RSAPrivateKey) -> int:
    """Largest plaintext, in bytes, a single encryption under ``key`` accepts."""
    return (key.key_size + 7) // 8 - _OAEP_OVERHEAD


def encrypt_value(
    public_key: rsa.RSAPublicKey,
    plaintext: str,
    randfunc: RandFunc | None = None,
) -> str:
    """Encrypt a parameter value.

    Args:
        public_key: RSA public key
        plaintext: Value to encrypt
        randfunc: Randomness source ``randfunc(n) -> n bytes``
            (OS CSPRNG if None)

    Returns:
        Base64 encoded ciphertext, or "" for an empty value

    Raises:
        EncryptionError: If encryption fails (e.g. value too large for the key)
    """
    if plaintext == "":
        return ""

    try:
        data = plaintext.encode("utf-8")
        limit = max_payload_size(public_key)
        if len(data) > limit:
            raise ValueError(
                f"value is {len(data)} bytes, "
                f"a {public_key.key_size}-bit key accepts at most {limit}"
            )
        ciphertext = _oaep(public_key, randfunc).encrypt(data)
        return base64.b64encode(ciphertext).decode("ascii")
    except Exception as e:
        raise EncryptionError(f"Failed to encrypt value: {e}") from e


def decode_lenient(text: str) -> bytes:
    """Base64 decode, ignoring stray characters and missing padding."""
    cleaned = _BASE64_JUNK.sub("", text)
    cleaned += "=" * (-len(cleaned) % 4)
    return base64.b64decode(cleaned)


def decrypt_value(private_key: rsa.RSAPrivateKey, ciphertext: str) -> str:
    """Decrypt a parameter value produced by encrypt_value().

    Args:
        private_key: RSA private key matching the encrypting public key
        ciphertext: Base64 encoded ciphertext (without sentinel markers)

    Returns:
        Plaintext value, or "" for an empty ciphertext

    Raises:
        DecryptionError: If the text is not valid ciphertext for this key
    """
    if ciphertext == "":
        return ""

    try:
        data = decode_lenient(ciphertext)
    except (binascii.Error, ValueError) as e:
        raise DecryptionError(f"Invalid base64 encoding: {e}") from e

    try:
        plaintext = _oaep(private_key, None).decrypt(data)
        return plaintext.decode("utf-8")
    except Exception as e:
        raise DecryptionError(f"Failed to decrypt value: {e}") from e


def wrap_encrypted_value(value: str) -> str:
    """Frame ciphertext with the sentinel markers for storage.

    Encrypted text must not be delimited by end-of-line alone, so it is
    wrapped in markers that are very unlikely to occur inside ciphertext.
    """
    return f"{BEGIN_MARKER}{value}{END_MARKER}"


def is_wrapped(value: str) -> bool:
    """Check if a stored value carries the sentinel framing."""
    return (
        len(value) >= len(BEGIN_MARKER) + len(END_MARKER)
        and value.startswith(BEGIN_MARKER)
        and value.endswith(END_MARKER)
    )


def unwrap_encrypted_value(value: str) -> str:
    """Strip the sentinel markers from a stored value.

    Raises:
        DecryptionError: If the value is not framed
    """
    if not is_wrapped(value):
        raise DecryptionError(
            f"Value is not wrapped in {BEGIN_MARKER}...{END_MARKER} markers"
        )
    return value[len(BEGIN_MARKER) : len(value) - len(END_MARKER)]
