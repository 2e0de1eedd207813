"""
RSA-OAEP key import for the gateway.

Keys arrive as base64-encoded DER blobs (SubjectPublicKeyInfo for public keys,
PKCS#8 for private keys) and are wrapped in :class:`KeyMaterial`, a handle that
can only perform the single operation its role allows and never hands its key
bytes back out.
"""

import logging
import re
from enum import Enum
from typing import Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding as asymmetric_padding
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.hashes import SHA256

from utils.crypto.codec import DecodeError, decode_text

logger = logging.getLogger(__name__)

MIN_RSA_KEY_SIZE = 2048
ALGORITHM_NAME = "RSA-OAEP"
HASH_NAME = "SHA-256"
HASH_LENGTH = SHA256.digest_size


class KeyRole(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class KeyCapability(str, Enum):
    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"


_CAPABILITY_BY_ROLE = {
    KeyRole.PUBLIC: KeyCapability.ENCRYPT,
    KeyRole.PRIVATE: KeyCapability.DECRYPT,
}

_FORMAT_BY_ROLE = {
    KeyRole.PUBLIC: "SPKI",
    KeyRole.PRIVATE: "PKCS#8",
}

_KEY_TYPE_BY_ROLE = {
    KeyRole.PUBLIC: rsa.RSAPublicKey,
    KeyRole.PRIVATE: rsa.RSAPrivateKey,
}


class KeyImportError(Exception):
    """Raised when key material cannot be turned into a usable key."""


class KeyUsageError(Exception):
    """Raised when a key is used for an operation it was not imported for."""


def oaep_padding() -> asymmetric_padding.OAEP:
    """Return the OAEP parameters every key handle is bound to."""

    return asymmetric_padding.OAEP(
        mgf=asymmetric_padding.MGF1(algorithm=SHA256()),
        algorithm=SHA256(),
        label=None,
    )


class KeyMaterial:
    """Opaque RSA-OAEP/SHA-256 key handle restricted to one capability."""

    __slots__ = ("_key", "_role", "_capability")

    def __init__(self, key: Union[rsa.RSAPublicKey, rsa.RSAPrivateKey], role: KeyRole):
        key_role = KeyRole(role)
        if not isinstance(key, _KEY_TYPE_BY_ROLE[key_role]):
            raise TypeError(f"{key_role.value.capitalize()} key handle requires an RSA {key_role.value} key")
        object.__setattr__(self, "_key", key)
        object.__setattr__(self, "_role", key_role)
        object.__setattr__(self, "_capability", _CAPABILITY_BY_ROLE[key_role])

    def __setattr__(self, name, value):
        raise AttributeError("KeyMaterial is immutable")

    def __delattr__(self, name):
        raise AttributeError("KeyMaterial is immutable")

    def __reduce_ex__(self, protocol):
        raise TypeError("KeyMaterial cannot be serialized")

    def __copy__(self):
        raise TypeError("KeyMaterial cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("KeyMaterial cannot be copied")

    def __repr__(self) -> str:
        return (
            f"<KeyMaterial role={self._role.value} capability={self._capability.value} "
            f"algorithm={ALGORITHM_NAME} hash={HASH_NAME} bits={self.key_size}>"
        )

    @property
    def role(self) -> KeyRole:
        return self._role

    @property
    def capability(self) -> KeyCapability:
        return self._capability

    @property
    def algorithm(self) -> str:
        return ALGORITHM_NAME

    @property
    def hash_name(self) -> str:
        return HASH_NAME

    @property
    def key_size(self) -> int:
        return self._key.key_size

    @property
    def modulus_bytes(self) -> int:
        """Length in bytes of every ciphertext this key produces or accepts."""
        return (self._key.key_size + 7) // 8

    @property
    def max_plaintext_bytes(self) -> int:
        """Largest plaintext RSA-OAEP/SHA-256 can carry with this modulus."""
        return self.modulus_bytes - 2 * HASH_LENGTH - 2

    def _require(self, capability: KeyCapability) -> None:
        if self._capability is not capability:
            raise KeyUsageError(
                f"{self._role.value.capitalize()} key cannot be used to {capability.value}"
            )

    def encrypt_block(self, data: bytes) -> bytes:
        """Apply RSA-OAEP encryption to a single block of *data*."""
        self._require(KeyCapability.ENCRYPT)
        return self._key.encrypt(data, oaep_padding())

    def decrypt_block(self, data: bytes) -> bytes:
        """Apply RSA-OAEP decryption to a single ciphertext block."""
        self._require(KeyCapability.DECRYPT)
        return self._key.decrypt(data, oaep_padding())


def import_key(base64_blob: str, role: Union[KeyRole, str]) -> KeyMaterial:
    """
    Import a base64-encoded DER key as an RSA-OAEP/SHA-256 handle.

    Args:
        base64_blob: Base64 of an SPKI (public) or PKCS#8 (private) DER structure.
            Whitespace is ignored so wrapped values from env files still load.
        role: ``"public"`` for an encrypt-only key, ``"private"`` for a
            decrypt-only key.

    Returns:
        A non-extractable :class:`KeyMaterial` bound to the role's capability.

    Raises:
        KeyImportError: If the role is unknown, the blob is not base64, the DER
            structure does not parse for the requested format, or the key is not
            an RSA key of at least ``MIN_RSA_KEY_SIZE`` bits. The message never
            contains key bytes.
    """
    try:
        key_role = KeyRole(role)
    except ValueError:
        raise KeyImportError("Unsupported key role; expected 'public' or 'private'") from None

    label = f"{key_role.value.capitalize()} key"
    key_format = _FORMAT_BY_ROLE[key_role]

    if not isinstance(base64_blob, str) or not base64_blob.strip():
        raise KeyImportError(f"{label} material is missing")

    try:
        der = decode_text(re.sub(r"\s+", "", base64_blob))
    except DecodeError:
        raise KeyImportError(f"{label} is not valid base64") from None

    try:
        if key_role is KeyRole.PUBLIC:
            key = serialization.load_der_public_key(der, backend=default_backend())
        else:
            key = serialization.load_der_private_key(der, password=None, backend=default_backend())
    except (ValueError, TypeError, UnsupportedAlgorithm):
        raise KeyImportError(f"{label} is not a valid {key_format} DER structure") from None

    if not isinstance(key, _KEY_TYPE_BY_ROLE[key_role]):
        raise KeyImportError(f"{label} is not an RSA key")

    if key.key_size < MIN_RSA_KEY_SIZE:
        raise KeyImportError(
            f"{label} must be at least {MIN_RSA_KEY_SIZE} bits for {ALGORITHM_NAME}"
        )

    logger.debug("Imported %s %s key (%d bits)", key_role.value, ALGORITHM_NAME, key.key_size)
    return KeyMaterial(key, key_role)
