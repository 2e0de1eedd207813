"""
RSA-OAEP text transforms.

``encrypt`` turns a UTF-8 string into base64 ciphertext with an encrypt-only
key; ``decrypt`` reverses it with the matching decrypt-only key. Both work on
a single RSA block, so plaintexts are limited to ``key.max_plaintext_bytes``
(190 bytes for a 2048-bit key).
"""

from utils.crypto.codec import DecodeError, decode_text, encode_bytes
from utils.crypto.keys import KeyCapability, KeyMaterial, KeyUsageError

DECRYPTION_FAILED_MESSAGE = "Decryption failed"


class EncryptionError(Exception):
    """Raised when plaintext cannot be encrypted."""


class DecryptionError(Exception):
    """Raised when ciphertext cannot be decrypted.

    The message is always the same so callers learn nothing about why a
    particular ciphertext was rejected.
    """

    def __init__(self, message: str = DECRYPTION_FAILED_MESSAGE):
        super().__init__(message)


def _ensure_capability(key: KeyMaterial, capability: KeyCapability) -> None:
    if not isinstance(key, KeyMaterial):
        raise TypeError("key must be a KeyMaterial instance")
    if key.capability is not capability:
        raise KeyUsageError(
            f"{key.role.value.capitalize()} key cannot be used to {capability.value}"
        )


def encrypt(plaintext: str, key: KeyMaterial) -> str:
    """
    Encrypt *plaintext* with RSA-OAEP/SHA-256.

    Args:
        plaintext: Text to encrypt; it is UTF-8 encoded first.
        key: An encrypt-capable key from :func:`utils.crypto.keys.import_key`.

    Returns:
        The ciphertext as standard base64 text.

    Raises:
        TypeError: If *plaintext* is not a string.
        KeyUsageError: If *key* is not an encryption key.
        EncryptionError: If the encoded plaintext exceeds the key's payload
            limit or the provider rejects the operation.
    """
    if not isinstance(plaintext, str):
        raise TypeError("plaintext must be a string")
    _ensure_capability(key, KeyCapability.ENCRYPT)

    data = plaintext.encode("utf-8")
    limit = key.max_plaintext_bytes
    if len(data) > limit:
        raise EncryptionError(
            f"Plaintext is {len(data)} bytes; RSA-OAEP with a {key.key_size}-bit key "
            f"accepts at most {limit} bytes"
        )

    try:
        ciphertext = key.encrypt_block(data)
    except ValueError as exc:
        raise EncryptionError(f"Encryption failed: {exc}") from exc

    return encode_bytes(ciphertext)


def decrypt(ciphertext_text: str, key: KeyMaterial) -> str:
    """
    Decrypt base64 RSA-OAEP/SHA-256 ciphertext back to text.

    Every failure past the capability check raises the same
    :class:`DecryptionError` regardless of whether the input was malformed,
    tampered with, or encrypted for another key.
    """
    _ensure_capability(key, KeyCapability.DECRYPT)

    try:
        ciphertext = decode_text(ciphertext_text)
    except DecodeError:
        raise DecryptionError() from None

    if len(ciphertext) != key.modulus_bytes:
        raise DecryptionError()

    try:
        data = key.decrypt_block(ciphertext)
    except ValueError:
        raise DecryptionError() from None

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        raise DecryptionError() from None
