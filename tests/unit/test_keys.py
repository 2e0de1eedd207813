"""Tests for RSA-OAEP key import and the key handle's restrictions."""

import base64
import copy
import pickle

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from utils.crypto.keys import (
    KeyCapability,
    KeyImportError,
    KeyMaterial,
    KeyRole,
    KeyUsageError,
    MIN_RSA_KEY_SIZE,
    import_key,
)


def test_public_key_imports_as_encrypt_only(key_pair):
    key = import_key(key_pair["public_b64"], "public")

    assert isinstance(key, KeyMaterial)
    assert key.role is KeyRole.PUBLIC
    assert key.capability is KeyCapability.ENCRYPT
    assert key.algorithm == "RSA-OAEP"
    assert key.hash_name == "SHA-256"
    assert key.key_size == 2048


def test_private_key_imports_as_decrypt_only(key_pair):
    key = import_key(key_pair["private_b64"], KeyRole.PRIVATE)

    assert key.role is KeyRole.PRIVATE
    assert key.capability is KeyCapability.DECRYPT


def test_payload_limits_for_2048_bit_key(key_pair):
    key = import_key(key_pair["public_b64"], "public")

    assert key.modulus_bytes == 256
    assert key.max_plaintext_bytes == 190


def test_whitespace_in_blob_is_ignored(key_pair):
    blob = key_pair["public_b64"]
    wrapped = "\n".join(blob[i:i + 64] for i in range(0, len(blob), 64))

    assert import_key(f"  {wrapped}\n", "public").role is KeyRole.PUBLIC


def test_public_key_cannot_decrypt(key_pair):
    key = import_key(key_pair["public_b64"], "public")

    with pytest.raises(KeyUsageError):
        key.decrypt_block(b"\x00" * 256)


def test_private_key_cannot_encrypt(key_pair):
    key = import_key(key_pair["private_b64"], "private")

    with pytest.raises(KeyUsageError):
        key.encrypt_block(b"hello")


def test_key_material_is_not_extractable(key_pair):
    key = import_key(key_pair["private_b64"], "private")

    assert not hasattr(key, "private_bytes")
    assert not hasattr(key, "public_bytes")
    assert key_pair["private_b64"][:32] not in repr(key)
    with pytest.raises(TypeError):
        pickle.dumps(key)
    with pytest.raises(TypeError):
        copy.deepcopy(key)
    with pytest.raises(TypeError):
        copy.copy(key)


def test_key_material_is_immutable(key_pair):
    key = import_key(key_pair["public_b64"], "public")

    with pytest.raises(AttributeError):
        key._capability = KeyCapability.DECRYPT
    with pytest.raises(AttributeError):
        key.role = KeyRole.PRIVATE


def test_repr_describes_key_without_bytes(key_pair):
    key = import_key(key_pair["public_b64"], "public")

    assert repr(key) == (
        "<KeyMaterial role=public capability=encrypt algorithm=RSA-OAEP hash=SHA-256 bits=2048>"
    )


def test_unknown_role_is_rejected(key_pair):
    with pytest.raises(KeyImportError, match="Unsupported key role"):
        import_key(key_pair["public_b64"], "secret")


@pytest.mark.parametrize("blob", ["", "   ", None])
def test_missing_blob_is_rejected(blob):
    with pytest.raises(KeyImportError, match="missing"):
        import_key(blob, "public")


def test_invalid_base64_is_rejected():
    with pytest.raises(KeyImportError, match="not valid base64") as excinfo:
        import_key("not*base64!", "private")

    assert excinfo.value.__cause__ is None
    assert excinfo.value.__suppress_context__


def test_private_blob_imported_as_public_fails(key_pair):
    with pytest.raises(KeyImportError, match="SPKI"):
        import_key(key_pair["private_b64"], "public")


def test_public_blob_imported_as_private_fails(key_pair):
    with pytest.raises(KeyImportError, match="PKCS#8"):
        import_key(key_pair["public_b64"], "private")


def test_import_error_never_contains_key_bytes(key_pair):
    corrupted = key_pair["private_b64"][:-40] + "A" * 40

    with pytest.raises(KeyImportError) as excinfo:
        import_key(corrupted, "public")

    message = str(excinfo.value)
    assert key_pair["private_b64"][:20] not in message
    assert corrupted[-60:] not in message


def test_non_rsa_key_is_rejected():
    ec_key = ec.generate_private_key(ec.SECP256R1())
    spki = ec_key.public_key().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )

    with pytest.raises(KeyImportError, match="not an RSA key"):
        import_key(base64.b64encode(spki).decode("ascii"), "public")


def test_small_rsa_key_is_rejected():
    small = rsa.generate_private_key(public_exponent=65537, key_size=1024)
    spki = small.public_key().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )

    with pytest.raises(KeyImportError, match=str(MIN_RSA_KEY_SIZE)):
        import_key(base64.b64encode(spki).decode("ascii"), "public")


def test_handle_rejects_key_that_does_not_match_role(key_pair):
    with pytest.raises(TypeError):
        KeyMaterial(key_pair["private_key"], "public")
    with pytest.raises(TypeError):
        KeyMaterial(key_pair["public_key"], KeyRole.PRIVATE)


def test_handle_built_directly_is_usable(key_pair):
    public = KeyMaterial(key_pair["public_key"], "public")
    private = KeyMaterial(key_pair["private_key"], "private")

    assert private.decrypt_block(public.encrypt_block(b"hello")) == b"hello"
