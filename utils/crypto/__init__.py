"""
Cryptography utilities package for the OAEP gateway.
"""

from utils.crypto.codec import DecodeError, decode_text, encode_bytes
from utils.crypto.keys import KeyImportError, KeyMaterial, KeyRole, KeyUsageError, import_key

__all__ = [
    'DecodeError',
    'KeyImportError',
    'KeyMaterial',
    'KeyRole',
    'KeyUsageError',
    'decode_text',
    'encode_bytes',
    'import_key',
]
