"""
Crypto manager module holding the gateway's configured key material.
"""
import logging
import threading
from typing import Dict, Optional, Union

from encrypt import decrypt, encrypt
from utils.crypto.keys import KeyImportError, KeyMaterial, KeyRole, import_key

logger = logging.getLogger('crypto_manager')


class KeyNotConfiguredError(KeyImportError):
    """Raised when an operation needs a key the process was not given."""


def get_config_lazy():
    """Lazy import of config to avoid circular imports"""
    from config import get_config
    return get_config()


def _log(level: str, message: str, *, exc_info: bool = False) -> None:
    """Internal helper to log messages based on environment settings.

    Info logs are suppressed in production; error logs always emit but hide
    stack traces in production environments.
    """
    try:
        is_production = get_config_lazy().is_production
    except Exception:
        is_production = False

    logger_func = getattr(logger, level)
    if level == "info":
        if not is_production:
            logger_func(message)
    else:
        logger_func(message, exc_info=exc_info and not is_production)


def log_info(message: str) -> None:
    """Log info only in non-production environments."""
    _log("info", message)


def log_error(message: str, exc_info: bool = False) -> None:
    """Log errors in all environments, without stack traces in production."""
    _log("error", message, exc_info=exc_info)


class CryptoManager:
    """
    Turns the configured key blobs into key handles and runs the transforms.

    With ``cache_keys`` enabled each role's :class:`KeyMaterial` is imported
    once, on first use, and only read afterwards. Failed imports are not
    cached, so a request after a failure retries the import.
    """

    def __init__(
        self,
        private_key_b64: Optional[str] = None,
        public_key_b64: Optional[str] = None,
        *,
        cache_keys: bool = True,
    ):
        self._blobs: Dict[KeyRole, Optional[str]] = {
            KeyRole.PRIVATE: private_key_b64 or None,
            KeyRole.PUBLIC: public_key_b64 or None,
        }
        self._cache_keys = bool(cache_keys)
        self._keys: Dict[KeyRole, KeyMaterial] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config) -> "CryptoManager":
        """Build a manager from a :class:`config.Config` instance."""
        return cls(
            private_key_b64=config.private_key_b64,
            public_key_b64=config.public_key_b64,
            cache_keys=config.security_settings.get('cache_keys', True),
        )

    @property
    def cache_keys(self) -> bool:
        return self._cache_keys

    @property
    def public_key_b64(self) -> Optional[str]:
        """The configured SPKI public key, safe to hand to clients."""
        return self._blobs[KeyRole.PUBLIC]

    def has_key(self, role: Union[KeyRole, str]) -> bool:
        return bool(self._blobs[KeyRole(role)])

    def _import(self, role: KeyRole) -> KeyMaterial:
        blob = self._blobs[role]
        if not blob:
            raise KeyNotConfiguredError(f"{role.value.capitalize()} key is not configured")
        return import_key(blob, role)

    def get_key(self, role: Union[KeyRole, str]) -> KeyMaterial:
        """Return the key handle for *role*, importing it if needed."""
        key_role = KeyRole(role)
        if not self._cache_keys:
            return self._import(key_role)

        cached = self._keys.get(key_role)
        if cached is not None:
            return cached

        with self._lock:
            cached = self._keys.get(key_role)
            if cached is None:
                cached = self._import(key_role)
                self._keys[key_role] = cached
                log_info(f"Imported and cached {key_role.value} key")
        return cached

    def preload(self) -> None:
        """Import every configured key up front so the first request is not slowed."""
        if not self._cache_keys:
            return
        for role in KeyRole:
            if not self.has_key(role):
                continue
            try:
                self.get_key(role)
            except KeyImportError as exc:
                log_error(f"Failed to import {role.value} key: {exc}")

    def encrypt_text(self, plaintext: str) -> str:
        """Encrypt *plaintext* with the configured public key."""
        return encrypt(plaintext, self.get_key(KeyRole.PUBLIC))

    def decrypt_text(self, ciphertext_text: str) -> str:
        """Decrypt base64 *ciphertext_text* with the configured private key."""
        return decrypt(ciphertext_text, self.get_key(KeyRole.PRIVATE))


# Delay instantiation until configuration has been loaded
crypto_manager: Optional[CryptoManager] = None
_manager_lock = threading.Lock()


def get_crypto_manager() -> CryptoManager:
    """Get the global crypto manager instance, creating it if necessary."""
    global crypto_manager
    if crypto_manager is None:
        with _manager_lock:
            if crypto_manager is None:
                crypto_manager = CryptoManager.from_config(get_config_lazy())
    return crypto_manager


def set_crypto_manager(manager: Optional[CryptoManager]) -> None:
    """Install *manager* as the global instance (``None`` resets it)."""
    global crypto_manager
    with _manager_lock:
        crypto_manager = manager
