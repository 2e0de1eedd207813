"""
Configuration for the OAEP gateway.
Values are loaded from environment variables with sensible defaults.
"""

import copy
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, cast

from utils.config_schema import (
    APISettings,
    AppConfig,
    DEFAULT_CONFIG,
    ENV_OVERRIDES,
    SecuritySettings,
    ServerSettings,
)
from utils.env_loader import ENVIRONMENT_VAR, EnvLoadResult, load_project_env

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger('config')

PRIVATE_KEY_ENV = 'PRIVATE_KEY'
PUBLIC_KEY_ENV = 'PUBLIC_KEY'


@dataclass(frozen=True)
class SensitiveKey:
    """Represents a dot-delimited config key whose value must never be exposed."""

    path: str

    @property
    def parts(self) -> List[str]:
        """Return the split path segments for traversal."""

        return self.path.split('.')


SENSITIVE_CONFIG_KEYS: List[SensitiveKey] = [
    SensitiveKey("keys.private_key"),
    SensitiveKey("keys.public_key"),
]


class Config:
    """Configuration manager for the gateway"""

    def __init__(self, env: Optional[str] = None, config_path: Optional[str] = None):
        """
        Initialize configuration with the specified environment.
        If env is None, it tries to read from OAEP_GATEWAY_ENV,
        defaulting to 'development' if not set.
        """
        self.env_bootstrap: EnvLoadResult = load_project_env(env)
        self.loaded_env_files = self.env_bootstrap.loaded_files

        self.env = (
            env
            or self.env_bootstrap.resolved_env
            or os.environ.get(ENVIRONMENT_VAR)
            or 'development'
        )

        if self.loaded_env_files:
            logger.debug(
                "Loaded environment files for %s: %s",
                self.env,
                ", ".join(str(path) for path in self.loaded_env_files),
            )

        # Deep copy so DEFAULT_CONFIG is never mutated
        self.config: AppConfig = copy.deepcopy(DEFAULT_CONFIG)

        if self.env in ENV_OVERRIDES:
            self._merge_configs(self.config, copy.deepcopy(ENV_OVERRIDES[self.env]))

        self.config_path = config_path or os.environ.get('OAEP_GATEWAY_CONFIG')
        if self.config_path:
            self._load_user_config()

        self._apply_runtime_env_overrides()

        logger.info(f"Configuration initialized for environment: {self.env}")

    def _load_user_config(self):
        """Load user configuration file and merge with current config"""
        try:
            with open(self.config_path, 'r') as f:
                user_config = json.load(f)
        except FileNotFoundError:
            logger.warning(f"User configuration file not found: {self.config_path}")
            return
        except json.JSONDecodeError:
            logger.error(f"Error decoding JSON in user configuration file: {self.config_path}")
            return

        if not isinstance(user_config, dict):
            logger.error(f"User configuration must be a JSON object: {self.config_path}")
            return

        # Key material only ever comes from the environment.
        user_config.pop('keys', None)
        self._merge_configs(self.config, user_config)
        logger.info(f"Loaded user configuration from {self.config_path}")

    def _merge_configs(self, base_config: Dict[str, Any], override_config: Dict[str, Any]):
        """
        Recursively merge the override_config into the base_config.
        """
        for key, value in override_config.items():
            if key in base_config and isinstance(base_config[key], dict) and isinstance(value, dict):
                self._merge_configs(base_config[key], value)
            else:
                base_config[key] = value

    def _apply_runtime_env_overrides(self) -> None:
        """Apply environment variable overrides to the configuration tree."""

        private_key = os.environ.get(PRIVATE_KEY_ENV, '').strip()
        if private_key:
            self.set('keys.private_key', private_key)

        public_key = os.environ.get(PUBLIC_KEY_ENV, '').strip()
        if public_key:
            self.set('keys.public_key', public_key)

        service_name = os.environ.get('SERVICE_NAME', '').strip()
        if service_name:
            self.set('api.service_name', service_name)

        for env_var, key in (
            ('OAEP_GATEWAY_CACHE_KEYS', 'security.cache_keys'),
            ('OAEP_GATEWAY_METRICS', 'metrics.enabled'),
        ):
            raw = os.environ.get(env_var)
            if raw is None:
                continue
            parsed = self._parse_bool(raw)
            if parsed is not None:
                self.set(key, parsed)
            elif raw.strip():
                logger.warning("Invalid %s value: %s", env_var, raw)

        timeout = os.environ.get('OAEP_GATEWAY_PROXY_TIMEOUT')
        if timeout:
            try:
                parsed_timeout = float(timeout)
            except ValueError:
                logger.warning("Invalid OAEP_GATEWAY_PROXY_TIMEOUT value: %s", timeout)
            else:
                if parsed_timeout > 0:
                    self.set('api.proxy_timeout', parsed_timeout)
                else:
                    logger.warning("OAEP_GATEWAY_PROXY_TIMEOUT must be positive")

    @staticmethod
    def _parse_bool(value: Optional[str]) -> Optional[bool]:
        """Parse boolean-like environment overrides."""

        if value is None:
            return None

        lowered = str(value).strip().lower()
        if not lowered:
            return None

        if lowered in {'1', 'true', 'yes', 'on'}:
            return True
        if lowered in {'0', 'false', 'no', 'off'}:
            return False

        return None

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value by dot-separated key path.
        E.g., config.get('server.port')
        """
        keys = key.split('.')
        value = self.config
        try:
            for k in keys:
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any):
        """
        Set a configuration value by dot-separated key path.
        E.g., config.set('server.port', 8080)
        """
        keys = key.split('.')
        config = self.config
        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]
        config[keys[-1]] = value

    def redacted(self) -> Dict[str, Any]:
        """Return a deepcopy of the config with key material blanked out."""

        redacted = copy.deepcopy(self.config)
        for key in SENSITIVE_CONFIG_KEYS:
            cursor: Any = redacted
            parts = key.parts
            for segment in parts[:-1]:
                if not isinstance(cursor, dict):
                    break
                cursor = cursor.get(segment)
            else:
                if isinstance(cursor, dict) and cursor.get(parts[-1]) is not None:
                    cursor[parts[-1]] = '<redacted>'
        return redacted

    def __repr__(self) -> str:
        return f"Config(env={self.env!r}, config={self.redacted()!r})"

    @property
    def is_testing(self) -> bool:
        """Check if the current environment is testing"""
        return self.env == 'testing'

    @property
    def is_production(self) -> bool:
        """Check if the current environment is production"""
        return self.env == 'production'

    @property
    def private_key_b64(self) -> Optional[str]:
        return self.get('keys.private_key')

    @property
    def public_key_b64(self) -> Optional[str]:
        return self.get('keys.public_key')

    # ------------------------------------------------------------------
    # Typed section helpers
    # ------------------------------------------------------------------

    @property
    def server_settings(self) -> ServerSettings:
        return cast(ServerSettings, self.config['server'])

    @property
    def api_settings(self) -> APISettings:
        return cast(APISettings, self.config['api'])

    @property
    def security_settings(self) -> SecuritySettings:
        return cast(SecuritySettings, self.config['security'])


_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance, creating it on first use"""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config(config: Optional[Config] = None) -> None:
    """Replace the global configuration; used by tests and the app factory."""
    global _config
    _config = config
