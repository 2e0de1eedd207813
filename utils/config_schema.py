"""Typed configuration schema and defaults for the OAEP gateway.

This module centralises the structure of the application's configuration tree.
It provides ``TypedDict`` based views for each section together with the
default configuration payload and the environment specific overrides that are
merged at runtime.
"""

from __future__ import annotations

from typing import Dict, List, Optional, TypedDict


class ServerSettings(TypedDict, total=False):
    host: str
    port: int
    debug: bool


class APISettings(TypedDict, total=False):
    service_name: str
    proxy_timeout: float


class SecuritySettings(TypedDict, total=False):
    cache_keys: bool


class KeySettings(TypedDict, total=False):
    private_key: Optional[str]
    public_key: Optional[str]


class MetricsSettings(TypedDict, total=False):
    enabled: bool


class AppConfig(TypedDict):
    server: ServerSettings
    api: APISettings
    security: SecuritySettings
    keys: KeySettings
    metrics: MetricsSettings


class PartialAppConfig(TypedDict, total=False):
    server: ServerSettings
    api: APISettings
    security: SecuritySettings
    keys: KeySettings
    metrics: MetricsSettings


# Default configuration values used to seed :class:`~config.Config`.
DEFAULT_CONFIG: AppConfig = {
    "server": {
        "host": "127.0.0.1",
        "port": 5000,
        "debug": False,
    },
    "api": {
        "service_name": "oaep-gateway",
        "proxy_timeout": 10.0,
    },
    "security": {
        "cache_keys": True,
    },
    "keys": {
        "private_key": None,
        "public_key": None,
    },
    "metrics": {
        "enabled": True,
    },
}

# Environment-specific overrides applied on top of ``DEFAULT_CONFIG``.
ENV_OVERRIDES: Dict[str, PartialAppConfig] = {
    "development": {
        "server": {
            "debug": True,
        },
    },
    "testing": {
        "server": {
            "port": 8001,
        },
        "metrics": {
            "enabled": False,
        },
    },
    "production": {
        "server": {
            "host": "0.0.0.0",
            "debug": False,
        },
    },
}

__all__ = [
    "APISettings",
    "AppConfig",
    "DEFAULT_CONFIG",
    "ENV_OVERRIDES",
    "KeySettings",
    "MetricsSettings",
    "PartialAppConfig",
    "SecuritySettings",
    "ServerSettings",
]
