"""Load ``.env`` files holding gateway settings and key material."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple

from dotenv import dotenv_values

logger = logging.getLogger(__name__)


EXPLICIT_ENV_FILE_VAR = "OAEP_GATEWAY_ENV_FILE"
ENVIRONMENT_VAR = "OAEP_GATEWAY_ENV"


@dataclass(frozen=True)
class EnvLoadResult:
    """Summary of the environment files loaded during bootstrap.

    Only variable names are recorded; env files carry private key material
    and their values must not travel further than ``os.environ``.
    """

    loaded_files: Tuple[Path, ...]
    applied_keys: Tuple[str, ...]
    resolved_env: Optional[str]
    explicit_file: Optional[Path]


def _default_root() -> Path:
    """Return the repository root assumed to hold the .env files."""

    return Path(__file__).resolve().parent.parent


def _resolve_explicit(explicit: Optional[os.PathLike[str] | str]) -> Optional[Path]:
    if not explicit:
        return None
    try:
        return Path(explicit).expanduser().resolve()
    except OSError:
        logger.warning("Unable to resolve explicit env file path: %s", explicit)
        return None


def _read(path: Path) -> Dict[str, str]:
    try:
        values = dotenv_values(path)
    except OSError as exc:
        logger.warning("Failed to read env file %s: %s", path, exc)
        return {}
    return {key: value for key, value in values.items() if value is not None}


def _layered_files(root: Path, env: Optional[str]) -> Iterator[Path]:
    yield root / ".env"
    if env:
        yield root / f".env.{env}"
    yield root / ".env.local"


def load_project_env(
    env: Optional[str] = None,
    *,
    root: Optional[Path] = None,
    explicit: Optional[os.PathLike[str] | str] = None,
) -> EnvLoadResult:
    """Populate ``os.environ`` from the project's env files.

    Files are layered as ``.env``, ``.env.<environment>``, ``.env.local`` and
    finally the file named by ``OAEP_GATEWAY_ENV_FILE`` (or ``explicit``);
    later files win over earlier ones. Variables already set in the process
    environment are never replaced.
    """

    search_root = root or _default_root()
    merged: Dict[str, str] = {}
    loaded: list[Path] = []

    base_values = _read(search_root / ".env") if (search_root / ".env").is_file() else {}
    resolved_env = env or base_values.get(ENVIRONMENT_VAR) or os.environ.get(ENVIRONMENT_VAR)

    for path in _layered_files(search_root, resolved_env):
        if not path.is_file():
            continue
        values = base_values if path == search_root / ".env" else _read(path)
        if values:
            merged.update(values)
            loaded.append(path)

    explicit_path = _resolve_explicit(explicit or os.environ.get(EXPLICIT_ENV_FILE_VAR))
    if explicit_path:
        if explicit_path.is_file():
            values = _read(explicit_path)
            if values:
                merged.update(values)
                loaded.append(explicit_path)
        else:
            logger.warning("Explicit env file %s does not exist", explicit_path)

    applied = []
    for key, value in merged.items():
        if key not in os.environ:
            os.environ[key] = value
            applied.append(key)

    if applied:
        logger.debug("Applied %d variables from env files", len(applied))

    return EnvLoadResult(
        loaded_files=tuple(loaded),
        applied_keys=tuple(applied),
        resolved_env=resolved_env,
        explicit_file=explicit_path,
    )


__all__ = ["EnvLoadResult", "load_project_env", "EXPLICIT_ENV_FILE_VAR", "ENVIRONMENT_VAR"]
