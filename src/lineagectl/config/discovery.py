"""Config file discovery and loading.

Walk-up finder locates ``lineagectl.toml`` the way git finds ``.git/``.
The ``LINEAGECTL_CONFIG`` env var and the ``--config`` flag override it.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from lineagectl.config.models import LineageConfig

CONFIG_FILENAME = "lineagectl.toml"
CONFIG_ENV_VAR = "LINEAGECTL_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for ``lineagectl.toml``.

    Checks ``LINEAGECTL_CONFIG`` first; returns None if nothing is found.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def load_config(path: Path | None = None, cwd: Path | None = None) -> LineageConfig:
    """Load and validate config from a TOML file.

    Falls back to discovery from *cwd* when *path* is None, and to the
    defaults when no file is found.
    """
    if path is None:
        path = find_config(cwd)
    if path is None:
        return LineageConfig()

    data: dict[str, Any] = tomllib.loads(path.read_text(encoding="utf-8"))
    return LineageConfig.model_validate(data)
