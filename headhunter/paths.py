from __future__ import annotations

import os
from pathlib import Path

APP_ENV_HOME = "HEADHUNTER_HOME"
APP_ENV_DB = "HEADHUNTER_DB"


def project_root() -> Path:
    """
    Repository/project root directory.
    Contains headhunter/, api/, config/ and tests/.
    """
    return Path(__file__).parent.parent.resolve()


def app_home() -> Path:
    """
    User-writable home for the snapshot service.
    Override with HEADHUNTER_HOME.
    """
    if os.environ.get(APP_ENV_HOME):
        return Path(os.environ[APP_ENV_HOME]).expanduser().resolve()
    return (Path.home() / ".headhunter").resolve()


def data_dir() -> Path:
    d = app_home() / "data"
    d.mkdir(parents=True, exist_ok=True)
    return d


def db_path() -> Path:
    """
    Canonical DB path.

    Resolution order:
    1. HEADHUNTER_DB env var (explicit override)
    2. ~/.headhunter/data/headhunter.db (default)
    """
    if os.environ.get(APP_ENV_DB):
        return Path(os.environ[APP_ENV_DB]).expanduser().resolve()
    return data_dir() / "headhunter.db"


def config_dir() -> Path:
    """Shipped configuration (YAML targets) at the project root."""
    return project_root() / "config"
