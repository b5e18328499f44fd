from __future__ import annotations

import os
from pathlib import Path

APP_ENV_HOME = "LIFEOS_HOME"
APP_ENV_DB = "LIFEOS_DB"
APP_ENV_CONFIG = "LIFEOS_CONFIG"


def project_root() -> Path:
    """
    Repository/project root directory.
    Contains lifeos/, api/, config/, tests/.
    """
    return Path(__file__).parent.parent.resolve()


def app_home() -> Path:
    """
    User-writable home for the Life OS pipeline.
    Override with LIFEOS_HOME.
    """
    if os.environ.get(APP_ENV_HOME):
        return Path(os.environ[APP_ENV_HOME]).expanduser().resolve()
    return (Path.home() / ".lifeos").resolve()


def data_dir() -> Path:
    d = app_home() / "data"
    d.mkdir(parents=True, exist_ok=True)
    return d


def db_path() -> Path:
    """
    Canonical document store path.

    Resolution order:
    1. LIFEOS_DB env var (explicit override)
    2. ~/.lifeos/data/lifeos.db (default)
    """
    if os.environ.get(APP_ENV_DB):
        return Path(os.environ[APP_ENV_DB]).expanduser().resolve()
    return data_dir() / "lifeos.db"


def config_path() -> Path:
    """
    Pipeline configuration file.

    Resolution order:
    1. LIFEOS_CONFIG env var
    2. <project_root>/config/anticipation.yaml
    """
    if os.environ.get(APP_ENV_CONFIG):
        return Path(os.environ[APP_ENV_CONFIG]).expanduser().resolve()
    return project_root() / "config" / "anticipation.yaml"
