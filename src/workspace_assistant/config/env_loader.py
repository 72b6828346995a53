"""Environment detection and prioritized .env loading."""

import os
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv

from workspace_assistant.config.validators import project_root as default_project_root
from workspace_assistant.telemetry import get_logger

log = get_logger(__name__)


class Environment(str, Enum):
    """Deployment environments."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


_ENVIRONMENT_ALIASES: dict[str, Environment] = {
    "production": Environment.PRODUCTION,
    "prod": Environment.PRODUCTION,
    "staging": Environment.STAGING,
    "stage": Environment.STAGING,
    "test": Environment.TEST,
}


def get_environment() -> Environment:
    """Detect the current environment from ``APP_ENV``.

    Read directly from the process environment because it decides which
    .env files are loaded before settings exist.

    Returns:
        Matching Environment, DEVELOPMENT when unset or unknown.
    """
    return _ENVIRONMENT_ALIASES.get(os.getenv("APP_ENV", "").lower(), Environment.DEVELOPMENT)


def load_env_files(project_root: Path | None = None) -> list[str]:
    """Load .env files, lowest priority first.

    Order: ``.env``, ``.env.local``, ``.env.{environment}``,
    ``.env.{environment}.local``. Variables already present in the process
    environment are never overridden.

    Args:
        project_root: Directory holding the .env files. Defaults to the repo root.

    Returns:
        Relative names of the files that were loaded.
    """
    root = project_root or default_project_root()
    env_name = get_environment().value

    candidates = [
        root / ".env",
        root / ".env.local",
        root / f".env.{env_name}",
        root / f".env.{env_name}.local",
    ]

    loaded: list[str] = []
    for env_file in candidates:
        if env_file.exists():
            load_dotenv(env_file, override=False)
            loaded.append(env_file.name)

    if loaded:
        log.info("env_files_loaded", environment=env_name, files=loaded, project_root=str(root))
    else:
        log.debug("no_env_files_found", environment=env_name, project_root=str(root))
    return loaded
