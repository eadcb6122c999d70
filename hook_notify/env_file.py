"""
Env file handler - read and rewrite KEY=VALUE configuration files
"""
import io
import logging
from pathlib import Path
from typing import Dict, Mapping

from dotenv import dotenv_values, set_key

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or written"""
    pass


def read_env_file(path: Path) -> Dict[str, str]:
    """Read all variables from an env file. A missing file reads as empty."""
    path = Path(path)
    if not path.exists():
        return {}

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e

    # Keys without a value ("FOO" alone on a line) parse as None
    values = dotenv_values(stream=io.StringIO(text), interpolate=False)
    return {key: value for key, value in values.items() if value is not None}


def write_env_values(path: Path, updates: Mapping[str, str]) -> None:
    """Update an env file in place, preserving comments and other variables"""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        for key, value in updates.items():
            set_key(str(path), key, value, quote_mode="never")
    except OSError as e:
        raise ConfigError(f"Failed to write {path}: {e}") from e

    logger.info(f"Updated {path} with variables: {list(updates.keys())}")
