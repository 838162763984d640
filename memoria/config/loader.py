"""TOML configuration discovery and layering.

Layers, lowest precedence first:

    <config dir>/default.toml        required
    <config dir>/<environment>.toml  optional

Environment variables and constructor arguments are layered on top by
the settings class, not here.
"""

import copy
import os
import re
import tomllib
from pathlib import Path
from typing import Any

from memoria.errors import ConfigError

CONFIG_DIR_VAR = "MEMORIA_CONFIG_DIR"
ENVIRONMENT_VAR = "MEMORIA_ENV"
DEFAULT_ENVIRONMENT = "development"
DEFAULT_FILE = "default.toml"

# environment names become file names
_ENVIRONMENT_NAME = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


def get_config_dir(start: Path | None = None) -> Path:
    """Locate the configuration directory.

    ``MEMORIA_CONFIG_DIR`` wins when set. Otherwise the nearest ``config/``
    holding a ``default.toml``, searching ``start`` (the working directory
    by default) and then its parents.

    Raises:
        ConfigError: If MEMORIA_CONFIG_DIR points at a missing directory
    """
    explicit = os.environ.get(CONFIG_DIR_VAR)
    if explicit:
        path = Path(explicit)
        if not path.is_dir():
            raise ConfigError(f"Config directory not found: {explicit}")
        return path

    origin = (start or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        candidate = directory / "config"
        if (candidate / DEFAULT_FILE).is_file():
            return candidate
    return Path("config")


def get_environment() -> str:
    """Environment name from MEMORIA_ENV, lower-cased; 'development' if unset.

    Raises:
        ConfigError: If the name could not be used as a file name
    """
    name = os.environ.get(ENVIRONMENT_VAR, "").strip().lower() or DEFAULT_ENVIRONMENT
    if not _ENVIRONMENT_NAME.match(name):
        raise ConfigError(f"Invalid {ENVIRONMENT_VAR} value: {name!r}")
    return name


def load_toml(file_path: Path) -> dict[str, Any]:
    """Parse one TOML file.

    Raises:
        ConfigError: If the file is missing or not valid TOML
    """
    try:
        with file_path.open("rb") as f:
            return tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {file_path}", cause=e) from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {file_path}: {e}", cause=e) from e


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``; tables merge key by key."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def config_files(config_dir: Path, environment: str) -> list[Path]:
    """Files that make up the configuration, in merge order.

    Raises:
        ConfigError: If default.toml is missing
    """
    default_path = config_dir / DEFAULT_FILE
    if not default_path.is_file():
        raise ConfigError(
            f"Default configuration file not found: {default_path}. "
            f"Create config/{DEFAULT_FILE} or set {CONFIG_DIR_VAR}."
        )

    files = [default_path]
    overlay = config_dir / f"{environment}.toml"
    if environment != "default" and overlay.is_file():
        files.append(overlay)
    return files


def load_config(
    config_dir: Path | None = None,
    environment: str | None = None,
) -> dict[str, Any]:
    """Load and merge the TOML layers into one dictionary."""
    files = config_files(config_dir or get_config_dir(), environment or get_environment())

    config: dict[str, Any] = {}
    for path in files:
        config = deep_merge(config, load_toml(path))
    return config
