import os
import re
from pathlib import Path
from typing import Any

import toml

DEFAULT_CHUNKS_FILE = "chunks.json"


def resolve_path(path: str | Path, config_path: Path) -> Path:
    """Resolve a path relative to the config file's parent directory.

    Absolute paths are returned as-is.
    """
    path = Path(path)
    if path.is_absolute():
        return path
    return (config_path.parent / path).resolve()


def find_config_path(explicit_path: Path | None = None) -> Path:
    """Centralized config path resolution."""
    if explicit_path:
        return explicit_path
    candidates = [
        Path("config.toml"),
        Path(__file__).parent.parent.parent / "config.toml",
    ]
    for path in candidates:
        if path.exists():
            return path
    raise FileNotFoundError("config.toml not found")


def load_config(config_path: Path = Path("config.toml")) -> dict[str, Any]:
    """Load configuration from TOML file with environment variable substitution.

    Supports ${ENV_VAR} and ${ENV_VAR:-default} syntax. Substituted values stay
    strings; numeric settings are coerced where they are read.

    Args:
        config_path: Path to the TOML configuration file.

    Returns:
        Dictionary with configuration values.
    """
    config = toml.load(config_path)
    return _substitute_env_vars(config)


def _substitute_env_vars(value: Any) -> Any:
    """Recursively substitute environment variables in config values."""
    if isinstance(value, str):
        return _substitute_string(value)
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    return value


def _substitute_string(value: str) -> str:
    pattern = r"\$\{([^}:]+)(?::-([^}]*))?\}"

    def replacer(match):
        var_name = match.group(1)
        default = match.group(2) or ""
        return os.environ.get(var_name, default)

    return re.sub(pattern, replacer, value)


def get_config_value(config: dict, key_path: str, default: Any = None) -> Any:
    """Get a nested config value using dot notation.

    Args:
        config: Configuration dictionary.
        key_path: Dot-separated path (e.g., "retrieval.preset").
        default: Default value if key not found.

    Returns:
        The config value or default.
    """
    keys = key_path.split(".")
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


def get_float(config: dict, key_path: str, default: float | None = None) -> float | None:
    """Read an optional float setting; empty strings count as unset."""
    value = get_config_value(config, key_path, default)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Config value {key_path}={value!r} is not a number") from e


def get_int(config: dict, key_path: str, default: int | None = None) -> int | None:
    """Read an optional integer setting; empty strings count as unset."""
    value = get_config_value(config, key_path, default)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Config value {key_path}={value!r} is not an integer") from e


def get_storage_dir(config: dict, config_path: Path) -> Path:
    """Get the storage directory path from configuration."""
    storage_dir = config.get("storage", {}).get("directory", "storage")
    return resolve_path(storage_dir, config_path)


def get_chunk_store_path(config: dict, config_path: Path) -> Path:
    """Get the chunk store file path from configuration."""
    filename = config.get("storage", {}).get("chunks_file", DEFAULT_CHUNKS_FILE)
    return get_storage_dir(config, config_path) / filename


def get_ingestion_dir(config: dict, config_path: Path) -> Path:
    """Get the ingestion directory path from configuration."""
    ingestion_dir = config.get("ingestion", {}).get("directory", "data/documents")
    return resolve_path(ingestion_dir, config_path)
