"""Configuration and manifest file parsing utilities."""

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from pici.config.schemas import (
    PROJECT_CONFIG_FILE,
    CustomManifest,
    PackageManifest,
    ProjectConfig,
)

logger = logging.getLogger("pici.config")


class ConfigError(Exception):
    """Error loading or parsing configuration."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        super().__init__(message)


class ManifestNotFoundError(ConfigError):
    """A required manifest file does not exist."""


class ManifestReadError(ConfigError):
    """A manifest file exists but cannot be read."""


class ManifestParseError(ConfigError):
    """A manifest file does not contain a valid JSON object."""


class ManifestWriteError(ConfigError):
    """A manifest file cannot be written."""


def file_exists(path: Path) -> bool:
    """Check whether a file exists.

    Never raises: an OS error while checking is logged and reported as
    "does not exist".
    """
    try:
        return path.is_file()
    except OSError as e:
        logger.debug("Failed to check if file exists %s: %s", path, e)
        return False


def load_json(path: Path) -> dict[str, Any]:
    """Load and parse a JSON file.

    Args:
        path: Path to the JSON file

    Returns:
        Parsed JSON as a dictionary

    Raises:
        ManifestNotFoundError: If the file does not exist
        ManifestReadError: If the file cannot be read
        ManifestParseError: If the content is not a JSON object
    """
    if not file_exists(path):
        raise ManifestNotFoundError(f"File not found: {path}", path)

    try:
        with open(path, encoding="utf-8") as f:
            result = json.load(f)
    except json.JSONDecodeError as e:
        raise ManifestParseError(f"Invalid JSON in {path}: {e}", path) from e
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestReadError(f"Cannot read {path}: {e}", path) from e

    if not isinstance(result, dict):
        raise ManifestParseError(f"JSON file must contain an object: {path}", path)
    return result


def dump_json(data: dict[str, Any], indent: int = 2) -> str:
    """Serialize data the way package.json files are written."""
    return json.dumps(data, indent=indent, ensure_ascii=False) + "\n"


def save_json(path: Path, data: dict[str, Any], indent: int = 2) -> None:
    """Save data to a JSON file.

    Args:
        path: Path to write to
        data: Data to serialize
        indent: JSON indentation level

    Raises:
        ManifestWriteError: If the file cannot be written
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(dump_json(data, indent))
    except OSError as e:
        raise ManifestWriteError(f"Cannot write {path}: {e}", path) from e


def load_yaml(path: Path) -> dict[str, Any]:
    """Load and parse a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Parsed YAML as a dictionary

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    if not path.exists():
        raise ConfigError(f"File not found: {path}", path)

    try:
        with open(path, encoding="utf-8") as f:
            result = yaml.safe_load(f)
            if result is None:
                return {}
            if not isinstance(result, dict):
                raise ConfigError(f"YAML file must contain a mapping: {path}", path)
            return result
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}", path) from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}", path) from e


def load_project_config(project_root: Path) -> ProjectConfig:
    """Load project configuration from pici.yaml.

    A missing file is not an error: the defaults are returned.

    Args:
        project_root: Path to the project root directory

    Returns:
        Parsed ProjectConfig

    Raises:
        ConfigError: If the file exists but is invalid
    """
    config_path = project_root / PROJECT_CONFIG_FILE
    if not config_path.exists():
        return ProjectConfig()

    data = load_yaml(config_path)

    try:
        return ProjectConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid project config: {e}", config_path) from e


def load_package_manifest(path: Path) -> PackageManifest:
    """Load the primary manifest (package.json).

    Raises:
        ManifestNotFoundError: If the file is missing
        ManifestParseError: If the file is not a valid manifest
    """
    data = load_json(path)

    try:
        return PackageManifest.model_validate(data)
    except ValidationError as e:
        raise ManifestParseError(f"Invalid package manifest {path}: {e}", path) from e


def load_custom_manifest(path: Path) -> CustomManifest:
    """Load the secondary manifest (package.custom.json).

    Raises:
        ManifestNotFoundError: If the file is missing
        ManifestParseError: If the file is not a valid manifest
    """
    return validate_custom_manifest(load_json(path), path)


def validate_custom_manifest(data: dict[str, Any], path: Path) -> CustomManifest:
    """Validate already-loaded secondary manifest data.

    Raises:
        ManifestParseError: If the data is not a valid manifest
    """
    try:
        return CustomManifest.model_validate(data)
    except ValidationError as e:
        raise ManifestParseError(f"Invalid custom manifest {path}: {e}", path) from e


def save_custom_manifest(
    path: Path, manifest: CustomManifest, original: dict[str, Any] | None = None
) -> None:
    """Write the secondary manifest back to disk.

    Keys present in ``original`` keep their position; new keys go last.
    """
    save_json(path, {**(original or {}), **manifest.model_dump()})
