"""Dependency resolver for pici.

This module turns the secondary manifest into a list of ``name@version``
specifiers, looking up missing versions in the primary manifest.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pici.config.parser import (
    file_exists,
    load_custom_manifest,
    load_json,
    load_package_manifest,
    save_custom_manifest,
    validate_custom_manifest,
)
from pici.config.schemas import DEFAULT_FIELDS, CustomManifest

logger = logging.getLogger("pici.resolver")

ANY_VERSION = "*"


class PackageNotFoundError(Exception):
    """A package is not declared in any selected field of package.json."""

    def __init__(self, package_name: str, manifest_path: Path | None = None):
        self.package_name = package_name
        self.manifest_path = manifest_path
        where = manifest_path.name if manifest_path else "package.json"
        super().__init__(f"Package '{package_name}' not found in {where}")


@dataclass
class ResolutionResult:
    """Result of resolving the secondary manifest."""

    specifiers: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def format_specifier(name: str, version: str) -> str:
    """Build a ``name@version`` specifier."""
    return f"{name}@{version}"


def parse_specifier(spec: str) -> tuple[str, str]:
    """Split a specifier into name and version.

    The split happens at the last ``@``. A leading ``@`` belongs to a
    scoped package name, so ``@scope/pkg`` has no version.

    Examples:
        >>> parse_specifier("foo@^1.2.3")
        ('foo', '^1.2.3')
        >>> parse_specifier("@scope/pkg@2.0.0")
        ('@scope/pkg', '2.0.0')
        >>> parse_specifier("foo")
        ('foo', '*')
    """
    at = spec.rfind("@")
    if at <= 0:
        return spec, ANY_VERSION
    name, version = spec[:at], spec[at + 1 :]
    return name, version or ANY_VERSION


def get_install_list(
    custom_path: Path,
    manifest_path: Path,
    fields: Sequence[str] = DEFAULT_FIELDS,
) -> ResolutionResult:
    """Resolve the packages listed in the secondary manifest.

    Args:
        custom_path: Path to the secondary manifest
        manifest_path: Path to package.json
        fields: package.json fields to look versions up in; later fields
            win when a package appears in more than one

    Returns:
        ResolutionResult with specifiers in secondary manifest order

    Raises:
        ManifestNotFoundError: If either manifest is missing
        ManifestParseError: If either manifest is invalid
    """
    custom = load_custom_manifest(custom_path)
    main = load_package_manifest(manifest_path)

    main_deps: dict[str, str] = {}
    for field_name in fields:
        main_deps.update(main.get_field(field_name))

    result = ResolutionResult()
    for name, version in custom.dependencies.items():
        if isinstance(version, str) and version.strip():
            result.specifiers.append(format_specifier(name, version))
        elif main_deps.get(name):
            result.specifiers.append(format_specifier(name, main_deps[name]))
        else:
            message = (
                f"No version specified for '{name}' in {custom_path.name} and not found "
                f"in selected fields of {manifest_path.name}. This package will be skipped."
            )
            logger.warning(message)
            result.skipped.append(name)
            result.warnings.append(message)

    logger.debug("Resolved %d package(s) from %s", len(result.specifiers), custom_path)
    return result


def get_package_version(
    package_name: str,
    manifest_path: Path,
    fields: Sequence[str] = DEFAULT_FIELDS,
) -> str | None:
    """Look up a single package's version in package.json.

    Args:
        package_name: Name of the package
        manifest_path: Path to package.json
        fields: Fields to search, first match wins

    Returns:
        The version range, or None if the package is not declared

    Raises:
        ManifestNotFoundError: If package.json is missing
        ManifestParseError: If package.json is invalid
    """
    main = load_package_manifest(manifest_path)

    for field_name in fields:
        version = main.get_field(field_name).get(package_name)
        if version:
            logger.debug("Found %s@%s in %s", package_name, version, field_name)
            return version

    return None


def add_package(package_name: str, custom_path: Path) -> CustomManifest:
    """Add a package with an unspecified version to the secondary manifest.

    The file is created if it does not exist. An existing entry for the
    package is reset to an empty version. Other keys keep their order.

    Returns:
        The manifest as written
    """
    original: dict[str, Any] = load_json(custom_path) if file_exists(custom_path) else {}
    custom = validate_custom_manifest(original, custom_path)

    custom.add_dependency(package_name)
    save_custom_manifest(custom_path, custom, original)
    logger.info("Added %s to %s", package_name, custom_path)
    return custom
