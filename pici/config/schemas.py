"""Pydantic schemas for pici configuration files.

This module defines the data models for:
- package.json (primary manifest)
- package.custom.json (secondary manifest)
- the synthetic manifest written during install
- pici.yaml (project configuration)
"""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

# =============================================================================
# Common Types
# =============================================================================

PackageManagerName = Literal["auto", "npm", "yarn"]

MAIN_PACKAGE_FILE = "package.json"
DEFAULT_CUSTOM_FILE = "package.custom.json"
PROJECT_CONFIG_FILE = "pici.yaml"

DEFAULT_FIELDS: tuple[str, ...] = (
    "dependencies",
    "devDependencies",
    "peerDependencies",
    "optionalDependencies",
)

SYNTHETIC_PACKAGE_NAME = "pici-temp"
SYNTHETIC_PACKAGE_VERSION = "1.0.0"


def _none_to_empty(v: Any) -> Any:
    return {} if v is None else v


# =============================================================================
# Primary Manifest (package.json)
# =============================================================================


class PackageManifest(BaseModel):
    """The project's package.json.

    Only the dependency fields are modelled. Everything else is kept as
    extra data and never interpreted.
    """

    model_config = {"extra": "allow", "populate_by_name": True}

    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict, alias="devDependencies")
    peer_dependencies: dict[str, str] = Field(default_factory=dict, alias="peerDependencies")
    optional_dependencies: dict[str, str] = Field(
        default_factory=dict, alias="optionalDependencies"
    )

    @field_validator(
        "dependencies",
        "dev_dependencies",
        "peer_dependencies",
        "optional_dependencies",
        mode="before",
    )
    @classmethod
    def default_empty(cls, v: Any) -> Any:
        """Treat an explicit null field as empty."""
        return _none_to_empty(v)

    def get_field(self, field: str) -> dict[str, str]:
        """Get a dependency mapping by its package.json key.

        Args:
            field: Key as written in package.json (e.g. "devDependencies")

        Returns:
            The mapping, or an empty dict if the field is absent or not a mapping
        """
        for name, info in type(self).model_fields.items():
            if field in (name, info.alias):
                value: dict[str, str] = getattr(self, name)
                return value

        extra = (self.model_extra or {}).get(field)
        if isinstance(extra, dict):
            return {k: v for k, v in extra.items() if isinstance(v, str)}
        return {}


# =============================================================================
# Secondary Manifest (package.custom.json)
# =============================================================================


class CustomManifest(BaseModel):
    """The user-curated secondary manifest.

    A version that is not a non-empty string (including "" and null) means
    the version is looked up in package.json.
    """

    model_config = {"extra": "allow"}

    dependencies: dict[str, Any] = Field(default_factory=dict)

    @field_validator("dependencies", mode="before")
    @classmethod
    def default_empty(cls, v: Any) -> Any:
        """Treat an explicit null dependencies field as empty."""
        return _none_to_empty(v)

    def add_dependency(self, name: str, version: str = "") -> None:
        """Insert or overwrite a dependency entry."""
        self.dependencies[name] = version


# =============================================================================
# Synthetic Manifest (written over package.json during install)
# =============================================================================


class SyntheticManifest(BaseModel):
    """Minimal package.json containing only the packages being installed."""

    name: str = SYNTHETIC_PACKAGE_NAME
    version: str = SYNTHETIC_PACKAGE_VERSION
    dependencies: dict[str, str] = Field(default_factory=dict)


# =============================================================================
# Project Configuration (pici.yaml)
# =============================================================================


class ProjectConfig(BaseModel):
    """Project configuration (pici.yaml) schema. Every key is optional."""

    custom_file: str = DEFAULT_CUSTOM_FILE
    fields: list[str] = Field(default_factory=lambda: list(DEFAULT_FIELDS))
    package_manager: PackageManagerName = "auto"

    @field_validator("fields")
    @classmethod
    def validate_fields(cls, v: list[str]) -> list[str]:
        """Strip field names and reject an empty selection."""
        cleaned = [f.strip() for f in v if f.strip()]
        if not cleaned:
            raise ValueError("At least one dependency field must be selected")
        return cleaned

    @field_validator("custom_file")
    @classmethod
    def validate_custom_file(cls, v: str) -> str:
        """Reject a blank custom file name."""
        if not v.strip():
            raise ValueError("custom_file cannot be empty")
        return v
