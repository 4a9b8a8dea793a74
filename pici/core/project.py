"""Project model representing the directory pici operates in."""

import os
from pathlib import Path

from pici.config.parser import load_project_config
from pici.config.schemas import MAIN_PACKAGE_FILE, ProjectConfig


class Project:
    """Represents a package.json project directory.

    Every path pici touches is resolved against the project root rather
    than the process working directory.
    """

    LOCKFILES = ("package-lock.json", "npm-shrinkwrap.json", "yarn.lock")
    def __init__(self, root: Path, config: ProjectConfig | None = None):
        """Initialize a Project.

        Args:
            root: Path to the project root directory
            config: Parsed project configuration (defaults if None)
        """
        self._root = root.resolve()
        self._config = config if config is not None else ProjectConfig()

    @classmethod
    def load(cls, path: Path | None = None) -> "Project":
        """Load a project from disk.

        Args:
            path: Path to the project root, or None for the current directory

        Returns:
            Loaded Project instance

        Raises:
            FileNotFoundError: If the directory does not exist
            ConfigError: If pici.yaml exists but is invalid
        """
        path = Path.cwd() if path is None else path.resolve()
        if not path.is_dir():
            raise FileNotFoundError(f"Directory does not exist: {path}")

        config = load_project_config(path)
        return cls(path, config)

    @property
    def root(self) -> Path:
        """Get the project root directory."""
        return self._root

    @property
    def config(self) -> ProjectConfig:
        """Get the underlying configuration."""
        return self._config

    @property
    def manifest_path(self) -> Path:
        """Get the path of the primary manifest (package.json)."""
        return self._root / MAIN_PACKAGE_FILE

    @property
    def custom_file_path(self) -> Path:
        """Get the configured secondary manifest path."""
        return self.resolve_path(self._config.custom_file)

    @property
    def fields(self) -> list[str]:
        """Get the configured dependency fields."""
        return list(self._config.fields)

    @property
    def lockfile_paths(self) -> list[Path]:
        """Get the paths of every lockfile pici knows about."""
        return [self._root / name for name in self.LOCKFILES]

    def resolve_path(self, name: str | Path) -> Path:
        """Resolve a user-supplied path against the project root."""
        path = Path(name)
        if not path.is_absolute():
            path = self._root / path
        return Path(os.path.abspath(path))

    def __repr__(self) -> str:
        return f"Project(root={self._root!r})"
