"""Shared fixtures for pici tests."""

import json
import shutil
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from pici.core.package_manager import PackageManager, RunResult

PACKAGE_JSON = {
    "name": "my-app",
    "version": "2.3.0",
    "scripts": {"test": "vitest"},
    "dependencies": {"foo": "^1.2.3", "react": "^18.2.0"},
    "devDependencies": {"typescript": "~5.4.0"},
    "peerDependencies": {"react-dom": "^18.0.0"},
}

# Deliberately unusual formatting so byte-level restoration is visible.
PACKAGE_JSON_TEXT = json.dumps(PACKAGE_JSON, indent=4) + "\r\n"


def write_json(path: Path, data: dict[str, Any]) -> Path:
    """Write a JSON fixture file."""
    path.write_text(json.dumps(data, indent=2))
    return path


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory."""
    path = Path(tempfile.mkdtemp(prefix="pici_test_"))
    yield path
    if path.exists():
        shutil.rmtree(path)


@pytest.fixture
def temp_project(temp_dir: Path) -> Path:
    """Create a project directory with a package.json."""
    project_dir = temp_dir / "test-project"
    project_dir.mkdir()
    (project_dir / "package.json").write_text(PACKAGE_JSON_TEXT)
    return project_dir


@pytest.fixture
def custom_file(temp_project: Path) -> Path:
    """Create a package.custom.json in the project."""
    return write_json(
        temp_project / "package.custom.json",
        {"dependencies": {"foo": "", "lodash": "4.17.21"}},
    )


class FakeRun:
    """Stand-in for run_package_manager that records what it saw on disk."""

    def __init__(self, result: RunResult | None = None, side_effect: BaseException | None = None):
        self.result = result if result is not None else RunResult(exit_code=0)
        self.side_effect = side_effect
        self.calls: list[tuple[PackageManager, Path]] = []
        self.manifests: list[dict[str, Any]] = []
        self.present: list[set[str]] = []

    def __call__(self, manager: PackageManager, cwd: Path) -> RunResult:
        self.calls.append((manager, cwd))
        self.manifests.append(json.loads((cwd / "package.json").read_text()))
        self.present.append({p.name for p in cwd.iterdir()})
        if self.side_effect is not None:
            raise self.side_effect
        return self.result


@pytest.fixture
def fake_run() -> Generator[Callable[..., FakeRun], None, None]:
    """Patch the package manager call with a FakeRun.

    Returns a factory so tests can choose the outcome.
    """
    patchers = []

    def factory(
        result: RunResult | None = None, side_effect: BaseException | None = None
    ) -> FakeRun:
        fake = FakeRun(result, side_effect)
        patcher = patch("pici.core.installer.run_package_manager", side_effect=fake)
        patcher.start()
        patchers.append(patcher)
        return fake

    yield factory

    for patcher in patchers:
        patcher.stop()
