"""Package manager detection and invocation."""

import logging
import shutil
import signal as signals
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from pici.config.schemas import PackageManagerName

logger = logging.getLogger("pici.package_manager")


class PackageManager(str, Enum):
    """Supported package managers."""

    NPM = "npm"
    YARN = "yarn"


# Install only what package.json declares, write no lockfile, skip
# audit/fund output and tolerate peer dependency conflicts.
INSTALL_ARGS: dict[PackageManager, list[str]] = {
    PackageManager.NPM: [
        "install",
        "--package-lock=false",
        "--no-audit",
        "--no-fund",
        "--legacy-peer-deps",
    ],
    PackageManager.YARN: [
        "install",
        "--no-lockfile",
        "--non-interactive",
        "--ignore-engines",
    ],
}


@dataclass(frozen=True)
class RunResult:
    """Outcome of a package manager run.

    Attributes:
        exit_code: Process exit status, None if the process never started
        signal: Signal number that killed the process, if any
        spawn_error: Why the process could not be started, if it wasn't
    """

    exit_code: int | None = None
    signal: int | None = None
    spawn_error: str | None = None

    @property
    def success(self) -> bool:
        return self.spawn_error is None and self.exit_code == 0

    @property
    def signal_name(self) -> str | None:
        if self.signal is None:
            return None
        try:
            return signals.Signals(self.signal).name
        except ValueError:
            return str(self.signal)


def detect_package_manager(
    project_root: Path, preference: PackageManagerName = "auto"
) -> PackageManager:
    """Pick the package manager for a project.

    Args:
        project_root: Project directory
        preference: "npm" or "yarn" to force one, "auto" to detect

    Returns:
        yarn when forced or when yarn.lock exists, npm otherwise
    """
    if preference != "auto":
        return PackageManager(preference)
    if (project_root / "yarn.lock").is_file():
        return PackageManager.YARN
    return PackageManager.NPM


def build_install_command(manager: PackageManager) -> list[str]:
    """Get the command line (without executable) for an install run."""
    return list(INSTALL_ARGS[manager])


def run_package_manager(manager: PackageManager, cwd: Path) -> RunResult:
    """Run an install with the given package manager.

    Output is not captured: the child inherits stdin, stdout and stderr.
    There is no timeout.

    Args:
        manager: Package manager to run
        cwd: Directory to run in

    Returns:
        RunResult describing how the process ended
    """
    executable = shutil.which(manager.value)
    if executable is None:
        logger.debug("%s is not installed or not in PATH", manager.value)
        return RunResult(spawn_error=f"{manager.value} is not installed or not in PATH")

    cmd = [executable] + build_install_command(manager)
    logger.debug("Running package manager: %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, cwd=cwd, check=False)
    except OSError as e:
        logger.debug("Failed to execute %s: %s", manager.value, e)
        return RunResult(spawn_error=f"Failed to execute {manager.value}: {e}")

    if result.returncode < 0:
        return RunResult(exit_code=result.returncode, signal=-result.returncode)
    return RunResult(exit_code=result.returncode)
