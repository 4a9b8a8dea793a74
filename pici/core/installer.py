"""Package installation orchestrator.

The installer swaps package.json for a synthetic manifest listing only
the requested packages, moves the lockfiles out of the way, runs the
package manager and puts every file back afterwards. Restoration runs on
success, on failure and on KeyboardInterrupt; only a hard kill can leave
``*.pici.backup`` files behind.
"""

import logging
import os
from collections.abc import Sequence
from enum import Enum
from pathlib import Path

from pici.config.schemas import SyntheticManifest
from pici.core.package_manager import (
    PackageManager,
    RunResult,
    detect_package_manager,
    run_package_manager,
)
from pici.core.project import Project
from pici.core.resolver import parse_specifier
from pici.utils.filesystem import (
    FileBackup,
    StashError,
    backup_path_for,
    commit_staged,
    discard_file,
    stage_json,
    staging_path_for,
    stash_file,
    unstash_file,
)

logger = logging.getLogger("pici.installer")


class InstallState(str, Enum):
    """Phases of an install run."""

    IDLE = "idle"
    STAGING = "staging"
    RUNNING = "running"
    RESTORING = "restoring"
    DONE = "done"
    FAILED = "failed"


class InstallError(Exception):
    """Error during package installation."""


class RestoreError(InstallError):
    """One or more stashed files could not be put back."""

    def __init__(self, failed: list[FileBackup]):
        self.failed = failed
        details = ", ".join(f"{b.path} (backup: {b.backup_path})" for b in failed)
        super().__init__(f"Failed to restore {len(failed)} file(s): {details}")


class StaleBackupError(InstallError):
    """Backups from an earlier interrupted run are still on disk."""

    def __init__(self, backup_paths: list[Path]):
        self.backup_paths = backup_paths
        listing = ", ".join(str(p) for p in backup_paths)
        super().__init__(
            f"Found backup file(s) from an interrupted install: {listing}. "
            "Move them back into place or delete them, then retry."
        )


class SubprocessSpawnError(InstallError):
    """The package manager could not be started."""

    def __init__(self, message: str, package_manager: PackageManager):
        self.package_manager = package_manager
        super().__init__(message)


class SubprocessExitError(InstallError):
    """The package manager exited unsuccessfully."""

    def __init__(
        self,
        package_manager: PackageManager,
        exit_code: int | None,
        signal: int | None = None,
        signal_name: str | None = None,
    ):
        self.package_manager = package_manager
        self.exit_code = exit_code
        self.signal = signal
        if signal is not None:
            message = f"{package_manager.value} was terminated by signal {signal_name or signal}"
        else:
            message = f"Package installation failed with exit code {exit_code}"
        super().__init__(message)


def build_synthetic_manifest(specifiers: Sequence[str]) -> SyntheticManifest:
    """Build the package.json written in place of the real one."""
    dependencies: dict[str, str] = {}
    for spec in specifiers:
        name, version = parse_specifier(spec)
        dependencies[name] = version
    return SyntheticManifest(dependencies=dependencies)


class PackageInstaller:
    """Installs packages without leaving package.json or lockfiles changed.

    The installer moves through IDLE -> STAGING -> RUNNING -> RESTORING and
    ends in DONE or FAILED. RESTORING is always entered once staging has
    begun.
    """

    def __init__(self, project: Project, package_manager: PackageManager | None = None):
        """Initialize the installer.

        Args:
            project: The project to install into
            package_manager: Force a package manager instead of detecting one
        """
        self.project = project
        self._package_manager = package_manager
        self.state = InstallState.IDLE
        self.history: list[InstallState] = [InstallState.IDLE]

    def _transition(self, state: InstallState) -> None:
        logger.debug("Install state: %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def select_package_manager(self) -> PackageManager:
        """Get the package manager for this project."""
        if self._package_manager is not None:
            return self._package_manager
        return detect_package_manager(self.project.root, self.project.config.package_manager)

    def find_stale_backups(self) -> list[Path]:
        """List backup files left behind by an earlier run."""
        paths = [self.project.manifest_path, *self.project.lockfile_paths]
        return [backup_path_for(p) for p in paths if os.path.lexists(backup_path_for(p))]

    def install(self, specifiers: Sequence[str]) -> RunResult | None:
        """Install packages.

        Args:
            specifiers: ``name@version`` strings

        Returns:
            RunResult of the package manager, or None if there was nothing
            to install

        Raises:
            StashError: If a file could not be moved aside
            ManifestWriteError: If the synthetic manifest could not be written
            SubprocessSpawnError: If the package manager could not be started
            SubprocessExitError: If the package manager failed
            StaleBackupError: If backups from an interrupted run exist
            RestoreError: If a file could not be put back
        """
        if not specifiers:
            logger.info("No packages to install.")
            self._transition(InstallState.DONE)
            return None

        stale = self.find_stale_backups()
        if stale:
            self._transition(InstallState.FAILED)
            raise StaleBackupError(stale)

        # Detect before yarn.lock is stashed.
        manager = self.select_package_manager()
        logger.info("Installing packages (%s) using %s...", ", ".join(specifiers), manager.value)

        backups: list[FileBackup] = []
        staged: list[Path] = []

        self._transition(InstallState.STAGING)
        try:
            result = self._stage_and_run(manager, specifiers, backups, staged)
        except BaseException:
            self._transition(InstallState.RESTORING)
            self._restore(backups, staged)
            self._transition(InstallState.FAILED)
            raise

        self._transition(InstallState.RESTORING)
        failed = self._restore(backups, staged)
        if failed:
            self._transition(InstallState.FAILED)
            raise RestoreError(failed)

        if result.spawn_error is not None:
            self._transition(InstallState.FAILED)
            raise SubprocessSpawnError(result.spawn_error, manager)

        if not result.success:
            self._transition(InstallState.FAILED)
            raise SubprocessExitError(manager, result.exit_code, result.signal, result.signal_name)

        self._transition(InstallState.DONE)
        return result

    def _stage_and_run(
        self,
        manager: PackageManager,
        specifiers: Sequence[str],
        backups: list[FileBackup],
        staged: list[Path],
    ) -> RunResult:
        """Swap in the synthetic manifest and run the package manager.

        ``backups`` and ``staged`` are filled as files are touched so the
        caller can undo a partial staging.
        """
        manifest_path = self.project.manifest_path
        synthetic = build_synthetic_manifest(specifiers)

        staged.append(staging_path_for(manifest_path))
        temp_path = stage_json(manifest_path, synthetic.model_dump())

        for path in [manifest_path, *self.project.lockfile_paths]:
            backups.append(stash_file(path))

        commit_staged(temp_path, manifest_path)
        logger.debug("Wrote synthetic manifest to %s", manifest_path)

        self._transition(InstallState.RUNNING)
        return run_package_manager(manager, self.project.root)

    def _restore(self, backups: list[FileBackup], staged: list[Path]) -> list[FileBackup]:
        """Undo staging.

        Every stashed path is cleared of whatever the run left there and the
        original is moved back. Failures are logged and do not stop the
        remaining restores.

        Returns:
            Backups that could not be restored
        """
        for temp_path in staged:
            try:
                discard_file(temp_path)
            except OSError as e:
                logger.warning("Failed to remove %s: %s", temp_path, e)

        failed: list[FileBackup] = []
        for backup in reversed(backups):
            try:
                discard_file(backup.path)
                unstash_file(backup)
            except (OSError, StashError) as e:
                logger.error("Failed to restore %s: %s", backup.path, e)
                if backup.existed:
                    logger.error("Original content is kept at %s", backup.backup_path)
                failed.append(backup)
        return failed
