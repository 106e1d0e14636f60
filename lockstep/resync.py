"""Lockfile resynchronization and optional build verification."""

from dataclasses import replace
from pathlib import Path

from .cargo import Cargo
from .config import LOCKFILE_FILE
from .errors import error_context
from .git import Git
from .models import Diagnostic, UpgradeSession


def _check(directory: Path, cargo: Cargo, diagnostics: list[Diagnostic]) -> None:
    diagnostics.append(Diagnostic.info(f"Running `cargo check --all-targets` in {directory}..."))
    with error_context(f"`cargo check` failed in {directory}"):
        cargo.check(directory)


def refresh_lockfile(
    session: UpgradeSession,
    directory: Path,
    cargo: Cargo,
) -> tuple[UpgradeSession, list[Diagnostic]]:
    """Bring ``Cargo.lock`` in line with edited manifests.

    ``cargo metadata`` forces a full resolution, which rewrites the lockfile
    for every edited requirement at once.
    """
    diagnostics: list[Diagnostic] = []
    with error_context(f"Failed to run `cargo metadata` to resolve dependencies in {directory}"):
        cargo.metadata(directory)

    if session.check:
        _check(directory, cargo, diagnostics)
    return session, diagnostics


def update_lockfile(
    session: UpgradeSession,
    directory: Path,
    cargo: Cargo,
    git: Git,
) -> tuple[UpgradeSession, list[Diagnostic]]:
    """Run ``cargo update`` and record whether the lockfile changed.

    The build check only runs for projects whose lockfile changed.
    """
    diagnostics = [Diagnostic.info(f"Running `cargo update` in {directory}...")]
    with error_context(f"`cargo update` failed in {directory}"):
        cargo.update(directory)

    if git.is_working_tree_clean(directory / LOCKFILE_FILE):
        diagnostics.append(Diagnostic.info("Already up-to-date!"))
        return session, diagnostics

    session = replace(
        session,
        any_changes=True,
        changed_projects=session.changed_projects + (directory,),
    )
    if session.check:
        _check(directory, cargo, diagnostics)
    return session, diagnostics
