"""Upgrade policy: decide and apply requirement bumps for one project."""

from collections.abc import Collection, Mapping
from dataclasses import dataclass, replace
from pathlib import Path

from .cargo import Cargo
from .errors import ParseError, ToolExitError, error_context
from .models import (
    DependencyRecord,
    Diagnostic,
    Op,
    SemanticVersion,
    UpgradeSession,
)
from .parse_cargo import compare_versions, parse_requirement


@dataclass(frozen=True)
class Decision:
    """Outcome of evaluating one declared dependency.

    ``target_version`` is set only when the requirement should be bumped.
    """

    dependency: DependencyRecord
    target_version: SemanticVersion | None = None
    diagnostic: Diagnostic | None = None

    @property
    def apply(self) -> bool:
        return self.target_version is not None


def decide(
    dep: DependencyRecord,
    requested: Collection[str],
    resolved: Mapping[str, SemanticVersion],
) -> Decision:
    """Decide whether ``dep`` gets bumped to its resolved latest version.

    Only a single caret comparator is ever rewritten, and only when the
    version it names is older than the latest release. Anything else is
    left untouched; every skip except "not requested" carries a diagnostic.

    Raises:
        ParseError: If the requirement text is malformed
    """
    if dep.name not in requested:
        return Decision(dep)

    candidate = resolved.get(dep.name)
    if candidate is None:
        return Decision(
            dep,
            diagnostic=Diagnostic.warning(
                f"Warning: didn't find {dep.name!r} in latest versions; "
                "this shouldn't happen."
            ),
        )

    with error_context(f"Failed to parse version requirement for {dep.name!r}"):
        requirement = parse_requirement(dep.req)

    if len(requirement.comparators) > 1:
        return Decision(
            dep,
            diagnostic=Diagnostic.warning(
                f"Warning: multiple comparators found in version requirement "
                f"for {dep.name!r}; skipping"
            ),
        )

    comparator = requirement.single_caret
    if comparator is None:
        op = requirement.comparators[0].op if requirement.comparators else Op.WILDCARD
        return Decision(
            dep,
            diagnostic=Diagnostic.warning(
                f"Warning: comparator in version requirement for {dep.name!r} "
                f"was {op.value!r}, not a caret; skipping"
            ),
        )

    if compare_versions(comparator.implied_version(), candidate) >= 0:
        return Decision(
            dep,
            diagnostic=Diagnostic.info(
                f"{dep.name!r} is already on its newest normal release. Nothing to do!"
            ),
        )

    return Decision(
        dep,
        target_version=candidate,
        diagnostic=Diagnostic.info(
            f"Upgrading {dep.name!r} from {dep.req!r} to {candidate}"
        ),
    )


def upgrade_project(
    session: UpgradeSession,
    directory: Path,
    cargo: Cargo,
) -> tuple[UpgradeSession, list[Diagnostic]]:
    """Bump every eligible requested dependency declared in ``directory``.

    A manifest Cargo can't read (typically a virtual workspace manifest) is
    treated as declaring no dependencies.

    Args:
        session: Current session; ``resolved`` must already be populated
        directory: Project directory containing ``Cargo.toml``
        cargo: Cargo CLI wrapper

    Returns:
        The session with ``directory`` recorded as touched, and diagnostics
    """
    diagnostics: list[Diagnostic] = []
    resolved = session.resolved or {}

    try:
        dependencies = cargo.read_manifest(directory)
    except (ToolExitError, ParseError):
        dependencies = []
        diagnostics.append(
            Diagnostic.warning(
                f"Failed to read manifest in {directory} to check for available "
                "upgrades; assuming it is a virtual manifest"
            )
        )

    for dep in dependencies:
        decision = decide(dep, session.requested, resolved)
        if decision.diagnostic:
            diagnostics.append(decision.diagnostic)
        if not decision.apply:
            continue
        with error_context(f"Failed to update dependency version of {dep.name!r} in {directory}"):
            cargo.add(
                directory,
                [f"{dep.name}@{decision.target_version}"],
                kind=dep.kind,
                rename=dep.rename,
                target=dep.target,
            )

    session = replace(session, touched_projects=session.touched_projects + (directory,))
    return session, diagnostics
