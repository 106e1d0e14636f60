"""Commit message composition."""

from collections.abc import Mapping, Sequence
from pathlib import Path

from .errors import InconsistentSessionStateError
from .models import CommitPlan, SemanticVersion


def summary_line(names: Sequence[str]) -> str:
    """Commit summary naming at most two packages.

    >>> summary_line(["a", "b", "c"])
    'Upgrade a, b and 1 other packages'
    """
    if not names:
        raise InconsistentSessionStateError("No packages were specified to be upgraded")
    if len(names) == 1:
        return f"Upgrade {names[0]} package"
    if len(names) == 2:
        return f"Upgrade {names[0]} and {names[1]} packages"
    return f"Upgrade {names[0]}, {names[1]} and {len(names) - 2} other packages"


def _trailer(tool: str) -> str:
    return f"This commit was created by `{tool}`."


def compose_upgrade_commit(
    names: Sequence[str],
    resolved: Mapping[str, SemanticVersion] | None,
    tool: str,
) -> CommitPlan:
    """Build the commit for an ``upgrade`` run.

    Args:
        names: Requested package names, in command-line order
        resolved: Latest version of each requested package
        tool: Tool name for the trailer

    Raises:
        InconsistentSessionStateError: If no names were requested or one of
            them was never resolved
    """
    summary = summary_line(names)
    resolved = resolved or {}

    body = ["These packages were upgraded:", ""]
    for name in names:
        version = resolved.get(name)
        if version is None:
            raise InconsistentSessionStateError(f"Missing latest version for package {name!r}")
        body.append(f"- {name}@{version}")

    return CommitPlan(summary=summary, body=body, trailer=_trailer(tool))


def compose_update_all_commit(directories: Sequence[Path | str], tool: str) -> CommitPlan:
    """Build the commit for an ``update-all`` run."""
    body = [
        "All semver-compatible updates, by running `cargo update` in:",
        "",
        *(f"- {directory}" for directory in directories),
    ]
    return CommitPlan(summary="Update Cargo lockfiles", body=body, trailer=_trailer(tool))
