"""Cargo version requirement and manifest parsing."""

import re

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import ParseError
from .models import (
    Comparator,
    DependencyKind,
    DependencyRecord,
    Op,
    SemanticVersion,
    VersionRequirement,
)

_OPERATORS = {op.value: op for op in Op if op is not Op.WILDCARD}
_WILDCARDS = ("*", "x", "X")

_COMPARATOR_RE = re.compile(
    r"""
    ^(?P<op>>=|<=|=|>|<|~|\^)?\s*
    (?P<major>\d+|[*xX])
    (?:\.(?P<minor>\d+|[*xX]))?
    (?:\.(?P<patch>\d+|[*xX]))?
    (?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?
    (?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$
    """,
    re.VERBOSE,
)


def _parse_comparator(text: str, raw: str) -> Comparator | None:
    """Parse one clause; returns None for a bare ``*``, which matches anything."""
    match = _COMPARATOR_RE.match(text)
    if not match:
        raise ParseError(f"Invalid version requirement {raw!r}")

    major, minor, patch = match.group("major", "minor", "patch")
    if major in _WILDCARDS:
        if minor is not None or patch is not None or match.group("op"):
            raise ParseError(f"Invalid version requirement {raw!r}")
        return None

    pre = match.group("pre") or ""
    if pre and patch is None:
        raise ParseError(f"Prerelease tag without patch version in {raw!r}")
    # Build metadata never affects matching, so it is dropped.
    if match.group("build") and patch is None:
        raise ParseError(f"Build metadata without patch version in {raw!r}")

    # Bare versions mean caret in Cargo.
    op = _OPERATORS[match.group("op")] if match.group("op") else Op.CARET
    if minor in _WILDCARDS or patch in _WILDCARDS:
        if minor in _WILDCARDS and patch is not None and patch not in _WILDCARDS:
            raise ParseError(f"Invalid version requirement {raw!r}")
        op = Op.WILDCARD
        minor = None if minor in _WILDCARDS else minor
        patch = None

    return Comparator(
        op=op,
        major=int(major),
        minor=int(minor) if minor is not None else None,
        patch=int(patch) if patch is not None else None,
        pre=pre,
    )


def parse_requirement(raw: str) -> VersionRequirement:
    """Parse a Cargo version requirement such as ``^1.2``, ``=2.0.0`` or
    ``>=1, <3``.

    Args:
        raw: Requirement text as it appears in a manifest

    Returns:
        Parsed requirement; ``*`` yields zero comparators

    Raises:
        ParseError: If the text is not a valid requirement
    """
    text = raw.strip()
    if not text:
        raise ParseError("Empty version requirement")

    comparators = []
    for clause in text.split(","):
        clause = clause.strip()
        if not clause:
            raise ParseError(f"Empty clause in version requirement {raw!r}")
        comparator = _parse_comparator(clause, raw)
        if comparator is not None:
            comparators.append(comparator)

    return VersionRequirement(raw=raw, comparators=tuple(comparators))


def _compare_prerelease(left: str, right: str) -> int:
    # A version without a prerelease tag has higher precedence.
    if left == right:
        return 0
    if not left:
        return 1
    if not right:
        return -1

    for a, b in zip(left.split("."), right.split(".")):
        if a == b:
            continue
        a_numeric, b_numeric = a.isdigit(), b.isdigit()
        if a_numeric and b_numeric:
            return -1 if int(a) < int(b) else 1
        if a_numeric != b_numeric:
            return -1 if a_numeric else 1
        return -1 if a < b else 1

    left_len, right_len = len(left.split(".")), len(right.split("."))
    return (left_len > right_len) - (left_len < right_len)


def compare_versions(left: SemanticVersion, right: SemanticVersion) -> int:
    """Compare by semantic-versioning precedence.

    Returns:
        Negative if ``left`` is older, zero if equal, positive if newer
    """
    left_core = (left.major, left.minor, left.patch)
    right_core = (right.major, right.minor, right.patch)
    if left_core != right_core:
        return -1 if left_core < right_core else 1
    return _compare_prerelease(left.pre, right.pre)


class _ManifestDependency(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    req: str
    kind: str | None = None
    rename: str | None = None
    target: str | None = None


class _Manifest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    dependencies: list[_ManifestDependency] = []


_KINDS = {
    None: DependencyKind.NORMAL,
    "normal": DependencyKind.NORMAL,
    "build": DependencyKind.BUILD,
    "dev": DependencyKind.DEV,
}


def parse_manifest_json(content: str | bytes) -> list[DependencyRecord]:
    """Parse ``cargo read-manifest`` output into dependency records.

    Args:
        content: JSON document printed by Cargo

    Returns:
        Declared dependencies in manifest order

    Raises:
        ParseError: If the document isn't a manifest we understand
    """
    try:
        manifest = _Manifest.model_validate_json(content)
    except ValidationError as exc:
        raise ParseError("Failed to deserialize manifest") from exc

    records = []
    for dep in manifest.dependencies:
        if dep.kind not in _KINDS:
            raise ParseError(f"Unknown dependency kind {dep.kind!r} for {dep.name!r}")
        records.append(
            DependencyRecord(
                name=dep.name,
                req=dep.req,
                kind=_KINDS[dep.kind],
                rename=dep.rename,
                target=dep.target,
            )
        )
    return records
