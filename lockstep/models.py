"""Core data models for cargo-lockstep."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class Op(str, Enum):
    """Comparison operator of a single requirement clause."""

    EXACT = "="
    GREATER = ">"
    GREATER_EQ = ">="
    LESS = "<"
    LESS_EQ = "<="
    TILDE = "~"
    CARET = "^"
    WILDCARD = "*"


class DependencyKind(str, Enum):
    """Role a dependency plays in its manifest."""

    NORMAL = "normal"
    BUILD = "build"
    DEV = "dev"


@dataclass(frozen=True)
class SemanticVersion:
    """A concrete ``major.minor.patch[-pre]`` version."""

    major: int
    minor: int
    patch: int
    pre: str = ""

    def __str__(self) -> str:
        version = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre:
            version += f"-{self.pre}"
        return version


@dataclass(frozen=True)
class Comparator:
    """One clause of a version requirement, e.g. ``^1.2`` or ``>=0.3.1``."""

    op: Op
    major: int
    minor: int | None = None
    patch: int | None = None
    pre: str = ""

    def implied_version(self) -> SemanticVersion:
        """The lowest version this clause names; missing parts count as 0."""
        return SemanticVersion(
            major=self.major,
            minor=self.minor or 0,
            patch=self.patch or 0,
            pre=self.pre,
        )


@dataclass(frozen=True)
class VersionRequirement:
    """A parsed dependency constraint (comma-separated comparators)."""

    raw: str
    comparators: tuple[Comparator, ...]

    @property
    def single_caret(self) -> Comparator | None:
        """The comparator, if this is exactly one caret clause."""
        if len(self.comparators) == 1 and self.comparators[0].op is Op.CARET:
            return self.comparators[0]
        return None


@dataclass
class DependencyRecord:
    """A single dependency declared in a manifest."""

    name: str
    req: str
    kind: DependencyKind = DependencyKind.NORMAL
    rename: str | None = None
    target: str | None = None


@dataclass(frozen=True)
class ProjectLocation:
    """A discovered manifest or lockfile and the project directory owning it."""

    file: Path
    directory: Path
    canonical_path: Path
    excluded: bool = False


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal message produced by a session stage."""

    level: str  # info, warning
    message: str

    @classmethod
    def info(cls, message: str) -> "Diagnostic":
        return cls("info", message)

    @classmethod
    def warning(cls, message: str) -> "Diagnostic":
        return cls("warning", message)


@dataclass(frozen=True)
class UpgradeSession:
    """State of one invocation, threaded through and returned by each stage."""

    requested: tuple[str, ...] = ()
    exclusions: tuple[Path, ...] = ()
    check: bool = False
    resolved: dict[str, SemanticVersion] | None = None
    touched_projects: tuple[Path, ...] = ()
    changed_projects: tuple[Path, ...] = ()
    any_changes: bool = False


@dataclass(frozen=True)
class CommitPlan:
    """Final commit content."""

    summary: str
    body: list[str] = field(default_factory=list)
    trailer: str = ""

    @property
    def message(self) -> str:
        parts = [self.summary]
        if self.body:
            parts.append("\n".join(self.body))
        if self.trailer:
            parts.append(self.trailer)
        return "\n\n".join(parts) + "\n"
