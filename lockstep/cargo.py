"""Cargo CLI surface used by cargo-lockstep.

Only the handful of subcommands the session needs are wrapped here;
resolution, builds and registry access are left entirely to Cargo.
"""

from pathlib import Path

from .config import Settings
from .models import DependencyKind, DependencyRecord
from .parse_cargo import parse_manifest_json
from .process import run_command

_KIND_FLAGS = {
    DependencyKind.NORMAL: [],
    DependencyKind.BUILD: ["--build"],
    DependencyKind.DEV: ["--dev"],
}


class Cargo:
    """Runs ``cargo`` subcommands in a given project directory."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()

    def _cmd(self, *args: str) -> list[str]:
        return [self.settings.cargo, *args]

    def init(self, directory: Path, name: str) -> None:
        run_command(
            self._cmd("init", "--name", name), cwd=directory, quiet=True, check=True
        )

    def add(
        self,
        directory: Path,
        specs: list[str],
        *,
        kind: DependencyKind = DependencyKind.NORMAL,
        rename: str | None = None,
        target: str | None = None,
    ) -> None:
        """Declare (or re-declare) dependencies with ``cargo add``.

        Args:
            directory: Project directory
            specs: Package specs such as ``serde`` or ``serde@1.0.200``
            kind: Dependency role, mapped to ``--build`` / ``--dev``
            rename: Local name of a renamed dependency
            target: Platform cfg of a target-specific dependency
        """
        cmd = self._cmd("add", *_KIND_FLAGS[kind])
        if rename:
            cmd.extend(["--rename", rename])
        if target:
            cmd.extend(["--target", target])
        cmd.append("--")
        cmd.extend(specs)
        run_command(cmd, cwd=directory, quiet=True, check=True)

    def read_manifest(self, directory: Path) -> list[DependencyRecord]:
        """Dependencies declared by the package manifest in ``directory``."""
        result = run_command(
            self._cmd("read-manifest"), cwd=directory, capture=True, check=True
        )
        return parse_manifest_json(result.stdout)

    def metadata(self, directory: Path, *, no_deps: bool = False) -> str:
        """Run ``cargo metadata``; resolving the graph rewrites ``Cargo.lock``."""
        cmd = self._cmd("metadata", "--format-version", "1")
        if no_deps:
            cmd.append("--no-deps")
        return run_command(cmd, cwd=directory, capture=True, check=True).stdout

    def update(self, directory: Path) -> None:
        run_command(self._cmd("update"), cwd=directory, check=True)

    def check(self, directory: Path) -> None:
        run_command(self._cmd("check", "--all-targets"), cwd=directory, check=True)
