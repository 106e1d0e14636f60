"""Pytest configuration and fixtures."""

import json
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from lockstep.errors import ToolExitError
from lockstep.process import CommandResult


def render_manifest(deps: list[dict]) -> str:
    """Cargo.toml-ish text for a list of dependency dicts."""
    lines = ['[package]', 'name = "example"', 'version = "0.1.0"', "", "[dependencies]"]
    for dep in deps:
        lines.append(f'{dep["name"]} = "{dep["req"].lstrip("^")}"')
    return "\n".join(lines) + "\n"


class FakeToolchain:
    """Stands in for ``cargo`` and ``git`` by simulating their effects on disk.

    Projects are directories under ``root`` with a ``Cargo.toml`` (and
    usually a ``Cargo.lock``). ``git diff`` reports a change when any
    tracked file differs from its content at the last commit.
    """

    def __init__(self, root: Path):
        self.root = root
        self.registry: dict[str, str] = {}
        self.branches = {"main"}
        self.projects: dict[Path, list[dict] | None] = {}
        self.lock_updates: set[Path] = set()
        self.check_failures: set[Path] = set()
        self.calls: list[tuple[list[str], Path | None]] = []
        self.commits: list[str] = []
        self.created_branches: list[tuple[str, str]] = []
        self.scratch_dirs: list[Path] = []
        self._scratch_deps: dict[Path, list[dict]] = {}
        self._snapshot: dict[Path, str] = {}

    # Setup helpers

    def add_project(
        self,
        relative: str,
        deps: list[dict] | None,
        lockfile: bool = True,
    ) -> Path:
        """Create a project; ``deps=None`` makes a virtual manifest."""
        directory = self.root / relative
        directory.mkdir(parents=True, exist_ok=True)
        self.projects[directory.resolve()] = deps
        (directory / "Cargo.toml").write_text(render_manifest(deps or []))
        if lockfile:
            (directory / "Cargo.lock").write_text(self._render_lock(deps or []))
        self._take_snapshot()
        return directory

    def deps(self, relative: str) -> list[dict] | None:
        return self.projects[(self.root / relative).resolve()]

    def changed_files(self) -> list[Path]:
        return sorted(
            path for path, content in self._snapshot.items() if path.read_text() != content
        )

    def commands(self, program: str) -> list[list[str]]:
        return [cmd for cmd, _ in self.calls if cmd[0] == program]

    # Simulation

    def _render_lock(self, deps: list[dict]) -> str:
        return "".join(f'{dep["name"]} {dep["req"].lstrip("^")}\n' for dep in deps)

    def _take_snapshot(self) -> None:
        self._snapshot = {
            path.resolve(): path.read_text()
            for name in ("Cargo.toml", "Cargo.lock")
            for path in self.root.rglob(name)
        }

    def run(self, cmd, *, cwd=None, quiet=False, capture=False, check=False):
        cwd = Path(cwd).resolve() if cwd is not None else None
        self.calls.append((list(cmd), cwd))
        program, args = cmd[0], list(cmd[1:])
        if program == "git":
            return_code, stdout = self._git(args)
        else:
            return_code, stdout = self._cargo(args, cwd)

        if check and return_code != 0:
            raise ToolExitError(
                f"`{' '.join(cmd)}` returned a nonzero exit code",
                cmd,
                return_code=return_code,
            )
        return CommandResult(command=list(cmd), return_code=return_code, stdout=stdout)

    def _git(self, args):
        if args[0] == "diff":
            changed = self.changed_files()
            if "--" in args:
                wanted = {Path(p).resolve() for p in args[args.index("--") + 1:]}
                changed = [path for path in changed if path in wanted]
            return (1 if changed else 0), ""
        if args[0] == "show-branch":
            return (0 if args[1] in self.branches else 128), ""
        if args[0] == "fetch":
            return 0, ""
        if args[0] == "checkout":
            self.created_branches.append((args[2], args[3]))
            return 0, ""
        if args[0] == "commit":
            if not self.changed_files():
                return 1, ""
            self.commits.append(args[args.index("-m") + 1])
            self._take_snapshot()
            return 0, ""
        raise AssertionError(f"unexpected git command {args}")

    def _cargo(self, args, cwd):
        if args[0] == "init":
            self.scratch_dirs.append(cwd)
            self._scratch_deps[cwd] = []
            (cwd / "Cargo.toml").write_text(render_manifest([]))
            return 0, ""
        if args[0] == "add":
            return self._cargo_add(args[1:], cwd), ""
        if args[0] == "read-manifest":
            deps = self._scratch_deps.get(cwd, self.projects.get(cwd))
            if deps is None:
                return 101, ""
            return 0, json.dumps({"name": "example", "dependencies": deps})
        if args[0] == "metadata":
            deps = self.projects.get(cwd) or []
            (cwd / "Cargo.lock").write_text(self._render_lock(deps))
            return 0, "{}"
        if args[0] == "update":
            if cwd in self.lock_updates:
                with (cwd / "Cargo.lock").open("a") as lock:
                    lock.write("transitive 9.9.9\n")
            return 0, ""
        if args[0] == "check":
            return (101 if cwd in self.check_failures else 0), ""
        raise AssertionError(f"unexpected cargo command {args}")

    def _cargo_add(self, args, cwd):
        kind = "build" if "--build" in args else "dev" if "--dev" in args else None
        specs = args[args.index("--") + 1:]
        if cwd in self._scratch_deps:
            for name in specs:
                if name not in self.registry:
                    return 101
                self._scratch_deps[cwd].append({"name": name, "req": f"^{self.registry[name]}", "kind": None})
            return 0

        deps = self.projects[cwd]
        for spec in specs:
            name, _, version = spec.partition("@")
            for dep in deps:
                if dep["name"] == name and dep.get("kind") == kind:
                    dep["req"] = f"^{version}"
        (cwd / "Cargo.toml").write_text(render_manifest(deps))
        return 0


@pytest.fixture
def toolchain(tmp_path):
    """A fake cargo/git pair wired into every module that runs commands."""
    fake = FakeToolchain(tmp_path)
    with patch("lockstep.git.run_command", side_effect=fake.run), patch(
        "lockstep.cargo.run_command", side_effect=fake.run
    ):
        yield fake


@pytest.fixture
def fixed_now():
    """Clock pinned to a known instant for predictable branch names."""
    return lambda: datetime(2024, 1, 31, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_manifest_json():
    """Sample `cargo read-manifest` output."""
    return json.dumps(
        {
            "name": "example",
            "version": "0.1.0",
            "dependencies": [
                {"name": "serde", "req": "^1.0.150", "kind": None, "rename": None, "target": None},
                {"name": "cc", "req": "^1.0", "kind": "build", "rename": None, "target": None},
                {"name": "tempfile", "req": "=3.8.0", "kind": "dev", "rename": None, "target": None},
            ],
            "targets": [],
        }
    )
