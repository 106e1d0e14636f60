"""End-to-end ``update-all`` and ``upgrade`` sessions.

A session validates its inputs, checks the working tree is clean, branches
off the freshly fetched base branch, then walks the tree, and finally makes
a single commit. Nothing is rolled back on failure: whatever was edited
before the error stays on the working branch for inspection.
"""

from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from .cargo import Cargo
from .commit import compose_update_all_commit, compose_upgrade_commit
from .config import LOCKFILE_FILE, MANIFEST_FILE, Settings
from .errors import ConfigurationError, PreconditionError, error_context
from .git import Git, branch_name
from .locate import locate, named, resolve_exclusions
from .models import Diagnostic, ProjectLocation, UpgradeSession
from .resolve_cargo import CargoResolver
from .resync import refresh_lockfile, update_lockfile
from .upgrade import upgrade_project

Reporter = Callable[[Diagnostic], None]


def _ignore(diagnostic: Diagnostic) -> None:
    pass


class Orchestrator:
    """Runs sessions against the repository rooted at ``root``.

    Args:
        root: Directory to search for projects; also the git working directory
        settings: Program names and remote
        report: Receives progress and warnings as they happen
        now: Clock used for branch names
    """

    def __init__(
        self,
        root: Path,
        settings: Settings | None = None,
        report: Reporter = _ignore,
        now: Callable[[], datetime] | None = None,
    ):
        self.root = root
        self.settings = settings or Settings()
        self.report = report
        self.now = now
        self.git = Git(root, self.settings)
        self.cargo = Cargo(self.settings)
        self.resolver = CargoResolver(self.cargo)

    def _emit(self, diagnostics: Iterable[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            self.report(diagnostic)

    def _info(self, message: str) -> None:
        self.report(Diagnostic.info(message))

    def _display(self, path: Path) -> str:
        try:
            return str(path.relative_to(self.root))
        except ValueError:
            return str(path)

    def _require_clean_tree(self) -> None:
        with error_context("Failed to check if working tree is clean"):
            clean = self.git.is_working_tree_clean()
        if not clean:
            raise PreconditionError(
                "Working tree is not clean; please commit or stash your changes first."
            )

    def _start_branch(self, subcommand: str, purpose: str) -> str:
        with error_context("Failed to guess base branch"):
            base_branch = self.git.guess_base_branch()
        with error_context(f"Failed to update base branch from {self.settings.remote}"):
            self.git.fetch(base_branch)

        new_branch = branch_name(
            self.settings.tool_name, subcommand, self.now() if self.now else None
        )
        with error_context(f"Failed to create branch for applying {purpose}"):
            self.git.switch_to_new_branch(new_branch, self.git.remote_ref(base_branch))
        self._info(f"Created branch {new_branch} from {self.git.remote_ref(base_branch)}")
        return new_branch

    def _projects(self, file_name: str, session: UpgradeSession) -> Iterator[ProjectLocation]:
        self._info(f'Looking for "{file_name}" files...')
        for location in locate(self.root, named(file_name), session.exclusions):
            if location.excluded:
                self._info(
                    f"  Skipping {self._display(location.directory)} because it "
                    "matches an excluded path."
                )
                continue
            yield location

    def update_all(self, excludes: Sequence[str] = (), check: bool = False) -> UpgradeSession:
        """Run ``cargo update`` in every project with a lockfile, then commit."""
        session = UpgradeSession(
            exclusions=resolve_exclusions(excludes, self.root),
            check=check,
        )
        self._require_clean_tree()
        self._start_branch("update-all", "updates")

        for location in self._projects(LOCKFILE_FILE, session):
            session, diagnostics = update_lockfile(session, location.directory, self.cargo, self.git)
            self._emit(diagnostics)

        if not session.any_changes:
            self._info(f'All "{LOCKFILE_FILE}" files were already up-to-date!')
            return session

        plan = compose_update_all_commit(
            [self._display(directory) for directory in session.changed_projects],
            self.settings.tool_name,
        )
        self._info("Committing updates...")
        with error_context("Failed to commit changes"):
            self.git.commit(plan.message)
        self._info("Updates applied! You can now push this branch and make a pull-request.")
        return session

    def upgrade(
        self,
        names: Sequence[str],
        excludes: Sequence[str] = (),
        check: bool = False,
    ) -> UpgradeSession:
        """Bump requested packages everywhere they're caret-pinned, then commit."""
        session = UpgradeSession(
            requested=tuple(dict.fromkeys(names)),
            exclusions=resolve_exclusions(excludes, self.root),
            check=check,
        )
        if not session.requested:
            raise ConfigurationError("No packages were specified to be upgraded")

        self._require_clean_tree()

        with error_context("Failed to get latest versions for requested packages"):
            resolved = self.resolver.resolve_latest(session.requested)
        session = replace(session, resolved=resolved)
        for name in session.requested:
            if name in resolved:
                self._info(f"Latest release of {name} is {resolved[name]}")

        self._start_branch("upgrade", "upgrades")

        for location in self._projects(MANIFEST_FILE, session):
            self._info(f"  Looking for dependencies to upgrade in {self._display(location.directory)}...")
            session, diagnostics = upgrade_project(session, location.directory, self.cargo)
            self._emit(diagnostics)

        for location in self._projects(LOCKFILE_FILE, session):
            session, diagnostics = refresh_lockfile(session, location.directory, self.cargo)
            self._emit(diagnostics)

        with error_context("Failed to check if working tree is clean"):
            changed = not self.git.is_working_tree_clean()
        if not changed:
            self._info("All specified dependencies were already on their latest versions!")
            return session
        session = replace(session, any_changes=True)

        plan = compose_upgrade_commit(session.requested, session.resolved, self.settings.tool_name)
        self._info("Committing upgrades...")
        with error_context("Failed to commit changes"):
            self.git.commit(plan.message)
        self._info("Upgrades applied! You can now push this branch and make a pull-request.")
        return session
