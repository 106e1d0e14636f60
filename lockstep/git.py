"""Git operations guarding and recording an upgrade session.

Everything up to :func:`switch_to_new_branch` runs before the working tree
is touched, so a failure there leaves the repository as it was.
"""

from datetime import datetime, timezone
from pathlib import Path

from .config import BASE_BRANCH_CANDIDATES, Settings
from .errors import AmbiguousBaseBranchError, ToolExitError
from .process import run_command


class Git:
    """Thin wrapper over the ``git`` CLI, rooted at one working directory."""

    def __init__(self, root: Path, settings: Settings | None = None):
        self.root = root
        self.settings = settings or Settings()

    def _cmd(self, *args: str) -> list[str]:
        return [self.settings.git, *args]

    def is_working_tree_clean(self, *paths: Path) -> bool:
        """Whether tracked files (optionally limited to ``paths``) have no
        uncommitted changes.

        ``git diff --exit-code`` exits 0 for no diff and 1 for a diff; any
        other code is treated as a tool failure.
        """
        cmd = self._cmd("diff", "--exit-code")
        if paths:
            cmd.extend(["--", *(str(path) for path in paths)])
        result = run_command(cmd, cwd=self.root, quiet=True)
        if result.return_code == 0:
            return True
        if result.return_code == 1:
            return False
        raise ToolExitError(
            f"Unrecognised exit code {result.return_code} from `{result.command_str}`",
            cmd,
            return_code=result.return_code,
        )

    def branch_exists(self, branch_name: str) -> bool:
        result = run_command(
            self._cmd("show-branch", branch_name), cwd=self.root, quiet=True
        )
        return result.ok

    def guess_base_branch(self) -> str:
        """Pick whichever of ``main`` or ``master`` exists.

        Raises:
            AmbiguousBaseBranchError: If both or neither exist
        """
        existing = [name for name in BASE_BRANCH_CANDIDATES if self.branch_exists(name)]
        if len(existing) == 2:
            raise AmbiguousBaseBranchError('Both "main" and "master" branches exist')
        if not existing:
            raise AmbiguousBaseBranchError('Neither "main" nor "master" branch exists')
        return existing[0]

    def fetch(self, branch_name: str) -> None:
        run_command(
            self._cmd("fetch", self.settings.remote, branch_name),
            cwd=self.root,
            quiet=True,
            check=True,
        )

    def remote_ref(self, branch_name: str) -> str:
        return f"{self.settings.remote}/{branch_name}"

    def switch_to_new_branch(self, new_branch_name: str, start_point: str) -> None:
        run_command(
            self._cmd("checkout", "-b", new_branch_name, start_point),
            cwd=self.root,
            quiet=True,
            check=True,
        )

    def commit(self, message: str) -> None:
        """Commit every modified tracked file with ``message``."""
        # TODO: stage the exact manifests/lockfiles we edited instead of -a,
        # and fail if anything else is dirty.
        run_command(
            self._cmd("commit", "-a", "-m", message),
            cwd=self.root,
            quiet=True,
            check=True,
        )


def branch_name(tool: str, subcommand: str, now: datetime | None = None) -> str:
    """Name a working branch, e.g. ``cargo-lockstep-upgrade-20240131120000``."""
    now = now or datetime.now(timezone.utc)
    return f"{tool}-{subcommand}-{now.astimezone(timezone.utc):%Y%m%d%H%M%S}"
