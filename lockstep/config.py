"""Runtime settings for cargo-lockstep."""

from dataclasses import dataclass

TOOL_NAME = "cargo-lockstep"
VERSION = "0.1.0"

MANIFEST_FILE = "Cargo.toml"
LOCKFILE_FILE = "Cargo.lock"

BASE_BRANCH_CANDIDATES = ("main", "master")


@dataclass(frozen=True)
class Settings:
    """Programs and names used for one run.

    The CLI fills these from options, which fall back to the ``CARGO``,
    ``LOCKSTEP_GIT`` and ``LOCKSTEP_REMOTE`` environment variables.
    """

    cargo: str = "cargo"
    git: str = "git"
    remote: str = "origin"
    tool_name: str = TOOL_NAME
