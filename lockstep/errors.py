"""Error hierarchy for cargo-lockstep.

Errors carry a list of operation descriptions (``contexts``) that are
attached while the error propagates out through :func:`error_context`.
The full chain is only assembled into text at the CLI boundary by
:func:`format_error_chain`.
"""

from collections.abc import Iterator, Sequence
from contextlib import contextmanager


class LockstepError(Exception):
    """Base class for every fatal cargo-lockstep error."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.contexts: list[str] = []

    def add_context(self, description: str) -> None:
        """Record an enclosing operation; outermost is added last."""
        self.contexts.append(description)


class PreconditionError(LockstepError):
    """The repository is not in a state we can safely work from."""


class AmbiguousBaseBranchError(PreconditionError):
    """Neither or both of the conventional base branches exist."""


class ConfigurationError(LockstepError):
    """Invalid user configuration, e.g. an exclusion path that doesn't exist."""


class ToolError(LockstepError):
    """An external tool (cargo, git) failed."""

    def __init__(self, message: str, command: Sequence[str]):
        super().__init__(message)
        self.command = list(command)

    @property
    def command_str(self) -> str:
        return " ".join(self.command)


class ToolInvocationError(ToolError):
    """The process could not be started, or was killed by a signal."""


class ToolExitError(ToolError):
    """The process ran but returned an exit code we didn't accept."""

    def __init__(
        self,
        message: str,
        command: Sequence[str],
        return_code: int,
        stderr: str = "",
    ):
        super().__init__(message, command)
        self.return_code = return_code
        self.stderr = stderr


class ParseError(LockstepError):
    """Manifest or version requirement text could not be parsed."""


class PolicyError(LockstepError):
    """Input was well-formed but has a shape we refuse to work with."""


class UnsupportedRequirementShapeError(PolicyError):
    """A resolved requirement didn't pin a fully-qualified version."""


class InconsistentSessionStateError(LockstepError):
    """The session reached a state earlier stages should have prevented."""


@contextmanager
def error_context(description: str) -> Iterator[None]:
    """Attach ``description`` to any :class:`LockstepError` raised inside.

    Example::

        with error_context("Failed to guess base branch"):
            base = git.guess_base_branch(root)
    """
    try:
        yield
    except LockstepError as exc:
        exc.add_context(description)
        raise


def format_error_chain(exc: BaseException) -> list[str]:
    """Flatten an error into human-readable lines, outermost cause first."""
    lines: list[str] = []
    if isinstance(exc, LockstepError):
        lines.extend(reversed(exc.contexts))
        lines.append(exc.message)
        if isinstance(exc, ToolExitError) and exc.stderr.strip():
            lines.append(exc.stderr.strip().splitlines()[-1])
    else:
        lines.append(str(exc) or type(exc).__name__)

    cause = exc.__cause__
    while cause is not None:
        lines.append(str(cause) or type(cause).__name__)
        cause = cause.__cause__
    return lines
