"""CLI application for cargo-lockstep."""

import logging
from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.logging import RichHandler

from lockstep.config import TOOL_NAME, VERSION, Settings
from lockstep.errors import LockstepError, format_error_chain
from lockstep.models import Diagnostic
from lockstep.session import Orchestrator

console = Console()
err_console = Console(stderr=True)


def report(diagnostic: Diagnostic) -> None:
    """Print a session diagnostic as it happens."""
    if diagnostic.level == "warning":
        err_console.print(diagnostic.message, style="yellow", markup=False, highlight=False)
    else:
        console.print(diagnostic.message, markup=False, highlight=False)


def print_error(exc: BaseException) -> None:
    """Print an error and its causes, outermost first."""
    lines = format_error_chain(exc)
    err_console.print(f"Error: {lines[0]}", style="red", markup=False, highlight=False)
    if len(lines) > 1:
        err_console.print("\nCaused by:", style="red")
        for index, line in enumerate(lines[1:]):
            err_console.print(f"    {index}: {line}", style="red", markup=False, highlight=False)


def configure_logging(verbose: bool) -> None:
    """Route structlog events through stdlib logging to the stderr console.

    Only warnings are shown unless ``verbose`` is set, in which case every
    cargo and git invocation is logged too.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[
            RichHandler(console=err_console, show_time=False, show_level=False, show_path=False)
        ],
        force=True,
    )

    shared_processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="%H:%M:%S"),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    # Rich does the styling, so the renderer emits plain text.
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"{TOOL_NAME} {VERSION}")
        raise typer.Exit()


app = typer.Typer(
    name=TOOL_NAME,
    help="cargo-lockstep - Update or upgrade Cargo dependencies across every project in a repository",
    add_completion=False,
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every cargo and git invocation"),
    cargo: str = typer.Option("cargo", "--cargo", envvar="CARGO", help="Cargo executable"),
    git: str = typer.Option("git", "--git", envvar="LOCKSTEP_GIT", help="Git executable"),
    remote: str = typer.Option("origin", "--remote", envvar="LOCKSTEP_REMOTE", help="Remote to fetch the base branch from"),
    version: bool = typer.Option(
        False, "--version", callback=version_callback, is_eager=True, help="Show version and exit"
    ),
) -> None:
    """cargo-lockstep - Update or upgrade Cargo dependencies across every project in a repository."""
    configure_logging(verbose)
    ctx.obj = Settings(cargo=cargo, git=git, remote=remote)


def _orchestrator(ctx: typer.Context) -> Orchestrator:
    settings = ctx.obj if isinstance(ctx.obj, Settings) else Settings()
    return Orchestrator(Path.cwd(), settings=settings, report=report)


@app.command()
def update_all(
    ctx: typer.Context,
    exclude: list[str] | None = typer.Option(
        None,
        "--exclude",
        help='Exclude "Cargo.lock" files or containing directories, relative to the current directory',
    ),
    check: bool = typer.Option(False, "--check", help="Run `cargo check --all-targets` after applying updates"),
) -> None:
    """Run `cargo update` for every "Cargo.lock" below the current directory and commit the result."""
    try:
        _orchestrator(ctx).update_all(excludes=exclude or [], check=check)
    except LockstepError as e:
        print_error(e)
        raise typer.Exit(1)
    except Exception as e:
        print_error(e)
        raise typer.Exit(1)


@app.command()
def upgrade(
    ctx: typer.Context,
    package_names: list[str] = typer.Argument(help="Names of packages to upgrade"),
    exclude: list[str] | None = typer.Option(
        None,
        "--exclude",
        help='Exclude "Cargo.toml"/"Cargo.lock" files or containing directories, relative to the current directory',
    ),
    check: bool = typer.Option(False, "--check", help="Run `cargo check --all-targets` after applying upgrades"),
) -> None:
    """Bump caret requirements on the named packages to their newest releases and commit the result."""
    try:
        _orchestrator(ctx).upgrade(package_names, excludes=exclude or [], check=check)
    except LockstepError as e:
        print_error(e)
        raise typer.Exit(1)
    except Exception as e:
        print_error(e)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
