"""Discovery of Cargo projects inside a source tree."""

import os
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

from .errors import ConfigurationError, LockstepError
from .models import ProjectLocation


def named(file_name: str) -> Callable[[str], bool]:
    """Predicate matching files literally called ``file_name``."""

    def is_target(name: str) -> bool:
        return name == file_name

    return is_target


def resolve_exclusions(excludes: Iterable[str | Path], base: Path) -> tuple[Path, ...]:
    """Canonicalize exclusion paths given relative to ``base``.

    Raises:
        ConfigurationError: If an exclusion does not exist on disk
    """
    resolved = []
    for exclude in excludes:
        path = base / exclude
        if not path.exists():
            raise ConfigurationError(f"Excluded path {str(exclude)!r} doesn't exist!")
        resolved.append(path.resolve())
    return tuple(resolved)


def is_excluded(canonical_path: Path, exclusions: Iterable[Path]) -> bool:
    """True when ``canonical_path`` equals or sits under any exclusion."""
    return any(canonical_path.is_relative_to(exclusion) for exclusion in exclusions)


def locate(
    root: Path,
    is_target: Callable[[str], bool],
    exclusions: Iterable[Path] = (),
) -> Iterator[ProjectLocation]:
    """Walk ``root`` and yield every file accepted by ``is_target``.

    Symlinked directories are not followed. Excluded matches are still
    yielded, with ``excluded=True``, so callers can report them.

    Args:
        root: Directory to walk
        is_target: Predicate on the bare file name
        exclusions: Canonical paths to exclude

    Yields:
        One location per matching file, in sorted walk order
    """
    exclusions = tuple(exclusions)

    def _raise(exc: OSError) -> None:
        raise LockstepError(f"Couldn't read directory entry {exc.filename}") from exc

    for dirpath, dirnames, filenames in os.walk(root, followlinks=False, onerror=_raise):
        dirnames.sort()
        for name in sorted(filenames):
            if not is_target(name):
                continue
            file = Path(dirpath) / name
            canonical = file.resolve()
            yield ProjectLocation(
                file=file,
                directory=file.parent,
                canonical_path=canonical,
                excluded=is_excluded(canonical, exclusions),
            )
