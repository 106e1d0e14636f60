"""Latest-release lookup for Cargo packages."""

import tempfile
from collections.abc import Iterable
from pathlib import Path

from .cargo import Cargo
from .errors import UnsupportedRequirementShapeError, error_context
from .models import SemanticVersion
from .parse_cargo import parse_requirement

# A valid crate name, so `cargo init` doesn't infer one from the temp dir.
SCRATCH_PACKAGE_NAME = "dummy_for_querying_crate_versions"


class CargoResolver:
    """Finds the newest normal release of packages by asking Cargo.

    Cargo is given a throwaway project, all requested packages are added to
    it in one ``cargo add`` call, and the requirements Cargo wrote are read
    back. ``cargo add`` never picks prereleases for a bare name, and always
    writes a full ``major.minor.patch`` version, so each requirement is
    read as the version itself.
    """

    def __init__(self, cargo: Cargo | None = None):
        self.cargo = cargo or Cargo()

    def resolve_latest(self, names: Iterable[str]) -> dict[str, SemanticVersion]:
        """Resolve the latest version of each package.

        Args:
            names: Package names as published on the registry

        Returns:
            Mapping of package name to its latest normal release

        Raises:
            UnsupportedRequirementShapeError: If Cargo wrote something other
                than a single fully-qualified comparator
        """
        names = list(dict.fromkeys(names))
        if not names:
            return {}

        with tempfile.TemporaryDirectory(prefix="cargo-lockstep-") as tmp:
            scratch = Path(tmp)
            with error_context("`cargo init` failed"):
                self.cargo.init(scratch, SCRATCH_PACKAGE_NAME)
            with error_context("`cargo add` failed"):
                self.cargo.add(scratch, names)
            with error_context("Failed to read manifest for dummy project"):
                dependencies = self.cargo.read_manifest(scratch)

        resolved = {}
        for dep in dependencies:
            with error_context("Failed to parse version requirement from manifest"):
                requirement = parse_requirement(dep.req)
            if not requirement.comparators:
                raise UnsupportedRequirementShapeError(
                    f"Missing comparator in version requirement for {dep.name!r}"
                )
            comparator = requirement.comparators[0]
            if comparator.minor is None:
                raise UnsupportedRequirementShapeError(
                    f"Missing minor version in requirement {dep.req!r} for {dep.name!r}"
                )
            if comparator.patch is None:
                raise UnsupportedRequirementShapeError(
                    f"Missing patch version in requirement {dep.req!r} for {dep.name!r}"
                )
            if comparator.pre:
                raise UnsupportedRequirementShapeError(
                    f"Expected a normal release in requirement {dep.req!r} for {dep.name!r}"
                )
            resolved[dep.name] = SemanticVersion(
                major=comparator.major, minor=comparator.minor, patch=comparator.patch
            )
        return resolved
