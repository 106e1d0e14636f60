"""Tests for Cargo requirement and manifest parsing."""

import pytest

from lockstep.errors import ParseError
from lockstep.models import Comparator, DependencyKind, Op, SemanticVersion
from lockstep.parse_cargo import compare_versions, parse_manifest_json, parse_requirement


def _version(text):
    return parse_requirement(f"={text}").comparators[0].implied_version()


class TestParseRequirement:
    """Test parsing of Cargo version requirements."""

    def test_parse_caret(self):
        """Should parse an explicit caret requirement."""
        req = parse_requirement("^1.2.0")

        assert req.raw == "^1.2.0"
        assert req.comparators == (Comparator(op=Op.CARET, major=1, minor=2, patch=0),)
        assert req.single_caret is not None

    def test_bare_version_is_caret(self):
        """A bare version means caret, like in Cargo.toml."""
        req = parse_requirement("1.2")

        assert req.comparators == (Comparator(op=Op.CARET, major=1, minor=2),)

    def test_partial_versions(self):
        """Should leave missing minor and patch unset."""
        comparator = parse_requirement("^0").comparators[0]

        assert comparator.major == 0
        assert comparator.minor is None
        assert comparator.patch is None
        assert comparator.implied_version() == SemanticVersion(0, 0, 0)

    @pytest.mark.parametrize(
        "raw, op",
        [
            ("=2.0.0", Op.EXACT),
            (">1", Op.GREATER),
            (">=1.4", Op.GREATER_EQ),
            ("<2", Op.LESS),
            ("<=2.1.0", Op.LESS_EQ),
            ("~1.2.3", Op.TILDE),
            ("1.*", Op.WILDCARD),
            ("1.2.x", Op.WILDCARD),
        ],
    )
    def test_operators(self, raw, op):
        """Should recognise every Cargo comparison operator."""
        req = parse_requirement(raw)

        assert req.comparators[0].op is op
        assert req.single_caret is None

    def test_multiple_comparators(self):
        """Should split comma-separated clauses."""
        req = parse_requirement(">= 1.2, < 1.5")

        assert [c.op for c in req.comparators] == [Op.GREATER_EQ, Op.LESS]
        assert req.comparators[1].minor == 5
        assert req.single_caret is None

    def test_star_has_no_comparators(self):
        """A bare star matches everything and carries no comparator."""
        assert parse_requirement("*").comparators == ()

    def test_prerelease(self):
        """Should keep the prerelease tag."""
        comparator = parse_requirement("^1.0.0-beta.2").comparators[0]

        assert comparator.pre == "beta.2"
        assert comparator.implied_version() == SemanticVersion(1, 0, 0, "beta.2")

    def test_build_metadata_is_ignored(self):
        """Build metadata is accepted and dropped."""
        req = parse_requirement("1.0.0+build5")

        assert req.comparators == (Comparator(op=Op.CARET, major=1, minor=0, patch=0),)
        assert parse_requirement("=1.0.0-rc.1+build.5").comparators[0].implied_version() == (
            SemanticVersion(1, 0, 0, "rc.1")
        )

    @pytest.mark.parametrize(
        "raw", ["", "abc", "1.2.3.4", "^1.2-beta", "1.2+build", "1.2.3+", "1.*.3", ">=1,", "^*"]
    )
    def test_invalid(self, raw):
        """Should raise ParseError for malformed text."""
        with pytest.raises(ParseError):
            parse_requirement(raw)


class TestVersions:
    """Test version rendering and precedence."""

    def test_str_round_trip(self):
        """Should render versions the way Cargo spells them."""
        assert str(SemanticVersion(1, 5, 0)) == "1.5.0"
        assert str(SemanticVersion(2, 0, 0, "alpha.1")) == "2.0.0-alpha.1"

    @pytest.mark.parametrize(
        "older, newer",
        [
            ("1.2.0", "1.5.0"),
            ("0.9.9", "1.0.0"),
            ("1.5.0", "1.5.1"),
            ("1.0.0-alpha", "1.0.0"),
            ("1.0.0-alpha", "1.0.0-alpha.1"),
            ("1.0.0-alpha.1", "1.0.0-alpha.beta"),
            ("1.0.0-beta.2", "1.0.0-beta.11"),
            ("1.0.0-beta.11", "1.0.0-rc.1"),
        ],
    )
    def test_precedence(self, older, newer):
        """Should order versions by semver precedence."""
        a, b = _version(older), _version(newer)

        assert compare_versions(a, b) < 0
        assert compare_versions(b, a) > 0

    def test_equal(self):
        """Equal versions compare as zero."""
        assert compare_versions(_version("1.2.3"), _version("1.2.3")) == 0


class TestParseManifestJson:
    """Test parsing `cargo read-manifest` output."""

    def test_parse_dependencies(self, sample_manifest_json):
        """Should map every dependency and its role."""
        deps = parse_manifest_json(sample_manifest_json)

        assert [d.name for d in deps] == ["serde", "cc", "tempfile"]
        assert [d.kind for d in deps] == [
            DependencyKind.NORMAL,
            DependencyKind.BUILD,
            DependencyKind.DEV,
        ]
        assert deps[0].req == "^1.0.150"

    def test_rename_and_target(self):
        """Should keep rename and target of a dependency."""
        content = (
            '{"dependencies": [{"name": "rand", "req": "^0.8", "kind": null,'
            ' "rename": "rand08", "target": "cfg(unix)"}]}'
        )
        dep = parse_manifest_json(content)[0]

        assert dep.rename == "rand08"
        assert dep.target == "cfg(unix)"

    def test_no_dependencies(self):
        """A manifest without dependencies parses to an empty list."""
        assert parse_manifest_json('{"name": "empty"}') == []

    def test_invalid_json(self):
        """Should raise ParseError for garbage."""
        with pytest.raises(ParseError):
            parse_manifest_json("error: not a manifest")

    def test_unknown_kind(self):
        """Should refuse dependency kinds it doesn't know."""
        with pytest.raises(ParseError):
            parse_manifest_json('{"dependencies": [{"name": "x", "req": "^1", "kind": "weird"}]}')
