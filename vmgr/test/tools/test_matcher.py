"""Tests for tools/matcher.py - expression parsing and resolution."""

import pytest

from vmgr.core.errors import NotFound
from vmgr.core.result import Err, Ok
from vmgr.tools.matcher import (
    ResolvedVersion,
    VersionExpression,
    compare_versions,
    looks_partial,
    normalize_distribution,
    parse_expression,
    resolve,
    sort_versions,
)

NODE = ["20.10.0", "20.9.0", "18.19.0"]
SCALA = ["2.13.12", "2.13.9", "2.12.18", "3.3.1"]


class TestParseExpression:
    """Tests for parse_expression()."""

    def test_plain(self) -> None:
        """Bare version has no distribution."""
        assert parse_expression("21") == VersionExpression("21")

    def test_strips_leading_v(self) -> None:
        """Leading v is dropped."""
        assert parse_expression("v18.19.0") == VersionExpression("18.19.0")

    def test_alias_suffix(self) -> None:
        """Known alias suffix becomes the canonical distribution."""
        assert parse_expression("21-tem") == VersionExpression("21", "temurin")
        assert parse_expression("17-amzn") == VersionExpression("17", "corretto")
        assert parse_expression("21-graal") == VersionExpression("21", "graalce")

    def test_alias_is_case_insensitive(self) -> None:
        """Alias suffix matches regardless of case."""
        assert parse_expression("21-TEM").distribution == "temurin"

    def test_unknown_suffix_stays_in_version(self) -> None:
        """Pre-release tags are not distributions."""
        assert parse_expression("1.0.0-rc1") == VersionExpression("1.0.0-rc1")

    def test_str_round_trips_key_form(self) -> None:
        """str() renders version-distribution."""
        assert str(parse_expression("21-tem")) == "21-temurin"


class TestNormalizeDistribution:
    """Tests for normalize_distribution()."""

    @pytest.mark.parametrize(
        ("alias", "canonical"),
        [("tem", "temurin"), ("amzn", "corretto"), ("zulu", "zulu"), ("graal", "graalce")],
    )
    def test_aliases(self, alias: str, canonical: str) -> None:
        """Each alias maps to its canonical name."""
        assert normalize_distribution(alias) == canonical

    def test_unknown_unchanged(self) -> None:
        """Unknown names pass through."""
        assert normalize_distribution("liberica") == "liberica"


class TestLooksPartial:
    """Tests for the partial-version heuristic."""

    def test_two_components(self) -> None:
        """Two components look partial."""
        assert looks_partial("2.13") is True

    def test_wildcard(self) -> None:
        """Wildcards are always partial."""
        assert looks_partial("99.x") is True
        assert looks_partial("1.21.*") is True

    def test_single_component(self) -> None:
        """A bare major looks complete."""
        assert looks_partial("99") is False

    def test_three_components(self) -> None:
        """Three components look complete."""
        assert looks_partial("1.2.3") is False


class TestCompareVersions:
    """Tests for dotted numeric ordering."""

    def test_numeric_not_lexical(self) -> None:
        """20.10.0 is newer than 20.9.0."""
        assert compare_versions("20.10.0", "20.9.0") > 0

    def test_missing_components_are_zero(self) -> None:
        """1.2 equals 1.2.0."""
        assert compare_versions("1.2", "1.2.0") == 0

    def test_non_numeric_components_are_zero(self) -> None:
        """Non-numeric parts compare as 0."""
        assert compare_versions("1.beta", "1.0") == 0

    def test_sort_newest_first(self) -> None:
        """sort_versions defaults to newest first."""
        assert sort_versions(["1.9", "1.10", "1.2"]) == ["1.10", "1.9", "1.2"]


class TestResolve:
    """Tests for resolve()."""

    def test_exact_member_resolves_to_itself(self) -> None:
        """Exact members win outright."""
        for version in NODE:
            result = resolve(VersionExpression(version), NODE)
            assert isinstance(result, Ok)
            assert result.value.version == version

    def test_major_picks_highest(self) -> None:
        """20 resolves to the highest 20.x, numerically."""
        result = resolve(VersionExpression("20"), NODE)
        assert result == Ok(ResolvedVersion("20.10.0"))

    def test_wildcard_equals_prefix(self) -> None:
        """2.13.x and 2.13 resolve the same."""
        assert resolve(parse_expression("2.13.x"), SCALA) == resolve(parse_expression("2.13"), SCALA)
        assert resolve(parse_expression("2.13"), SCALA) == Ok(ResolvedVersion("2.13.12"))

    def test_star_wildcard(self) -> None:
        """2.13.* behaves like 2.13.x."""
        assert resolve(parse_expression("2.13.*"), SCALA) == Ok(ResolvedVersion("2.13.12"))

    def test_complete_looking_passes_through(self) -> None:
        """A bare major with no match passes through unchanged."""
        assert resolve(VersionExpression("99"), NODE) == Ok(ResolvedVersion("99"))

    def test_three_components_pass_through(self) -> None:
        """A full version with no match passes through unchanged."""
        assert resolve(VersionExpression("17.0.9"), NODE) == Ok(ResolvedVersion("17.0.9"))

    def test_partial_without_match_is_not_found(self) -> None:
        """2.99 and 99.x are NotFound."""
        for text in ("2.99", "99.x"):
            result = resolve(parse_expression(text), NODE, tool="node")
            assert isinstance(result, Err)
            assert isinstance(result.error, NotFound)
            assert "node" in result.error.message

    def test_distribution_carried_into_key(self) -> None:
        """Resolved key includes the requested distribution."""
        result = resolve(parse_expression("21-tem"), ["21.0.1", "21.0.2", "17.0.9"])
        assert isinstance(result, Ok)
        assert result.value.key == "21.0.2-temurin"

    def test_hyphen_suffixed_candidates(self) -> None:
        """prefix- candidates are considered."""
        result = resolve(VersionExpression("1.0.0"), ["1.0.0-rc1"])
        assert result == Ok(ResolvedVersion("1.0.0-rc1"))

    def test_leading_v_in_expression(self) -> None:
        """v20 resolves like 20."""
        assert resolve(parse_expression("v20"), NODE) == Ok(ResolvedVersion("20.10.0"))
