"""Version expression parsing and resolution.

Pure functions: no network, no filesystem. Given a user expression such as
``20``, ``2.13.x``, ``v18.19.0`` or ``21-tem`` and the list of versions a
tool publishes, pick the concrete version to install.

Usage:
    expr = parse_expression("21-tem")      # VersionExpression("21", "temurin")
    match resolve(expr, ["21.0.1", "21.0.2", "17.0.9"]):
        case Ok(resolved):
            print(resolved.key)                # 21.0.2-temurin
        case Err(error):
            print(error.message)
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from functools import cmp_to_key

from vmgr.core.errors import NotFound
from vmgr.core.result import Err, Ok, Result

__all__ = [
    "DISTRIBUTION_ALIASES",
    "ResolvedVersion",
    "VersionExpression",
    "compare_versions",
    "is_wildcard",
    "looks_partial",
    "normalize_distribution",
    "parse_expression",
    "resolve",
    "sort_versions",
    "strip_wildcard",
]

DISTRIBUTION_ALIASES: dict[str, str] = {
    "tem": "temurin",
    "temurin": "temurin",
    "amzn": "corretto",
    "corretto": "corretto",
    "zulu": "zulu",
    "graal": "graalce",
    "graalce": "graalce",
}

_WILDCARD_SUFFIXES = (".x", ".X", ".*")
_LEADING_DIGITS = re.compile(r"\d+")


def normalize_distribution(dist: str) -> str:
    """Map an alias (``tem``, ``amzn``...) to its canonical name.

    Unknown names are returned unchanged; the empty string stays empty.
    """
    return DISTRIBUTION_ALIASES.get(dist.lower(), dist)


@dataclass(frozen=True, slots=True)
class VersionExpression:
    """A parsed user request: version text plus optional distribution."""

    text: str
    distribution: str = ""

    @property
    def wildcard(self) -> bool:
        return is_wildcard(self.text)

    def __str__(self) -> str:
        return f"{self.text}-{self.distribution}" if self.distribution else self.text


@dataclass(frozen=True, slots=True)
class ResolvedVersion:
    """Concrete version, the only form accepted by fetch and activation."""

    version: str
    distribution: str = ""

    @property
    def key(self) -> str:
        """Directory name under ``<root>/<tool>/``."""
        return f"{self.version}-{self.distribution}" if self.distribution else self.version

    def __str__(self) -> str:
        return self.key


def parse_expression(raw: str) -> VersionExpression:
    """Split ``raw`` into version text and canonical distribution.

    A leading ``v`` is dropped. A trailing ``-<token>`` is treated as a
    distribution only when ``token`` is a known alias; anything else stays
    part of the version (``1.0.0-rc1``).
    """
    text = raw.strip()
    if text[:1] in ("v", "V") and text[1:2].isdigit():
        text = text[1:]

    head, sep, tail = text.rpartition("-")
    if sep and head and tail.lower() in DISTRIBUTION_ALIASES:
        return VersionExpression(head, normalize_distribution(tail))
    return VersionExpression(text)


def is_wildcard(text: str) -> bool:
    return text.endswith(_WILDCARD_SUFFIXES)


def strip_wildcard(text: str) -> str:
    for suffix in _WILDCARD_SUFFIXES:
        if text.endswith(suffix):
            return text[: -len(suffix)]
    return text


def looks_partial(text: str) -> bool:
    """Heuristic: does ``text`` look under-specified?

    Wildcards are always partial. A single component (``21``) is taken as
    complete because some tools publish bare majors; two components
    (``2.13``) look partial; three or more look complete.
    """
    if text[:1] == "v":
        text = text[1:]
    if is_wildcard(text):
        return True
    return len(text.split(".")) == 2


def _component(part: str) -> int:
    match = _LEADING_DIGITS.match(part)
    return int(match.group()) if match else 0


def compare_versions(a: str, b: str) -> int:
    """Dotted numeric comparison; non-numeric components count as 0.

    Returns:
        Negative if a < b, zero if equal, positive if a > b
    """
    a_parts = a.split(".")
    b_parts = b.split(".")
    for i in range(max(len(a_parts), len(b_parts))):
        a_num = _component(a_parts[i]) if i < len(a_parts) else 0
        b_num = _component(b_parts[i]) if i < len(b_parts) else 0
        if a_num != b_num:
            return a_num - b_num
    return 0


def sort_versions(versions: Sequence[str], *, newest_first: bool = True) -> list[str]:
    """Sort with ``compare_versions``; ties keep their input order."""
    return sorted(versions, key=cmp_to_key(compare_versions), reverse=newest_first)


def _candidates(prefix: str, known: Sequence[str]) -> list[str]:
    matches = [
        v for v in known if v == prefix or v.startswith(prefix + ".") or v.startswith(prefix + "-")
    ]
    if not matches and "." not in prefix:
        matches = [v for v in known if v.split(".")[0] == prefix]
    return matches


def resolve(
    expression: VersionExpression,
    known: Sequence[str],
    *,
    tool: str = "",
) -> Result[ResolvedVersion, NotFound]:
    """Resolve ``expression`` against the versions a tool publishes.

    Exact members win outright (unless the expression is a wildcard). Else
    the highest version equal to the prefix or starting with ``prefix.`` or
    ``prefix-`` is chosen, falling back to a major-only comparison for bare
    numbers. Without any candidate, complete-looking expressions pass
    through unchanged and partial ones fail.
    """
    text = expression.text
    if text[:1] == "v":
        text = text[1:]
    prefix = strip_wildcard(text)
    dist = expression.distribution

    if not is_wildcard(text) and prefix in known:
        return Ok(ResolvedVersion(prefix, dist))

    matches = _candidates(prefix, known)
    if matches:
        # max() keeps the first of equal versions
        best = max(matches, key=cmp_to_key(compare_versions))
        return Ok(ResolvedVersion(best, dist))

    if looks_partial(text):
        detail = "no versions available" if not known else f"{len(known)} versions checked"
        return Err(NotFound(tool=tool, expression=str(expression), detail=detail))
    return Ok(ResolvedVersion(prefix, dist))
