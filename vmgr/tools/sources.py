"""Version listings: static versions plus the tool's releases endpoint.

Release endpoints come in a few JSON shapes:
- an array of strings or numbers (``["1.21.5", ...]``, ``[21, 17]``)
- an array of objects holding the version in a field (``[{"version": "v20.10.0"}]``)
- an object wrapping one of those arrays under ``versions``, ``releases``,
  ``available_releases`` or ``available_lts_releases``
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from vmgr.core.result import Err, Ok, Result
from vmgr.core.structured import as_obj_list, as_str_dict

if TYPE_CHECKING:
    from .descriptor import ToolDescriptor
    from .http import HttpClient, HttpError

__all__ = ["fetch_versions", "parse_versions", "filter_valid"]

logger = logging.getLogger(__name__)

_WRAPPER_FIELDS = ("versions", "releases", "available_releases", "available_lts_releases")


def _number_text(value: float) -> str:
    return f"{value:.0f}"


def _extract(item: object, version_field: str, prefix: str) -> str:
    ver = ""
    if isinstance(item, bool):
        return ""
    if isinstance(item, str):
        ver = item
    elif isinstance(item, int | float):
        return _number_text(item)
    else:
        table = as_str_dict(item)
        if table is not None:
            value = table.get(version_field or "version")
            if isinstance(value, bool):
                return ""
            if isinstance(value, int | float):
                return _number_text(value)
            if isinstance(value, str):
                ver = value
    ver = ver.strip()
    if ver.startswith("v"):
        ver = ver[1:]
    if prefix and ver.startswith(prefix):
        ver = ver[len(prefix) :]
    return ver


def parse_versions(data: Any, *, version_field: str = "version", prefix: str = "") -> list[str]:
    """Extract version strings from a decoded JSON body.

    Unrecognised shapes yield an empty list.
    """
    items = as_obj_list(data)
    if items is None:
        table = as_str_dict(data)
        if table is None:
            return []
        for key in _WRAPPER_FIELDS:
            wrapped = as_obj_list(table.get(key))
            if wrapped is None:
                continue
            found = [v for v in (_extract(i, version_field, prefix) for i in wrapped) if v]
            if found:
                return found
        return []
    return [v for v in (_extract(i, version_field, prefix) for i in items) if v]


def _dedupe(versions: list[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for v in versions:
        if v not in seen:
            seen.add(v)
            unique.append(v)
    return unique


def filter_valid(tool: ToolDescriptor, versions: list[str]) -> list[str]:
    """Keep versions matching the tool's validation regex (if any)."""
    if not tool.version_regex:
        return versions
    pattern = re.compile(tool.version_regex)
    return [v for v in versions if pattern.search(v) or pattern.search("v" + v)]


def fetch_versions(tool: ToolDescriptor, http: HttpClient) -> Result[list[str], HttpError]:
    """List known versions for ``tool``: static ones first, then the endpoint.

    An endpoint failure is only an error when there are no static versions
    to fall back on.
    """
    versions = list(tool.static_versions)

    if tool.releases_url:
        result = http.get_json(tool.releases_url)
        match result:
            case Ok(value=data):
                versions.extend(
                    parse_versions(data, version_field=tool.version_field, prefix=tool.version_prefix)
                )
            case Err(error=error):
                if not versions:
                    return Err(error)
                logger.debug("%s: releases endpoint failed (%s), using static versions", tool.name, error)

    return Ok(_dedupe(versions))
