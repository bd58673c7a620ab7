"""Secondary record of the current version per tool.

The ``current`` alias on disk is the source of truth; ``state.json`` caches
the same fact for platforms where the alias cannot be read back (and for
humans). It lives at ``<root>/state.json``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path

from vmgr.platform.files import atomic_write_text

__all__ = [
    "CurrentState",
    "clear_current_version",
    "get_current_version",
    "load_state",
    "save_state",
    "set_current_version",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CurrentState:
    """Active version of one tool.

    Attributes:
        version: Version key (``21.0.1`` or ``21.0.1-temurin``)
        activated_at: ISO timestamp of the switch
    """

    version: str
    activated_at: str

    @classmethod
    def now(cls, version: str) -> CurrentState:
        return cls(version=version, activated_at=datetime.now().isoformat(timespec="seconds"))


def _state_file(root: Path) -> Path:
    return root / "state.json"


def load_state(root: Path) -> dict[str, CurrentState]:
    """Load the record; a missing or corrupted file reads as empty."""
    state_path = _state_file(root)
    if not state_path.exists():
        return {}

    try:
        data = json.loads(state_path.read_text(encoding="utf-8"))
        return {tool: CurrentState(**entry) for tool, entry in data.items()}
    except (json.JSONDecodeError, TypeError, KeyError, AttributeError):
        logger.warning("ignoring corrupted %s", state_path)
        return {}


def save_state(root: Path, state: dict[str, CurrentState]) -> None:
    data = {tool: asdict(entry) for tool, entry in sorted(state.items())}
    atomic_write_text(_state_file(root), json.dumps(data, indent=2) + "\n", encoding="utf-8")


def get_current_version(root: Path, tool: str) -> str | None:
    entry = load_state(root).get(tool)
    return entry.version if entry else None


def set_current_version(root: Path, tool: str, version: str) -> None:
    state = load_state(root)
    state[tool] = CurrentState.now(version)
    save_state(root, state)


def clear_current_version(root: Path, tool: str) -> None:
    state = load_state(root)
    if state.pop(tool, None) is not None:
        save_state(root, state)
