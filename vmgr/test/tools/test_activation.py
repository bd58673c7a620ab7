"""Tests for tools/activation.py, tools/environment.py and tools/shims.py."""

import os
import sys
from pathlib import Path
from types import MappingProxyType

import pytest

from vmgr.core.errors import NotInstalled
from vmgr.core.result import Err, Ok
from vmgr.platform.shell import Shell
from vmgr.tools.activation import ActivationEngine, Scope
from vmgr.tools.descriptor import ToolDescriptor
from vmgr.tools.environment import (
    PersistenceStrategy,
    apply_to_process,
    compute_environment,
    persist_variable,
    startup_file_strategy,
    upsert_startup_entry,
)
from vmgr.tools.matcher import ResolvedVersion
from vmgr.tools.shims import write_shims
from vmgr.tools.store import VersionStore

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="plain symlinks")

JDK = ToolDescriptor(
    name="java",
    download_url="https://example.com/jdk-{version}.tar.gz",
    env_vars=MappingProxyType({"JAVA_HOME": "."}),
    path_dirs=("bin",),
)

SBT = ToolDescriptor(
    name="sbt",
    download_url="https://example.com/sbt-{version}.zip",
    path_dirs=("bin",),
    dependencies=("java",),
)


def _install(root: Path, tool: str, key: str) -> Path:
    path = root / tool / key
    (path / "bin").mkdir(parents=True)
    exe = path / "bin" / tool
    exe.write_text(f"#!/bin/sh\necho {key}\n", encoding="utf-8")
    exe.chmod(0o755)
    return path


def _snapshot(path: Path) -> dict[str, bytes]:
    return {str(p.relative_to(path)): p.read_bytes() for p in sorted(path.rglob("*")) if p.is_file()}


class MemoryStrategy:
    """Persistence strategy backed by a dict, optionally lying about success."""

    def __init__(self, name: str, *, works: bool = True, verifies: bool = True) -> None:
        self.name = name
        self.works = works
        self.verifies = verifies
        self.values: dict[str, str] = {}

    def write(self, key: str, value: str) -> bool:
        if not self.works:
            return False
        self.values[key] = value if self.verifies else "stale"
        return True

    def read(self, key: str) -> str | None:
        return self.values.get(key)

    def strategy(self) -> PersistenceStrategy:
        return PersistenceStrategy(self.name, self.write, self.read)


class TestComputeEnvironment:
    """Tests for compute_environment() and apply_to_process()."""

    def test_paths_go_through_alias(self, tmp_path: Path) -> None:
        """'.' maps to the alias itself, other entries are joined."""
        alias = tmp_path / "java" / "current"
        env = compute_environment(JDK, alias)
        assert env.env_vars == {"JAVA_HOME": str(alias)}
        assert env.path_dirs == [alias / "bin"]

    def test_apply_prepends_path_once(self, tmp_path: Path) -> None:
        """PATH entries are moved to the front, never duplicated."""
        alias = tmp_path / "current"
        env = compute_environment(JDK, alias)
        environ = {"PATH": os.pathsep.join([str(alias / "bin"), "/usr/bin"])}

        apply_to_process(env, environ)

        assert environ["JAVA_HOME"] == str(alias)
        assert environ["PATH"].split(os.pathsep) == [str(alias / "bin"), "/usr/bin"]


class TestPersistVariable:
    """Tests for the persistence fallback chain."""

    def test_first_verified_strategy_wins(self) -> None:
        """Later strategies are not tried after a verified write."""
        first, second = MemoryStrategy("registry"), MemoryStrategy("setx")
        result = persist_variable("JAVA_HOME", "/x", [first.strategy(), second.strategy()])
        assert result == "registry"
        assert second.values == {}

    def test_unverified_write_falls_through(self) -> None:
        """A write that does not read back is not trusted."""
        liar = MemoryStrategy("pwsh", verifies=False)
        honest = MemoryStrategy("setx")
        result = persist_variable("JAVA_HOME", "/x", [liar.strategy(), honest.strategy()])
        assert result == "setx"

    def test_exhausted_chain_is_soft_failure(self) -> None:
        """Every method failing yields a PersistenceFailure value."""
        broken = [MemoryStrategy(n, works=False).strategy() for n in ("registry", "pwsh")]
        result = persist_variable("JAVA_HOME", "/x", broken)
        assert not isinstance(result, str)
        assert result.attempts == ("registry", "pwsh")
        assert "JAVA_HOME" in result.message

    def test_raising_strategy_is_skipped(self) -> None:
        """OSError from a write moves on to the next method."""

        def boom(_name: str, _value: str) -> bool:
            raise OSError("access denied")

        fallback = MemoryStrategy("setx")
        result = persist_variable(
            "X", "1", [PersistenceStrategy("registry", boom, lambda _n: None), fallback.strategy()]
        )
        assert result == "setx"


class TestStartupFile:
    """Tests for marker-guarded startup file entries."""

    def test_upsert_is_idempotent(self, tmp_path: Path) -> None:
        """Writing the same value twice changes nothing the second time."""
        rc = tmp_path / ".bashrc"
        rc.write_text("alias ll='ls -l'\n", encoding="utf-8")

        assert upsert_startup_entry(rc, Shell.BASH, "JAVA_HOME", "/v/java/current") is True
        first = rc.read_text(encoding="utf-8")
        assert upsert_startup_entry(rc, Shell.BASH, "JAVA_HOME", "/v/java/current") is False
        assert rc.read_text(encoding="utf-8") == first
        assert first.count("# vmgr: JAVA_HOME") == 1
        assert first.startswith("alias ll='ls -l'\n")

    def test_upsert_rewrites_value_in_place(self, tmp_path: Path) -> None:
        """A new value replaces the line under the marker."""
        rc = tmp_path / ".zshrc"
        upsert_startup_entry(rc, Shell.ZSH, "GOROOT", "/old")
        upsert_startup_entry(rc, Shell.ZSH, "GOROOT", "/new")
        content = rc.read_text(encoding="utf-8")
        assert content.count("GOROOT") == 2
        assert "/old" not in content
        assert "/new" in content

    @pytest.mark.parametrize("shell", [Shell.BASH, Shell.FISH, Shell.POWERSHELL, Shell.CMD])
    def test_strategy_reads_back(self, tmp_path: Path, shell: Shell) -> None:
        """The startup-file strategy verifies what it wrote."""
        strategy = startup_file_strategy(tmp_path / "profile", shell)
        value = "/home/me/.vmgr/versions/java/current"
        assert persist_variable("JAVA_HOME", value, [strategy]) == strategy.name


class TestShims:
    """Tests for write_shims()."""

    @posix_only
    def test_posix_wrappers(self, tmp_path: Path) -> None:
        """One exec wrapper per executable."""
        version = _install(tmp_path, "node", "20.10.0")
        (version / "bin" / "README").write_text("not executable", encoding="utf-8")
        shim_dir = tmp_path / "shims"

        written = write_shims(shim_dir, [version / "bin"], windows=False)

        assert written == [shim_dir / "node"]
        content = (shim_dir / "node").read_text(encoding="utf-8")
        assert content.startswith("#!/bin/sh\n")
        assert str(version / "bin" / "node") in content
        assert os.access(shim_dir / "node", os.X_OK)

    def test_windows_wrappers(self, tmp_path: Path) -> None:
        """.exe and .cmd files get .cmd wrappers."""
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir()
        (bin_dir / "java.exe").write_bytes(b"MZ")
        (bin_dir / "java.dll").write_bytes(b"MZ")

        written = write_shims(tmp_path / "shims", [bin_dir], windows=True)

        assert [p.name for p in written] == ["java.cmd"]
        assert written[0].read_bytes().startswith(b"@echo off\r\n")

    def test_missing_bin_dir(self, tmp_path: Path) -> None:
        """Absent directories are skipped."""
        assert write_shims(tmp_path / "shims", [tmp_path / "nope"], windows=False) == []


@posix_only
class TestActivationEngine:
    """Tests for ActivationEngine.activate()."""

    def test_not_installed(self, tmp_path: Path) -> None:
        """Activating a missing version fails with NotInstalled."""
        engine = ActivationEngine(VersionStore(tmp_path))
        result = engine.activate(JDK, ResolvedVersion("21.0.1"))
        assert isinstance(result, Err)
        assert isinstance(result.error, NotInstalled)
        assert "java 21.0.1" in result.error.message

    def test_switch_leaves_previous_version_byte_identical(self, tmp_path: Path) -> None:
        """activate(v2) after activate(v1) does not modify v1."""
        v1 = _install(tmp_path, "java", "17.0.9")
        _install(tmp_path, "java", "21.0.1")
        engine = ActivationEngine(VersionStore(tmp_path))
        engine.activate(JDK, ResolvedVersion("17.0.9"))
        before = _snapshot(v1)

        result = engine.activate(JDK, ResolvedVersion("21.0.1"))

        assert isinstance(result, Ok)
        assert result.value.version == "21.0.1"
        assert _snapshot(v1) == before

    def test_session_scope_updates_given_environ(self, tmp_path: Path) -> None:
        """Session scope applies the environment and persists nothing."""
        _install(tmp_path, "java", "21.0.1")
        environ: dict[str, str] = {"PATH": "/usr/bin"}
        strategy = MemoryStrategy("registry")
        engine = ActivationEngine(VersionStore(tmp_path), strategies=[strategy.strategy()], environ=environ)

        result = engine.activate(JDK, ResolvedVersion("21.0.1"))

        assert isinstance(result, Ok)
        alias = tmp_path / "java" / "current"
        assert environ["JAVA_HOME"] == str(alias)
        assert environ["PATH"].startswith(str(alias / "bin"))
        assert strategy.values == {}
        assert result.value.persisted == ()

    def test_persistent_scope_uses_chain_and_backstop(self, tmp_path: Path) -> None:
        """Persistent scope records the method and writes the startup file."""
        _install(tmp_path, "java", "21.0.1")
        strategy = MemoryStrategy("registry")
        rc = tmp_path / "profile.ps1"
        engine = ActivationEngine(
            VersionStore(tmp_path),
            strategies=[strategy.strategy()],
            backstop=(rc, Shell.POWERSHELL),
        )

        result = engine.activate(JDK, ResolvedVersion("21.0.1"), Scope.PERSISTENT)

        assert isinstance(result, Ok)
        assert result.value.persisted == (("JAVA_HOME", "registry"),)
        assert result.value.warnings == ()
        assert strategy.values["JAVA_HOME"] == str(tmp_path / "java" / "current")
        assert "# vmgr: JAVA_HOME" in rc.read_text(encoding="utf-8")

    def test_persistence_failure_is_a_warning(self, tmp_path: Path) -> None:
        """Exhausting every method still activates the version."""
        _install(tmp_path, "java", "21.0.1")
        engine = ActivationEngine(
            VersionStore(tmp_path),
            strategies=[MemoryStrategy("registry", works=False).strategy()],
        )

        result = engine.activate(JDK, ResolvedVersion("21.0.1"), Scope.PERSISTENT)

        assert isinstance(result, Ok)
        assert len(result.value.warnings) == 1
        assert result.value.warnings[0].name == "JAVA_HOME"
        assert VersionStore(tmp_path).current("java") == "21.0.1"

    def test_missing_dependency_is_reported(self, tmp_path: Path) -> None:
        """Declared dependencies without installs are non-fatal."""
        _install(tmp_path, "sbt", "1.9.7")
        engine = ActivationEngine(VersionStore(tmp_path))

        result = engine.activate(SBT, ResolvedVersion("1.9.7"))

        assert isinstance(result, Ok)
        [missing] = result.value.missing_dependencies
        assert missing.dependency == "java"
        assert "vmgr install java" in missing.hint

    def test_writes_shims(self, tmp_path: Path) -> None:
        """Executables are wrapped in the shim directory."""
        shim_dir = tmp_path / "bin"
        engine = ActivationEngine(VersionStore(tmp_path / "versions"), shim_dir=shim_dir)
        _install(tmp_path / "versions", "java", "21.0.1")

        result = engine.activate(JDK, ResolvedVersion("21.0.1"))

        assert isinstance(result, Ok)
        assert result.value.shims == (shim_dir / "java",)
        assert "java/current/bin/java" in (shim_dir / "java").read_text(encoding="utf-8")

    def test_environment_of_inactive_tool(self, tmp_path: Path) -> None:
        """No current version means no environment."""
        assert ActivationEngine(VersionStore(tmp_path)).environment(JDK) is None
