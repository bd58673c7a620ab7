"""Tests for services/versions.py."""

import hashlib
import io
import zipfile
from pathlib import Path
from types import MappingProxyType

from vmgr.core.config import Config, DownloadConfig, PathsConfig
from vmgr.core.errors import (
    AlreadyInstalled,
    InvalidExpression,
    NotFound,
    NotInstalled,
    RetriesExhausted,
    TransportError,
    UnknownTool,
)
from vmgr.core.result import Err, Ok
from vmgr.platform.detection import Arch, Platform, PlatformInfo
from vmgr.platform.shell import Shell
from vmgr.services.versions import VersionService, artifact_name
from vmgr.tools.activation import Scope
from vmgr.tools.catalog import ToolCatalog
from vmgr.tools.descriptor import Distribution, DownloadType, ToolDescriptor
from vmgr.tools.environment import PersistenceStrategy
from vmgr.tools.http import HttpError, MockHttpClient, MockResponse
from vmgr.tools.matcher import ResolvedVersion

RELEASES = "https://example.com/demo/versions.json"

DEMO = ToolDescriptor(
    name="demo",
    display_name="Demo",
    releases_url=RELEASES,
    download_url="https://example.com/demo/demo-{version}.zip",
    checksum_url="https://example.com/demo/demo-{version}.zip.sha256",
    version_regex=r"^\d+\.\d+\.\d+$",
    version_files=(".demo-version",),
    env_vars=MappingProxyType({"DEMO_HOME": "."}),
    path_dirs=("bin",),
)

JDK = ToolDescriptor(
    name="jdk",
    distributions=MappingProxyType(
        {
            "temurin": Distribution("temurin", "Eclipse Temurin", "https://example.com/temurin-{version}.zip"),
            "corretto": Distribution("corretto", "Amazon Corretto", "https://example.com/corretto-{version}.zip"),
        }
    ),
    default_distribution="temurin",
    static_versions=("21.0.2", "17.0.10"),
)

LINUX = PlatformInfo(Platform.LINUX, Arch.X64)


def _zip_bytes(version: str) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr(f"demo-{version}/bin/demo", f"#!/bin/sh\necho {version}\n")
        zf.writestr(f"demo-{version}/README", "demo")
    return buf.getvalue()


def _url(version: str) -> str:
    return f"https://example.com/demo/demo-{version}.zip"


def _http(*versions: str) -> MockHttpClient:
    http = MockHttpClient()
    http.set_json(RELEASES, [{"version": f"v{v}"} for v in versions])
    for version in versions:
        http.script(_url(version), MockResponse(body=_zip_bytes(version)))
    return http


def _config(tmp_path: Path, *, verify: bool = True) -> Config:
    return Config(
        paths=PathsConfig(
            root=tmp_path / "vmgr" / "versions",
            sources=tmp_path / "vmgr" / "sources",
            cache=tmp_path / "vmgr" / "cache",
        ),
        download=DownloadConfig(max_retries=2, retry_delay=0.5, verify_checksums=verify),
    )


def _service(
    tmp_path: Path,
    http: MockHttpClient,
    *,
    environ: dict[str, str] | None = None,
    strategies: list[PersistenceStrategy] | None = None,
    verify: bool = True,
) -> VersionService:
    return VersionService(
        config=_config(tmp_path, verify=verify),
        catalog=ToolCatalog([DEMO, JDK]),
        platform=LINUX,
        http=http,
        strategies=strategies or [],
        backstop=None,
        environ=environ,
        sleep=lambda _: None,
    )


def _fake_install(service: VersionService, tool: str, key: str) -> Path:
    path = service.store.version_dir(tool, key)
    (path / "bin").mkdir(parents=True)
    return path


class TestResolve:
    """Tests for resolve_remote() and resolve_installed()."""

    def test_partial_picks_highest_published(self, tmp_path: Path) -> None:
        """A bare major resolves to the newest matching release."""
        service = _service(tmp_path, _http("1.0.0", "1.2.0", "2.0.0"))

        result = service.resolve_remote("demo", "1")

        assert result == Ok(ResolvedVersion("1.2.0"))

    def test_list_remote_filters_and_sorts(self, tmp_path: Path) -> None:
        """Published versions failing the tool's rule are dropped; newest first."""
        http = MockHttpClient()
        http.set_json(RELEASES, ["1.0.0", "nightly", "2.0.0", "1.10.0"])
        service = _service(tmp_path, http)

        result = service.list_remote("demo")

        assert result == Ok(["2.0.0", "1.10.0", "1.0.0"])

    def test_unknown_tool(self, tmp_path: Path) -> None:
        """Unknown tools are rejected before any network access."""
        http = _http("1.0.0")
        service = _service(tmp_path, http)

        result = service.resolve_remote("nope", "1")

        assert isinstance(result, Err)
        assert isinstance(result.error, UnknownTool)
        assert http.calls == []

    def test_no_match_for_partial(self, tmp_path: Path) -> None:
        """A partial expression without candidates is NotFound."""
        service = _service(tmp_path, _http("1.0.0"))

        result = service.resolve_remote("demo", "3.1")

        assert isinstance(result, Err)
        assert isinstance(result.error, NotFound)

    def test_empty_expression(self, tmp_path: Path) -> None:
        """Whitespace is not a version."""
        service = _service(tmp_path, _http("1.0.0"))

        result = service.resolve_remote("demo", "  ")

        assert isinstance(result, Err)
        assert isinstance(result.error, InvalidExpression)

    def test_unknown_distribution(self, tmp_path: Path) -> None:
        """Distributions the tool does not declare are invalid expressions."""
        service = _service(tmp_path, MockHttpClient())

        result = service.resolve_remote("demo", "1.0.0-temurin")

        assert isinstance(result, Err)
        assert isinstance(result.error, InvalidExpression)
        assert "distribution" in result.error.message

    def test_endpoint_failure_is_transport_error(self, tmp_path: Path) -> None:
        """A partial expression needs the listing, so its failure surfaces as a transport error."""
        http = MockHttpClient()
        http.set_json(RELEASES, HttpError(url=RELEASES, status=503, message="unavailable"))
        service = _service(tmp_path, http)

        result = service.resolve_remote("demo", "1.x")

        assert isinstance(result, Err)
        assert isinstance(result.error, TransportError)
        assert result.error.tool == "demo"

    def test_endpoint_failure_lets_complete_version_through(self, tmp_path: Path) -> None:
        """Without a listing a complete version is tried as given."""
        http = MockHttpClient()
        http.set_json(RELEASES, HttpError(url=RELEASES, status=503, message="unavailable"))
        http.script(_url("1.0.0"), MockResponse(body=_zip_bytes("1.0.0")))
        service = _service(tmp_path, http, verify=False)

        assert service.resolve_remote("demo", "v1.0.0") == Ok(ResolvedVersion("1.0.0"))
        result = service.install("demo", "1.0.0")

        assert isinstance(result, Ok)
        assert service.store.list_installed("demo") == ["1.0.0"]

    def test_endpoint_failure_still_validates(self, tmp_path: Path) -> None:
        """A passed-through version must still satisfy the tool's rule."""
        http = MockHttpClient()
        http.set_json(RELEASES, HttpError(url=RELEASES, status=503, message="unavailable"))
        service = _service(tmp_path, http)

        result = service.resolve_remote("demo", "1")

        assert isinstance(result, Err)
        assert isinstance(result.error, InvalidExpression)

    def test_static_versions_with_distribution(self, tmp_path: Path) -> None:
        """Static versions resolve with the requested distribution attached."""
        service = _service(tmp_path, MockHttpClient())

        result = service.resolve_remote("jdk", "21-amzn")

        assert result == Ok(ResolvedVersion("21.0.2", "corretto"))

    def test_resolve_installed_by_distribution(self, tmp_path: Path) -> None:
        """Installed keys are narrowed to the requested distribution."""
        service = _service(tmp_path, MockHttpClient())
        _fake_install(service, "jdk", "21.0.2-temurin")
        _fake_install(service, "jdk", "21.0.1-corretto")

        result = service.resolve_installed("jdk", "21-corretto")

        assert result == Ok(ResolvedVersion("21.0.1", "corretto"))

    def test_resolve_installed_missing(self, tmp_path: Path) -> None:
        """Versions that are not on disk are NotInstalled."""
        service = _service(tmp_path, MockHttpClient())
        _fake_install(service, "demo", "1.2.0")

        result = service.resolve_installed("demo", "3.0.0")

        assert isinstance(result, Err)
        assert isinstance(result.error, NotInstalled)


class TestInstall:
    """Tests for install() and uninstall()."""

    def test_install_unpacks_version(self, tmp_path: Path) -> None:
        """Install resolves, downloads and unpacks under <root>/<tool>/<key>."""
        service = _service(tmp_path, _http("1.0.0", "1.2.0"), verify=False)

        result = service.install("demo", "1")

        assert isinstance(result, Ok)
        outcome = result.value
        assert outcome.resolved.key == "1.2.0"
        assert outcome.path == service.store.version_dir("demo", "1.2.0")
        assert (outcome.path / "bin" / "demo").read_text(encoding="utf-8") == "#!/bin/sh\necho 1.2.0\n"
        assert outcome.url == _url("1.2.0")
        assert outcome.fetch.attempts == 1
        assert outcome.verified is False

    def test_install_removes_cached_artifact(self, tmp_path: Path) -> None:
        """The downloaded archive is dropped once unpacked."""
        service = _service(tmp_path, _http("1.2.0"), verify=False)

        assert isinstance(service.install("demo", "1.2.0"), Ok)

        cache = _config(tmp_path).paths.cache
        assert [p for p in cache.rglob("*") if p.is_file()] == []

    def test_install_verifies_published_checksum(self, tmp_path: Path) -> None:
        """A published digest is checked and reported."""
        http = _http("1.2.0")
        digest = hashlib.sha256(_zip_bytes("1.2.0")).hexdigest()
        http.set_text(f"{_url('1.2.0')}.sha256", f"{digest}  demo-1.2.0.zip\n")
        service = _service(tmp_path, http)

        result = service.install("demo", "1.2.0")

        assert isinstance(result, Ok)
        assert result.value.verified is True
        assert result.value.fetch.digest == digest

    def test_install_rejects_wrong_checksum(self, tmp_path: Path) -> None:
        """A digest that never matches leaves nothing installed."""
        http = _http("1.2.0")
        http.set_text(f"{_url('1.2.0')}.sha256", "0" * 64)
        service = _service(tmp_path, http)

        result = service.install("demo", "1.2.0")

        assert isinstance(result, Err)
        assert isinstance(result.error, RetriesExhausted)
        assert result.error.tool == "demo"
        assert http.attempts(_url("1.2.0")) == 3
        assert not service.store.version_dir("demo", "1.2.0").exists()

    def test_missing_checksum_installs_unverified(self, tmp_path: Path) -> None:
        """An unavailable checksum file does not block the install."""
        service = _service(tmp_path, _http("1.2.0"))

        result = service.install("demo", "1.2.0")

        assert isinstance(result, Ok)
        assert result.value.verified is False

    def test_install_twice_is_already_installed(self, tmp_path: Path) -> None:
        """A second install of the same key is refused."""
        service = _service(tmp_path, _http("1.2.0"), verify=False)
        assert isinstance(service.install("demo", "1.2.0"), Ok)

        result = service.install("demo", "1.2")

        assert isinstance(result, Err)
        assert isinstance(result.error, AlreadyInstalled)
        assert result.error.path == service.store.version_dir("demo", "1.2.0")

    def test_install_download_failure(self, tmp_path: Path) -> None:
        """A permanent HTTP failure is reported with tool context."""
        http = _http("1.2.0")
        http.script(_url("1.2.0"), MockResponse(status=404))
        service = _service(tmp_path, http, verify=False)

        result = service.install("demo", "1.2.0")

        assert isinstance(result, Err)
        assert result.error.tool == "demo"
        assert not service.store.version_dir("demo", "1.2.0").exists()

    def test_uninstall(self, tmp_path: Path) -> None:
        """Uninstall removes the version directory."""
        service = _service(tmp_path, _http("1.2.0"), verify=False)
        assert isinstance(service.install("demo", "1.2.0"), Ok)

        result = service.uninstall("demo", "1.2")

        assert result == Ok(service.store.version_dir("demo", "1.2.0"))
        assert service.store.list_installed("demo") == []

    def test_uninstall_not_installed(self, tmp_path: Path) -> None:
        """Uninstalling a missing version is NotInstalled."""
        service = _service(tmp_path, MockHttpClient())

        result = service.uninstall("demo", "1.2.0")

        assert isinstance(result, Err)
        assert isinstance(result.error, NotInstalled)

    def test_uninstall_rejects_keys_outside_tool_dir(self, tmp_path: Path) -> None:
        """Expressions that would name the tool or versions directory remove nothing."""
        service = _service(tmp_path, MockHttpClient())
        demo = _fake_install(service, "demo", "1.0.0")
        jdk = _fake_install(service, "jdk", "21.0.2")

        for expression in ("..", "v", "", "."):
            result = service.uninstall("demo", expression)

            assert isinstance(result, Err), expression
            assert isinstance(result.error, (InvalidExpression, NotInstalled)), expression

        assert demo.is_dir()
        assert jdk.is_dir()


class TestArtifactName:
    """Tests for artifact_name()."""

    def test_url_name_kept_for_archives(self) -> None:
        """URLs that already name an archive keep their file name."""
        name = artifact_name(DEMO, ResolvedVersion("1.2.0"), _url("1.2.0") + "?x=1", LINUX)

        assert name == "demo-1.2.0.zip"

    def test_bare_endpoint_gets_platform_extension(self) -> None:
        """Extensionless API URLs get a name the installer can recognise."""
        name = artifact_name(
            JDK, ResolvedVersion("21.0.2", "temurin"), "https://api.example.com/binary/latest", LINUX
        )

        assert name == "jdk-21.0.2-temurin.tar.gz"

    def test_single_file_tool(self) -> None:
        """Single-file tools keep the URL's last segment."""
        tool = ToolDescriptor(
            name="rustup",
            download_url="https://example.com/rustup-init",
            download_type=DownloadType.FILE,
        )

        assert artifact_name(tool, ResolvedVersion("1.0.0"), tool.download_url, LINUX) == "rustup-init"


class MemoryStrategy:
    """Persistence strategy that records writes."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}

    def write(self, key: str, value: str) -> bool:
        self.values[key] = value
        return True

    def strategy(self) -> PersistenceStrategy:
        return PersistenceStrategy("memory", self.write, self.values.get)


class TestActivation:
    """Tests for use(), current(), which(), list_installed() and env_exports()."""

    def test_use_session_updates_environ(self, tmp_path: Path) -> None:
        """Session scope moves the alias and updates the given environment."""
        environ = {"PATH": "/usr/bin"}
        service = _service(tmp_path, MockHttpClient(), environ=environ)
        _fake_install(service, "demo", "1.2.0")

        result = service.use("demo", "1.2")

        assert isinstance(result, Ok)
        alias = service.store.current_link("demo")
        assert result.value.version == "1.2.0"
        assert result.value.alias == alias
        assert environ["DEMO_HOME"] == str(alias)
        assert environ["PATH"].split(":")[0] == str(alias / "bin")
        assert result.value.persisted == ()

    def test_use_persistent_writes_variables(self, tmp_path: Path) -> None:
        """Persistent scope hands every variable to the strategies."""
        memory = MemoryStrategy()
        service = _service(tmp_path, MockHttpClient(), strategies=[memory.strategy()])
        _fake_install(service, "demo", "1.2.0")

        result = service.use("demo", "1.2.0", Scope.PERSISTENT)

        assert isinstance(result, Ok)
        assert memory.values["DEMO_HOME"] == str(service.store.current_link("demo"))
        assert ("DEMO_HOME", "memory") in result.value.persisted

    def test_use_not_installed(self, tmp_path: Path) -> None:
        """Using a version that is not installed fails without touching the alias."""
        service = _service(tmp_path, MockHttpClient())

        result = service.use("demo", "1.2.0")

        assert isinstance(result, Err)
        assert isinstance(result.error, NotInstalled)
        assert service.current("demo") == Ok(None)

    def test_use_rejects_keys_outside_tool_dir(self, tmp_path: Path) -> None:
        """The alias never points at the tool or versions directory."""
        service = _service(tmp_path, MockHttpClient())
        _fake_install(service, "demo", "1.0.0")

        for expression in ("..", "v", ""):
            result = service.use("demo", expression)

            assert isinstance(result, Err), expression
            assert isinstance(result.error, InvalidExpression), expression

        assert not service.store.current_link("demo").exists()
        assert service.current("demo") == Ok(None)

    def test_current_and_which(self, tmp_path: Path) -> None:
        """current() and which() follow the alias."""
        service = _service(tmp_path, MockHttpClient())
        _fake_install(service, "demo", "1.2.0")
        assert service.which("demo") == Ok(None)

        assert isinstance(service.use("demo", "1.2.0"), Ok)

        assert service.current("demo") == Ok("1.2.0")
        assert service.which("demo") == Ok(service.store.current_link("demo"))
        assert service.current_all() == {"demo": "1.2.0"}

    def test_list_installed_marks_current(self, tmp_path: Path) -> None:
        """Installed versions are listed newest first with the active one marked."""
        service = _service(tmp_path, MockHttpClient())
        _fake_install(service, "demo", "1.0.0")
        _fake_install(service, "demo", "1.2.0")
        assert isinstance(service.use("demo", "1.0.0"), Ok)

        result = service.list_installed("demo")

        assert isinstance(result, Ok)
        assert [(v.key, v.current) for v in result.value] == [("1.2.0", False), ("1.0.0", True)]

    def test_env_exports_puts_shims_first(self, tmp_path: Path) -> None:
        """The rendered script sets variables and prefixes PATH with the shim directory."""
        service = _service(tmp_path, MockHttpClient())
        _fake_install(service, "demo", "1.2.0")
        assert isinstance(service.use("demo", "1.2.0"), Ok)
        alias = service.store.current_link("demo")
        shim_dir = _config(tmp_path).paths.shim_dir

        script = service.env_exports(Shell.BASH)

        assert f'export DEMO_HOME="{alias}"' in script
        assert f'export PATH="{shim_dir}:{alias / "bin"}":"$PATH"' in script

    def test_env_exports_without_active_tools(self, tmp_path: Path) -> None:
        """With nothing active only the shim directory is exported."""
        service = _service(tmp_path, MockHttpClient())
        shim_dir = _config(tmp_path).paths.shim_dir

        script = service.env_exports(Shell.FISH)

        assert script == f'set -gx PATH "{shim_dir}" $PATH\n'


class TestDetection:
    """Tests for detect() and apply_detected()."""

    def test_detect_and_apply(self, tmp_path: Path) -> None:
        """Declared versions are found and switched to."""
        project = tmp_path / "project"
        (project / "src").mkdir(parents=True)
        (project / ".demo-version").write_text("1.2\n", encoding="utf-8")
        service = _service(tmp_path, MockHttpClient())
        _fake_install(service, "demo", "1.2.0")

        detected = service.detect(project / "src")
        applied = service.apply_detected(detected)

        assert [(d.tool, d.version) for d in detected] == [("demo", "1.2")]
        assert len(applied) == 1
        assert isinstance(applied[0].result, Ok)
        assert service.current("demo") == Ok("1.2.0")

    def test_apply_reports_failures_per_tool(self, tmp_path: Path) -> None:
        """A declared version that is not installed fails on its own."""
        project = tmp_path / "project"
        project.mkdir()
        (project / ".demo-version").write_text("9.9.9", encoding="utf-8")
        service = _service(tmp_path, MockHttpClient())

        applied = service.apply_detected(service.detect(project))

        assert len(applied) == 1
        assert isinstance(applied[0].result, Err)
        assert isinstance(applied[0].result.error, NotInstalled)
