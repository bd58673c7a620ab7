"""Tests for tools/descriptor.py and the built-in definitions."""

from types import MappingProxyType

import pytest

from vmgr.platform.detection import Arch, Platform, PlatformInfo
from vmgr.tools.definitions import BUILTIN_TOOLS, GO, JAVA, NODE, RUST, get_builtin
from vmgr.tools.descriptor import Distribution, ToolDescriptor, expand_template
from vmgr.tools.matcher import ResolvedVersion

LINUX_X64 = PlatformInfo(Platform.LINUX, Arch.X64)
MAC_ARM = PlatformInfo(Platform.MACOS, Arch.ARM64)
WIN_X64 = PlatformInfo(Platform.WINDOWS, Arch.X64)


class TestExpandTemplate:
    """Tests for URL placeholder substitution."""

    def test_version_placeholders(self) -> None:
        """{version} and {majorVersion}."""
        assert expand_template("x/{majorVersion}/{version}", "21.0.1") == "x/21/21.0.1"

    def test_platform_placeholders(self) -> None:
        """{os}, {arch}, {ext} and {exe} need a platform."""
        url = expand_template("{os}-{arch}.{ext}{exe}", "1", WIN_X64)
        assert url == "windows-x64.zip.exe"

    def test_vendor_spellings(self) -> None:
        """Descriptor maps translate the generic tokens."""
        url = expand_template(
            "{os}-{arch}.{ext}",
            "1",
            LINUX_X64,
            os_names={"linux": "ubuntu"},
            arch_names={"x64": "amd64"},
            archive_exts={"linux": "tar.xz"},
        )
        assert url == "ubuntu-amd64.tar.xz"

    def test_without_platform_leaves_os_tokens(self) -> None:
        """Platform tokens stay when no platform is given."""
        assert expand_template("{os}/{version}", "1") == "{os}/1"


class TestToolDescriptorValidation:
    """Tests for __post_init__ checks."""

    def test_name_must_be_lowercase(self) -> None:
        """Catalog keys are lowercase identifiers."""
        with pytest.raises(ValueError, match="lowercase"):
            ToolDescriptor(name="Java", download_url="u")

    def test_current_is_reserved(self) -> None:
        """The alias name cannot be a tool."""
        with pytest.raises(ValueError, match="reserved"):
            ToolDescriptor(name="current", download_url="u")

    def test_needs_a_url(self) -> None:
        """A descriptor must be downloadable."""
        with pytest.raises(ValueError, match="download URL"):
            ToolDescriptor(name="x")

    def test_bad_regex(self) -> None:
        """versionRegex must compile."""
        with pytest.raises(ValueError, match="versionRegex"):
            ToolDescriptor(name="x", download_url="u", version_regex="(")

    def test_default_distribution_declared(self) -> None:
        """The default must be one of the distributions."""
        with pytest.raises(ValueError, match="default distribution"):
            ToolDescriptor(name="x", download_url="u", default_distribution="zulu")

    def test_validate(self) -> None:
        """validate() applies the regex, also with a v prefix."""
        assert GO.validate("1.21.5")
        assert not GO.validate("1")
        assert NODE.validate("20.10.0")


class TestDistributions:
    """Tests for distribution selection and URLs."""

    def test_default_distribution(self) -> None:
        """No request picks the default."""
        dist = JAVA.pick_distribution("")
        assert dist is not None
        assert dist.key == "temurin"

    def test_alias_is_normalized(self) -> None:
        """amzn selects Corretto."""
        assert JAVA.distribution_display_name("amzn") == "Amazon Corretto"

    def test_first_declared_without_default(self) -> None:
        """Without a default the first distribution wins."""
        tool = ToolDescriptor(
            name="x",
            distributions=MappingProxyType(
                {
                    "a": Distribution("a", "A", "https://a/{version}"),
                    "b": Distribution("b", "B", "https://b/{version}"),
                }
            ),
        )
        assert tool.url_for(ResolvedVersion("1")) == "https://a/1"

    def test_supports_distribution(self) -> None:
        """Unknown distributions are rejected."""
        assert JAVA.supports_distribution("")
        assert JAVA.supports_distribution("tem")
        assert not JAVA.supports_distribution("liberica")
        assert not NODE.supports_distribution("temurin")

    def test_temurin_url(self) -> None:
        """Adoptium uses mac/aarch64 spellings."""
        url = JAVA.url_for(ResolvedVersion("21.0.1", "temurin"), MAC_ARM)
        assert url == "https://api.adoptium.net/v3/binary/latest/21/ga/mac/aarch64/jdk/hotspot/normal/eclipse"

    def test_corretto_url(self) -> None:
        """Corretto uses the per-OS archive extension."""
        url = JAVA.url_for(ResolvedVersion("17", "corretto"), WIN_X64)
        assert url == "https://corretto.aws/downloads/latest/amazon-corretto-17-x64-windows-jdk.zip"


class TestBuiltinDefinitions:
    """Tests for the built-in catalog entries."""

    def test_names_are_unique(self) -> None:
        """Each built-in has its own name."""
        names = [tool.name for tool in BUILTIN_TOOLS]
        assert len(names) == len(set(names))
        assert {"java", "node", "go", "python", "ruby", "rust", "dotnet", "scala", "maven", "gradle"} <= set(names)

    def test_get_builtin(self) -> None:
        """Lookup by name."""
        assert get_builtin("go") is GO
        assert get_builtin("zig") is None

    def test_node_urls(self) -> None:
        """Node uses win and tar.xz spellings."""
        version = ResolvedVersion("20.10.0")
        assert NODE.url_for(version, LINUX_X64) == (
            "https://nodejs.org/dist/v20.10.0/node-v20.10.0-linux-x64.tar.xz"
        )
        assert NODE.url_for(version, WIN_X64).endswith("node-v20.10.0-win-x64.zip")
        assert NODE.checksum_url_for(version) == "https://nodejs.org/dist/v20.10.0/SHASUMS256.txt"

    def test_go_url(self) -> None:
        """Go uses amd64."""
        assert GO.url_for(ResolvedVersion("1.21.5"), LINUX_X64) == "https://go.dev/dl/go1.21.5.linux-amd64.tar.gz"

    def test_rust_is_single_file(self) -> None:
        """rustup-init is placed as-is, with .exe on Windows."""
        assert str(RUST.download_type) == "file"
        assert RUST.url_for(ResolvedVersion("stable"), WIN_X64).endswith("rustup-init.exe")

    def test_dependencies_exist(self) -> None:
        """Every declared dependency is itself a built-in."""
        names = {tool.name for tool in BUILTIN_TOOLS}
        for tool in BUILTIN_TOOLS:
            assert set(tool.dependencies) <= names, tool.name
