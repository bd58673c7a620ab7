"""Platform abstraction layer."""

from .detection import (
    Arch,
    Platform,
    PlatformInfo,
    detect,
    is_linux,
    is_macos,
    is_windows,
)
from .paths import (
    home,
    user_config_dir,
)
from .process import (
    ProcessError,
    run,
    which,
)
from .shell import (
    Shell,
    detect_shell,
    render_env,
    startup_file,
)

__all__ = [
    # detection
    "Arch",
    "Platform",
    "PlatformInfo",
    "detect",
    "is_linux",
    "is_macos",
    "is_windows",
    # paths
    "home",
    "user_config_dir",
    # process
    "ProcessError",
    "run",
    "which",
    # shell
    "Shell",
    "detect_shell",
    "render_env",
    "startup_file",
]
