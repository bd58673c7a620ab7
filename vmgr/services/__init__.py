"""Application services for the vmgr CLI.

Services implement the operations behind each command, coordinating the
catalog and version store (tools/) with configuration (core/).
"""

from vmgr.services.doctor import CheckResult, CheckStatus, DoctorReport, DoctorService
from vmgr.services.versions import (
    AppliedVersion,
    InstalledVersion,
    InstallOutcome,
    VersionService,
)

__all__ = [
    # Result types
    "AppliedVersion",
    "CheckResult",
    "CheckStatus",
    "DoctorReport",
    "InstalledVersion",
    "InstallOutcome",
    # Services
    "DoctorService",
    "VersionService",
]
