"""Version resolution, acquisition and activation.

This package provides:
- Tool descriptors and the catalog (descriptor.py, catalog.py, definitions/)
- Version expression matching (matcher.py) and listing (sources.py)
- HTTP client, retrying resumable fetcher and installer (http.py, download.py, installer.py)
- The versions store and ``current`` alias (store.py, links.py, state.py)
- Activation and environment persistence (activation.py, environment.py, shims.py)
- Project version detection (detect.py)
"""

from vmgr.tools.descriptor import Distribution, DownloadType, ToolDescriptor
from vmgr.tools.matcher import ResolvedVersion, VersionExpression, parse_expression, resolve
from vmgr.tools.http import HttpClient, HttpError, MockHttpClient, RealHttpClient
from vmgr.tools.retry import RetryPolicy
from vmgr.tools.download import Fetcher, FetchResult
from vmgr.tools.installer import Installer, InstallResult
from vmgr.tools.store import VersionStore
from vmgr.tools.activation import ActivationEngine, ActivationResult, Scope
from vmgr.tools.detect import DetectedVersion, ProjectDetector
from vmgr.tools.catalog import ToolCatalog, load_catalog

__all__ = [
    # Descriptors
    "Distribution",
    "DownloadType",
    "ToolDescriptor",
    "ToolCatalog",
    "load_catalog",
    # Matching
    "ResolvedVersion",
    "VersionExpression",
    "parse_expression",
    "resolve",
    # HTTP
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
    # Fetch and install
    "RetryPolicy",
    "Fetcher",
    "FetchResult",
    "Installer",
    "InstallResult",
    # Store and activation
    "VersionStore",
    "ActivationEngine",
    "ActivationResult",
    "Scope",
    # Detection
    "DetectedVersion",
    "ProjectDetector",
]
