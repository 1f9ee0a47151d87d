"""System dependency resolution.

- platforms.py: platform detection and validation
- mapping.py: SystemRequirements text to platform packages
- strategies.py: sysreqs web service and DESCRIPTION based lookups
- resolver.py: strategy ordering, batching and soft failure handling
"""

# Patch points exposed for tests
from common.http_client import get_json  # noqa: F401
from registry.cran import fetch_description, find_installed, library_paths  # noqa: F401

from .platforms import detect_platform, is_debian_platform, validate_platform  # noqa: F401
from .mapping import SysreqsDatabase  # noqa: F401
from .strategies import LookupRequest, LookupResult  # noqa: F401
from .resolver import SystemDependencyResolver, resolve  # noqa: F401

__all__ = [
    "detect_platform",
    "is_debian_platform",
    "validate_platform",
    "SysreqsDatabase",
    "LookupRequest",
    "LookupResult",
    "SystemDependencyResolver",
    "resolve",
    # Patch points for tests
    "get_json",
    "fetch_description",
    "find_installed",
    "library_paths",
]
