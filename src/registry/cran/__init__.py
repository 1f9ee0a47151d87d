"""CRAN registry package.

- description.py: DESCRIPTION (control file) parsing
- library.py: locally installed packages in the R library trees
- client.py: DESCRIPTION page fetch from CRAN
"""

# Patch points exposed for tests
from common.http_client import get_text  # noqa: F401

from .description import parse_description, read_description  # noqa: F401
from .library import InstalledPackage, find_installed, library_paths  # noqa: F401
from .client import fetch_description  # noqa: F401

__all__ = [
    "parse_description",
    "read_description",
    "InstalledPackage",
    "find_installed",
    "library_paths",
    "fetch_description",
    "get_text",
]
