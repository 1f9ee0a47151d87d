"""Bioconductor registry package.

- discovery.py: repository URL discovery for the current release
"""

# Patch points exposed for tests
from common.http_client import get_text  # noqa: F401

from .discovery import RepositoryDiscovery, repository_urls  # noqa: F401

__all__ = [
    "RepositoryDiscovery",
    "repository_urls",
    "get_text",
]
