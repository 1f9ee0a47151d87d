"""Bioconductor repository discovery.

Bioconductor publishes its current release in ``config.yaml``; each release
has four package repositories (software, annotation data, experiment data,
workflows) that must all be passed to the installer.
"""
from __future__ import annotations

import logging
from typing import List, Optional

import yaml

from constants import Constants

import registry.bioconductor as bioc_pkg

logger = logging.getLogger(__name__)

_REPOSITORY_PATHS = ("bioc", "data/annotation", "data/experiment", "workflows")


def repository_urls(version: str, base_url: Optional[str] = None) -> List[str]:
    """Return the four repository URLs of a Bioconductor release."""
    base = (base_url or Constants.BIOC_BASE_URL).rstrip("/")
    return [f"{base}/{version}/{path}" for path in _REPOSITORY_PATHS]


def _release_version(config_url: str) -> Optional[str]:
    status, text = bioc_pkg.get_text(config_url, context="bioconductor")
    if text is None:
        logger.warning("Could not fetch Bioconductor configuration (status %s)", status)
        return None
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        logger.warning("Could not parse Bioconductor configuration: %s", exc)
        return None
    version = data.get("release_version") if isinstance(data, dict) else None
    return str(version) if version else None


class RepositoryDiscovery:
    """Discovers the repository URLs once per run.

    Falls back to ``fallback_version`` when the release cannot be determined online.
    """

    def __init__(
        self,
        config_url: Optional[str] = None,
        fallback_version: Optional[str] = None,
    ):
        self.config_url = config_url or Constants.BIOC_CONFIG_URL
        self.fallback_version = fallback_version or Constants.BIOC_FALLBACK_VERSION
        self._urls: Optional[List[str]] = None

    def __call__(self) -> List[str]:
        if self._urls is None:
            version = _release_version(self.config_url)
            if version is None:
                logger.warning(
                    "Using fallback Bioconductor release %s for repository URLs",
                    self.fallback_version,
                )
                version = self.fallback_version
            self._urls = repository_urls(version)
            logger.debug("Bioconductor repositories: %s", ", ".join(self._urls))
        return list(self._urls)
