"""Mapping database from free-text system requirements to platform packages.

The database is YAML data (see ``sysreqs/data/sysreqs.yml``)::

    sysreqs:
      libxml2:
        patterns: ['\\blibxml2\\b']
        platforms:
          debian: [libxml2-dev]
    ignore:
      - '^gnu make$'
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

import yaml

from constants import Constants
from errors import ResolutionSoftFailure, emit_warning
from sysreqs.platforms import platform_family

logger = logging.getLogger(__name__)

# Version constraints such as "libxml2 (>= 2.6.3)" are not part of the requirement name.
_VERSION_CONSTRAINT = re.compile(r"\s*\([^)]*\)\s*$")
_FRAGMENT_SPLIT = re.compile(r"[,;\n]+")


@dataclass
class SysreqEntry:
    """A single mapping entry."""
    name: str
    patterns: List[re.Pattern]
    platforms: Dict[str, List[str]] = field(default_factory=dict)

    def matches(self, fragment: str) -> bool:
        return any(p.search(fragment) for p in self.patterns)


def split_requirements(text: Optional[str]) -> List[str]:
    """Split a SystemRequirements field into normalized fragments."""
    if not text:
        return []
    fragments = []
    for raw in _FRAGMENT_SPLIT.split(text):
        fragment = " ".join(raw.split())
        if fragment:
            fragments.append(fragment)
    return fragments


class SysreqsDatabase:
    """Pattern-based lookup of system packages per distribution family."""

    def __init__(self, entries: List[SysreqEntry], ignore: Optional[List[re.Pattern]] = None):
        self.entries = entries
        self.ignore = ignore or []

    @classmethod
    def from_dict(cls, data: Dict) -> "SysreqsDatabase":
        entries = []
        for name, spec in sorted((data.get("sysreqs") or {}).items()):
            if not isinstance(spec, dict):
                logger.debug("Skipping malformed sysreqs entry %s", name)
                continue
            patterns = [re.compile(p, re.IGNORECASE) for p in spec.get("patterns") or [name]]
            platforms = {
                str(family): [str(token) for token in tokens or []]
                for family, tokens in (spec.get("platforms") or {}).items()
            }
            entries.append(SysreqEntry(name=name, patterns=patterns, platforms=platforms))
        ignore = [re.compile(p, re.IGNORECASE) for p in data.get("ignore") or []]
        return cls(entries, ignore)

    @classmethod
    def load(cls, path: Optional[str] = None) -> "SysreqsDatabase":
        """Load the database from ``path`` (defaults to the shipped data file)."""
        path = path or Constants.SYSREQS_DB_FILE
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        logger.debug("Loaded sysreqs database from %s", path)
        return cls.from_dict(data)

    def _ignored(self, fragment: str) -> bool:
        return any(p.search(fragment) for p in self.ignore)

    def lookup(
        self,
        text: Optional[str],
        platform: Optional[str],
        soft: bool = True,
        package: Optional[str] = None,
        logger: logging.Logger = logger,
    ) -> Tuple[Set[str], List[str]]:
        """Resolve a SystemRequirements field for ``platform``.

        Returns:
            (platform package tokens, fragments that had no mapping)
        """
        family = platform_family(platform)
        found: Set[str] = set()
        unmatched: List[str] = []
        for fragment in split_requirements(text):
            bare = _VERSION_CONSTRAINT.sub("", fragment)
            if self._ignored(bare):
                continue
            hits = [entry for entry in self.entries if entry.matches(bare)]
            if not hits:
                unmatched.append(fragment)
                continue
            for entry in hits:
                found.update(entry.platforms.get(family or "", []))

        if unmatched:
            if soft:
                logger.debug("No system package mapping for %s: %s", package, ", ".join(unmatched))
            else:
                emit_warning(
                    logger,
                    ResolutionSoftFailure,
                    "No system package mapping for requirements of package '%s': %s",
                    package,
                    ", ".join(unmatched),
                )
        return found, unmatched
