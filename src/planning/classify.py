"""Package classification by origin and implicit prerequisite injection."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from constants import Constants
from planning.models import Origin, PackageSpec

logger = logging.getLogger(__name__)


@dataclass
class PackageGroups:
    """Packages partitioned by origin, each group in input order."""
    registry: List[PackageSpec] = field(default_factory=list)
    alt_registry: List[PackageSpec] = field(default_factory=list)
    source_control: List[PackageSpec] = field(default_factory=list)

    def all(self) -> List[PackageSpec]:
        return [*self.registry, *self.alt_registry, *self.source_control]


def partition(pkgs: Sequence[PackageSpec]) -> PackageGroups:
    """Split packages into the three origin groups."""
    groups = PackageGroups()
    buckets: Dict[Origin, List[PackageSpec]] = {
        Origin.REGISTRY: groups.registry,
        Origin.ALT_REGISTRY: groups.alt_registry,
        Origin.SOURCE_CONTROL: groups.source_control,
    }
    for pkg in pkgs:
        buckets[pkg.origin].append(pkg)
    return groups


def plan(pkgs: Sequence[PackageSpec], logger: logging.Logger = logger) -> List[PackageSpec]:
    """Return the package list with implicit prerequisites added.

    Installing from GitHub needs the 'remotes' package; it is added, pinned,
    when any GitHub package is present and 'remotes' is not already listed.
    """
    planned = list(pkgs)
    needs_remotes = any(p.origin == Origin.SOURCE_CONTROL for p in planned)
    if needs_remotes and not any(p.name == Constants.REMOTES_PACKAGE for p in planned):
        planned.append(
            PackageSpec(
                name=Constants.REMOTES_PACKAGE,
                version=Constants.REMOTES_VERSION,
                origin=Origin.REGISTRY,
            )
        )
        logger.debug(
            "Added package '%s' to package list to be able to install from GitHub",
            Constants.REMOTES_PACKAGE,
        )
    return planned
