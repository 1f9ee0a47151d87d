"""Locally installed R packages (the R library trees on this machine)."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Iterable, List, Optional

from constants import Constants
from registry.cran.description import read_description

logger = logging.getLogger(__name__)

_LIBRARY_ENV_VARS = ("R_LIBS", "R_LIBS_USER", "R_LIBS_SITE")


@dataclass(frozen=True)
class InstalledPackage:
    """An installed package and the path of its DESCRIPTION file."""
    name: str
    version: Optional[str]
    description_path: str


def library_paths(extra: Optional[Iterable[str]] = None) -> List[str]:
    """Return the library trees to search, in R's lookup order, without duplicates."""
    paths: List[str] = []
    for var in _LIBRARY_ENV_VARS:
        value = os.environ.get(var)
        if value:
            paths.extend(p for p in value.split(os.pathsep) if p)
    paths.extend(extra or [])
    paths.extend(Constants.R_LIBRARY_PATHS)
    seen = set()
    ordered = []
    for path in paths:
        expanded = os.path.expanduser(path)
        if expanded not in seen:
            seen.add(expanded)
            ordered.append(expanded)
    return ordered


def find_installed(name: str, paths: Optional[Iterable[str]] = None) -> Optional[InstalledPackage]:
    """Find the first installed copy of ``name``; None when it is not installed."""
    for lib in paths if paths is not None else library_paths():
        desc_path = os.path.join(lib, name, "DESCRIPTION")
        if not os.path.isfile(desc_path):
            continue
        try:
            fields = read_description(desc_path)
        except (OSError, ValueError) as exc:
            logger.debug("Unreadable DESCRIPTION %s: %s", desc_path, exc)
            continue
        return InstalledPackage(name=name, version=fields.get("Version"), description_path=desc_path)
    return None
