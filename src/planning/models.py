"""Data models for package planning."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from errors import FatalInputError

# CRAN and Bioconductor package names
R_PACKAGE_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9.]*$")


class Origin(Enum):
    """Where a package is installed from."""
    REGISTRY = "CRAN"
    ALT_REGISTRY = "Bioconductor"
    SOURCE_CONTROL = "GitHub"

    @classmethod
    def from_label(cls, label: str) -> "Origin":
        """Map an ingestion source label to an Origin.

        Raises:
            FatalInputError: If the label is not a known origin.
        """
        normalized = (label or "").strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise FatalInputError(f"Unknown package source '{label}'")


@dataclass(frozen=True)
class PackageSpec:
    """One package to install.

    For SOURCE_CONTROL packages ``version`` holds the reference
    (``owner/repo@commit`` or ``owner/repo``) when it is known.
    """
    name: str
    version: Optional[str]
    origin: Origin

    @property
    def install_token(self) -> str:
        """String handed to the installer for this package."""
        if self.origin == Origin.SOURCE_CONTROL:
            return self.version or self.name
        return self.name


@dataclass(frozen=True)
class ResolutionOptions:
    """Options for one resolution run."""
    soft: bool = True
    offline: bool = False
    versioned_install: bool = False
    filter_by_base_image: bool = False
    filter_deps_by_image: bool = False
