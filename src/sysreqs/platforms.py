"""Platform identification and validation."""
from __future__ import annotations

import logging
import platform as _platform
from typing import Dict, Optional

from constants import Constants
from errors import ConfigWarning, emit_warning

logger = logging.getLogger(__name__)

OS_RELEASE_FILE = "/etc/os-release"

# Distribution families understood by the sysreqs mapping database.
_FAMILIES = {
    "debian": "debian",
    "ubuntu": "debian",
    "fedora": "fedora",
    "centos": "fedora",
    "rhel": "fedora",
}


def _read_os_release(path: str = OS_RELEASE_FILE) -> Dict[str, str]:
    values: Dict[str, str] = {}
    try:
        with open(path, "r", encoding="utf-8") as fh:
            for line in fh:
                key, sep, value = line.strip().partition("=")
                if sep:
                    values[key] = value.strip().strip('"')
    except OSError:
        return {}
    return values


def detect_platform(os_release_path: str = OS_RELEASE_FILE) -> Optional[str]:
    """Derive the platform id of the running machine, e.g. ``linux-x86_64-debian-gcc``."""
    system = _platform.system().lower()
    machine = _platform.machine().lower() or "x86_64"
    if machine == "amd64":
        machine = "x86_64"
    if system == "linux":
        distro = _read_os_release(os_release_path).get("ID", "").lower()
        if not distro:
            return None
        return f"linux-{machine}-{distro}-gcc"
    if system == "darwin":
        return f"osx-{machine}-clang"
    if system == "windows":
        return "windows-2008"
    return None


def is_debian_platform(platform: Optional[str]) -> bool:
    return platform in Constants.DEBIAN_PLATFORMS


def is_supported_platform(platform: Optional[str]) -> bool:
    return platform in Constants.SUPPORTED_PLATFORMS


def is_known_platform(platform: Optional[str]) -> bool:
    return platform in Constants.KNOWN_PLATFORMS


def platform_family(platform: Optional[str]) -> Optional[str]:
    """Map a platform id to its distribution family (``debian``, ``fedora``)."""
    if not platform:
        return None
    for part in platform.lower().split("-"):
        for prefix, family in _FAMILIES.items():
            if part.startswith(prefix):
                return family
    return None


def validate_platform(platform: Optional[str], logger: logging.Logger = logger) -> bool:
    """Warn about unknown or unsupported platforms.

    Returns:
        True when system dependency install commands can be generated.
    """
    if platform is None:
        emit_warning(logger, ConfigWarning, "Platform could not be detected, proceed at own risk.")
        return False
    if not is_known_platform(platform):
        logger.debug("Platform %s is not a known sysreqs platform id", platform)
    if not is_supported_platform(platform):
        emit_warning(
            logger,
            ConfigWarning,
            "The determined platform '%s' is currently not supported for handling system "
            "dependencies. Therefore, the created manifests might not work.",
            platform,
        )
        return False
    return True
