"""Constants used in the project."""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    CONNECTION_ERROR = 2
    FILE_ERROR = 1
    EXIT_WARNINGS = 3


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    SYSREQS_API_URL = "https://sysreqs.r-hub.io/pkg/"
    SYSREQS_BATCH_SIZE = 50
    CRAN_DESCRIPTION_URL = "https://CRAN.R-project.org/package={package}/DESCRIPTION"
    BIOC_CONFIG_URL = "https://bioconductor.org/config.yaml"
    BIOC_BASE_URL = "https://bioconductor.org/packages/"
    BIOC_FALLBACK_VERSION = "3.20"

    DEBIAN_PLATFORM = "linux-x86_64-debian-gcc"
    DEBIAN_PLATFORMS = ["linux-x86_64-debian-gcc", "linux-x86_64-debian"]
    SUPPORTED_PLATFORMS = DEBIAN_PLATFORMS
    KNOWN_PLATFORMS = [
        "linux-x86_64-debian-gcc",
        "linux-x86_64-debian",
        "linux-x86_64-ubuntu-gcc",
        "linux-x86_64-fedora-gcc",
        "linux-x86_64-centos6-epel",
        "osx-x86_64-clang",
        "windows-2008",
    ]

    REMOTES_PACKAGE = "remotes"
    REMOTES_VERSION = "1.1.1"
    VERSIONS_PACKAGE = "versions"
    INSTALL_EXEC = "install2.r"
    INSTALL_GITHUB_EXEC = "installGithub.r"
    RSCRIPT_EXEC = "Rscript"
    APT_SETUP_COMMAND = "export DEBIAN_FRONTEND=noninteractive; apt-get -y update"
    APT_INSTALL_COMMAND = "apt-get install -y"

    R_LIBRARY_PATHS = [
        "/usr/local/lib/R/site-library",
        "/usr/lib/R/site-library",
        "/usr/lib/R/library",
        "/usr/local/lib/R/library",
    ]
    DOCKER_EXEC = "docker"
    PROBE_TIMEOUT = 300

    DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "sysreqs", "data")
    SYSREQS_DB_FILE = os.path.join(DATA_DIR, "sysreqs.yml")
    BASEIMAGE_DEPS_FILE = os.path.join(DATA_DIR, "baseimage_deps.yml")

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_LEVEL_ENV = "DEPDOCK_LOG_LEVEL"
    CONFIG_ENV = "DEPDOCK_CONFIG"
    CONFIG_FILE_NAMES = ["depdock.yml", "depdock.yaml"]
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    USER_AGENT = "depdock/0.3"


def _config_candidates() -> list:
    """Return the default config file locations, most specific first."""
    paths = []
    env_path = os.environ.get(Constants.CONFIG_ENV)
    if env_path:
        paths.append(env_path)
    for name in Constants.CONFIG_FILE_NAMES:
        paths.append(os.path.join(os.getcwd(), name))
    home = os.path.expanduser("~")
    for name in Constants.CONFIG_FILE_NAMES:
        paths.append(os.path.join(home, ".config", "depdock", name))
    return paths


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the YAML configuration file.

    An explicit path must exist and be valid YAML; otherwise the first
    existing default location is used. Missing default files yield {}.
    """
    import yaml  # pylint: disable=import-outside-toplevel

    candidates = [path] if path else _config_candidates()
    for candidate in candidates:
        if not candidate or not os.path.isfile(candidate):
            if path:
                logger.warning("Config file not found: %s", path)
            continue
        try:
            with open(candidate, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Failed to load config %s: %s", candidate, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring config %s: top level is not a mapping", candidate)
            return {}
        logger.debug("Loaded configuration from %s", candidate)
        return data
    return {}
