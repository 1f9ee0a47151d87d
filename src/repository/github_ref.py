"""Exact GitHub references (owner/repo@commit) of installed packages.

References come from session metadata first (the DESCRIPTION fields that
remotes/devtools write at install time) and, failing that, from the
``source`` column reported by sessioninfo for the installed package.
"""
from __future__ import annotations

import logging
import re
import subprocess
from typing import Callable, Mapping, Optional, Sequence

from constants import Constants
from errors import ReferenceMissing, emit_warning

logger = logging.getLogger(__name__)

SessionMetadata = Mapping[str, Mapping[str, str]]
Introspector = Callable[[str], Optional[str]]

_FIELD_CANDIDATES = {
    "repo": ("GithubRepo", "RemoteRepo"),
    "user": ("GithubUsername", "RemoteUsername"),
    "sha": ("GithubSHA1", "RemoteSha"),
}

_SOURCE_PATTERN = re.compile(r"^GitHub \((?P<ref>[^()\s]+/[^()\s]+(?:@[^()\s]+|#[^()\s]+))\)$", re.IGNORECASE)


def _first_field(fields: Mapping[str, str], names: Sequence[str]) -> Optional[str]:
    for name in names:
        value = fields.get(name)
        if value:
            return str(value)
    return None


def reference_from_metadata(package: str, session_metadata: SessionMetadata) -> Optional[str]:
    """Build ``user/repo@sha`` from session metadata; None if any part is missing."""
    fields = session_metadata.get(package) or {}
    repo = _first_field(fields, _FIELD_CANDIDATES["repo"])
    user = _first_field(fields, _FIELD_CANDIDATES["user"])
    sha = _first_field(fields, _FIELD_CANDIDATES["sha"])
    if not (repo and user and sha):
        logger.warning(
            "Exact reference of GitHub package %s could not be determined from session info: %s %s %s",
            package,
            repo,
            user,
            sha,
        )
        return None
    return f"{user}/{repo}@{sha}"


def parse_source_reference(source: Optional[str]) -> Optional[str]:
    """Extract the reference from a source string like ``GitHub (r-hub/sysreqs@481d263)``."""
    if not source:
        return None
    match = _SOURCE_PATTERN.match(source.strip())
    if not match:
        return None
    return match.group("ref")


class SessionInfoIntrospector:
    """Reports an installed package's source via ``sessioninfo::package_info``."""

    def __init__(self, rscript: Optional[str] = None, timeout: int = 60):
        self.rscript = rscript or Constants.RSCRIPT_EXEC
        self.timeout = timeout

    def command(self, package: str) -> list:
        expr = (
            f"cat(sessioninfo::package_info('{package}', dependencies = FALSE)"
            f"$source[1])"
        )
        return [self.rscript, "-e", expr]

    def __call__(self, package: str) -> Optional[str]:
        try:
            result = subprocess.run(
                self.command(package),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            logger.debug("sessioninfo introspection failed for %s: %s", package, exc)
            return None
        if result.returncode != 0:
            logger.debug("sessioninfo introspection for %s exited with %s", package, result.returncode)
            return None
        return result.stdout.strip() or None


def resolve_reference(
    package: str,
    session_metadata: Optional[SessionMetadata] = None,
    introspector: Optional[Introspector] = None,
    logger: logging.Logger = logger,
) -> Optional[str]:
    """Return the exact GitHub reference of ``package``, or None.

    A missing reference is not an error: the caller keeps whatever
    identifying string it has.
    """
    ref = reference_from_metadata(package, session_metadata or {})
    if ref is not None:
        return ref

    source = introspector(package) if introspector is not None else None
    logger.debug("Looking for references with sessioninfo for package %s: %s", package, source)
    ref = parse_source_reference(source)
    if ref is not None:
        logger.debug("GitHub reference for %s found with sessioninfo: %s", package, ref)
        return ref

    emit_warning(
        logger,
        ReferenceMissing,
        "GitHub reference of package %s is unknown and could not be determined locally.",
        package,
    )
    return None
