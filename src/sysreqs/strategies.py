"""System dependency lookup strategies.

Every strategy answers a ``LookupRequest`` with a ``LookupResult``; failures
are results, never exceptions. The resolver tries strategies in order and
keeps the first success.
"""
from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from errors import ResolutionSoftFailure, emit_warning
from registry.cran.description import read_description
from sysreqs.mapping import SysreqsDatabase

import sysreqs as sysreqs_pkg

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LookupRequest:
    """Input shared by all strategies."""
    names: Tuple[str, ...]
    platform: Optional[str]
    versions: Mapping[str, Optional[str]] = field(default_factory=dict)
    soft: bool = True


@dataclass(frozen=True)
class LookupResult:
    """Outcome of one strategy: success with dependency tokens, or a soft failure."""
    ok: bool
    dependencies: FrozenSet[str] = frozenset()
    reason: Optional[str] = None

    @classmethod
    def success(cls, dependencies: Iterable[str]) -> "LookupResult":
        return cls(ok=True, dependencies=frozenset(dependencies))

    @classmethod
    def failure(cls, reason: str) -> "LookupResult":
        return cls(ok=False, reason=reason)


def split_tokens(values: Iterable[str]) -> Set[str]:
    """Split multi-token strings ("libxml2-dev libssl-dev") on whitespace."""
    tokens: Set[str] = set()
    for value in values:
        tokens.update(value.split())
    return tokens


def _flatten_response(payload: Any) -> List[str]:
    """Collect dependency strings from a sysreqs API payload of any nesting."""
    if payload is None:
        return []
    if isinstance(payload, str):
        return [] if payload in ("", "NULL") else [payload]
    if isinstance(payload, dict):
        out: List[str] = []
        for key in sorted(payload):
            out.extend(_flatten_response(payload[key]))
        return out
    if isinstance(payload, (list, tuple)):
        out = []
        for item in payload:
            out.extend(_flatten_response(item))
        return out
    raise ValueError(f"Unexpected element in sysreqs response: {payload!r}")


class LookupStrategy:
    """Base class for lookup strategies."""

    name = "strategy"

    def lookup(self, request: LookupRequest, logger: logging.Logger = logger) -> LookupResult:
        raise NotImplementedError


class SysreqsApiStrategy(LookupStrategy):
    """One request to the sysreqs web service for all requested names."""

    name = "sysreqs-api"

    def __init__(self, url: Optional[str] = None):
        self.url = url or Constants.SYSREQS_API_URL

    def build_url(self, names: Sequence[str], platform: Optional[str]) -> str:
        return f"{self.url.rstrip('/')}/{','.join(names)}/{platform or ''}"

    def lookup(self, request: LookupRequest, logger: logging.Logger = logger) -> LookupResult:
        fullurl = self.build_url(request.names, request.platform)
        logger.info(
            "Trying to determine system requirements for the package(s) '%s' from sysreqs online DB",
            ",".join(request.names),
        )
        with Timer() as timer:
            status, payload = sysreqs_pkg.get_json(fullurl, context="sysreqs")
        if payload is None:
            logger.debug(
                "Error requesting package info from sysreqs online DB",
                extra=extra_context(
                    event="http_response",
                    component="sysreqs_api",
                    outcome="failure",
                    status_code=status,
                    duration_ms=timer.duration_ms(),
                    target=safe_url(fullurl),
                ),
            )
            return LookupResult.failure(f"sysreqs API request failed (status {status})")
        try:
            values = _flatten_response(payload)
        except ValueError as exc:
            return LookupResult.failure(str(exc))
        if is_debug_enabled(logger):
            logger.debug("Dependencies info from sysreqs online DB: %s", ", ".join(values))
        return LookupResult.success(split_tokens(values))


class PerPackageApiStrategy(LookupStrategy):
    """One sysreqs web service request per name.

    Succeeds when at least one name could be looked up; names that still fail
    are then reported individually. When every name fails, nothing is reported
    here and the caller reports the whole request once.
    """

    name = "sysreqs-api-per-package"

    def __init__(self, api: Optional[SysreqsApiStrategy] = None):
        self.api = api or SysreqsApiStrategy()

    def lookup(self, request: LookupRequest, logger: logging.Logger = logger) -> LookupResult:
        found: Set[str] = set()
        failed: List[str] = []
        for name in request.names:
            single = LookupRequest(names=(name,), platform=request.platform, soft=request.soft)
            result = self.api.lookup(single, logger=logger)
            if result.ok:
                found.update(result.dependencies)
            else:
                failed.append(name)
        if len(failed) == len(request.names):
            return LookupResult.failure(f"no sysreqs API results for {', '.join(failed)}")
        for name in failed:
            emit_warning(
                logger,
                ResolutionSoftFailure,
                "Failed to determine system requirements for package '%s' using sysreqs online API",
                name,
            )
        return LookupResult.success(found)


@contextlib.contextmanager
def _scratch_file(suffix: str = "-DESCRIPTION") -> Iterator[str]:
    """Yield a temporary file path that is removed on every exit path."""
    fd, path = tempfile.mkstemp(prefix="depdock-", suffix=suffix)
    os.close(fd)
    try:
        yield path
    finally:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(path)


class InstalledDescriptionStrategy(LookupStrategy):
    """Read SystemRequirements from the locally installed package, if versions match."""

    name = "installed-description"

    def __init__(self, database: SysreqsDatabase, library_paths: Optional[Sequence[str]] = None):
        self.database = database
        self.library_paths = library_paths

    def lookup(self, request: LookupRequest, logger: logging.Logger = logger) -> LookupResult:
        (name,) = request.names
        wanted = request.versions.get(name)
        logger.info(
            "Trying to determine system requirements for package '%s' from the local DESCRIPTION file",
            name,
        )
        paths = self.library_paths if self.library_paths is not None else sysreqs_pkg.library_paths()
        installed = sysreqs_pkg.find_installed(name, paths)
        if installed is None or (wanted is not None and installed.version != wanted):
            logger.warning(
                "No matching package DESCRIPTION found locally for package '%s', version '%s'.",
                name,
                wanted,
            )
            return LookupResult.failure("not installed locally in the requested version")
        try:
            fields = read_description(installed.description_path)
        except (OSError, ValueError) as exc:
            return LookupResult.failure(f"unreadable DESCRIPTION: {exc}")
        found, _ = self.database.lookup(
            fields.get("SystemRequirements"), request.platform, request.soft, package=name, logger=logger
        )
        return LookupResult.success(found)


class CranDescriptionStrategy(LookupStrategy):
    """Download the DESCRIPTION from CRAN into a scratch file and read it."""

    name = "cran-description"

    def __init__(self, database: SysreqsDatabase):
        self.database = database

    def lookup(self, request: LookupRequest, logger: logging.Logger = logger) -> LookupResult:
        (name,) = request.names
        with _scratch_file() as path:
            text = sysreqs_pkg.fetch_description(name)
            if text is None:
                return LookupResult.failure("DESCRIPTION not available from CRAN")
            try:
                with open(path, "w", encoding="utf-8") as fh:
                    fh.write(text)
                fields = read_description(path)
            except (OSError, ValueError) as exc:
                logger.debug("Error reading DESCRIPTION file from CRAN for %s: %s", name, exc)
                return LookupResult.failure(f"unparseable DESCRIPTION: {exc}")
        found, _ = self.database.lookup(
            fields.get("SystemRequirements"), request.platform, request.soft, package=name, logger=logger
        )
        return LookupResult.success(found)


def first_success(
    strategies: Sequence[LookupStrategy],
    request: LookupRequest,
    logger: logging.Logger = logger,
) -> LookupResult:
    """Run strategies in order and return the first successful result."""
    result = LookupResult.failure("no strategies configured")
    for strategy in strategies:
        result = strategy.lookup(request, logger=logger)
        if result.ok:
            if is_debug_enabled(logger):
                logger.debug(
                    "Lookup succeeded",
                    extra=extra_context(
                        event="decision",
                        component="sysreqs",
                        action=strategy.name,
                        outcome="success",
                        count=len(result.dependencies),
                    ),
                )
            return result
        logger.debug("Strategy %s failed for %s: %s", strategy.name, ", ".join(request.names), result.reason)
    return result
