"""System dependency resolution for a set of packages on one platform."""
from __future__ import annotations

import logging
from typing import Iterable, List, Mapping, Optional, Sequence, Set

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled
from errors import ConfigWarning, ResolutionSoftFailure, emit_warning
from sysreqs.mapping import SysreqsDatabase
from sysreqs.platforms import detect_platform
from sysreqs.strategies import (
    CranDescriptionStrategy,
    InstalledDescriptionStrategy,
    LookupRequest,
    LookupStrategy,
    PerPackageApiStrategy,
    SysreqsApiStrategy,
    first_success,
)

logger = logging.getLogger(__name__)


def _batches(names: Sequence[str], size: int) -> Iterable[List[str]]:
    size = max(1, size)
    for start in range(0, len(names), size):
        yield list(names[start:start + size])


class SystemDependencyResolver:
    """Resolves native system dependencies of packages.

    Online mode asks the sysreqs web service in batches and falls back to
    one request per package for a failed batch. Offline mode reads each
    package's DESCRIPTION, preferring the installed copy over CRAN.
    """

    def __init__(
        self,
        database: Optional[SysreqsDatabase] = None,
        api_url: Optional[str] = None,
        library_paths: Optional[Sequence[str]] = None,
        batch_size: Optional[int] = None,
    ):
        self._database = database
        self.api = SysreqsApiStrategy(api_url)
        self.library_paths = library_paths
        self.batch_size = batch_size or Constants.SYSREQS_BATCH_SIZE

    @property
    def database(self) -> SysreqsDatabase:
        if self._database is None:
            self._database = SysreqsDatabase.load()
        return self._database

    def online_strategies(self) -> List[LookupStrategy]:
        return [self.api, PerPackageApiStrategy(self.api)]

    def offline_strategies(self) -> List[LookupStrategy]:
        return [
            InstalledDescriptionStrategy(self.database, self.library_paths),
            CranDescriptionStrategy(self.database),
        ]

    def resolve(
        self,
        names: Iterable[str],
        versions: Optional[Mapping[str, Optional[str]]] = None,
        platform: Optional[str] = None,
        soft: bool = True,
        offline: bool = False,
        logger: logging.Logger = logger,
    ) -> Set[str]:
        """Return the union of system dependencies of ``names``, deduplicated."""
        ordered = sorted(set(names))
        versions = dict(versions or {})
        if not ordered:
            return set()

        method = "sysreq-package" if offline else "sysreq-api"
        logger.info("Going online? %s  ... to retrieve system dependencies (%s)", not offline, method)
        if platform is None:
            emit_warning(
                logger,
                ConfigWarning,
                "No platform given for system dependency lookup; results may be unreliable.",
            )
            if offline:
                platform = detect_platform()
                logger.warning(
                    "Platform could not be determined, possibly because of unknown base image. Using '%s'",
                    platform,
                )

        if offline:
            found = self._resolve_offline(ordered, versions, platform, soft, logger)
        else:
            found = self._resolve_online(ordered, platform, soft, logger)

        if is_debug_enabled(logger):
            logger.debug(
                "Found system dependencies",
                extra=extra_context(
                    event="function_exit",
                    component="sysreqs",
                    action="resolve",
                    platform=platform,
                    count=len(found),
                ),
            )
        return found

    def _resolve_online(self, names, platform, soft, logger) -> Set[str]:
        found: Set[str] = set()
        strategies = self.online_strategies()
        for batch in _batches(names, self.batch_size):
            request = LookupRequest(names=tuple(batch), platform=platform, soft=soft)
            result = first_success(strategies, request, logger=logger)
            if result.ok:
                found.update(result.dependencies)
            else:
                emit_warning(
                    logger,
                    ResolutionSoftFailure,
                    "Failed to determine system requirements for package(s) %s using sysreqs online API",
                    ", ".join(batch),
                )
        return found

    def _resolve_offline(self, names, versions, platform, soft, logger) -> Set[str]:
        found: Set[str] = set()
        strategies = self.offline_strategies()
        for name in names:
            request = LookupRequest(
                names=(name,),
                platform=platform,
                versions={name: versions.get(name)},
                soft=soft,
            )
            result = first_success(strategies, request, logger=logger)
            if result.ok:
                found.update(result.dependencies)
            else:
                emit_warning(
                    logger,
                    ResolutionSoftFailure,
                    "Could not get package DESCRIPTION for package '%s' on CRAN. "
                    "Failed to determine system requirements.",
                    name,
                )
        return found


def resolve(
    names: Iterable[str],
    versions: Optional[Mapping[str, Optional[str]]] = None,
    platform: Optional[str] = None,
    soft: bool = True,
    offline: bool = False,
    logger: logging.Logger = logger,
) -> Set[str]:
    """Resolve with a default-configured resolver."""
    return SystemDependencyResolver().resolve(
        names, versions=versions, platform=platform, soft=soft, offline=offline, logger=logger
    )
