"""End-to-end planning: from a package list to manifest instructions."""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from common.logging_utils import extra_context, is_debug_enabled
from manifest.instructions import Manifest
from planning.assemble import RepositoryDiscovery, assemble
from planning.baseline import DockerImageProbe, Probe, filter_preinstalled, filter_system_deps
from planning.classify import plan
from planning.models import R_PACKAGE_NAME, Origin, PackageSpec, ResolutionOptions
from registry.bioconductor import RepositoryDiscovery as BiocRepositoryDiscovery
from sysreqs.platforms import validate_platform
from sysreqs.resolver import SystemDependencyResolver

logger = logging.getLogger(__name__)


def _lookup_names(pkgs: Sequence[PackageSpec], logger: logging.Logger) -> List[str]:
    names = []
    for p in pkgs:
        if R_PACKAGE_NAME.match(p.name):
            names.append(p.name)
        else:
            logger.debug("Not looking up system requirements for %s: not a package name", p.name)
    return names


def _lookup_versions(pkgs: Sequence[PackageSpec]) -> Dict[str, Optional[str]]:
    """Requested versions for the DESCRIPTION lookup; GitHub references are not versions."""
    return {
        p.name: (None if p.origin == Origin.SOURCE_CONTROL else p.version)
        for p in pkgs
    }


def add_install_instructions(
    manifest: Manifest,
    pkgs: Optional[Sequence[PackageSpec]],
    platform: Optional[str],
    options: ResolutionOptions,
    *,
    probe: Optional[Probe] = None,
    resolver: Optional[SystemDependencyResolver] = None,
    discovery: Optional[RepositoryDiscovery] = None,
    skippable_table: Optional[Dict[str, List[str]]] = None,
    logger: logging.Logger = logger,
) -> Manifest:
    """Append install instructions for ``pkgs`` to ``manifest`` and return it."""
    if not pkgs:
        logger.debug("Input packages is %s - not adding any install instructions", pkgs)
        return manifest

    # 0. packages already in the base image
    work: List[PackageSpec] = list(pkgs)
    if options.filter_by_base_image and not options.versioned_install:
        work, _ = filter_preinstalled(
            work,
            manifest.image,
            probe or DockerImageProbe(),
            options,
            manifest=manifest,
            logger=logger,
        )

    # 0. prerequisites and platform checks
    work = plan(work, logger=logger)
    validate_platform(platform, logger=logger)

    if not work:
        logger.debug("No packages found that must be installed")
        return manifest

    # 1. system dependencies
    system_deps = set()
    if platform is None:
        logger.info("Skipping system dependency resolution: platform is unknown")
    else:
        resolver = resolver or SystemDependencyResolver()
        system_deps = resolver.resolve(
            _lookup_names(work, logger),
            versions=_lookup_versions(work),
            platform=platform,
            soft=options.soft,
            offline=options.offline,
            logger=logger,
        )
        if options.filter_deps_by_image:
            system_deps = filter_system_deps(system_deps, manifest.image, skippable_table, logger=logger)

    instructions = assemble(
        work,
        system_deps,
        options,
        platform,
        discovery=discovery or BiocRepositoryDiscovery(),
        logger=logger,
    )
    for instruction in instructions:
        manifest.append(instruction)

    if is_debug_enabled(logger):
        logger.debug(
            "Install instructions added",
            extra=extra_context(
                event="function_exit",
                component="pipeline",
                action="add_install_instructions",
                platform=platform,
                count=len(instructions),
            ),
        )
    return manifest
