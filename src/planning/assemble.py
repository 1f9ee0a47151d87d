"""Assemble the ordered install instructions.

The order is fixed: system dependencies, the 'versions' helper, CRAN,
Bioconductor, GitHub. Names, references and system packages are sorted so
that the same input always yields the same instructions.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, Sequence

from constants import Constants
from errors import ConfigWarning, RepositoryDiscoveryError, emit_warning
from manifest.instructions import Instruction, Run, ShellBlock
from planning.classify import partition
from planning.models import PackageSpec, ResolutionOptions
from sysreqs.platforms import is_debian_platform

logger = logging.getLogger(__name__)

RepositoryDiscovery = Callable[[], Sequence[str]]


def system_dependency_instructions(
    deps: Iterable[str],
    platform: Optional[str],
    logger: logging.Logger = logger,
) -> List[Instruction]:
    """apt-get setup and one batched install, for Debian only."""
    package_reqs = sorted(set(deps))
    if not package_reqs:
        logger.debug("No system requirements found that must be installed")
        return []
    if not is_debian_platform(platform):
        emit_warning(
            logger,
            ConfigWarning,
            "Platform %s not supported, cannot add installation commands for system requirements.",
            platform,
        )
        return []
    install_command = Constants.APT_INSTALL_COMMAND + " " + " \\\n\t".join(package_reqs)
    return [ShellBlock(commands=[Constants.APT_SETUP_COMMAND, install_command])]


def versioned_install_instructions(
    pkgs: Sequence[PackageSpec],
    logger: logging.Logger = logger,
) -> List[Instruction]:
    """Pinned installs through the 'versions' package.

    Packages without version information are installed unpinned, and that
    instruction comes first.
    """
    pkgs_sorted = sorted(pkgs, key=lambda p: p.name)
    params: List[str] = []
    for pkg in pkgs_sorted:
        if pkg.version is not None:
            params.extend(["-e", f"versions::install.versions('{pkg.name}', '{pkg.version}')"])

    instructions: List[Instruction] = []
    unversioned = [p.name for p in pkgs_sorted if p.version is None]
    if unversioned:
        logger.warning("No version information found for packages: %s", ", ".join(unversioned))
        instructions.append(Run(Constants.INSTALL_EXEC, unversioned))
    if params:
        instructions.append(Run(Constants.RSCRIPT_EXEC, params))
    return instructions


def assemble(
    pkgs: Sequence[PackageSpec],
    system_deps: Iterable[str],
    options: ResolutionOptions,
    platform: Optional[str],
    discovery: Optional[RepositoryDiscovery] = None,
    logger: logging.Logger = logger,
) -> List[Instruction]:
    """Build the ordered instruction list for the planned packages.

    Raises:
        RepositoryDiscoveryError: If Bioconductor packages are present and
            ``discovery`` does not yield exactly four repositories.
    """
    groups = partition(pkgs)
    instructions: List[Instruction] = []

    # 1. system dependencies
    instructions.extend(system_dependency_instructions(system_deps, platform, logger=logger))

    # 2. the versioning helper itself
    if options.versioned_install:
        logger.info("Versioned packages enabled, installing '%s'", Constants.VERSIONS_PACKAGE)
        instructions.append(Run(Constants.INSTALL_EXEC, [Constants.VERSIONS_PACKAGE]))

    # 3. CRAN
    if groups.registry:
        if options.versioned_install:
            logger.info("Adding versioned CRAN packages: %s", ", ".join(p.name for p in groups.registry))
            instructions.extend(versioned_install_instructions(groups.registry, logger=logger))
        else:
            cran_packages = sorted(p.name for p in groups.registry)
            logger.info("Adding CRAN packages: %s", ", ".join(cran_packages))
            instructions.append(Run(Constants.INSTALL_EXEC, cran_packages))
    else:
        logger.debug("No CRAN packages to add.")

    # 4. Bioconductor
    if groups.alt_registry:
        bioc_packages = sorted(p.name for p in groups.alt_registry)
        if options.versioned_install:
            logger.warning("Adding versioned Bioconductor packages not supported: %s", ", ".join(bioc_packages))
        if discovery is None:
            raise RepositoryDiscoveryError("Bioconductor packages require a repository discovery")
        repos = list(discovery())
        if len(repos) != 4:
            raise RepositoryDiscoveryError(f"Expected 4 Bioconductor repositories, got {len(repos)}")
        logger.info("Adding Bioconductor packages: %s", ", ".join(bioc_packages))
        params: List[str] = []
        for repo in repos:
            params.extend(["-r", repo])
        instructions.append(Run(Constants.INSTALL_EXEC, params + bioc_packages))
    else:
        logger.debug("No Bioconductor packages to add.")

    # 5. GitHub
    if groups.source_control:
        github_packages = sorted(p.install_token for p in groups.source_control)
        logger.info("Adding GitHub packages: %s", ", ".join(github_packages))
        instructions.append(Run(Constants.INSTALL_GITHUB_EXEC, github_packages))

    return instructions
