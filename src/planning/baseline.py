"""Skip what the base image already provides.

Two independent filters: registry packages found installed in the image by a
probe, and system dependencies listed for the image in a static table.
"""
from __future__ import annotations

import logging
import subprocess
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

import yaml

from constants import Constants
from manifest.instructions import Comment, Manifest
from planning.models import Origin, PackageSpec, ResolutionOptions

logger = logging.getLogger(__name__)

Probe = Callable[[str], Set[str]]

_LIST_PACKAGES_EXPR = 'cat(rownames(installed.packages()), sep = "\\n")'


class DockerImageProbe:
    """Lists the R packages installed in a container image.

    Runs ``docker run --rm <image> Rscript -e <expr>``; any failure yields an
    empty set so nothing is skipped.
    """

    def __init__(self, docker: Optional[str] = None, timeout: Optional[int] = None):
        self.docker = docker or Constants.DOCKER_EXEC
        self.timeout = timeout or Constants.PROBE_TIMEOUT

    def command(self, image: str) -> List[str]:
        return [self.docker, "run", "--rm", image, Constants.RSCRIPT_EXEC, "-e", _LIST_PACKAGES_EXPR]

    def __call__(self, image: str) -> Set[str]:
        try:
            result = subprocess.run(
                self.command(image),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            logger.warning("Could not list packages of image %s: %s", image, exc)
            return set()
        if result.returncode != 0:
            logger.warning(
                "Listing packages of image %s failed (exit %s): %s",
                image,
                result.returncode,
                (result.stderr or "").strip(),
            )
            return set()
        packages = {line.strip() for line in result.stdout.splitlines() if line.strip()}
        logger.debug("Detected %s packages in image %s", len(packages), image)
        return packages


def filter_preinstalled(
    pkgs: Iterable[PackageSpec],
    image: str,
    probe: Probe,
    options: ResolutionOptions,
    manifest: Optional[Manifest] = None,
    logger: logging.Logger = logger,
) -> Tuple[List[PackageSpec], Set[str]]:
    """Drop CRAN packages that the base image already has.

    Only applies to unversioned installs: a versioned install is always explicit.
    When packages are skipped, a comment listing them is appended to ``manifest``.

    Returns:
        (kept packages, skipped names)
    """
    pkgs = list(pkgs)
    if not options.filter_by_base_image or options.versioned_install:
        return pkgs, set()

    available = probe(image)
    registry_pkgs = [p for p in pkgs if p.origin == Origin.REGISTRY]
    skipped = {p.name for p in registry_pkgs if p.name in available}
    skipped_str = ", ".join(sorted(skipped))
    logger.info("Skipping packages for image %s (packages are unversioned): %s", image, skipped_str)

    if skipped and manifest is not None:
        manifest.append(
            Comment(text=f"CRAN packages skipped because they are in the base image: {skipped_str}")
        )

    kept = [p for p in registry_pkgs if p.name not in skipped]
    kept.extend(p for p in pkgs if p.origin != Origin.REGISTRY)
    return kept, skipped


def load_skippable_table(path: Optional[str] = None) -> Dict[str, List[str]]:
    """Load the image name → preinstalled system packages table."""
    path = path or Constants.BASEIMAGE_DEPS_FILE
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    table = data.get("baseimage_deps") or {}
    return {str(image): [str(dep) for dep in deps or []] for image, deps in table.items()}


def skippable_deps(image: str, table: Optional[Dict[str, List[str]]] = None) -> Set[str]:
    """System packages known to be installed in ``image`` (matched by name substring)."""
    table = load_skippable_table() if table is None else table
    found: Set[str] = set()
    for key in sorted(table):
        if key in image:
            found.update(table[key])
    return found


def filter_system_deps(
    deps: Iterable[str],
    image: str,
    table: Optional[Dict[str, List[str]]] = None,
    logger: logging.Logger = logger,
) -> Set[str]:
    """Remove system dependencies that the base image is known to provide."""
    skippable = skippable_deps(image, table)
    logger.info("Skipping deps for image %s: %s", image, ", ".join(sorted(skippable)))
    return {dep for dep in deps if dep not in skippable}
