#! /usr/bin/env python3
"""depdock: Dockerfile install instructions for R packages.

Reads a package list (name, version, source), resolves the native system
dependencies of the packages and writes a Dockerfile that installs both.
"""

import logging
import sys
import warnings

from args import parse_args
from cli_config import apply_config_overrides
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import ExitCodes, _load_yaml_config
from errors import DepdockWarning, FatalInputError, RepositoryDiscoveryError
from manifest import Manifest, render_dockerfile, write_dockerfile
from planning.inputs import attach_references, load_package_list, load_session_metadata
from planning.models import ResolutionOptions
from planning.pipeline import add_install_instructions
from repository.github_ref import SessionInfoIntrospector
from sysreqs.platforms import detect_platform

logger = logging.getLogger(__name__)


def options_from_args(args) -> ResolutionOptions:
    """Translate parsed CLI flags into ResolutionOptions."""
    return ResolutionOptions(
        soft=not args.STRICT,
        offline=args.OFFLINE,
        versioned_install=args.VERSIONED,
        filter_by_base_image=args.FILTER_BASEIMAGE_PKGS,
        filter_deps_by_image=args.FILTER_DEPS_BY_IMAGE,
    )


def choose_platform(args):
    """Platform from --detect-platform, else --platform."""
    if args.DETECT_PLATFORM:
        detected = detect_platform()
        logger.info("Detected platform: %s", detected)
        return detected
    return args.PLATFORM


def build_manifest(args) -> Manifest:
    """Run the whole pipeline for parsed CLI arguments.

    Raises:
        FatalInputError: If the package list or session metadata is invalid.
    """
    pkgs = load_package_list(args.PACKAGES)
    session_metadata = None
    if args.SESSION_INFO:
        session_metadata = load_session_metadata(args.SESSION_INFO)
    pkgs = attach_references(pkgs, session_metadata, SessionInfoIntrospector())

    manifest = Manifest(image=args.IMAGE)
    return add_install_instructions(manifest, pkgs, choose_platform(args), options_from_args(args))


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL, args.LOG_FILE)

    config = _load_yaml_config(args.CONFIG)
    apply_config_overrides(config)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main"),
        )
    logger.info("Arguments parsed.")

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", DepdockWarning)
        try:
            manifest = build_manifest(args)
        except FatalInputError as exc:
            logger.error("%s", exc)
            sys.exit(ExitCodes.FILE_ERROR.value)
        except RepositoryDiscoveryError as exc:
            logger.error("Bioconductor repository discovery failed: %s", exc)
            sys.exit(ExitCodes.CONNECTION_ERROR.value)

    if args.OUTPUT:
        try:
            write_dockerfile(manifest, args.OUTPUT)
        except OSError as exc:
            logger.error("Could not write Dockerfile to %s: %s", args.OUTPUT, exc)
            sys.exit(ExitCodes.FILE_ERROR.value)
    else:
        sys.stdout.write(render_dockerfile(manifest))

    reported = [w for w in caught if issubclass(w.category, DepdockWarning)]
    if is_debug_enabled(logger):
        logger.debug(
            "CLI finished",
            extra=extra_context(
                event="function_exit",
                component="cli",
                action="main",
                outcome="warnings" if reported else "success",
                count=len(reported),
            ),
        )
    if args.ERROR_ON_WARNINGS and reported:
        logger.warning("%s warning(s) reported; exiting with status %s",
                       len(reported), ExitCodes.EXIT_WARNINGS.value)
        sys.exit(ExitCodes.EXIT_WARNINGS.value)
    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
