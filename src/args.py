"""Argument parsing functionality for depdock."""

import argparse
from constants import Constants


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="depdock",
        description=(
            "depdock - Dockerfile install instructions for R packages and their system dependencies"
        ),
        add_help=True,
    )

    parser.add_argument("-p", "--packages",
                        dest="PACKAGES",
                        help="Package list file (CSV, JSON or YAML) with columns name, version, source",
                        action="store", type=str,
                        required=True)
    parser.add_argument("-i", "--image",
                        dest="IMAGE",
                        help="Base image of the generated Dockerfile (default: rocker/r-ver)",
                        action="store", type=str,
                        default="rocker/r-ver")
    parser.add_argument("--platform",
                        dest="PLATFORM",
                        help=f"Target platform id (default: {Constants.DEBIAN_PLATFORM})",
                        action="store", type=str,
                        default=Constants.DEBIAN_PLATFORM)
    parser.add_argument("--detect-platform",
                        dest="DETECT_PLATFORM",
                        help="Use the platform of this machine instead of --platform.",
                        action="store_true")
    parser.add_argument("--session-info",
                        dest="SESSION_INFO",
                        help="JSON/YAML file with DESCRIPTION fields per package, used for GitHub references",
                        action="store", type=str)

    parser.add_argument("--offline",
                        dest="OFFLINE",
                        help="Read DESCRIPTION files instead of querying the sysreqs web service.",
                        action="store_true")
    parser.add_argument("--strict",
                        dest="STRICT",
                        help="Report unmapped system requirements as warnings.",
                        action="store_true")
    parser.add_argument("--versioned",
                        dest="VERSIONED",
                        help="Install the exact package versions using the 'versions' package.",
                        action="store_true")
    parser.add_argument("--filter-baseimage-pkgs",
                        dest="FILTER_BASEIMAGE_PKGS",
                        help="Skip CRAN packages that are already installed in the base image.",
                        action="store_true")
    parser.add_argument("--filter-deps-by-image",
                        dest="FILTER_DEPS_BY_IMAGE",
                        help="Skip system packages known to be installed in the base image.",
                        action="store_true")

    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to the Dockerfile to write (default: stdout)",
                        action="store",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML)",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=None)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("--error-on-warnings",
                        dest="ERROR_ON_WARNINGS",
                        help="Exit with a non-zero status code if warnings are present.",
                        action="store_true")

    return parser.parse_args(argv)
