"""Tests for base image filtering."""

import subprocess
from unittest.mock import MagicMock, patch

from manifest.instructions import Comment, Manifest
from planning.baseline import (
    DockerImageProbe,
    filter_preinstalled,
    filter_system_deps,
    load_skippable_table,
    skippable_deps,
)
from planning.models import Origin, PackageSpec, ResolutionOptions

FILTER = ResolutionOptions(filter_by_base_image=True)


def _pkgs():
    return [
        PackageSpec("dplyr", None, Origin.REGISTRY),
        PackageSpec("rlang", None, Origin.REGISTRY),
        PackageSpec("Biobase", None, Origin.ALT_REGISTRY),
    ]


class TestFilterPreinstalled:
    """Test skipping CRAN packages already in the image."""

    def test_skips_installed_cran_packages_and_comments(self):
        manifest = Manifest(image="rocker/tidyverse")
        probe = MagicMock(return_value={"dplyr", "Biobase", "ggplot2"})

        kept, skipped = filter_preinstalled(_pkgs(), manifest.image, probe, FILTER, manifest=manifest)

        probe.assert_called_once_with("rocker/tidyverse")
        assert skipped == {"dplyr"}
        assert [p.name for p in kept] == ["rlang", "Biobase"]
        assert manifest.instructions == (
            Comment("CRAN packages skipped because they are in the base image: dplyr"),
        )

    def test_noop_when_versioned(self):
        probe = MagicMock(return_value={"dplyr"})
        options = ResolutionOptions(filter_by_base_image=True, versioned_install=True)

        kept, skipped = filter_preinstalled(_pkgs(), "rocker/r-ver", probe, options)

        probe.assert_not_called()
        assert kept == _pkgs()
        assert skipped == set()

    def test_no_comment_when_nothing_skipped(self):
        manifest = Manifest(image="rocker/r-ver")

        filter_preinstalled(_pkgs(), manifest.image, MagicMock(return_value=set()), FILTER, manifest=manifest)

        assert len(manifest) == 0


class TestDockerImageProbe:
    """Test the docker based package probe."""

    @patch("planning.baseline.subprocess.run")
    def test_lists_packages(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="base\ndplyr\n\n", stderr="")

        assert DockerImageProbe(docker="podman")("rocker/r-ver") == {"base", "dplyr"}
        assert mock_run.call_args[0][0][:4] == ["podman", "run", "--rm", "rocker/r-ver"]

    @patch("planning.baseline.subprocess.run")
    def test_failure_yields_empty_set(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="docker", timeout=1)

        assert DockerImageProbe()("rocker/r-ver") == set()

    @patch("planning.baseline.subprocess.run")
    def test_non_zero_exit_yields_empty_set(self, mock_run):
        mock_run.return_value = MagicMock(returncode=125, stdout="", stderr="no such image")

        assert DockerImageProbe()("missing/image") == set()


class TestSkippableDeps:
    """Test the static base image system package table."""

    TABLE = {"rocker/tidyverse": ["libxml2-dev", "libssl-dev"], "rocker/geospatial": ["libgdal-dev"]}

    def test_substring_match(self):
        assert skippable_deps("rocker/tidyverse:4.4.1", self.TABLE) == {"libxml2-dev", "libssl-dev"}
        assert skippable_deps("rocker/r-ver", self.TABLE) == set()

    def test_filter_system_deps(self):
        deps = {"libxml2-dev", "libgdal-dev", "libproj-dev"}

        assert filter_system_deps(deps, "rocker/tidyverse", self.TABLE) == {"libgdal-dev", "libproj-dev"}

    def test_shipped_table_loads(self):
        table = load_skippable_table()

        assert "libxml2-dev" in table["rocker/tidyverse"]
