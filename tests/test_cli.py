"""Tests for CLI argument parsing, configuration overrides and the entrypoint."""

import warnings
from unittest.mock import patch

import pytest

import depdock
from args import parse_args
from cli_config import apply_config_overrides, config_errors
from constants import Constants, ExitCodes, _load_yaml_config
from errors import RepositoryDiscoveryError, ResolutionSoftFailure
from manifest import Run


@pytest.fixture
def package_list(tmp_path):
    path = tmp_path / "packages.csv"
    path.write_text("name,version,source\ndplyr,1.1.4,CRAN\n", encoding="utf-8")
    return str(path)


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """No config files from the developer machine."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv(Constants.CONFIG_ENV, raising=False)
    for attr in ("SYSREQS_API_URL", "SYSREQS_BATCH_SIZE", "R_LIBRARY_PATHS", "REQUEST_TIMEOUT"):
        monkeypatch.setattr(Constants, attr, getattr(Constants, attr))


class TestParseArgs:
    """Test CLI flags."""

    def test_defaults(self):
        ns = parse_args(["-p", "packages.csv"])

        assert ns.PACKAGES == "packages.csv"
        assert ns.IMAGE == "rocker/r-ver"
        assert ns.PLATFORM == Constants.DEBIAN_PLATFORM
        assert not ns.OFFLINE and not ns.STRICT and not ns.VERSIONED
        assert ns.LOG_LEVEL is None

    def test_options_from_args(self):
        ns = parse_args(["-p", "x.csv", "--offline", "--strict", "--versioned", "--filter-baseimage-pkgs"])

        options = depdock.options_from_args(ns)

        assert options.offline and options.versioned_install and options.filter_by_base_image
        assert options.soft is False
        assert options.filter_deps_by_image is False

    def test_packages_required(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestConfig:
    """Test YAML configuration loading and overrides."""

    def test_overrides(self, isolated_config):
        apply_config_overrides({
            "sysreqs_api_url": "https://mirror.example/pkg/",
            "sysreqs_batch_size": 10,
            "library_paths": "/opt/R/library",
            "unknown_key": True,
        })

        assert Constants.SYSREQS_API_URL == "https://mirror.example/pkg/"
        assert Constants.SYSREQS_BATCH_SIZE == 10
        assert Constants.R_LIBRARY_PATHS == ["/opt/R/library"]

    def test_invalid_value_is_skipped(self, isolated_config):
        before = Constants.REQUEST_TIMEOUT

        apply_config_overrides({"request_timeout": "soon"})

        assert Constants.REQUEST_TIMEOUT == before

    def test_config_errors(self):
        errors = config_errors({
            "sysreqs_batch_size": 0,
            "cran_description_url": "https://cran.example/DESCRIPTION",
            "library_paths": ["/opt/R/library"],
        })

        assert set(errors) == {"sysreqs_batch_size", "cran_description_url"}

    def test_load_yaml_config_from_cwd(self, isolated_config, tmp_path):
        (tmp_path / "depdock.yml").write_text("sysreqs_batch_size: 5\n", encoding="utf-8")

        assert _load_yaml_config() == {"sysreqs_batch_size": 5}

    def test_load_yaml_config_missing(self, isolated_config, tmp_path):
        assert _load_yaml_config(str(tmp_path / "missing.yml")) == {}
        assert _load_yaml_config() == {}


class TestMain:
    """Test the entrypoint end to end with planning mocked."""

    @patch("depdock.add_install_instructions")
    def test_writes_dockerfile(self, mock_add, isolated_config, package_list, tmp_path):
        def _add(manifest, pkgs, platform, options):
            manifest.append(Run("install2.r", [p.name for p in pkgs]))
            return manifest
        mock_add.side_effect = _add
        output = tmp_path / "Dockerfile"

        with pytest.raises(SystemExit) as exc:
            depdock.main(["-p", package_list, "-o", str(output), "-i", "rocker/r-ver:4.4.1"])

        assert exc.value.code == ExitCodes.SUCCESS.value
        assert output.read_text(encoding="utf-8") == 'FROM rocker/r-ver:4.4.1\nRUN ["install2.r", "dplyr"]\n'
        assert mock_add.call_args[0][2] == Constants.DEBIAN_PLATFORM

    @patch("depdock.add_install_instructions")
    def test_stdout(self, mock_add, isolated_config, package_list, capsys):
        mock_add.side_effect = lambda manifest, *args: manifest

        with pytest.raises(SystemExit):
            depdock.main(["-p", package_list])

        assert capsys.readouterr().out == "FROM rocker/r-ver\n"

    def test_invalid_package_list(self, isolated_config, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("name,version\ndplyr,1.0.0\n", encoding="utf-8")

        with pytest.raises(SystemExit) as exc:
            depdock.main(["-p", str(path)])

        assert exc.value.code == ExitCodes.FILE_ERROR.value

    @patch("depdock.add_install_instructions")
    def test_error_on_warnings(self, mock_add, isolated_config, package_list, tmp_path):
        def _add(manifest, *args):
            warnings.warn("lookup failed", ResolutionSoftFailure)
            return manifest
        mock_add.side_effect = _add

        with pytest.raises(SystemExit) as exc:
            depdock.main(["-p", package_list, "-o", str(tmp_path / "Dockerfile"), "--error-on-warnings"])

        assert exc.value.code == ExitCodes.EXIT_WARNINGS.value

    @patch("depdock.detect_platform")
    @patch("depdock.add_install_instructions")
    def test_detect_platform(self, mock_add, mock_detect, isolated_config, package_list, tmp_path):
        mock_add.side_effect = lambda manifest, *args: manifest
        mock_detect.return_value = "linux-x86_64-ubuntu-gcc"

        with pytest.raises(SystemExit):
            depdock.main(["-p", package_list, "-o", str(tmp_path / "Dockerfile"), "--detect-platform"])

        assert mock_add.call_args[0][2] == "linux-x86_64-ubuntu-gcc"

    def test_malformed_session_info(self, isolated_config, package_list, tmp_path):
        session = tmp_path / "session.json"
        session.write_text('{"sysreqs": {"RemoteType": "github",', encoding="utf-8")

        with pytest.raises(SystemExit) as exc:
            depdock.main(["-p", package_list, "--session-info", str(session)])

        assert exc.value.code == ExitCodes.FILE_ERROR.value

    @patch("depdock.add_install_instructions")
    def test_repository_discovery_failure(self, mock_add, isolated_config, package_list):
        mock_add.side_effect = RepositoryDiscoveryError("expected 4 repositories, got 2")

        with pytest.raises(SystemExit) as exc:
            depdock.main(["-p", package_list])

        assert exc.value.code == ExitCodes.CONNECTION_ERROR.value
