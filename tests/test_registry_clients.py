"""Tests for CRAN metadata access and Bioconductor repository discovery."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from common.http_client import get_json, get_text
from registry.bioconductor.discovery import RepositoryDiscovery, repository_urls
from registry.cran.client import fetch_description
from registry.cran.description import parse_description
from registry.cran.library import find_installed, library_paths


class TestParseDescription:
    """Test DESCRIPTION parsing."""

    def test_continuation_lines_are_folded(self):
        text = (
            "Package: sf\n"
            "Version: 1.0-16\n"
            "SystemRequirements: GDAL (>= 2.0.1), GEOS (>= 3.4.0),\n"
            "        PROJ (>= 4.8.0), sqlite3\n"
        )

        fields = parse_description(text)

        assert fields["Package"] == "sf"
        assert fields["Version"] == "1.0-16"
        assert fields["SystemRequirements"] == "GDAL (>= 2.0.1), GEOS (>= 3.4.0), PROJ (>= 4.8.0), sqlite3"

    def test_malformed_line(self):
        with pytest.raises(ValueError):
            parse_description("Package: sf\nnot a field\n")

    def test_leading_continuation(self):
        with pytest.raises(ValueError):
            parse_description("  orphan continuation\n")


class TestLibrary:
    """Test installed package discovery."""

    def test_find_installed(self, tmp_path):
        pkg_dir = tmp_path / "lib" / "xml2"
        pkg_dir.mkdir(parents=True)
        (pkg_dir / "DESCRIPTION").write_text("Package: xml2\nVersion: 1.3.6\n", encoding="utf-8")

        installed = find_installed("xml2", [str(tmp_path / "empty"), str(tmp_path / "lib")])

        assert installed.version == "1.3.6"
        assert installed.description_path.endswith("DESCRIPTION")
        assert find_installed("sf", [str(tmp_path / "lib")]) is None

    def test_library_paths_env_first_and_unique(self, monkeypatch):
        monkeypatch.setenv("R_LIBS", "/opt/r-libs")
        monkeypatch.setenv("R_LIBS_USER", "/opt/r-libs")
        monkeypatch.delenv("R_LIBS_SITE", raising=False)

        paths = library_paths()

        assert paths[0] == "/opt/r-libs"
        assert paths.count("/opt/r-libs") == 1
        assert "/usr/local/lib/R/site-library" in paths


class TestFetchDescription:
    """Test the CRAN DESCRIPTION fetch."""

    @patch("registry.cran.client.cran_pkg.get_text")
    def test_success(self, mock_get_text):
        mock_get_text.return_value = (200, "Package: xml2\n")

        assert fetch_description("xml2") == "Package: xml2\n"
        assert mock_get_text.call_args[0][0] == "https://CRAN.R-project.org/package=xml2/DESCRIPTION"

    @patch("registry.cran.client.cran_pkg.get_text")
    def test_failure(self, mock_get_text):
        mock_get_text.return_value = (404, None)

        assert fetch_description("nosuchpkg") is None


class TestBioconductorDiscovery:
    """Test repository URL discovery."""

    def test_repository_urls(self):
        assert repository_urls("3.19") == [
            "https://bioconductor.org/packages/3.19/bioc",
            "https://bioconductor.org/packages/3.19/data/annotation",
            "https://bioconductor.org/packages/3.19/data/experiment",
            "https://bioconductor.org/packages/3.19/workflows",
        ]

    @patch("registry.bioconductor.discovery.bioc_pkg.get_text")
    def test_release_from_config(self, mock_get_text):
        mock_get_text.return_value = (200, 'release_version: "3.19"\ndevel_version: "3.20"\n')
        discovery = RepositoryDiscovery()

        urls = discovery()
        again = discovery()

        assert urls[0] == "https://bioconductor.org/packages/3.19/bioc"
        assert again == urls
        mock_get_text.assert_called_once()

    @patch("registry.bioconductor.discovery.bioc_pkg.get_text")
    def test_fallback_release(self, mock_get_text):
        mock_get_text.return_value = (0, None)

        urls = RepositoryDiscovery(fallback_version="3.18")()

        assert len(urls) == 4
        assert urls[3] == "https://bioconductor.org/packages/3.18/workflows"


class TestHttpClient:
    """Test soft-failing HTTP helpers."""

    @patch("common.http_client.requests.get")
    def test_get_text_transport_failure(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("refused")

        assert get_text("https://example.org", context="test") == (0, None)

    @patch("common.http_client.requests.get")
    def test_get_text_non_200(self, mock_get):
        mock_get.return_value = MagicMock(status_code=503, text="busy")

        assert get_text("https://example.org", context="test") == (503, None)

    @patch("common.http_client.requests.get")
    def test_get_json(self, mock_get):
        mock_get.return_value = MagicMock(status_code=200, text='["libxml2-dev"]')

        assert get_json("https://example.org", context="test") == (200, ["libxml2-dev"])
        headers = mock_get.call_args[1]["headers"]
        assert headers["Accept"] == "application/json"
        assert headers["User-Agent"].startswith("depdock/")

    @patch("common.http_client.requests.get")
    def test_get_json_invalid_body(self, mock_get):
        mock_get.return_value = MagicMock(status_code=200, text="<html>")

        assert get_json("https://example.org", context="test") == (200, None)
