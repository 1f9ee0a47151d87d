"""Tests for package list ingestion and GitHub reference lookup."""

import json
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from errors import FatalInputError, ReferenceMissing
from planning.inputs import (
    attach_references,
    load_package_list,
    load_session_metadata,
    packages_from_rows,
)
from planning.models import Origin, PackageSpec
from repository.github_ref import (
    SessionInfoIntrospector,
    parse_source_reference,
    reference_from_metadata,
    resolve_reference,
)


class TestPackagesFromRows:
    """Test row validation."""

    def test_valid_rows(self):
        rows = [
            {"name": "dplyr", "version": "1.1.4", "source": "CRAN"},
            {"name": "Biobase", "version": "NA", "source": "Bioconductor"},
            {"name": "sysreqs", "version": "", "source": "github"},
        ]

        pkgs = packages_from_rows(rows)

        assert pkgs == [
            PackageSpec("dplyr", "1.1.4", Origin.REGISTRY),
            PackageSpec("Biobase", None, Origin.ALT_REGISTRY),
            PackageSpec("sysreqs", None, Origin.SOURCE_CONTROL),
        ]

    @pytest.mark.parametrize("rows", [
        [{"name": "dplyr", "version": "1.0.0"}],
        [{"name": "", "version": "1.0.0", "source": "CRAN"}],
        [{"name": "dplyr", "version": "1.0.0", "source": "R-Forge"}],
        [{"name": "a", "version": None, "source": "CRAN"}, {"name": "a", "version": None, "source": "CRAN"}],
        ["dplyr"],
        [{"name": "zoo", "version": 1.1, "source": "CRAN"}],
        [{"name": "zoo", "version": "1.8'); system('id", "source": "CRAN"}],
        [{"name": "bad'); system('id", "version": "1.0.0", "source": "CRAN"}],
        [{"name": "r-hub/sysreqs", "version": None, "source": "CRAN"}],
    ])
    def test_invalid_rows_are_fatal(self, rows):
        with pytest.raises(FatalInputError):
            packages_from_rows(rows)

    def test_github_repository_names_are_accepted(self):
        pkgs = packages_from_rows([{"name": "r-hub/sysreqs", "version": "", "source": "GitHub"}])

        assert pkgs == [PackageSpec("r-hub/sysreqs", None, Origin.SOURCE_CONTROL)]


class TestLoadPackageList:
    """Test reading package list files."""

    def test_csv(self, tmp_path):
        path = tmp_path / "packages.csv"
        path.write_text("name,version,source\ndplyr,1.1.4,CRAN\nBiobase,,Bioconductor\n", encoding="utf-8")

        pkgs = load_package_list(str(path))

        assert [p.name for p in pkgs] == ["dplyr", "Biobase"]
        assert pkgs[1].version is None

    def test_csv_missing_column(self, tmp_path):
        path = tmp_path / "packages.csv"
        path.write_text("name,version\ndplyr,1.1.4\n", encoding="utf-8")

        with pytest.raises(FatalInputError, match="source"):
            load_package_list(str(path))

    def test_json(self, tmp_path):
        path = tmp_path / "packages.json"
        path.write_text(json.dumps([{"name": "xml2", "version": "1.3.6", "source": "CRAN"}]), encoding="utf-8")

        assert load_package_list(str(path)) == [PackageSpec("xml2", "1.3.6", Origin.REGISTRY)]

    def test_yaml_with_packages_key(self, tmp_path):
        path = tmp_path / "packages.yml"
        path.write_text("packages:\n  - {name: sf, version: 1.0-16, source: CRAN}\n", encoding="utf-8")

        assert load_package_list(str(path)) == [PackageSpec("sf", "1.0-16", Origin.REGISTRY)]

    def test_yaml_unquoted_version_stays_text(self, tmp_path):
        path = tmp_path / "packages.yml"
        path.write_text("- {name: zoo, version: 1.10, source: CRAN}\n- {name: xts, version: 2, source: CRAN}\n",
                        encoding="utf-8")

        assert load_package_list(str(path)) == [
            PackageSpec("zoo", "1.10", Origin.REGISTRY),
            PackageSpec("xts", "2", Origin.REGISTRY),
        ]

    def test_json_numeric_version_stays_text(self, tmp_path):
        path = tmp_path / "packages.json"
        path.write_text('[{"name": "zoo", "version": 1.10, "source": "CRAN"}]', encoding="utf-8")

        assert load_package_list(str(path)) == [PackageSpec("zoo", "1.10", Origin.REGISTRY)]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FatalInputError, match="not found"):
            load_package_list(str(tmp_path / "nope.csv"))

    def test_session_metadata(self, tmp_path):
        path = tmp_path / "session.yml"
        path.write_text("sysreqs:\n  RemoteRepo: sysreqs\n  RemoteSha: null\n", encoding="utf-8")

        assert load_session_metadata(str(path)) == {"sysreqs": {"RemoteRepo": "sysreqs"}}

    @pytest.mark.parametrize("filename, content", [
        ("session.json", '{"sysreqs": {"RemoteRepo": '),
        ("session.yml", "sysreqs: [unclosed\n"),
        ("session.yml", "- sysreqs\n- dplyr\n"),
        ("session.json", '{"sysreqs": ["RemoteRepo", "sysreqs"]}'),
        ("session.yml", "sysreqs: github\n"),
    ])
    def test_malformed_session_metadata_is_fatal(self, tmp_path, filename, content):
        path = tmp_path / filename
        path.write_text(content, encoding="utf-8")

        with pytest.raises(FatalInputError):
            load_session_metadata(str(path))

    def test_missing_session_metadata_is_fatal(self, tmp_path):
        with pytest.raises(FatalInputError, match="session info"):
            load_session_metadata(str(tmp_path / "nope.yml"))


class TestGithubReference:
    """Test exact GitHub reference lookup."""

    METADATA = {
        "sysreqs": {"GithubRepo": "sysreqs", "GithubUsername": "r-hub", "GithubSHA1": "481d263"},
        "partial": {"RemoteRepo": "partial", "RemoteUsername": "someone"},
    }

    def test_reference_from_metadata(self):
        assert reference_from_metadata("sysreqs", self.METADATA) == "r-hub/sysreqs@481d263"
        assert reference_from_metadata("partial", self.METADATA) is None

    @pytest.mark.parametrize("source, expected", [
        ("GitHub (r-hub/sysreqs@481d263)", "r-hub/sysreqs@481d263"),
        ("Github (owner/repo#42)", "owner/repo#42"),
        ("CRAN (R 4.4.1)", None),
        (None, None),
    ])
    def test_parse_source_reference(self, source, expected):
        assert parse_source_reference(source) == expected

    def test_introspection_fallback(self):
        introspector = MagicMock(return_value="GitHub (someone/partial@abc123)")

        assert resolve_reference("partial", self.METADATA, introspector) == "someone/partial@abc123"
        introspector.assert_called_once_with("partial")

    def test_missing_reference_warns(self):
        with pytest.warns(ReferenceMissing):
            assert resolve_reference("unknown", {}, MagicMock(return_value=None)) is None

    @patch("repository.github_ref.subprocess.run")
    def test_introspector_failure(self, mock_run):
        mock_run.side_effect = FileNotFoundError("Rscript")

        assert SessionInfoIntrospector()("sysreqs") is None

    @patch("repository.github_ref.subprocess.run")
    def test_introspector_output(self, mock_run):
        mock_run.return_value = subprocess.CompletedProcess(
            args=[], returncode=0, stdout="GitHub (r-hub/sysreqs@481d263)\n", stderr=""
        )

        assert SessionInfoIntrospector(rscript="/usr/bin/Rscript")("sysreqs") == "GitHub (r-hub/sysreqs@481d263)"
        assert mock_run.call_args[0][0][0] == "/usr/bin/Rscript"

    def test_attach_references(self):
        pkgs = [
            PackageSpec("sysreqs", None, Origin.SOURCE_CONTROL),
            PackageSpec("pinned", "me/pinned@1", Origin.SOURCE_CONTROL),
            PackageSpec("dplyr", None, Origin.REGISTRY),
        ]
        introspector = MagicMock(return_value=None)

        out = attach_references(pkgs, self.METADATA, introspector)

        assert out[0].version == "r-hub/sysreqs@481d263"
        assert out[1:] == pkgs[1:]
        introspector.assert_not_called()
