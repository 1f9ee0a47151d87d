"""Package list ingestion.

Input files hold rows with the columns ``name``, ``version`` and ``source``
(CSV with a header row, or a JSON/YAML list of mappings). Source labels are
turned into ``Origin`` members here and nowhere else.

Scalars are read as text: ``1.10`` is a version string, never the float 1.1.
"""
from __future__ import annotations

import csv
import json
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from errors import FatalInputError
from planning.models import R_PACKAGE_NAME, Origin, PackageSpec
from repository.github_ref import Introspector, SessionMetadata, resolve_reference

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("name", "version", "source")
_MISSING_VALUES = {"", "na", "none", "null", "~"}

# owner/repo, optionally with a subdirectory
_SOURCE_CONTROL_NAME = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+(?:/[A-Za-z0-9_./-]+)?$")
# versions and references end up quoted inside R expressions and shell words
_VERSION = re.compile(r"^[A-Za-z0-9_.@#/+-]+$")


def _normalize_version(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"version must be text, got {type(value).__name__} {value!r}")
    text = value.strip()
    if text.lower() in _MISSING_VALUES:
        return None
    if not _VERSION.match(text):
        raise ValueError(f"invalid version {text!r}")
    return text


def _valid_name(name: str, origin: Origin) -> bool:
    if R_PACKAGE_NAME.match(name):
        return True
    return origin == Origin.SOURCE_CONTROL and bool(_SOURCE_CONTROL_NAME.match(name))


def packages_from_rows(rows: Sequence[Mapping[str, Any]], source: Optional[str] = None) -> List[PackageSpec]:
    """Validate raw rows and build PackageSpecs.

    Raises:
        FatalInputError: On missing columns, empty or malformed names and versions,
            unknown sources or duplicates.
    """
    pkgs: List[PackageSpec] = []
    seen = set()
    for index, row in enumerate(rows, start=1):
        if not isinstance(row, Mapping):
            raise FatalInputError(f"Row {index} is not a mapping", source=source)
        missing = [col for col in REQUIRED_COLUMNS if col not in row]
        if missing:
            raise FatalInputError(
                f"Row {index} is missing required column(s): {', '.join(missing)}", source=source
            )
        name = str(row["name"] or "").strip()
        if not name:
            raise FatalInputError(f"Row {index} has an empty package name", source=source)
        if name in seen:
            raise FatalInputError(f"Package '{name}' is listed more than once", source=source)
        seen.add(name)
        try:
            origin = Origin.from_label(str(row["source"] or ""))
        except FatalInputError as exc:
            raise FatalInputError(f"Row {index}: {exc}", source=source) from exc
        if not _valid_name(name, origin):
            raise FatalInputError(f"Row {index}: invalid package name '{name}'", source=source)
        try:
            version = _normalize_version(row["version"])
        except ValueError as exc:
            raise FatalInputError(f"Row {index} ({name}): {exc}", source=source) from exc
        pkgs.append(PackageSpec(name=name, version=version, origin=origin))
    return pkgs


def _load_document(fh, path: str) -> Any:
    """Parse JSON or YAML keeping every scalar as text."""
    if path.lower().endswith(".json"):
        return json.load(fh, parse_float=str, parse_int=str)
    return yaml.load(fh, Loader=yaml.BaseLoader)


def _read_rows(path: str) -> List[Dict[str, Any]]:
    with open(path, "r", encoding="utf-8", newline="") as fh:
        if path.lower().endswith(".csv"):
            reader = csv.DictReader(fh)
            missing = [c for c in REQUIRED_COLUMNS if c not in (reader.fieldnames or [])]
            if missing:
                raise FatalInputError(f"Missing required column(s): {', '.join(missing)}", source=path)
            return list(reader)
        data = _load_document(fh, path)
    if isinstance(data, Mapping) and "packages" in data:
        data = data["packages"]
    if not isinstance(data, list):
        raise FatalInputError("Package list must be a list of rows", source=path)
    return data


def load_package_list(path: str) -> List[PackageSpec]:
    """Load and validate a package list file (CSV, JSON or YAML)."""
    try:
        rows = _read_rows(path)
    except FileNotFoundError as exc:
        raise FatalInputError(f"File not found: {exc.filename}", source=path) from exc
    except (OSError, csv.Error, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise FatalInputError(f"Could not read package list: {exc}", source=path) from exc
    pkgs = packages_from_rows(rows, source=path)
    logger.info("Package list imported: %s", ", ".join(p.name for p in pkgs))
    return pkgs


def load_session_metadata(path: str) -> Dict[str, Dict[str, str]]:
    """Load per-package description fields (JSON or YAML mapping name → fields).

    Raises:
        FatalInputError: If the file cannot be read or parsed, or is not a
            mapping of package names to field mappings.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = _load_document(fh, path)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise FatalInputError(f"Could not read session info: {exc}", source=path) from exc
    if not isinstance(data, Mapping):
        raise FatalInputError("Session metadata must map package names to fields", source=path)
    metadata: Dict[str, Dict[str, str]] = {}
    for name, fields in data.items():
        if fields is None or fields == "":
            fields = {}
        if not isinstance(fields, Mapping):
            raise FatalInputError(f"Session metadata for '{name}' must be a mapping of fields", source=path)
        metadata[str(name)] = {
            str(k): str(v) for k, v in fields.items()
            if v is not None and str(v).strip().lower() not in _MISSING_VALUES
        }
    return metadata


def attach_references(
    pkgs: Sequence[PackageSpec],
    session_metadata: Optional[SessionMetadata] = None,
    introspector: Optional[Introspector] = None,
    logger: logging.Logger = logger,
) -> List[PackageSpec]:
    """Fill in missing GitHub references; packages without one keep their name."""
    out: List[PackageSpec] = []
    for pkg in pkgs:
        if pkg.origin == Origin.SOURCE_CONTROL and not pkg.version:
            ref = resolve_reference(pkg.name, session_metadata, introspector, logger=logger)
            if ref is not None:
                pkg = PackageSpec(name=pkg.name, version=ref, origin=pkg.origin)
        out.append(pkg)
    return out
