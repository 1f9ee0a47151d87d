"""Configuration overrides for runtime tunables.

Applies YAML configuration values onto ``Constants``. The document is checked
against ``CONFIG_SCHEMA`` (JSON Schema Draft-07) first; keys with invalid
values are logged and skipped, unknown keys are ignored. CLI flags are applied
afterwards by the entrypoint and win over anything set here.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping

from jsonschema import Draft7Validator

from constants import Constants

logger = logging.getLogger(__name__)

_POSITIVE_INT = {"type": "integer", "minimum": 1}
_STRING = {"type": "string", "minLength": 1}

CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "sysreqs_api_url": _STRING,
        "sysreqs_batch_size": _POSITIVE_INT,
        "cran_description_url": {"type": "string", "pattern": "\\{package\\}"},
        "bioconductor_config_url": _STRING,
        "bioconductor_version": {"type": ["string", "number"]},
        "remotes_version": _STRING,
        "request_timeout": _POSITIVE_INT,
        "probe_timeout": _POSITIVE_INT,
        "docker": _STRING,
        "sysreqs_db": _STRING,
        "baseimage_deps": _STRING,
        "library_paths": {
            "oneOf": [
                _STRING,
                {"type": "array", "items": {"type": "string"}},
            ]
        },
    },
}

# config key -> (Constants attribute, converter)
_OVERRIDES: Dict[str, tuple] = {
    "sysreqs_api_url": ("SYSREQS_API_URL", str),
    "sysreqs_batch_size": ("SYSREQS_BATCH_SIZE", int),
    "cran_description_url": ("CRAN_DESCRIPTION_URL", str),
    "bioconductor_config_url": ("BIOC_CONFIG_URL", str),
    "bioconductor_version": ("BIOC_FALLBACK_VERSION", str),
    "remotes_version": ("REMOTES_VERSION", str),
    "request_timeout": ("REQUEST_TIMEOUT", int),
    "probe_timeout": ("PROBE_TIMEOUT", int),
    "docker": ("DOCKER_EXEC", str),
    "sysreqs_db": ("SYSREQS_DB_FILE", str),
    "baseimage_deps": ("BASEIMAGE_DEPS_FILE", str),
    "library_paths": ("R_LIBRARY_PATHS", list),
}


def config_errors(config: Mapping[str, Any]) -> Dict[str, str]:
    """Validate ``config`` against CONFIG_SCHEMA.

    Returns:
        Mapping of offending top-level key -> first error message ("" for the document itself).
    """
    validator = Draft7Validator(CONFIG_SCHEMA)
    errors: Dict[str, str] = {}
    for err in sorted(validator.iter_errors(dict(config)), key=lambda e: [str(p) for p in e.path]):
        key = str(err.path[0]) if err.path else ""
        errors.setdefault(key, err.message)
    return errors


def _convert(converter: Callable[[Any], Any], value: Any) -> Any:
    if converter is list:
        if isinstance(value, str):
            return [value]
        return [str(v) for v in value]
    return converter(value)


def apply_config_overrides(config: Mapping[str, Any]) -> None:
    """Apply known, valid configuration keys onto Constants.

    A bad config entry never stops the run.
    """
    config = config or {}
    invalid = config_errors(config)
    for key, value in config.items():
        target = _OVERRIDES.get(key)
        if target is None:
            logger.debug("Ignoring unknown configuration key: %s", key)
            continue
        if key in invalid:
            logger.warning("Invalid value for configuration key %s: %s", key, invalid[key])
            continue
        attr, converter = target
        setattr(Constants, attr, _convert(converter, value))
        logger.debug("Configuration override %s=%s", attr, value)
