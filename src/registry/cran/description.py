"""DESCRIPTION file parsing (Debian control file format, one stanza)."""
from __future__ import annotations

import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)


def parse_description(text: str) -> Dict[str, str]:
    """Parse DESCRIPTION text into a field mapping.

    Continuation lines (leading whitespace) are folded into the previous
    field with a single space. Fields are returned with their original case.

    Raises:
        ValueError: If a non-continuation line has no field separator.
    """
    fields: Dict[str, str] = {}
    current: Optional[str] = None
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            if fields:
                # Only the first stanza is relevant.
                break
            continue
        if line[0] in " \t":
            if current is None:
                raise ValueError(f"Continuation line without field at line {lineno}")
            fields[current] = f"{fields[current]} {line.strip()}".strip()
            continue
        key, sep, value = line.partition(":")
        if not sep or not key.strip():
            raise ValueError(f"Malformed DESCRIPTION line {lineno}: {line!r}")
        current = key.strip()
        fields[current] = value.strip()
    return fields


def read_description(path: str) -> Dict[str, str]:
    """Read and parse a DESCRIPTION file from disk."""
    with open(path, "r", encoding="utf-8", errors="replace") as fh:
        return parse_description(fh.read())
