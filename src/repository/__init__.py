"""Source repository references for GitHub-installed packages."""

from .github_ref import (  # noqa: F401
    SessionInfoIntrospector,
    parse_source_reference,
    reference_from_metadata,
    resolve_reference,
)

__all__ = [
    "SessionInfoIntrospector",
    "parse_source_reference",
    "reference_from_metadata",
    "resolve_reference",
]
