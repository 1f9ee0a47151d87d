"""CRAN client: fetch a package's DESCRIPTION page."""
from __future__ import annotations

import logging
from typing import Optional

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url

import registry.cran as cran_pkg

logger = logging.getLogger(__name__)


def fetch_description(package: str, url: Optional[str] = None) -> Optional[str]:
    """Return the raw DESCRIPTION text of ``package`` from CRAN, or None on failure."""
    fullurl = (url or Constants.CRAN_DESCRIPTION_URL).format(package=package)
    logger.info(
        "Trying to determine system requirements for '%s' from the DESCRIPTION file on CRAN",
        package,
    )
    status, text = cran_pkg.get_text(fullurl, context="cran")
    if text is None:
        logger.debug(
            "Error requesting DESCRIPTION file from CRAN",
            extra=extra_context(
                event="http_response",
                component="cran_client",
                outcome="failure",
                status_code=status,
                target=safe_url(fullurl),
                package=package,
            ),
        )
        return None
    if is_debug_enabled(logger):
        logger.debug("Fetched DESCRIPTION for %s (%s bytes)", package, len(text))
    return text
