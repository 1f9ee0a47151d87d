"""Shared HTTP helpers used by the sysreqs and registry clients.

Encapsulates request/timeout error handling so modules avoid duplicating
try/except blocks. Failures never raise: callers receive a status code of 0
(transport failure) or the non-200 status, and a ``None`` body, and decide
how to degrade.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Tuple

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)

HEADERS_JSON = {"Accept": "application/json"}


def _default_headers(headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    merged = {"User-Agent": Constants.USER_AGENT}
    if headers:
        merged.update(headers)
    return merged


def safe_get(url: str, *, context: str, **kwargs: Any) -> Optional[requests.Response]:
    """Perform a GET request with consistent error handling and DEBUG traces.

    Args:
        url: Target URL.
        context: Human-readable source tag for logs (e.g., "sysreqs", "cran").
        **kwargs: Passed through to requests.get.

    Returns:
        requests.Response, or None when the request could not be completed.
    """
    safe_target = safe_url(url)
    headers = _default_headers(kwargs.pop("headers", None))
    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action="GET",
                    target=safe_target,
                    context=context,
                ),
            )
        try:
            res = requests.get(url, timeout=Constants.REQUEST_TIMEOUT, headers=headers, **kwargs)
        except requests.Timeout:
            logger.warning(
                "%s request timed out after %s seconds",
                context,
                Constants.REQUEST_TIMEOUT,
            )
            return None
        except requests.RequestException as exc:  # includes ConnectionError
            logger.warning("%s connection error: %s", context, exc)
            return None

    if is_debug_enabled(logger):
        logger.debug(
            "HTTP response",
            extra=extra_context(
                event="http_response",
                component="http_client",
                action="GET",
                outcome="success" if res.status_code == 200 else "handled_non_2xx",
                status_code=res.status_code,
                duration_ms=t.duration_ms(),
                target=safe_target,
                context=context,
            ),
        )
    return res


def get_text(url: str, *, context: str, **kwargs: Any) -> Tuple[int, Optional[str]]:
    """GET ``url`` and return (status_code, text_or_none).

    Status 0 means the transport failed; any non-200 status yields a None body.
    """
    res = safe_get(url, context=context, **kwargs)
    if res is None:
        return 0, None
    if res.status_code != 200:
        logger.debug("%s returned HTTP %s for %s", context, res.status_code, safe_url(url))
        return res.status_code, None
    return res.status_code, res.text


def get_json(url: str, *, context: str, **kwargs: Any) -> Tuple[int, Optional[Any]]:
    """GET ``url`` and parse the JSON body.

    Returns:
        Tuple of (status_code, parsed_json_or_none)
    """
    headers = dict(HEADERS_JSON)
    headers.update(kwargs.pop("headers", None) or {})
    status_code, text = get_text(url, context=context, headers=headers, **kwargs)
    if text is None:
        return status_code, None
    try:
        return status_code, json.loads(text)
    except json.JSONDecodeError:
        if is_debug_enabled(logger):
            logger.debug(
                "JSON decode error",
                extra=extra_context(
                    event="parse",
                    component="http_client",
                    action="get_json",
                    outcome="json_decode_error",
                    status_code=status_code,
                    target=safe_url(url),
                ),
            )
        return status_code, None
