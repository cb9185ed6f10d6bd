from __future__ import annotations

import logging
from typing import Mapping, Optional

import requests

from ..errors import FetchError

logger = logging.getLogger(__name__)

# (connect, read) seconds. Metadata services are link-local and answer fast;
# a hung service should not block boot forever.
DEFAULT_TIMEOUT = (5, 30)


def get(
    url: str,
    *,
    headers: Optional[Mapping[str, str]] = None,
    timeout=DEFAULT_TIMEOUT,
) -> Optional[requests.Response]:
    """GET url once. Returns None on 404, raises FetchError on anything else."""

    logger.debug("GET %s", url)
    try:
        response = requests.get(url, headers=dict(headers or {}), timeout=timeout)
    except requests.RequestException as e:
        raise FetchError(f"GET {url} failed: {e}") from e

    if response.status_code == 404:
        logger.debug("GET %s: not found", url)
        return None

    try:
        response.raise_for_status()
    except requests.HTTPError as e:
        raise FetchError(f"GET {url} failed: {e}") from e

    return response


def get_text(url: str, **kwargs) -> str:
    """Body of url as text, "" when the resource does not exist."""

    response = get(url, **kwargs)
    if response is None:
        return ""
    return response.text
