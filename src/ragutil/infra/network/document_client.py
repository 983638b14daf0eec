from __future__ import annotations

import logging
from typing import Tuple

import requests

from ragutil.domain.constants import BROWSER_HEADERS
from ragutil.domain.errors import NetworkError
from ragutil.infra.network.common import new_session

logger = logging.getLogger(__name__)


def get_document(url: str) -> Tuple[int, bytes]:
    """
    GET a remote document the way a browser would, following redirects.

    Args:
        url: Document URL.

    Returns:
        Tuple[int, bytes]: Final status code and raw body.

    Raises:
        NetworkError: On transport failure or too many redirects.
    """
    logger.debug(f"GET {url}")
    try:
        with new_session() as session:
            response = session.get(url, headers=dict(BROWSER_HEADERS), allow_redirects=True)
    except requests.exceptions.RequestException as e:
        raise NetworkError(f"GET {url} failed: {e}") from e

    size_kb = len(response.content) / 1024
    logger.info(f"Network: fetched {url} ({response.status_code}, {size_kb:.1f} KB).")
    return response.status_code, response.content
