from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from ragutil.domain.constants import MAX_REDIRECTS
from ragutil.domain.errors import NetworkError

logger = logging.getLogger(__name__)


def new_session(max_redirects: int = MAX_REDIRECTS) -> requests.Session:
    """Create an isolated HTTP session with a bounded redirect chain."""
    session = requests.Session()
    session.max_redirects = max_redirects
    return session


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def merge_headers(base: Dict[str, str], extra: Optional[Dict[str, str]]) -> Dict[str, str]:
    """Overlay caller-supplied headers on the defaults."""
    headers = dict(base)
    if extra:
        headers.update({str(k): str(v) for k, v in extra.items()})
    return headers


def decode_json(response: requests.Response, source: str) -> Any:
    """Parse a response body as JSON, mapping decode failures to NetworkError."""
    try:
        return response.json()
    except ValueError as e:
        raise NetworkError(f"Invalid JSON from {source}: {e}", response.status_code) from e
