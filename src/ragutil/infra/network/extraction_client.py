from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from ragutil.domain.constants import API_USER_AGENT
from ragutil.domain.errors import NetworkError
from ragutil.infra.network.common import decode_json, is_success, merge_headers, new_session

logger = logging.getLogger(__name__)


def post_json(
        endpoint: str,
        payload: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
        user_agent: str = API_USER_AGENT,
) -> Any:
    """
    POST a JSON document to an extraction endpoint and decode the reply.

    Args:
        endpoint: Target URL.
        payload: JSON-serializable request body.
        headers: Extra request headers, applied over the defaults.
        user_agent: User-Agent header value.

    Returns:
        Any: Decoded JSON response.

    Raises:
        NetworkError: On transport failure, non-2xx status or invalid JSON.
    """
    request_headers = merge_headers(
        {"User-Agent": user_agent, "Content-Type": "application/json"},
        headers,
    )
    logger.debug(f"POST {endpoint} ({len(payload)} fields)")

    try:
        with new_session() as session:
            response = session.post(endpoint, json=payload, headers=request_headers)
    except requests.exceptions.RequestException as e:
        raise NetworkError(f"POST {endpoint} failed: {e}") from e

    if not is_success(response.status_code):
        raise NetworkError(f"API error {response.status_code} from {endpoint}", response.status_code)

    return decode_json(response, endpoint)
