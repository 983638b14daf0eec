from __future__ import annotations

"""
Remote Extraction Orchestrator.

Coordinates the extraction flows that delegate parsing to a remote service:
reading or fetching the source document, posting it to the endpoint and
shaping the JSON reply into prompt units or a normalized table.

The public entry points are coroutines. Blocking HTTP work runs in worker
threads so several extractions may be in flight at once; every call uses
its own HTTP session.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from ragutil.core.extraction.api_normalizer import normalize
from ragutil.core.processing.ascii_filter import ascii_only
from ragutil.domain.constants import BROWSER_USER_AGENT, RECOVERY_RULES, RecoveryRule
from ragutil.domain.errors import NetworkError
from ragutil.domain.models import ApiTable, PromptUnit
from ragutil.infra.fs import read_text_lossy
from ragutil.infra.network import get_document, is_success, post_json

logger = logging.getLogger(__name__)

ITEMS_TEXT_KEY = "items_text"
NOTES_TEXT_KEY = "notes_text"

# -----------------------------------------------------------------------------
# PUBLIC API (ASYNC)
# -----------------------------------------------------------------------------

async def extract_units_via_api(
        endpoint: str,
        source_path: str,
        which: str,
        headers: Optional[Dict[str, str]] = None,
) -> List[PromptUnit]:
    """
    Send a document to the units endpoint and collect the returned units.

    Args:
        endpoint: Units endpoint URL.
        source_path: Local document, sent as {'html': text}.
        which: 'items' or 'notes'; any value starting with 'n' selects notes.
        headers: Extra request headers.

    Returns:
        List[PromptUnit]: Units with a non-empty code and text.

    Raises:
        NotFoundError: If the source file does not exist.
        IoError: If the source file cannot be read.
        NetworkError: On transport failure, non-2xx status or invalid JSON.
    """
    text = await asyncio.to_thread(read_text_lossy, source_path)
    logger.info(f"Requesting {which} units for {source_path} from {endpoint}")

    reply = await asyncio.to_thread(post_json, endpoint, {"html": text}, headers)
    units = units_from_response(reply, which)

    logger.info(f"Received {len(units)} units from {endpoint}")
    return units


async def fetch_table_from_file(endpoint: str, source_path: str) -> ApiTable:
    """
    Send a local document to the table endpoint and normalize the reply.

    Raises:
        NotFoundError: If the source file does not exist.
        IoError: If the source file cannot be read.
        NetworkError: On transport failure, non-2xx status or invalid JSON.
        NoTableFoundError: If the reply holds no array of objects.
    """
    text = await asyncio.to_thread(read_text_lossy, source_path)
    return await _post_for_table(endpoint, text)


async def fetch_table_from_url(endpoint: str, source_url: str) -> ApiTable:
    """
    Fetch a remote document, then send it to the table endpoint.

    Sites that serve an application shell at some URLs get one alternate
    attempt through their recovery rule.

    Raises:
        NetworkError: If the document GET or the endpoint POST fails, or the
                      endpoint reply is not JSON.
        NoTableFoundError: If the reply holds no array of objects.
    """
    body = await asyncio.to_thread(fetch_document_text, source_url)
    return await _post_for_table(endpoint, body)

# -----------------------------------------------------------------------------
# DOCUMENT RETRIEVAL (BLOCKING)
# -----------------------------------------------------------------------------

def fetch_document_text(url: str) -> str:
    """
    GET a document as filtered ASCII text, applying any matching recovery rule.

    Raises:
        NetworkError: On transport failure or a non-success status.
    """
    status, content = get_document(url)
    if not is_success(status):
        raise NetworkError(f"GET {url} returned {status}", status)

    body = ascii_only(content)
    for rule in RECOVERY_RULES:
        alternate = recovery_url(url, body, rule)
        if alternate is None:
            continue

        logger.warning(f"Document at {url} lacks '{rule.marker}', trying {alternate}")
        alt_status, alt_content = get_document(alternate)
        if is_success(alt_status):
            alt_body = ascii_only(alt_content)
            if rule.marker in alt_body:
                logger.info(f"Recovered document content from {alternate}")
                body = alt_body
        break

    return body


def recovery_url(url: str, body: str, rule: RecoveryRule) -> Optional[str]:
    """
    Compute the alternate URL of a recovery rule, if it applies.

    Returns:
        Optional[str]: The rewritten URL, or None when the body already has
                       the marker or the URL does not match the rule.
    """
    if rule.marker in body:
        return None
    if rule.host_fragment not in url or rule.old_segment not in url:
        return None
    return url.replace(rule.old_segment, rule.new_segment)

# -----------------------------------------------------------------------------
# RESPONSE SHAPING
# -----------------------------------------------------------------------------

def units_from_response(reply: Any, which: str) -> List[PromptUnit]:
    """
    Turn a units endpoint reply into prompt units.

    Accepts an array of objects, an object carrying an 'items' or 'notes'
    array, or a single object. Entries without a non-empty string code and
    text are skipped.
    """
    text_key = NOTES_TEXT_KEY if which.lower().startswith("n") else ITEMS_TEXT_KEY

    units: List[PromptUnit] = []
    for entry in _response_entries(reply):
        if not isinstance(entry, dict):
            continue
        code = entry.get("code")
        text = entry.get(text_key)
        if not isinstance(code, str) or not isinstance(text, str):
            continue
        code, text = code.strip(), text.strip()
        if code and text:
            units.append(PromptUnit(id=code, body=text))
    return units


def _response_entries(reply: Any) -> List[Any]:
    if isinstance(reply, list):
        return reply
    if isinstance(reply, dict):
        for key in ("items", "notes"):
            if isinstance(reply.get(key), list):
                return reply[key]
        return [reply]
    return []


async def _post_for_table(endpoint: str, text: str) -> ApiTable:
    logger.info(f"Requesting table extraction from {endpoint}")
    reply = await asyncio.to_thread(
        post_json, endpoint, {"data": text}, None, BROWSER_USER_AGENT
    )
    table = normalize(reply)
    logger.info(f"Normalized table: {len(table.columns)} columns, {len(table.rows)} rows")
    return table
